import random
import secrets
import string
import threading
from typing import List, Optional

from tictactoe.services.games.board import empty_board

SYMBOLS = ('X', 'O')
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_code(length=6):
    """Generate a short, human-typeable room code.

    Uniqueness is the registry's job, see RoomRegistry.create.
    """
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))


def other_symbol(symbol: str) -> str:
    return 'O' if symbol == 'X' else 'X'


class Player:
    def __init__(self, sid: str, name: str, symbol: str):
        self.sid = sid
        self.name = name
        self.symbol = symbol
        self.connected = True
        # Private reconnection credential, never part of to_dict()
        self.token = secrets.token_urlsafe(16)

    def to_dict(self):
        return {
            'id': self.sid,
            'name': self.name,
            'symbol': self.symbol,
            'connected': self.connected,
        }


class Spectator:
    def __init__(self, sid: str, name: str):
        self.sid = sid
        self.name = name

    def to_dict(self):
        return {'id': self.sid, 'name': self.name}


class Room:
    def __init__(self, room_id: str):
        self.id = room_id
        self.players: List[Player] = []
        self.board = empty_board()
        self.current_player = 'X'
        self.game_active = False
        self.paused = False
        self.scores = {'X': 0, 'O': 0, 'draws': 0}
        self.games_played = 0
        self.spectators: List[Spectator] = []
        # Set while an abandoned room waits out its cleanup grace period
        self.cleanup_deadline: Optional[float] = None
        self.lock = threading.RLock()

    def __repr__(self):
        return f"<Room {self.id} players={len(self.players)} spectators={len(self.spectators)}>"

    @property
    def is_full(self) -> bool:
        return len(self.players) >= 2

    @property
    def all_players_connected(self) -> bool:
        return len(self.players) == 2 and all(p.connected for p in self.players)

    @property
    def is_abandoned(self) -> bool:
        """No connected player and no spectator left in the room."""
        return not self.spectators and not any(p.connected for p in self.players)

    def seat_player(self, sid: str, name: str) -> Player:
        if self.is_full:
            raise ValueError(f"room {self.id} already has two players")
        player = Player(sid, name, SYMBOLS[len(self.players)])
        self.players.append(player)
        return player

    def player_by_sid(self, sid: str) -> Optional[Player]:
        return next((p for p in self.players if p.sid == sid), None)

    def player_by_name(self, name: str) -> Optional[Player]:
        return next((p for p in self.players if p.name == name), None)

    def player_by_token(self, token: str) -> Optional[Player]:
        return next((p for p in self.players if secrets.compare_digest(p.token.encode(), token.encode())), None)

    def add_spectator(self, sid: str, name: str) -> Spectator:
        spectator = Spectator(sid, name)
        self.spectators.append(spectator)
        return spectator

    def remove_spectator(self, sid: str) -> None:
        self.spectators = [s for s in self.spectators if s.sid != sid]

    def reset_board(self) -> None:
        self.board = empty_board()
        self.current_player = 'X'
        self.game_active = self.all_players_connected
        # A seated but disconnected player resumes the fresh game on reconnect
        self.paused = self.is_full and not self.game_active

    def to_dict(self):
        return {
            'id': self.id,
            'players': [p.to_dict() for p in self.players],
            'board': list(self.board),
            'currentPlayer': self.current_player,
            'gameActive': self.game_active,
            'paused': self.paused,
            'scores': dict(self.scores),
            'gamesPlayed': self.games_played,
            'spectators': [s.to_dict() for s in self.spectators],
        }
