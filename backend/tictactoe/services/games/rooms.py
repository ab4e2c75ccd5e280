"""Room state machine.

Every inbound command goes through ``RoomService.dispatch``, which mutates
rooms while holding their lock and returns an ``Outcome``: the outbound
events to deliver plus the Socket.IO room membership changes the
transport has to apply for the sending connection.
"""
import logging
import time
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional, Tuple

from tictactoe.models import Room, other_symbol
from . import events as ev
from .board import evaluate, is_full
from .commands import (
    CreateRoom, Disconnect, JoinRoom, MakeMove, ReconnectToRoom, ResetGame, SendChat, Typing,
)
from .errors import (
    AlreadyInRoom, CellOccupied, GameNotActive, InvalidToken, NotYourTurn, RoomNotFound,
    RoomStateError,
)
from .registry import RoomRegistry
from .sessions import ConnectionSession, SessionManager

logger = logging.getLogger(__name__)

GAME_READY_MESSAGE = 'Both players joined! Game starting...'


class Outcome:
    def __init__(self):
        self.events: List[ev.Outbound] = []
        self.joined: Optional[str] = None
        self.left: List[str] = []
        # (sid, room_id) of other connections whose seat was taken over
        self.evicted: List[Tuple[str, str]] = []
        # (room_id, deadline) pairs the transport should expire later
        self.abandoned: List[Tuple[str, float]] = []

    def emit(self, outbound: ev.Outbound) -> None:
        self.events.append(outbound)


class RoomService:
    def __init__(self, registry: RoomRegistry, sessions: SessionManager,
                 chat_max_length: int = 500, cleanup_grace_sec: float = 0.0):
        self.registry = registry
        self.sessions = sessions
        self.chat_max_length = chat_max_length
        self.cleanup_grace_sec = cleanup_grace_sec
        self._handlers = {
            CreateRoom: self.create_room,
            JoinRoom: self.join_room,
            MakeMove: self.make_move,
            ResetGame: self.reset_game,
            ReconnectToRoom: self.reconnect,
            Typing: self.typing,
            SendChat: self.chat_message,
            Disconnect: self.disconnect,
        }

    def dispatch(self, sid: str, command) -> Outcome:
        """Run one command for connection ``sid`` to completion.

        Room errors never escape: they become an error event addressed to
        the sender, appended after whatever already happened.
        """
        outcome = Outcome()
        try:
            self._handlers[type(command)](sid, command, outcome)
        except RoomStateError as exc:
            outcome.emit(ev.to_sender(exc.event, {'message': exc.message}))
        return outcome

    @contextmanager
    def _locked_room(self, room_id):
        """Hold the room's lock; yields None if the room is gone."""
        room = self.registry.get(room_id)
        if room is None:
            yield None
            return
        with room.lock:
            # Deleted while we waited for the lock
            yield room if self.registry.get(room_id) is room else None

    # ---- lifecycle ----

    def create_room(self, sid: str, command: CreateRoom, outcome: Outcome) -> None:
        self._leave_current_room(sid, outcome)
        room = self.registry.create()
        with room.lock:
            player = room.seat_player(sid, command.player_name)
            self.sessions.bind(sid, ConnectionSession(room.id, player.name, player.symbol))
            outcome.joined = room.id
            outcome.emit(ev.to_sender(ev.ROOM_CREATED, {
                'roomId': room.id,
                'playerSymbol': player.symbol,
                'playerName': player.name,
                'playerToken': player.token,
                'room': room.to_dict(),
            }))
        logger.info(f"[room-created] room={room.id} player={player.name}")

    def join_room(self, sid: str, command: JoinRoom, outcome: Outcome) -> None:
        self._ensure_not_bound_to(sid, command.room_id)
        if self.registry.get(command.room_id) is None:
            raise RoomNotFound(command.room_id)
        self._leave_current_room(sid, outcome)

        with self._locked_room(command.room_id) as room:
            if room is None:
                raise RoomNotFound(command.room_id)
            room.cleanup_deadline = None
            outcome.joined = room.id

            if room.is_full:
                room.add_spectator(sid, command.player_name)
                self.sessions.bind(sid, ConnectionSession(room.id, command.player_name, is_spectator=True))
                outcome.emit(ev.to_sender(ev.JOINED_AS_SPECTATOR, {'room': room.to_dict()}))
                outcome.emit(ev.to_others(room.id, ev.SPECTATOR_JOINED, {'playerName': command.player_name}))
                logger.info(f"[spectator-joined] room={room.id} spectator={command.player_name}")
                return

            player = room.seat_player(sid, command.player_name)
            self.sessions.bind(sid, ConnectionSession(room.id, player.name, player.symbol))
            # The second seat starts the game, unless the first player has
            # dropped in the meantime
            room.game_active = room.all_players_connected
            room.paused = not room.game_active
            outcome.emit(ev.to_sender(ev.SEAT_ASSIGNED, {
                'roomId': room.id,
                'playerSymbol': player.symbol,
                'playerName': player.name,
                'playerToken': player.token,
            }))
            if room.game_active:
                message = GAME_READY_MESSAGE
            else:
                away = next(p for p in room.players if not p.connected)
                message = f"{away.name} is away. Game paused until they reconnect."
            outcome.emit(ev.to_room(room.id, ev.GAME_READY, {
                'room': room.to_dict(),
                'message': message,
            }))
        logger.info(f"[player-joined] room={command.room_id} player={command.player_name}")

    def reconnect(self, sid: str, command: ReconnectToRoom, outcome: Outcome) -> None:
        self._ensure_not_bound_to(sid, command.room_id)
        with self._locked_room(command.room_id) as room:
            if room is None:
                raise RoomNotFound(command.room_id)
            player = self._find_seat(room, command)
        if player is None:
            logger.info(f"[reconnect-ignored] room={command.room_id} no seat for player={command.player_name}")
            return

        self._leave_current_room(sid, outcome)
        with self._locked_room(command.room_id) as room:
            if room is None:
                raise RoomNotFound(command.room_id)
            if player not in room.players:
                return
            previous_sid = player.sid
            player.sid = sid
            player.connected = True
            room.cleanup_deadline = None
            stale = self.sessions.get(previous_sid)
            if previous_sid != sid and stale and stale.room_id == room.id and not stale.is_spectator:
                self.sessions.pop(previous_sid)
                outcome.evicted.append((previous_sid, room.id))
            self.sessions.bind(sid, ConnectionSession(room.id, player.name, player.symbol))
            outcome.joined = room.id

            resumed = room.paused and room.all_players_connected
            if resumed:
                room.game_active = True
                room.paused = False
            outcome.emit(ev.to_sender(ev.RECONNECTED, {
                'room': room.to_dict(),
                'playerSymbol': player.symbol,
            }))
            outcome.emit(ev.to_others(room.id, ev.PLAYER_RECONNECTED, {'playerName': player.name}))
            if resumed:
                outcome.emit(ev.to_room(room.id, ev.GAME_RESUMED, {
                    'room': room.to_dict(),
                    'message': f"{player.name} reconnected. Game resumed.",
                }))
        logger.info(f"[player-reconnected] room={command.room_id} player={player.name} symbol={player.symbol}")

    def disconnect(self, sid: str, command: Disconnect, outcome: Outcome) -> None:
        self._leave_current_room(sid, outcome)

    # ---- game ----

    def make_move(self, sid: str, command: MakeMove, outcome: Outcome) -> None:
        with self._locked_room(command.room_id) as room:
            if room is None or not room.game_active:
                raise GameNotActive()
            player = room.player_by_sid(sid)
            if player is None or player.symbol != room.current_player:
                raise NotYourTurn()
            if room.board[command.cell_index]:
                raise CellOccupied()

            room.board[command.cell_index] = player.symbol
            result = evaluate(room.board)
            if result:
                room.game_active = False
                room.scores[result.winner] += 1
                room.games_played += 1
                outcome.emit(ev.to_room(room.id, ev.GAME_WON, {
                    'winner': result.winner,
                    'winnerName': player.name,
                    'winningCells': result.cells,
                    'room': room.to_dict(),
                }))
                logger.info(f"[game-won] room={room.id} winner={result.winner} cells={result.cells}")
            elif is_full(room.board):
                room.game_active = False
                room.scores['draws'] += 1
                room.games_played += 1
                outcome.emit(ev.to_room(room.id, ev.GAME_DRAW, {'room': room.to_dict()}))
                logger.info(f"[game-draw] room={room.id}")
            else:
                room.current_player = other_symbol(room.current_player)

            outcome.emit(ev.to_room(room.id, ev.MOVE_MADE, {
                'cellIndex': command.cell_index,
                'symbol': player.symbol,
                'playerName': player.name,
                'room': room.to_dict(),
            }))

    def reset_game(self, sid: str, command: ResetGame, outcome: Outcome) -> None:
        with self._locked_room(command.room_id) as room:
            if room is None:
                logger.info(f"[reset-ignored] room={command.room_id} not found")
                return
            room.reset_board()
            outcome.emit(ev.to_room(room.id, ev.GAME_RESET, {'room': room.to_dict()}))
        logger.info(f"[game-reset] room={command.room_id}")

    # ---- chat ----

    def typing(self, sid: str, command: Typing, outcome: Outcome) -> None:
        session = self.sessions.get(sid)
        if session is None:
            return
        outcome.emit(ev.to_others(session.room_id, ev.PLAYER_TYPING, {
            'playerName': session.player_name,
            'isTyping': command.is_typing,
        }))

    def chat_message(self, sid: str, command: SendChat, outcome: Outcome) -> None:
        session = self.sessions.get(sid)
        if session is None or self.registry.get(session.room_id) is None:
            return
        text = command.message.strip()[:self.chat_max_length]
        if not text:
            return
        outcome.emit(ev.to_room(session.room_id, ev.CHAT_MESSAGE, {
            'playerName': session.player_name,
            'message': text,
            'timestamp': datetime.now().strftime('%H:%M:%S'),
            'isSpectator': session.is_spectator,
        }))

    # ---- cleanup ----

    def expire_room(self, room_id: str, deadline: float) -> bool:
        """Delete a room whose grace period ran out, if it is still abandoned."""
        with self._locked_room(room_id) as room:
            if room is None or room.cleanup_deadline != deadline or not room.is_abandoned:
                return False
            self.registry.delete(room.id)
        logger.info(f"[room-deleted] room={room_id} (grace period expired)")
        return True

    # ---- helpers ----

    def _ensure_not_bound_to(self, sid: str, room_id: str) -> None:
        session = self.sessions.get(sid)
        if session is not None and session.room_id == room_id:
            raise AlreadyInRoom()

    @staticmethod
    def _find_seat(room: Room, command: ReconnectToRoom):
        if command.player_token:
            player = room.player_by_token(command.player_token)
            if player is None:
                raise InvalidToken()
            return player
        return room.player_by_name(command.player_name)

    def _leave_current_room(self, sid: str, outcome: Outcome) -> None:
        session = self.sessions.pop(sid)
        if session is None:
            return
        outcome.left.append(session.room_id)
        with self._locked_room(session.room_id) as room:
            if room is None:
                return
            if session.is_spectator:
                room.remove_spectator(sid)
                outcome.emit(ev.to_others(room.id, ev.SPECTATOR_LEFT, {'playerName': session.player_name}))
            else:
                player = room.player_by_sid(sid)
                # Seat was taken over by a reconnect from another connection
                if player is not None:
                    player.connected = False
                    outcome.emit(ev.to_others(room.id, ev.PLAYER_DISCONNECTED, {
                        'playerName': player.name,
                        'symbol': player.symbol,
                    }))
                    if room.game_active:
                        room.game_active = False
                        room.paused = True
                        outcome.emit(ev.to_others(room.id, ev.GAME_PAUSED, {
                            'message': f"{player.name} disconnected. Game paused.",
                        }))
            if room.is_abandoned:
                self._abandon(room, outcome)

    def _abandon(self, room: Room, outcome: Outcome) -> None:
        if self.cleanup_grace_sec <= 0:
            self.registry.delete(room.id)
            logger.info(f"[room-deleted] room={room.id} (empty)")
            return
        room.cleanup_deadline = time.time() + self.cleanup_grace_sec
        outcome.abandoned.append((room.id, room.cleanup_deadline))
        logger.info(f"[room-abandoned] room={room.id} deadline={room.cleanup_deadline}")
