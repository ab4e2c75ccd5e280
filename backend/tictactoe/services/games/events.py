"""Outbound event vocabulary and delivery scopes."""
import enum
from typing import Any, Dict, NamedTuple, Optional


class Scope(enum.Enum):
    SENDER = 'sender'
    ROOM = 'room'
    OTHERS = 'others'


class Outbound(NamedTuple):
    event: str
    payload: Dict[str, Any]
    scope: Scope
    room_id: Optional[str] = None


ROOM_CREATED = 'room-created'
ROOM_ERROR = 'room-error'
SEAT_ASSIGNED = 'seat-assigned'
JOINED_AS_SPECTATOR = 'joined-as-spectator'
SPECTATOR_JOINED = 'spectator-joined'
GAME_READY = 'game-ready'
MOVE_ERROR = 'move-error'
GAME_WON = 'game-won'
GAME_DRAW = 'game-draw'
MOVE_MADE = 'move-made'
GAME_RESET = 'game-reset'
RECONNECTED = 'reconnected'
PLAYER_RECONNECTED = 'player-reconnected'
GAME_RESUMED = 'game-resumed'
PLAYER_TYPING = 'player-typing'
CHAT_MESSAGE = 'chat-message'
SPECTATOR_LEFT = 'spectator-left'
PLAYER_DISCONNECTED = 'player-disconnected'
GAME_PAUSED = 'game-paused'


def to_sender(event, payload):
    return Outbound(event, payload, Scope.SENDER)


def to_room(room_id, event, payload):
    return Outbound(event, payload, Scope.ROOM, room_id)


def to_others(room_id, event, payload):
    return Outbound(event, payload, Scope.OTHERS, room_id)


def socket_room(room_id: str) -> str:
    """Name of the Socket.IO room a game room's occupants are joined to."""
    return f"room:{room_id}"
