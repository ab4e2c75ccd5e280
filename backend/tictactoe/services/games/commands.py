"""Typed inbound commands, one per client event.

``parse_command`` turns a raw Socket.IO payload into one of these, raising
InvalidPayload for missing or malformed fields.
"""
from dataclasses import dataclass
from typing import Optional

from .board import BOARD_SIZE
from .errors import InvalidPayload


def _required_str(data: dict, field: str, error_event: str = 'room-error') -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise InvalidPayload(f"{field} is required", error_event)
    return value.strip()


@dataclass(frozen=True)
class CreateRoom:
    player_name: str

    @classmethod
    def from_payload(cls, data):
        return cls(player_name=_required_str(data, 'playerName'))


@dataclass(frozen=True)
class JoinRoom:
    room_id: str
    player_name: str

    @classmethod
    def from_payload(cls, data):
        return cls(
            room_id=_required_str(data, 'roomId').upper(),
            player_name=_required_str(data, 'playerName'),
        )


@dataclass(frozen=True)
class MakeMove:
    room_id: str
    cell_index: int

    @classmethod
    def from_payload(cls, data):
        room_id = _required_str(data, 'roomId', 'move-error').upper()
        cell_index = data.get('cellIndex')
        # bool is an int subclass; True must not address cell 1
        if isinstance(cell_index, bool) or not isinstance(cell_index, int) \
                or not 0 <= cell_index < BOARD_SIZE:
            raise InvalidPayload(
                f"cellIndex must be an integer between 0 and {BOARD_SIZE - 1}", 'move-error'
            )
        return cls(room_id=room_id, cell_index=cell_index)


@dataclass(frozen=True)
class ResetGame:
    room_id: str

    @classmethod
    def from_payload(cls, data):
        return cls(room_id=_required_str(data, 'roomId').upper())


@dataclass(frozen=True)
class ReconnectToRoom:
    room_id: str
    player_name: str
    player_token: Optional[str] = None

    @classmethod
    def from_payload(cls, data):
        token = data.get('playerToken')
        if token is not None and not isinstance(token, str):
            raise InvalidPayload('playerToken must be a string')
        return cls(
            room_id=_required_str(data, 'roomId').upper(),
            player_name=_required_str(data, 'playerName'),
            player_token=token or None,
        )


@dataclass(frozen=True)
class Typing:
    is_typing: bool

    @classmethod
    def from_payload(cls, data):
        return cls(is_typing=bool(data.get('isTyping')))


@dataclass(frozen=True)
class SendChat:
    message: str

    @classmethod
    def from_payload(cls, data):
        message = data.get('message')
        if not isinstance(message, str):
            raise InvalidPayload('message must be a string')
        return cls(message=message)


@dataclass(frozen=True)
class Disconnect:
    pass


COMMANDS = {
    'create-room': CreateRoom,
    'join-room': JoinRoom,
    'make-move': MakeMove,
    'reset-game': ResetGame,
    'reconnect-to-room': ReconnectToRoom,
    'typing': Typing,
    'chat-message': SendChat,
}


def parse_command(event: str, data):
    """Build the command for an inbound event from its raw payload."""
    try:
        command_cls = COMMANDS[event]
    except KeyError:
        raise InvalidPayload(f"Unknown event: {event}") from None
    if not isinstance(data, dict):
        data = {}
    return command_cls.from_payload(data)
