"""Room state errors.

Every error is reported back to the originating connection only; the event
it is reported under is carried on the class so the transport layer can
convert any of them without a lookup table.
"""


class RoomStateError(Exception):
    """Base class for all recoverable room errors."""
    event = 'room-error'
    message = 'Request failed'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RoomNotFound(RoomStateError):
    message = 'Room not found'

    def __init__(self, room_id=None):
        self.room_id = room_id
        super().__init__()


class AlreadyInRoom(RoomStateError):
    message = 'Already in this room'


class InvalidToken(RoomStateError):
    message = 'Invalid player token'


class InvalidPayload(RoomStateError):
    """Missing or malformed field in an inbound event."""

    def __init__(self, message, event='room-error'):
        self.event = event
        super().__init__(message)


class MoveError(RoomStateError):
    event = 'move-error'


class GameNotActive(MoveError):
    message = 'Game not active'


class NotYourTurn(MoveError):
    message = 'Not your turn'


class CellOccupied(MoveError):
    message = 'Cell already occupied'
