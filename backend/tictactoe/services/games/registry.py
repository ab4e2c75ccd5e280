import threading
from typing import Dict, List, Optional

from tictactoe.models import Room, generate_room_code


def normalize_room_id(room_id) -> str:
    return str(room_id or '').strip().upper()


class RoomRegistry:
    """Process-wide table of live rooms keyed by room code.

    Only the mapping is guarded here; a room's own fields are guarded by
    ``room.lock``.
    """

    def __init__(self, code_length: int = 6):
        self.code_length = code_length
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, room_id) -> bool:
        with self._lock:
            return normalize_room_id(room_id) in self._rooms

    def count(self) -> int:
        return len(self)

    def create(self) -> Room:
        """Allocate a room under a code no live room is using."""
        with self._lock:
            while True:
                code = generate_room_code(self.code_length)
                if code not in self._rooms:
                    break
            room = Room(code)
            self._rooms[code] = room
            return room

    def get(self, room_id) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(normalize_room_id(room_id))

    def delete(self, room_id) -> bool:
        with self._lock:
            return self._rooms.pop(normalize_room_id(room_id), None) is not None

    def rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())
