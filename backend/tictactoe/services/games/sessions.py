import threading
from typing import Dict, Optional


class ConnectionSession:
    """What a live connection is bound to: a room, a name and a role."""

    def __init__(self, room_id: str, player_name: str, symbol: Optional[str] = None,
                 is_spectator: bool = False):
        self.room_id = room_id
        self.player_name = player_name
        self.symbol = symbol
        self.is_spectator = is_spectator

    def __repr__(self):
        role = 'spectator' if self.is_spectator else self.symbol
        return f"<ConnectionSession room={self.room_id} name={self.player_name} role={role}>"


class SessionManager:
    def __init__(self):
        self._sessions: Dict[str, ConnectionSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def bind(self, sid: str, session: ConnectionSession) -> None:
        with self._lock:
            self._sessions[sid] = session

    def get(self, sid: str) -> Optional[ConnectionSession]:
        with self._lock:
            return self._sessions.get(sid)

    def pop(self, sid: str) -> Optional[ConnectionSession]:
        with self._lock:
            return self._sessions.pop(sid, None)
