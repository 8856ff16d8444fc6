# campus_connect/realtime/presence.py
"""
Connected-user bookkeeping.

Handlers depend on the `ConnectionRegistry` interface only, so the in-process
registry can be replaced by a shared store when more than one worker runs.
"""
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional, Set

from campus_connect.services.service_helper import utcnow

VALID_STATUSES = ("online", "offline", "away", "busy")


@dataclass
class ConnectedUser:
    user_id: int
    role: str
    sids: Set[str] = field(default_factory=set)
    status: str = "online"
    custom_status: Optional[str] = None
    connected_at: datetime = field(default_factory=utcnow)
    last_activity: datetime = field(default_factory=utcnow)

    def snapshot(self) -> "ConnectedUser":
        return replace(self, sids=set(self.sids))

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "role": self.role,
            "socket_count": len(self.sids),
            "status": self.status,
            "custom_status": self.custom_status,
            "connected_at": self.connected_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }


class ConnectionRegistry(ABC):
    @abstractmethod
    def add(self, user_id: int, role: str, sid: str) -> ConnectedUser: ...

    @abstractmethod
    def remove(self, sid: str) -> Optional[ConnectedUser]:
        """Drop one socket; return the user when it was their last one."""

    @abstractmethod
    def touch(self, user_id: int) -> None: ...

    @abstractmethod
    def set_status(self, user_id: int, status: str, custom_status: Optional[str] = None) -> None: ...

    @abstractmethod
    def get(self, user_id: int) -> Optional[ConnectedUser]: ...

    @abstractmethod
    def sids_of(self, user_id: int) -> List[str]:
        """Snapshot of the user's socket ids."""

    @abstractmethod
    def list(self) -> List[ConnectedUser]: ...

    @abstractmethod
    def count(self) -> int: ...


class InMemoryConnectionRegistry(ConnectionRegistry):
    def __init__(self):
        self._users: Dict[int, ConnectedUser] = {}
        self._sid_index: Dict[str, int] = {}
        self._lock = threading.Lock()

    def add(self, user_id: int, role: str, sid: str) -> ConnectedUser:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                user = ConnectedUser(user_id=user_id, role=role)
                self._users[user_id] = user
            user.sids.add(sid)
            user.last_activity = utcnow()
            self._sid_index[sid] = user_id
            return user

    def remove(self, sid: str) -> Optional[ConnectedUser]:
        with self._lock:
            user_id = self._sid_index.pop(sid, None)
            if user_id is None:
                return None
            user = self._users.get(user_id)
            if user is None:
                return None
            user.sids.discard(sid)
            if user.sids:
                return None
            return self._users.pop(user_id)

    def touch(self, user_id: int) -> None:
        with self._lock:
            user = self._users.get(user_id)
            if user:
                user.last_activity = utcnow()

    def set_status(self, user_id: int, status: str, custom_status: Optional[str] = None) -> None:
        with self._lock:
            user = self._users.get(user_id)
            if user:
                user.status = status
                user.custom_status = custom_status
                user.last_activity = utcnow()

    def get(self, user_id: int) -> Optional[ConnectedUser]:
        with self._lock:
            user = self._users.get(user_id)
            return user.snapshot() if user else None

    def sids_of(self, user_id: int) -> List[str]:
        with self._lock:
            user = self._users.get(user_id)
            return list(user.sids) if user else []

    def list(self) -> List[ConnectedUser]:
        with self._lock:
            return [user.snapshot() for user in self._users.values()]

    def count(self) -> int:
        with self._lock:
            return len(self._users)
