# campus_connect/realtime/channel.py
"""
Fire-and-forget emit helpers usable from synchronous request handlers.

Route handlers run in the threadpool; the Socket.IO server lives on the event
loop. Emits are scheduled onto the loop bound at startup and never awaited.
Before `bind()` every emit is a no-op that returns False.
"""
import asyncio
import logging
from typing import Any, Iterable, Optional

from campus_connect.realtime.presence import ConnectionRegistry, InMemoryConnectionRegistry

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = "newNotification"


def user_room(user_id: int) -> str:
    return f"user_{user_id}"


def notifications_room(user_id: int) -> str:
    return f"notifications_{user_id}"


class RealtimeChannel:
    def __init__(self, registry: Optional[ConnectionRegistry] = None):
        self.registry = registry or InMemoryConnectionRegistry()
        self._sio = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def bind(self, sio, loop: asyncio.AbstractEventLoop) -> None:
        self._sio = sio
        self._loop = loop
        logger.info("Realtime channel bound to Socket.IO server")

    def unbind(self) -> None:
        self._sio = None
        self._loop = None

    @property
    def is_bound(self) -> bool:
        return self._sio is not None and self._loop is not None and not self._loop.is_closed()

    def _schedule(self, coro) -> bool:
        if not self.is_bound:
            coro.close()
            return False
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        future.add_done_callback(self._log_failure)
        return True

    @staticmethod
    def _log_failure(future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning(f"Realtime emit failed: {exc}")

    def emit(self, event: str, data: Any, to: Optional[str | list] = None) -> bool:
        if not self.is_bound:
            return False
        return self._schedule(self._sio.emit(event, data, to=to))

    def emit_to_user(self, user_id: int, event: str, data: Any) -> bool:
        return self.emit(event, data, to=user_room(user_id))

    def emit_to_role(self, role: str, event: str, data: Any) -> bool:
        return self.emit(event, data, to=role)

    def emit_to_all(self, event: str, data: Any) -> bool:
        return self.emit(event, data)

    def emit_notification(self, user_id: int, payload: dict) -> bool:
        """Push to the personal room and the notifications room in one emit."""
        return self.emit(NOTIFICATION_EVENT, payload, to=[user_room(user_id), notifications_room(user_id)])

    def emit_to_users(self, user_ids: Iterable[int], event: str, data: Any) -> int:
        return sum(1 for user_id in user_ids if self.emit_to_user(user_id, event, data))

    def disconnect_user(self, user_id: int) -> int:
        """Force-close every socket of user_id; returns how many were scheduled."""
        if not self.is_bound:
            return 0
        return sum(1 for sid in self.registry.sids_of(user_id) if self._schedule(self._sio.disconnect(sid)))


channel = RealtimeChannel()
