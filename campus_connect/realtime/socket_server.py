# campus_connect/realtime/socket_server.py
import inspect
import logging
from typing import Callable, Optional

import socketio  # type: ignore
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused  # type: ignore

from campus_connect.api.auth.permissions import is_admin
from campus_connect.config import FRONTEND_URL
from campus_connect.exceptions import AuthenticationError
from campus_connect.realtime.channel import notifications_room, user_room
from campus_connect.realtime.presence import VALID_STATUSES, ConnectionRegistry
from campus_connect.services.service_helper import utcnow

logger = logging.getLogger(__name__)

ADMIN_ROOM = "admin"


def _timestamp() -> str:
    return utcnow().isoformat() + "Z"


def extract_token(environ: dict, auth: Optional[dict]) -> Optional[str]:
    """Handshake token from `auth.token`, else from `Authorization: Bearer ...`."""
    if isinstance(auth, dict) and auth.get("token"):
        return auth["token"]
    header = environ.get("HTTP_AUTHORIZATION") or ""
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return None


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


class SocketGateway:
    """
    Socket.IO event handlers.

    A socket is authenticated during `connect`; rejection happens before any
    room join. Authenticated sockets sit in `user_{id}` and in the room named
    by their role.
    """

    def __init__(self, sio, registry: ConnectionRegistry, token_decoder: Callable):
        self.sio = sio
        self.registry = registry
        self.decode_token = token_decoder

    def register(self) -> None:
        handlers = {
            "connect": self.on_connect,
            "disconnect": self.on_disconnect,
            "joinNotifications": self.on_join_notifications,
            "leaveNotifications": self.on_leave_notifications,
            "update_status": self.on_update_status,
            "presence_update": self.on_presence_update,
            "typing_start": self.on_typing_start,
            "typing_stop": self.on_typing_stop,
            "user_activity": self.on_user_activity,
            "notification_read": self.on_notification_read,
            "extend_session": self.on_extend_session,
        }
        for event, handler in handlers.items():
            self.sio.on(event, handler)

    async def _identity(self, sid: str) -> dict:
        return await self.sio.get_session(sid)

    async def on_connect(self, sid, environ, auth=None):
        token = extract_token(environ, auth)
        if not token:
            raise SocketConnectionRefused("Authentication error: No token provided")
        try:
            user = self.decode_token(token)
        except AuthenticationError as exc:
            logger.info(f"Socket {sid} refused: {exc.message}")
            raise SocketConnectionRefused(f"Authentication error: {exc.message}") from None

        role = user.role.value if hasattr(user.role, "value") else str(user.role)
        await self.sio.save_session(sid, {"user_id": user.id, "role": role})
        await _maybe_await(self.sio.enter_room(sid, user_room(user.id)))
        await _maybe_await(self.sio.enter_room(sid, role))
        if is_admin(role) and role != ADMIN_ROOM:
            await _maybe_await(self.sio.enter_room(sid, ADMIN_ROOM))
        self.registry.add(user.id, role, sid)
        logger.info(f"Socket {sid} connected for user {user.id} ({role})")

    async def on_disconnect(self, sid, reason=None):
        session = await self._identity(sid)
        user_id = session.get("user_id")
        gone = self.registry.remove(sid)
        logger.info(f"Socket {sid} of user {user_id} disconnected: {reason}")
        if gone is None:
            return
        await self.sio.emit("user_offline", {"userId": user_id, "timestamp": _timestamp()})
        await self.sio.emit(
            "user_disconnected",
            {"userId": user_id, "reason": str(reason) if reason else None, "timestamp": _timestamp()},
            to=ADMIN_ROOM,
        )

    async def on_join_notifications(self, sid, user_id=None):
        session = await self._identity(sid)
        if user_id is None or str(user_id) != str(session.get("user_id")):
            logger.warning(f"Socket {sid} tried to join notifications of user {user_id}")
            return {"success": False, "message": "Cannot join another user's notifications"}
        await _maybe_await(self.sio.enter_room(sid, notifications_room(session["user_id"])))
        return {"success": True}

    async def on_leave_notifications(self, sid, user_id=None):
        session = await self._identity(sid)
        await _maybe_await(self.sio.leave_room(sid, notifications_room(session["user_id"])))
        return {"success": True}

    async def on_update_status(self, sid, data=None):
        session = await self._identity(sid)
        status = (data or {}).get("status")
        if status not in VALID_STATUSES:
            return {"success": False, "message": f"Status must be one of: {', '.join(VALID_STATUSES)}"}
        self.registry.set_status(session["user_id"], status)
        await self.sio.emit(
            "user_status_changed",
            {"userId": session["user_id"], "status": status, "timestamp": _timestamp()},
        )
        return {"success": True}

    async def on_presence_update(self, sid, data=None):
        session = await self._identity(sid)
        data = data or {}
        status, custom_status = data.get("status"), data.get("customStatus")
        if status not in VALID_STATUSES:
            return {"success": False, "message": f"Status must be one of: {', '.join(VALID_STATUSES)}"}
        self.registry.set_status(session["user_id"], status, custom_status)
        await self.sio.emit(
            "presence_updated",
            {"userId": session["user_id"], "status": status, "customStatus": custom_status, "timestamp": _timestamp()},
        )
        return {"success": True}

    async def _relay_typing(self, sid, event: str, data) -> None:
        session = await self._identity(sid)
        data = data or {}
        recipient_id = data.get("recipientId")
        if recipient_id is None:
            return
        await self.sio.emit(
            event,
            {"userId": session["user_id"], "conversationId": data.get("conversationId"), "timestamp": _timestamp()},
            to=user_room(recipient_id),
        )

    async def on_typing_start(self, sid, data=None):
        await self._relay_typing(sid, "typing_start", data)

    async def on_typing_stop(self, sid, data=None):
        await self._relay_typing(sid, "typing_stop", data)

    async def on_user_activity(self, sid, data=None):
        session = await self._identity(sid)
        data = data or {}
        self.registry.touch(session["user_id"])
        if data.get("activityType") in ("login", "logout"):
            await self.sio.emit(
                "user_activity_log",
                {
                    "userId": session["user_id"],
                    "activityType": data["activityType"],
                    "details": data.get("details"),
                    "timestamp": _timestamp(),
                },
                to=ADMIN_ROOM,
            )

    async def on_notification_read(self, sid, data=None):
        session = await self._identity(sid)
        await self.sio.emit(
            "notification_status_changed",
            {
                "userId": session["user_id"],
                "notificationId": (data or {}).get("notificationId"),
                "status": "read",
                "timestamp": _timestamp(),
            },
            to=ADMIN_ROOM,
        )

    async def on_extend_session(self, sid, data=None):
        session = await self._identity(sid)
        self.registry.touch(session["user_id"])
        await self.sio.emit("session_extended", {"timestamp": _timestamp()}, to=sid)


def create_socket_server(registry: ConnectionRegistry, token_decoder: Callable) -> socketio.AsyncServer:
    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=[FRONTEND_URL],
        logger=False,
        engineio_logger=False,
    )
    SocketGateway(sio, registry, token_decoder).register()
    return sio
