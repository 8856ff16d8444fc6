import asyncio
from types import SimpleNamespace

import pytest
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused
from sqlalchemy.orm import sessionmaker

from campus_connect.api.auth.auth import create_access_token, make_socket_authenticator
from campus_connect.exceptions import AuthenticationError
from campus_connect.models.user_model import UserStatus
from campus_connect.realtime.channel import RealtimeChannel
from campus_connect.realtime.presence import InMemoryConnectionRegistry
from campus_connect.realtime.socket_server import SocketGateway, extract_token

pytestmark = pytest.mark.anyio

TOKENS = {
    "student-token": SimpleNamespace(id=1, role="student"),
    "other-student-token": SimpleNamespace(id=2, role="student"),
    "root-token": SimpleNamespace(id=9, role="sys_admin"),
}


def fake_decoder(token):
    if token not in TOKENS:
        raise AuthenticationError("Invalid token")
    return TOKENS[token]


class FakeServer:
    """Records what the gateway asks of the Socket.IO server."""

    def __init__(self):
        self.sessions = {}
        self.rooms = {}
        self.emitted = []
        self.handlers = {}

    def on(self, event, handler):
        self.handlers[event] = handler

    async def save_session(self, sid, session):
        self.sessions[sid] = dict(session)

    async def get_session(self, sid):
        return self.sessions.get(sid, {})

    async def enter_room(self, sid, room):
        self.rooms.setdefault(sid, set()).add(room)

    async def leave_room(self, sid, room):
        self.rooms.get(sid, set()).discard(room)

    async def emit(self, event, data=None, to=None):
        self.emitted.append({"event": event, "data": data, "to": to})


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def registry():
    return InMemoryConnectionRegistry()


@pytest.fixture
def gateway(server, registry):
    gateway = SocketGateway(server, registry, fake_decoder)
    gateway.register()
    return gateway


def test_token_comes_from_auth_or_header():
    assert extract_token({}, {"token": "abc"}) == "abc"
    assert extract_token({"HTTP_AUTHORIZATION": "Bearer xyz"}, None) == "xyz"
    assert extract_token({"HTTP_AUTHORIZATION": "Basic xyz"}, None) is None
    assert extract_token({}, None) is None


def test_all_events_are_registered(server, gateway):
    assert {"connect", "disconnect", "joinNotifications", "typing_start", "extend_session"} <= set(server.handlers)


async def test_connect_without_token_is_refused(server, registry, gateway):
    with pytest.raises(SocketConnectionRefused) as excinfo:
        await gateway.on_connect("sid-1", {}, None)
    assert "No token provided" in str(excinfo.value.error_args)
    assert server.rooms == {}
    assert registry.count() == 0


async def test_connect_with_bad_token_is_refused(server, gateway):
    with pytest.raises(SocketConnectionRefused) as excinfo:
        await gateway.on_connect("sid-1", {}, {"token": "forged"})
    assert "Invalid token" in str(excinfo.value.error_args)
    assert server.rooms == {}


async def test_connect_joins_user_and_role_rooms(server, registry, gateway):
    await gateway.on_connect("sid-1", {}, {"token": "student-token"})
    assert server.rooms["sid-1"] == {"user_1", "student"}
    assert registry.get(1).sids == {"sid-1"}


async def test_sys_admin_also_joins_admin_room(server, gateway):
    await gateway.on_connect("sid-9", {"HTTP_AUTHORIZATION": "Bearer root-token"}, None)
    assert server.rooms["sid-9"] == {"user_9", "sys_admin", "admin"}


async def test_offline_is_broadcast_only_when_last_socket_closes(server, registry, gateway):
    await gateway.on_connect("tab-1", {}, {"token": "student-token"})
    await gateway.on_connect("tab-2", {}, {"token": "student-token"})

    await gateway.on_disconnect("tab-1", "transport close")
    assert server.emitted == []
    assert registry.get(1) is not None

    await gateway.on_disconnect("tab-2", "transport close")
    events = [e["event"] for e in server.emitted]
    assert events == ["user_offline", "user_disconnected"]
    assert server.emitted[1]["to"] == "admin"
    assert registry.get(1) is None


async def test_join_notifications_only_for_self(server, gateway):
    await gateway.on_connect("sid-1", {}, {"token": "student-token"})

    denied = await gateway.on_join_notifications("sid-1", 2)
    assert denied["success"] is False
    assert "notifications_2" not in server.rooms["sid-1"]

    allowed = await gateway.on_join_notifications("sid-1", "1")
    assert allowed == {"success": True}
    assert "notifications_1" in server.rooms["sid-1"]

    await gateway.on_leave_notifications("sid-1", 1)
    assert "notifications_1" not in server.rooms["sid-1"]


async def test_update_status_validates_value(server, registry, gateway):
    await gateway.on_connect("sid-1", {}, {"token": "student-token"})

    rejected = await gateway.on_update_status("sid-1", {"status": "sleeping"})
    assert rejected["success"] is False
    assert server.emitted == []

    accepted = await gateway.on_update_status("sid-1", {"status": "away"})
    assert accepted == {"success": True}
    assert registry.get(1).status == "away"
    assert server.emitted[0]["event"] == "user_status_changed"
    assert server.emitted[0]["data"]["status"] == "away"


async def test_typing_is_relayed_to_recipient_room(server, gateway):
    await gateway.on_connect("sid-1", {}, {"token": "student-token"})
    await gateway.on_typing_start("sid-1", {"recipientId": 2, "conversationId": "dm-1-2"})
    await gateway.on_typing_stop("sid-1", {})

    assert len(server.emitted) == 1
    relayed = server.emitted[0]
    assert relayed["event"] == "typing_start"
    assert relayed["to"] == "user_2"
    assert relayed["data"]["userId"] == 1
    assert relayed["data"]["conversationId"] == "dm-1-2"


async def test_login_activity_is_logged_to_admins(server, gateway):
    await gateway.on_connect("sid-1", {}, {"token": "student-token"})
    await gateway.on_user_activity("sid-1", {"activityType": "page_view"})
    await gateway.on_user_activity("sid-1", {"activityType": "login", "details": "web"})

    assert [e["event"] for e in server.emitted] == ["user_activity_log"]
    assert server.emitted[0]["to"] == "admin"


async def test_extend_session_answers_the_socket(server, gateway):
    await gateway.on_connect("sid-1", {}, {"token": "student-token"})
    await gateway.on_extend_session("sid-1")
    assert server.emitted[0]["event"] == "session_extended"
    assert server.emitted[0]["to"] == "sid-1"


async def test_presence_update_rejects_unknown_status(server, registry, gateway):
    await gateway.on_connect("sid-1", {}, {"token": "student-token"})

    rejected = await gateway.on_presence_update("sid-1", {"status": "invisible-ish", "customStatus": "brb"})
    assert rejected["success"] is False
    assert registry.get(1).status == "online"
    assert server.emitted == []

    accepted = await gateway.on_presence_update("sid-1", {"status": "busy", "customStatus": "In a lecture"})
    assert accepted == {"success": True}
    assert registry.get(1).custom_status == "In a lecture"
    assert server.emitted[0]["event"] == "presence_updated"


# ---------------------------------------------------------
# HANDSHAKE AGAINST THE DATABASE
# ---------------------------------------------------------

@pytest.fixture
def db_gateway(server, registry, db):
    gateway = SocketGateway(server, registry, make_socket_authenticator(sessionmaker(bind=db.get_bind())))
    gateway.register()
    return gateway


async def test_active_user_token_connects(server, registry, db_gateway, student):
    await db_gateway.on_connect("sid-1", {}, {"token": create_access_token(student)})
    assert server.rooms["sid-1"] == {f"user_{student.id}", "student"}
    assert registry.get(student.id) is not None


async def test_blocked_user_cannot_reconnect_with_old_token(server, registry, db, db_gateway, student):
    token = create_access_token(student)
    student.status = UserStatus.blocked
    db.commit()

    with pytest.raises(SocketConnectionRefused) as excinfo:
        await db_gateway.on_connect("sid-1", {}, {"token": token})
    assert "Account is blocked" in str(excinfo.value.error_args)
    assert server.rooms == {}
    assert registry.count() == 0


async def test_deleted_user_cannot_reconnect_with_old_token(server, registry, db, db_gateway, student):
    token = create_access_token(student)
    db.delete(student)
    db.commit()

    with pytest.raises(SocketConnectionRefused) as excinfo:
        await db_gateway.on_connect("sid-1", {}, {"token": token})
    assert "User no longer exists" in str(excinfo.value.error_args)
    assert registry.count() == 0


# ---------------------------------------------------------
# REGISTRY SNAPSHOTS AND FORCED DISCONNECT
# ---------------------------------------------------------

class DisconnectingServer:
    def __init__(self):
        self.disconnected = []

    async def disconnect(self, sid):
        self.disconnected.append(sid)


def test_sids_of_returns_a_snapshot(registry):
    registry.add(1, "student", "tab-1")
    registry.add(1, "student", "tab-2")

    sids = registry.sids_of(1)
    user = registry.get(1)
    registry.remove("tab-1")

    assert sorted(sids) == ["tab-1", "tab-2"]
    assert user.sids == {"tab-1", "tab-2"}
    assert registry.get(1).sids == {"tab-2"}
    assert registry.sids_of(1) == ["tab-2"]
    assert registry.sids_of(42) == []


async def test_disconnect_user_closes_every_socket(registry):
    registry.add(1, "student", "tab-1")
    registry.add(1, "student", "tab-2")
    registry.add(2, "student", "tab-3")
    sio = DisconnectingServer()
    realtime = RealtimeChannel(registry)
    realtime.bind(sio, asyncio.get_running_loop())

    assert realtime.disconnect_user(1) == 2
    await asyncio.sleep(0.05)

    assert sorted(sio.disconnected) == ["tab-1", "tab-2"]


def test_disconnect_user_is_a_no_op_when_unbound(registry):
    registry.add(1, "student", "tab-1")
    assert RealtimeChannel(registry).disconnect_user(1) == 0
