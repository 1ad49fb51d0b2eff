"""
Tests for the websocket channel: presence broadcast and notification push.
"""
import asyncio
import pytest
from sqlalchemy.exc import OperationalError
from starlette.websockets import WebSocketDisconnect
from eventchat.core.exceptions import NotFoundError
from eventchat.models.notification import Notification, NotificationType
from eventchat.services import notification_service
from eventchat.services.presence import PresenceRegistry


def _token(headers):
    return headers["Authorization"].split(" ", 1)[1]


def _online(message):
    assert message["event"] == "getOnlineUsers"
    return sorted(message["data"])


def test_unauthenticated_socket_is_closed(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws"):
            pass
    assert exc_info.value.code == 1008

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws?token=garbage"):
            pass


def test_presence_broadcast_on_connect_and_disconnect(client, make_user):
    alice_id, alice = make_user("alice")
    bob_id, bob = make_user("bob")

    with client.websocket_connect("/ws", headers=alice) as alice_ws:
        assert _online(alice_ws.receive_json()) == [alice_id]

        with client.websocket_connect(f"/ws?token={_token(bob)}") as bob_ws:
            assert _online(bob_ws.receive_json()) == sorted([alice_id, bob_id])
            assert _online(alice_ws.receive_json()) == sorted([alice_id, bob_id])

        assert _online(alice_ws.receive_json()) == [alice_id]


def test_follow_notification_is_pushed(client, make_user):
    alice_id, alice = make_user("alice")
    bob_id, bob = make_user("bob")

    with client.websocket_connect("/ws", headers=alice) as alice_ws:
        alice_ws.receive_json()

        response = client.post(f"/api/follow/follow/{alice_id}", headers=bob)
        assert response.status_code == 200

        message = alice_ws.receive_json()
        assert message["event"] == "newNotification"
        assert message["data"]["type"] == "follow"
        assert message["data"]["sender"]["id"] == bob_id
        assert message["data"]["recipient_id"] == alice_id

    # The pushed notification is also stored
    assert client.get("/api/notifications", headers=alice).json()["unread_count"] == 1


def test_client_sent_notification(client, make_user):
    alice_id, alice = make_user("alice")
    bob_id, bob = make_user("bob")

    with client.websocket_connect("/ws", headers=alice) as alice_ws:
        alice_ws.receive_json()
        with client.websocket_connect("/ws", headers=bob) as bob_ws:
            bob_ws.receive_json()
            alice_ws.receive_json()

            # Self-addressed messages are dropped
            bob_ws.send_json({
                "event": "sendNotification",
                "data": {"recipient_id": bob_id, "type": "message", "message": "note to self"},
            })
            bob_ws.send_json({
                "event": "sendNotification",
                "data": {"recipient_id": alice_id, "type": "message", "message": "hi alice"},
            })

            message = alice_ws.receive_json()
            assert message["event"] == "newNotification"
            assert message["data"]["message"] == "hi alice"
            assert message["data"]["type"] == "message"

        alice_ws.receive_json()

    assert client.get("/api/notifications", headers=bob).json()["notifications"] == []
    assert client.get("/api/notifications", headers=alice).json()["unread_count"] == 1



def test_bad_references_are_dropped_without_closing_socket(client, make_user, db):
    alice_id, alice = make_user("alice")
    bob_id, bob = make_user("bob")

    with client.websocket_connect("/ws", headers=bob) as bob_ws:
        bob_ws.receive_json()
        with client.websocket_connect("/ws", headers=alice) as alice_ws:
            alice_ws.receive_json()
            bob_ws.receive_json()

            alice_ws.send_json({
                "event": "sendNotification",
                "data": {"recipient_id": bob_id, "type": "message", "message": "first", "related_post_id": 4242},
            })
            alice_ws.send_json({
                "event": "sendNotification",
                "data": {"recipient_id": bob_id, "type": "message", "message": "first", "related_event_id": 4242},
            })
            alice_ws.send_json({
                "event": "sendNotification",
                "data": {"recipient_id": 9999, "type": "message", "message": "ghost"},
            })
            alice_ws.send_text("not json")
            alice_ws.send_json({
                "event": "sendNotification",
                "data": {"recipient_id": bob_id, "type": "message", "message": "second"},
            })

            message = bob_ws.receive_json()
            assert message["event"] == "newNotification"
            assert message["data"]["message"] == "second"

    stored = db.query(Notification.recipient_id, Notification.message).all()
    assert stored == [(bob_id, "second")]


def test_notify_rolls_back_failed_commit(client, make_user, db, monkeypatch):
    alice_id, _ = make_user("alice")
    bob_id, _ = make_user("bob")

    def broken_commit():
        raise OperationalError("INSERT INTO notifications", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(OperationalError):
        asyncio.run(notification_service.notify(db, bob_id, alice_id, NotificationType.MESSAGE, "hi"))
    monkeypatch.undo()

    # The session is usable again and nothing was kept
    assert db.query(Notification).count() == 0
    asyncio.run(notification_service.notify(db, bob_id, alice_id, NotificationType.MESSAGE, "again"))
    assert db.query(Notification.message).all() == [("again",)]


def test_unknown_recipient_is_rejected(client, make_user, db):
    alice_id, _ = make_user("alice")
    with pytest.raises(NotFoundError):
        asyncio.run(notification_service.notify(db, 9999, alice_id, NotificationType.MESSAGE, "ghost"))
    assert db.query(Notification).count() == 0

class FakeConnection:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def test_registry_last_connect_wins_and_stale_disconnect_is_ignored():
    registry = PresenceRegistry()
    old, new = FakeConnection(), FakeConnection()

    async def scenario():
        await registry.connect(1, old)
        await registry.connect(1, new)
        assert registry.get_connection(1) is new

        # The old socket closing must not evict the newer one
        await registry.disconnect(1, old)
        assert registry.get_connection(1) is new
        assert new.sent[-1] == {"event": "getOnlineUsers", "data": [1]}

        await registry.disconnect(1, new)
        assert registry.online_user_ids() == []

    asyncio.run(scenario())
    assert old.sent == [{"event": "getOnlineUsers", "data": [1]}]


def test_registry_send_failures_are_not_errors():
    registry = PresenceRegistry()
    broken = FakeConnection(fail=True)

    async def scenario():
        await registry.connect(7, broken)
        delivered = await registry.send_to(7, {"event": "newNotification", "data": {}})
        missing = await registry.send_to(8, {"event": "newNotification", "data": {}})
        return delivered, missing

    assert asyncio.run(scenario()) == (False, False)
