"""
Integration Tests for the chat and call signaling WebSockets
Runs the real app in-process with an in-memory ChatStore
"""
import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from teamsync.core.security import create_access_token
from tests.mocks.realtime import MockChatStore

pytestmark = pytest.mark.integration

CHAT = "/api/v1/chat/ws"
CALLS = "/api/v1/calls/ws"


@pytest.fixture
def store():
    return MockChatStore()


@pytest.fixture
def client(store):
    from teamsync.main import create_app

    with TestClient(create_app(store=store)) as test_client:
        yield test_client


def chat_url(participant_id, channel_id="general", **params):
    query = f"participantId={participant_id}&displayName=User{participant_id}&channelId={channel_id}"
    for key, value in params.items():
        query += f"&{key}={value}"
    return f"{CHAT}?{query}"


def calls_url(participant_id, **params):
    query = f"participantId={participant_id}&displayName=User{participant_id}"
    for key, value in params.items():
        query += f"&{key}={value}"
    return f"{CALLS}?{query}"


def sync_chat(ws):
    """Round-trip a ping so everything the server did before it is visible"""
    ws.send_json({"kind": "ping"})
    return ws.receive_json()


def sync_calls(ws):
    ws.send_json({"type": "ping"})
    return ws.receive_json()


class TestChatWebSocket:
    def test_message_reaches_peer_not_sender(self, client, store):
        with client.websocket_connect(chat_url("1")) as ws_a:
            assert sync_chat(ws_a)["kind"] == "pong"

            with client.websocket_connect(chat_url("2")) as ws_b:
                assert sync_chat(ws_b)["kind"] == "pong"
                assert ws_a.receive_json() == {
                    "kind": "join",
                    "channelId": "general",
                    "participantId": "2",
                    "displayName": "User2",
                }

                ws_a.send_json({"kind": "message", "channelId": "general", "content": "hello"})

                received = ws_b.receive_json()
                assert received["kind"] == "message"
                assert received["participantId"] == "1"
                assert received["content"] == "hello"

                assert len(store.messages) == 1
                assert store.messages[0].author_id == "1"
                assert store.messages[0].channel_id == "general"
                assert store.messages[0].content == "hello"

                # Next frame for A is its own pong, not an echo
                assert sync_chat(ws_a)["kind"] == "pong"

            leave = ws_a.receive_json()
            assert leave["kind"] == "leave"
            assert leave["participantId"] == "2"

    def test_typing_is_relayed(self, client, store):
        with client.websocket_connect(chat_url("1")) as ws_a:
            sync_chat(ws_a)
            with client.websocket_connect(chat_url("2")) as ws_b:
                sync_chat(ws_b)
                ws_a.receive_json()  # join

                ws_b.send_json({"kind": "typing", "channelId": "general"})

                assert ws_a.receive_json()["kind"] == "typing"
                assert store.call_count == 0

    def test_invalid_json_keeps_connection(self, client):
        with client.websocket_connect(chat_url("1")) as ws:
            ws.send_text("{not json")
            assert sync_chat(ws)["kind"] == "pong"

    def test_missing_channel_is_rejected(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"{CHAT}?participantId=1&displayName=A"):
                pass

        assert exc_info.value.code == 4002

    def test_missing_participant_is_rejected(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"{CHAT}?channelId=general"):
                pass

        assert exc_info.value.code == 4002

    def test_token_for_other_participant_is_rejected(self, client):
        token = create_access_token({"sub": "2"})

        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(chat_url("1", token=token)):
                pass

        assert exc_info.value.code == 4001

    def test_token_required_when_enforced(self, client, monkeypatch):
        from teamsync.core.config import settings

        monkeypatch.setattr(settings, "REQUIRE_WS_AUTH", True)

        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(chat_url("1")):
                pass
        assert exc_info.value.code == 4001

        token = create_access_token({"sub": "1"})
        with client.websocket_connect(chat_url("1", token=token)) as ws:
            assert sync_chat(ws)["kind"] == "pong"


class TestCallSignalingWebSocket:
    def test_room_lifecycle(self, client):
        with client.websocket_connect(calls_url("X")) as ws_x:
            ws_x.send_json({"type": "join-room", "data": "42"})
            assert ws_x.receive_json() == {"type": "room-users", "data": []}

            with client.websocket_connect(calls_url("Y")) as ws_y:
                ws_y.send_json({"type": "join-room", "data": "42"})
                assert ws_y.receive_json() == {"type": "room-users", "data": ["X"]}

                joined = ws_x.receive_json()
                assert joined["type"] == "user-joined"
                assert joined["data"]["participantId"] == "Y"
                assert joined["data"]["displayName"] == "UserY"

                ws_y.send_json({
                    "type": "signal",
                    "data": {
                        "kind": "offer",
                        "targetParticipantId": "X",
                        "roomId": "42",
                        "payload": {"sdp": "v=0"},
                    },
                })
                signal = ws_x.receive_json()
                assert signal["type"] == "signal"
                assert signal["data"]["originatorId"] == "Y"
                assert signal["data"]["payload"] == {"sdp": "v=0"}

                ws_x.close()

                assert ws_y.receive_json() == {"type": "user-left", "data": {"participantId": "X"}}
                assert sync_calls(ws_y) == {"type": "pong", "data": None}

                hub = client.app.state.signaling_hub
                assert client.portal.call(hub.registry.members, "42") == ["Y"]

    def test_user_joined_includes_avatar(self, client, store):
        store.add_user("Y", "Yara", avatar="https://cdn/y.png")

        with client.websocket_connect(calls_url("X")) as ws_x:
            ws_x.send_json({"type": "join-room", "data": "42"})
            ws_x.receive_json()

            with client.websocket_connect(calls_url("Y")) as ws_y:
                ws_y.send_json({"type": "join-room", "data": "42"})
                ws_y.receive_json()

                assert ws_x.receive_json()["data"]["avatar"] == "https://cdn/y.png"

    def test_missing_participant_is_rejected(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(CALLS):
                pass

        assert exc_info.value.code == 4002


class TestRealtimeStatus:
    def test_status_reports_live_counts(self, client):
        with client.websocket_connect(chat_url("1")) as ws:
            sync_chat(ws)

            response = client.get("/api/v1/realtime/status")

        assert response.status_code == 200
        body = response.json()
        assert body["chat"]["channels"] == 1
        assert body["chat"]["connections"] == 1
        assert body["calls"]["rooms"] == 0
        assert "join-room" in body["calls"]["client_events"]

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
