import json

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from busgo import init_db, server
from busgo.graph.chat_flow import GREETING as CHAT_GREETING
from busgo.graph.graph import GREETING as VOICE_GREETING, build_graph
from busgo.providers.inventory import InventoryStore


@pytest.fixture
def client(monkeypatch):
    init_db()
    monkeypatch.setattr(server, "store", InventoryStore())
    server.app.config["TESTING"] = True
    return server.app.test_client()


def test_index(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert b"BusGo" in resp.data


@pytest.mark.parametrize("path", ["/chat", "/voice"])
def test_message_required(client, path):
    resp = client.post(path, json={"message": "   "})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "message is required"}


class TestConversations:
    def test_chat_greeting(self, client):
        resp = client.post("/conversations", json={"mode": "chat"})
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["reply"] == CHAT_GREETING
        assert body["conversation_id"]

    def test_voice_greeting(self, client):
        body = client.post("/conversations", json={"mode": "voice"}).get_json()
        assert body["reply"] == VOICE_GREETING

    def test_unknown_mode(self, client):
        assert client.post("/conversations", json={"mode": "fax"}).status_code == 400


class TestChat:
    def test_state_carries_across_requests(self, client):
        first = client.post("/chat", json={"message": "My name is Jane Doe"}).get_json()
        assert first["step"] == "destination"
        assert first["details"]["name"] == "Jane Doe"

        second = client.post("/chat", json={
            "message": "from New York to Boston",
            "conversation_id": first["conversation_id"],
        }).get_json()
        assert second["conversation_id"] == first["conversation_id"]
        assert second["step"] == "date"
        assert second["details"]["destination"] == "Boston"
        assert second["details"]["name"] == "Jane Doe"

    def test_non_string_conversation_id_starts_a_new_conversation(self, client):
        resp = client.post("/chat", json={"message": "My name is Jane", "conversation_id": 123})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["conversation_id"] != 123
        assert body["step"] == "destination"


@pytest.mark.parametrize("created,used", [("chat", "/voice"), ("voice", "/chat")])
def test_conversation_mode_must_match_endpoint(client, created, used):
    cid = client.post("/conversations", json={"mode": created}).get_json()["conversation_id"]

    resp = client.post(used, json={"message": "hello", "conversation_id": cid})

    assert resp.status_code == 400
    assert created in resp.get_json()["error"]


class TestVoice:
    def test_booking_reserves_a_seat(self, client, monkeypatch):
        extraction = json.dumps({
            "name": "Jane Doe", "phone": "5551234567", "destination": "Boston",
            "travel_date": "2024-05-01", "seat_preference": "aisle",
        })
        monkeypatch.setattr(server, "voice_graph", build_graph(
            server.store,
            llm=FakeListChatModel(responses=["All set! BOOKING_READY"]),
            extraction_llm=FakeListChatModel(responses=[extraction]),
        ))

        body = client.post("/voice", json={"message": "aisle seat, 555 123 4567"}).get_json()

        assert body["booking_ready"] is True
        assert body["booking_complete"] is True
        assert body["reply"] == "All set!"
        assert "- Seat: 2" in body["confirmation"]
        [reservation] = server.store.list_reservations()
        assert body["reservation_id"] == reservation.id

        seats = client.get("/routes/route1/seats?date=2024-05-01").get_json()
        assert 2 not in seats["available_seats"]
        assert len(seats["available_seats"]) == 39

        again = client.post("/voice", json={
            "message": "one more please",
            "conversation_id": body["conversation_id"],
        }).get_json()
        assert again["booking_complete"] is True
        assert again["confirmation"] is None
        assert again["reservation_id"] == reservation.id


class TestRoutes:
    def test_filter_by_destination(self, client):
        body = client.get("/routes?destination=washington").get_json()
        assert [r["id"] for r in body["routes"]] == ["route2", "route3"]

    def test_all_routes(self, client):
        assert len(client.get("/routes").get_json()["routes"]) == 3

    def test_seats_need_a_date(self, client):
        assert client.get("/routes/route1/seats").status_code == 400

    def test_unknown_route(self, client):
        assert client.get("/routes/nope/seats?date=2024-05-01").status_code == 404
