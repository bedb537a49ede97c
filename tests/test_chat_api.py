from __future__ import annotations

from app.constants import CHAT_FAILURE_REPLY, NEW_CHAT_TITLE
from app.domain.exceptions import ExternalServiceError


def _new_session(client) -> dict:
    response = client.post("/api/v1/chat/sessions")
    assert response.status_code == 201
    return response.get_json()["data"]


def test_listing_creates_an_active_session(client):
    data = client.get("/api/v1/chat/sessions").get_json()["data"]

    assert len(data["sessions"]) == 1
    assert data["sessions"][0]["title"] == NEW_CHAT_TITLE
    assert data["active_session_id"] == data["sessions"][0]["id"]


def test_stream_reply_and_store_history(client, fake_backend, await_titles):
    session = _new_session(client)
    fake_backend.queue("Tomato watering")

    response = client.post(f"/api/v1/chat/sessions/{session['id']}/messages", json={"text": "How much water?"})

    assert response.status_code == 200
    assert response.mimetype == "text/plain"
    assert response.headers["X-Chat-Session-Id"] == session["id"]
    assert response.get_data(as_text=True) == "Hello grower"

    await_titles()
    stored = client.get(f"/api/v1/chat/sessions/{session['id']}").get_json()["data"]
    assert stored["title"] == "Tomato watering"
    assert stored["history"] == [
        {"role": "user", "text": "How much water?"},
        {"role": "model", "text": "Hello grower"},
    ]


def test_stream_failure_is_stored_as_apology(client, fake_backend, await_titles):
    session = _new_session(client)
    fake_backend.stream_chunks = ["Partial"]
    fake_backend.stream_error = ExternalServiceError("reset")

    body = client.post(f"/api/v1/chat/sessions/{session['id']}/messages", json={"text": "hi"}).get_data(as_text=True)

    assert body == "Partial\n\n" + CHAT_FAILURE_REPLY
    await_titles()
    history = client.get(f"/api/v1/chat/sessions/{session['id']}").get_json()["data"]["history"]
    assert history[-1] == {"role": "model", "text": CHAT_FAILURE_REPLY}


def test_blank_message_is_rejected_as_json(client):
    session = _new_session(client)

    response = client.post(f"/api/v1/chat/sessions/{session['id']}/messages", json={"text": "  "})

    assert response.status_code == 400
    assert response.get_json()["ok"] is False


def test_message_to_unknown_session(client):
    response = client.post("/api/v1/chat/sessions/missing/messages", json={"text": "hello"})
    assert response.status_code == 404


def test_select_and_delete(client):
    first = _new_session(client)
    second = _new_session(client)

    selected = client.post(f"/api/v1/chat/sessions/{first['id']}/select")
    assert selected.status_code == 200
    assert client.get("/api/v1/chat/sessions").get_json()["data"]["active_session_id"] == first["id"]

    deleted = client.delete(f"/api/v1/chat/sessions/{first['id']}").get_json()["data"]
    assert deleted["deleted"] == first["id"]
    assert deleted["active_session"]["id"] == second["id"]

    assert client.get(f"/api/v1/chat/sessions/{first['id']}").status_code == 404
    assert client.post("/api/v1/chat/sessions/missing/select").status_code == 404


def test_deleting_only_session_yields_fresh_one(client):
    only = _new_session(client)

    active = client.delete(f"/api/v1/chat/sessions/{only['id']}").get_json()["data"]["active_session"]

    assert active["id"] != only["id"]
    assert active["history"] == []
