"""Chat sessions: CRUD, soft delete, assistant replies and report analysis."""
import json

import httpx
from fastapi.testclient import TestClient
from openai import APIConnectionError
from sqlmodel import Session, select

from healthmate.api.chats import PLACEHOLDER_REPLY
from healthmate.models import Chat, ChatMessage, MessageRole
from healthmate.services.assistant import CHAT_SYSTEM_PROMPT


def _create_chat(client: TestClient, headers: dict, **body) -> dict:
    r = client.post("/api/chat", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["chat"]


def _upload_png(client: TestClient, headers: dict) -> dict:
    r = client.post(
        "/api/reports/upload",
        files={"file": ("scan.png", b"\x89PNG\r\n\x1a\nfake-image", "image/png")},
        data={"title": "Chest X-ray", "report_type": "xray", "report_date": "2024-03-01T09:00:00"},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["report"]


def test_create_chat_default_title(client: TestClient, auth_headers: dict):
    r = client.post("/api/chat", json={}, headers=auth_headers)
    assert r.status_code == 201
    assert r.json()["message"] == "Chat created successfully"
    chat = r.json()["chat"]
    assert chat["title"] == "New Chat"
    assert chat["is_active"] is True
    assert chat["messages"] == []


def test_create_chat_requires_auth(client: TestClient):
    assert client.post("/api/chat", json={}).status_code == 401


def test_list_and_get_chats(client: TestClient, auth_headers: dict):
    first = _create_chat(client, auth_headers, title="Headache")
    _create_chat(client, auth_headers, title="Diet")
    r = client.get("/api/chat", params={"limit": 1}, headers=auth_headers)
    assert r.status_code == 200
    j = r.json()
    assert j["total"] == 2
    assert j["total_pages"] == 2
    assert j["current_page"] == 1
    assert len(j["chats"]) == 1

    r = client.get(f"/api/chat/{first['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["chat"]["title"] == "Headache"


def test_list_chats_rejects_bad_paging(client: TestClient, auth_headers: dict):
    assert client.get("/api/chat", params={"page": 0}, headers=auth_headers).status_code == 422
    assert client.get("/api/chat", params={"limit": 101}, headers=auth_headers).status_code == 422


def test_update_chat_title(client: TestClient, auth_headers: dict):
    chat = _create_chat(client, auth_headers)
    r = client.put(f"/api/chat/{chat['id']}", json={"title": "Sleep issues"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["chat"]["title"] == "Sleep issues"

    r = client.put(f"/api/chat/{chat['id']}", json={"title": "   "}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Chat title is required"


def test_send_message_without_model_stores_placeholder(client: TestClient, auth_headers: dict):
    chat = _create_chat(client, auth_headers)
    r = client.post(f"/api/chat/{chat['id']}/messages", json={"content": "I have a headache"}, headers=auth_headers)
    assert r.status_code == 200
    j = r.json()
    assert j["user_message"]["role"] == "user"
    assert j["user_message"]["content"] == "I have a headache"
    assert j["ai_message"]["role"] == "assistant"
    assert j["ai_message"]["content"] == PLACEHOLDER_REPLY

    messages = client.get(f"/api/chat/{chat['id']}", headers=auth_headers).json()["chat"]["messages"]
    assert [m["role"] for m in messages] == ["user", "assistant"]


def test_send_message_sends_history_to_model(client: TestClient, auth_headers: dict, fake_openai):
    chat = _create_chat(client, auth_headers)
    client.post(f"/api/chat/{chat['id']}/messages", json={"content": "Hello"}, headers=auth_headers)
    fake_openai.reply = "Drink water regularly."
    r = client.post(f"/api/chat/{chat['id']}/messages", json={"content": "Any tips?"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["ai_message"]["content"] == "Drink water regularly."

    sent = fake_openai.calls[-1]["messages"]
    assert sent[0] == {"role": "system", "content": CHAT_SYSTEM_PROMPT}
    assert [m["content"] for m in sent[1:]] == ["Hello", "Stay hydrated and rest.", "Any tips?"]
    assert [m["role"] for m in sent[1:]] == ["user", "assistant", "user"]


def test_send_message_model_failure_keeps_both_messages(client: TestClient, auth_headers: dict, fake_openai):
    fake_openai.error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    chat = _create_chat(client, auth_headers)
    r = client.post(f"/api/chat/{chat['id']}/messages", json={"content": "Still there?"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["ai_message"]["content"] == PLACEHOLDER_REPLY
    messages = client.get(f"/api/chat/{chat['id']}", headers=auth_headers).json()["chat"]["messages"]
    assert len(messages) == 2


def test_send_message_without_choices_stores_placeholder(client: TestClient, auth_headers: dict, fake_openai):
    fake_openai.no_choices = True
    chat = _create_chat(client, auth_headers)
    r = client.post(f"/api/chat/{chat['id']}/messages", json={"content": "Hello?"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["ai_message"]["content"] == PLACEHOLDER_REPLY


def test_send_message_unexpected_client_error_stores_placeholder(client: TestClient, auth_headers: dict, fake_openai):
    fake_openai.error = RuntimeError("socket closed")
    chat = _create_chat(client, auth_headers)
    r = client.post(f"/api/chat/{chat['id']}/messages", json={"content": "Hello?"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["ai_message"]["content"] == PLACEHOLDER_REPLY
    messages = client.get(f"/api/chat/{chat['id']}", headers=auth_headers).json()["chat"]["messages"]
    assert [m["role"] for m in messages] == ["user", "assistant"]


def test_send_empty_message(client: TestClient, auth_headers: dict):
    chat = _create_chat(client, auth_headers)
    assert client.post(f"/api/chat/{chat['id']}/messages", json={"content": ""}, headers=auth_headers).status_code == 422
    assert client.post(f"/api/chat/{chat['id']}/messages", json={"content": "  "}, headers=auth_headers).status_code == 400


def test_delete_chat_is_soft(client: TestClient, auth_headers: dict):
    chat = _create_chat(client, auth_headers)
    client.post(f"/api/chat/{chat['id']}/messages", json={"content": "hi"}, headers=auth_headers)
    r = client.delete(f"/api/chat/{chat['id']}", headers=auth_headers)
    assert r.status_code == 200

    assert client.get(f"/api/chat/{chat['id']}", headers=auth_headers).status_code == 404
    assert client.put(f"/api/chat/{chat['id']}", json={"title": "x"}, headers=auth_headers).status_code == 404
    assert client.post(f"/api/chat/{chat['id']}/messages", json={"content": "x"}, headers=auth_headers).status_code == 404
    assert client.delete(f"/api/chat/{chat['id']}", headers=auth_headers).status_code == 404
    listing = client.get("/api/chat", headers=auth_headers).json()
    assert listing["total"] == 0
    assert listing["chats"] == []

    with Session(client.app.state.engine) as db:
        row = db.get(Chat, chat["id"])
        assert row is not None
        assert row.is_active is False
        stored = db.exec(select(ChatMessage).where(ChatMessage.chat_id == chat["id"]).order_by(ChatMessage.id)).all()
        assert [m.role for m in stored] == [MessageRole.user, MessageRole.assistant]


def test_chat_of_other_user_is_not_found(client: TestClient, auth_headers: dict, other_headers: dict):
    chat = _create_chat(client, auth_headers)
    assert client.get(f"/api/chat/{chat['id']}", headers=other_headers).status_code == 404
    assert client.delete(f"/api/chat/{chat['id']}", headers=other_headers).status_code == 404
    assert client.get("/api/chat", headers=other_headers).json()["total"] == 0


def test_malformed_chat_id(client: TestClient, auth_headers: dict):
    assert client.get("/api/chat/abc", headers=auth_headers).status_code == 422
    assert client.get("/api/chat/0", headers=auth_headers).status_code == 422


def test_analyze_report_stores_structured_result(client: TestClient, auth_headers: dict, fake_openai):
    report = _upload_png(client, auth_headers)
    fake_openai.reply = json.dumps(
        {
            "summary": "No abnormalities detected.",
            "summary_second_language": "Koi kharabi nahi mili.",
            "key_findings": ["Clear lung fields"],
            "recommendations": ["Routine follow-up"],
        }
    )
    r = client.post(f"/api/chat/analyze-report/{report['id']}", headers=auth_headers)
    assert r.status_code == 200
    analysis = r.json()["analysis"]
    assert analysis["summary"] == "No abnormalities detected."
    assert analysis["summary_urdu"] == "Koi kharabi nahi mili."
    assert analysis["key_findings"] == {
        "findings": ["Clear lung fields"],
        "recommendations": ["Routine follow-up"],
    }
    assert fake_openai.calls[-1]["response_format"] == {"type": "json_object"}

    stored = client.get(f"/api/reports/{report['id']}", headers=auth_headers).json()["report"]
    assert stored["ai_summary"] == "No abnormalities detected."
    assert stored["key_findings"]["findings"] == ["Clear lung fields"]


def test_analyze_report_unreadable_answer(client: TestClient, auth_headers: dict, fake_openai):
    report = _upload_png(client, auth_headers)
    fake_openai.reply = "Summary: looks fine"
    r = client.post(f"/api/chat/analyze-report/{report['id']}", headers=auth_headers)
    assert r.status_code == 502
    stored = client.get(f"/api/reports/{report['id']}", headers=auth_headers).json()["report"]
    assert stored["ai_summary"] is None
    assert stored["key_findings"] is None


def test_analyze_report_without_model(client: TestClient, auth_headers: dict):
    report = _upload_png(client, auth_headers)
    r = client.post(f"/api/chat/analyze-report/{report['id']}", headers=auth_headers)
    assert r.status_code == 503


def test_analyze_report_of_other_user(client: TestClient, auth_headers: dict, other_headers: dict, fake_openai):
    report = _upload_png(client, auth_headers)
    r = client.post(f"/api/chat/analyze-report/{report['id']}", headers=other_headers)
    assert r.status_code == 404
    assert fake_openai.calls == []


def test_analyze_report_without_choices(client: TestClient, auth_headers: dict, fake_openai):
    report = _upload_png(client, auth_headers)
    fake_openai.no_choices = True
    r = client.post(f"/api/chat/analyze-report/{report['id']}", headers=auth_headers)
    assert r.status_code == 502
    assert client.get(f"/api/reports/{report['id']}", headers=auth_headers).json()["report"]["ai_summary"] is None
