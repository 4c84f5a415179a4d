"""Pytest fixtures: test client on a fresh in-memory SQLite database per test."""
import os
import tempfile
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

# Must be set before the app (and its Settings) is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["OPENAI_API_KEY"] = ""  # no real model calls; tests install a fake client when they need one
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="healthmate-uploads-")
os.environ["ENVIRONMENT"] = "test"

from healthmate.core.config import settings
from healthmate.main import app
from healthmate.services import assistant


@pytest.fixture
def client():
    """TestClient; the lifespan builds a new engine, so every test starts with empty tables."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register_user(client: TestClient):
    """Registers an account and returns (auth headers, user json)."""

    def _register(email: str = "test@example.com", password: str = "test123456", **profile):
        body = {"email": email, "password": password, "full_name": "Test User", **profile}
        r = client.post("/api/auth/register", json=body)
        assert r.status_code == 201, f"Register failed: {r.status_code} {r.text}"
        j = r.json()
        return {"Authorization": f"Bearer {j['token']}"}, j["user"]

    return _register


@pytest.fixture
def auth_headers(register_user):
    headers, _ = register_user()
    return headers


@pytest.fixture
def other_headers(register_user):
    """A second, unrelated account."""
    headers, _ = register_user(email="other@example.com")
    return headers


class FakeOpenAI:
    """Stands in for openai.OpenAI; answers every completion with `reply` or raises `error`."""

    calls: list[dict] = []
    reply: str = "Stay hydrated and rest."
    error: Exception | None = None
    no_choices: bool = False

    def __init__(self, **kwargs):
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        FakeOpenAI.calls.append(kwargs)
        if FakeOpenAI.error is not None:
            raise FakeOpenAI.error
        if FakeOpenAI.no_choices:
            return SimpleNamespace(choices=[])
        message = SimpleNamespace(content=FakeOpenAI.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_openai(monkeypatch):
    """Configured assistant backed by FakeOpenAI."""
    FakeOpenAI.calls = []
    FakeOpenAI.reply = "Stay hydrated and rest."
    FakeOpenAI.error = None
    FakeOpenAI.no_choices = False
    monkeypatch.setattr(settings, "openai_api_key", "sk-test")
    monkeypatch.setattr(assistant, "OpenAI", FakeOpenAI)
    return FakeOpenAI
