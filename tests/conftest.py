import json

import pytest
from fastapi.testclient import TestClient

from codelearn.db import build_engine, build_session_factory, init_db
from codelearn.main import create_app
from codelearn.settings import Settings


class FakeLLMClient:
    """Stands in for LLMClient: returns queued replies and records every request."""

    configured = True

    def __init__(self):
        self.replies = []
        self.calls = []

    def queue(self, reply):
        self.replies.append(reply if isinstance(reply, (str, Exception)) else json.dumps(reply))

    async def chat(self, messages, *, temperature=0.7, max_tokens=1000, parse=None):
        self.calls.append({"messages": messages, "temperature": temperature, "max_tokens": max_tokens})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return parse(reply) if parse else reply

    async def aclose(self):
        pass


def make_question(**overrides):
    question = {
        "code_snippet": "x = [1, 2, 3]\nprint(len(x))",
        "question": "What does this code print?",
        "correct_answer": "3",
        "explanation": "len() returns the number of items in the list, which is three.",
        "concepts": ["lists", "builtins"],
        "difficulty_score": 12,
    }
    question.update(overrides)
    return question


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database URL for tests."""
    return f"sqlite:///{tmp_path / 'test_codelearn.db'}"


@pytest.fixture
def settings(tmp_db):
    return Settings(database_url=tmp_db, jwt_secret_key="test-secret", log_level="WARNING")


@pytest.fixture
def db(settings):
    engine = build_engine(settings)
    init_db(engine)
    session = build_session_factory(engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def llm():
    return FakeLLMClient()


@pytest.fixture
def app(settings, llm):
    return create_app(settings, llm_client=llm)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers(client):
    client.post("/auth/register", json={"username": "alice", "password": "pw-alice"})
    r = client.post("/auth/token", data={"username": "alice", "password": "pw-alice"})
    return {"Authorization": f"Bearer {r.json()['access_token']}"}
