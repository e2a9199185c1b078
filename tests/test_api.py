"""HTTP flows: auth, sessions, question generation and answer checking."""
import json

from codelearn.llm_client import LLMUnavailableError
from codelearn.models import LearningSession, Question, UserProgress, UserSkill

from conftest import make_question


def _db(app):
    return app.state.session_factory()


def _generate(client, llm, headers, language="python", **question):
    llm.queue(make_question(**question))
    r = client.post("/questions/generate", json={"language": language}, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


def _check(client, llm, headers, question_id, correct, session_id=None):
    llm.queue({"is_correct": correct, "feedback": "Well reasoned." if correct else "Not quite.", "hint": None if correct else "Trace it."})
    body = {"question_id": question_id, "user_answer": "3"}
    if session_id:
        body["session_id"] = session_id
    return client.post("/questions/check", json=body, headers=headers)


def test_health_and_info(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/info").json()["llm_configured"] is True


def test_register_login_me(client):
    assert client.post("/auth/register", json={"username": "carol", "password": "secret"}).status_code == 201
    assert client.post("/auth/register", json={"username": "carol", "password": "other"}).status_code == 409
    bad = client.post("/auth/token", data={"username": "carol", "password": "wrong"})
    assert bad.status_code == 401
    token = client.post("/auth/token", data={"username": "carol", "password": "secret"}).json()["access_token"]
    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json() == {"username": "carol"}


def test_logout_revokes_token(client, auth_headers):
    assert client.post("/auth/logout", headers=auth_headers).status_code == 200
    assert client.get("/auth/me", headers=auth_headers).status_code == 401


def test_endpoints_require_auth(client):
    assert client.post("/sessions/start", json={"language": "python"}).status_code == 401
    assert client.post("/questions/generate", json={"language": "python"}).status_code == 401
    assert client.get("/skills").status_code == 401


def test_generate_question_hides_answer(app, client, llm, auth_headers):
    data = _generate(client, llm, auth_headers)
    assert "correct_answer" not in data
    assert data["current_score"] == 10
    assert data["difficulty"] == "beginner"
    assert data["concepts"] == ["lists", "builtins"]
    prompt = llm.calls[0]["messages"][1]["content"]
    assert "Score: 10/100" in prompt
    db = _db(app)
    stored = db.get(Question, data["id"])
    assert stored.correct_answer == "3"
    assert stored.created_by == "alice"
    db.close()


def test_generate_rejects_unknown_language(client, auth_headers):
    r = client.post("/questions/generate", json={"language": "cobol"}, headers=auth_headers)
    assert r.status_code == 422


def test_generate_failure_is_500(client, llm, auth_headers):
    llm.queue(LLMUnavailableError("both down"))
    r = client.post("/questions/generate", json={"language": "python"}, headers=auth_headers)
    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to generate question"


def test_generate_clamps_llm_difficulty(app, client, llm, auth_headers):
    data = _generate(client, llm, auth_headers, difficulty_score=0)
    assert data["difficulty_score"] == 1


def test_check_answer_updates_skill(app, client, llm, auth_headers):
    question = _generate(client, llm, auth_headers, difficulty_score=30)
    r = _check(client, llm, auth_headers, question["id"], True)
    assert r.status_code == 200
    body = r.json()
    assert body["is_correct"] is True
    assert body["correct_answer"] == "3"
    assert body["new_difficulty_score"] == 13  # answered above level
    assert body["streak"] == 1
    db = _db(app)
    skill = db.query(UserSkill).filter_by(user_id="alice", language="python").one()
    assert skill.current_difficulty_score == 13
    assert skill.total_questions_attempted == 1
    assert db.query(UserProgress).count() == 1
    db.close()


def test_wrong_answer_returns_hint(client, llm, auth_headers):
    question = _generate(client, llm, auth_headers, difficulty_score=10)
    body = _check(client, llm, auth_headers, question["id"], False).json()
    assert body["is_correct"] is False
    assert body["hint"] == "Trace it."
    assert body["new_difficulty_score"] == 7
    assert body["streak"] == 0


def test_check_unknown_question(client, llm, auth_headers):
    r = _check(client, llm, auth_headers, "does-not-exist", True)
    assert r.status_code == 404


def test_judge_failure_writes_nothing(app, client, llm, auth_headers):
    question = _generate(client, llm, auth_headers)
    llm.queue("not json at all")
    r = client.post("/questions/check", json={"question_id": question["id"], "user_answer": "3"}, headers=auth_headers)
    assert r.status_code == 500
    db = _db(app)
    assert db.query(UserProgress).count() == 0
    skill = db.query(UserSkill).filter_by(user_id="alice", language="python").one()
    assert skill.current_difficulty_score == 10
    assert skill.total_questions_attempted == 0
    db.close()


def test_next_question_uses_recent_context(client, llm, auth_headers):
    first = _generate(client, llm, auth_headers, concepts=["closures"])
    _check(client, llm, auth_headers, first["id"], True)
    second = _generate(client, llm, auth_headers)
    assert second["current_score"] == 13  # question difficulty 12 was above level
    prompt = llm.calls[-1]["messages"][1]["content"]
    assert "closures" in prompt
    assert "slightly harder" in prompt


def test_session_flow(app, client, llm, auth_headers):
    session_id = client.post("/sessions/start", json={"language": "python"}, headers=auth_headers).json()["session_id"]
    for correct in (True, False, True):
        question = _generate(client, llm, auth_headers)
        assert _check(client, llm, auth_headers, question["id"], correct, session_id).status_code == 200
    r = client.post(f"/sessions/{session_id}/end", headers=auth_headers)
    assert r.status_code == 200
    session = r.json()["session"]
    assert session["questions_attempted"] == 3
    assert session["questions_correct"] == 2
    assert session["ended_at"] is not None
    assert client.get(f"/sessions/{session_id}", headers=auth_headers).json()["ended_at"] == session["ended_at"]


def test_closed_session_rejects_attempts(app, client, llm, auth_headers):
    session_id = client.post("/sessions/start", json={"language": "go"}, headers=auth_headers).json()["session_id"]
    question = _generate(client, llm, auth_headers, language="go")
    assert client.post(f"/sessions/{session_id}/end", headers=auth_headers).status_code == 200
    assert client.post(f"/sessions/{session_id}/end", headers=auth_headers).status_code == 409
    r = client.post(
        "/questions/check",
        json={"question_id": question["id"], "user_answer": "3", "session_id": session_id},
        headers=auth_headers,
    )
    assert r.status_code == 409
    db = _db(app)
    assert db.get(LearningSession, session_id).questions_attempted == 0
    assert db.query(UserProgress).count() == 0
    db.close()


def test_session_of_another_user_is_hidden(client, auth_headers):
    session_id = client.post("/sessions/start", json={"language": "python"}, headers=auth_headers).json()["session_id"]
    client.post("/auth/register", json={"username": "mallory", "password": "pw"})
    token = client.post("/auth/token", data={"username": "mallory", "password": "pw"}).json()["access_token"]
    other = {"Authorization": f"Bearer {token}"}
    assert client.post(f"/sessions/{session_id}/end", headers=other).status_code == 404
    assert client.get(f"/sessions/{session_id}", headers=other).status_code == 404


def test_skills_endpoints(client, llm, auth_headers):
    assert client.get("/skills", headers=auth_headers).json() == []
    rust = client.get("/skills/rust", headers=auth_headers).json()
    assert rust["score"] == 10
    assert rust["difficulty"] == "beginner"
    question = _generate(client, llm, auth_headers)
    _check(client, llm, auth_headers, question["id"], True)
    skills = {s["language"]: s for s in client.get("/skills", headers=auth_headers).json()}
    assert set(skills) == {"python", "rust"}
    assert skills["python"]["total_correct"] == 1
    assert skills["python"]["last_practiced_at"] is not None


def test_concepts_are_stored_as_json(app, client, llm, auth_headers):
    data = _generate(client, llm, auth_headers, concepts=["async", "promises"])
    db = _db(app)
    assert json.loads(db.get(Question, data["id"]).concepts_json) == ["async", "promises"]
    db.close()


def test_session_language_must_match(app, client, llm, auth_headers):
    session_id = client.post("/sessions/start", json={"language": "rust"}, headers=auth_headers).json()["session_id"]
    r = client.post("/questions/generate", json={"language": "python", "session_id": session_id}, headers=auth_headers)
    assert r.status_code == 409
    question = _generate(client, llm, auth_headers, language="python")
    assert _check(client, llm, auth_headers, question["id"], True, session_id).status_code == 409
    db = _db(app)
    assert db.get(LearningSession, session_id).questions_attempted == 0
    assert db.query(UserProgress).count() == 0
    db.close()
