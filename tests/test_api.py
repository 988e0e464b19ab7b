import inspect
import json
import threading

import httpx
import pytest

from prepcoach.config import settings
from prepcoach.routers import evaluate as evaluate_router
from prepcoach.routers import execute as execute_router
from prepcoach.routers import questions as questions_router
from prepcoach.routers import sessions as sessions_router
from prepcoach.routers import topic_progress as topic_progress_router
from prepcoach.services.code_runner import CodeRunner
from prepcoach.services.llm_service import llm_service
from prepcoach.utils.audit import auditor


QUESTION_REPLY = "Problem Title: Two Sum\nGiven an array of integers, return indices of two numbers adding to a target."

EVALUATION = """1. Problem Understanding (8/10): good
2. Data Structure Choice (7/10): ok
3. Time Complexity (6/10): could be better
4. Coding Style (9/10): clean
5. Edge Cases (4/10): misses empty input
6. Language Usage (8/10): fine
7. Communication (7/10): fine
8. Optimization (5/10): extra pass

## Areas of Strength
- Readable code

## Areas Needing Improvement
- Handle empty input
- Remove the second pass

## Correct Solution
```python
pass
```
"""

GENERATED_QUESTION = {
    "title": "Reverse an Array",
    "description": "Reverse the array in place.",
    "constraints": ["1 <= n <= 10^5"],
    "examples": [{"input": "[1,2,3]", "output": "[3,2,1]", "explanation": "reversed"}],
    "testCases": [
        {"input": "[1,2]", "output": "[2,1]", "isHidden": False},
        {"input": "[]", "output": "[]", "isHidden": True},
    ],
}


@pytest.fixture
def tutor_asks_question(monkeypatch):
    async def fake_reply(history, message, *, target_job_title=None, focus_section=""):
        return QUESTION_REPLY

    monkeypatch.setattr(llm_service, "tutor_reply", fake_reply)


@pytest.fixture
def evaluator(monkeypatch):
    calls = []

    async def fake_evaluate(problem, code, language, target_job_title):
        calls.append({"problem": problem, "language": language, "job_title": target_job_title})
        return EVALUATION

    monkeypatch.setattr(llm_service, "evaluate_code", fake_evaluate)
    return calls


def new_session(client, user_id="u1", initial_message=None):
    resp = client.post("/api/sessions", json={"user_id": user_id, "initial_message": initial_message})
    assert resp.status_code == 200
    return resp.json()["session_id"]


def say(client, session_id, message, user_id="u1"):
    return client.post(f"/api/chat/{session_id}/messages", json={"user_id": user_id, "message": message})


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["llm"]["enabled"] is False
    assert body["code_runner"]["enabled"] is False


def test_session_create_and_list(client):
    session_id = new_session(client, initial_message='"' + "x" * 60 + '"')
    new_session(client, user_id="someone-else")

    items = client.get("/api/sessions", params={"user_id": "u1"}).json()["items"]
    assert [i["id"] for i in items] == [session_id]
    assert items[0]["title"] == "x" * 49 + "..."
    assert items[0]["last_message"] is None


def test_offline_chat_asks_for_job_title(client):
    session_id = new_session(client)
    resp = say(client, session_id, "hello")
    assert resp.status_code == 200
    body = resp.json()
    assert body["target_status"] == "title_not_found"
    assert body["target"] is None
    assert "what job title you're targeting" in body["reply"]["content"]
    assert body["reply"]["role"] == "assistant"


def test_chat_turn_initializes_target_once(client, tutor_asks_question):
    session_id = new_session(client)
    first = say(client, session_id, "I want to prepare for a Senior Software Engineer role").json()
    assert first["target_status"] == "created"
    assert first["target"]["target_job_title"] == "Senior Software Engineer"
    assert first["target"]["total_score"] == 67
    assert first["reply"]["message_type"] == "question"

    second = say(client, session_id, "actually make it a junior developer").json()
    assert second["target_status"] == "already_exists"
    assert second["target"]["id"] == first["target"]["id"]
    assert second["target"]["target_job_title"] == "Senior Software Engineer"

    messages = client.get(f"/api/chat/{session_id}/messages", params={"user_id": "u1"}).json()
    assert [m["role"] for m in messages] == ["user", "assistant", "user", "assistant"]


def test_chat_requires_session_owner(client):
    session_id = new_session(client)
    assert say(client, session_id, "hello", user_id="intruder").status_code == 404
    assert client.get(f"/api/chat/{session_id}/messages", params={"user_id": "intruder"}).status_code == 404
    assert say(client, "missing", "hello").status_code == 404


def test_blank_message_rejected(client):
    session_id = new_session(client)
    assert say(client, session_id, "   ").status_code == 400


def test_evaluate_without_question(client, evaluator):
    session_id = new_session(client)
    resp = client.post(f"/api/chat/{session_id}/evaluate", json={"user_id": "u1", "code": "print(1)"})
    assert resp.status_code == 400
    assert evaluator == []

    resp = client.post(f"/api/chat/{session_id}/code", json={"user_id": "u1", "code": "print(1)"})
    assert resp.status_code == 400


def test_evaluate_compares_against_target(client, tutor_asks_question, evaluator):
    session_id = new_session(client)
    say(client, session_id, "I want to prepare for a Senior Software Engineer role")

    resp = client.post(
        f"/api/chat/{session_id}/evaluate",
        json={"user_id": "u1", "code": "def two_sum(a, t): pass", "language": "python"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert evaluator[0]["job_title"] == "Senior Software Engineer"
    assert evaluator[0]["problem"] == QUESTION_REPLY
    assert body["scores_found"] is True
    assert body["scores"]["edge_cases"] == 4
    assert body["readiness"] == {"achieved": 2, "total": 8, "ready": False}
    assert "2 out of 8" in body["feedback"]
    assert "Edge Cases" in body["metrics_needing_improvement"]
    assert "Coding Style" not in body["metrics_needing_improvement"]

    latest = client.get(f"/api/chat/{session_id}/code", params={"user_id": "u1"}).json()
    assert latest["code_submission"]["code"] == "def two_sum(a, t): pass"

    report = client.get(f"/api/chat/{session_id}/progress", params={"user_id": "u1"}).json()
    assert report["scores"] == body["scores"]
    assert report["areas_needing_improvement"] == ["Handle empty input", "Remove the second pass"]
    assert report["readiness"]["achieved"] == 2


def test_evaluate_without_target_uses_default_title(client, monkeypatch, evaluator):
    async def fake_reply(history, message, *, target_job_title=None, focus_section=""):
        return QUESTION_REPLY

    monkeypatch.setattr(llm_service, "tutor_reply", fake_reply)
    session_id = new_session(client)
    say(client, session_id, "give me a problem")

    body = client.post(f"/api/chat/{session_id}/evaluate", json={"user_id": "u1", "code": "x = 1"}).json()
    assert evaluator[0]["job_title"] == "Software Engineer"
    assert body["target"] is None
    assert body["readiness"] is None
    assert body["feedback"] is None
    assert body["scores"]["optimization"] == 5


def test_blank_code_rejected(client):
    session_id = new_session(client)
    resp = client.post(f"/api/chat/{session_id}/evaluate", json={"user_id": "u1", "code": "  "})
    assert resp.status_code == 400


def test_question_generated_then_reused(client, monkeypatch):
    calls = []

    async def fake_generate(topic, difficulty):
        calls.append((topic, difficulty))
        return GENERATED_QUESTION

    monkeypatch.setattr(llm_service, "generate_question", fake_generate)

    first = client.get("/api/questions/data-structures", params={"user_id": "u1"})
    assert first.status_code == 200
    body = first.json()
    assert body["subtopic_id"] == "ds-basic-array"
    assert body["generated"] is True
    assert body["question"]["test_cases"] == [{"input": "[1,2]", "expected_output": "[2,1]"}]
    assert calls == [("Basic Array Operations", "beginner")]

    again = client.get("/api/questions/data-structures", params={"user_id": "u1"}).json()
    assert again["generated"] is False
    assert again["question"]["id"] == body["question"]["id"]
    assert len(calls) == 1


def test_question_generation_offline(client):
    resp = client.get("/api/questions/algorithms", params={"user_id": "u1"})
    assert resp.status_code == 503


def test_question_unknown_category(client):
    resp = client.get("/api/questions/cooking", params={"user_id": "u1"})
    assert resp.status_code == 404


def test_question_after_all_subtopics_complete(client):
    for subtopic_id in ("web-http", "web-auth", "web-performance"):
        resp = client.post(f"/api/users/u1/topic-progress/{subtopic_id}/complete")
        assert resp.status_code == 200
    assert resp.json()["status"] == "complete"
    assert resp.json()["progress_percentage"] == 100

    resp = client.get("/api/questions/web-development", params={"user_id": "u1"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "All subtopics completed"


def test_hint_unknown_question(client):
    assert client.post("/api/questions/nope/hint").status_code == 404


def test_topic_progress_hierarchy(client):
    resp = client.post("/api/users/u1/topic-progress/algo-sorting/complete")
    assert resp.status_code == 200
    assert resp.json()["current_subtopic_id"] == "algo-binary-search"

    nodes = {n["id"]: n for n in client.get("/api/users/u1/topic-progress").json()}
    algo = nodes["algo-fundamentals"]
    assert algo["progress"]["progress_percentage"] == 20
    sub = {s["id"]: s["progress"]["status"] for s in algo["subtopics"]}
    assert sub["algo-sorting"] == "complete"
    assert sub["algo-binary-search"] == "in_progress"
    assert nodes["sd-fundamentals"]["progress"]["status"] == "not_started"

    assert client.post("/api/users/u1/topic-progress/nope/complete").status_code == 404


def test_execute_requires_runner(client):
    resp = client.post("/api/execute", json={"code": "print(1)"})
    assert resp.status_code == 503


def test_execute_forwards_to_runner(client, monkeypatch):
    def handler(request):
        return httpx.Response(200, json={"output": "1\n", "error": None})

    runner = CodeRunner(url="http://runner.test/run", transport=httpx.MockTransport(handler))
    monkeypatch.setattr(execute_router, "code_runner", runner)

    resp = client.post("/api/execute", json={"code": "print(1)", "language": "python"})
    assert resp.status_code == 200
    assert resp.json() == {"output": "1\n", "error": None}


def test_api_key_required_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "api_key", "secret")

    assert client.get("/health").status_code == 200
    assert client.get("/api/sessions", params={"user_id": "u1"}).status_code == 401
    assert client.get("/api/sessions", params={"user_id": "u1"}, headers={"X-API-Key": "wrong"}).status_code == 401
    assert client.get("/api/sessions", params={"user_id": "u1"}, headers={"X-API-Key": "secret"}).status_code == 200
    assert client.get(
        "/api/sessions", params={"user_id": "u1"}, headers={"Authorization": "Bearer secret"}
    ).status_code == 200


@pytest.mark.parametrize(
    "handler",
    [
        topic_progress_router.topic_progress,
        topic_progress_router.mark_complete,
        sessions_router.create_session,
        sessions_router.list_sessions,
        sessions_router.list_messages,
        sessions_router.latest_code,
        sessions_router.save_code,
        evaluate_router.session_progress,
    ],
)
def test_db_only_handlers_run_in_threadpool(handler):
    assert not inspect.iscoroutinefunction(handler)


def test_async_route_keeps_db_work_off_the_loop(client, monkeypatch):
    threads = {}
    real_select = questions_router.select_target_subtopic

    def recording_select(db, user_id, category):
        threads["db"] = threading.get_ident()
        return real_select(db, user_id, category)

    async def fake_generate(topic, difficulty):
        threads["loop"] = threading.get_ident()
        return GENERATED_QUESTION

    monkeypatch.setattr(questions_router, "select_target_subtopic", recording_select)
    monkeypatch.setattr(llm_service, "generate_question", fake_generate)

    assert client.get("/api/questions/algorithms", params={"user_id": "u1"}).status_code == 200
    assert threads["db"] != threads["loop"]


def test_failed_evaluation_stores_nothing(client, tutor_asks_question, monkeypatch):
    async def broken_evaluate(problem, code, language, target_job_title):
        raise RuntimeError("provider timeout")

    monkeypatch.setattr(llm_service, "evaluate_code", broken_evaluate)
    session_id = new_session(client)
    say(client, session_id, "give me a problem")

    resp = client.post(f"/api/chat/{session_id}/evaluate", json={"user_id": "u1", "code": "x = 1"})
    assert resp.status_code == 502
    assert "provider timeout" in resp.json()["detail"]

    latest = client.get(f"/api/chat/{session_id}/code", params={"user_id": "u1"}).json()
    assert latest["code_submission"] is None
    messages = client.get(f"/api/chat/{session_id}/messages", params={"user_id": "u1"}).json()
    assert [m["message_type"] for m in messages] == ["general", "question"]


def test_sync_handler_writes_audit_event(client, monkeypatch, tmp_path):
    path = tmp_path / "events.jsonl"
    monkeypatch.setattr(auditor, "_path", path)

    assert client.post("/api/users/u1/topic-progress/algo-sorting/complete").status_code == 200

    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["type"] for r in records] == ["subtopic_completed"]
    assert records[0]["subtopic_id"] == "algo-sorting"
    assert records[0]["progress_percentage"] == 20
