import asyncio
import json

import pytest

from prepcoach.services.llm_service import parse_json_object
from prepcoach.services.session_manager import session_title
from prepcoach.utils.audit import JsonlAuditor


def test_auditor_appends_json_lines(tmp_path):
    path = tmp_path / "logs" / "events.jsonl"
    auditor = JsonlAuditor(str(path))

    asyncio.run(auditor.log("chat_turn", session_id="s1"))
    asyncio.run(auditor.log("evaluation", scores={"edge_cases": 4}))

    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["type"] for r in records] == ["chat_turn", "evaluation"]
    assert records[0]["session_id"] == "s1"
    assert records[1]["scores"] == {"edge_cases": 4}
    assert "ts" in records[0]


def test_auditor_disabled_without_path(tmp_path):
    auditor = JsonlAuditor()
    assert not auditor.enabled
    asyncio.run(auditor.log("chat_turn"))
    assert list(tmp_path.iterdir()) == []


def test_parse_json_object_strips_fences():
    text = 'Here you go:\n```json\n{"title": "Two Sum", "testCases": []}\n```'
    assert parse_json_object(text) == {"title": "Two Sum", "testCases": []}


@pytest.mark.parametrize("text", ["no json here", "[1, 2, 3]", ""])
def test_parse_json_object_rejects_non_objects(text):
    with pytest.raises(ValueError):
        parse_json_object(text)


def test_session_title():
    assert session_title(None) == "New Chat Session"
    assert session_title("   ") == "New Chat Session"
    assert session_title("Two Sum practice") == "Two Sum practice"
    assert session_title("a" * 51) == "a" * 50 + "..."
