"""Tests for api/main.py"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

import api.main as main
from config import Settings
from diagram_store import DiagramStore
from narration.step_narrator import StepNarrator


@pytest.fixture
def client(monkeypatch, fake_redis):
    monkeypatch.setattr(main, "store", DiagramStore(client=fake_redis))
    monkeypatch.setattr(main, "narrator", None)
    monkeypatch.setattr(main, "settings", Settings())
    return TestClient(main.app)


def start(client, session_id="s1", **body):
    payload = {"session_id": session_id, "dividend": 156, "divisor": 7}
    payload.update(body)
    response = client.post("/sessions", json=payload)
    assert response.status_code == 200
    return response.json()


def test_root(client):
    data = client.get("/").json()
    assert data["status"] == "ok"
    assert data["features"]["narration"] is False


# ==================== Problems & stateless layout ====================

def test_create_problem(client):
    data = client.post("/problems", json={"difficulty": "easy"}).json()
    problem = data["problem"]
    assert problem["dividend"] == problem["divisor"] * problem["quotient"] + problem["remainder"]
    assert data["trace"][0]["kind"] == "setup"
    assert data["trace"][-1]["kind"] == "complete"


def test_create_problem_unknown_difficulty(client):
    assert client.post("/problems", json={"difficulty": "extreme"}).status_code == 400


def test_layout_for_generated_trace(client):
    response = client.post("/layout", json={"dividend": 156, "divisor": 7, "stage_index": 4})
    data = response.json()

    assert response.status_code == 200
    assert data["stage_ids"][-1] == "complete-1"
    assert data["helper_table"][6] == [7, 49]
    assert data["layout"]["is_complete"] is True
    assert [q["digit"] for q in data["layout"]["quotient_digits"]] == [2, 2]


def test_layout_reports_column_errors(client):
    trace = [
        {"step": 0, "type": "divide", "position": 1, "quotientDigit": 1},
        {"step": 1, "type": "multiply", "position": 0, "product": 12},
        {"step": 2, "type": "complete", "position": 2},
    ]
    response = client.post("/layout", json={
        "dividend": 156, "divisor": 12, "trace": trace, "stage_index": 2, "granularity": "step",
    })

    assert response.status_code == 200
    errors = response.json()["layout"]["errors"]
    assert errors[0]["type"] == "ColumnOutOfRange"


def test_layout_check_trace(client):
    trace = [
        {"step": 0, "type": "divide", "position": 1, "quotientDigit": 2},
        {"step": 1, "type": "multiply", "position": 1, "product": 15},
    ]
    response = client.post("/layout", json={
        "dividend": 156, "divisor": 7, "trace": trace, "check_trace": True,
    })

    assert response.status_code == 422
    assert len(response.json()["detail"]["issues"]) == 2


@pytest.mark.parametrize("body,status", [
    ({"dividend": 156, "divisor": 0}, 400),
    ({"dividend": 156, "divisor": 7, "granularity": "word"}, 400),
    ({"dividend": 156, "divisor": 7, "trace": [{"step": 0, "type": "shrug", "position": 0}]}, 422),
    ({"dividend": 156, "divisor": 7, "trace": [{"type": "divide"}]}, 422),
    ({"dividend": 156, "divisor": 7,
      "trace": [{"step": 1, "type": "divide", "position": "1", "quotientDigit": 2}]}, 422),
    ({"dividend": 156, "divisor": 7,
      "trace": [{"step": 1, "type": "divide", "position": None, "quotientDigit": 2}]}, 422),
    ({"dividend": 156, "divisor": 7,
      "trace": [{"step": 1, "type": "multiply", "position": 1, "product": 14.0}]}, 422),
])
def test_layout_rejects_bad_requests(client, body, status):
    assert client.post("/layout", json=body).status_code == status


# ==================== Sessions ====================

def test_session_navigation(client):
    data = start(client)
    assert data["session_id"] == "s1"
    assert data["layout"]["stage_index"] == 0
    assert data["layout"]["total_stages"] == 5

    data = client.post("/sessions/s1/advance").json()
    assert data["layout"]["current_stage_id"] == "divide-1"
    assert data["layout"]["bring_down_arrow"]["column"] == 2
    assert [s["kind"] for s in data["current_steps"]] == ["divide", "multiply", "subtract", "bring_down"]

    # Cursor position survives between requests
    assert client.get("/sessions/s1").json()["layout"]["stage_index"] == 1

    data = client.post("/sessions/s1/goto", json={"stage_index": 99}).json()
    assert data["layout"]["stage_index"] == 4
    assert data["layout"]["is_complete"] is True

    data = client.post("/sessions/s1/retreat").json()
    assert data["layout"]["current_stage_id"] == "remainder-1"


def test_generated_session(client):
    response = client.post("/sessions", json={"difficulty": "hard", "granularity": "step"})
    data = response.json()

    assert response.status_code == 200
    assert data["session_id"]
    assert len(data["stage_ids"]) == data["layout"]["total_stages"]


def test_unknown_session(client):
    assert client.get("/sessions/missing").status_code == 404
    assert client.post("/sessions/missing/advance").status_code == 404


def test_delete_session(client):
    start(client)
    assert client.delete("/sessions/s1").json()["status"] == "deleted"
    assert client.get("/sessions/s1").status_code == 404


# ==================== Practice & narration ====================

def test_practice_flow(client):
    start(client)

    data = client.post("/sessions/s1/practice", json={"answer": "2"}).json()
    assert data["feedback"]["is_correct"] is True
    assert data["current_step"]["expected"] == "14"

    data = client.post("/sessions/s1/practice", json={"answer": "13"}).json()
    assert data["feedback"]["is_correct"] is False
    assert data["feedback"]["attempts_left"] == 2
    assert data["total_attempts"] == 2


def test_practice_after_completion(client):
    start(client, dividend=12, divisor=48)

    data = client.post("/sessions/s1/practice", json={"answer": "0"}).json()
    assert data["is_complete"] is True
    assert data["all_correct"] is True

    assert client.post("/sessions/s1/practice", json={"answer": "0"}).status_code == 409


def test_narrate_without_api_key(client):
    start(client)
    assert client.post("/sessions/s1/narrate").status_code == 503


def test_narrate_current_stage(client, monkeypatch):
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content="Seven fits into fifteen twice.")
    monkeypatch.setattr(main, "narrator", StepNarrator(llm=llm))

    start(client)
    client.post("/sessions/s1/advance")
    data = client.post("/sessions/s1/narrate").json()

    assert data["stage_id"] == "divide-1"
    assert len(data["narrations"]) == 4
    assert data["narrations"][0]["explanation"] == "Seven fits into fifteen twice."


def test_practice_feedback_carries_hint(client):
    start(client)

    data = client.post("/sessions/s1/practice", json={"answer": "5"}).json()
    assert data["feedback"]["hint"] == "Think: how many times does 7 fit into the number without going over?"
    assert data["current_step"]["instruction"] == "How many times does 7 go into the working number?"

    data = client.post("/sessions/s1/practice", json={"answer": "02"}).json()
    assert data["feedback"]["is_correct"] is True


def test_practice_hint_static(client):
    start(client)
    client.post("/sessions/s1/practice", json={"answer": "2"})

    data = client.post("/sessions/s1/practice/hint").json()
    assert data["source"] == "static"
    assert data["kind"] == "multiply"
    assert data["hint"] == "Multiply 7 by the quotient digit you just found"
    assert data["instruction"] == "What is 7 × the quotient digit you just wrote?"


def test_practice_hint_from_narrator(client, monkeypatch):
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content="What times 7 gets close to 15?")
    monkeypatch.setattr(main, "narrator", StepNarrator(llm=llm))

    start(client)
    data = client.post("/sessions/s1/practice/hint").json()

    assert data["source"] == "narrator"
    assert data["hint"] == "What times 7 gets close to 15?"
    assert data["static_hint"].startswith("Think: how many times does 7")
    assert "156 ÷ 7" in llm.invoke.call_args[0][0][0].content


def test_practice_hint_errors(client):
    assert client.post("/sessions/missing/practice/hint").status_code == 404

    start(client, dividend=12, divisor=48)
    client.post("/sessions/s1/practice", json={"answer": "0"})
    assert client.post("/sessions/s1/practice/hint").status_code == 409
