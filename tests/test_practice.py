"""Tests for diagrams/practice.py"""

import pytest

from diagrams.practice import (
    ACTIVE, CORRECT, INCORRECT, PENDING, PracticeSession, answer_matches, practice_steps,
)


def test_practice_steps_follow_the_trace(trace_156_7):
    steps = practice_steps(trace_156_7, 7)

    assert [(s.kind, s.expected) for s in steps] == [
        ("divide", "2"), ("multiply", "14"), ("subtract", "1"), ("bring_down", "16"),
        ("divide", "2"), ("multiply", "14"), ("subtract", "2"),
    ]
    assert all(s.status == PENDING for s in steps)


def test_new_session_activates_first_step(problem_156_7):
    session = PracticeSession.for_problem(problem_156_7)

    assert session.current_step.status == ACTIVE
    assert session.current_step.expected == "2"
    assert session.steps[1].status == PENDING
    assert not session.is_complete


def test_correct_answer_moves_on(problem_156_7):
    session = PracticeSession.for_problem(problem_156_7)
    feedback = session.submit(" 2 ")

    assert feedback.is_correct
    assert feedback.status == CORRECT
    assert feedback.expected is None
    assert session.current == 1
    assert session.current_step.status == ACTIVE


def test_attempts_run_out_and_reveal_answer(problem_156_7):
    session = PracticeSession.for_problem(problem_156_7, max_attempts=2)

    first = session.submit("3")
    assert not first.is_correct
    assert first.status == ACTIVE
    assert first.attempts_left == 1
    assert session.current == 0

    second = session.submit("4")
    assert second.status == INCORRECT
    assert second.attempts_left == 0
    assert second.expected == "2"
    assert session.current == 1


def test_complete_session(problem_156_7):
    session = PracticeSession.for_problem(problem_156_7)
    answers = [s.expected for s in session.steps]

    for answer in answers[:-1]:
        assert not session.submit(answer).session_complete
    last = session.submit(answers[-1])

    assert last.session_complete
    assert session.is_complete
    assert session.all_correct
    assert session.current_step is None
    assert session.total_attempts == len(answers)

    with pytest.raises(ValueError):
        session.submit("0")


def test_all_correct_is_false_after_a_miss(problem_156_7):
    session = PracticeSession.for_problem(problem_156_7, max_attempts=1)
    session.submit("9")
    for step in session.steps[1:]:
        session.submit(step.expected)

    assert session.is_complete
    assert not session.all_correct


def test_round_trip_keeps_progress(problem_156_7):
    session = PracticeSession.for_problem(problem_156_7)
    session.submit("2")
    session.submit("15")

    restored = PracticeSession.from_dict(session.to_dict())

    assert restored.current == 1
    assert restored.steps[0].status == CORRECT
    assert restored.current_step.attempts == 1
    assert restored.current_step.status == ACTIVE


# ==================== Answers & hints ====================

@pytest.mark.parametrize("answer,expected,result", [
    ("016", "16", True),
    (" 16\n", "16", True),
    ("+16", "16", True),
    ("17", "16", False),
    ("sixteen", "16", False),
])
def test_answer_matches(answer, expected, result):
    assert answer_matches(answer, expected) is result


def test_leading_zero_answer_is_correct(problem_156_7):
    session = PracticeSession.for_problem(problem_156_7)
    for answer in ("2", "14", "1"):
        session.submit(answer)

    feedback = session.submit("016")
    assert feedback.is_correct
    assert session.steps[3].kind == "bring_down"


def test_steps_carry_instruction_and_hint(problem_156_7):
    steps = PracticeSession.for_problem(problem_156_7).steps

    assert steps[0].instruction == "How many times does 7 go into the working number?"
    assert steps[0].hint == "Think: how many times does 7 fit into the number without going over?"
    assert steps[1].instruction == "What is 7 × the quotient digit you just wrote?"
    assert steps[1].hint == "Multiply 7 by the quotient digit you just found"
    assert steps[3].hint == "Write the remainder, then add the next digit from the dividend"


def test_wrong_answer_returns_hint_until_attempts_run_out(problem_156_7):
    session = PracticeSession.for_problem(problem_156_7, max_attempts=2)

    first = session.submit("3")
    assert first.hint == session.steps[0].hint

    second = session.submit("3")
    assert second.status == INCORRECT
    assert second.hint is None
    assert session.submit("14").hint is None


def test_current_hint(problem_156_7):
    session = PracticeSession.for_problem(problem_156_7)
    session.submit("2")
    assert session.current_hint() == "Multiply 7 by the quotient digit you just found"

    for step in session.steps[1:]:
        session.submit(step.expected)
    with pytest.raises(ValueError):
        session.current_hint()
