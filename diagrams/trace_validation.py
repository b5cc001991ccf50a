"""
Trace Validation - Invariant checks for division traces.

Checks:
    - step_index strictly increasing
    - kind-specific values present (quotient_digit on divide, ...)
    - cycle order: divide -> multiply -> subtract -> [bring_down]
    - multiply/subtract share their divide's column, bring_down moves right
    - at most one quotient digit per column, each a single digit
    - product == quotient digit × divisor, difference/working number consistent
    - trace ends with a remainder or complete step

Column ranges are not checked here: the layout engine reports
them as ColumnOutOfRange values so the UI can show a placeholder.
"""

from typing import List, Optional, Sequence

from .division import (
    CYCLE_KINDS, REQUIRED_FIELDS, TERMINAL_KINDS,
    DividendDivisor, DivisionStep, StepKind,
)
from .errors import InvalidTrace

# Allowed successor of each cycle kind inside the trace
_NEXT_IN_CYCLE = {
    StepKind.DIVIDE: (StepKind.MULTIPLY,),
    StepKind.MULTIPLY: (StepKind.SUBTRACT,),
    StepKind.SUBTRACT: (StepKind.BRING_DOWN, StepKind.DIVIDE),
    StepKind.BRING_DOWN: (StepKind.DIVIDE,),
}


def validate_trace(problem: DividendDivisor, trace: Sequence[DivisionStep]) -> List[str]:
    """
    Check a trace against its problem.

    Returns:
        List of human-readable issues; empty when the trace is valid
    """
    issues: List[str] = []
    if not trace:
        return issues

    issues.extend(_check_indices(trace))
    issues.extend(_check_required_fields(trace))
    issues.extend(_check_cycles(problem, trace))

    if trace[-1].kind not in TERMINAL_KINDS:
        issues.append(
            f"trace ends with '{trace[-1].kind.value}', expected 'remainder' or 'complete'"
        )
    return issues


def ensure_valid_trace(problem: DividendDivisor, trace: Sequence[DivisionStep]) -> None:
    """Raise InvalidTrace listing every issue found."""
    issues = validate_trace(problem, trace)
    if issues:
        raise InvalidTrace(issues)


def _check_indices(trace: Sequence[DivisionStep]) -> List[str]:
    issues = []
    if trace[0].step_index != 0:
        issues.append(f"first step_index is {trace[0].step_index}, expected 0")
    for prev, step in zip(trace, trace[1:]):
        if step.step_index <= prev.step_index:
            issues.append(
                f"step_index {step.step_index} does not increase after {prev.step_index}"
            )
    return issues


def _check_required_fields(trace: Sequence[DivisionStep]) -> List[str]:
    issues = []
    for step in trace:
        name = REQUIRED_FIELDS.get(step.kind)
        if name and getattr(step, name) is None:
            issues.append(f"step {step.step_index}: {step.kind.value} step has no {name}")
    return issues


def _check_cycles(problem: DividendDivisor, trace: Sequence[DivisionStep]) -> List[str]:
    issues = []
    previous: Optional[DivisionStep] = None  # last cycle step seen
    working: Optional[int] = None  # number being divided in the open cycle
    quotient_digit: Optional[int] = None
    divide_columns = set()

    for step in trace:
        if step.kind not in CYCLE_KINDS:
            continue

        if previous is None:
            if step.kind != StepKind.DIVIDE:
                issues.append(f"step {step.step_index}: cycle starts with {step.kind.value}, expected divide")
        elif step.kind not in _NEXT_IN_CYCLE[previous.kind]:
            issues.append(
                f"step {step.step_index}: {step.kind.value} cannot follow {previous.kind.value}"
            )

        if step.kind == StepKind.DIVIDE:
            quotient_digit = step.quotient_digit
            if step.column_position in divide_columns:
                issues.append(f"step {step.step_index}: second quotient digit for column {step.column_position}")
            divide_columns.add(step.column_position)
            if quotient_digit is not None and not 0 <= quotient_digit <= 9:
                issues.append(f"step {step.step_index}: quotient digit {quotient_digit} is not 0-9")
            if previous is None:
                working = _leading_number(problem, step.column_position)
            elif previous.kind == StepKind.BRING_DOWN:
                working = previous.working_number
            elif previous.kind == StepKind.SUBTRACT:
                # A new cycle without bringing anything down
                working = previous.difference

        elif previous is not None and step.kind in (StepKind.MULTIPLY, StepKind.SUBTRACT):
            if step.column_position != previous.column_position:
                issues.append(
                    f"step {step.step_index}: {step.kind.value} at column {step.column_position}, "
                    f"cycle is at column {previous.column_position}"
                )
            if step.kind == StepKind.MULTIPLY and None not in (step.product, quotient_digit):
                if step.product != quotient_digit * problem.divisor:
                    issues.append(
                        f"step {step.step_index}: product {step.product} != "
                        f"{quotient_digit} × {problem.divisor}"
                    )
            if (step.kind == StepKind.SUBTRACT and previous.kind == StepKind.MULTIPLY
                    and None not in (step.difference, previous.product, working)):
                if step.difference != working - previous.product:
                    issues.append(
                        f"step {step.step_index}: difference {step.difference} != "
                        f"{working} - {previous.product}"
                    )

        elif step.kind == StepKind.BRING_DOWN and previous is not None:
            if step.column_position <= previous.column_position:
                issues.append(
                    f"step {step.step_index}: bring_down at column {step.column_position} "
                    f"does not move right of column {previous.column_position}"
                )
            expected = _brought_down(problem, previous, step)
            if expected is not None and step.working_number is not None \
                    and step.working_number != expected:
                issues.append(
                    f"step {step.step_index}: working number {step.working_number}, expected {expected}"
                )

        previous = step

    return issues


def _leading_number(problem: DividendDivisor, column: int) -> Optional[int]:
    """Number formed by the dividend digits in columns 0..column."""
    text = str(problem.dividend)
    if not 0 <= column < len(text):
        return None
    return int(text[:column + 1])


def _brought_down(problem: DividendDivisor, previous: DivisionStep,
                  step: DivisionStep) -> Optional[int]:
    """Expected working number after a bring-down, when it can be derived."""
    if previous.kind != StepKind.SUBTRACT or previous.difference is None:
        return None
    digits = problem.dividend_digits
    if not 0 <= step.column_position < len(digits):
        return None
    return previous.difference * 10 + digits[step.column_position]
