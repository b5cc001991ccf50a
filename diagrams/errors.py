"""
Diagram Errors - Error taxonomy for step-disclosure diagrams.

Raised at construction:
    - InvalidStageCount: cursor built with fewer than one stage
    - InvalidProblem: negative dividend or non-positive divisor
    - InvalidTrace: trace fails validation

Returned as result-level values (never raised into rendering):
    - ColumnOutOfRange: a digit would be placed outside the dividend columns
    - IncompleteTrace: final stage reached but the trace never finishes
"""

from typing import List, Optional, Tuple


class DiagramError(Exception):
    """Base class for all diagram errors."""


class InvalidStageCount(DiagramError, ValueError):
    """A StepCursor needs at least one stage."""

    def __init__(self, total_stages: int):
        self.total_stages = total_stages
        super().__init__(f"total_stages must be >= 1, got {total_stages}")


class InvalidProblem(DiagramError, ValueError):
    """Dividend/divisor pair that long division cannot be shown for."""


class InvalidTrace(DiagramError, ValueError):
    """A division trace broke one or more of its invariants."""

    def __init__(self, issues: List[str]):
        self.issues = list(issues)
        summary = "; ".join(self.issues[:3])
        if len(self.issues) > 3:
            summary += f" (+{len(self.issues) - 3} more)"
        super().__init__(f"invalid division trace: {summary}")


class ColumnOutOfRange(DiagramError):
    """
    A value anchored at a column would spill outside the dividend.

    This always points at a defect in the upstream trace (column position
    and dividend length disagree). Digits are never clamped or dropped.
    """

    def __init__(self, value: int, column_position: int, span: Tuple[int, int],
                 dividend_length: int, field: Optional[str] = None,
                 step_index: Optional[int] = None):
        self.value = value
        self.column_position = column_position
        self.span = span
        self.dividend_length = dividend_length
        self.field = field
        self.step_index = step_index

        where = f" ({field})" if field else ""
        step = f" at step {step_index}" if step_index is not None else ""
        super().__init__(
            f"value {value}{where}{step} anchored at column {column_position} "
            f"needs columns {span[0]}..{span[1]}, "
            f"dividend only has columns 0..{dividend_length - 1}"
        )


class IncompleteTrace(DiagramError):
    """The cursor reached the last stage but no remainder/complete step exists."""

    def __init__(self, total_steps: int):
        self.total_steps = total_steps
        super().__init__(
            f"trace of {total_steps} steps has no 'complete' or 'remainder' step"
        )


def error_to_dict(error: DiagramError) -> dict:
    """Serialize an error value for API responses."""
    return {
        "type": type(error).__name__,
        "message": str(error),
    }
