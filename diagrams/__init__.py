"""
Diagrams module - Step disclosure and long-division layout.

Components:
    - step_cursor: Saturating cursor over named stages
    - division: Problem constants and atomic division steps
    - columns: Right-aligned digit placement under the dividend
    - stages: Trace -> revealable stages
    - layout_engine: Column-aligned layout for the visible trace prefix
    - trace_validation: Invariant checks for upstream traces
    - problem_generator: Random problems and their solution traces
    - practice: Step-by-step answer grading
"""

from .errors import (
    DiagramError,
    InvalidStageCount,
    InvalidProblem,
    InvalidTrace,
    ColumnOutOfRange,
    IncompleteTrace,
)
from .step_cursor import StepCursor
from .division import DividendDivisor, DivisionStep, StepKind, TraceStepModel, load_trace
from .columns import DigitCell, place_digits
from .stages import Stage, build_stages
from .layout_engine import (
    LongDivisionLayoutEngine,
    LayoutResult,
    WorkRow,
    QuotientDigit,
    BringDownArrow,
    helper_table,
)
from .trace_validation import validate_trace, ensure_valid_trace
from .problem_generator import generate_problem, build_trace
from .practice import PracticeSession, StepFeedback

__all__ = [
    "DiagramError",
    "InvalidStageCount",
    "InvalidProblem",
    "InvalidTrace",
    "ColumnOutOfRange",
    "IncompleteTrace",
    "StepCursor",
    "DividendDivisor",
    "DivisionStep",
    "StepKind",
    "TraceStepModel",
    "load_trace",
    "DigitCell",
    "place_digits",
    "Stage",
    "build_stages",
    "LongDivisionLayoutEngine",
    "LayoutResult",
    "WorkRow",
    "QuotientDigit",
    "BringDownArrow",
    "helper_table",
    "validate_trace",
    "ensure_valid_trace",
    "generate_problem",
    "build_trace",
    "PracticeSession",
    "StepFeedback",
]
