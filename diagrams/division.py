"""
Division Model - Problem constants and the atomic steps of a long division.

A problem generator produces a DividendDivisor plus an ordered trace of
DivisionStep records. Everything downstream (stages, layout, practice)
only reads these records.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt

from .errors import InvalidProblem


class StepKind(str, Enum):
    """Kinds of atomic division steps."""
    SETUP = "setup"
    CHECK = "check"
    DIVIDE = "divide"
    MULTIPLY = "multiply"
    SUBTRACT = "subtract"
    BRING_DOWN = "bring_down"
    REMAINDER = "remainder"
    COMPLETE = "complete"


# Kinds that make up one divide -> multiply -> subtract -> [bring_down] cycle
CYCLE_KINDS = (StepKind.DIVIDE, StepKind.MULTIPLY, StepKind.SUBTRACT, StepKind.BRING_DOWN)

# Kinds that end a complete trace
TERMINAL_KINDS = (StepKind.REMAINDER, StepKind.COMPLETE)

# Field each kind must carry
REQUIRED_FIELDS = {
    StepKind.DIVIDE: "quotient_digit",
    StepKind.MULTIPLY: "product",
    StepKind.SUBTRACT: "difference",
    StepKind.BRING_DOWN: "working_number",
}


@dataclass(frozen=True)
class DivisionStep:
    """One atomic step of the solution trace."""
    step_index: int
    kind: StepKind
    column_position: int
    quotient_digit: Optional[int] = None  # divide
    product: Optional[int] = None  # multiply
    difference: Optional[int] = None  # subtract
    working_number: Optional[int] = None  # bring_down
    remainder: Optional[int] = None  # remainder
    explanation: Optional[str] = None
    calculation: Optional[str] = None  # e.g. "7 × 2 = 14"

    def __post_init__(self):
        # Allow plain strings for kind ("divide") as well as StepKind
        if not isinstance(self.kind, StepKind):
            object.__setattr__(self, "kind", StepKind(self.kind))

    @classmethod
    def from_dict(cls, data: Dict) -> "DivisionStep":
        """
        Build a step from snake_case or camelCase JSON.

        Raises:
            pydantic.ValidationError: unknown kind, or a non-integer value
        """
        return TraceStepModel.model_validate(data).to_step()

    def to_dict(self) -> Dict:
        """JSON-friendly dict with None fields dropped."""
        result = {
            "step_index": self.step_index,
            "kind": self.kind.value,
            "column_position": self.column_position,
        }
        for name in ("quotient_digit", "product", "difference", "working_number",
                     "remainder", "explanation", "calculation"):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        return result

    def with_explanation(self, explanation: str) -> "DivisionStep":
        """Copy of this step with a new explanation."""
        return replace(self, explanation=explanation)


@dataclass(frozen=True)
class DividendDivisor:
    """
    Problem constants.

    Invariant: dividend == divisor * quotient + remainder, 0 <= remainder < divisor
    """
    dividend: int
    divisor: int

    def __post_init__(self):
        if self.dividend < 0:
            raise InvalidProblem(f"dividend must be non-negative, got {self.dividend}")
        if self.divisor <= 0:
            raise InvalidProblem(f"divisor must be positive, got {self.divisor}")

    @property
    def quotient(self) -> int:
        return self.dividend // self.divisor

    @property
    def remainder(self) -> int:
        return self.dividend % self.divisor

    @property
    def dividend_digits(self) -> List[int]:
        return [int(ch) for ch in str(self.dividend)]

    @property
    def dividend_length(self) -> int:
        return len(str(self.dividend))

    def to_dict(self) -> Dict:
        return {
            "dividend": self.dividend,
            "divisor": self.divisor,
            "quotient": self.quotient,
            "remainder": self.remainder,
        }


class TraceStepModel(BaseModel):
    """
    Wire format of one step, as sent by the web client or an LLM.

    Accepts the snake_case field names as well as the client's names
    ("step", "type", "position", "quotientDigit", ...). Numbers must be
    JSON integers: "1", 1.0 and null positions are rejected.
    """
    model_config = ConfigDict(extra="ignore")

    step_index: StrictInt = Field(validation_alias=AliasChoices("step_index", "stepIndex", "step"))
    kind: StepKind = Field(validation_alias=AliasChoices("kind", "type"))
    column_position: StrictInt = Field(
        validation_alias=AliasChoices("column_position", "columnPosition", "position"))
    quotient_digit: Optional[StrictInt] = Field(
        default=None, validation_alias=AliasChoices("quotient_digit", "quotientDigit"))
    product: Optional[StrictInt] = None
    difference: Optional[StrictInt] = None
    working_number: Optional[StrictInt] = Field(
        default=None, validation_alias=AliasChoices("working_number", "workingNumber"))
    remainder: Optional[StrictInt] = None
    explanation: Optional[str] = None
    calculation: Optional[str] = None

    def to_step(self) -> DivisionStep:
        return DivisionStep(**self.model_dump())


def load_trace(raw_steps: List[Dict]) -> List[DivisionStep]:
    """Parse a list of JSON step dicts into DivisionStep records."""
    return [DivisionStep.from_dict(raw) for raw in raw_steps]
