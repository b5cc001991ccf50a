"""
Practice Session - Student works a long division one value at a time.

Each answerable step (quotient digit, product, difference, brought-down
number) is checked against the solution trace. A step is retried until it
is answered correctly or the attempts run out, then the session moves on.
Every step carries an instruction and a hint worded for the divisor; the
hint comes back with a wrong answer while attempts remain.

Step statuses: pending -> active -> correct | incorrect
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from .division import REQUIRED_FIELDS, DividendDivisor, DivisionStep
from .problem_generator import build_trace

PENDING = "pending"
ACTIVE = "active"
CORRECT = "correct"
INCORRECT = "incorrect"

# What the student is asked for at each answerable step
STEP_INSTRUCTIONS = {
    "divide": "How many times does {divisor} go into the working number?",
    "multiply": "What is {divisor} × the quotient digit you just wrote?",
    "subtract": "Subtract the product from the number above",
    "bring_down": "Bring down the next digit and write the new working number",
}

STEP_HINTS = {
    "divide": "Think: how many times does {divisor} fit into the number without going over?",
    "multiply": "Multiply {divisor} by the quotient digit you just found",
    "subtract": "Subtract to find what's left over",
    "bring_down": "Write the remainder, then add the next digit from the dividend",
}


@dataclass
class PracticeStep:
    """One value the student has to enter."""
    step_index: int  # index into the solution trace
    kind: str
    column_position: int
    expected: str
    status: str = PENDING
    attempts: int = 0
    instruction: str = ""
    hint: str = ""


@dataclass
class StepFeedback:
    """Result of one submitted answer."""
    step_index: int
    is_correct: bool
    status: str
    attempts: int
    attempts_left: int
    expected: Optional[str] = None  # revealed once attempts run out
    hint: Optional[str] = None  # after a miss that leaves attempts
    session_complete: bool = False


@dataclass
class PracticeSession:
    """Step-by-step grading of one division problem."""
    dividend: int
    divisor: int
    max_attempts: int = 3
    steps: List[PracticeStep] = field(default_factory=list)
    current: int = 0

    def __post_init__(self):
        if not self.steps:
            problem = DividendDivisor(self.dividend, self.divisor)
            self.steps = practice_steps(build_trace(problem), self.divisor)
        if self.steps and self.current < len(self.steps):
            self.steps[self.current].status = ACTIVE

    @classmethod
    def for_problem(cls, problem: DividendDivisor, max_attempts: int = 3) -> "PracticeSession":
        return cls(dividend=problem.dividend, divisor=problem.divisor, max_attempts=max_attempts)

    # ==================== Grading ====================

    @property
    def current_step(self) -> Optional[PracticeStep]:
        if self.current < len(self.steps):
            return self.steps[self.current]
        return None

    @property
    def is_complete(self) -> bool:
        return self.current >= len(self.steps)

    @property
    def all_correct(self) -> bool:
        return self.is_complete and all(s.status == CORRECT for s in self.steps)

    @property
    def total_attempts(self) -> int:
        return sum(s.attempts for s in self.steps)

    def submit(self, answer: str) -> StepFeedback:
        """
        Grade an answer for the current step.

        Raises:
            ValueError: if every step has already been answered
        """
        step = self.current_step
        if step is None:
            raise ValueError("practice session is already complete")

        step.attempts += 1
        is_correct = answer_matches(answer, step.expected)

        if is_correct:
            step.status = CORRECT
        elif step.attempts >= self.max_attempts:
            step.status = INCORRECT
        else:
            step.status = ACTIVE

        if step.status in (CORRECT, INCORRECT):
            self.current += 1
            if self.current < len(self.steps):
                self.steps[self.current].status = ACTIVE

        return StepFeedback(
            step_index=step.step_index,
            is_correct=is_correct,
            status=step.status,
            attempts=step.attempts,
            attempts_left=max(0, self.max_attempts - step.attempts),
            expected=step.expected if step.status == INCORRECT else None,
            hint=step.hint if step.status == ACTIVE else None,
            session_complete=self.is_complete,
        )

    def current_hint(self) -> str:
        """
        Static hint for the step being worked on.

        Raises:
            ValueError: if every step has already been answered
        """
        step = self.current_step
        if step is None:
            raise ValueError("practice session is already complete")
        return step.hint

    # ==================== Serialization ====================

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "PracticeSession":
        steps = [PracticeStep(**s) for s in data.get("steps", [])]
        return cls(
            dividend=data["dividend"],
            divisor=data["divisor"],
            max_attempts=data.get("max_attempts", 3),
            steps=steps,
            current=data.get("current", 0),
        )


def answer_matches(answer: str, expected: str) -> bool:
    """Numeric comparison when the answer is an integer ("016" == "16")."""
    text = str(answer).strip()
    try:
        return int(text) == int(expected)
    except ValueError:
        return text == expected


def practice_steps(trace: List[DivisionStep], divisor: int) -> List[PracticeStep]:
    """The answerable steps of a trace, in order, with prompts for the divisor."""
    result = []
    for step in trace:
        name = REQUIRED_FIELDS.get(step.kind)
        if name is None or getattr(step, name) is None:
            continue
        kind = step.kind.value
        result.append(PracticeStep(
            step_index=step.step_index,
            kind=kind,
            column_position=step.column_position,
            expected=str(getattr(step, name)),
            instruction=STEP_INSTRUCTIONS[kind].format(divisor=divisor),
            hint=STEP_HINTS[kind].format(divisor=divisor),
        ))
    return result
