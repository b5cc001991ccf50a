"""
Problem Generator - Random long-division problems and their solution traces.

Difficulty levels:
    - easy: 2-digit ÷ 1-digit
    - medium: 3-digit ÷ 1-digit
    - hard: 3-4 digit ÷ 2-digit

Trace column convention: divide, multiply and subtract of a cycle are
anchored at the column of the last dividend digit used so far; the
bring-down that follows is anchored one column to the right.
"""

import random
from typing import List, Optional

from .division import DividendDivisor, DivisionStep, StepKind

DIFFICULTIES = ("easy", "medium", "hard")


def generate_problem(difficulty: str = "medium",
                     rng: Optional[random.Random] = None) -> DividendDivisor:
    """
    Random problem for a difficulty. Unknown difficulties are treated as hard.

    Args:
        difficulty: "easy", "medium" or "hard"
        rng: Optional random source (for reproducible problems)
    """
    rng = rng or random.Random()

    if difficulty == "easy":
        divisor = rng.randint(2, 9)
        quotient = rng.randint(10, 30)
    elif difficulty == "medium":
        divisor = rng.randint(3, 9)
        quotient = rng.randint(50, 150)
    else:
        divisor = rng.randint(11, 25)
        quotient = rng.randint(20, 100)

    dividend = divisor * quotient + rng.randint(0, divisor - 1)
    return DividendDivisor(dividend=dividend, divisor=divisor)


def build_trace(problem: DividendDivisor) -> List[DivisionStep]:
    """
    Full solution trace for a problem.

    Shape: setup, then divide/multiply/subtract[/bring_down] per cycle,
    then remainder and complete. When the dividend is smaller than the
    divisor the quotient is a single 0 written over the first column and
    there are no cycles.
    """
    digits = problem.dividend_digits
    divisor = problem.divisor
    last_column = len(digits) - 1
    steps: List[DivisionStep] = []

    def add(kind: StepKind, column: int, **values) -> None:
        steps.append(DivisionStep(step_index=len(steps), kind=kind,
                                  column_position=column, **values))

    add(StepKind.SETUP, 0,
        explanation=f"Set up {problem.dividend} ÷ {divisor}")

    if problem.dividend < divisor:
        add(StepKind.DIVIDE, 0, quotient_digit=0,
            explanation=f"{divisor} does not go into {problem.dividend}, so the quotient is 0",
            calculation=f"{problem.dividend} < {divisor}")
    else:
        # Take leading digits until the working number holds the divisor
        column = 0
        working = digits[0]
        while working < divisor and column < last_column:
            column += 1
            working = working * 10 + digits[column]

        while True:
            q = working // divisor
            product = q * divisor
            difference = working - product

            add(StepKind.DIVIDE, column, quotient_digit=q,
                explanation=f"How many times does {divisor} go into {working}? {q} times",
                calculation=f"{working} ÷ {divisor} = {q}")
            add(StepKind.MULTIPLY, column, product=product,
                explanation=f"Multiply {q} × {divisor} and write {product} below",
                calculation=f"{q} × {divisor} = {product}")
            add(StepKind.SUBTRACT, column, difference=difference,
                explanation=f"Subtract {product} from {working}",
                calculation=f"{working} - {product} = {difference}")

            if column == last_column:
                break

            column += 1
            working = difference * 10 + digits[column]
            add(StepKind.BRING_DOWN, column, working_number=working,
                explanation=f"Bring down the {digits[column]} to make {working}")

    remainder = problem.remainder
    add(StepKind.REMAINDER, last_column, remainder=remainder,
        explanation=f"Nothing left to bring down, the remainder is {remainder}")
    add(StepKind.COMPLETE, last_column,
        explanation=f"{problem.dividend} ÷ {divisor} = {problem.quotient} R {remainder}"
        if remainder else f"{problem.dividend} ÷ {divisor} = {problem.quotient}",
        calculation=f"{divisor} × {problem.quotient} + {remainder} = {problem.dividend}")

    return steps


def generate_with_trace(difficulty: str = "medium", rng: Optional[random.Random] = None):
    """(problem, trace) pair for a difficulty."""
    problem = generate_problem(difficulty, rng=rng)
    return problem, build_trace(problem)
