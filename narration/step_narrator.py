"""
Step Narrator - LLM-written explanations for long-division steps.

Features:
    - Kid-friendly narration of one step, given the problem and the step
    - Socratic hints that never reveal the value being asked for
    - Whole-trace narration that keeps the numbers untouched

The LLM only writes words. Every number comes from the solution trace;
if the model call fails the step keeps its existing explanation.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from langchain_openai import ChatOpenAI
from langchain_core.messages import HumanMessage, SystemMessage

from diagrams.division import DividendDivisor, DivisionStep, StepKind

logger = logging.getLogger(__name__)


@dataclass
class NarrationContext:
    """Who the narration is for."""
    grade_level: str = "elementary"  # elementary, middle_school
    language: str = "English"
    max_sentences: int = 2


# What each step asks the student to do, for hint prompts
_STEP_GOALS = {
    StepKind.SETUP: "set up the division bracket",
    StepKind.CHECK: "check the answer by multiplying back",
    StepKind.DIVIDE: "find how many times the divisor fits into the working number",
    StepKind.MULTIPLY: "multiply the divisor by the new quotient digit",
    StepKind.SUBTRACT: "subtract the product from the working number",
    StepKind.BRING_DOWN: "bring down the next digit of the dividend",
    StepKind.REMAINDER: "read off the remainder",
    StepKind.COMPLETE: "state the final answer",
}


class StepNarrator:
    """
    Narrates division steps with an LLM.

    Philosophy:
    - Short, concrete sentences with the actual numbers
    - Name the operation before the result
    - Hints ask a smaller question instead of giving the answer
    """

    def __init__(self, model: str = "gpt-4o-mini", temperature: float = 0.4,
                 llm: Optional[ChatOpenAI] = None):
        self.llm = llm or ChatOpenAI(model=model, temperature=temperature)

    def create_system_prompt(self, context: NarrationContext) -> str:
        """System prompt tuned to the audience."""
        if context.grade_level == "elementary":
            tone = "warm and simple. Use words a 9-year-old knows."
        else:
            tone = "clear and encouraging. Use correct math vocabulary."

        return f"""You are a math tutor narrating a long division one step at a time.

YOUR TONE: Be {tone}

RULES:
- Reply in {context.language}
- At most {context.max_sentences} sentences
- Use ONLY the numbers you are given, never compute new ones
- NO LaTeX - write math as plain text: "156 ÷ 7"
- No greetings, no lists"""

    # ==================== Narration ====================

    def narrate_step(self, problem: DividendDivisor, step: DivisionStep,
                     context: Optional[NarrationContext] = None) -> str:
        """Explanation for one step. Falls back to the step's own text on failure."""
        context = context or NarrationContext()
        prompt = f"""Problem: {problem.dividend} ÷ {problem.divisor}

Current step: {step.kind.value}
Step facts: {self._describe(step)}

Explain this step to the student."""

        messages = [
            SystemMessage(content=self.create_system_prompt(context)),
            HumanMessage(content=prompt),
        ]
        try:
            response = self.llm.invoke(messages)
        except Exception:
            logger.exception("Narration failed for step %d", step.step_index)
            return step.explanation or ""

        text = (response.content or "").strip()
        return text or step.explanation or ""

    def narrate_trace(self, problem: DividendDivisor, trace: List[DivisionStep],
                      context: Optional[NarrationContext] = None) -> List[DivisionStep]:
        """Copy of the trace with every explanation rewritten."""
        return [
            step.with_explanation(self.narrate_step(problem, step, context))
            for step in trace
        ]

    def hint(self, problem: DividendDivisor, step: DivisionStep) -> str:
        """Socratic hint for a step (not the answer!)."""
        goal = _STEP_GOALS.get(step.kind, "do the next step")
        prompt = f"""The student is working on {problem.dividend} ÷ {problem.divisor}.
They are stuck on this step: {goal}.

Generate a Socratic HINT that:
1. Points them in the right direction
2. Does NOT give the answer
3. Asks a simpler question that leads to the answer

Keep it to 1-2 sentences."""

        messages = [HumanMessage(content=prompt)]
        try:
            response = self.llm.invoke(messages)
        except Exception:
            logger.exception("Hint generation failed for step %d", step.step_index)
            return f"Try to {goal}."
        return (response.content or "").strip() or f"Try to {goal}."

    @staticmethod
    def _describe(step: DivisionStep) -> str:
        facts = [f"column {step.column_position}"]
        for name in ("quotient_digit", "product", "difference", "working_number", "remainder"):
            value = getattr(step, name)
            if value is not None:
                facts.append(f"{name.replace('_', ' ')} = {value}")
        if step.calculation:
            facts.append(f"calculation: {step.calculation}")
        return ", ".join(facts)
