"""
Narration module - LLM-written explanations for diagram steps.

Components:
    - step_narrator: Step narration and Socratic hints via ChatOpenAI
"""

from .step_narrator import StepNarrator, NarrationContext

__all__ = [
    "StepNarrator",
    "NarrationContext",
]
