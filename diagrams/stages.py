"""
Stage Mapping - Groups a flat division trace into revealable stages.

Granularities:
    - "cycle": each divide opens a stage; its multiply, subtract and
      bring_down attach to it. Setup steps share one leading stage;
      check, remainder and complete each get their own stage.
    - "step": every trace step is its own stage.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .division import DivisionStep, StepKind

CYCLE = "cycle"
STEP = "step"
GRANULARITIES = (CYCLE, STEP)

# Kinds that start a new stage in cycle granularity
_STAGE_OPENERS = (StepKind.DIVIDE, StepKind.CHECK, StepKind.REMAINDER, StepKind.COMPLETE)


@dataclass(frozen=True)
class Stage:
    """A revealable group of trace steps."""
    index: int
    stage_id: str  # e.g. "divide-2"
    kind: StepKind  # kind of the step that opened the stage
    positions: Tuple[int, ...]  # positions in the trace list


def build_stages(trace: Sequence[DivisionStep], granularity: str = CYCLE) -> List[Stage]:
    """
    Map a trace onto ordered stages.

    A trace that starts with a non-opening step (e.g. a bare multiply)
    gets a leading stage of that step's kind.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(f"unknown granularity {granularity!r}, expected one of {GRANULARITIES}")

    groups: List[Tuple[StepKind, List[int]]] = []

    for position, step in enumerate(trace):
        if granularity == STEP or not groups:
            groups.append((step.kind, [position]))
            continue

        current_kind = groups[-1][0]
        if step.kind in _STAGE_OPENERS:
            groups.append((step.kind, [position]))
        elif step.kind == StepKind.SETUP and current_kind != StepKind.SETUP:
            groups.append((step.kind, [position]))
        else:
            groups[-1][1].append(position)

    counters: Dict[StepKind, int] = {}
    stages = []
    for index, (kind, positions) in enumerate(groups):
        counters[kind] = counters.get(kind, 0) + 1
        stages.append(Stage(
            index=index,
            stage_id=f"{kind.value}-{counters[kind]}",
            kind=kind,
            positions=tuple(positions),
        ))
    return stages


def stage_of_positions(stages: Sequence[Stage]) -> Dict[int, int]:
    """Trace position -> stage index."""
    return {position: stage.index for stage in stages for position in stage.positions}


def final_stage_index(stages: Sequence[Stage]) -> int:
    """Index of the complete stage, or of the last stage when there is none."""
    for stage in stages:
        if stage.kind == StepKind.COMPLETE:
            return stage.index
    return max(len(stages) - 1, 0)
