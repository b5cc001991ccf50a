"""
Step Cursor - Progressive step disclosure for diagrams.

Features:
    - Saturating advance/retreat (never wraps, never leaves the range)
    - Cumulative reveal: a stage is visible once the cursor reaches it
    - Named stages with is_visible(id) / is_current(id)
    - Optional change callback, fired only when the index actually moves

Visibility is a pure function of the current index. Retreating hides
stages again; nothing is remembered about earlier positions.
"""

from typing import Callable, Dict, List, Optional, Sequence

from .errors import InvalidStageCount


class StepCursor:
    """
    Integer cursor over an ordered list of stages.

    Invariant: 0 <= index < total
    """

    def __init__(self, total_stages: int, initial: int = 0,
                 on_change: Optional[Callable[[int], None]] = None):
        if total_stages < 1:
            raise InvalidStageCount(total_stages)

        self.total = total_stages
        self.index = self._clamp(initial)
        self.on_change = on_change
        self.stage_ids: List[str] = []
        self._positions: Dict[str, int] = {}

    @classmethod
    def for_stages(cls, stage_ids: Sequence[str], initial: int = 0,
                   on_change: Optional[Callable[[int], None]] = None) -> "StepCursor":
        """Cursor over named stages, e.g. ["setup", "divide-1", "complete-1"]."""
        cursor = cls(len(stage_ids), initial=initial, on_change=on_change)
        cursor.stage_ids = list(stage_ids)
        cursor._positions = {sid: i for i, sid in enumerate(stage_ids)}
        return cursor

    def _clamp(self, index: int) -> int:
        return max(0, min(self.total - 1, index))

    def _move_to(self, index: int) -> int:
        if index != self.index:
            self.index = index
            if self.on_change:
                self.on_change(index)
        return self.index

    # ==================== Navigation ====================

    def advance(self) -> int:
        """Step forward; no-op on the last stage. Returns the new index."""
        if self.index < self.total - 1:
            return self._move_to(self.index + 1)
        return self.index

    def retreat(self) -> int:
        """Step back; no-op on the first stage. Returns the new index."""
        if self.index > 0:
            return self._move_to(self.index - 1)
        return self.index

    def go_to(self, index: int) -> int:
        """Jump to a stage, clamped into range."""
        return self._move_to(self._clamp(index))

    def reset(self) -> int:
        return self._move_to(0)

    # ==================== Visibility ====================

    def is_at_or_after(self, target_index: int) -> bool:
        """The visibility predicate: a stage shows once the cursor reaches it."""
        return self.index >= target_index

    def position_of(self, stage_id: str) -> int:
        """Index of a named stage. Raises KeyError for unknown ids."""
        return self._positions[stage_id]

    def is_visible(self, stage_id: str) -> bool:
        return self.is_at_or_after(self.position_of(stage_id))

    def is_current(self, stage_id: str) -> bool:
        return self.index == self.position_of(stage_id)

    @property
    def current_stage_id(self) -> Optional[str]:
        if not self.stage_ids:
            return None
        return self.stage_ids[self.index]

    # ==================== Status ====================

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1

    @property
    def progress(self) -> float:
        """Fraction of the way through, 0.0 to 1.0 (1.0 for a single stage)."""
        if self.total == 1:
            return 1.0
        return self.index / (self.total - 1)

    def __repr__(self) -> str:
        return f"StepCursor(index={self.index}, total={self.total})"
