"""
Long Division Layout Engine - Column-aligned layout from a partially visible trace.

Features:
    - Visible prefix of the trace, cut off at the StepCursor position
    - Quotient digits anchored above their dividend columns
    - Work rows grouped by adjacency of column positions (one per cycle)
    - Right-aligned digit placement with out-of-range detection
    - Bring-down arrow anchors derived from the logical row sequence

The layout is recomputed from scratch on every call. compute_layout has no
side effects, so renderers may call it as often as they like.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .columns import DigitCell, place_digits
from .division import DividendDivisor, DivisionStep, StepKind, TERMINAL_KINDS
from .errors import ColumnOutOfRange, DiagramError, IncompleteTrace, InvalidTrace, error_to_dict
from .stages import CYCLE, Stage, build_stages, final_stage_index, stage_of_positions
from .step_cursor import StepCursor

logger = logging.getLogger(__name__)

# Steps with no value under the dividend; they never open a row
_VALUELESS_KINDS = (StepKind.SETUP, StepKind.CHECK, StepKind.COMPLETE)


@dataclass
class QuotientDigit:
    """A quotient digit written above one dividend column."""
    digit: int
    column_position: int


@dataclass
class WorkRow:
    """
    One subtraction cycle under the dividend.

    Values are listed top to bottom: working number (brought down),
    product, difference. A trailing remainder row carries only remainder.
    """
    column_position: int
    product: Optional[int] = None
    difference: Optional[int] = None
    working_number: Optional[int] = None
    remainder: Optional[int] = None
    show_product: bool = False
    show_difference: bool = False
    show_bring_down: bool = False
    show_remainder: bool = False
    brought_down_digit: Optional[int] = None  # dividend digit copied down
    step_indices: Dict[str, int] = field(default_factory=dict)  # value name -> trace step
    placements: Dict[str, Tuple[DigitCell, ...]] = field(default_factory=dict)

    VALUE_ORDER = ("working_number", "product", "difference", "remainder")

    @property
    def is_empty(self) -> bool:
        return not (self.show_product or self.show_difference
                    or self.show_bring_down or self.show_remainder)

    def values(self) -> List[Tuple[str, int]]:
        """(name, value) pairs of the shown values, top to bottom."""
        return [
            (name, getattr(self, name))
            for name in self.VALUE_ORDER
            if getattr(self, name) is not None
        ]

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class BringDownArrow:
    """
    Logical anchor for the bring-down arrow.

    The arrow starts under dividend column `column` and ends on line
    `line_index` of the work area, where every row reserves LINES_PER_ROW
    lines. Renderers multiply by their own line height.
    """
    column: int
    row_index: int
    line_index: int


@dataclass
class LayoutResult:
    """Renderer-ready layout for one cursor position."""
    quotient_digits: List[QuotientDigit]
    work_rows: List[WorkRow]
    is_complete: bool
    stage_index: int = 0
    total_stages: int = 1
    current_stage_id: Optional[str] = None
    bring_down_arrow: Optional[BringDownArrow] = None
    errors: List[DiagramError] = field(default_factory=list)
    warnings: List[DiagramError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """False when the trace produced digits that cannot be placed."""
        return not self.errors

    @property
    def progress(self) -> float:
        if self.total_stages <= 1:
            return 1.0
        return self.stage_index / (self.total_stages - 1)

    def raise_for_errors(self):
        """Raise the first result-level error, for callers that prefer exceptions."""
        if self.errors:
            raise self.errors[0]

    def to_dict(self) -> Dict:
        return {
            "quotient_digits": [asdict(q) for q in self.quotient_digits],
            "work_rows": [row.to_dict() for row in self.work_rows],
            "is_complete": self.is_complete,
            "stage_index": self.stage_index,
            "total_stages": self.total_stages,
            "current_stage_id": self.current_stage_id,
            "progress": self.progress,
            "bring_down_arrow": asdict(self.bring_down_arrow) if self.bring_down_arrow else None,
            "errors": [error_to_dict(e) for e in self.errors],
            "warnings": [error_to_dict(w) for w in self.warnings],
        }


def helper_table(divisor: int) -> List[Tuple[int, int]]:
    """Multiplication helper shown beside the diagram: (m, m × divisor) for m in 1..9."""
    return [(m, m * divisor) for m in range(1, 10)]


class LongDivisionLayoutEngine:
    """
    Turns the visible prefix of a division trace into a LayoutResult.

    Usage:
        engine = LongDivisionLayoutEngine(problem, trace)
        cursor = engine.create_cursor()
        cursor.advance()
        layout = engine.compute_layout(cursor)
    """

    # Lines reserved per work row: working number, product, difference
    LINES_PER_ROW = 3

    def __init__(self, problem: DividendDivisor, trace: Sequence[DivisionStep],
                 granularity: str = CYCLE):
        self.problem = problem
        self.trace: Tuple[DivisionStep, ...] = tuple(trace)
        self.granularity = granularity

        self.stages: List[Stage] = build_stages(self.trace, granularity)
        self._stage_of = stage_of_positions(self.stages)
        self._final_index = final_stage_index(self.stages)
        self._has_terminal = any(step.kind in TERMINAL_KINDS for step in self.trace)

    @classmethod
    def for_problem(cls, problem: DividendDivisor,
                    granularity: str = CYCLE) -> "LongDivisionLayoutEngine":
        """Engine over the generated trace for a problem."""
        from .problem_generator import build_trace
        return cls(problem, build_trace(problem), granularity=granularity)

    # ==================== Stages & Cursor ====================

    @property
    def total_stages(self) -> int:
        return max(len(self.stages), 1)

    @property
    def stage_ids(self) -> List[str]:
        return [stage.stage_id for stage in self.stages]

    @property
    def final_stage_index(self) -> int:
        return self._final_index

    def create_cursor(self, initial: int = 0, on_change=None) -> StepCursor:
        """Cursor sized to this trace's stages."""
        if not self.stages:
            return StepCursor(1, initial=initial, on_change=on_change)
        return StepCursor.for_stages(self.stage_ids, initial=initial, on_change=on_change)

    def visible_steps(self, stage_index: int) -> List[DivisionStep]:
        """Trace steps whose stage index is <= stage_index, in trace order."""
        return [step for _, step in self._visible(stage_index)]

    def _visible(self, stage_index: int) -> List[Tuple[int, DivisionStep]]:
        return [
            (position, step)
            for position, step in enumerate(self.trace)
            if self._stage_of[position] <= stage_index
        ]

    # ==================== Layout ====================

    def compute_layout(self, cursor: Union[StepCursor, int]) -> LayoutResult:
        """
        Compute the layout for a cursor (or a bare stage index).

        ColumnOutOfRange and duplicate quotient columns are reported in
        `errors`; IncompleteTrace is reported in `warnings`. Nothing here
        raises for a malformed trace.
        """
        stage_index = cursor.index if isinstance(cursor, StepCursor) else int(cursor)
        stage_index = max(0, min(self.total_stages - 1, stage_index))

        visible = self._visible(stage_index)
        errors: List[DiagramError] = []
        warnings: List[DiagramError] = []

        quotient_digits = self._quotient_digits(visible, errors)
        work_rows, bring_down_rows = self._group_work_rows(visible)
        self._place_row_digits(work_rows, errors)

        at_final = stage_index >= self._final_index
        if at_final and not self._has_terminal:
            warnings.append(IncompleteTrace(len(self.trace)))

        if errors:
            logger.debug("Layout at stage %d has %d placement errors", stage_index, len(errors))

        return LayoutResult(
            quotient_digits=quotient_digits,
            work_rows=work_rows,
            is_complete=at_final and self._has_terminal,
            stage_index=stage_index,
            total_stages=self.total_stages,
            current_stage_id=self.stages[stage_index].stage_id if self.stages else None,
            bring_down_arrow=self._bring_down_arrow(stage_index, bring_down_rows),
            errors=errors,
            warnings=warnings,
        )

    def _quotient_digits(self, visible: List[Tuple[int, DivisionStep]],
                         errors: List[DiagramError]) -> List[QuotientDigit]:
        digits: List[QuotientDigit] = []
        seen_columns = set()

        for _, step in visible:
            if step.kind != StepKind.DIVIDE or step.quotient_digit is None:
                continue
            if step.column_position in seen_columns:
                errors.append(InvalidTrace([
                    f"step {step.step_index}: second quotient digit for column {step.column_position}"
                ]))
                continue
            try:
                place_digits(step.quotient_digit, step.column_position,
                             self.problem.dividend_length,
                             field="quotient_digit", step_index=step.step_index)
            except ColumnOutOfRange as exc:
                errors.append(exc)
                continue

            seen_columns.add(step.column_position)
            digits.append(QuotientDigit(digit=step.quotient_digit,
                                        column_position=step.column_position))

        digits.sort(key=lambda q: q.column_position)
        return digits

    def _group_work_rows(self, visible: List[Tuple[int, DivisionStep]]
                         ) -> Tuple[List[WorkRow], Dict[int, int]]:
        """
        Single pass over the visible steps.

        A row closes whenever the column changes; two runs of the same
        column separated by another column stay separate rows. Setup, check
        and complete steps open no row but close one on a column change.
        Returns the rows plus trace position -> row index for bring-down steps.
        """
        rows: List[WorkRow] = []
        bring_down_rows: Dict[int, int] = {}
        current: Optional[WorkRow] = None

        for position, step in visible:
            if step.kind == StepKind.REMAINDER:
                if current is not None and not current.is_empty:
                    rows.append(current)
                current = None

                value = step.remainder if step.remainder is not None else self.problem.remainder
                if value:
                    rows.append(WorkRow(
                        column_position=step.column_position,
                        remainder=value,
                        show_remainder=True,
                        step_indices={"remainder": step.step_index},
                    ))
                continue

            if step.kind in _VALUELESS_KINDS:
                # A column change still closes the open row
                if current is not None and step.column_position != current.column_position:
                    if not current.is_empty:
                        rows.append(current)
                    current = None
                continue

            if current is None or step.column_position != current.column_position:
                if current is not None and not current.is_empty:
                    rows.append(current)
                current = WorkRow(column_position=step.column_position)

            if step.kind == StepKind.MULTIPLY and step.product is not None:
                current.product = step.product
                current.show_product = True
                current.step_indices["product"] = step.step_index
            elif step.kind == StepKind.SUBTRACT and step.difference is not None:
                current.difference = step.difference
                current.show_difference = True
                current.step_indices["difference"] = step.step_index
            elif step.kind == StepKind.BRING_DOWN and step.working_number is not None:
                current.working_number = step.working_number
                current.show_bring_down = True
                current.step_indices["working_number"] = step.step_index
                current.brought_down_digit = self._dividend_digit(step.column_position)
                # The open row is appended next, so it will sit at len(rows)
                bring_down_rows[position] = len(rows)

        if current is not None and not current.is_empty:
            rows.append(current)

        return rows, bring_down_rows

    def _place_row_digits(self, rows: List[WorkRow], errors: List[DiagramError]):
        length = self.problem.dividend_length
        for row in rows:
            for name, value in row.values():
                try:
                    row.placements[name] = place_digits(
                        value, row.column_position, length,
                        field=name, step_index=row.step_indices.get(name),
                    )
                except ColumnOutOfRange as exc:
                    errors.append(exc)

    def _bring_down_arrow(self, stage_index: int,
                          bring_down_rows: Dict[int, int]) -> Optional[BringDownArrow]:
        """Arrow for the bring-down performed in the current stage, if any."""
        if not self.stages:
            return None

        arrow = None
        for position in self.stages[stage_index].positions:
            if position in bring_down_rows:
                row_index = bring_down_rows[position]
                arrow = BringDownArrow(
                    column=self.trace[position].column_position,
                    row_index=row_index,
                    line_index=row_index * self.LINES_PER_ROW,
                )
        return arrow

    def _dividend_digit(self, column: int) -> Optional[int]:
        digits = self.problem.dividend_digits
        if 0 <= column < len(digits):
            return digits[column]
        return None
