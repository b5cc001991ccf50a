"""
Column Arithmetic - Digit positions under a long-division dividend.

Every number written below the dividend is right-aligned: its last digit
sits in the column it is anchored to and earlier digits extend left.

    156        value 14 anchored at column 1
    14_   ->   occupies columns 0..1
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import ColumnOutOfRange


@dataclass(frozen=True)
class DigitCell:
    """One digit placed in one dividend column."""
    column: int
    digit: int


def digit_count(value: int) -> int:
    """Number of decimal digits in a non-negative value (0 has one digit)."""
    return len(str(abs(value)))


def digits_of(value: int) -> List[int]:
    """Decimal digits, most significant first."""
    return [int(ch) for ch in str(abs(value))]


def anchored_span(value: int, column_position: int) -> Tuple[int, int]:
    """Inclusive (first, last) columns a value occupies when anchored at a column."""
    return column_position - digit_count(value) + 1, column_position


def place_digits(value: int, column_position: int, dividend_length: int,
                 field: Optional[str] = None,
                 step_index: Optional[int] = None) -> Tuple[DigitCell, ...]:
    """
    Place a value's digits so its last digit lands on column_position.

    Args:
        value: Number to place (product, difference, working number...)
        column_position: Column of the least significant digit
        dividend_length: Number of columns available
        field: Optional name of the value, used in error messages
        step_index: Optional trace step, used in error messages

    Returns:
        Digit cells ordered left to right

    Raises:
        ColumnOutOfRange: if any digit would land outside 0..dividend_length-1
    """
    first, last = anchored_span(value, column_position)
    if first < 0 or last > dividend_length - 1:
        raise ColumnOutOfRange(value, column_position, (first, last),
                               dividend_length, field=field, step_index=step_index)

    return tuple(
        DigitCell(column=first + offset, digit=digit)
        for offset, digit in enumerate(digits_of(value))
    )


def digit_at(value: int, column_position: int, column: int) -> Optional[int]:
    """
    Digit of an anchored value shown in a given column, or None if blank.

    The digit at column_position - k is the k-th digit from the right.
    """
    k = column_position - column
    if k < 0 or k >= digit_count(value):
        return None
    return (abs(value) // 10 ** k) % 10


def render_cells(cells: Tuple[DigitCell, ...], dividend_length: int,
                 blank: str = " ") -> str:
    """Render placed digits as a fixed-width string, one character per column."""
    chars = [blank] * dividend_length
    for cell in cells:
        chars[cell.column] = str(cell.digit)
    return "".join(chars)
