"""Tests for diagrams/columns.py"""

import pytest

from diagrams.columns import (
    DigitCell, anchored_span, digit_at, digit_count, digits_of,
    place_digits, render_cells,
)
from diagrams.errors import ColumnOutOfRange


def test_digit_count():
    assert digit_count(0) == 1
    assert digit_count(7) == 1
    assert digit_count(14) == 2
    assert digit_count(1000) == 4


def test_digits_of():
    assert digits_of(0) == [0]
    assert digits_of(156) == [1, 5, 6]


def test_anchored_span_extends_left():
    assert anchored_span(14, 1) == (0, 1)
    assert anchored_span(2, 2) == (2, 2)
    assert anchored_span(156, 2) == (0, 2)


def test_place_digits_right_aligns_on_anchor():
    cells = place_digits(16, 2, dividend_length=3)
    assert cells == (DigitCell(column=1, digit=1), DigitCell(column=2, digit=6))


def test_place_digits_rejects_negative_columns():
    with pytest.raises(ColumnOutOfRange) as info:
        place_digits(12, 0, dividend_length=3, field="product", step_index=2)
    assert info.value.span == (-1, 0)
    assert info.value.field == "product"
    assert "step 2" in str(info.value)


def test_place_digits_rejects_columns_past_the_dividend():
    with pytest.raises(ColumnOutOfRange):
        place_digits(5, 3, dividend_length=3)


@pytest.mark.parametrize("value,anchor", [(7, 0), (36, 2), (1015, 3), (0, 1)])
def test_digit_at_matches_kth_digit_from_right(value, anchor):
    text = str(value)
    for k in range(len(text)):
        assert digit_at(value, anchor, anchor - k) == int(text[-1 - k])
    assert digit_at(value, anchor, anchor + 1) is None
    assert digit_at(value, anchor, anchor - len(text)) is None


def test_render_cells():
    cells = place_digits(14, 1, dividend_length=3)
    assert render_cells(cells, 3) == "14 "
    assert render_cells((), 3, blank=".") == "..."
