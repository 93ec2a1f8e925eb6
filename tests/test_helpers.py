import pytest

from water_rates.utils.helpers import (
    clamp,
    format_currency,
    format_truncated_number,
    is_finite_number,
    round_to,
)


@pytest.mark.parametrize("value,expected", [
    (1, True), (2.5, True), ("3", True), (True, False),
    (float("nan"), False), (float("inf"), False), (None, False), ("abc", False),
])
def test_is_finite_number(value, expected):
    assert is_finite_number(value) is expected


def test_round_to():
    assert round_to(1.23456, 2) == 1.23
    assert round_to(float("nan")) == 0.0


def test_clamp():
    assert clamp(5, 0, 3) == 3
    assert clamp(-1, 0, 3) == 0


def test_formatting():
    assert format_currency(1234567.8) == "$1,234,568"
    assert format_currency(48.75, decimals=2) == "$48.75"
    assert format_currency(float("nan")) == "$0"
    assert format_truncated_number(2_500_000) == "2.5M"
    assert format_truncated_number(1500) == "1.5K"
    assert format_truncated_number(12.34) == "12.3"
