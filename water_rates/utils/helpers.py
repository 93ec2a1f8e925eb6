#!/usr/bin/env python3
"""
Utility functions and helpers used across the application.
Contains common functions for number handling and display formatting.
"""

import math


def is_finite_number(value) -> bool:
    """
    Check whether value is a real, finite number.

    Args:
        value: Anything

    Returns:
        True for finite ints/floats (bools excluded)
    """
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def round_to(value, decimals: int = 4) -> float:
    """
    Round value to a fixed number of decimals, mapping non-finite input to 0.

    Args:
        value: Value to round
        decimals: Decimal places to keep

    Returns:
        Rounded float
    """
    if not is_finite_number(value):
        return 0.0
    return round(float(value), decimals)


def clamp(value: float, min_val: float, max_val: float) -> float:
    return max(min_val, min(max_val, value))


def format_currency(amount: float, decimals: int = 0) -> str:
    """Dollar label with thousands separators; non-finite amounts show as $0."""
    if not is_finite_number(amount):
        amount = 0.0
    return f"${float(amount):,.{decimals}f}"


def format_truncated_number(value: float) -> str:
    """Compact 1.2K / 3.4M style label for chart axes and metric cards."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    elif value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:.1f}"
