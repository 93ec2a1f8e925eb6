# utils/__init__.py
"""Utilities and helper functions module."""

from .helpers import (
    is_finite_number,
    round_to,
    clamp,
    format_currency,
    format_truncated_number
)

__all__ = [
    'is_finite_number',
    'round_to',
    'clamp',
    'format_currency',
    'format_truncated_number'
]
