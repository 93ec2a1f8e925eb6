# config/__init__.py
"""Configuration module for the water rate simulator."""

from .parameters import PARAM_SPECS, PARAM_GROUPS, default_param_values
from .scenarios import DEFAULT_TIERS, DEFAULT_BASE_FEE, RATE_PROPOSALS, get_rate_proposal

__all__ = [
    'PARAM_SPECS',
    'PARAM_GROUPS',
    'default_param_values',
    'DEFAULT_TIERS',
    'DEFAULT_BASE_FEE',
    'RATE_PROPOSALS',
    'get_rate_proposal'
]
