# analysis/__init__.py
"""Analysis and metrics module."""

from .metrics import (
    build_usage_histogram,
    compute_tier_occupancy,
    compute_decile_impacts,
    elasticity_profile,
    tier_keys,
    tier_breaks,
    population_frame,
    summarize_population
)
from .snapshots import SnapshotHistory

__all__ = [
    'build_usage_histogram',
    'compute_tier_occupancy',
    'compute_decile_impacts',
    'elasticity_profile',
    'tier_keys',
    'tier_breaks',
    'population_frame',
    'summarize_population',
    'SnapshotHistory'
]
