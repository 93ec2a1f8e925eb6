# simulation/__init__.py
"""Demand engine module: tier validation, billing, equilibrium solver, Monte Carlo."""

from .validation import normalize_tiers, validate_tiers
from .billing import (
    compute_marginal_price,
    compute_volumetric_charge,
    compute_average_price,
    compute_perceived_price
)
from .engine import solve_usage, solve_usage_batch, calculate_demand, freeze_baseline, anchor_from_rates
from .montecarlo import generate_draws, run_monte_carlo_simulation, compare_scenarios

__all__ = [
    'normalize_tiers',
    'validate_tiers',
    'compute_marginal_price',
    'compute_volumetric_charge',
    'compute_average_price',
    'compute_perceived_price',
    'solve_usage',
    'solve_usage_batch',
    'calculate_demand',
    'freeze_baseline',
    'anchor_from_rates',
    'generate_draws',
    'run_monte_carlo_simulation',
    'compare_scenarios'
]
