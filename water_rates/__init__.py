"""Tiered water rate simulator: billing, equilibrium demand and Monte Carlo population engine."""

from water_rates.simulation.models import (
    Tier,
    TierValidationResult,
    BaselineAnchor,
    DemandInputs,
    DemandTrace,
    DemandResult,
    MonteCarloDraws,
    MonteCarloParams,
)
from water_rates.simulation import (
    validate_tiers,
    calculate_demand,
    freeze_baseline,
    generate_draws,
    run_monte_carlo_simulation,
)
from water_rates.analysis.metrics import (
    compute_decile_impacts,
    build_usage_histogram,
    compute_tier_occupancy,
    elasticity_profile,
)

__version__ = "0.1.0"

__all__ = [
    'Tier',
    'TierValidationResult',
    'BaselineAnchor',
    'DemandInputs',
    'DemandTrace',
    'DemandResult',
    'MonteCarloDraws',
    'MonteCarloParams',
    'validate_tiers',
    'calculate_demand',
    'freeze_baseline',
    'generate_draws',
    'run_monte_carlo_simulation',
    'compute_decile_impacts',
    'build_usage_histogram',
    'compute_tier_occupancy',
    'elasticity_profile'
]
