#!/usr/bin/env python3
"""
Monte Carlo population engine.

A synthetic population is built from two cached arrays of standard-normal
seeds: one spreads baseline usage log-normally around the anchor, the other
spreads price sensitivity around the chosen mean elasticity. Reusing the same
draws across rate proposals keeps comparisons apples-to-apples: the same
customers, different rates.
"""

import logging
from typing import Optional, Tuple

import numpy as np
from numpy.random import default_rng

from water_rates.config.parameters import (
    MIN_USAGE,
    MAX_USAGE,
    MONTE_CARLO_SAMPLE_SIZE,
    ELASTICITY_DIVERSITY,
    ELASTICITY_BOUNDS,
    USAGE_MG_DIVISOR,
    DEFAULT_ALPHA,
)
from water_rates.simulation.billing import (
    compute_marginal_price,
    compute_average_price,
    compute_perceived_price,
    volumetric_charges,
)
from water_rates.simulation.engine import (
    WARN_ELASTICITY_SIGN,
    bound_warnings,
    freeze_baseline,
    solve_usage_batch,
)
from water_rates.simulation.models import (
    DemandResult,
    DemandTrace,
    MonteCarloDraws,
    MonteCarloParams,
    PopulationSamples,
)
from water_rates.simulation.validation import (
    validate_tiers,
    coerce_alpha,
    coerce_bill_salience,
    coerce_connections,
    coerce_elasticity,
    coerce_non_negative,
    coerce_usage_variety,
)
from water_rates.utils.helpers import is_finite_number

logger = logging.getLogger(__name__)

WARN_NO_BASELINE = "Baseline has not been established yet."
WARN_POP_MIN_BOUND = "Some customers are hitting the minimum usage bound."
WARN_POP_MAX_BOUND = "Some customers are hitting the maximum usage bound."


def generate_draws(count: int = MONTE_CARLO_SAMPLE_SIZE, seed: Optional[int] = None) -> MonteCarloDraws:
    """
    Draw the standard-normal seeds for a synthetic population.

    Args:
        count: Population size
        seed: Optional seed for reproducible populations

    Returns:
        MonteCarloDraws with read-only q0/eps arrays
    """
    n = int(float(count)) if is_finite_number(count) and float(count) > 0 else 0
    rng = default_rng(seed)
    return MonteCarloDraws(q0=rng.standard_normal(n), eps=rng.standard_normal(n), seed=seed)


def percentile(values, p: float) -> float:
    """Percentile by linear interpolation between order statistics; 0 for no values."""
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return 0.0
    return float(np.quantile(values, p))


def build_usage_draws(anchor_usage: float, usage_variety: float, seeds) -> np.ndarray:
    """
    Log-normal baseline usage with geometric mean equal to the anchor.

    Args:
        anchor_usage: Baseline anchor usage
        usage_variety: Log-scale spread σ
        seeds: Standard-normal draws

    Returns:
        Clamped per-customer baseline usage
    """
    sigma = coerce_usage_variety(usage_variety)
    mu = np.log(max(anchor_usage, MIN_USAGE)) - 0.5 * sigma * sigma
    return np.clip(np.exp(mu + sigma * np.asarray(seeds, dtype=float)), MIN_USAGE, MAX_USAGE)


def build_elasticity_draws(elasticity_mean: float, seeds, std: float = ELASTICITY_DIVERSITY,
                           bounds: Tuple[float, float] = ELASTICITY_BOUNDS) -> np.ndarray:
    return np.clip(elasticity_mean + std * np.asarray(seeds, dtype=float), bounds[0], bounds[1])


def _empty_result(params: MonteCarloParams, base_fee: float, tiers) -> DemandResult:
    return DemandResult(
        usage_mg=0.0,
        revenue=0.0,
        volumetric_bill_per_connection=0.0,
        trace=DemandTrace(
            per_connection_usage=0.0,
            marginal_price=0.0,
            average_price=0.0,
            perceived_price=0.0,
            bill_per_connection=base_fee,
            usage_p5=0.0,
            usage_p95=0.0,
            usage_median=0.0,
            bill_p5=base_fee,
            bill_p95=base_fee,
        ),
        warnings=(WARN_NO_BASELINE,),
        tiers_used=tiers,
        validation_message=params.validation_message,
    )


def run_monte_carlo_simulation(params: MonteCarloParams) -> DemandResult:
    """
    Solve every synthetic customer and aggregate to system totals.

    Args:
        params: MonteCarloParams (tiers, fee, anchor, cached draws, ...)

    Returns:
        DemandResult with median-based trace, p5/p95 bounds and population samples
    """
    validation = validate_tiers(params.tiers)
    tiers = validation.tiers
    validation_message = params.validation_message
    if validation_message is None and not validation.is_valid:
        validation_message = validation.message

    base_fee = coerce_non_negative(params.base_fee)
    connections = coerce_connections(params.connections)
    bill_salience = coerce_bill_salience(params.bill_salience)
    alpha = coerce_alpha(params.alpha, DEFAULT_ALPHA)
    elasticity_mean = coerce_elasticity(params.elasticity_mean)

    draws = params.draws
    sample_count = draws.sample_count if draws is not None else 0
    if sample_count == 0:
        logger.info("Monte Carlo run requested before draws were generated")
        return _empty_result(params, base_fee, tiers)

    anchor = freeze_baseline(params.anchor.usage, params.anchor.perceived_price)
    baseline_usages = build_usage_draws(anchor.usage, params.usage_variety, draws.q0[:sample_count])
    elasticities = build_elasticity_draws(elasticity_mean, draws.eps[:sample_count])

    usages = solve_usage_batch(elasticities, tiers, baseline_usages, anchor.perceived_price,
                               base_fee, bill_salience, alpha)
    bills = base_fee + volumetric_charges(usages, tiers)

    weight = connections / sample_count
    usage_mg = float(usages.sum()) * weight / USAGE_MG_DIVISOR
    revenue = float(bills.sum()) * weight

    usage_p5, usage_median, usage_p95 = (percentile(usages, p) for p in (0.05, 0.5, 0.95))
    bill_p5, bill_median, bill_p95 = (percentile(bills, p) for p in (0.05, 0.5, 0.95))

    warnings = []
    if elasticity_mean >= 0:
        warnings.append(WARN_ELASTICITY_SIGN)
    warnings.extend(bound_warnings(usage_p5, usage_p95, WARN_POP_MIN_BOUND, WARN_POP_MAX_BOUND))

    logger.debug("Monte Carlo: %d customers, median usage %.3f, revenue %.2f",
                 sample_count, usage_median, revenue)

    return DemandResult(
        usage_mg=usage_mg,
        revenue=revenue,
        volumetric_bill_per_connection=max(bill_median - base_fee, 0.0),
        trace=DemandTrace(
            per_connection_usage=usage_median,
            marginal_price=compute_marginal_price(usage_median, tiers),
            average_price=compute_average_price(usage_median, tiers),
            perceived_price=compute_perceived_price(usage_median, tiers, base_fee, alpha, bill_salience),
            bill_per_connection=bill_median,
            usage_p5=usage_p5,
            usage_p95=usage_p95,
            usage_median=usage_median,
            bill_p5=bill_p5,
            bill_p95=bill_p95,
        ),
        warnings=tuple(warnings),
        tiers_used=tiers,
        validation_message=validation_message,
        population=PopulationSamples(
            baseline_usages=baseline_usages,
            usages=usages,
            elasticities=elasticities,
            bills=bills,
        ),
    )


def compare_scenarios(baseline: MonteCarloParams,
                      proposal: MonteCarloParams) -> Tuple[DemandResult, DemandResult]:
    """
    Run a baseline and a proposal over the same synthetic population.

    The proposal is always evaluated on the baseline's draws and anchor so
    the two populations differ only in rate inputs.
    """
    if proposal.draws is not baseline.draws or proposal.anchor != baseline.anchor:
        logger.debug("Proposal re-pinned to the baseline's draws and anchor")
        proposal = MonteCarloParams(
            connections=proposal.connections,
            base_fee=proposal.base_fee,
            tiers=proposal.tiers,
            anchor=baseline.anchor,
            draws=baseline.draws,
            elasticity_mean=proposal.elasticity_mean,
            usage_variety=proposal.usage_variety,
            bill_salience=proposal.bill_salience,
            validation_message=proposal.validation_message,
            alpha=proposal.alpha,
        )
    return run_monte_carlo_simulation(baseline), run_monte_carlo_simulation(proposal)
