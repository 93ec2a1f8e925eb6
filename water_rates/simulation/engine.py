#!/usr/bin/env python3
"""
Core demand engine: equilibrium usage solver and single-point demand runner.

Under tiered pricing the price a customer reacts to depends on their own
usage, so usage and price are solved together by fixed-point iteration on

    q = q0 * (perceived_price(q) / p0) ** elasticity

starting from the baseline usage q0. The iteration is a modelling
approximation: when the budget runs out the last iterate is accepted.
"""

import logging
import math
from typing import Iterable, Any, Optional

import numpy as np

from water_rates.config.parameters import (
    BASELINE_USAGE,
    MIN_USAGE,
    MAX_USAGE,
    MIN_PRICE,
    DEFAULT_ALPHA,
    FIXED_POINT_ITERATIONS,
    FIXED_POINT_TOLERANCE,
    BOUND_TOLERANCE,
    USAGE_MG_DIVISOR,
)
from water_rates.simulation.billing import (
    clamp_usage,
    compute_marginal_price,
    compute_average_price,
    compute_perceived_price,
    compute_volumetric_charge,
    perceived_prices,
)
from water_rates.simulation.models import (
    BaselineAnchor,
    DemandInputs,
    DemandResult,
    DemandTrace,
    TierSet,
    UsageSolution,
)
from water_rates.simulation.validation import (
    validate_tiers,
    coerce_alpha,
    coerce_bill_salience,
    coerce_connections,
    coerce_elasticity,
    coerce_non_negative,
)
from water_rates.utils.helpers import is_finite_number

logger = logging.getLogger(__name__)

WARN_ELASTICITY_SIGN = "Elasticity should be negative (e.g., -0.10 to -0.30)."
WARN_MIN_BOUND = "Usage settled at the minimum bound. Check elasticity or price inputs."
WARN_MAX_BOUND = "Usage reached the maximum bound. Prices may be too low for this elasticity."


def solve_usage(elasticity: float, tiers: TierSet, baseline_usage: float, baseline_price: float,
                base_fee: float, bill_salience: float, alpha: float = DEFAULT_ALPHA,
                max_iterations: int = FIXED_POINT_ITERATIONS,
                tolerance: float = FIXED_POINT_TOLERANCE) -> UsageSolution:
    """
    Find the usage consistent with the price it implies.

    Args:
        elasticity: Constant price elasticity (expected negative)
        tiers: Validated tier set
        baseline_usage: Reference usage q0
        baseline_price: Reference perceived price p0
        base_fee: Fixed monthly charge
        bill_salience: Weight of the amortised base fee in the perceived price
        alpha: Weight of marginal versus average price
        max_iterations: Iteration budget
        tolerance: Stop once successive guesses differ by less than this

    Returns:
        UsageSolution at the accepted iterate
    """
    q0 = clamp_usage(baseline_usage)
    p0 = max(MIN_PRICE, baseline_price)
    usage = q0
    converged = False
    iterations = 0

    for iterations in range(1, max_iterations + 1):
        price = max(MIN_PRICE, compute_perceived_price(usage, tiers, base_fee, alpha, bill_salience))
        next_usage = clamp_usage(q0 * math.pow(price / p0, elasticity))
        step = abs(next_usage - usage)
        usage = next_usage
        if step < tolerance:
            converged = True
            break

    if not converged:
        logger.debug("Fixed point not reached in %d iterations (elasticity=%s, q0=%.3f); using last iterate",
                     max_iterations, elasticity, q0)

    return UsageSolution(
        usage=usage,
        marginal_price=compute_marginal_price(usage, tiers),
        average_price=compute_average_price(usage, tiers),
        perceived_price=compute_perceived_price(usage, tiers, base_fee, alpha, bill_salience),
        iterations=iterations,
        converged=converged,
    )


def solve_usage_batch(elasticities, tiers: TierSet, baseline_usages, baseline_price: float,
                      base_fee: float, bill_salience: float, alpha: float = DEFAULT_ALPHA,
                      max_iterations: int = FIXED_POINT_ITERATIONS,
                      tolerance: float = FIXED_POINT_TOLERANCE) -> np.ndarray:
    """
    Solve usage for a whole population at once.

    Each customer stops updating at its own convergence step, so every
    element matches what ``solve_usage`` returns for that customer.

    Returns:
        Array of solved usages
    """
    q0 = np.clip(np.asarray(baseline_usages, dtype=float), MIN_USAGE, MAX_USAGE)
    eps = np.broadcast_to(np.asarray(elasticities, dtype=float), q0.shape)
    p0 = max(MIN_PRICE, baseline_price)
    usage = q0.copy()
    active = np.ones(q0.shape, dtype=bool)

    for _ in range(max_iterations):
        if not active.any():
            break
        price = np.maximum(MIN_PRICE, perceived_prices(usage[active], tiers, base_fee, alpha, bill_salience))
        next_usage = np.clip(q0[active] * np.power(price / p0, eps[active]), MIN_USAGE, MAX_USAGE)
        done = np.abs(next_usage - usage[active]) < tolerance
        usage[active] = next_usage
        active[np.flatnonzero(active)[done]] = False

    if active.any():
        logger.debug("%d of %d customers did not converge in %d iterations",
                     int(active.sum()), active.size, max_iterations)
    return usage


def freeze_baseline(current_usage: float, current_price: float) -> BaselineAnchor:
    """
    Capture today's usage and perceived price as the reference point.

    Args:
        current_usage: Typical usage per connection today
        current_price: Perceived price at that usage today

    Returns:
        BaselineAnchor held fixed by the caller until it is reset
    """
    usage = clamp_usage(float(current_usage)) if is_finite_number(current_usage) else BASELINE_USAGE
    price = max(MIN_PRICE, float(current_price)) if is_finite_number(current_price) else MIN_PRICE
    return BaselineAnchor(usage=usage, perceived_price=price)


def anchor_from_rates(typical_use: float, tiers: Iterable[Any], base_fee: float,
                      bill_salience: Optional[float] = None, alpha: float = DEFAULT_ALPHA) -> BaselineAnchor:
    """Freeze the baseline at the perceived price today's rates imply for typical use."""
    safe_tiers = validate_tiers(tiers).tiers
    usage = clamp_usage(float(typical_use)) if is_finite_number(typical_use) else BASELINE_USAGE
    price = compute_perceived_price(usage, safe_tiers, coerce_non_negative(base_fee),
                                    coerce_alpha(alpha, DEFAULT_ALPHA), coerce_bill_salience(bill_salience))
    return freeze_baseline(usage, price)


def bound_warnings(low_usage: float, high_usage: float, low_message: str = WARN_MIN_BOUND,
                   high_message: str = WARN_MAX_BOUND) -> list:
    """Advisory messages for usage pinned at either clamp bound."""
    warnings = []
    if low_usage <= MIN_USAGE + BOUND_TOLERANCE:
        warnings.append(low_message)
    if high_usage >= MAX_USAGE - BOUND_TOLERANCE:
        warnings.append(high_message)
    return warnings


def calculate_demand(inputs: DemandInputs) -> DemandResult:
    """
    Run one scenario: validate tiers, solve equilibrium usage, bill it, scale it up.

    Args:
        inputs: DemandInputs for the scenario

    Returns:
        DemandResult with system usage (MG), revenue and advisory warnings
    """
    validation = validate_tiers(inputs.tiers)
    tiers = validation.tiers

    elasticity = coerce_elasticity(inputs.elasticity)
    base_fee = coerce_non_negative(inputs.base_fee)
    connections = coerce_connections(inputs.connections)
    bill_salience = coerce_bill_salience(inputs.bill_salience)
    alpha = coerce_alpha(inputs.alpha, DEFAULT_ALPHA)

    baseline = inputs.baseline
    if baseline is None:
        baseline_usage = clamp_usage(BASELINE_USAGE)
        baseline_price = compute_perceived_price(baseline_usage, tiers, base_fee, alpha, bill_salience)
        baseline = freeze_baseline(baseline_usage, baseline_price)
    else:
        baseline = freeze_baseline(baseline.usage, baseline.perceived_price)
    baseline_usage, baseline_price = baseline.usage, baseline.perceived_price

    solution = solve_usage(elasticity, tiers, baseline_usage, baseline_price, base_fee, bill_salience, alpha)
    volumetric = compute_volumetric_charge(solution.usage, tiers)
    bill = base_fee + volumetric

    warnings = []
    if elasticity >= 0:
        warnings.append(WARN_ELASTICITY_SIGN)
    # a single point can only sit on one bound
    bounds = bound_warnings(solution.usage, solution.usage)
    warnings.extend(bounds[:1])

    return DemandResult(
        usage_mg=connections * solution.usage / USAGE_MG_DIVISOR,
        revenue=connections * bill,
        volumetric_bill_per_connection=volumetric,
        trace=DemandTrace(
            per_connection_usage=solution.usage,
            marginal_price=solution.marginal_price,
            average_price=solution.average_price,
            perceived_price=solution.perceived_price,
            bill_per_connection=bill,
        ),
        warnings=tuple(warnings),
        tiers_used=tiers,
        validation_message=None if validation.is_valid else validation.message,
    )
