#!/usr/bin/env python3
"""
Tiered billing calculations.

Scalar functions price one customer; the plural numpy variants price a whole
population and agree with the scalar versions element by element. All of
them expect a validated tier set (see ``simulation.validation``).
"""

import numpy as np

from water_rates.config.parameters import MIN_USAGE, MAX_USAGE, DEFAULT_ALPHA
from water_rates.simulation.models import TierSet


def clamp_usage(value: float) -> float:
    return min(max(value, MIN_USAGE), MAX_USAGE)


def compute_marginal_price(usage: float, tiers: TierSet) -> float:
    """Price of the tier whose [lower, upper) interval holds usage."""
    for tier in tiers:
        if usage >= tier.lower and (tier.upper is None or usage < tier.upper):
            return tier.price
    return tiers[-1].price if tiers else 0.0


def compute_volumetric_charge(usage: float, tiers: TierSet) -> float:
    """
    Progressive volumetric charge: each tier bills the part of usage inside it.

    Continuous and non-decreasing in usage.
    """
    charge = 0.0
    for tier in tiers:
        upper = tier.upper_bound
        if usage <= tier.lower:
            break
        span = min(usage, upper) - tier.lower
        if span > 0:
            charge += span * tier.price
        if usage <= upper:
            break
    return charge


def compute_average_price(usage: float, tiers: TierSet) -> float:
    if usage <= 0:
        return 0.0
    return compute_volumetric_charge(usage, tiers) / usage


def compute_perceived_price(usage: float, tiers: TierSet, base_fee: float,
                            alpha: float = DEFAULT_ALPHA, bill_salience: float = 0.0) -> float:
    """
    Price signal a customer reacts to.

    Blends the marginal and average rate, then adds the base fee amortised
    over current usage, weighted by how salient the fixed charge is.
    """
    marginal = compute_marginal_price(usage, tiers)
    average = compute_average_price(usage, tiers)
    blended = alpha * marginal + (1 - alpha) * average
    base_impact = bill_salience * (base_fee / max(usage, MIN_USAGE))
    return blended + base_impact


# Vectorised population variants

def _tier_arrays(tiers: TierSet):
    lowers = np.array([t.lower for t in tiers], dtype=float)
    uppers = np.array([t.upper_bound for t in tiers], dtype=float)
    prices = np.array([t.price for t in tiers], dtype=float)
    return lowers, uppers, prices


def marginal_prices(usages, tiers: TierSet) -> np.ndarray:
    usages = np.asarray(usages, dtype=float)
    out = np.full(usages.shape, tiers[-1].price if tiers else 0.0)
    # walk in reverse so the first matching tier wins, as in the scalar lookup
    for tier in reversed(tiers):
        inside = (usages >= tier.lower) & (usages < tier.upper_bound)
        out = np.where(inside, tier.price, out)
    return out


def volumetric_charges(usages, tiers: TierSet) -> np.ndarray:
    usages = np.asarray(usages, dtype=float)
    if not tiers:
        return np.zeros(usages.shape)
    lowers, uppers, prices = _tier_arrays(tiers)
    spans = np.minimum(usages[..., None], uppers) - lowers
    return (np.clip(spans, 0.0, None) * prices).sum(axis=-1)


def average_prices(usages, tiers: TierSet) -> np.ndarray:
    usages = np.asarray(usages, dtype=float)
    charges = volumetric_charges(usages, tiers)
    safe = np.where(usages > 0, usages, 1.0)
    return np.where(usages > 0, charges / safe, 0.0)


def perceived_prices(usages, tiers: TierSet, base_fee: float,
                     alpha: float = DEFAULT_ALPHA, bill_salience: float = 0.0) -> np.ndarray:
    usages = np.asarray(usages, dtype=float)
    blended = alpha * marginal_prices(usages, tiers) + (1 - alpha) * average_prices(usages, tiers)
    return blended + bill_salience * (base_fee / np.maximum(usages, MIN_USAGE))
