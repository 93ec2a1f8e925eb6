#!/usr/bin/env python3
"""
Input validation and coercion for the demand engine.
Turns raw user input into a usable tier set and safe scalars, never raising.
"""

import logging
from typing import Any, Iterable, Optional

from water_rates.config.parameters import (
    BOUND_DECIMALS,
    PRICE_DECIMALS,
    CONTIGUITY_TOLERANCE,
    DEFAULT_ELASTICITY,
    DEFAULT_BILL_SALIENCE,
    BILL_SALIENCE_RANGE,
    MIN_USAGE_VARIETY,
)
from water_rates.simulation.models import Tier, TierSet, TierValidationResult
from water_rates.utils.helpers import is_finite_number, round_to, clamp

logger = logging.getLogger(__name__)

MSG_EMPTY = "Define at least one tier."
MSG_CONTIGUOUS = "Tiers must be contiguous with no gaps or overlaps."
MSG_UPPER = "Each tier's upper bound must be greater than its lower bound."
MSG_FINAL = "The final tier must extend to infinity."


def normalize_tiers(raw_tiers: Optional[Iterable[Any]]) -> TierSet:
    """
    Round, clamp and sort raw tier input.

    Args:
        raw_tiers: Tiers, mappings or (lower, upper, price) triples

    Returns:
        Tuple of tiers sorted ascending by lower bound
    """
    if raw_tiers is None:
        return ()

    normalized = []
    for raw in raw_tiers:
        tier = Tier.from_raw(raw)
        upper = None if tier.upper is None else round_to(max(tier.upper, 0.0), BOUND_DECIMALS)
        normalized.append(Tier(
            lower=max(0.0, round_to(tier.lower, BOUND_DECIMALS)),
            upper=upper,
            price=max(0.0, round_to(tier.price, PRICE_DECIMALS)),
        ))

    # sorted() is stable, so tiers sharing a lower bound keep their input order
    return tuple(sorted(normalized, key=lambda t: t.lower))


def _fallback(tiers: TierSet) -> TierSet:
    price = tiers[0].price if tiers else 0.0
    return (Tier(lower=0.0, upper=None, price=price),)


def _reject(tiers: TierSet, message: str) -> TierValidationResult:
    logger.warning("Tier set rejected (%s); using flat fallback", message)
    return TierValidationResult(tiers=_fallback(tiers), is_valid=False, message=message)


def _check_invariants(tiers: TierSet) -> TierValidationResult:
    if not tiers:
        return _reject((), MSG_EMPTY)

    expected_lower = 0.0
    for tier in tiers:
        if abs(tier.lower - expected_lower) > CONTIGUITY_TOLERANCE:
            return _reject(tiers, MSG_CONTIGUOUS)
        if tier.upper is not None and tier.upper <= tier.lower:
            return _reject(tiers, MSG_UPPER)
        expected_lower = tier.upper_bound

    if tiers[-1].upper is not None:
        return _reject(tiers, MSG_FINAL)

    return TierValidationResult(tiers=tiers, is_valid=True)


def validate_tiers(raw_tiers: Optional[Iterable[Any]]) -> TierValidationResult:
    """
    Normalize raw tier input, then check the tier set invariants.

    The first failed invariant substitutes a flat fallback tier.

    Args:
        raw_tiers: Tiers, mappings or (lower, upper, price) triples, in any order

    Returns:
        TierValidationResult carrying a usable tier set in every case
    """
    return _check_invariants(normalize_tiers(raw_tiers))


def coerce_elasticity(value) -> float:
    if not is_finite_number(value):
        logger.warning("Non-finite elasticity %r replaced with %s", value, DEFAULT_ELASTICITY)
        return DEFAULT_ELASTICITY
    return float(value)


def coerce_non_negative(value, default: float = 0.0) -> float:
    """Finite, non-negative float; anything else becomes ``default``."""
    if not is_finite_number(value):
        return default
    return max(0.0, float(value))


def coerce_connections(value) -> int:
    return int(coerce_non_negative(value))


def coerce_bill_salience(value) -> float:
    if value is None:
        return DEFAULT_BILL_SALIENCE
    if not is_finite_number(value):
        return BILL_SALIENCE_RANGE[0]
    return clamp(float(value), *BILL_SALIENCE_RANGE)


def coerce_usage_variety(value) -> float:
    if not is_finite_number(value):
        return MIN_USAGE_VARIETY
    return max(MIN_USAGE_VARIETY, float(value))


def coerce_alpha(value, default: float) -> float:
    if not is_finite_number(value):
        return default
    return clamp(float(value), 0.0, 1.0)
