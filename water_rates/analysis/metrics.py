#!/usr/bin/env python3
"""
Population analytics for comparing a baseline run against a rate proposal.
Both runs must come from the same Monte Carlo draws so index i is the same
customer in each.
"""

import math
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from water_rates.config.parameters import (
    HISTOGRAM_BIN_WIDTH,
    HISTOGRAM_MAX_USAGE,
    ELASTICITY_PROFILE_POINTS,
    USAGE_MG_DIVISOR,
)
from water_rates.simulation.models import DecileImpact, DemandResult, HistBin, Tier
from water_rates.simulation.validation import coerce_connections


def build_usage_histogram(usages: Sequence[float], bin_width: float = HISTOGRAM_BIN_WIDTH,
                          max_usage: float = HISTOGRAM_MAX_USAGE) -> List[HistBin]:
    """
    Bucket usage into fixed-width bins; the last bin is open-ended.

    Args:
        usages: Per-customer usage
        bin_width: Width of each bin
        max_usage: Start of the open-ended last bin

    Returns:
        List of HistBin with population and volume shares
    """
    values = np.clip(np.asarray(usages, dtype=float), 0.0, None)
    if values.size == 0:
        return []

    bin_count = int(math.floor(max_usage / bin_width)) + 1
    total_volume = float(values.sum()) or 1.0
    idx = np.minimum(np.floor(values / bin_width).astype(int), bin_count - 1)

    counts = np.bincount(idx, minlength=bin_count)
    volumes = np.bincount(idx, weights=values, minlength=bin_count)

    bins = []
    for i in range(bin_count):
        bins.append(HistBin(
            bin_start=i * bin_width,
            bin_end=math.inf if i == bin_count - 1 else (i + 1) * bin_width,
            pop_share=float(counts[i]) / values.size,
            vol_share=float(volumes[i]) / total_volume,
        ))
    return bins


def active_tier_index(tiers: Sequence[Tier], usage: float) -> int:
    for i, tier in enumerate(tiers):
        if tier.lower <= usage < tier.upper_bound:
            return i
    return max(0, len(tiers) - 1)


def tier_keys(tiers: Sequence[Tier]) -> List[str]:
    """Display labels; an unbounded last tier is the punitive block."""
    keys = []
    for i, tier in enumerate(tiers):
        if i == len(tiers) - 1 and tier.upper is None:
            keys.append("Punitive")
        else:
            keys.append(f"Tier {i + 1}")
    return keys


def tier_breaks(tiers: Sequence[Tier]) -> List[float]:
    return [t.upper for t in tiers if t.upper is not None and math.isfinite(t.upper)]


def compute_tier_occupancy(tiers: Sequence[Tier], usages: Sequence[float]) -> Dict[str, float]:
    """
    Share of customers whose usage sits in each tier.

    Args:
        tiers: Validated tier set
        usages: Per-customer usage

    Returns:
        Mapping of tier label to population share
    """
    keys = tier_keys(tiers)
    counts = [0] * len(keys)
    for value in usages:
        counts[active_tier_index(tiers, value)] += 1

    total = len(usages) or 1
    return {key: count / total for key, count in zip(keys, counts)}


def compute_decile_impacts(baseline_usages: Sequence[float], proposal_usages: Sequence[float],
                           connections: float) -> List[DecileImpact]:
    """
    Attribute the system usage change to deciles of baseline usage.

    Customers are ranked by baseline usage into ten equal-count groups;
    each decile's summed change is scaled to million gallons.

    Args:
        baseline_usages: Per-customer usage under the baseline rates
        proposal_usages: Per-customer usage under the proposal, same customers
        connections: System connection count

    Returns:
        Ten DecileImpact records, D1 (lowest users) to D10
    """
    connections = coerce_connections(connections)
    sample_count = min(len(baseline_usages), len(proposal_usages))
    if sample_count == 0 or not connections:
        return [DecileImpact(decile=f"D{d + 1}", delta_mg=0.0, pct_of_total=0.0) for d in range(10)]

    q0 = np.asarray(baseline_usages, dtype=float)[:sample_count]
    q1 = np.asarray(proposal_usages, dtype=float)[:sample_count]
    order = np.argsort(q0, kind="stable")
    delta = (q1 - q0)[order]
    weight = connections / sample_count / USAGE_MG_DIVISOR

    deltas = []
    for d in range(10):
        start = (d * sample_count) // 10
        end = ((d + 1) * sample_count) // 10
        deltas.append(float(delta[start:end].sum()) * weight)

    total = sum(deltas)
    denominator = total if total != 0 else 1.0
    return [DecileImpact(decile=f"D{d + 1}", delta_mg=value, pct_of_total=value / denominator)
            for d, value in enumerate(deltas)]


def elasticity_profile(eps: Sequence[float], max_points: int = ELASTICITY_PROFILE_POINTS) -> List[float]:
    """Stride-based down-sample of an elasticity population for display."""
    values = list(eps)
    if len(values) <= max_points:
        return values

    step = len(values) / max_points
    sampled = []
    cursor = 0.0
    while int(cursor) < len(values) and len(sampled) < max_points:
        sampled.append(values[int(cursor)])
        cursor += step
    return sampled


def population_frame(result: DemandResult) -> pd.DataFrame:
    """
    Per-customer samples of a Monte Carlo result as a DataFrame.

    Args:
        result: DemandResult from run_monte_carlo_simulation

    Returns:
        DataFrame with baseline_usage, usage, elasticity, bill and tier columns
    """
    pop = result.population
    if pop is None or len(pop) == 0:
        return pd.DataFrame(columns=["baseline_usage", "usage", "elasticity", "bill", "tier"])

    keys = tier_keys(result.tiers_used)
    return pd.DataFrame({
        "baseline_usage": pop.baseline_usages,
        "usage": pop.usages,
        "elasticity": pop.elasticities,
        "bill": pop.bills,
        "tier": [keys[active_tier_index(result.tiers_used, u)] for u in pop.usages],
    })


def summarize_population(results: Dict[str, DemandResult]) -> pd.DataFrame:
    """
    One summary row per named scenario.

    Args:
        results: Mapping of scenario name to DemandResult

    Returns:
        DataFrame indexed by scenario with totals and distribution stats
    """
    rows = []
    for name, result in results.items():
        trace = result.trace
        rows.append({
            "scenario": name,
            "usage_mg": result.usage_mg,
            "revenue": result.revenue,
            "usage_median": trace.per_connection_usage,
            "usage_p5": trace.usage_p5,
            "usage_p95": trace.usage_p95,
            "bill_median": trace.bill_per_connection,
            "bill_p5": trace.bill_p5,
            "bill_p95": trace.bill_p95,
            "warnings": len(result.warnings),
        })
    return pd.DataFrame(rows).set_index("scenario") if rows else pd.DataFrame()
