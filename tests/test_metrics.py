import math

import numpy as np
import pytest

from water_rates.analysis.metrics import (
    active_tier_index,
    build_usage_histogram,
    compute_decile_impacts,
    compute_tier_occupancy,
    elasticity_profile,
    population_frame,
    summarize_population,
    tier_breaks,
    tier_keys,
)
from water_rates.simulation.models import MonteCarloParams
from water_rates.simulation.montecarlo import generate_draws, run_monte_carlo_simulation


def test_histogram_buckets_and_open_last_bin():
    bins = build_usage_histogram([0.5, 1.5, 1.7, 45.0])
    assert len(bins) == 31
    assert math.isinf(bins[-1].bin_end)
    assert bins[0].pop_share == pytest.approx(0.25)
    assert bins[1].pop_share == pytest.approx(0.5)
    assert bins[-1].pop_share == pytest.approx(0.25)
    assert bins[-1].vol_share == pytest.approx(45.0 / 48.7)


def test_histogram_shares_sum_to_one():
    rng = np.random.default_rng(1)
    bins = build_usage_histogram(rng.lognormal(1.9, 0.4, 1000))
    assert sum(b.pop_share for b in bins) == pytest.approx(1.0)
    assert sum(b.vol_share for b in bins) == pytest.approx(1.0)


def test_histogram_of_nothing_is_empty():
    assert build_usage_histogram([]) == []


def test_tier_labels_and_breaks(tiers):
    assert tier_keys(tiers) == ["Tier 1", "Tier 2", "Punitive"]
    assert tier_breaks(tiers) == [5.0, 10.0]
    assert active_tier_index(tiers, 5.0) == 1
    assert active_tier_index(tiers, 99.0) == 2


def test_tier_occupancy(tiers):
    occupancy = compute_tier_occupancy(tiers, [1.0, 5.0, 6.0, 12.0])
    assert occupancy == {"Tier 1": 0.25, "Tier 2": 0.5, "Punitive": 0.25}


def test_decile_impacts_conserve_the_total_change():
    rng = np.random.default_rng(5)
    q0 = rng.uniform(1, 20, 200)
    q1 = q0 * 0.9
    impacts = compute_decile_impacts(q0, q1, connections=5000)
    assert [d.decile for d in impacts] == [f"D{i}" for i in range(1, 11)]
    total = 5000 / 200 * (q1 - q0).sum() / 1000
    assert sum(d.delta_mg for d in impacts) == pytest.approx(total)
    assert sum(d.pct_of_total for d in impacts) == pytest.approx(1.0)
    # the heaviest users cut the most volume
    assert impacts[-1].delta_mg < impacts[0].delta_mg


def test_decile_impacts_without_data():
    impacts = compute_decile_impacts([], [], connections=1000)
    assert len(impacts) == 10
    assert all(d.delta_mg == 0.0 and d.pct_of_total == 0.0 for d in impacts)
    assert all(d.delta_mg == 0.0 for d in compute_decile_impacts([1.0], [2.0], connections=0))


def test_elasticity_profile_downsamples():
    values = list(np.linspace(-0.4, -0.05, 1000))
    sampled = elasticity_profile(values)
    assert len(sampled) == 400
    assert sampled[0] == values[0]
    assert elasticity_profile(values[:10]) == values[:10]


def test_population_frame_and_summary(raw_tiers, anchor):
    params = MonteCarloParams(connections=1000, base_fee=25.0, tiers=raw_tiers, anchor=anchor,
                              draws=generate_draws(300, seed=3), elasticity_mean=-0.15)
    result = run_monte_carlo_simulation(params)

    frame = population_frame(result)
    assert list(frame.columns) == ["baseline_usage", "usage", "elasticity", "bill", "tier"]
    assert len(frame) == 300
    assert set(frame["tier"]) <= {"Tier 1", "Tier 2", "Punitive"}

    summary = summarize_population({"Baseline": result})
    assert summary.loc["Baseline", "usage_mg"] == pytest.approx(result.usage_mg)


def test_population_frame_without_population(raw_tiers, anchor):
    params = MonteCarloParams(connections=1000, base_fee=25.0, tiers=raw_tiers, anchor=anchor,
                              draws=generate_draws(0), elasticity_mean=-0.15)
    assert population_frame(run_monte_carlo_simulation(params)).empty


def test_decile_impacts_with_non_finite_connections():
    impacts = compute_decile_impacts([1.0, 2.0, 3.0], [0.5, 1.5, 2.5], connections=float("nan"))
    assert all(d.delta_mg == 0.0 and d.pct_of_total == 0.0 for d in impacts)
