import math

import numpy as np
import pytest

from water_rates.simulation.engine import (
    WARN_ELASTICITY_SIGN,
    WARN_MAX_BOUND,
    WARN_MIN_BOUND,
    anchor_from_rates,
    calculate_demand,
    freeze_baseline,
    solve_usage,
    solve_usage_batch,
)
from water_rates.simulation.models import BaselineAnchor, DemandInputs
from water_rates.simulation.validation import MSG_FINAL, validate_tiers


def _inputs(tiers, **overrides):
    values = dict(connections=1000, elasticity=-0.15, base_fee=25.0, tiers=tiers)
    values.update(overrides)
    return DemandInputs(**values)


def test_zero_elasticity_keeps_baseline_usage(raw_tiers):
    result = calculate_demand(_inputs(raw_tiers, elasticity=0.0))
    assert result.trace.per_connection_usage == pytest.approx(7.0)
    assert result.usage_mg == pytest.approx(7.0)
    # 25 + 5 @ 3.50 + 2 @ 4.25
    assert result.trace.bill_per_connection == pytest.approx(51.0)
    assert result.revenue == pytest.approx(51_000.0)
    assert result.volumetric_bill_per_connection == pytest.approx(26.0)
    assert result.warnings == (WARN_ELASTICITY_SIGN,)


def test_unchanged_rates_reproduce_the_anchor(raw_tiers, anchor):
    result = calculate_demand(_inputs(raw_tiers, baseline=anchor))
    assert result.trace.per_connection_usage == pytest.approx(anchor.usage)
    assert result.warnings == ()
    assert result.validation_message is None


def test_higher_prices_reduce_usage(raw_tiers, anchor):
    doubled = [dict(t, price=t["price"] * 2) for t in raw_tiers]
    base = calculate_demand(_inputs(raw_tiers, baseline=anchor))
    proposal = calculate_demand(_inputs(doubled, baseline=anchor))
    assert proposal.trace.per_connection_usage < base.trace.per_connection_usage
    assert proposal.revenue > base.revenue


@pytest.mark.parametrize("tier_index", [0, 1, 2])
@pytest.mark.parametrize("elasticity", [-0.05, -0.15, -0.3])
def test_raising_one_tier_price_does_not_raise_usage(raw_tiers, anchor, tier_index, elasticity):
    raised = [dict(t) for t in raw_tiers]
    raised[tier_index]["price"] *= 1.15
    base = solve_usage(elasticity, validate_tiers(raw_tiers).tiers, anchor.usage, anchor.perceived_price,
                       25.0, 0.05)
    proposal = solve_usage(elasticity, validate_tiers(raised).tiers, anchor.usage, anchor.perceived_price,
                           25.0, 0.05)
    # typical use sits mid-tier, away from a break, so the iteration settles
    assert base.converged and proposal.converged
    assert proposal.usage <= base.usage + 1e-9


def test_stronger_elasticity_responds_more(raw_tiers, anchor):
    doubled = [dict(t, price=t["price"] * 2) for t in raw_tiers]
    mild = calculate_demand(_inputs(doubled, baseline=anchor, elasticity=-0.1))
    strong = calculate_demand(_inputs(doubled, baseline=anchor, elasticity=-0.3))
    assert strong.trace.per_connection_usage < mild.trace.per_connection_usage


def test_usage_scales_with_connections(raw_tiers, anchor):
    small = calculate_demand(_inputs(raw_tiers, baseline=anchor, connections=1000))
    large = calculate_demand(_inputs(raw_tiers, baseline=anchor, connections=3000))
    assert large.usage_mg == pytest.approx(3 * small.usage_mg)
    assert large.revenue == pytest.approx(3 * small.revenue)


def test_punitive_prices_hit_the_minimum_bound(anchor):
    tiers = [{"lower": 0, "upper": None, "price": 1000.0}]
    result = calculate_demand(_inputs(tiers, baseline=anchor, elasticity=-5.0))
    assert result.trace.per_connection_usage == pytest.approx(0.1)
    assert result.warnings == (WARN_MIN_BOUND,)


def test_free_water_hits_the_maximum_bound(anchor):
    tiers = [{"lower": 0, "upper": None, "price": 0.0}]
    result = calculate_demand(_inputs(tiers, baseline=anchor, elasticity=-5.0, bill_salience=0.0))
    assert result.trace.per_connection_usage == pytest.approx(60.0)
    assert result.warnings == (WARN_MAX_BOUND,)


def test_invalid_tiers_use_flat_fallback(anchor):
    result = calculate_demand(_inputs([(0, 5, 3.0), (5, 10, 4.0)], baseline=anchor))
    assert result.validation_message == MSG_FINAL
    assert len(result.tiers_used) == 1
    assert result.tiers_used[0].price == 3.0
    assert result.tiers_used[0].upper is None


def test_non_finite_inputs_are_coerced(raw_tiers):
    result = calculate_demand(_inputs(raw_tiers, elasticity=float("nan"), base_fee=float("inf"),
                                      connections=-10))
    assert result.usage_mg == 0.0
    assert result.revenue == 0.0
    assert math.isfinite(result.trace.per_connection_usage)


def test_single_point_has_no_percentiles(raw_tiers):
    trace = calculate_demand(_inputs(raw_tiers)).trace
    assert trace.usage_p5 is None and trace.usage_p95 is None


def test_solve_usage_converges(tiers, anchor):
    solution = solve_usage(-0.2, tiers, anchor.usage, anchor.perceived_price * 1.2, 25.0, 0.05)
    assert solution.converged
    assert solution.usage > anchor.usage
    assert solution.iterations <= 12


def test_batch_solver_matches_scalar(tiers, anchor):
    q0 = np.array([0.5, 3.0, 7.0, 9.9, 14.0, 35.0])
    eps = np.array([-0.05, -0.1, -0.2, -0.3, -0.4, -0.25])
    batch = solve_usage_batch(eps, tiers, q0, anchor.perceived_price, 25.0, 0.05)
    scalar = [solve_usage(e, tiers, q, anchor.perceived_price, 25.0, 0.05).usage for e, q in zip(eps, q0)]
    assert batch == pytest.approx(scalar, abs=1e-6)


def test_freeze_baseline_guards_inputs():
    assert freeze_baseline(100.0, -1.0) == BaselineAnchor(usage=60.0, perceived_price=0.01)
    assert freeze_baseline(float("nan"), float("nan")) == BaselineAnchor(usage=7.0, perceived_price=0.01)


def test_anchor_from_rates(raw_tiers):
    anchor = anchor_from_rates(7.0, raw_tiers, 25.0)
    average = (17.5 + 8.5) / 7.0
    expected = 0.7 * 4.25 + 0.3 * average + 0.05 * 25.0 / 7.0
    assert anchor.usage == 7.0
    assert anchor.perceived_price == pytest.approx(expected)
