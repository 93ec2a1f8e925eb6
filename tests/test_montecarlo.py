import numpy as np
import pytest

from water_rates.simulation.engine import WARN_ELASTICITY_SIGN
from water_rates.simulation.models import MonteCarloDraws, MonteCarloParams
from water_rates.simulation.montecarlo import (
    WARN_NO_BASELINE,
    WARN_POP_MAX_BOUND,
    WARN_POP_MIN_BOUND,
    build_elasticity_draws,
    build_usage_draws,
    compare_scenarios,
    generate_draws,
    percentile,
    run_monte_carlo_simulation,
)
from water_rates.simulation.validation import MSG_CONTIGUOUS


def _params(tiers, anchor, draws, **overrides):
    values = dict(connections=1000, base_fee=25.0, tiers=tiers, anchor=anchor, draws=draws,
                  elasticity_mean=-0.15)
    values.update(overrides)
    return MonteCarloParams(**values)


def test_draws_are_reproducible_and_read_only():
    a = generate_draws(100, seed=7)
    b = generate_draws(100, seed=7)
    assert a.sample_count == 100
    np.testing.assert_array_equal(a.q0, b.q0)
    np.testing.assert_array_equal(a.eps, b.eps)
    with pytest.raises(ValueError):
        a.q0[0] = 1.0


def test_invalid_count_gives_empty_draws():
    assert generate_draws(0).sample_count == 0
    assert generate_draws(float("nan")).sample_count == 0


def test_percentile_interpolates():
    assert percentile([1, 2, 3, 4, 5], 0.5) == 3.0
    assert percentile([1, 2, 3, 4, 5], 0.05) == pytest.approx(1.2)
    assert percentile([], 0.5) == 0.0


def test_usage_draws_are_centred_on_the_anchor():
    usages = build_usage_draws(7.0, 0.4, np.zeros(3))
    # the median of a log-normal is exp(mu), which sits below the anchor by sigma^2 / 2
    assert usages == pytest.approx(np.full(3, 7.0 * np.exp(-0.08)))


def test_elasticity_draws_are_clipped():
    eps = build_elasticity_draws(-0.15, np.array([-100.0, 0.0, 100.0]))
    assert eps.tolist() == pytest.approx([-0.4, -0.15, -0.05])


def test_empty_draws_report_missing_baseline(raw_tiers, anchor):
    result = run_monte_carlo_simulation(_params(raw_tiers, anchor, generate_draws(0)))
    assert result.usage_mg == 0.0
    assert result.revenue == 0.0
    assert result.trace.bill_per_connection == 25.0
    assert result.warnings == (WARN_NO_BASELINE,)
    assert result.population is None


def test_population_result_shape(raw_tiers, anchor, draws):
    result = run_monte_carlo_simulation(_params(raw_tiers, anchor, draws))
    trace = result.trace
    assert len(result.population) == draws.sample_count
    assert trace.usage_p5 <= trace.usage_median <= trace.usage_p95
    assert trace.bill_p5 <= trace.bill_per_connection <= trace.bill_p95
    assert trace.per_connection_usage == trace.usage_median
    assert result.volumetric_bill_per_connection == pytest.approx(trace.bill_per_connection - 25.0)
    assert result.population.elasticities.min() >= -0.4
    assert result.population.elasticities.max() <= -0.05


def test_totals_scale_with_connections(raw_tiers, anchor, draws):
    small = run_monte_carlo_simulation(_params(raw_tiers, anchor, draws, connections=1000))
    large = run_monte_carlo_simulation(_params(raw_tiers, anchor, draws, connections=4000))
    assert large.usage_mg == pytest.approx(4 * small.usage_mg)
    assert large.revenue == pytest.approx(4 * small.revenue)


def test_totals_are_weighted_population_sums(raw_tiers, anchor, draws):
    result = run_monte_carlo_simulation(_params(raw_tiers, anchor, draws))
    pop = result.population
    weight = 1000 / draws.sample_count
    assert result.usage_mg == pytest.approx(pop.usages.sum() * weight / 1000)
    assert result.revenue == pytest.approx(pop.bills.sum() * weight)


def test_same_draws_give_identical_results(raw_tiers, anchor, draws):
    first = run_monte_carlo_simulation(_params(raw_tiers, anchor, draws))
    second = run_monte_carlo_simulation(_params(raw_tiers, anchor, draws))
    np.testing.assert_array_equal(first.population.usages, second.population.usages)
    assert first.usage_mg == second.usage_mg


def test_positive_elasticity_warns(raw_tiers, anchor, draws):
    result = run_monte_carlo_simulation(_params(raw_tiers, anchor, draws, elasticity_mean=0.1))
    assert result.warnings[0] == WARN_ELASTICITY_SIGN


def test_population_bound_warnings(anchor, draws):
    punitive = [{"lower": 0, "upper": None, "price": 1e6}]
    free = [{"lower": 0, "upper": None, "price": 0.0}]
    low = run_monte_carlo_simulation(_params(punitive, anchor, draws, elasticity_mean=-0.4))
    high = run_monte_carlo_simulation(_params(free, anchor, draws, elasticity_mean=-0.4, bill_salience=0.0))
    assert WARN_POP_MIN_BOUND in low.warnings
    assert WARN_POP_MAX_BOUND in high.warnings


def test_invalid_tiers_surface_validation_message(anchor, draws):
    result = run_monte_carlo_simulation(_params([(0, 5, 3.0), (7, None, 4.0)], anchor, draws))
    assert result.validation_message == MSG_CONTIGUOUS
    assert len(result.tiers_used) == 1


def test_explicit_validation_message_wins(raw_tiers, anchor, draws):
    result = run_monte_carlo_simulation(_params(raw_tiers, anchor, draws, validation_message="edited"))
    assert result.validation_message == "edited"


def test_compare_scenarios_uses_the_same_customers(raw_tiers, anchor, draws):
    doubled = [dict(t, price=t["price"] * 2) for t in raw_tiers]
    other = generate_draws(200, seed=99)
    base, proposal = compare_scenarios(_params(raw_tiers, anchor, draws),
                                       _params(doubled, anchor, other))
    np.testing.assert_array_equal(base.population.baseline_usages, proposal.population.baseline_usages)
    assert len(proposal.population) == draws.sample_count
    assert proposal.usage_mg < base.usage_mg


def test_draws_coerce_to_float_arrays():
    draws = MonteCarloDraws(q0=[0, 1, 2], eps=[0.5, 0.5])
    assert draws.q0.dtype == np.float64
    assert draws.sample_count == 2


def test_numeric_string_count_is_accepted():
    assert generate_draws("100", seed=1).sample_count == 100
    assert generate_draws("-5").sample_count == 0
