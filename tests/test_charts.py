import pandas as pd
import pytest

from water_rates.analysis.metrics import build_usage_histogram, compute_decile_impacts
from water_rates.visualization.charts import (
    figure_to_png,
    plot_decile_waterfall,
    plot_elasticity_beeswarm,
    plot_snapshot_history,
    plot_tier_occupancy,
    plot_usage_histogram,
)


def _is_png(data):
    return data[:8] == b"\x89PNG\r\n\x1a\n"


def test_histogram_chart_renders(tiers):
    fig = plot_usage_histogram(build_usage_histogram([1.0, 4.0, 6.5, 12.0, 40.0]), tiers)
    assert _is_png(figure_to_png(fig, dpi=50))


def test_occupancy_and_waterfall_render():
    occupancy = {"Tier 1": 0.5, "Tier 2": 0.3, "Punitive": 0.2}
    assert _is_png(figure_to_png(plot_tier_occupancy(occupancy, occupancy), dpi=50))
    impacts = compute_decile_impacts(list(range(1, 21)), [q * 0.95 for q in range(1, 21)], 1000)
    assert _is_png(figure_to_png(plot_decile_waterfall(impacts), dpi=50))


def test_beeswarm_and_snapshots_render():
    assert _is_png(figure_to_png(plot_elasticity_beeswarm([-0.1, -0.15, -0.2], center=-0.15), dpi=50))
    frame = pd.DataFrame({"label": ["v1", "v2"], "usage_mg": [7.0, 6.8], "revenue": [51000.0, 52000.0]})
    assert _is_png(figure_to_png(plot_snapshot_history(frame), dpi=50))


@pytest.mark.parametrize("build", [
    lambda: plot_usage_histogram([]),
    lambda: plot_tier_occupancy({}, {}),
    lambda: plot_decile_waterfall([]),
    lambda: plot_elasticity_beeswarm([]),
    lambda: plot_snapshot_history(pd.DataFrame()),
])
def test_empty_inputs_render_placeholder(build):
    assert _is_png(figure_to_png(build(), dpi=50))
