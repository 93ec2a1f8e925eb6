# visualization/__init__.py
"""Visualization and chart generation module."""

from .charts import (
    plot_usage_histogram,
    plot_tier_occupancy,
    plot_decile_waterfall,
    plot_elasticity_beeswarm,
    plot_snapshot_history,
    figure_to_png
)

__all__ = [
    'plot_usage_histogram',
    'plot_tier_occupancy',
    'plot_decile_waterfall',
    'plot_elasticity_beeswarm',
    'plot_snapshot_history',
    'figure_to_png'
]
