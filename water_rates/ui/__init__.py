# ui/__init__.py
"""User interface components module."""

from .components import (
    render_parameter_group,
    render_parameter,
    render_tier_editor,
    render_kpis,
    render_snapshot_panel,
    show_figure
)

__all__ = [
    'render_parameter_group',
    'render_parameter',
    'render_tier_editor',
    'render_kpis',
    'render_snapshot_panel',
    'show_figure'
]
