#!/usr/bin/env python3
"""
Reusable UI components for the Streamlit interface.
Handles parameter rendering, the tier editor, KPIs and the snapshot panel.
"""

import math

import matplotlib.pyplot as plt
import pandas as pd
import streamlit as st

from water_rates.analysis.snapshots import SnapshotHistory
from water_rates.config.parameters import PARAM_SPECS
from water_rates.simulation.models import DemandResult
from water_rates.utils.helpers import clamp, format_currency, format_truncated_number
from water_rates.visualization.charts import plot_snapshot_history


def render_parameter_group(group_name: str, group_config: dict, params_state: dict, prefix: str = ""):
    """
    Render a parameter group with progressive disclosure.

    Args:
        group_name: Name of the parameter group
        group_config: Configuration for the group
        params_state: Current parameter state
        prefix: Prefix for widget keys

    Returns:
        Updated parameter state
    """
    color_indicators = {"green": "🟢", "amber": "🟡", "red": "🔴"}

    st.markdown(f"**{color_indicators[group_config.get('color', 'amber')]} {group_config['title']}**")

    for param_name in group_config['basic']:
        spec = PARAM_SPECS[param_name]
        params_state[param_name] = render_parameter(param_name, spec, params_state.get(param_name), prefix)

    if group_config.get('detailed'):
        with st.expander("🔧 Advanced Settings", expanded=False):
            for param_name in group_config['detailed']:
                spec = PARAM_SPECS[param_name]
                params_state[param_name] = render_parameter(param_name, spec, params_state.get(param_name), prefix)

    return params_state


def render_parameter(param_name: str, spec: dict, current_value, prefix: str = ""):
    """
    Render individual parameter with appropriate widget.

    Args:
        param_name: Name of the parameter
        spec: Parameter specification
        current_value: Current parameter value
        prefix: Prefix for widget keys

    Returns:
        Updated parameter value
    """
    key = f"{prefix}_{param_name}" if prefix else param_name
    help_text = build_help_text(spec)
    if current_value is None:
        current_value = spec['default']

    cast = int if spec['type'] == 'int' else float
    # loaded configs may hold values outside the widget range
    value = clamp(cast(current_value), cast(spec['min']), cast(spec['max']))
    kwargs = dict(min_value=cast(spec['min']), max_value=cast(spec['max']), value=value,
                  step=cast(spec['step']), key=key, help=help_text)

    if spec.get('widget') == 'number':
        value = st.number_input(spec['label'], **kwargs)
    else:
        value = st.slider(spec['label'], **kwargs)
    show_range_hint(value, spec)
    return value


def build_help_text(spec: dict) -> str:
    parts = []
    if 'desc' in spec:
        parts.append(spec['desc'])
    if 'rec' in spec and isinstance(spec['rec'], (list, tuple)) and len(spec['rec']) == 2:
        parts.append(f"Typical range: {spec['rec'][0]} - {spec['rec'][1]}")
    return " | ".join(parts)


def show_range_hint(value, spec: dict):
    """Show a caption if value is outside the recommended range."""
    if not st.session_state.get("_show_hints", True):
        return
    rec = spec.get("rec")
    if isinstance(rec, (list, tuple)) and len(rec) == 2:
        lo, hi = float(rec[0]), float(rec[1])
        if value < lo or value > hi:
            st.caption(f"⚠️ Outside typical range ({lo}-{hi}).")


def render_tier_editor(tiers: list, key: str = "tier_editor") -> list:
    """
    Editable tier table. A blank upper bound means the tier is unbounded.

    Args:
        tiers: Current tiers as dicts
        key: Widget key

    Returns:
        Edited tiers as dicts (not yet validated)
    """
    df = pd.DataFrame(tiers, columns=["lower", "upper", "price"])
    edited = st.data_editor(
        df,
        num_rows="dynamic",
        use_container_width=True,
        key=key,
        column_config={
            "lower": st.column_config.NumberColumn("From (kgal)", min_value=0.0, step=0.5),
            "upper": st.column_config.NumberColumn("To (kgal, blank = no limit)", min_value=0.0, step=0.5),
            "price": st.column_config.NumberColumn("Price ($/kgal)", min_value=0.0, step=0.05, format="$%.2f"),
        },
    )
    return normalize_editor_rows(edited)


def normalize_editor_rows(df) -> list:
    """Convert the data_editor DataFrame into a list of tier dicts."""
    rows = []
    if df is None or (isinstance(df, pd.DataFrame) and df.empty):
        return rows
    for _, r in df.iterrows():
        upper = r.get("upper")
        rows.append({
            "lower": 0.0 if pd.isna(r.get("lower")) else float(r.get("lower")),
            "upper": None if upper is None or pd.isna(upper) else float(upper),
            "price": 0.0 if pd.isna(r.get("price")) else float(r.get("price")),
        })
    return rows


def render_kpis(result: DemandResult, monte_carlo: bool):
    """Headline metrics for the current scenario."""
    trace = result.trace
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("System use (MG/mo)", f"{result.usage_mg:,.2f}")
    col2.metric("Revenue ($/mo)", format_currency(result.revenue))
    usage_label = "Median use (kgal)" if monte_carlo else "Use per connection (kgal)"
    col3.metric(usage_label, f"{trace.per_connection_usage:.2f}")
    col4.metric("Bill per connection", f"${trace.bill_per_connection:,.2f}")

    if monte_carlo and trace.usage_p5 is not None:
        st.caption(f"5th-95th percentile use: {trace.usage_p5:.2f} - {trace.usage_p95:.2f} kgal · "
                   f"bills ${trace.bill_p5:,.2f} - ${trace.bill_p95:,.2f}")
    st.caption(f"Marginal ${trace.marginal_price:.2f} · average ${trace.average_price:.2f} · "
               f"perceived ${trace.perceived_price:.2f} per kgal")

    if result.validation_message:
        st.error(f"Tier structure: {result.validation_message} Using a flat rate instead.")
    for message in result.warnings:
        st.warning(message)


def _delta_text(pct):
    if pct is None or math.isnan(pct):
        return None
    return f"{pct:+.1f}%"


def render_snapshot_panel(history: SnapshotHistory, result: DemandResult) -> bool:
    """
    Capture / undo / clear controls plus the recent snapshot chart.

    Returns:
        True when a snapshot was captured this run
    """
    captured = False
    c1, c2, c3, c4 = st.columns([1, 1, 1, 3])
    if c1.button("Capture"):
        history.capture(result.usage_mg, result.revenue)
        captured = True
    if c2.button("Undo", disabled=len(history) == 0):
        history.undo()
    if c3.button("Clear all", disabled=len(history) == 0):
        history.clear()
    c4.caption(f"{len(history)} snapshots")

    latest = history.latest
    if latest is not None:
        m1, m2 = st.columns(2)
        m1.metric("Captured use (MG)", format_truncated_number(latest.usage_mg),
                  _delta_text(history.percent_change("usage_mg")), delta_color="inverse")
        m2.metric("Captured revenue", format_currency(latest.revenue),
                  _delta_text(history.percent_change("revenue")))
        show_figure(plot_snapshot_history(history.recent_frame()))
    return captured


def show_figure(fig):
    """Render a figure into the page, then release it from pyplot."""
    st.pyplot(fig)
    plt.close(fig)
