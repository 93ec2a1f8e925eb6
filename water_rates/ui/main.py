#!/usr/bin/env python3
"""
Main Streamlit application for the water rate simulator.
Orchestrates the UI components, baseline freezing and scenario evaluation.
"""

import io
import logging

import streamlit as st

from water_rates.analysis.metrics import (
    build_usage_histogram,
    compute_decile_impacts,
    compute_tier_occupancy,
    population_frame,
    summarize_population,
)
from water_rates.analysis.snapshots import SnapshotHistory
from water_rates.config.parameters import PARAM_GROUPS, PARAM_SPECS, default_param_values
from water_rates.config.scenarios import RATE_PROPOSALS, get_rate_proposal
from water_rates.config_manager import ASSUMPTION_PRESETS, SimulatorConfig, preset_values
from water_rates.simulation.engine import calculate_demand
from water_rates.simulation.montecarlo import generate_draws, compare_scenarios
from water_rates.ui.components import (
    render_parameter_group,
    render_tier_editor,
    render_kpis,
    render_snapshot_panel,
    show_figure,
)
from water_rates.visualization.charts import (
    plot_usage_histogram,
    plot_tier_occupancy,
    plot_decile_waterfall,
    plot_elasticity_beeswarm,
)

logger = logging.getLogger(__name__)


@st.cache_resource(show_spinner=False)
def get_draws_cached(count: int, seed: int):
    """Draws are shared read-only across reruns, so cache the object itself."""
    return generate_draws(count, seed)


def initialize_streamlit():
    """Initialize Streamlit configuration and page setup."""
    st.set_page_config(page_title="Water Rate Simulator", layout="wide")
    st.title("Water Rate Simulator")
    st.caption("Configure pricing tiers and consumer settings; compare proposals against a frozen baseline.")

    if "snapshots" not in st.session_state:
        st.session_state["snapshots"] = SnapshotHistory()
    if "params" not in st.session_state:
        st.session_state["params"] = default_param_values()
    st.session_state.setdefault("baseline", None)
    st.session_state.setdefault("tier_version", 0)


def apply_widget_values(params: dict, values: dict):
    """Overwrite widget values; dropping the widget state makes the new value show on this run."""
    for name, value in values.items():
        if name in PARAM_SPECS:
            params[name] = value
            st.session_state.pop(name, None)


def render_config_loader(params: dict):
    """Load a saved JSON configuration into the widgets and tier editor."""
    uploaded = st.file_uploader("Load configuration", type=["json"])
    if uploaded is None:
        return
    upload_id = f"{uploaded.name}:{uploaded.size}"
    if upload_id == st.session_state.get("_loaded_config"):
        return

    st.session_state["_loaded_config"] = upload_id
    try:
        loaded = SimulatorConfig.from_json(uploaded.getvalue().decode("utf-8"))
    except (ValueError, TypeError) as exc:
        logger.warning("Rejected configuration upload %s: %s", uploaded.name, exc)
        st.error(f"Could not load configuration: {exc}")
        return

    apply_widget_values(params, loaded.to_widget_values())
    st.session_state["loaded_tiers"] = loaded.rates.tiers
    st.session_state["tier_version"] += 1
    st.success(f"Loaded {uploaded.name}")


def render_sidebar():
    """
    Render the sidebar with all configuration controls.

    Returns:
        tuple: (params, proposal_name)
    """
    with st.sidebar:
        st.header("Configuration")
        st.session_state["_show_hints"] = st.toggle("Show range hints", value=True)
        params = st.session_state["params"]

        proposal_name = st.selectbox("Rate preset", [p["name"] for p in RATE_PROPOSALS], index=0)
        if proposal_name != st.session_state.get("_last_proposal"):
            # a newly selected rate preset brings its own base fee and tiers
            apply_widget_values(params, {"BASE_FEE": get_rate_proposal(proposal_name)["base_fee"]})
            st.session_state.pop("loaded_tiers", None)
            st.session_state["_last_proposal"] = proposal_name

        col1, col2 = st.columns([3, 1])
        assumption = col1.selectbox("Assumption preset", list(ASSUMPTION_PRESETS), index=2)
        if col2.button("Apply", help="Overwrite elasticity, salience and usage variety with the preset"):
            apply_widget_values(params, preset_values(assumption, params))

        render_config_loader(params)

        for group_name, group_config in PARAM_GROUPS.items():
            with st.expander(group_config['title'], expanded=(group_name != 'rates')):
                params = render_parameter_group(group_name, group_config, params)

    return params, proposal_name


def freeze_current_baseline(config: SimulatorConfig):
    """Freeze today's anchor and the seed for this baseline's population."""
    st.session_state["baseline"] = {
        "anchor": config.anchor(),
        "seed": config.population.resolve_seed(),
        "sample_size": config.population.sample_size,
        "rates": config.to_dict()["rates"],
    }
    logger.info("Baseline frozen at q0=%.2f (seed %d)", st.session_state["baseline"]["anchor"].usage,
                st.session_state["baseline"]["seed"])


def evaluate(config: SimulatorConfig):
    """
    Evaluate the current scenario.

    Returns:
        tuple: (result, baseline_result or None)
    """
    baseline = st.session_state.get("baseline")
    if baseline is None:
        return calculate_demand(config.to_demand_inputs()), None

    draws = get_draws_cached(baseline["sample_size"], baseline["seed"])
    anchor = baseline["anchor"]
    frozen = SimulatorConfig.from_dict({
        "rates": baseline["rates"],
        "demand": config.to_dict()["demand"],
        "population": config.to_dict()["population"],
    })
    baseline_result, result = compare_scenarios(
        frozen.to_monte_carlo_params(anchor, draws),
        config.to_monte_carlo_params(anchor, draws),
    )
    return result, baseline_result


def render_baseline_controls(config: SimulatorConfig):
    col1, col2 = st.columns([1, 3])
    if col1.button("Set Baseline", help="Freeze today's typical use and perceived price "
                                        "so changes are measured relative to today."):
        freeze_current_baseline(config)
    baseline = st.session_state.get("baseline")
    if baseline is None:
        col2.caption("No baseline set")
    else:
        col2.caption(f"Baseline set at q0 = {baseline['anchor'].usage:.2f} kgal")


def render_analytics(config: SimulatorConfig, result, baseline_result):
    """Distribution charts comparing the frozen baseline population with the proposal."""
    st.subheader("Analytics")
    if baseline_result is None or result.population is None:
        st.info("Set a baseline to see how the synthetic customer population responds.")
        return

    base_pop, prop_pop = baseline_result.population, result.population
    tiers = result.tiers_used

    col1, col2 = st.columns(2)
    with col1:
        show_figure(plot_usage_histogram(build_usage_histogram(base_pop.baseline_usages),
                                         baseline_result.tiers_used))
        show_figure(plot_decile_waterfall(
            compute_decile_impacts(base_pop.usages, prop_pop.usages, config.demand.connections)))
    with col2:
        show_figure(plot_tier_occupancy(compute_tier_occupancy(tiers, base_pop.usages),
                                        compute_tier_occupancy(tiers, prop_pop.usages)))
        show_figure(plot_elasticity_beeswarm(prop_pop.elasticities, center=config.demand.elasticity))

    st.dataframe(summarize_population({"Baseline": baseline_result, "Proposal": result}))

    csv_buffer = io.StringIO()
    population_frame(result).to_csv(csv_buffer, index=False)
    st.download_button("Download population (CSV)", data=csv_buffer.getvalue(),
                       file_name="proposal_population.csv", mime="text/csv")


def main():
    """Main application entry point."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    initialize_streamlit()

    params, proposal_name = render_sidebar()
    proposal = get_rate_proposal(proposal_name)

    st.subheader("Rate Structure")
    tiers = render_tier_editor(st.session_state.get("loaded_tiers") or proposal["tiers"],
                               key=f"tiers_{proposal_name}_{st.session_state['tier_version']}")

    config = SimulatorConfig.from_widget_values(params, tiers)
    for section, errors in config.validate_all().items():
        for message in errors:
            st.caption(f"⚠️ {section}: {message}")
    st.download_button("Save configuration (JSON)", data=config.to_json(),
                       file_name="water_rates_config.json", mime="application/json")

    render_baseline_controls(config)
    result, baseline_result = evaluate(config)
    render_kpis(result, monte_carlo=baseline_result is not None)

    st.subheader("Snapshots")
    history = st.session_state["snapshots"]
    if render_snapshot_panel(history, result) and st.session_state.get("baseline") is None:
        # the first capture also fixes the baseline for later comparisons
        freeze_current_baseline(config)

    render_analytics(config, result, baseline_result)


if __name__ == "__main__":
    main()
