#!/usr/bin/env python3
"""
Chart generation for the analytics panel.
Each builder takes analytics output and returns a matplotlib figure.
"""

import io
import logging
import math
from typing import Dict, List, Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from water_rates.analysis.metrics import elasticity_profile, tier_breaks
from water_rates.simulation.models import DecileImpact, HistBin, Tier

logger = logging.getLogger(__name__)

INCREASE_COLOR = "#f87171"
DECREASE_COLOR = "#34d399"
TIER_COLORS = ("#a5b4fc", "#c7d2fe")


def _bin_label(b: HistBin) -> str:
    if math.isinf(b.bin_end):
        return f"{b.bin_start:g}+"
    return f"{b.bin_start:g}-{b.bin_end:g}"


def _empty_figure(message: str, title: str):
    fig, ax = plt.subplots(figsize=(6, 4))
    ax.text(0.5, 0.5, message, ha='center', va='center', transform=ax.transAxes)
    ax.set_axis_off()
    ax.set_title(title)
    return fig


def plot_usage_histogram(bins: List[HistBin], tiers: Sequence[Tier] = (), title: str = "Usage distribution"):
    """
    Population share per usage bin, with dashed lines at the tier breaks.

    Args:
        bins: Output of build_usage_histogram
        tiers: Tier set whose breaks are marked
        title: Axes title

    Returns:
        matplotlib Figure
    """
    if not bins:
        logger.info("Histogram requested with no samples")
        return _empty_figure("No population yet: set a baseline", title)

    fig, ax = plt.subplots(figsize=(9, 4))
    x = np.arange(len(bins))
    ax.bar(x, [b.pop_share * 100 for b in bins], color="#7dd3fc", label="Accounts")
    ax.plot(x, [b.vol_share * 100 for b in bins], color="#0369a1", marker="o", ms=3, label="Volume")

    for brk in tier_breaks(tiers):
        # bins start at 0 with uniform width, so a break maps to a fractional bin position
        width = bins[0].bin_end - bins[0].bin_start
        ax.axvline(brk / width - 0.5, color="#94a3b8", linestyle="--", linewidth=1)

    ax.set_xticks(x[::2])
    ax.set_xticklabels([_bin_label(b) for b in bins][::2], rotation=45, ha="right")
    ax.set_ylabel("Share (%)")
    ax.set_title(title)
    ax.legend()
    fig.tight_layout()
    return fig


def plot_tier_occupancy(baseline: Dict[str, float], proposal: Dict[str, float], title: str = "Tier occupancy"):
    """Stacked bars of the share of customers in each tier, baseline vs proposal."""
    if not baseline or not proposal:
        return _empty_figure("No population yet: set a baseline", title)

    fig, ax = plt.subplots(figsize=(6, 4))
    labels = ["Baseline", "Proposal"]
    bottoms = np.zeros(2)
    for i, key in enumerate(baseline.keys()):
        heights = np.array([baseline.get(key, 0.0), proposal.get(key, 0.0)]) * 100
        ax.bar(labels, heights, bottom=bottoms, label=key, color=TIER_COLORS[i % 2], edgecolor="white")
        bottoms += heights

    ax.set_ylabel("Customers (%)")
    ax.set_ylim(0, 100)
    ax.set_title(title)
    ax.legend(loc="upper right", fontsize=8)
    fig.tight_layout()
    return fig


def plot_decile_waterfall(impacts: List[DecileImpact], title: str = "Usage change by baseline decile"):
    """ΔMG per baseline-usage decile, labelled with its share of the total change."""
    if not impacts:
        return _empty_figure("No population yet: set a baseline", title)

    fig, ax = plt.subplots(figsize=(8, 4))
    deltas = [d.delta_mg for d in impacts]
    colors = [DECREASE_COLOR if v < 0 else INCREASE_COLOR for v in deltas]
    bars = ax.bar([d.decile for d in impacts], deltas, color=colors)

    for bar, impact in zip(bars, impacts):
        sign = "-" if impact.delta_mg < 0 else "+"
        ax.annotate(f"{sign}{abs(impact.pct_of_total) * 100:.0f}%",
                    (bar.get_x() + bar.get_width() / 2, bar.get_height()),
                    ha="center", va="bottom" if impact.delta_mg >= 0 else "top", fontsize=8)

    ax.axhline(0, color="#64748b", linewidth=0.8)
    ax.set_ylabel("ΔMG")
    ax.set_title(title)
    fig.tight_layout()
    return fig


def plot_elasticity_beeswarm(eps: Sequence[float], center: Optional[float] = None,
                             title: str = "Price sensitivity across customers"):
    """Strip plot of a down-sampled elasticity population, with the chosen mean marked."""
    points = elasticity_profile(eps)
    if not points:
        return _empty_figure("No population yet: set a baseline", title)

    fig, ax = plt.subplots(figsize=(8, 2.5))
    sns.stripplot(x=points, jitter=0.35, size=3, color="#7dd3fc", ax=ax)
    ax.axvline(0, color="#94a3b8", linestyle="--", linewidth=1)
    if center is not None:
        ax.axvline(center, color="#6366f1", linestyle="--", linewidth=1.2, label="ε slider")
        ax.legend(loc="upper left", fontsize=8)
    ax.set_xlim(-0.45, 0.05)
    ax.set_xlabel("ε")
    ax.set_title(title)
    fig.tight_layout()
    return fig


def plot_snapshot_history(frame, title: str = "Captured scenarios"):
    """Side-by-side bars of usage and revenue for recent snapshots."""
    if frame is None or frame.empty:
        return _empty_figure("No snapshots captured", title)

    fig, (ax_mg, ax_rev) = plt.subplots(1, 2, figsize=(9, 3.5))
    sns.barplot(data=frame, x="label", y="usage_mg", color="#60a5fa", ax=ax_mg)
    ax_mg.set_title("Water use (MG)")
    ax_mg.set_xlabel("")
    sns.barplot(data=frame, x="label", y="revenue", color="#34d399", ax=ax_rev)
    ax_rev.set_title("Revenue ($)")
    ax_rev.set_xlabel("")
    fig.suptitle(title)
    fig.tight_layout(rect=[0, 0, 1, 0.94])
    return fig


def figure_to_png(fig, dpi: int = 150) -> bytes:
    """Render a figure to PNG bytes and close it."""
    buf = io.BytesIO()
    fig.savefig(buf, dpi=dpi, bbox_inches="tight", format="png")
    plt.close(fig)
    buf.seek(0)
    return buf.read()
