#!/usr/bin/env python3
"""
Model constants and parameter specifications for the water rate simulator.
Holds the demand model's fixed dials plus the widget specs the UI renders.
"""

# MODEL CONSTANTS
BASELINE_USAGE = 7.0            # kgal per connection per month
MIN_USAGE = 0.1
MAX_USAGE = 60.0
MIN_PRICE = 0.01
DEFAULT_ALPHA = 0.7
DEFAULT_BILL_SALIENCE = 0.05
BILL_SALIENCE_RANGE = (0.0, 0.2)
DEFAULT_ELASTICITY = -0.2

# Fixed-point solver
FIXED_POINT_ITERATIONS = 12
FIXED_POINT_TOLERANCE = 0.0005

# Tier validation / bound checks
CONTIGUITY_TOLERANCE = 1e-6
BOUND_TOLERANCE = 1e-3
BOUND_DECIMALS = 4
PRICE_DECIMALS = 6

# Monte Carlo population
MONTE_CARLO_SAMPLE_SIZE = 3000
ELASTICITY_DIVERSITY = 0.05
ELASTICITY_BOUNDS = (-0.4, -0.05)
MIN_USAGE_VARIETY = 0.01
DEFAULT_USAGE_VARIETY = 0.4

# kgal -> million gallons
USAGE_MG_DIVISOR = 1000.0

# Analytics display
HISTOGRAM_BIN_WIDTH = 1.0
HISTOGRAM_MAX_USAGE = 30.0
ELASTICITY_PROFILE_POINTS = 400
SNAPSHOT_LIMIT = 20


# PARAMETER SPECIFICATIONS - widgets rendered by the UI
PARAM_SPECS = {
    # Customer base (GREEN - most likely to vary)
    "CONNECTIONS": {"type": "int", "min": 0, "max": 500_000, "step": 100, "label": "Connections (N)",
                    "desc": "Number of active connections", "default": 1000, "rec": (500, 100_000),
                    "color": "green", "widget": "number"},
    "ELASTICITY": {"type": "float", "min": -0.30, "max": -0.10, "step": 0.01, "label": "Average price sensitivity (ε)",
                   "desc": "How strongly usage reacts to the perceived price", "default": -0.15,
                   "rec": (-0.25, -0.10), "color": "amber"},
    "BASE_FEE": {"type": "float", "min": 0.0, "max": 200.0, "step": 0.5, "label": "Base fee ($/mo)",
                 "desc": "Fixed monthly charge per connection", "default": 25.0, "rec": (10.0, 50.0),
                 "color": "green", "widget": "number"},

    # Baseline & diversity (AMBER - may need adjustment)
    "TYPICAL_USE": {"type": "float", "min": 3.0, "max": MAX_USAGE, "step": 0.1, "label": "Typical use (kgal/mo)",
                    "desc": "Today's typical monthly use per connection", "default": BASELINE_USAGE,
                    "rec": (4.0, 10.0), "color": "amber", "widget": "number"},
    "USAGE_VARIETY": {"type": "float", "min": 0.3, "max": 0.5, "step": 0.01, "label": "Usage variety (σ)",
                      "desc": "Spread of household usage around the typical use", "default": DEFAULT_USAGE_VARIETY,
                      "rec": (0.3, 0.5), "color": "amber"},
    "BILL_SALIENCE": {"type": "float", "min": BILL_SALIENCE_RANGE[0], "max": BILL_SALIENCE_RANGE[1], "step": 0.01,
                      "label": "Bill salience", "desc": "How much the fixed fee weighs on usage decisions",
                      "default": DEFAULT_BILL_SALIENCE, "rec": (0.0, 0.1), "color": "amber"},

    # Model internals (RED - rarely changed)
    "ALPHA": {"type": "float", "min": 0.0, "max": 1.0, "step": 0.05, "label": "Marginal price weight (α)",
              "desc": "Weight on the marginal rate versus the average rate paid", "default": DEFAULT_ALPHA,
              "rec": (0.5, 0.9), "color": "red"},
    "SAMPLE_SIZE": {"type": "int", "min": 100, "max": 20_000, "step": 100, "label": "Synthetic customers",
                    "desc": "Population size drawn when the baseline is set", "default": MONTE_CARLO_SAMPLE_SIZE,
                    "rec": (1000, 5000), "color": "red"},
    "RANDOM_SEED": {"type": "int", "min": 0, "max": 2**31 - 1, "step": 1, "label": "Population seed",
                    "desc": "Seed for the synthetic population drawn when the baseline is set", "default": 42,
                    "color": "red", "widget": "number"},
}

PARAM_GROUPS = {
    "consumer": {
        "title": "Consumer Settings",
        "color": "green",
        "basic": ["CONNECTIONS", "ELASTICITY"],
        "detailed": [],
    },
    "baseline": {
        "title": "Baseline & Diversity",
        "color": "amber",
        "basic": ["TYPICAL_USE", "USAGE_VARIETY", "BILL_SALIENCE"],
        "detailed": ["ALPHA", "SAMPLE_SIZE", "RANDOM_SEED"],
    },
    "rates": {
        "title": "Rate Structure",
        "color": "green",
        "basic": ["BASE_FEE"],
        "detailed": [],
    },
}


def default_param_values() -> dict:
    """Default value for every widget, keyed like PARAM_SPECS."""
    return {name: spec["default"] for name, spec in PARAM_SPECS.items()}
