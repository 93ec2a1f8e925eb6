#!/usr/bin/env python3
"""
Rate structure presets for the water rate simulator.
Contains today's default schedule and a few alternative proposals.
"""

# Today's schedule (kgal bands, $/kgal)
DEFAULT_TIERS = [
    {"lower": 0.0, "upper": 5.0, "price": 3.50},
    {"lower": 5.0, "upper": 10.0, "price": 4.25},
    {"lower": 10.0, "upper": None, "price": 5.00},
]

DEFAULT_BASE_FEE = 25.0

# Predefined rate proposals (compared against the frozen baseline)
RATE_PROPOSALS = [
    {
        "name": "Current",
        "base_fee": DEFAULT_BASE_FEE,
        "tiers": DEFAULT_TIERS,
    },
    {
        "name": "Conservation",
        "base_fee": 20.0,
        "tiers": [
            {"lower": 0.0, "upper": 5.0, "price": 3.25},
            {"lower": 5.0, "upper": 10.0, "price": 4.75},
            {"lower": 10.0, "upper": 20.0, "price": 6.50},
            {"lower": 20.0, "upper": None, "price": 9.00},
        ],
    },
    {
        "name": "Uniform",
        "base_fee": 25.0,
        "tiers": [
            {"lower": 0.0, "upper": None, "price": 4.10},
        ],
    },
    {
        "name": "FixedCostRecovery",
        "base_fee": 40.0,
        "tiers": [
            {"lower": 0.0, "upper": 5.0, "price": 3.00},
            {"lower": 5.0, "upper": 10.0, "price": 3.60},
            {"lower": 10.0, "upper": None, "price": 4.20},
        ],
    },
]


def get_rate_proposal(name: str) -> dict:
    """Look up a rate proposal by name."""
    for proposal in RATE_PROPOSALS:
        if proposal["name"] == name:
            return proposal
    raise ValueError(f"Unknown rate proposal: {name}. Available: {[p['name'] for p in RATE_PROPOSALS]}")
