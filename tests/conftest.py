import pytest

from water_rates.config.scenarios import DEFAULT_TIERS, DEFAULT_BASE_FEE
from water_rates.simulation.engine import anchor_from_rates
from water_rates.simulation.montecarlo import generate_draws
from water_rates.simulation.validation import validate_tiers


@pytest.fixture
def raw_tiers():
    return [dict(t) for t in DEFAULT_TIERS]


@pytest.fixture
def tiers(raw_tiers):
    return validate_tiers(raw_tiers).tiers


@pytest.fixture
def anchor(raw_tiers):
    return anchor_from_rates(7.0, raw_tiers, DEFAULT_BASE_FEE)


@pytest.fixture
def draws():
    return generate_draws(500, seed=123)
