#!/usr/bin/env python3
"""
config_manager.py

Groups the simulator's inputs into logical sections and maps them onto the
engine's input records. This is the bridge between the UI's flat widget
values and calculate_demand / run_monte_carlo_simulation.
"""

import json
import secrets
from dataclasses import dataclass, asdict, field
from typing import Dict, Any, Optional, List

from water_rates.config.parameters import (
    BASELINE_USAGE,
    DEFAULT_ALPHA,
    DEFAULT_BILL_SALIENCE,
    DEFAULT_USAGE_VARIETY,
    BILL_SALIENCE_RANGE,
    MONTE_CARLO_SAMPLE_SIZE,
    PARAM_SPECS,
    default_param_values,
)
from water_rates.config.scenarios import DEFAULT_TIERS, DEFAULT_BASE_FEE
from water_rates.simulation.engine import anchor_from_rates
from water_rates.simulation.models import BaselineAnchor, DemandInputs, MonteCarloDraws, MonteCarloParams
from water_rates.simulation.validation import validate_tiers


@dataclass
class RateStructure:
    """Fixed charge and volumetric tiers"""
    base_fee: float = DEFAULT_BASE_FEE
    tiers: List[Dict[str, Any]] = None

    def __post_init__(self):
        if self.tiers is None:
            self.tiers = [dict(t) for t in DEFAULT_TIERS]

    def validate(self) -> List[str]:
        errors = []
        if self.base_fee < 0:
            errors.append("Base fee cannot be negative")
        check = validate_tiers(self.tiers)
        if not check.is_valid:
            errors.append(check.message)
        return errors


@dataclass
class DemandSettings:
    """Customer base and price response"""
    connections: int = 1000
    elasticity: float = -0.15
    bill_salience: float = DEFAULT_BILL_SALIENCE
    alpha: float = DEFAULT_ALPHA

    def validate(self) -> List[str]:
        errors = []
        if self.connections < 0:
            errors.append("Connections cannot be negative")
        if self.elasticity >= 0:
            errors.append("Elasticity should be negative (higher prices reduce usage)")
        lo, hi = BILL_SALIENCE_RANGE
        if self.bill_salience < lo or self.bill_salience > hi:
            errors.append(f"Bill salience should be between {lo} and {hi}")
        if self.alpha < 0 or self.alpha > 1:
            errors.append("Marginal price weight must be between 0 and 1")
        return errors


@dataclass
class PopulationSettings:
    """Baseline anchor and synthetic population"""
    typical_use: float = BASELINE_USAGE
    usage_variety: float = DEFAULT_USAGE_VARIETY
    sample_size: int = MONTE_CARLO_SAMPLE_SIZE
    random_seed: Optional[int] = 42

    def validate(self) -> List[str]:
        errors = []
        if self.typical_use < PARAM_SPECS["TYPICAL_USE"]["min"]:
            errors.append(f"Typical use should be at least {PARAM_SPECS['TYPICAL_USE']['min']} kgal")
        if self.usage_variety <= 0:
            errors.append("Usage variety must be positive")
        if self.sample_size <= 0:
            errors.append("Population size must be positive")
        return errors

    def resolve_seed(self) -> int:
        """The configured seed, or a fresh random one when none is set."""
        if self.random_seed is not None:
            return int(self.random_seed)
        return secrets.randbelow(2**31)


@dataclass
class SimulatorConfig:
    """
    Consolidated configuration that groups all simulator inputs and
    builds the engine's input records from them.
    """
    rates: RateStructure = field(default_factory=RateStructure)
    demand: DemandSettings = field(default_factory=DemandSettings)
    population: PopulationSettings = field(default_factory=PopulationSettings)

    def validate_all(self) -> Dict[str, List[str]]:
        """Validate all configuration sections and return any errors"""
        errors = {}
        sections = {
            "rates": self.rates,
            "demand": self.demand,
            "population": self.population,
        }
        for section_name, section in sections.items():
            section_errors = section.validate()
            if section_errors:
                errors[section_name] = section_errors
        return errors

    def anchor(self) -> BaselineAnchor:
        """Today's baseline under the configured rates."""
        return anchor_from_rates(self.population.typical_use, self.rates.tiers, self.rates.base_fee,
                                 self.demand.bill_salience, self.demand.alpha)

    def to_demand_inputs(self, baseline: Optional[BaselineAnchor] = None) -> DemandInputs:
        return DemandInputs(
            connections=self.demand.connections,
            elasticity=self.demand.elasticity,
            base_fee=self.rates.base_fee,
            tiers=self.rates.tiers,
            baseline=baseline if baseline is not None else self.anchor(),
            bill_salience=self.demand.bill_salience,
            alpha=self.demand.alpha,
        )

    def to_monte_carlo_params(self, anchor: BaselineAnchor, draws: MonteCarloDraws) -> MonteCarloParams:
        return MonteCarloParams(
            connections=self.demand.connections,
            base_fee=self.rates.base_fee,
            tiers=self.rates.tiers,
            anchor=anchor,
            draws=draws,
            elasticity_mean=self.demand.elasticity,
            usage_variety=self.population.usage_variety,
            bill_salience=self.demand.bill_salience,
            alpha=self.demand.alpha,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization"""
        return {
            "rates": asdict(self.rates),
            "demand": asdict(self.demand),
            "population": asdict(self.population),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimulatorConfig':
        """Create configuration from dictionary"""
        config = cls()
        if "rates" in data:
            config.rates = RateStructure(**data["rates"])
        if "demand" in data:
            config.demand = DemandSettings(**data["demand"])
        if "population" in data:
            config.population = PopulationSettings(**data["population"])
        return config

    @classmethod
    def from_widget_values(cls, values: Dict[str, Any], tiers: List[Dict[str, Any]]) -> 'SimulatorConfig':
        """Build a configuration from PARAM_SPECS-keyed UI values."""
        seed = values.get("RANDOM_SEED")
        return cls(
            rates=RateStructure(base_fee=float(values["BASE_FEE"]), tiers=[dict(t) for t in tiers]),
            demand=DemandSettings(
                connections=int(values["CONNECTIONS"]),
                elasticity=float(values["ELASTICITY"]),
                bill_salience=float(values["BILL_SALIENCE"]),
                alpha=float(values["ALPHA"]),
            ),
            population=PopulationSettings(
                typical_use=float(values["TYPICAL_USE"]),
                usage_variety=float(values["USAGE_VARIETY"]),
                sample_size=int(values["SAMPLE_SIZE"]),
                random_seed=None if seed is None else int(seed),
            ),
        )

    def to_widget_values(self) -> Dict[str, Any]:
        """Inverse of from_widget_values (tiers excluded); an unset seed is left out."""
        values = {
            "CONNECTIONS": self.demand.connections,
            "ELASTICITY": self.demand.elasticity,
            "BASE_FEE": self.rates.base_fee,
            "TYPICAL_USE": self.population.typical_use,
            "USAGE_VARIETY": self.population.usage_variety,
            "BILL_SALIENCE": self.demand.bill_salience,
            "ALPHA": self.demand.alpha,
            "SAMPLE_SIZE": self.population.sample_size,
        }
        if self.population.random_seed is not None:
            values["RANDOM_SEED"] = self.population.random_seed
        return values

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> 'SimulatorConfig':
        """Parse a saved configuration; malformed input raises ValueError or TypeError."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a JSON object")
        return cls.from_dict(data)

    def save_to_file(self, filepath: str):
        with open(filepath, 'w') as f:
            f.write(self.to_json())

    @classmethod
    def load_from_file(cls, filepath: str) -> 'SimulatorConfig':
        with open(filepath, 'r') as f:
            return cls.from_json(f.read())


# Demand assumptions applied on top of the current widget values
ASSUMPTION_PRESETS = {
    "conservative": {"ELASTICITY": -0.25, "BILL_SALIENCE": 0.1, "USAGE_VARIETY": 0.5},
    "optimistic": {"ELASTICITY": -0.10, "BILL_SALIENCE": 0.0, "USAGE_VARIETY": 0.3},
    "realistic": {},
}


def preset_values(preset_name: str, base: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Widget values with a named assumption preset laid over ``base`` (defaults when omitted)."""
    if preset_name not in ASSUMPTION_PRESETS:
        raise ValueError(f"Unknown preset: {preset_name}. Available: {list(ASSUMPTION_PRESETS)}")
    values = dict(base) if base is not None else default_param_values()
    values.update(ASSUMPTION_PRESETS[preset_name])
    return values


def create_preset_config(preset_name: str) -> SimulatorConfig:
    return SimulatorConfig.from_widget_values(preset_values(preset_name), DEFAULT_TIERS)
