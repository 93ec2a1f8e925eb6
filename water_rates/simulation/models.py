#!/usr/bin/env python3
"""
Records exchanged by the demand engine.

Everything the engines return is a frozen dataclass: a computed snapshot of
one evaluation with no lifecycle beyond the call that produced it. A tier set
is a plain tuple of ``Tier`` so a user edit always builds a new one.
"""

import math
from dataclasses import dataclass, asdict
from typing import Optional, Tuple, Sequence, Any, Dict

import numpy as np

from water_rates.config.parameters import DEFAULT_ALPHA, DEFAULT_BILL_SALIENCE, DEFAULT_USAGE_VARIETY


def _as_float(value, default):
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Tier:
    """One price band ``[lower, upper)``; ``upper=None`` means unbounded."""
    lower: float
    upper: Optional[float]
    price: float

    @property
    def upper_bound(self) -> float:
        return math.inf if self.upper is None else self.upper

    @property
    def is_unbounded(self) -> bool:
        return self.upper is None

    @classmethod
    def from_raw(cls, raw: Any) -> 'Tier':
        """Build a tier from a Tier, a mapping or a (lower, upper, price) sequence."""
        if isinstance(raw, Tier):
            return raw
        if isinstance(raw, dict):
            lower, upper, price = raw.get("lower"), raw.get("upper"), raw.get("price")
        else:
            try:
                lower, upper, price = raw
            except (TypeError, ValueError):
                lower, upper, price = 0.0, None, 0.0

        upper = _as_float(upper, None)
        if upper is not None and math.isinf(upper) and upper > 0:
            upper = None
        return cls(lower=_as_float(lower, 0.0), upper=upper, price=_as_float(price, 0.0))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


TierSet = Tuple[Tier, ...]


@dataclass(frozen=True)
class TierValidationResult:
    tiers: TierSet
    is_valid: bool
    message: Optional[str] = None


@dataclass(frozen=True)
class BaselineAnchor:
    """Reference usage/price pair that elasticity responses are measured against."""
    usage: float
    perceived_price: float


@dataclass(frozen=True)
class DemandInputs:
    connections: float
    elasticity: float
    base_fee: float
    tiers: Sequence[Any]
    baseline: Optional[BaselineAnchor] = None
    bill_salience: Optional[float] = DEFAULT_BILL_SALIENCE
    alpha: float = DEFAULT_ALPHA


@dataclass(frozen=True)
class UsageSolution:
    usage: float
    marginal_price: float
    average_price: float
    perceived_price: float
    iterations: int = 0
    converged: bool = True


@dataclass(frozen=True)
class DemandTrace:
    per_connection_usage: float
    marginal_price: float
    average_price: float
    perceived_price: float
    bill_per_connection: float
    usage_p5: Optional[float] = None
    usage_p95: Optional[float] = None
    usage_median: Optional[float] = None
    bill_p5: Optional[float] = None
    bill_p95: Optional[float] = None


@dataclass(frozen=True, eq=False)
class PopulationSamples:
    """Per-individual arrays from one Monte Carlo run (index i is the same customer in every run)."""
    baseline_usages: np.ndarray
    usages: np.ndarray
    elasticities: np.ndarray
    bills: np.ndarray

    def __len__(self):
        return int(len(self.usages))


@dataclass(frozen=True, eq=False)
class DemandResult:
    usage_mg: float
    revenue: float
    volumetric_bill_per_connection: float
    trace: DemandTrace
    warnings: Tuple[str, ...]
    tiers_used: TierSet
    validation_message: Optional[str] = None
    population: Optional[PopulationSamples] = None

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to plain Python types (population arrays are left out)."""
        return {
            "usage_mg": self.usage_mg,
            "revenue": self.revenue,
            "volumetric_bill_per_connection": self.volumetric_bill_per_connection,
            "trace": asdict(self.trace),
            "warnings": list(self.warnings),
            "validation_message": self.validation_message,
            "tiers_used": [t.to_dict() for t in self.tiers_used],
        }


@dataclass(frozen=True, eq=False)
class MonteCarloDraws:
    """
    Standard-normal seeds for a synthetic population.

    ``q0`` seeds baseline-usage heterogeneity, ``eps`` seeds elasticity
    heterogeneity. Generated once per baseline freeze and shared read-only
    by every comparable run.
    """
    q0: np.ndarray
    eps: np.ndarray
    seed: Optional[int] = None

    def __post_init__(self):
        for name in ("q0", "eps"):
            arr = np.array(getattr(self, name), dtype=float)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @property
    def sample_count(self) -> int:
        return int(min(len(self.q0), len(self.eps)))


@dataclass(frozen=True, eq=False)
class MonteCarloParams:
    connections: float
    base_fee: float
    tiers: Sequence[Any]
    anchor: BaselineAnchor
    draws: MonteCarloDraws
    elasticity_mean: float
    usage_variety: float = DEFAULT_USAGE_VARIETY
    bill_salience: Optional[float] = DEFAULT_BILL_SALIENCE
    validation_message: Optional[str] = None
    alpha: float = DEFAULT_ALPHA


@dataclass(frozen=True)
class HistBin:
    bin_start: float
    bin_end: float
    pop_share: float
    vol_share: float


@dataclass(frozen=True)
class DecileImpact:
    decile: str
    delta_mg: float
    pct_of_total: float


@dataclass
class Snapshot:
    usage_mg: float
    revenue: float
    timestamp: Any = None
    label: str = ""
