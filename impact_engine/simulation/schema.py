"""Schemas for simulation inputs, configuration and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd
import yaml
from pydantic import BaseModel, Field

from impact_engine.config import Config
from impact_engine.errors import InvalidScenario
from impact_engine.graph.schema import Stakeholder
from impact_engine.utils.data_validation import require_in_range, require_seed

PARAMETER_NAMES: Tuple[str, ...] = (
    "elasticity",
    "adoption_rate",
    "compliance_rate",
    "pass_through_rate",
)

STATE_FIELDS: Tuple[str, ...] = ("income_level", "cost_burden", "benefit_received")

# (lo, hi) per scenario parameter, None meaning unbounded
PARAMETER_BOUNDS: Dict[str, Tuple[Optional[float], Optional[float]]] = {
    "elasticity": (0.0, None),
    "adoption_rate": (0.0, 1.0),
    "compliance_rate": (0.0, 1.0),
    "pass_through_rate": (0.0, 1.0),
}


# ---------------------------------------------------------------------------
# Scenario parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScenarioParameters:
    """
    Behavioural parameters for one simulation call.

    Attributes:
        elasticity: Responsiveness multiplier (>= 0, unbounded)
        adoption_rate: Share of the eligible population engaging with the policy
        compliance_rate: Share of affected parties acting on the policy
        pass_through_rate: Share of upstream impact reaching downstream stakeholders
        iteration_count: Monte Carlo iterations
        seed: Optional random seed for reproducible runs

    Out-of-range values raise InvalidScenario; nothing is clamped.
    """
    elasticity: float = 0.5
    adoption_rate: float = 0.7
    compliance_rate: float = 0.8
    pass_through_rate: float = 0.6
    iteration_count: int = 1000
    seed: Optional[int] = None

    def __post_init__(self):
        for name in PARAMETER_NAMES:
            require_in_range(name, getattr(self, name), PARAMETER_BOUNDS[name])

        count = self.iteration_count
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise InvalidScenario("iteration_count", count, "positive integer")

        require_seed(self.seed)

    def parameters(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in PARAMETER_NAMES}


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class PolicyType(str, Enum):
    SUBSIDY_CHANGE = "SubsidyChange"
    TAX_CHANGE = "TaxChange"
    CREDIT_INCENTIVE = "CreditIncentive"


class StateEffectConfig(BaseModel):
    """Coefficient per state metric: after = before * (1 + coef * raw_impact / 100)."""
    income_level: float = Field(default=0.0, description="Income response to impact")
    cost_burden: float = Field(default=0.0, description="Cost-burden response to impact")
    benefit_received: float = Field(default=0.0, description="Benefit response to impact")


class PolicyEffectConfig(BaseModel):
    """How one policy type turns parameters into a shock and the shock into state changes."""
    parameters: Dict[str, float] = Field(
        ..., description="Sign/weight per declared policy parameter"
    )
    state_effects: StateEffectConfig = Field(
        default_factory=StateEffectConfig, description="State-metric coefficients"
    )


class ScenarioDefaults(BaseModel):
    """Default scenario values."""
    elasticity: float = Field(default=0.5, ge=0)
    adoption_rate: float = Field(default=0.7, ge=0, le=1)
    compliance_rate: float = Field(default=0.8, ge=0, le=1)
    pass_through_rate: float = Field(default=0.6, ge=0, le=1)
    iteration_count: int = Field(default=1000, ge=1)


class PerturbationConfig(BaseModel):
    """Relative standard deviation used when resampling each parameter."""
    elasticity: float = Field(default=0.25, ge=0)
    adoption_rate: float = Field(default=0.1, ge=0)
    compliance_rate: float = Field(default=0.1, ge=0)
    pass_through_rate: float = Field(default=0.1, ge=0)


class BaselineRequirements(BaseModel):
    """Quality gates for baseline indicators."""
    min_confidence: float = Field(default=0.5, ge=0, le=1, description="Minimum indicator confidence")
    max_age_days: float = Field(default=365.0, gt=0, description="Staleness window in days")


class SimulationConfig(BaseModel):
    """Engine configuration, threaded explicitly into every call."""

    default_scenario: ScenarioDefaults = Field(default_factory=ScenarioDefaults)
    hop_limit: int = Field(default=3, ge=1, description="Maximum propagation hops")
    instability_factor: float = Field(
        default=10.0, gt=0, description="Bound as a multiple of the largest direct shock"
    )
    discard_threshold: float = Field(
        default=0.05, ge=0, le=1, description="Maximum tolerated share of discarded samples"
    )
    min_sample_count: int = Field(
        default=30, ge=2, description="Below this, intervals use a t correction"
    )
    direction_epsilon: float = Field(default=0.01, ge=0, description="Neutral dead-zone")
    confidence_delta: float = Field(default=1e-6, gt=0, description="Guard for near-zero means")
    perturbation: PerturbationConfig = Field(default_factory=PerturbationConfig)
    baseline: BaselineRequirements = Field(default_factory=BaselineRequirements)
    max_workers: int = Field(default_factory=lambda: Config.MAX_WORKERS, ge=1)
    chunk_size: int = Field(default=250, ge=1, description="Iterations per worker task")
    required_stakeholders: List[Stakeholder] = Field(default_factory=lambda: list(Stakeholder))
    policy_effects: Dict[PolicyType, PolicyEffectConfig] = Field(default_factory=dict)

    def scenario(self, **overrides: Any) -> ScenarioParameters:
        """ScenarioParameters from the configured defaults plus overrides."""
        values: Dict[str, Any] = self.default_scenario.model_dump()
        values.update(overrides)
        return ScenarioParameters(**values)


def load_simulation_config(path: Optional[str] = None) -> SimulationConfig:
    """Load and validate simulation config from YAML (shipped default if path is None)."""
    config_path = Path(path) if path is not None else Config.simulation_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Simulation config not found: {config_path}")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    return SimulationConfig(**data)


# ---------------------------------------------------------------------------
# Collaborator inputs
# ---------------------------------------------------------------------------

class PolicyVariables(BaseModel):
    """Structured policy description produced by the extraction component."""
    policy_type: PolicyType = Field(..., description="Policy family")
    target_group: List[Stakeholder] = Field(..., min_length=1, description="Directly targeted stakeholders")
    parameters: Dict[str, float] = Field(default_factory=dict, description="Declared policy parameters")
    timeline: Optional[str] = Field(default=None, description="Implementation timeline")


class Indicator(BaseModel):
    value: float
    unit: str = ""
    source: str = ""
    timestamp: datetime
    confidence: float = Field(..., ge=0, le=1)


class BaselineData(BaseModel):
    """Baseline indicators keyed '<Stakeholder>.<field>', e.g. 'Citizen.income_level'."""
    indicators: Dict[str, Indicator] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @staticmethod
    def key(stakeholder: Stakeholder, name: str) -> str:
        return f"{stakeholder.value}.{name}"

    def value(self, stakeholder: Stakeholder, name: str) -> Optional[float]:
        indicator = self.indicators.get(self.key(stakeholder, name))
        return None if indicator is None else indicator.value


@dataclass(frozen=True)
class PolicyShock:
    """Initial signed impact per targeted stakeholder."""
    impacts: Mapping[Stakeholder, float]
    policy_type: Optional[PolicyType] = None
    parameters: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "impacts", MappingProxyType(dict(self.impacts)))
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    @property
    def targets(self) -> List[Stakeholder]:
        return [s for s in Stakeholder if s in self.impacts]

    @property
    def max_magnitude(self) -> float:
        return max((abs(v) for v in self.impacts.values()), default=0.0)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class Direction(str, Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"


@dataclass(frozen=True)
class StateMetrics:
    income_level: float
    cost_burden: float
    benefit_received: float


@dataclass(frozen=True)
class ShockIndex:
    value: float
    direction: Direction
    confidence: float


@dataclass(frozen=True)
class UncertaintyMetrics:
    std_deviation: float
    confidence_interval: Tuple[float, float]
    sensitivity: Mapping[str, float]

    @property
    def dominant_driver(self) -> Optional[str]:
        """Parameter with the largest absolute sensitivity coefficient."""
        if not self.sensitivity:
            return None
        return max(self.sensitivity, key=lambda name: abs(self.sensitivity[name]))


@dataclass(frozen=True)
class SimulationMetadata:
    seed: int
    iterations_requested: int
    iterations_aggregated: int
    discarded: int
    discard_rate: float
    hop_limit: int


@dataclass(frozen=True)
class SimulationResult:
    """
    Outcome of one simulate() call, keyed by Stakeholder.

    Mappings are read-only views over values built for this result only.
    """
    shock_indices: Mapping[Stakeholder, ShockIndex]
    before_state: Mapping[Stakeholder, StateMetrics]
    after_state: Mapping[Stakeholder, StateMetrics]
    uncertainty: Mapping[Stakeholder, UncertaintyMetrics]
    scenario: ScenarioParameters
    metadata: SimulationMetadata

    @property
    def stakeholders(self) -> List[Stakeholder]:
        return list(self.shock_indices)

    def to_frame(self) -> pd.DataFrame:
        """One row per stakeholder, flattened for tabular reporting."""
        rows = []
        for s in self.stakeholders:
            idx = self.shock_indices[s]
            unc = self.uncertainty[s]
            row: Dict[str, Any] = {
                "stakeholder": s.value,
                "shock_index": idx.value,
                "direction": idx.direction.value,
                "confidence": idx.confidence,
                "std_deviation": unc.std_deviation,
                "ci_lower": unc.confidence_interval[0],
                "ci_upper": unc.confidence_interval[1],
                "dominant_driver": unc.dominant_driver,
            }
            for name in STATE_FIELDS:
                row[f"{name}_before"] = getattr(self.before_state[s], name)
                row[f"{name}_after"] = getattr(self.after_state[s], name)
            rows.append(row)
        return pd.DataFrame(rows)
