"""Propagation, Monte Carlo sampling and outcome statistics."""
from .schema import (
    PARAMETER_NAMES,
    BaselineData,
    Direction,
    Indicator,
    PolicyShock,
    PolicyType,
    PolicyVariables,
    ScenarioParameters,
    ShockIndex,
    SimulationConfig,
    SimulationMetadata,
    SimulationResult,
    StateMetrics,
    UncertaintyMetrics,
    load_simulation_config,
)
from .shocks import derive_shock
from .propagate import Topology, propagate
from .metrics import compute_index
from .uncertainty import compute_uncertainty
from .sampler import simulate

__all__ = [
    "PARAMETER_NAMES",
    "BaselineData",
    "Direction",
    "Indicator",
    "PolicyShock",
    "PolicyType",
    "PolicyVariables",
    "ScenarioParameters",
    "ShockIndex",
    "SimulationConfig",
    "SimulationMetadata",
    "SimulationResult",
    "StateMetrics",
    "UncertaintyMetrics",
    "load_simulation_config",
    "derive_shock",
    "Topology",
    "propagate",
    "compute_index",
    "compute_uncertainty",
    "simulate",
]
