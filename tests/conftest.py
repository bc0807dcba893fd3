from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict

import pytest

from impact_engine.graph import CausalEdge, CausalGraph, Stakeholder, StakeholderNode
from impact_engine.simulation import (
    BaselineData,
    Indicator,
    PolicyShock,
    PolicyType,
    SimulationConfig,
    load_simulation_config,
)

CONFIG_DIR = Path(__file__).resolve().parent.parent / "configs"
AS_OF = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_graph(edges, stakeholders=None) -> CausalGraph:
    """One node per stakeholder (id = lowercase type name) plus the given edges."""
    stakeholders = stakeholders or list(Stakeholder)
    nodes = [StakeholderNode(id=s.value.lower(), stakeholder=s) for s in stakeholders]
    return CausalGraph(
        nodes=nodes,
        edges=[CausalEdge(source=s, target=t, weight=w, relation=r) for s, t, w, r in edges],
    )


def make_baseline(income: Dict[Stakeholder, float], as_of: datetime = AS_OF) -> BaselineData:
    indicators = {}
    for s, value in income.items():
        ts = as_of - timedelta(days=30)
        indicators[f"{s.value}.income_level"] = Indicator(
            value=value, unit="index", source="test", timestamp=ts, confidence=0.9
        )
        indicators[f"{s.value}.cost_burden"] = Indicator(
            value=value * 0.4, unit="index", source="test", timestamp=ts, confidence=0.9
        )
        indicators[f"{s.value}.benefit_received"] = Indicator(
            value=value * 0.1, unit="index", source="test", timestamp=ts, confidence=0.9
        )
    return BaselineData(indicators=indicators, metadata={"source": "fixture"})


@pytest.fixture
def subsidy_graph() -> CausalGraph:
    """Government --subsidy--> Citizen (0.8) and MSME (0.6)."""
    return make_graph(
        [
            ("government", "citizen", 0.8, "subsidy"),
            ("government", "msme", 0.6, "subsidy"),
        ],
        stakeholders=[Stakeholder.CITIZEN, Stakeholder.MSME, Stakeholder.GOVERNMENT],
    )


@pytest.fixture
def subsidy_config() -> SimulationConfig:
    cfg = load_simulation_config(str(CONFIG_DIR / "simulation.yaml"))
    return cfg.model_copy(update={
        "required_stakeholders": [Stakeholder.CITIZEN, Stakeholder.MSME, Stakeholder.GOVERNMENT],
    })


@pytest.fixture
def subsidy_shock() -> PolicyShock:
    return PolicyShock(
        impacts={Stakeholder.GOVERNMENT: -20.0},
        policy_type=PolicyType.SUBSIDY_CHANGE,
        parameters={"subsidy_reduction_percent": 20.0},
    )


@pytest.fixture
def baseline() -> BaselineData:
    return make_baseline({
        Stakeholder.CITIZEN: 1.0,
        Stakeholder.MSME: 1.0,
        Stakeholder.FARMER: 1.0,
        Stakeholder.GOVERNMENT: 1.0,
    })
