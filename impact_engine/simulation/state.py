"""Before/after state metrics derived from baseline indicators and raw impact."""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence, Tuple

from impact_engine.graph.schema import Stakeholder
from impact_engine.utils.logging_utils import get_logger

from .schema import STATE_FIELDS, BaselineData, StateEffectConfig, StateMetrics

logger = get_logger(__name__)


def baseline_state(baseline: BaselineData, stakeholder: Stakeholder) -> StateMetrics:
    """State metrics from the baseline; missing indicators read as 0.0."""
    values = {}
    for name in STATE_FIELDS:
        value = baseline.value(stakeholder, name)
        if value is None:
            logger.warning(f"Baseline has no '{BaselineData.key(stakeholder, name)}', using 0.0")
            value = 0.0
        values[name] = float(value)
    return StateMetrics(**values)


def apply_impact(
    before: StateMetrics,
    raw_impact: float,
    effect: Optional[StateEffectConfig],
) -> StateMetrics:
    """
    after = before * (1 + coefficient * raw_impact / 100)

    Raw impact is in percentage points of the direct shock; the coefficients
    are configuration, so a subsidy cut (negative impact) with
    cost_burden: -1.0 raises the cost burden.
    """
    if effect is None:
        return before
    return StateMetrics(**{
        name: getattr(before, name) * (1.0 + getattr(effect, name) * raw_impact / 100.0)
        for name in STATE_FIELDS
    })


def derive_states(
    raw_impacts: Mapping[Stakeholder, float],
    baseline: BaselineData,
    effect: Optional[StateEffectConfig],
    stakeholders: Sequence[Stakeholder],
) -> Tuple[Dict[Stakeholder, StateMetrics], Dict[Stakeholder, StateMetrics]]:
    """Before and after snapshots for each stakeholder."""
    before = {s: baseline_state(baseline, s) for s in stakeholders}
    after = {s: apply_impact(before[s], raw_impacts[s], effect) for s in stakeholders}
    return before, after
