"""Report payload handed to the external report layer."""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Tuple

from impact_engine.simulation.schema import STATE_FIELDS, SimulationResult


class StakeholderReport(BaseModel):
    """Per-stakeholder summary of a simulation."""

    stakeholder: str = Field(..., description="Stakeholder type")
    shock_index: float = Field(..., description="Normalized signed impact")
    direction: str = Field(..., description="Positive, Negative or Neutral")
    confidence: float = Field(..., ge=0, le=1, description="Index confidence")
    std_deviation: float = Field(..., ge=0, description="Std of raw impact samples")
    confidence_interval: Tuple[float, float] = Field(..., description="95% interval for the mean raw impact")
    sensitivity: Dict[str, float] = Field(default_factory=dict, description="Pearson coefficient per parameter")
    dominant_driver: Optional[str] = Field(default=None, description="Parameter with the largest |coefficient|")
    before: Dict[str, float] = Field(..., description="Baseline state metrics")
    after: Dict[str, float] = Field(..., description="Post-policy state metrics")


class ImpactReport(BaseModel):
    """JSON-ready result of one simulate() call plus run metadata."""

    stakeholders: List[StakeholderReport] = Field(..., description="One entry per stakeholder")
    scenario: Dict[str, float] = Field(..., description="Scenario parameters used")
    seed: int = Field(..., description="Random seed used")
    iterations_aggregated: int = Field(..., description="Samples that entered the aggregates")
    discarded: int = Field(..., description="Samples discarded as numerically unstable")


def build_report(result: SimulationResult) -> ImpactReport:
    """Flatten a SimulationResult into the report payload."""
    rows = []
    for s in result.stakeholders:
        idx = result.shock_indices[s]
        unc = result.uncertainty[s]
        rows.append(StakeholderReport(
            stakeholder=s.value,
            shock_index=idx.value,
            direction=idx.direction.value,
            confidence=idx.confidence,
            std_deviation=unc.std_deviation,
            confidence_interval=unc.confidence_interval,
            sensitivity=dict(unc.sensitivity),
            dominant_driver=unc.dominant_driver,
            before={k: getattr(result.before_state[s], k) for k in STATE_FIELDS},
            after={k: getattr(result.after_state[s], k) for k in STATE_FIELDS},
        ))

    scenario = result.scenario.parameters()
    scenario["iteration_count"] = float(result.scenario.iteration_count)
    return ImpactReport(
        stakeholders=rows,
        scenario=scenario,
        seed=result.metadata.seed,
        iterations_aggregated=result.metadata.iterations_aggregated,
        discarded=result.metadata.discarded,
    )
