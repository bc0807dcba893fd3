"""
Monte Carlo simulation over perturbed scenario parameters.

All random draws happen up front on a single Generator seeded once per call;
worker threads only run deterministic propagation over their slice of the
draw table and return private results, which are merged by iteration index.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime
from types import MappingProxyType
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from impact_engine.config import Config
from impact_engine.errors import ConvergenceFailure, NumericalInstability, SimulationTimeout
from impact_engine.graph.schema import CausalGraph, Stakeholder
from impact_engine.graph.validate import validate
from impact_engine.utils.data_validation import require_seed, validate_baseline
from impact_engine.utils.logging_utils import get_logger

from .metrics import compute_index, level_change, scale_anchor_for
from .propagate import Topology, propagate
from .schema import (
    PARAMETER_BOUNDS,
    PARAMETER_NAMES,
    BaselineData,
    PerturbationConfig,
    PolicyShock,
    ScenarioParameters,
    SimulationConfig,
    SimulationMetadata,
    SimulationResult,
)
from .shocks import policy_effect
from .state import derive_states
from .uncertainty import compute_uncertainty

logger = get_logger(__name__)

# (iteration index, raw impact per stakeholder or None, instability or None)
SampleOutcome = Tuple[int, Optional[Dict[Stakeholder, float]], Optional[NumericalInstability]]


def resolve_seed(seed: Optional[int], scenario: ScenarioParameters) -> int:
    """Explicit seed, else the scenario's, else Config.DEFAULT_RANDOM_SEED, else fresh OS entropy."""
    for candidate in (seed, scenario.seed, Config.DEFAULT_RANDOM_SEED):
        checked = require_seed(candidate)
        if checked is not None:
            return checked
    return int(np.random.SeedSequence().entropy)


def draw_scenarios(
    scenario: ScenarioParameters,
    perturbation: PerturbationConfig,
    rng: np.random.Generator,
    n: Optional[int] = None,
) -> pd.DataFrame:
    """
    Draw perturbed parameter sets around the configured scenario.

    Each parameter follows a normal centred on its configured value with
    standard deviation centre * relative scale, truncated to its valid range
    (rates in [0, 1], elasticity >= 0). A zero centre or zero scale yields the
    centre value unchanged.
    """
    n = scenario.iteration_count if n is None else n
    columns: Dict[str, np.ndarray] = {}
    for name in PARAMETER_NAMES:
        centre = float(getattr(scenario, name))
        scale = abs(centre) * float(getattr(perturbation, name))
        if scale == 0.0:
            columns[name] = np.full(n, centre)
            continue
        lo, hi = PARAMETER_BOUNDS[name]
        lo = -np.inf if lo is None else lo
        hi = np.inf if hi is None else hi
        a, b = (lo - centre) / scale, (hi - centre) / scale
        draws = stats.truncnorm.rvs(a, b, loc=centre, scale=scale, size=n, random_state=rng)
        columns[name] = np.clip(draws, lo, hi)
    return pd.DataFrame(columns, columns=list(PARAMETER_NAMES))


def _run_chunk(
    start: int,
    draws: np.ndarray,
    graph: CausalGraph,
    shock: PolicyShock,
    topology: Topology,
    hop_limit: int,
    instability_factor: float,
) -> List[SampleOutcome]:
    outcomes: List[SampleOutcome] = []
    for offset, row in enumerate(draws):
        sample = ScenarioParameters(
            **{name: float(v) for name, v in zip(PARAMETER_NAMES, row)},
            iteration_count=1,
        )
        try:
            impacts = propagate(
                graph, shock, sample,
                hop_limit=hop_limit,
                instability_factor=instability_factor,
                topology=topology,
            )
            outcomes.append((start + offset, impacts, None))
        except NumericalInstability as exc:
            outcomes.append((start + offset, None, exc))
    logger.debug(f"Chunk starting at {start} finished: {len(outcomes)} iterations")
    return outcomes


def run_iterations(
    graph: CausalGraph,
    shock: PolicyShock,
    draws: pd.DataFrame,
    config: SimulationConfig,
    timeout: Optional[float] = None,
) -> List[SampleOutcome]:
    """
    Run propagation for every row of the draw table on a thread pool.

    Returns:
        Outcomes sorted by iteration index

    Raises:
        SimulationTimeout: If the deadline passes before every chunk finishes
    """
    topology = Topology.from_graph(graph)
    values = draws[list(PARAMETER_NAMES)].to_numpy(dtype=float)
    total = len(values)
    bounds = [(i, min(i + config.chunk_size, total)) for i in range(0, total, config.chunk_size)]

    executor = ThreadPoolExecutor(max_workers=max(1, min(config.max_workers, len(bounds))))
    try:
        futures = [
            executor.submit(
                _run_chunk, lo, values[lo:hi], graph, shock, topology,
                config.hop_limit, config.instability_factor,
            )
            for lo, hi in bounds
        ]
        done, not_done = wait(futures, timeout=timeout)
        if not_done:
            for f in not_done:
                f.cancel()
            completed = sum(
                len(f.result()) for f in done if not f.cancelled() and f.exception() is None
            )
            logger.error(f"Simulation timed out after {timeout}s: {completed}/{total} iterations")
            raise SimulationTimeout(completed=completed, total=total, timeout=timeout)

        outcomes: List[SampleOutcome] = []
        for f in futures:
            outcomes.extend(f.result())
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    outcomes.sort(key=lambda o: o[0])
    return outcomes


def simulate(
    graph: CausalGraph,
    shock: PolicyShock,
    baseline: BaselineData,
    scenario: ScenarioParameters,
    config: Optional[SimulationConfig] = None,
    *,
    seed: Optional[int] = None,
    timeout: Optional[float] = None,
    as_of: Optional[datetime] = None,
) -> SimulationResult:
    """
    Monte Carlo simulation of a policy shock over the stakeholder graph.

    Steps:
    1) Validate graph, baseline and policy mapping (fatal errors raised before any sampling)
    2) Draw scenario.iteration_count perturbed parameter sets from one seeded generator
    3) Propagate each draw (in parallel), discarding numerically unstable samples
    4) Reduce the accepted samples to shock indices, uncertainty and state snapshots

    Args:
        graph: Stakeholder graph (read-only)
        shock: Direct policy shock
        baseline: Baseline indicators
        scenario: Validated scenario parameters
        config: Engine configuration (defaults to SimulationConfig())
        seed: Random seed; overrides scenario.seed
        timeout: Deadline in seconds for the sampling phase
        as_of: Reference time for baseline staleness (defaults to now)

    Returns:
        SimulationResult keyed by the stakeholder types present in the graph

    Raises:
        InvalidGraph, StaleBaselineData, InvalidPolicy: Input errors
        ConvergenceFailure: Discard rate above config.discard_threshold
        SimulationTimeout: Deadline expired
    """
    config = config if config is not None else SimulationConfig()
    run_seed = resolve_seed(seed, scenario)
    n = scenario.iteration_count

    report = validate(graph, required_types=config.required_stakeholders)
    validate_baseline(
        baseline,
        min_confidence=config.baseline.min_confidence,
        max_age_days=config.baseline.max_age_days,
        as_of=as_of,
    )
    effect = None
    if shock.policy_type is not None:
        effect = policy_effect(config, shock.policy_type).state_effects

    stakeholders = graph.stakeholders
    for target in shock.targets:
        if target not in stakeholders:
            logger.warning(f"Shock targets {target.value}, which has no node in the graph")

    logger.info(
        f"Simulating {n} iterations over {len(graph.nodes)} nodes "
        f"({len(report.findings)} validation findings), seed={run_seed}"
    )

    rng = np.random.default_rng(run_seed)
    draws = draw_scenarios(scenario, config.perturbation, rng, n)
    outcomes = run_iterations(graph, shock, draws, config, timeout=timeout)

    accepted = [o for o in outcomes if o[1] is not None]
    discarded = n - len(accepted)
    discard_rate = discarded / n
    if discarded:
        first = next(o[2] for o in outcomes if o[2] is not None)
        logger.warning(f"Discarded {discarded}/{n} unstable samples; first: {first}")
    if discard_rate > config.discard_threshold or not accepted:
        raise ConvergenceFailure(discarded=discarded, total=n, threshold=config.discard_threshold)

    index = [o[0] for o in accepted]
    samples = draws.iloc[index].reset_index(drop=True).copy()
    for s in stakeholders:
        samples[s.value] = [o[1][s] for o in accepted]

    scenario_samples = samples[list(PARAMETER_NAMES)]
    shock_indices = {}
    uncertainty = {}
    raw_means = {}
    for s in stakeholders:
        outcome = samples[s.value].to_numpy(dtype=float)
        raw_means[s] = float(outcome.mean())
        anchor = scale_anchor_for(s, baseline, graph)
        shock_indices[s] = compute_index(
            level_change(outcome, anchor),
            scale_anchor=anchor,
            epsilon=config.direction_epsilon,
            delta=config.confidence_delta,
        )
        uncertainty[s] = compute_uncertainty(
            outcome, scenario_samples, min_samples=config.min_sample_count
        )

    before, after = derive_states(raw_means, baseline, effect, stakeholders)

    logger.info(
        f"Simulation complete: {len(accepted)} iterations aggregated, {discarded} discarded"
    )
    return SimulationResult(
        shock_indices=MappingProxyType(shock_indices),
        before_state=MappingProxyType(before),
        after_state=MappingProxyType(after),
        uncertainty=MappingProxyType(uncertainty),
        scenario=scenario,
        metadata=SimulationMetadata(
            seed=run_seed,
            iterations_requested=n,
            iterations_aggregated=len(accepted),
            discarded=discarded,
            discard_rate=discard_rate,
            hop_limit=config.hop_limit,
        ),
    )
