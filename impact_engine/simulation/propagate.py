"""
Single-sample shock propagation over the stakeholder graph.

One call is deterministic: no randomness, no shared state. Cycles are
handled by bounding propagation to a fixed number of hops instead of
iterating to a fixed point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from impact_engine.errors import NumericalInstability
from impact_engine.graph.schema import CausalGraph, Stakeholder

from .schema import PolicyShock, ScenarioParameters


@dataclass(frozen=True)
class Topology:
    """Read-only adjacency view of a graph, built once and shared by every sample."""
    order: Tuple[str, ...]
    stakeholder_of: Mapping[str, Stakeholder]
    outgoing: Mapping[str, Tuple[Tuple[str, float], ...]]
    members: Mapping[Stakeholder, Tuple[str, ...]]

    @classmethod
    def from_graph(cls, graph: CausalGraph) -> "Topology":
        adjacency = graph.outgoing()
        return cls(
            order=tuple(graph.node_ids),
            stakeholder_of={n.id: n.stakeholder for n in graph.nodes},
            outgoing={
                node_id: tuple((e.target, e.weight) for e in adjacency.get(node_id, []))
                for node_id in graph.node_ids
            },
            members={s: tuple(n.id for n in graph.nodes_of(s)) for s in graph.stakeholders},
        )


def _check_bound(
    topology: Topology,
    accumulated: Dict[str, float],
    touched,
    bound: float,
    hop: int,
) -> None:
    for node_id in touched:
        magnitude = abs(accumulated[node_id])
        if magnitude > bound:
            raise NumericalInstability(
                stakeholder=topology.stakeholder_of[node_id].value,
                node_id=node_id,
                hop=hop,
                magnitude=magnitude,
                bound=bound,
            )


def propagate(
    graph: CausalGraph,
    shock: PolicyShock,
    scenario: ScenarioParameters,
    hop_limit: int = 3,
    instability_factor: float = 10.0,
    topology: Optional[Topology] = None,
) -> Dict[Stakeholder, float]:
    """
    Propagate a policy shock through the graph for one scenario sample.

    Hop 0 seeds every node of a shocked stakeholder type with
    shock * elasticity * adoption_rate. Each following hop sends the previous
    wave along outgoing edges, scaled by weight * pass_through_rate *
    compliance_rate; contributions arriving at the same node are summed and
    added to what the node already holds.

    Args:
        graph: Validated stakeholder graph
        shock: Direct impact per targeted stakeholder
        scenario: One (possibly perturbed) scenario sample
        hop_limit: Number of propagation waves after seeding
        instability_factor: Stability bound as a multiple of the largest |direct shock|
        topology: Precomputed adjacency for graph (built if None)

    Returns:
        Accumulated raw impact per stakeholder type present in the graph
        (mean over that type's nodes)

    Raises:
        NumericalInstability: If any node's accumulated |impact| exceeds the bound
    """
    topo = topology if topology is not None else Topology.from_graph(graph)

    seed_factor = scenario.elasticity * scenario.adoption_rate
    transmit = scenario.pass_through_rate * scenario.compliance_rate
    bound = instability_factor * shock.max_magnitude

    accumulated: Dict[str, float] = {node_id: 0.0 for node_id in topo.order}

    # hop 0: direct shock
    frontier: Dict[str, float] = {}
    for node_id in topo.order:
        stakeholder = topo.stakeholder_of[node_id]
        if stakeholder in shock.impacts:
            frontier[node_id] = shock.impacts[stakeholder] * seed_factor
            accumulated[node_id] += frontier[node_id]
    _check_bound(topo, accumulated, frontier, bound, hop=0)

    for hop in range(1, hop_limit + 1):
        wave: Dict[str, float] = {}
        for source, impact in frontier.items():
            if impact == 0.0:
                continue
            for target, weight in topo.outgoing[source]:
                wave[target] = wave.get(target, 0.0) + impact * weight * transmit

        for target, contribution in wave.items():
            accumulated[target] += contribution
        _check_bound(topo, accumulated, wave, bound, hop=hop)

        if not wave:
            break
        frontier = wave

    return {
        stakeholder: sum(accumulated[n] for n in node_ids) / len(node_ids)
        for stakeholder, node_ids in topo.members.items()
    }
