"""
Structural validation of the stakeholder causal graph.

Hard failures (raise InvalidGraph):
- dangling edge endpoints, duplicate node ids, self-loops, parallel edges
- a required stakeholder type with no node
- an edge weight outside [0, 1]

Non-fatal findings (returned in the report):
- directed cycles (feedback loops are legitimate in this domain)
- components unreachable from the rest of the graph
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

import networkx as nx

from impact_engine.errors import InvalidGraph
from impact_engine.graph.schema import CausalGraph, Stakeholder
from impact_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)

CYCLE = "cycle"
DISCONNECTED = "disconnected component"


@dataclass(frozen=True)
class ValidationFinding:
    kind: str
    message: str
    node_ids: tuple = ()


@dataclass(frozen=True)
class ValidationReport:
    ok: bool
    findings: List[ValidationFinding] = field(default_factory=list)

    @property
    def cycles(self) -> List[tuple]:
        return [f.node_ids for f in self.findings if f.kind == CYCLE]

    @property
    def disconnected(self) -> List[tuple]:
        return [f.node_ids for f in self.findings if f.kind == DISCONNECTED]


def _check_references(graph: CausalGraph) -> None:
    seen = set()
    for node_id in graph.node_ids:
        if node_id in seen:
            raise InvalidGraph("duplicate node id", f"'{node_id}'")
        seen.add(node_id)

    pairs = set()
    for edge in graph.edges:
        for endpoint in (edge.source, edge.target):
            if endpoint not in seen:
                raise InvalidGraph(
                    "dangling edge endpoint",
                    f"edge {edge.describe()} references missing node '{endpoint}'",
                )
        if edge.source == edge.target:
            raise InvalidGraph("self-loop", f"edge {edge.describe()}")
        if edge.key in pairs:
            raise InvalidGraph("duplicate edge", f"more than one edge {edge.source} -> {edge.target}")
        pairs.add(edge.key)


def _check_stakeholder_types(graph: CausalGraph, required: Iterable[Stakeholder]) -> None:
    present = set(graph.stakeholders)
    missing = [s.value for s in required if s not in present]
    if missing:
        raise InvalidGraph("missing stakeholder type", ", ".join(missing))


def _check_weights(graph: CausalGraph) -> None:
    for edge in graph.edges:
        w = edge.weight
        if not math.isfinite(w) or w < 0.0 or w > 1.0:
            raise InvalidGraph(
                "weight out of range",
                f"edge {edge.describe()} has weight {w}, expected [0.0, 1.0]",
            )


def find_cycles(g: nx.DiGraph) -> List[tuple]:
    """Elementary directed cycles, each as a tuple of node ids."""
    # Johnson's algorithm; DFS over the directed edge set
    return [tuple(c) for c in nx.simple_cycles(g)]


def find_disconnected(g: nx.DiGraph) -> List[tuple]:
    """Undirected components other than the largest one."""
    components = sorted(
        (sorted(c) for c in nx.connected_components(g.to_undirected())),
        key=lambda c: (-len(c), c),
    )
    return [tuple(c) for c in components[1:]]


def validate(
    graph: CausalGraph,
    required_types: Optional[Sequence[Stakeholder]] = None,
) -> ValidationReport:
    """
    Validate graph structure.

    Args:
        graph: Graph to validate
        required_types: Stakeholder types that must each have a node
            (defaults to every Stakeholder)

    Returns:
        ValidationReport with ok=True and any non-fatal findings

    Raises:
        InvalidGraph: On any hard structural failure
    """
    required = list(Stakeholder) if required_types is None else list(required_types)

    _check_references(graph)
    _check_stakeholder_types(graph, required)
    _check_weights(graph)

    g = graph.to_networkx()
    findings: List[ValidationFinding] = []

    for cycle in find_cycles(g):
        message = f"feedback loop: {' -> '.join(cycle + cycle[:1])}"
        logger.warning(f"Graph {CYCLE}: {message}")
        findings.append(ValidationFinding(kind=CYCLE, message=message, node_ids=cycle))

    for component in find_disconnected(g):
        message = f"nodes {list(component)} are not connected to the rest of the graph"
        logger.warning(f"Graph {DISCONNECTED}: {message}")
        findings.append(ValidationFinding(kind=DISCONNECTED, message=message, node_ids=component))

    logger.debug(
        f"Graph validation passed: {len(graph.nodes)} nodes, {len(graph.edges)} edges, "
        f"{len(findings)} findings"
    )
    return ValidationReport(ok=True, findings=findings)
