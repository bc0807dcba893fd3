"""Schema for the stakeholder causal graph and its serialized form."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import networkx as nx
import yaml
from pydantic import BaseModel, ConfigDict, Field


class Stakeholder(str, Enum):
    """Closed set of stakeholder types."""
    CITIZEN = "Citizen"
    MSME = "MSME"
    FARMER = "Farmer"
    GOVERNMENT = "Government"


class NodeAttributes(BaseModel):
    """Typed node attributes. Unknown keys are rejected."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    population: Optional[float] = Field(default=None, ge=0, description="Population represented by the node")
    scale_anchor: Optional[float] = Field(default=None, gt=0, description="Fallback normalization anchor")
    region: Optional[str] = Field(default=None, description="Region label")
    sector: Optional[str] = Field(default=None, description="Economic sector label")
    description: Optional[str] = Field(default=None, description="Free-text description")


class StakeholderNode(BaseModel):
    """A stakeholder in the graph, addressed by a stable id."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique node id")
    stakeholder: Stakeholder = Field(..., description="Stakeholder type")
    attributes: NodeAttributes = Field(default_factory=NodeAttributes, description="Node attributes")


class CausalEdge(BaseModel):
    """
    Directed weighted causal link.

    The weight range is checked by graph validation, not here, so that an
    out-of-range weight is reported with the edge that carries it.
    """
    model_config = ConfigDict(frozen=True)

    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")
    weight: float = Field(..., description="Transmission weight in [0, 1]")
    relation: str = Field(default="influence", description="Relationship type label")

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.target)

    def describe(self) -> str:
        return f"{self.source} -[{self.relation}]-> {self.target}"


class CausalGraph(BaseModel):
    """Stakeholder nodes plus directed causal edges."""
    model_config = ConfigDict(frozen=True)

    nodes: List[StakeholderNode] = Field(default_factory=list, description="Stakeholder nodes")
    edges: List[CausalEdge] = Field(default_factory=list, description="Causal edges")

    @property
    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    @property
    def stakeholders(self) -> List[Stakeholder]:
        """Stakeholder types present in the graph, in enum order."""
        present = {n.stakeholder for n in self.nodes}
        return [s for s in Stakeholder if s in present]

    def nodes_of(self, stakeholder: Stakeholder) -> List[StakeholderNode]:
        return [n for n in self.nodes if n.stakeholder == stakeholder]

    def outgoing(self) -> Dict[str, List[CausalEdge]]:
        """Adjacency list keyed by source node id."""
        adjacency: Dict[str, List[CausalEdge]] = {n.id: [] for n in self.nodes}
        for edge in self.edges:
            adjacency.setdefault(edge.source, []).append(edge)
        return adjacency

    def to_networkx(self) -> nx.DiGraph:
        """Directed networkx view; nodes carry `stakeholder`, edges carry `weight`/`relation`."""
        g = nx.DiGraph()
        for n in self.nodes:
            g.add_node(n.id, stakeholder=n.stakeholder)
        for e in self.edges:
            g.add_edge(e.source, e.target, weight=e.weight, relation=e.relation)
        return g


def serialize(graph: CausalGraph) -> Dict[str, List[Dict[str, Any]]]:
    """Graph as ordered node and edge lists of plain values."""
    return {
        "nodes": [
            {
                "id": n.id,
                "stakeholder": n.stakeholder.value,
                "attributes": n.attributes.model_dump(exclude_none=True),
            }
            for n in graph.nodes
        ],
        "edges": [
            {"source": e.source, "target": e.target, "weight": e.weight, "relation": e.relation}
            for e in graph.edges
        ],
    }


def deserialize(data: Dict[str, Any]) -> CausalGraph:
    """Inverse of serialize()."""
    return CausalGraph.model_validate(
        {"nodes": data.get("nodes", []), "edges": data.get("edges", [])}
    )


def load_graph(path: str) -> CausalGraph:
    """Load a stakeholder graph from a YAML file."""
    graph_path = Path(path)
    if not graph_path.exists():
        raise FileNotFoundError(f"Graph file not found: {path}")

    with open(graph_path, "r") as f:
        data = yaml.safe_load(f) or {}

    return deserialize(data)
