"""Stakeholder causal graph: schema, serialization and validation."""
from .schema import (
    Stakeholder,
    NodeAttributes,
    StakeholderNode,
    CausalEdge,
    CausalGraph,
    serialize,
    deserialize,
    load_graph,
)
from .validate import ValidationFinding, ValidationReport, validate

__all__ = [
    "Stakeholder",
    "NodeAttributes",
    "StakeholderNode",
    "CausalEdge",
    "CausalGraph",
    "serialize",
    "deserialize",
    "load_graph",
    "ValidationFinding",
    "ValidationReport",
    "validate",
]
