from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from impact_engine.graph.schema import CausalGraph, Stakeholder

from .schema import BaselineData, Direction, ShockIndex

PERCENT = 100.0


def scale_anchor_for(
    stakeholder: Stakeholder,
    baseline: BaselineData,
    graph: Optional[CausalGraph] = None,
) -> float:
    """
    Normalization anchor for a stakeholder.

    Baseline income_level if positive, else the first node's scale_anchor
    attribute, else 1.0.
    """
    income = baseline.value(stakeholder, "income_level")
    if income is not None and income > 0:
        return float(income)
    if graph is not None:
        for node in graph.nodes_of(stakeholder):
            if node.attributes.scale_anchor is not None:
                return float(node.attributes.scale_anchor)
    return 1.0


def level_change(samples: Sequence[float], scale_anchor: float) -> np.ndarray:
    """
    Raw impacts (percentage points) as absolute changes in the anchor's units.

    A raw impact of -2.5 on a stakeholder anchored at 40000 is a change of
    -1000; dividing by the same anchor in compute_index gives -0.025
    whatever currency or unit the baseline is expressed in.
    """
    return np.asarray(samples, dtype=float) * scale_anchor / PERCENT


def direction_of(value: float, epsilon: float = 0.01) -> Direction:
    if value > epsilon:
        return Direction.POSITIVE
    if value < -epsilon:
        return Direction.NEGATIVE
    return Direction.NEUTRAL


def compute_index(
    samples: Sequence[float],
    scale_anchor: float = 1.0,
    epsilon: float = 0.01,
    delta: float = 1e-6,
) -> ShockIndex:
    """
    Reduce one stakeholder's sample distribution to a shock index.

    value is the sample mean divided by the scale anchor. confidence is
    1 - min(1, std / (|mean| + delta)), so a tight distribution around a
    clearly non-zero mean scores close to 1.
    """
    x = np.asarray(samples, dtype=float)
    if x.size == 0:
        raise ValueError("compute_index needs at least one sample")
    if scale_anchor <= 0:
        raise ValueError(f"scale_anchor must be positive, got {scale_anchor}")

    mean = float(x.mean())
    std = float(x.std(ddof=1)) if x.size > 1 else 0.0

    value = mean / scale_anchor
    confidence = 1.0 - min(1.0, std / (abs(mean) + delta))
    confidence = float(min(max(confidence, 0.0), 1.0))

    return ShockIndex(value=value, direction=direction_of(value, epsilon), confidence=confidence)
