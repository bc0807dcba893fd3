"""
Input validation helpers for scenario values and baseline indicators.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional, Tuple

import numpy as np

from impact_engine.errors import InvalidScenario, StaleBaselineData
from impact_engine.utils.logging_utils import get_logger

if TYPE_CHECKING:
    from impact_engine.simulation.schema import BaselineData

logger = get_logger(__name__)


def range_text(bounds: Tuple[Optional[float], Optional[float]]) -> str:
    """Render (lo, hi) as interval text, None meaning unbounded."""
    lo, hi = bounds
    left = "(-inf" if lo is None else f"[{lo}"
    right = "inf)" if hi is None else f"{hi}]"
    return f"{left}, {right}"


def require_in_range(
    name: str,
    value: Any,
    bounds: Tuple[Optional[float], Optional[float]],
) -> float:
    """
    Check that a scenario value is a finite real number within bounds.

    Returns:
        The value as float

    Raises:
        InvalidScenario: If the value is not numeric, not finite, or out of range
    """
    lo, hi = bounds
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidScenario(name, value, range_text(bounds))
    if (lo is not None and value < lo) or (hi is not None and value > hi):
        raise InvalidScenario(name, value, range_text(bounds))
    return float(value)


def require_seed(value: Any, name: str = "seed") -> Optional[int]:
    """Check that a seed is None or a non-negative integer."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 0:
        raise InvalidScenario(name, value, "non-negative integer or None")
    return int(value)


def _as_utc(ts: datetime) -> datetime:
    # naive timestamps are taken as UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def validate_baseline(
    baseline: "BaselineData",
    min_confidence: float,
    max_age_days: float,
    as_of: Optional[datetime] = None,
) -> bool:
    """
    Validate that every baseline indicator is confident and recent enough.

    Args:
        baseline: Baseline indicators
        min_confidence: Minimum accepted indicator confidence
        max_age_days: Maximum accepted indicator age in days
        as_of: Reference time (defaults to now, UTC)

    Returns:
        True if validation passes

    Raises:
        StaleBaselineData: Naming the first failing indicator and threshold
    """
    reference = _as_utc(as_of) if as_of is not None else datetime.now(timezone.utc)

    for name in sorted(baseline.indicators):
        indicator = baseline.indicators[name]
        if indicator.confidence < min_confidence:
            raise StaleBaselineData(name, "minimum confidence", min_confidence, indicator.confidence)

        age_days = (reference - _as_utc(indicator.timestamp)).total_seconds() / 86400.0
        if age_days > max_age_days:
            raise StaleBaselineData(
                name, "staleness window (days)", max_age_days, round(age_days, 2)
            )

    logger.debug(f"Baseline validation passed: {len(baseline.indicators)} indicators")
    return True
