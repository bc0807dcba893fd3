"""
Dispersion and sensitivity statistics over a Monte Carlo sample table.
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Dict, Sequence, Union

import numpy as np
import pandas as pd
from scipy import stats

from .schema import PARAMETER_NAMES, UncertaintyMetrics

Z_95 = 1.96


def interval_multiplier(n: int, min_samples: int = 30) -> float:
    """1.96 for large samples, Student-t 97.5% quantile below min_samples."""
    if n >= min_samples:
        return Z_95
    return float(stats.t.ppf(0.975, df=n - 1))


def pearson(x: np.ndarray, y: np.ndarray) -> float:
    """Pearson correlation; 0.0 when either side is constant."""
    if x.size < 2 or np.ptp(x) == 0 or np.ptp(y) == 0:
        return 0.0
    r = float(np.corrcoef(x, y)[0, 1])
    if not math.isfinite(r):
        return 0.0
    return min(max(r, -1.0), 1.0)


def compute_uncertainty(
    samples: Union[Sequence[float], pd.Series],
    scenario_samples: pd.DataFrame,
    min_samples: int = 30,
) -> UncertaintyMetrics:
    """
    Compute dispersion and one-at-a-time sensitivity for one stakeholder.

    Args:
        samples: Raw impact per accepted iteration
        scenario_samples: Parameter values per accepted iteration, same row order
            as samples, one column per scenario parameter
        min_samples: Below this count the interval uses a t correction

    Returns:
        UncertaintyMetrics with sample std, 95% interval for the mean, and a
        Pearson coefficient per parameter
    """
    y = np.asarray(samples, dtype=float)
    n = int(y.size)
    if n == 0:
        raise ValueError("compute_uncertainty needs at least one sample")
    if len(scenario_samples) != n:
        raise ValueError(
            f"scenario_samples has {len(scenario_samples)} rows, expected {n}"
        )

    mean = float(y.mean())
    std = float(y.std(ddof=1)) if n > 1 else 0.0

    if n > 1:
        half_width = interval_multiplier(n, min_samples) * std / math.sqrt(n)
    else:
        half_width = 0.0

    sensitivity: Dict[str, float] = {}
    for name in PARAMETER_NAMES:
        if name not in scenario_samples.columns:
            continue
        x = scenario_samples[name].to_numpy(dtype=float)
        sensitivity[name] = pearson(x, y)

    return UncertaintyMetrics(
        std_deviation=std,
        confidence_interval=(mean - half_width, mean + half_width),
        sensitivity=MappingProxyType(sensitivity),
    )
