"""
Tests for the shock index and uncertainty reductions.
"""

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from conftest import make_baseline
from impact_engine.graph import CausalGraph, NodeAttributes, Stakeholder, StakeholderNode
from impact_engine.simulation import Direction, compute_index, compute_uncertainty
from impact_engine.simulation.metrics import level_change, scale_anchor_for
from impact_engine.simulation.uncertainty import interval_multiplier, pearson


@pytest.mark.parametrize(
    "samples, anchor, expected",
    [
        ([-2.0, -2.2, -1.8], 1.0, Direction.NEGATIVE),
        ([3.0, 3.1, 2.9], 10.0, Direction.POSITIVE),
        ([0.005, -0.004, 0.001], 1.0, Direction.NEUTRAL),
        ([5.0, 5.0], 1000.0, Direction.NEUTRAL),  # 0.005 after normalization
    ],
)
def test_direction_with_dead_zone(samples, anchor, expected):
    idx = compute_index(samples, scale_anchor=anchor, epsilon=0.01)
    assert idx.direction == expected
    assert idx.value == pytest.approx(np.mean(samples) / anchor)


def test_confidence_high_for_tight_samples_low_for_noisy():
    tight = compute_index([10.0, 10.1, 9.9, 10.0])
    noisy = compute_index([10.0, -8.0, 12.0, -9.0])
    assert tight.confidence > 0.95
    assert noisy.confidence == 0.0, "std far above |mean| clamps confidence to 0"


def test_confidence_with_zero_mean_and_zero_spread():
    idx = compute_index([0.0, 0.0, 0.0])
    assert idx.value == 0.0
    assert idx.direction == Direction.NEUTRAL
    assert idx.confidence == 1.0


def test_compute_index_rejects_bad_input():
    with pytest.raises(ValueError):
        compute_index([])
    with pytest.raises(ValueError):
        compute_index([1.0], scale_anchor=0.0)


def test_scale_anchor_fallbacks():
    baseline = make_baseline({Stakeholder.CITIZEN: 250.0})
    graph = CausalGraph(nodes=[
        StakeholderNode(id="c", stakeholder=Stakeholder.CITIZEN),
        StakeholderNode(id="m", stakeholder=Stakeholder.MSME, attributes=NodeAttributes(scale_anchor=40.0)),
        StakeholderNode(id="f", stakeholder=Stakeholder.FARMER),
    ])

    assert scale_anchor_for(Stakeholder.CITIZEN, baseline, graph) == 250.0
    assert scale_anchor_for(Stakeholder.MSME, baseline, graph) == 40.0
    assert scale_anchor_for(Stakeholder.FARMER, baseline, graph) == 1.0


def test_interval_uses_normal_approximation_for_large_samples():
    rng = np.random.default_rng(0)
    y = rng.normal(5.0, 2.0, size=200)
    table = pd.DataFrame({"elasticity": rng.normal(size=200)})

    unc = compute_uncertainty(y, table, min_samples=30)
    se = y.std(ddof=1) / np.sqrt(200)
    lo, hi = unc.confidence_interval

    assert unc.std_deviation == pytest.approx(y.std(ddof=1))
    assert lo == pytest.approx(y.mean() - 1.96 * se)
    assert hi == pytest.approx(y.mean() + 1.96 * se)


def test_interval_widened_for_small_samples():
    y = np.array([1.0, 2.0, 4.0, 3.0, 5.0])
    table = pd.DataFrame({"elasticity": [0.1, 0.2, 0.4, 0.3, 0.5]})

    small = compute_uncertainty(y, table, min_samples=30)
    as_large = compute_uncertainty(y, table, min_samples=2)

    width_small = small.confidence_interval[1] - small.confidence_interval[0]
    width_large = as_large.confidence_interval[1] - as_large.confidence_interval[0]
    assert width_small > width_large
    assert interval_multiplier(5, 30) == pytest.approx(stats.t.ppf(0.975, 4))
    assert interval_multiplier(30, 30) == 1.96


def test_sensitivity_identifies_dominant_driver():
    rng = np.random.default_rng(7)
    n = 500
    table = pd.DataFrame({
        "elasticity": rng.normal(0.5, 0.1, n),
        "adoption_rate": rng.normal(0.7, 0.05, n),
        "compliance_rate": np.full(n, 0.8),
        "pass_through_rate": rng.normal(0.6, 0.05, n),
    })
    y = -20.0 * table["elasticity"] + 0.5 * table["adoption_rate"]

    unc = compute_uncertainty(y, table)
    assert unc.sensitivity["elasticity"] < -0.9
    assert unc.sensitivity["compliance_rate"] == 0.0, "Constant column has no correlation"
    assert unc.dominant_driver == "elasticity"
    assert set(unc.sensitivity) == {"elasticity", "adoption_rate", "compliance_rate", "pass_through_rate"}


def test_single_sample_has_degenerate_interval():
    unc = compute_uncertainty([3.0], pd.DataFrame({"elasticity": [0.5]}))
    assert unc.std_deviation == 0.0
    assert unc.confidence_interval == (3.0, 3.0)
    assert unc.sensitivity["elasticity"] == 0.0


def test_pearson_bounds():
    x = np.array([1.0, 2.0, 3.0])
    assert pearson(x, 2 * x) == pytest.approx(1.0)
    assert pearson(x, -x) == pytest.approx(-1.0)
    assert pearson(x, np.ones(3)) == 0.0


def test_mismatched_table_rejected():
    with pytest.raises(ValueError):
        compute_uncertainty([1.0, 2.0], pd.DataFrame({"elasticity": [0.1]}))


def test_level_change_makes_index_unit_free():
    raw = [-2.5, -3.0, -2.0]
    in_units = compute_index(level_change(raw, 40_000.0), scale_anchor=40_000.0)
    in_thousands = compute_index(level_change(raw, 40.0), scale_anchor=40.0)

    assert level_change(raw, 40_000.0)[0] == pytest.approx(-1000.0)
    assert in_units.value == pytest.approx(-0.025)
    assert in_units.value == pytest.approx(in_thousands.value)
    assert in_units.direction == in_thousands.direction == Direction.NEGATIVE


def test_pearson_matches_numpy():
    rng = np.random.default_rng(3)
    x = rng.normal(size=50)
    y = 0.3 * x + rng.normal(size=50)
    assert pearson(x, y) == pytest.approx(np.corrcoef(x, y)[0, 1])
