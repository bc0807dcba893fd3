"""
Error taxonomy for the policy impact engine.

Structural and input errors (graph, scenario, baseline, policy) are raised
before any simulation work starts. NumericalInstability is raised per sample
and handled by the Monte Carlo layer; it only escalates to a
SimulationError when the discard rate crosses the configured threshold.
"""

from __future__ import annotations

from typing import Any


class ImpactEngineError(Exception):
    """Base class for every error raised by the engine."""


class InvalidGraph(ImpactEngineError, ValueError):
    """Stakeholder graph failed a hard structural check."""

    def __init__(self, reason: str, details: str = ""):
        self.reason = reason
        self.details = details
        message = f"InvalidGraph: {reason}"
        if details:
            message += f" ({details})"
        super().__init__(message)


class InvalidScenario(ImpactEngineError, ValueError):
    """Scenario parameter outside its declared range."""

    def __init__(self, field: str, value: Any, valid_range: str):
        self.field = field
        self.value = value
        self.valid_range = valid_range
        super().__init__(
            f"InvalidScenario: {field}={value!r} is outside the valid range {valid_range}"
        )


class InvalidPolicy(ImpactEngineError, ValueError):
    """Policy variables cannot be mapped onto a shock."""

    def __init__(self, policy_type: str, details: str):
        self.policy_type = policy_type
        self.details = details
        super().__init__(f"InvalidPolicy: {policy_type}: {details}")


class StaleBaselineData(ImpactEngineError, ValueError):
    """Baseline indicator is too old or too uncertain to simulate against."""

    def __init__(self, indicator: str, check: str, threshold: Any, actual: Any):
        self.indicator = indicator
        self.check = check
        self.threshold = threshold
        self.actual = actual
        super().__init__(
            f"StaleBaselineData: indicator '{indicator}' fails {check} "
            f"(threshold={threshold}, actual={actual})"
        )


class NumericalInstability(ImpactEngineError, ArithmeticError):
    """Accumulated impact exceeded the stability bound within one sample."""

    def __init__(self, stakeholder: str, node_id: str, hop: int, magnitude: float, bound: float):
        self.stakeholder = stakeholder
        self.node_id = node_id
        self.hop = hop
        self.magnitude = magnitude
        self.bound = bound
        super().__init__(
            f"NumericalInstability: {stakeholder} (node '{node_id}') reached "
            f"|impact|={magnitude:.6g} > bound {bound:.6g} at hop {hop}"
        )


class SimulationError(ImpactEngineError, RuntimeError):
    """Fatal failure of a whole simulate() call."""

    def __init__(self, reason: str, details: str = ""):
        self.reason = reason
        self.details = details
        message = f"SimulationError: {reason}"
        if details:
            message += f" ({details})"
        super().__init__(message)


class ConvergenceFailure(SimulationError):
    """Too many samples were discarded as numerically unstable."""

    def __init__(self, discarded: int, total: int, threshold: float):
        self.discarded = discarded
        self.total = total
        self.threshold = threshold
        self.discard_rate = discarded / total if total else 1.0
        super().__init__(
            "convergence failure",
            f"discard rate {self.discard_rate:.2%} ({discarded}/{total}) "
            f"exceeds threshold {threshold:.2%}",
        )


class SimulationTimeout(SimulationError):
    """Deadline expired before every iteration finished."""

    def __init__(self, completed: int, total: int, timeout: float):
        self.completed = completed
        self.total = total
        self.timeout = timeout
        super().__init__(
            "timeout",
            f"{completed}/{total} iterations completed within {timeout}s; "
            "partial aggregates discarded",
        )

