"""Policy impact engine: stakeholder causal graph and Monte Carlo shock propagation."""

__version__ = "0.1.0"
