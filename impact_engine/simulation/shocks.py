from __future__ import annotations

from typing import Dict

from impact_engine.errors import InvalidPolicy
from impact_engine.utils.logging_utils import get_logger

from .schema import PolicyEffectConfig, PolicyShock, PolicyVariables, SimulationConfig

logger = get_logger(__name__)


def policy_effect(config: SimulationConfig, policy_type) -> PolicyEffectConfig:
    """Configured effect mapping for a policy type."""
    effect = config.policy_effects.get(policy_type)
    if effect is None:
        configured = sorted(p.value for p in config.policy_effects)
        raise InvalidPolicy(
            getattr(policy_type, "value", str(policy_type)),
            f"no effect mapping configured (configured: {configured})",
        )
    return effect


def shock_magnitude(policy: PolicyVariables, effect: PolicyEffectConfig) -> float:
    """
    Signed direct shock of a policy.

    Each declared parameter contributes value * sign, where the sign comes
    from configuration (e.g. subsidy_reduction_percent: -1.0).
    """
    magnitude = 0.0
    for name, value in sorted(policy.parameters.items()):
        if name not in effect.parameters:
            raise InvalidPolicy(
                policy.policy_type.value,
                f"unknown parameter '{name}' (known: {sorted(effect.parameters)})",
            )
        magnitude += effect.parameters[name] * value
    return magnitude


def derive_shock(policy: PolicyVariables, config: SimulationConfig) -> PolicyShock:
    """Build the PolicyShock for a policy: same signed magnitude on every target group."""
    effect = policy_effect(config, policy.policy_type)
    magnitude = shock_magnitude(policy, effect)

    impacts: Dict = {stakeholder: magnitude for stakeholder in policy.target_group}
    logger.info(
        f"Derived shock for {policy.policy_type.value}: magnitude={magnitude:.4f} "
        f"on {[s.value for s in policy.target_group]}"
    )
    return PolicyShock(
        impacts=impacts,
        policy_type=policy.policy_type,
        parameters=dict(policy.parameters),
    )
