# src/alchemist/rules/presets.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace

from alchemist.errors import ConfigError
from alchemist.rules.defaults import DEFAULT_RULES
from alchemist.rules.model import Rule

DEFAULT_PROFILE = "Default Rules"

# Profile name -> (field weight overrides, weight for every other field)
_PROFILE_WEIGHTS: dict[str, tuple[Mapping[str, float], float] | None] = {
    DEFAULT_PROFILE: None,
    "Maximize Fulfillment": ({"RequestedTaskIDs": 10, "PriorityLevel": 9}, 3),
    "Fair Distribution": ({"MaxLoadPerPhase": 10, "AvailableSlots": 9}, 4),
    "Minimize Workload": ({"Duration": 10, "CoRunTaskIDs": 8}, 5),
}

PROFILE_NAMES: tuple[str, ...] = tuple(_PROFILE_WEIGHTS)


def get_profile(name: str) -> list[Rule]:
    """
    @brief
    Build the rule set of a preset prioritisation profile.

    @details
    Profiles re-weight the default rules by field; they never add or remove
    rules, so only ranking changes between profiles.

    @raises
        ConfigError
            If the profile name is unknown.
    """
    if name not in _PROFILE_WEIGHTS:
        raise ConfigError(
            message=f"Unknown rule profile: {name!r}",
            source="presets.get_profile",
            suggested_action=f"Use one of: {', '.join(PROFILE_NAMES)}",
        )

    weights = _PROFILE_WEIGHTS[name]
    if weights is None:
        return list(DEFAULT_RULES)

    overrides, fallback = weights
    return [
        replace(rule, weight=float(overrides.get(rule.field, fallback))) for rule in DEFAULT_RULES
    ]


__all__ = ["DEFAULT_PROFILE", "PROFILE_NAMES", "get_profile"]
