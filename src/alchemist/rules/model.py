# src/alchemist/rules/model.py
from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from alchemist.schemas.models import ENTITY_NAMES
from alchemist.validator.types import Dataset, Record

logger = logging.getLogger(__name__)

RulePredicate = Callable[[Any, Record, Dataset], "str | None"]


@dataclass(frozen=True, slots=True)
class Rule:
    """
    @brief
    A named, weighted, togglable predicate over one field of one entity.

    @details
    `validate(value, row, dataset)` returns None when the row passes and a
    message when it does not. `message` is the display/fallback text used
    when the predicate returns a bare truthy value. Rules are immutable;
    weight and active edits produce new instances via dataclasses.replace.

    @params
        id : str
            Unique within a rule set.
        entity : str
            One of clients / workers / tasks.
        field : str
            Column whose value is passed as the first predicate argument.
        validate : RulePredicate
            Executable check.
        message : str
            Display text.
        active : bool
            Inactive rules contribute no findings.
        weight : float
            Rank weight (>= 0, default 1).
    """

    id: str
    entity: str
    field: str
    validate: RulePredicate
    message: str
    active: bool = True
    weight: float = 1.0


_REQUIRED_KEYS = ("id", "entity", "field", "validate", "message", "active")


def _problem(rule: Any) -> str | None:
    """Return why `rule` breaks the Rule contract, or None if it satisfies it."""
    if not isinstance(rule, (Rule, Mapping)):
        return f"unsupported type {type(rule).__name__}"

    get = rule.get if isinstance(rule, Mapping) else lambda k, d=None: getattr(rule, k, d)
    for key in _REQUIRED_KEYS:
        if get(key) is None:
            return f"missing '{key}'"

    rule_id, entity, field = get("id"), get("entity"), get("field")
    if not isinstance(rule_id, str) or not rule_id:
        return "id must be a non-empty string"
    if entity not in ENTITY_NAMES:
        return f"unknown entity {entity!r}"
    if not isinstance(field, str) or not field:
        return "field must be a non-empty string"
    if not callable(get("validate")):
        return "validate is not callable"
    if not isinstance(get("message"), str):
        return "message must be a string"
    if not isinstance(get("active"), bool):
        return "active must be a boolean"

    weight = get("weight", 1.0)
    if weight is None:
        return None
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        return "weight must be a number >= 0"
    if not math.isfinite(weight) or weight < 0:
        return "weight must be a finite number >= 0"
    return None


def is_valid_rule(rule: Any) -> bool:
    """True if `rule` (a Rule or a mapping with the same keys) satisfies the rule contract."""
    return _problem(rule) is None


def _as_rule(rule: Rule | Mapping[str, Any]) -> Rule:
    if isinstance(rule, Rule):
        return rule
    weight = rule.get("weight")
    return Rule(
        id=rule["id"],
        entity=rule["entity"],
        field=rule["field"],
        validate=rule["validate"],
        message=rule["message"],
        active=rule["active"],
        weight=1.0 if weight is None else float(weight),
    )


def filter_valid_rules(rules: Iterable[Any]) -> list[Rule]:
    """
    @brief
    Keep the structurally valid entries of a rule batch.

    @details
    Rule sources (presets, compiled expressions, hand edits) are not fully
    trusted, so invalid entries are dropped instead of failing the batch.
    Mappings with the rule keys are converted to Rule. A later rule reusing an
    id already kept is dropped as well, keeping ids unique.
    """
    kept: list[Rule] = []
    seen_ids: set[str] = set()

    for index, candidate in enumerate(rules):
        problem = _problem(candidate)
        if problem is not None:
            logger.debug("Dropping rule #%d: %s", index, problem)
            continue
        rule = _as_rule(candidate)
        if rule.id in seen_ids:
            logger.debug("Dropping rule #%d: duplicate id %r", index, rule.id)
            continue
        seen_ids.add(rule.id)
        kept.append(rule)

    return kept


__all__ = ["Rule", "RulePredicate", "is_valid_rule", "filter_valid_rules"]
