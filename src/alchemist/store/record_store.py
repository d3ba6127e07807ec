# src/alchemist/store/record_store.py
from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from alchemist.dataloader.schema_check import check_schema
from alchemist.dataloader.types import SchemaCheckResult
from alchemist.errors import DataError, RuleError
from alchemist.rules.defaults import default_rules
from alchemist.rules.expressions import compile_rule
from alchemist.rules.model import Rule, filter_valid_rules, is_valid_rule
from alchemist.rules.presets import get_profile
from alchemist.schemas.models import ENTITY_NAMES, EngineConfig, RuleDefinition
from alchemist.validator.types import Dataset, Record, Violation
from alchemist.validator.validator import validate

logger = logging.getLogger(__name__)

Listener = Callable[[list[Violation]], None]


class RecordStore:
    """
    @brief
    Session state: record collections, rule set and the latest violations.

    @details
    The store owns data, not validation logic. Every mutation replaces the
    affected collection or rule tuple wholesale and then re-runs the pure
    `validate` function synchronously; subscribers are notified with the new
    violation list.

    Until a rule set is assigned (`rules is None`) the baseline static checks
    apply. Once rules exist, only the active rules run; an all-inactive rule
    set yields no violations.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()

        self._data: dict[str, tuple[Record, ...]] = {e: () for e in ENTITY_NAMES}
        self._valid: dict[str, bool] = {e: False for e in ENTITY_NAMES}
        self._rules: tuple[Rule, ...] | None = None
        self._violations: list[Violation] = []
        self._listeners: list[Listener] = []

    # ---------- Read access ----------
    @property
    def data(self) -> Dataset:
        return Dataset(self._data["clients"], self._data["workers"], self._data["tasks"])

    @property
    def rules(self) -> tuple[Rule, ...] | None:
        return self._rules

    @property
    def violations(self) -> list[Violation]:
        return list(self._violations)

    @property
    def valid(self) -> dict[str, bool]:
        return dict(self._valid)

    @property
    def export_ready(self) -> bool:
        """True when all three collections are loaded and flagged schema-valid."""
        return all(self._data[e] and self._valid[e] for e in ENTITY_NAMES)

    # ---------- Observers ----------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback for new violation lists; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---------- Data mutations ----------
    def set_data(self, entity: str, rows: Iterable[Mapping[str, Any]]) -> None:
        """Replace one collection (new upload or an edited grid) and revalidate."""
        self._require_entity(entity, "RecordStore.set_data")
        self._data[entity] = tuple(dict(row) for row in rows)
        self.revalidate()

    def update_cell(self, entity: str, row: int, field: str, value: Any) -> None:
        """Edit one cell; the collection is still replaced as a whole."""
        self._require_entity(entity, "RecordStore.update_cell")
        rows = list(self._data[entity])
        if not 0 <= row < len(rows):
            raise DataError(
                message=f"Row {row} out of range for {entity} ({len(rows)} rows)",
                source="RecordStore.update_cell",
            )
        rows[row] = {**rows[row], field: value}
        self.set_data(entity, rows)

    def set_valid(self, entity: str, value: bool) -> None:
        """Record the schema-validity flag supplied by ingestion."""
        self._require_entity(entity, "RecordStore.set_valid")
        self._valid[entity] = bool(value)

    def check_schema(self, entity: str) -> SchemaCheckResult:
        """Check a collection against its record schema and store the flag."""
        self._require_entity(entity, "RecordStore.check_schema")
        result = check_schema(entity, self._data[entity])
        self._valid[entity] = result.success
        return result

    # ---------- Rule mutations ----------
    def set_rules(self, rules: Iterable[Any]) -> None:
        """Assign a rule set; structurally invalid entries are dropped silently."""
        rules = list(rules)
        kept = filter_valid_rules(rules)
        if len(kept) != len(rules):
            logger.debug("set_rules: kept %d of %d rule(s)", len(kept), len(rules))
        self._rules = tuple(kept)
        self.revalidate()

    def add_rule(self, rule: Rule | RuleDefinition | Mapping[str, Any]) -> Rule | None:
        """
        @brief
        Append one rule and revalidate.

        @details
        RuleDefinitions (and mappings carrying an `expression`) are compiled
        first. A rule without id gets "rule-<hex>". Invalid rules and rules
        whose id is already taken are dropped and None is returned.

        @raises
            RuleError
                If an expression definition cannot be compiled.
        """
        # (1) Assign a fresh id where none is given
        new_id = f"rule-{uuid.uuid4().hex}"
        if isinstance(rule, RuleDefinition) and not rule.id:
            rule = rule.model_copy(update={"id": new_id})
        elif isinstance(rule, Mapping) and not rule.get("id"):
            rule = {**rule, "id": new_id}
        elif isinstance(rule, Rule) and not rule.id:
            rule = replace(rule, id=new_id)

        # (2) Compile declarative definitions
        if isinstance(rule, RuleDefinition) or (
            isinstance(rule, Mapping) and "expression" in rule
        ):
            rule = compile_rule(rule)

        current = list(self._rules or ())
        if not is_valid_rule(rule) or any(r.id == _rule_id(rule) for r in current):
            logger.debug("add_rule: dropped invalid or duplicate rule %r", _rule_id(rule))
            return None

        self.set_rules([*current, rule])
        return next(r for r in self._rules or () if r.id == _rule_id(rule))

    def remove_rule(self, rule_id: str) -> None:
        self.set_rules([r for r in self._rules or () if r.id != rule_id])

    def toggle_rule(self, rule_id: str) -> None:
        self._edit_rule(rule_id, lambda r: replace(r, active=not r.active))

    def activate_rule(self, rule_id: str) -> None:
        self._edit_rule(rule_id, lambda r: replace(r, active=True))

    def deactivate_rule(self, rule_id: str) -> None:
        self._edit_rule(rule_id, lambda r: replace(r, active=False))

    def set_weight(self, rule_id: str, weight: float) -> None:
        """Change a rule's rank weight (finite, >= 0)."""
        if (
            isinstance(weight, bool)
            or not isinstance(weight, (int, float))
            or not math.isfinite(weight)
            or weight < 0
        ):
            raise RuleError(
                message=f"Invalid weight {weight!r} for rule {rule_id!r}",
                source="RecordStore.set_weight",
                suggested_action="Use a finite number >= 0.",
            )
        self._edit_rule(rule_id, lambda r: replace(r, weight=float(weight)))

    def apply_profile(self, name: str) -> None:
        """Replace the rule set with a preset profile (ConfigError if unknown)."""
        self.set_rules(get_profile(name))

    def initialize_rules(self) -> None:
        """
        @brief
        Install the starting rule set once.

        @details
        Does nothing if rules are already present. Otherwise uses the
        configured profile (or the default rules) followed by the expression
        rules from the configuration.
        """
        if self._rules:
            return
        base = get_profile(self.config.profile) if self.config.profile else default_rules()
        compiled = [compile_rule(d) for d in self.config.rules]
        self.set_rules([*base, *compiled])

    # ---------- Validation ----------
    def revalidate(self) -> list[Violation]:
        """Recompute violations from the current snapshot and notify subscribers."""
        d = self._data
        self._violations = validate(
            d["clients"], d["workers"], d["tasks"], self._rules, config=self.config
        )
        for listener in list(self._listeners):
            listener(self.violations)
        return self.violations

    # ---------- Internals ----------
    def _edit_rule(self, rule_id: str, edit: Callable[[Rule], Rule]) -> None:
        if self._rules is None:
            return
        self.set_rules([edit(r) if r.id == rule_id else r for r in self._rules])

    @staticmethod
    def _require_entity(entity: str, source: str) -> None:
        if entity not in ENTITY_NAMES:
            raise DataError(
                message=f"Unknown entity: {entity!r}",
                source=source,
                suggested_action=f"Use one of: {', '.join(ENTITY_NAMES)}",
            )


def _rule_id(rule: Any) -> Any:
    return rule.get("id") if isinstance(rule, Mapping) else getattr(rule, "id", None)


__all__ = ["RecordStore"]
