# src/alchemist/validator/validator.py
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from alchemist.rules.model import Rule, filter_valid_rules
from alchemist.schemas.models import EngineConfig
from alchemist.validator.ranking import rank_violations
from alchemist.validator.static_checks import StaticValidator
from alchemist.validator.types import Dataset, Record, Violation

logger = logging.getLogger(__name__)


class RuleValidator:
    """
    @brief
    Dynamic validator: runs the active rule set against every row.

    @details
    For each rule, every row of the rule's entity is checked by calling
    `rule.validate(row[field], row, dataset)`. A non-empty result becomes a
    Violation carrying the rule's weight.

    A predicate that raises never stops the run. Depending on
    cfg.rule_error_policy the failure is either reported as an engine-level
    violation for that row ("report", default) or logged and treated as a
    pass ("ignore"). Remaining rows and rules are evaluated either way.
    """

    def __init__(
        self, dataset: Dataset, rules: Sequence[Rule], cfg: EngineConfig | None = None
    ) -> None:
        self.dataset = dataset
        self.rules = [r for r in rules if r.active]
        self.cfg = cfg or EngineConfig()

        self.violations: list[Violation] = []
        self.failed_rules: dict[str, int] = {}

    def run(self) -> list[Violation]:
        """
        @brief
        Evaluate all active rules in order.

        @returns
            Findings in production order (rule order, then row order).
        """
        for rule in self.rules:
            for index, row in enumerate(self.dataset.rows(rule.entity)):
                self._evaluate(rule, index, row)

        if self.failed_rules:
            logger.warning(
                "Rule predicates raised: %s",
                ", ".join(f"{rid}×{n}" for rid, n in self.failed_rules.items()),
            )
        return self.violations

    def _evaluate(self, rule: Rule, index: int, row: Record) -> None:
        try:
            outcome = rule.validate(row.get(rule.field), row, self.dataset)
        except Exception as e:
            self.failed_rules[rule.id] = self.failed_rules.get(rule.id, 0) + 1
            if self.cfg.rule_error_policy == "ignore":
                logger.debug("Rule %r raised on %s row %d: %s", rule.id, rule.entity, index, e)
                return
            self.violations.append(
                Violation(
                    entity=rule.entity,
                    row=index,
                    field=rule.field,
                    message=f"Rule '{rule.id}' failed: {type(e).__name__}: {e}",
                    weight=rule.weight,
                    kind="engine",
                    rule_id=rule.id,
                )
            )
            return

        if not outcome:
            return
        self.violations.append(
            Violation(
                entity=rule.entity,
                row=index,
                field=rule.field,
                message=outcome if isinstance(outcome, str) else rule.message,
                weight=rule.weight,
                rule_id=rule.id,
            )
        )


# ----------------------------
# THIN FACADE
# ----------------------------
def validate(
    clients: Sequence[Record],
    workers: Sequence[Record],
    tasks: Sequence[Record],
    rules: Iterable[Rule | Mapping[str, Any]] | None = None,
    *,
    config: EngineConfig | None = None,
) -> list[Violation]:
    """
    @brief
    Validate a snapshot of records and return ranked findings.

    @details
    Mode selection:
      - rules is None         → baseline mode (built-in static checks);
      - no active valid rules → [] ("rules configured, all disabled");
      - otherwise             → dynamic mode with the active rules only;
                                static checks are not run in addition.
    Structurally invalid rules are dropped before mode selection. The result
    is sorted by descending weight, ties kept in production order.

    @params
        clients, workers, tasks : Sequence[Record]
            Record collections, in row order.
        rules : Iterable[Rule | Mapping] | None
            Rule set, or None when no rule system is configured.
        config : EngineConfig | None
            Engine configuration; defaults apply when omitted.

    @returns
        Ranked list of Violation.
    """
    cfg = config or EngineConfig()
    dataset = Dataset.of(clients, workers, tasks)

    if rules is None:
        findings = StaticValidator(dataset, cfg).run_all_checks()
        mode = "static"
    else:
        active = [r for r in filter_valid_rules(rules) if r.active]
        if not active:
            logger.info("Validation skipped: rule set has no active rules")
            return []
        findings = RuleValidator(dataset, active, cfg).run()
        mode = f"dynamic, {len(active)} rule(s)"

    ranked = rank_violations(findings)
    logger.info("Validation (%s): %d violation(s)", mode, len(ranked))
    return ranked


__all__ = ["RuleValidator", "validate"]
