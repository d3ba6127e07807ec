# src/alchemist/validator/static_checks.py
from __future__ import annotations

import logging
from typing import Any

from alchemist.schemas.models import EngineConfig
from alchemist.validator.capacity import find_overbooked_phases
from alchemist.validator.fields import (
    is_number,
    is_valid_json,
    parse_list_field,
    record_key,
    skill_set,
    split_tokens,
    to_number,
)
from alchemist.validator.graph import CoRunGraph
from alchemist.validator.types import Dataset, Violation

logger = logging.getLogger(__name__)

# Primary key column per entity
PRIMARY_KEYS: dict[str, str] = {
    "clients": "ClientID",
    "workers": "WorkerID",
    "tasks": "TaskID",
}


class StaticValidator:
    """
    @brief
    Baseline validator: a fixed battery of built-in data-quality checks.

    @details
    Used when no rule set exists yet. Covers structural integrity (unique keys,
    numeric ranges, JSON and list encodings) and cross-entity integrity
    (task references, co-run cycles, worker capacity, phase overbooking,
    skill coverage). Every check is independent and always runs; malformed
    values become findings, never exceptions. All findings carry weight 1.
    """

    def __init__(self, dataset: Dataset, cfg: EngineConfig | None = None) -> None:
        """
        @brief
        Initialize validation context.

        @params
            dataset : Dataset
                Snapshot of clients, workers and tasks.
            cfg : EngineConfig | None
                Engine configuration (cycle reporting scope).
        """
        self.dataset = dataset
        self.cfg = cfg or EngineConfig()

        self.violations: list[Violation] = []
        self.checks: dict[str, bool] = {}

    # ---------- Public lifecycle API ----------
    def run_all_checks(self) -> list[Violation]:
        """
        @brief
        Execute the full battery in its fixed order.

        @details
        Order only affects the position of findings before ranking, never
        which findings are produced.

        @returns
            Findings in production order (unranked).
        """
        self._check_unique_keys()
        self._check_ranges()
        self._check_attributes_json()
        self._check_slot_lists()
        self._check_task_references()
        self._check_co_run_cycles()
        self._check_worker_capacity()
        self._check_phase_overbooking()
        self._check_skill_coverage()

        failed = [name for name, ok in self.checks.items() if not ok]
        logger.debug("Static checks failed: %s", ", ".join(failed) or "none")
        return self.violations

    # ---------- Checks ----------
    def _check_unique_keys(self) -> None:
        """
        @brief
        Duplicate primary keys (check 1).

        @details
        The first occurrence of a key is kept; each later occurrence is
        reported at its own row. Keys compare on their trimmed text form.
        """
        ok = True
        for entity, key_field in PRIMARY_KEYS.items():
            seen: set[str] = set()
            for i, row in enumerate(self.dataset.rows(entity)):
                key = record_key(row, key_field)
                if key in seen:
                    ok = False
                    self._add(entity, i, key_field, "Duplicate ID")
                else:
                    seen.add(key)
        self.checks["UniqueKeys"] = ok

    def _check_ranges(self) -> None:
        """Client PriorityLevel in [1, 5] and task Duration >= 1 (check 2)."""
        ok = True
        for i, client in enumerate(self.dataset.clients):
            priority = to_number(client.get("PriorityLevel"))
            if priority is None or not 1 <= priority <= 5:
                ok = False
                self._add("clients", i, "PriorityLevel", "PriorityLevel must be 1-5")

        for i, task in enumerate(self.dataset.tasks):
            duration = to_number(task.get("Duration"))
            if duration is None or duration < 1:
                ok = False
                self._add("tasks", i, "Duration", "Duration must be ≥1")
        self.checks["Ranges"] = ok

    def _check_attributes_json(self) -> None:
        """Non-empty AttributesJSON must be valid JSON (check 3)."""
        ok = True
        for i, client in enumerate(self.dataset.clients):
            if not is_valid_json(client.get("AttributesJSON")):
                ok = False
                self._add("clients", i, "AttributesJSON", "Invalid JSON")
        self.checks["AttributesJSON"] = ok

    def _check_slot_lists(self) -> None:
        """AvailableSlots must decode to a list of numbers (check 4)."""
        ok = True
        for i, worker in enumerate(self.dataset.workers):
            try:
                slots = parse_list_field(worker.get("AvailableSlots"))
            except ValueError:
                ok = False
                self._add("workers", i, "AvailableSlots", "Invalid list format")
                continue

            if not isinstance(slots, list) or not all(is_number(s) for s in slots):
                ok = False
                self._add("workers", i, "AvailableSlots", "Must be an array of numbers")
        self.checks["SlotLists"] = ok

    def _check_task_references(self) -> None:
        """Each RequestedTaskIDs token must name an existing task (check 5)."""
        ok = True
        task_ids = {record_key(t, "TaskID") for t in self.dataset.tasks}
        for i, client in enumerate(self.dataset.clients):
            for task_id in split_tokens(client.get("RequestedTaskIDs")):
                if task_id not in task_ids:
                    ok = False
                    self._add("clients", i, "RequestedTaskIDs", f"Unknown TaskID: {task_id}")
        self.checks["TaskReferences"] = ok

    def _check_co_run_cycles(self) -> None:
        """
        @brief
        Circular co-run dependencies between tasks (check 6).

        @details
        Reports only the first cycle found (scanning tasks in row order)
        unless cfg.report_all_cycles is set. The finding is attached to the
        row of the task whose scan found the cycle.
        """
        graph = CoRunGraph.from_records(self.dataset.tasks, key="TaskID", field="CoRunTaskIDs")
        if self.cfg.report_all_cycles:
            cycles = graph.find_cycles()
        else:
            first = graph.find_cycle()
            cycles = [first] if first is not None else []

        row_of = self._first_row_by_key("tasks", "TaskID")
        for cycle in cycles:
            self._add(
                "tasks",
                row_of.get(cycle.start, -1),
                "CoRunTaskIDs",
                f"Circular co-run detected: {cycle.describe()}",
            )
        self.checks["CoRunCycles"] = not cycles

    def _check_worker_capacity(self) -> None:
        """
        @brief
        Worker slot count must cover MaxLoadPerPhase (check 7).

        @details
        Workers whose slots cannot be decoded or whose MaxLoadPerPhase is not
        numeric are skipped: check 4 already reports the former.
        """
        ok = True
        for i, worker in enumerate(self.dataset.workers):
            try:
                slots = parse_list_field(worker.get("AvailableSlots"))
            except ValueError:
                continue
            max_load = to_number(worker.get("MaxLoadPerPhase"))
            if max_load is None or not isinstance(slots, list):
                continue
            if len(slots) < max_load:
                ok = False
                self._add("workers", i, "MaxLoadPerPhase", "Slots < MaxLoad")
        self.checks["WorkerCapacity"] = ok

    def _check_phase_overbooking(self) -> None:
        """Per-phase demand must not exceed worker slot supply (check 8, dataset level)."""
        overbooked = find_overbooked_phases(self.dataset.tasks, self.dataset.workers)
        for load in overbooked:
            self._add(
                "tasks",
                -1,
                "PreferredPhases",
                f"Phase {load.phase} overbooked: {load.demand:g} > {load.supply}",
            )
        self.checks["PhaseCapacity"] = not overbooked

    def _check_skill_coverage(self) -> None:
        """Every RequiredSkills token must be offered by some worker (check 9)."""
        ok = True
        available = skill_set(self.dataset.workers)
        for i, task in enumerate(self.dataset.tasks):
            for skill in split_tokens(task.get("RequiredSkills")):
                if skill.lower() not in available:
                    ok = False
                    self._add(
                        "tasks", i, "RequiredSkills", f"Missing skill coverage: {skill.lower()}"
                    )
        self.checks["SkillCoverage"] = ok

    # ---------- Utilities ----------
    def _first_row_by_key(self, entity: str, key_field: str) -> dict[str, int]:
        rows: dict[str, int] = {}
        for i, row in enumerate(self.dataset.rows(entity)):
            rows.setdefault(record_key(row, key_field), i)
        return rows

    def _add(self, entity: str, row: int, field: str, message: str) -> None:
        self.violations.append(
            Violation(entity=entity, row=row, field=field, message=message, weight=1.0)
        )

    def summary(self) -> dict[str, Any]:
        """Per-check pass/fail map plus finding count, for logging and reports."""
        return {"checks": dict(self.checks), "num_violations": len(self.violations)}


__all__ = ["StaticValidator", "PRIMARY_KEYS"]
