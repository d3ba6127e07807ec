# src/alchemist/rules/defaults.py
from __future__ import annotations

from typing import Any

from alchemist.rules.model import Rule
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
from alchemist.validator.types import Dataset, Record


def _priority_in_range(value: Any, row: Record, data: Dataset) -> str | None:
    num = to_number(value)
    if num is None or not 1 <= num <= 5:
        return "PriorityLevel must be between 1 and 5"
    return None


def _duration_positive(value: Any, row: Record, data: Dataset) -> str | None:
    num = to_number(value)
    if num is None or num < 1:
        return "Duration must be a positive number"
    return None


def _max_load_positive(value: Any, row: Record, data: Dataset) -> str | None:
    num = to_number(value)
    if num is None or num < 1:
        return "MaxLoadPerPhase must be a positive number"
    return None


def _attributes_json(value: Any, row: Record, data: Dataset) -> str | None:
    return None if is_valid_json(value) else "Invalid JSON"


def _slots_numeric(value: Any, row: Record, data: Dataset) -> str | None:
    try:
        slots = parse_list_field(value)
    except ValueError:
        return "Invalid format for AvailableSlots"
    if not isinstance(slots, list) or not all(is_number(s) for s in slots):
        return "AvailableSlots must be an array of numbers"
    return None


def _requested_tasks_exist(value: Any, row: Record, data: Dataset) -> str | None:
    known = {record_key(t, "TaskID") for t in data.tasks}
    for task_id in split_tokens(value):
        if task_id not in known:
            return f"Unknown TaskID: {task_id}"
    return None


def _skills_covered(value: Any, row: Record, data: Dataset) -> str | None:
    available = skill_set(data.workers)
    for skill in split_tokens(value):
        if skill.lower() not in available:
            return f"Missing skill coverage: {skill.lower()}"
    return None


def _co_run_acyclic(value: Any, row: Record, data: Dataset) -> str | None:
    # Flags every task from which a co-run cycle is reachable
    graph = CoRunGraph.from_records(data.tasks, key="TaskID", field="CoRunTaskIDs")
    cycle = graph.find_cycle_from(record_key(row, "TaskID"))
    return f"Circular co-run detected: {cycle.describe()}" if cycle else None


DEFAULT_RULES: tuple[Rule, ...] = (
    Rule(
        id="client-priority-range",
        entity="clients",
        field="PriorityLevel",
        validate=_priority_in_range,
        message="PriorityLevel must be between 1 and 5",
        weight=1.0,
    ),
    Rule(
        id="task-duration-positive",
        entity="tasks",
        field="Duration",
        validate=_duration_positive,
        message="Duration must be a positive number",
        weight=1.0,
    ),
    Rule(
        id="worker-maxload-valid",
        entity="workers",
        field="MaxLoadPerPhase",
        validate=_max_load_positive,
        message="MaxLoadPerPhase must be valid",
        weight=1.0,
    ),
    Rule(
        id="client-json-valid",
        entity="clients",
        field="AttributesJSON",
        validate=_attributes_json,
        message="AttributesJSON must be valid JSON",
        weight=1.0,
    ),
    Rule(
        id="worker-slots-valid",
        entity="workers",
        field="AvailableSlots",
        validate=_slots_numeric,
        message="AvailableSlots must be an array of numbers",
        weight=1.0,
    ),
    Rule(
        id="client-task-reference",
        entity="clients",
        field="RequestedTaskIDs",
        validate=_requested_tasks_exist,
        message="RequestedTaskIDs must refer to valid tasks",
        weight=2.0,
    ),
    Rule(
        id="task-skill-covered",
        entity="tasks",
        field="RequiredSkills",
        validate=_skills_covered,
        message="Each RequiredSkill must be covered by at least one worker",
        weight=2.0,
    ),
    Rule(
        id="task-co-run-cycle",
        entity="tasks",
        field="CoRunTaskIDs",
        validate=_co_run_acyclic,
        message="Tasks should not form a circular co-run chain",
        weight=3.0,
    ),
)


def default_rules() -> list[Rule]:
    """Fresh list of the built-in rule set (Rule objects are immutable and shared)."""
    return list(DEFAULT_RULES)


__all__ = ["DEFAULT_RULES", "default_rules"]
