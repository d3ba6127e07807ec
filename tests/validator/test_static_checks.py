# tests/validator/test_static_checks.py
from __future__ import annotations

import copy

from alchemist.schemas.models import EngineConfig
from alchemist.validator.static_checks import StaticValidator
from alchemist.validator.types import Dataset, Violation


# -----------------------------
# HELPER FACTORIES
# -----------------------------
def run_checks(clients=(), workers=(), tasks=(), cfg: EngineConfig | None = None) -> list[Violation]:
    """
    @brief
    Run the built-in battery against the given collections.

    @returns
        Unranked findings in production order.
    """
    return StaticValidator(Dataset.of(clients, workers, tasks), cfg).run_all_checks()


def messages(findings: list[Violation]) -> list[str]:
    return [f.message for f in findings]


# -----------------------------
# CLEAN DATA
# -----------------------------
def test_clean_dataset_has_no_findings(clean_clients, clean_workers, clean_tasks) -> None:
    """
    @brief
    Verify the shared fixtures pass every built-in check.

    @details
    Guards the fixtures themselves: tests below mutate one field at a time
    and expect exactly the finding that mutation causes.
    """
    # --- Arrange ---
    validator = StaticValidator(Dataset.of(clean_clients, clean_workers, clean_tasks))

    # --- Act ---
    findings = validator.run_all_checks()

    # --- Assert ---
    assert findings == []
    assert all(validator.summary()["checks"].values())


def test_empty_dataset_has_no_findings() -> None:
    assert run_checks() == []


# -----------------------------
# STRUCTURAL CHECKS
# -----------------------------
def test_duplicate_id_reported_on_later_rows(clean_clients, clean_workers, clean_tasks) -> None:
    # --- Arrange ---
    clients = clean_clients + [copy.deepcopy(clean_clients[0])]

    # --- Act ---
    findings = run_checks(clients, clean_workers, clean_tasks)

    # --- Assert ---
    assert findings == [Violation("clients", 2, "ClientID", "Duplicate ID")]


def test_priority_and_duration_ranges(clean_clients, clean_workers, clean_tasks) -> None:
    clean_clients[0]["PriorityLevel"] = 7
    clean_clients[1]["PriorityLevel"] = "high"
    clean_tasks[1]["Duration"] = 0

    findings = run_checks(clean_clients, clean_workers, clean_tasks)

    assert findings == [
        Violation("clients", 0, "PriorityLevel", "PriorityLevel must be 1-5"),
        Violation("clients", 1, "PriorityLevel", "PriorityLevel must be 1-5"),
        Violation("tasks", 1, "Duration", "Duration must be ≥1"),
    ]


def test_invalid_attributes_json(clean_clients, clean_workers, clean_tasks) -> None:
    clean_clients[1]["AttributesJSON"] = "{not json"
    findings = run_checks(clean_clients, clean_workers, clean_tasks)
    assert findings == [Violation("clients", 1, "AttributesJSON", "Invalid JSON")]


def test_slot_list_format_and_element_types(clean_clients, clean_workers, clean_tasks) -> None:
    """
    @brief
    Verify both AvailableSlots failure modes.

    @details
    Undecodable text yields "Invalid list format"; a decodable list with a
    non-numeric element yields "Must be an array of numbers". Neither row
    is also reported by the capacity check.
    """
    # --- Arrange ---
    clean_workers[0]["AvailableSlots"] = "[1,2,3"
    clean_workers[1]["AvailableSlots"] = '[1, "x"]'

    # --- Act ---
    findings = run_checks(clean_clients, clean_workers, clean_tasks)

    # --- Assert ---
    assert Violation("workers", 0, "AvailableSlots", "Invalid list format") in findings
    assert Violation("workers", 1, "AvailableSlots", "Must be an array of numbers") in findings
    assert "Slots < MaxLoad" not in messages(findings)


# -----------------------------
# CROSS-ENTITY CHECKS
# -----------------------------
def test_unknown_task_reference(clean_clients, clean_workers, clean_tasks) -> None:
    clean_clients[0]["RequestedTaskIDs"] = "T1, T99"
    findings = run_checks(clean_clients, clean_workers, clean_tasks)
    assert findings == [Violation("clients", 0, "RequestedTaskIDs", "Unknown TaskID: T99")]


def test_co_run_cycle_reported_once(clean_clients, clean_workers, clean_tasks) -> None:
    # --- Arrange ---
    clean_tasks[1]["CoRunTaskIDs"] = "T1"

    # --- Act ---
    findings = run_checks(clean_clients, clean_workers, clean_tasks)

    # --- Assert ---
    assert findings == [
        Violation("tasks", 0, "CoRunTaskIDs", "Circular co-run detected: T1 -> T2 -> T1")
    ]


def test_report_all_cycles_option(clean_workers) -> None:
    tasks = [
        {"TaskID": "A", "Duration": 1, "CoRunTaskIDs": "B"},
        {"TaskID": "B", "Duration": 1, "CoRunTaskIDs": "A"},
        {"TaskID": "C", "Duration": 1, "CoRunTaskIDs": "C"},
    ]

    first_only = run_checks((), clean_workers, tasks)
    every = run_checks((), clean_workers, tasks, EngineConfig(report_all_cycles=True))

    assert messages(first_only) == ["Circular co-run detected: A -> B -> A"]
    assert messages(every) == [
        "Circular co-run detected: A -> B -> A",
        "Circular co-run detected: C -> C",
    ]
    assert every[1].row == 2


def test_worker_capacity(clean_clients, clean_workers, clean_tasks) -> None:
    clean_workers[1]["MaxLoadPerPhase"] = 3
    findings = run_checks(clean_clients, clean_workers, clean_tasks)
    assert findings == [Violation("workers", 1, "MaxLoadPerPhase", "Slots < MaxLoad")]


def test_phase_overbooking_is_dataset_level() -> None:
    """
    @brief
    Verify the overbooking finding and its dataset-level position.

    @details
    One worker slot in phase 1 against a duration-2 task preferring phase 1.
    """
    # --- Arrange ---
    workers = [{"WorkerID": "W1", "AvailableSlots": "[1]", "MaxLoadPerPhase": 1, "Skills": ""}]
    tasks = [{"TaskID": "T1", "Duration": 2, "PreferredPhases": "1"}]

    # --- Act ---
    findings = run_checks((), workers, tasks)

    # --- Assert ---
    assert findings == [Violation("tasks", -1, "PreferredPhases", "Phase 1 overbooked: 2 > 1")]
    assert findings[0].is_dataset_level


def test_missing_skill_coverage_lower_cased(clean_clients, clean_workers, clean_tasks) -> None:
    clean_tasks[0]["RequiredSkills"] = "Coding, Welding"
    findings = run_checks(clean_clients, clean_workers, clean_tasks)
    assert findings == [Violation("tasks", 0, "RequiredSkills", "Missing skill coverage: welding")]


def test_empty_required_skills_not_flagged(clean_clients, clean_workers, clean_tasks) -> None:
    clean_tasks[0]["RequiredSkills"] = ""
    assert run_checks(clean_clients, clean_workers, clean_tasks) == []


def test_all_checks_run_and_all_findings_weight_one(clean_clients, clean_workers, clean_tasks) -> None:
    clean_clients[0]["PriorityLevel"] = 0
    clean_clients[0]["RequestedTaskIDs"] = "T42"
    clean_tasks[0]["RequiredSkills"] = "juggling"

    validator = StaticValidator(Dataset.of(clean_clients, clean_workers, clean_tasks))
    findings = validator.run_all_checks()

    assert len(findings) == 3
    assert {f.weight for f in findings} == {1.0}
    summary = validator.summary()
    assert summary["num_violations"] == 3
    assert summary["checks"]["Ranges"] is False
    assert summary["checks"]["UniqueKeys"] is True


# -----------------------------
# HOSTILE CELL VALUES
# -----------------------------
def test_deeply_nested_json_cells_become_findings() -> None:
    """
    @brief
    Verify nesting too deep to decode is reported, not raised.

    @details
    Decoding 200k nested arrays exceeds the interpreter recursion limit;
    the JSON and slot checks must still report their usual findings and
    the capacity check must skip the worker.
    """
    # --- Arrange ---
    nested = "[" * 200_000
    clients = [{"ClientID": "C1", "PriorityLevel": 3, "AttributesJSON": nested}]
    workers = [{"WorkerID": "W1", "AvailableSlots": nested, "MaxLoadPerPhase": 5}]

    # --- Act ---
    findings = run_checks(clients, workers, ())

    # --- Assert ---
    assert findings == [
        Violation("clients", 0, "AttributesJSON", "Invalid JSON"),
        Violation("workers", 0, "AvailableSlots", "Invalid list format"),
    ]


def test_non_finite_and_huge_phases_do_not_stall() -> None:
    tasks = [{"TaskID": "T1", "Duration": 1, "PreferredPhases": "inf, 1e309, nan, 1e12"}]

    findings = run_checks((), (), tasks)

    assert findings == [
        Violation("tasks", -1, "PreferredPhases", "Phase 1000000000000 overbooked: 1 > 0")
    ]
