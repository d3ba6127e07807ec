# tests/dataloader/test_schema_check.py
from __future__ import annotations

import logging

import pytest

from alchemist.dataloader.schema_check import check_schema
from alchemist.errors import DataError


def test_clean_rows_pass(clean_clients, clean_workers, clean_tasks) -> None:
    """
    @brief
    Verify the shared fixtures satisfy the record schemas.
    """
    for entity, rows in (
        ("clients", clean_clients),
        ("workers", clean_workers),
        ("tasks", clean_tasks),
    ):
        result = check_schema(entity, rows)
        assert result.success, result.errors
        assert result.total_rows == 2


def test_failing_fields_reported_per_row(clean_tasks, caplog) -> None:
    """
    @brief
    Verify issue details for schema failures.

    @details
    A non-integer Duration and a missing TaskName on row 1 become two issues
    that name the row and field. A warning summary is logged.
    """
    # --- Arrange ---
    clean_tasks[1]["Duration"] = "long"
    del clean_tasks[1]["TaskName"]

    # --- Act ---
    with caplog.at_level(logging.WARNING, logger="alchemist.dataloader.schema_check"):
        result = check_schema("tasks", clean_tasks)

    # --- Assert ---
    assert not result.success
    assert {(i["row"], i["field"]) for i in result.errors} == {(1, "Duration"), (1, "TaskName")}
    assert "Schema check failed for tasks" in caplog.text


def test_non_mapping_row(clean_clients) -> None:
    result = check_schema("clients", [clean_clients[0], ["not", "a", "row"]])
    assert not result.success
    assert result.errors == [
        {
            "kind": "not_a_mapping",
            "row": 1,
            "field": None,
            "message": "Row is list, expected a mapping",
        }
    ]


def test_unknown_entity_raises() -> None:
    with pytest.raises(DataError):
        check_schema("projects", [])
