# src/alchemist/dataloader/schema_check.py
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from alchemist.dataloader.types import SchemaCheckResult
from alchemist.errors import DataError
from alchemist.schemas.models import RECORD_MODELS

logger = logging.getLogger(__name__)


def check_schema(entity: str, rows: Iterable[Mapping[str, Any]]) -> SchemaCheckResult:
    """
    Check uploaded rows against the record schema of their entity.

    Rules:
      - each row is validated by ClientRecord / WorkerRecord / TaskRecord;
      - every failing field becomes one issue (row-level, non-fatal);
      - a non-mapping row is reported as one "not_a_mapping" issue.

    The validation engine does not need this: it reports malformed values as
    violations. Schema validity only gates export.

    Raises DataError for an unknown entity name.
    """
    model = RECORD_MODELS.get(entity)
    if model is None:
        raise DataError(
            message=f"Unknown entity: {entity!r}",
            source="schema_check.check_schema",
            suggested_action=f"Use one of: {', '.join(RECORD_MODELS)}",
        )

    issues: list[dict[str, Any]] = []
    total = 0
    for index, row in enumerate(rows):
        total += 1
        if not isinstance(row, Mapping):
            issues.append(
                {
                    "kind": "not_a_mapping",
                    "row": index,
                    "field": None,
                    "message": f"Row is {type(row).__name__}, expected a mapping",
                }
            )
            continue
        try:
            model.model_validate(dict(row))
        except ValidationError as e:
            for err in e.errors():
                loc = err.get("loc") or ()
                issues.append(
                    {
                        "kind": err.get("type", "schema_error"),
                        "row": index,
                        "field": str(loc[0]) if loc else None,
                        "message": err.get("msg", "invalid value"),
                    }
                )

    result = SchemaCheckResult(
        entity=entity, success=not issues, errors=issues, total_rows=total
    )
    _report_summary(result)
    return result


def _report_summary(result: SchemaCheckResult) -> None:
    if result.success:
        logger.info("Schema OK: %s, %d row(s)", result.entity, result.total_rows)
        return

    counts: dict[str, int] = {}
    for it in result.errors:
        counts[it["kind"]] = counts.get(it["kind"], 0) + 1
    summary = ", ".join(f"{k}={v}" for k, v in counts.items())
    logger.warning(
        "Schema check failed for %s: %d issue(s) across %d row(s) [%s]",
        result.entity,
        len(result.errors),
        result.total_rows,
        summary,
    )


__all__ = ["check_schema"]
