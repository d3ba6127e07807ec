# src/alchemist/dataloader/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class SchemaCheckResult:
    """
    Structured result of checking one collection against its record schema.

    Fields:
        entity: Collection that was checked (clients / workers / tasks).
        success: True if every row matched the schema.
        errors: Issue dicts with per-row context.
                Each item contains: kind, row, field, message.
        total_rows: Number of rows checked.
    """

    entity: str
    success: bool
    errors: list[dict[str, Any]] = field(default_factory=list)
    total_rows: int = 0
