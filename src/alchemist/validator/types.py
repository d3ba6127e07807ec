# src/alchemist/validator/types.py
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from alchemist.errors import DataError
from alchemist.schemas.models import ENTITY_NAMES

Record = Mapping[str, Any]
ViolationKind = Literal["data", "engine"]


@dataclass(frozen=True, slots=True)
class Violation:
    """
    One reported check or rule failure.

    Fields:
        entity: Collection the finding belongs to (clients / workers / tasks).
        row: Zero-based row index, or -1 for dataset-level findings.
        field: Column the finding is attached to.
        message: Human-readable description.
        weight: Rank weight; higher weights are listed first.
        kind: "data" for data-quality findings, "engine" for a rule that failed to run.
        rule_id: Id of the dynamic rule that produced it (None for built-in checks).
    """

    entity: str
    row: int
    field: str
    message: str
    weight: float = 1.0
    kind: ViolationKind = "data"
    rule_id: str | None = None

    @property
    def is_dataset_level(self) -> bool:
        return self.row == -1

    def as_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "row": self.row,
            "field": self.field,
            "message": self.message,
            "weight": self.weight,
            "kind": self.kind,
            "rule_id": self.rule_id,
        }


@dataclass(frozen=True, slots=True)
class Dataset:
    """
    Immutable snapshot of the three record collections.

    Passed to rule predicates as their third argument, so rules can look up
    related rows (e.g. whether a requested TaskID exists).
    """

    clients: tuple[Record, ...] = field(default_factory=tuple)
    workers: tuple[Record, ...] = field(default_factory=tuple)
    tasks: tuple[Record, ...] = field(default_factory=tuple)

    @classmethod
    def of(
        cls,
        clients: Sequence[Record] | None = None,
        workers: Sequence[Record] | None = None,
        tasks: Sequence[Record] | None = None,
    ) -> Dataset:
        return cls(tuple(clients or ()), tuple(workers or ()), tuple(tasks or ()))

    def rows(self, entity: str) -> tuple[Record, ...]:
        if entity not in ENTITY_NAMES:
            raise DataError(
                message=f"Unknown entity: {entity!r}",
                source="Dataset.rows",
                suggested_action=f"Use one of: {', '.join(ENTITY_NAMES)}",
            )
        return getattr(self, entity)

    def __getitem__(self, entity: str) -> tuple[Record, ...]:
        return self.rows(entity)


__all__ = ["Violation", "Dataset", "Record", "ViolationKind"]
