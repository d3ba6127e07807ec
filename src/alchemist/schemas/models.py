# src/alchemist/schemas/models.py
"""
@brief
Pydantic data models for the Alchemist validation engine.

@details
Defines three groups of model types:
    - ClientRecord / WorkerRecord / TaskRecord: the schema an ingested row must
      satisfy before the store marks a collection as export-ready
    - RuleDefinition: a declarative, expression-based rule as written in engine.yaml
    - EngineConfig: runtime configuration of the engine (from engine.yaml)

Record models describe the column contract of uploaded spreadsheets. They are not
used by the validation core itself, which works on plain mappings.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

EntityName = Literal["clients", "workers", "tasks"]
ENTITY_NAMES: tuple[str, ...] = ("clients", "workers", "tasks")

RuleErrorPolicy = Literal["report", "ignore"]


class _StrictBaseModel(BaseModel):
    """
    @brief
    Base model enforcing strict defaults for configuration contracts.

    @details
    Forbids unknown fields and preserves exact naming rules.
    """

    model_config = {
        "extra": "forbid",  # Reject unknown fields
        "populate_by_name": True,
        "use_enum_values": True,
    }


class _RecordModel(BaseModel):
    """
    @brief
    Base model for uploaded spreadsheet rows.

    @details
    Spreadsheets routinely carry extra columns, so unknown fields are kept
    rather than rejected. Numeric columns accept their text form ("3").
    """

    model_config = {
        "extra": "allow",
        "populate_by_name": True,
    }


class ClientRecord(_RecordModel):
    """One row of clients.csv / the clients sheet."""

    ClientID: str = Field(..., min_length=1, description="Unique client key")
    ClientName: str = Field(..., min_length=1)
    PriorityLevel: int = Field(..., description="Priority 1..5")
    RequestedTaskIDs: str = Field(..., description="Comma separated TaskIDs")
    GroupTag: str
    AttributesJSON: str = Field(..., description="Serialized JSON object")


class WorkerRecord(_RecordModel):
    """One row of workers.csv / the workers sheet."""

    WorkerID: str = Field(..., min_length=1, description="Unique worker key")
    WorkerName: str = Field(..., min_length=1)
    Skills: str = Field(..., description="Comma separated skill tags")
    AvailableSlots: str | list[int] = Field(..., description="Phase numbers, e.g. [1,3,5]")
    MaxLoadPerPhase: int
    WorkerGroup: str
    QualificationLevel: int


class TaskRecord(_RecordModel):
    """One row of tasks.csv / the tasks sheet."""

    TaskID: str = Field(..., min_length=1, description="Unique task key")
    TaskName: str = Field(..., min_length=1)
    Category: str
    Duration: int = Field(..., description="Number of phases the task occupies")
    RequiredSkills: str
    PreferredPhases: str = Field(..., description="Phase list, e.g. '1,2' or '[2,4]'")
    MaxConcurrent: int


RECORD_MODELS: dict[str, type[_RecordModel]] = {
    "clients": ClientRecord,
    "workers": WorkerRecord,
    "tasks": TaskRecord,
}


class RuleDefinition(_StrictBaseModel):
    """
    @brief
    Declarative rule compiled into an executable Rule at load time.

    @details
    `expression` is written in the sandboxed rule language (see
    alchemist.rules.expressions) and states the condition every row must
    satisfy; rows for which it evaluates falsy are reported with `message`.

    @params
        id : str | None
            Stable identifier; a random one is generated when omitted.
        entity : EntityName
            Collection the rule runs against.
        field : str
            Column whose value is passed to the expression as `value`.
        expression : str
            Condition in the rule language, e.g. "1 <= num(value) <= 5".
        message : str
            Text reported when the condition does not hold.
        weight : float
            Rank weight (>= 0). Never affects whether a finding occurs.
        active : bool
            Inactive rules produce no findings.
    """

    id: str | None = Field(None, description="Unique rule id (uuid4 hex if omitted)")
    entity: EntityName
    field: str = Field(..., min_length=1)
    expression: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    weight: float = Field(1.0, ge=0.0, allow_inf_nan=False)
    active: bool = True


class EngineConfig(_StrictBaseModel):
    """
    @brief
    Runtime configuration loaded from engine.yaml.

    @details
    Controls how rule predicate failures surface, how many co-run cycles the
    baseline pass reports, and which rule set the store starts from.
    """

    rule_error_policy: RuleErrorPolicy = Field(
        "report",
        description=(
            "report: a raising rule yields an engine violation for that row; "
            "ignore: the failure is logged and the row passes."
        ),
    )
    report_all_cycles: bool = Field(
        False, description="Report every co-run cycle instead of only the first one"
    )
    profile: str | None = Field(None, description="Preset profile applied on startup")
    rules: list[RuleDefinition] = Field(
        default_factory=list, description="Expression rules appended after the profile"
    )


__all__ = [
    "ClientRecord",
    "WorkerRecord",
    "TaskRecord",
    "RuleDefinition",
    "EngineConfig",
    "EntityName",
    "ENTITY_NAMES",
    "RECORD_MODELS",
]
