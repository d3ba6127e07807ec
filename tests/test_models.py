import pytest
from pydantic import ValidationError

from alchemist.schemas.models import (
    ClientRecord,
    EngineConfig,
    RuleDefinition,
    TaskRecord,
    WorkerRecord,
)


def test_client_record_accepts_numeric_text_and_extra_columns():
    c = ClientRecord(
        ClientID="C1",
        ClientName="Acme",
        PriorityLevel="3",
        RequestedTaskIDs="T1,T2",
        GroupTag="GroupA",
        AttributesJSON="{}",
        Notes="kept",
    )
    assert c.PriorityLevel == 3
    assert c.model_dump()["Notes"] == "kept"


def test_worker_record_slots_as_text_or_list():
    w_text = WorkerRecord(
        WorkerID="W1",
        WorkerName="Ann",
        Skills="coding",
        AvailableSlots="[1,2]",
        MaxLoadPerPhase=1,
        WorkerGroup="G",
        QualificationLevel=1,
    )
    w_list = w_text.model_copy(update={"AvailableSlots": [1, 2]})
    assert w_text.AvailableSlots == "[1,2]"
    assert w_list.AvailableSlots == [1, 2]


def test_task_record_requires_task_id():
    with pytest.raises(ValidationError):
        TaskRecord(
            TaskID="",
            TaskName="Build",
            Category="Dev",
            Duration=1,
            RequiredSkills="coding",
            PreferredPhases="1",
            MaxConcurrent=1,
        )


def test_engine_config_defaults():
    cfg = EngineConfig()
    assert cfg.rule_error_policy == "report"
    assert cfg.report_all_cycles is False
    assert cfg.profile is None
    assert cfg.rules == []

    data = cfg.model_dump()
    assert "rule_error_policy" in data


def test_engine_config_rejects_unknown_keys_and_policies():
    with pytest.raises(ValidationError):
        EngineConfig(unknown_key=1)
    with pytest.raises(ValidationError):
        EngineConfig(rule_error_policy="explode")


def test_rule_definition_schema_and_bounds():
    rd = RuleDefinition(entity="tasks", field="Duration", expression="num(value) >= 1", message="m")
    assert rd.id is None
    assert rd.weight == pytest.approx(1.0)
    assert rd.active is True

    with pytest.raises(ValidationError):
        RuleDefinition(entity="tasks", field="Duration", expression="x", message="m", weight=-1)
    with pytest.raises(ValidationError):
        RuleDefinition(
            entity="tasks", field="Duration", expression="x", message="m", weight=float("inf")
        )
    with pytest.raises(ValidationError):
        RuleDefinition(entity="projects", field="F", expression="x", message="m")

    schema = RuleDefinition.model_json_schema()
    assert isinstance(schema, dict)
    assert "properties" in schema
