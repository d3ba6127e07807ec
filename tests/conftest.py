import sys
from pathlib import Path

import pytest

# (1) Add src/ to sys.path to enable absolute imports without installation
#     The root directory contains scripts/, src/, config/ and tests/.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


# -----------------------------
# SHARED RECORD FIXTURES
# -----------------------------
@pytest.fixture()
def clean_clients() -> list[dict]:
    """Two clients that pass every built-in check against clean_tasks."""
    return [
        {
            "ClientID": "C1",
            "ClientName": "Acme",
            "PriorityLevel": 3,
            "RequestedTaskIDs": "T1,T2",
            "GroupTag": "GroupA",
            "AttributesJSON": '{"vip": true}',
        },
        {
            "ClientID": "C2",
            "ClientName": "Globex",
            "PriorityLevel": "5",
            "RequestedTaskIDs": "T2",
            "GroupTag": "GroupB",
            "AttributesJSON": "",
        },
    ]


@pytest.fixture()
def clean_workers() -> list[dict]:
    """Two workers whose slots cover phases 1-3."""
    return [
        {
            "WorkerID": "W1",
            "WorkerName": "Ann",
            "Skills": "coding, testing",
            "AvailableSlots": "[1,2,3]",
            "MaxLoadPerPhase": 2,
            "WorkerGroup": "GroupA",
            "QualificationLevel": 4,
        },
        {
            "WorkerID": "W2",
            "WorkerName": "Bob",
            "Skills": "design",
            "AvailableSlots": "[1,2]",
            "MaxLoadPerPhase": 1,
            "WorkerGroup": "GroupB",
            "QualificationLevel": 2,
        },
    ]


@pytest.fixture()
def clean_tasks() -> list[dict]:
    """Two tasks with covered skills and no co-run cycle."""
    return [
        {
            "TaskID": "T1",
            "TaskName": "Build",
            "Category": "Dev",
            "Duration": 1,
            "RequiredSkills": "coding",
            "PreferredPhases": "1,2",
            "MaxConcurrent": 1,
            "CoRunTaskIDs": "T2",
        },
        {
            "TaskID": "T2",
            "TaskName": "Review",
            "Category": "QA",
            "Duration": 1,
            "RequiredSkills": "testing, design",
            "PreferredPhases": "[2]",
            "MaxConcurrent": 1,
            "CoRunTaskIDs": "",
        },
    ]
