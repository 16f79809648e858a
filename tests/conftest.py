"""
Pytest configuration and shared fixtures for gatepass tests.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from gatepass.database import DatabaseManager
from gatepass.services.approval_chain import ApprovalChainInspector
from gatepass.services.audit_log import InMemoryAuditLogStore, SqlAuditLogStore
from gatepass.services.checkpoint_session import CheckpointSession
from gatepass.services.repositories import load_repositories

DEMO_DATA = Path(__file__).resolve().parent.parent / "data" / "demo_requests.json"
NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

# A pass that is valid for any test run date
VALID_PASS = (
    '{"id": 2, "number": "REQ-00002", "requester": "Emmanuel Kamanda", '
    '"title": "Server room maintenance", "access": {"type": "physical", '
    '"facility": "server_room", "start": "2020-01-01", "end": "2099-12-31"}, '
    '"verifyPath": "/verify/REQ-00002"}'
)
EXPIRED_PASS = '{"id": 7, "number": "REQ-00007", "requester": "Sam Lee", "access": {"end": "2020-01-02"}}'


class StepClock:
    """Deterministic clock advancing a fixed step per call."""

    def __init__(self, start=NOW, step=timedelta(minutes=1)):
        self.current = start
        self.step = step

    def __call__(self):
        value = self.current
        self.current = self.current + self.step
        return value


class FakeMonotonic:
    def __init__(self):
        self.value = 100.0

    def __call__(self):
        return self.value


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def repositories():
    return load_repositories(str(DEMO_DATA))


@pytest.fixture
def inspector(repositories):
    return ApprovalChainInspector(repositories[1])


@pytest.fixture
def memory_store():
    return InMemoryAuditLogStore(clock=StepClock())


@pytest.fixture
def sql_store(tmp_path):
    db = DatabaseManager(f"sqlite:///{tmp_path / 'access_logs.db'}")
    store = SqlAuditLogStore(db, clock=StepClock())
    store.create_schema()
    yield store
    db.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def session(memory_store, repositories, inspector, monotonic):
    return CheckpointSession(
        "gate-1",
        memory_store,
        requests=repositories[0],
        approvals=inspector,
        expected_facility="server_room",
        gate="Server Room North Gate",
        guard_name="Guard Alpha",
        monotonic=monotonic,
    )
