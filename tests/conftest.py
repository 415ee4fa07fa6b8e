"""
Shared pytest fixtures for the grievance service test suite.

Provides a controllable clock, store doubles, a grievance factory and an
in-process httpx AsyncClient running the app's lifespan.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import httpx
import pytest
import pytest_asyncio

from src.config import GrievanceCategory, GrievancePriority, GrievanceStatus, Settings
from src.core import RepositoryException
from src.grievances.application import GrievanceService, IGrievanceStore
from src.grievances.domain import Grievance
from src.grievances.infrastructure import InMemoryGrievanceStore
from src.main import app, lifespan

FIXED_NOW = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)

VALID_SUBMISSION = {
    "citizen_name": "Rajesh Kumar",
    "citizen_phone": "9876543210",
    "citizen_email": "rajesh@example.com",
    "description": "Severe water leakage near Sector 15 Market since three days",
}

VALID_PAYLOAD = {
    "citizenName": "Rajesh Kumar",
    "citizenPhone": "9876543210",
    "citizenEmail": "rajesh@example.com",
    "description": "Severe water leakage near Sector 15 Market since three days",
}


class SteppingClock:
    """Returns FIXED_NOW, then moves forward one second per call."""

    def __init__(self, start: datetime = FIXED_NOW, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


class FlakyStore(IGrievanceStore):
    """In-memory store that raises RepositoryException while unavailable.

    With `writable=False` only writes fail and reads keep working.
    """

    def __init__(self, available: bool = True, writable: bool = True):
        self.inner = InMemoryGrievanceStore()
        self.available = available
        self.writable = writable
        self.calls = 0

    def _check(self, write: bool = False) -> None:
        self.calls += 1
        if not self.available or (write and not self.writable):
            raise RepositoryException("grievance table unavailable")

    async def put(self, grievance: Grievance) -> None:
        self._check(write=True)
        await self.inner.put(grievance)

    async def get(self, grievance_id: str) -> Optional[Grievance]:
        self._check()
        return await self.inner.get(grievance_id)

    async def scan(self) -> List[Grievance]:
        self._check()
        return await self.inner.scan()

    async def delete(self, grievance_id: str) -> bool:
        self._check(write=True)
        return await self.inner.delete(grievance_id)

    async def find_by_ticket_number(self, ticket_number: str) -> Optional[Grievance]:
        self._check()
        return await self.inner.find_by_ticket_number(ticket_number)


class ScriptedTickets:
    """Ticket generator returning a fixed sequence, repeating the last value."""

    def __init__(self, *numbers: str):
        self.numbers = list(numbers)
        self.issued = 0

    def next_ticket_number(self) -> str:
        self.issued += 1
        if len(self.numbers) > 1:
            return self.numbers.pop(0)
        return self.numbers[0]


def make_grievance(**overrides) -> Grievance:
    values = dict(
        grievance_id="grv_test-1",
        ticket_number="JS25010001",
        citizen_name="Rajesh Kumar",
        citizen_phone="9876543210",
        description="Severe water leakage near Sector 15 Market since three days",
        category=GrievanceCategory.WATER_SUPPLY,
        priority=GrievancePriority.HIGH,
        status=GrievanceStatus.PENDING,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
        location="Sector 15 Market",
        confidence=0.85,
    )
    values.update(overrides)
    return Grievance(**values)


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def memory_store():
    return InMemoryGrievanceStore()


@pytest.fixture
def service(memory_store, clock):
    return GrievanceService(memory_store, clock=clock)


@pytest.fixture
def app_settings(tmp_path):
    """Memory-backed settings with no rules file on disk."""
    return Settings(
        storage_backend="memory",
        classifier_rules_path=tmp_path / "classifier_rules.yaml",
    )


@pytest_asyncio.fixture
async def client(app_settings):
    """In-process httpx AsyncClient with a fresh grievance service per test."""
    app.state.settings = app_settings
    async with lifespan(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
            yield c
    app.state.settings = None
