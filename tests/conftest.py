from __future__ import annotations

import asyncio
import os
from datetime import date, datetime, timezone
from typing import List

os.environ.setdefault("LEAD_CRM_BASE_URL", "http://crm.test/api")

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_refresh_coordinator
from src.core.config import Settings
from src.main import create_app
from src.models.leads import EmployeeRecord, LeadRecord
from src.schemas.lead_analytics import LeadAnalyticsSnapshot, RefreshState, RefreshStatus
from src.services.lead_analytics_service import LeadAnalyticsService
from src.services.refresh_coordinator import RefreshCoordinator

REFERENCE_DATE = date(2026, 2, 18)


def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def make_settings(**overrides: object) -> Settings:
    values = {"LEAD_CRM_BASE_URL": "http://crm.test/api"}
    values.update(overrides)
    return Settings(**values)


def sample_employees() -> List[EmployeeRecord]:
    return [
        EmployeeRecord(id="E1", name="Ann Lee", email="ann@example.com"),
        EmployeeRecord(id="E2", name="Ben Ito", email="ben@example.com"),
        EmployeeRecord(id="E3", name="Cara Diaz", email="cara@example.com"),
    ]


def sample_leads() -> List[LeadRecord]:
    return [
        LeadRecord(id="L1", status="New", source="Website", created_at=utc(2026, 2, 18, 9)),
        LeadRecord(
            id="L2",
            status="Contact Made",
            source="Referral",
            assigned_employee_id="E1",
            created_at=utc(2026, 2, 16, 8),
            updated_at=utc(2026, 2, 16, 18),
        ),
        LeadRecord(
            id="L3",
            status="Won",
            source="Website",
            assigned_employee_id="E1",
            created_at=utc(2026, 2, 15, 8),
            updated_at=utc(2026, 2, 17, 8),
        ),
        LeadRecord(
            id="L4",
            status="Rejected",
            assigned_employee_id="E2",
            created_at=utc(2026, 1, 2),
        ),
    ]


class StubSnapshotSource:
    def __init__(self, employees: List[EmployeeRecord], leads: List[LeadRecord]) -> None:
        self.service = LeadAnalyticsService(repository=None, settings=make_settings())
        self.employees = employees
        self.leads = leads

    async def fetch_snapshot(self) -> LeadAnalyticsSnapshot:
        return self.service.compute_snapshot(
            self.employees, self.leads, reference_date=REFERENCE_DATE
        )


class RecordingCoordinator(RefreshCoordinator):
    def __init__(self, source: StubSnapshotSource) -> None:
        super().__init__(source=source)
        self.refresh_requests = 0

    def request_refresh(self) -> RefreshState:
        self.refresh_requests += 1
        return RefreshState(status=RefreshStatus.LOADING)


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def settings_factory():
    return make_settings


@pytest.fixture()
def employees() -> List[EmployeeRecord]:
    return sample_employees()


@pytest.fixture()
def leads() -> List[LeadRecord]:
    return sample_leads()


@pytest.fixture()
def coordinator() -> RecordingCoordinator:
    coordinator = RecordingCoordinator(StubSnapshotSource(sample_employees(), sample_leads()))
    asyncio.run(coordinator.refresh())
    return coordinator


@pytest.fixture()
def client(coordinator: RecordingCoordinator) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_refresh_coordinator] = lambda: coordinator
    return TestClient(app)


@pytest.fixture()
def live_coordinator() -> RefreshCoordinator:
    return RefreshCoordinator(source=StubSnapshotSource(sample_employees(), sample_leads()))


@pytest.fixture()
def live_client(live_coordinator: RefreshCoordinator):
    app = create_app()
    app.dependency_overrides[get_refresh_coordinator] = lambda: live_coordinator
    # Entering the client keeps one event loop alive for background refresh tasks.
    with TestClient(app) as client:
        yield client
