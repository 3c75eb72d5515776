from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import ConfigDict, Field

from src.analytics.lead_status import CanonicalStatus
from src.core.errors import ErrorDetail
from src.shared.base import BaseSchema, FrozenSchema


class StatusDistributionEntry(FrozenSchema):
    status: CanonicalStatus
    count: int = Field(ge=0)


class SourceDistributionEntry(FrozenSchema):
    source: str
    count: int = Field(ge=0)


class EmployeePerformance(FrozenSchema):
    employee_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    assigned: int = Field(ge=0)
    contacted: int = Field(ge=0)
    converted: int = Field(ge=0)
    conversion_rate: int = Field(ge=0, le=100)


class SummaryMetrics(FrozenSchema):
    total_leads: int = Field(ge=0)
    assigned_leads: int = Field(ge=0)
    converted_leads: int = Field(ge=0)
    conversion_rate: int = Field(ge=0, le=100)
    avg_response_time_hours: int = Field(ge=0)


class TrendPoint(FrozenSchema):
    day: date
    leads: int = Field(ge=0)
    conversions: int = Field(ge=0)


class LeadAnalyticsSnapshot(FrozenSchema):
    reference_date: date
    generated_at: datetime
    employee_count: int
    status_distribution: Tuple[StatusDistributionEntry, ...]
    employee_performance: Tuple[EmployeePerformance, ...]
    summary: SummaryMetrics
    trend: Tuple[TrendPoint, ...]
    source_distribution: Tuple[SourceDistributionEntry, ...]


class RefreshStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class RefreshState(FrozenSchema):
    status: RefreshStatus
    error: Optional[ErrorDetail] = None
    last_refreshed_at: Optional[datetime] = None


class EmployeePerformanceFilters(BaseSchema):
    # Keep query parameter names in snake_case for API contract consistency.
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=500)
    employee_id: Optional[str] = None
    search: Optional[str] = None
