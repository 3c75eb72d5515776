from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.analytics.lead_performance import filter_employee_performance
from src.api.dependencies import get_refresh_coordinator
from src.core.errors import NotFoundError
from src.schemas.lead_analytics import (
    EmployeePerformance,
    EmployeePerformanceFilters,
    LeadAnalyticsSnapshot,
    RefreshState,
    RefreshStatus,
    SourceDistributionEntry,
    StatusDistributionEntry,
    SummaryMetrics,
    TrendPoint,
)
from src.services.refresh_coordinator import RefreshCoordinator
from src.shared.response import Meta, ResponseEnvelope, paginate_list, single_page

router = APIRouter(prefix="/lead-analytics", tags=["lead-analytics"])

SOURCE = "lead_crm"


def _build_meta(coordinator: RefreshCoordinator, time_window: str = "snapshot") -> Meta:
    state = coordinator.get_refresh_state()
    snapshot = coordinator.snapshot
    return Meta(
        as_of_date=(snapshot.reference_date if snapshot else date.today()).isoformat(),
        source=SOURCE,
        time_window=time_window,
        calculation_version="v1",
        data_status=state.status.value,
        is_stale=state.status is RefreshStatus.FAILED,
        generated_at=snapshot.generated_at.isoformat() if snapshot else None,
    )


def get_employee_performance_filters(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500),
    employee_id: Optional[str] = Query(default=None, min_length=1),
    search: Optional[str] = Query(default=None, max_length=200),
) -> EmployeePerformanceFilters:
    return EmployeePerformanceFilters(
        page=page, page_size=page_size, employee_id=employee_id, search=search
    )


@router.get("/status-distribution")
def status_distribution(
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
) -> ResponseEnvelope[List[StatusDistributionEntry]]:
    data = coordinator.get_status_distribution()
    return ResponseEnvelope(
        data=data,
        pagination=single_page(data),
        meta=_build_meta(coordinator),
    )


@router.get("/employee-performance")
def employee_performance(
    filters: EmployeePerformanceFilters = Depends(get_employee_performance_filters),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
) -> ResponseEnvelope[List[EmployeePerformance]]:
    matching = filter_employee_performance(
        coordinator.get_employee_performance(),
        employee_id=filters.employee_id,
        search=filters.search,
    )
    if filters.employee_id and not matching and coordinator.snapshot is not None:
        raise NotFoundError(f"Employee {filters.employee_id} not found")
    rows, pagination = paginate_list(matching, filters.page, filters.page_size)
    return ResponseEnvelope(data=rows, pagination=pagination, meta=_build_meta(coordinator))


@router.get("/summary")
def summary_metrics(
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
) -> ResponseEnvelope[SummaryMetrics]:
    return ResponseEnvelope(
        data=coordinator.get_summary_metrics(),
        pagination=None,
        meta=_build_meta(coordinator),
    )


@router.get("/trend")
def trend(
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
) -> ResponseEnvelope[List[TrendPoint]]:
    data = coordinator.get_trend()
    time_window = f"{len(data)}d" if data else "snapshot"
    return ResponseEnvelope(
        data=data,
        pagination=single_page(data),
        meta=_build_meta(coordinator, time_window=time_window),
    )


@router.get("/source-distribution")
def source_distribution(
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
) -> ResponseEnvelope[List[SourceDistributionEntry]]:
    data = coordinator.get_source_distribution()
    return ResponseEnvelope(
        data=data,
        pagination=single_page(data),
        meta=_build_meta(coordinator),
    )


@router.get("/snapshot")
def lead_analytics_snapshot(
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
) -> ResponseEnvelope[Optional[LeadAnalyticsSnapshot]]:
    return ResponseEnvelope(
        data=coordinator.snapshot,
        pagination=None,
        meta=_build_meta(coordinator),
    )


@router.get("/refresh-state")
def refresh_state(
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
) -> ResponseEnvelope[RefreshState]:
    return ResponseEnvelope(
        data=coordinator.get_refresh_state(),
        pagination=None,
        meta=_build_meta(coordinator, time_window="now"),
    )


@router.post("/refresh", status_code=202)
async def request_refresh(
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
) -> ResponseEnvelope[RefreshState]:
    state = coordinator.request_refresh()
    return ResponseEnvelope(
        data=state,
        pagination=None,
        meta=_build_meta(coordinator, time_window="now"),
    )
