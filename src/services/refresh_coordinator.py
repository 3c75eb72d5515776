from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol, Set

from src.core.errors import ErrorDetail, FetchFailureError
from src.schemas.lead_analytics import (
    EmployeePerformance,
    LeadAnalyticsSnapshot,
    RefreshState,
    RefreshStatus,
    SourceDistributionEntry,
    StatusDistributionEntry,
    SummaryMetrics,
    TrendPoint,
)

logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    async def fetch_snapshot(self) -> LeadAnalyticsSnapshot: ...


class RefreshCoordinator:
    """Sequences fetch-and-compute cycles and owns the published snapshot.

    Every refresh takes a new token before it suspends on the fetch. When the
    fetch resolves, its result is applied only if no newer refresh has been
    issued in the meantime, so a slow early request can never overwrite a
    faster later one. A failed cycle keeps the last good snapshot and records
    the error next to it.
    """

    def __init__(self, source: SnapshotSource, default_response_hours: int = 24) -> None:
        self.source = source
        self.default_response_hours = default_response_hours
        self._latest_token = 0
        self._snapshot: Optional[LeadAnalyticsSnapshot] = None
        self._state = RefreshState(status=RefreshStatus.IDLE)
        self._tasks: Set[asyncio.Task] = set()

    @property
    def snapshot(self) -> Optional[LeadAnalyticsSnapshot]:
        return self._snapshot

    @property
    def latest_token(self) -> int:
        return self._latest_token

    def get_refresh_state(self) -> RefreshState:
        return self._state

    def get_status_distribution(self) -> List[StatusDistributionEntry]:
        return list(self._snapshot.status_distribution) if self._snapshot else []

    def get_employee_performance(self) -> List[EmployeePerformance]:
        return list(self._snapshot.employee_performance) if self._snapshot else []

    def get_summary_metrics(self) -> SummaryMetrics:
        if self._snapshot:
            return self._snapshot.summary
        return SummaryMetrics(
            total_leads=0,
            assigned_leads=0,
            converted_leads=0,
            conversion_rate=0,
            avg_response_time_hours=self.default_response_hours,
        )

    def get_trend(self) -> List[TrendPoint]:
        return list(self._snapshot.trend) if self._snapshot else []

    def get_source_distribution(self) -> List[SourceDistributionEntry]:
        return list(self._snapshot.source_distribution) if self._snapshot else []

    def request_refresh(self) -> RefreshState:
        """Issue a refresh token now and run the cycle on the running loop."""
        token = self._issue_token()
        task = asyncio.get_running_loop().create_task(self._refresh_in_background(token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return self._state

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def refresh(self) -> Optional[LeadAnalyticsSnapshot]:
        """Run one cycle; return the snapshot if this cycle's result was published."""
        return await self._run(self._issue_token())

    def _issue_token(self) -> int:
        self._latest_token += 1
        self._state = RefreshState(
            status=RefreshStatus.LOADING,
            last_refreshed_at=self._state.last_refreshed_at,
        )
        logger.info("Lead analytics refresh %d started", self._latest_token)
        return self._latest_token

    async def _run(self, token: int) -> Optional[LeadAnalyticsSnapshot]:
        try:
            snapshot = await self.source.fetch_snapshot()
        except FetchFailureError as exc:
            if self._is_superseded(token):
                return None
            self._fail(exc.to_detail())
            logger.warning("Lead analytics refresh %d failed: %s", token, exc.message)
            return None
        except Exception:
            if not self._is_superseded(token):
                self._fail(
                    ErrorDetail(code="internal_error", message="Lead analytics refresh crashed")
                )
            raise

        if self._is_superseded(token):
            return None
        self._snapshot = snapshot
        self._state = RefreshState(
            status=RefreshStatus.READY,
            last_refreshed_at=snapshot.generated_at,
        )
        logger.info(
            "Lead analytics refresh %d published (%d leads)",
            token,
            snapshot.summary.total_leads,
        )
        return snapshot

    def _is_superseded(self, token: int) -> bool:
        if token == self._latest_token:
            return False
        logger.debug(
            "Discarding stale lead analytics refresh %d (latest is %d)",
            token,
            self._latest_token,
        )
        return True

    def _fail(self, error: ErrorDetail) -> None:
        self._state = RefreshState(
            status=RefreshStatus.FAILED,
            error=error,
            last_refreshed_at=self._state.last_refreshed_at,
        )

    async def _refresh_in_background(self, token: int) -> None:
        try:
            await self._run(token)
        except Exception:
            logger.exception("Background lead analytics refresh crashed")
