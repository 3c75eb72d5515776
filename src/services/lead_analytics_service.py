from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from src.analytics.lead_performance import (
    build_source_distribution,
    build_status_distribution,
    build_trend,
    compute_employee_performance,
    compute_summary_metrics,
)
from src.core.config import Settings, get_settings
from src.models.leads import EmployeeRecord, LeadRecord
from src.repositories.leads_repository import LeadsRepository
from src.schemas.lead_analytics import LeadAnalyticsSnapshot
from src.shared.time import resolve_timezone

logger = logging.getLogger(__name__)


class LeadAnalyticsService:
    def __init__(self, repository: LeadsRepository, settings: Optional[Settings] = None) -> None:
        self.repository = repository
        self.settings = settings or get_settings()
        self.timezone = resolve_timezone(self.settings.analytics_timezone)

    async def fetch_snapshot(self) -> LeadAnalyticsSnapshot:
        employees, leads = await self.repository.fetch_employees_and_leads(
            role="employee", limit=self.settings.lead_crm_leads_limit
        )
        logger.info("Fetched %d employees and %d leads", len(employees), len(leads))
        return self.compute_snapshot(employees, leads)

    def compute_snapshot(
        self,
        employees: Sequence[EmployeeRecord],
        leads: Sequence[LeadRecord],
        reference_date: Optional[date] = None,
    ) -> LeadAnalyticsSnapshot:
        generated_at = datetime.now(timezone.utc)
        if reference_date is None:
            reference_date = generated_at.astimezone(self.timezone).date()
        return LeadAnalyticsSnapshot(
            reference_date=reference_date,
            generated_at=generated_at,
            employee_count=len(employees),
            status_distribution=tuple(build_status_distribution(leads)),
            employee_performance=tuple(compute_employee_performance(employees, leads)),
            summary=compute_summary_metrics(
                leads,
                outlier_hours=self.settings.analytics_response_outlier_hours,
                default_response_hours=self.settings.analytics_default_response_hours,
            ),
            trend=tuple(
                build_trend(
                    leads,
                    reference_date,
                    self.timezone,
                    window_days=self.settings.analytics_trend_days,
                )
            ),
            source_distribution=tuple(build_source_distribution(leads)),
        )
