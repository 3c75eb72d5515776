from __future__ import annotations

from functools import lru_cache

from src.core.config import get_settings
from src.core.lead_crm import LeadCrmClient
from src.repositories.leads_repository import LeadsRepository
from src.services.lead_analytics_service import LeadAnalyticsService
from src.services.refresh_coordinator import RefreshCoordinator


@lru_cache
def get_lead_crm_client() -> LeadCrmClient:
    return LeadCrmClient()


@lru_cache
def get_leads_repository() -> LeadsRepository:
    return LeadsRepository(client=get_lead_crm_client())


def get_lead_analytics_service() -> LeadAnalyticsService:
    return LeadAnalyticsService(repository=get_leads_repository())


@lru_cache
def get_refresh_coordinator() -> RefreshCoordinator:
    # One coordinator per process: it owns the published snapshot.
    return RefreshCoordinator(
        source=get_lead_analytics_service(),
        default_response_hours=get_settings().analytics_default_response_hours,
    )
