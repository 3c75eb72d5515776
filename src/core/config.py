from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Ignore unrelated env keys so local/dev .env can include frontend settings.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Lead Analytics Backend"
    environment: str = "development"
    api_prefix: str = "/api/v1"
    cors_allow_origins: str = "http://localhost:5173,http://127.0.0.1:5173"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    lead_crm_base_url: str = Field(..., alias="LEAD_CRM_BASE_URL")
    lead_crm_api_token: Optional[str] = Field(default=None, alias="LEAD_CRM_API_TOKEN")
    lead_crm_timeout_seconds: float = Field(default=15.0, alias="LEAD_CRM_TIMEOUT_SECONDS")
    lead_crm_max_retries: int = Field(default=3, ge=0, alias="LEAD_CRM_MAX_RETRIES")
    lead_crm_retry_delay_seconds: float = Field(
        default=1.0, ge=0, alias="LEAD_CRM_RETRY_DELAY_SECONDS"
    )
    lead_crm_leads_limit: int = Field(default=100, ge=1, alias="LEAD_CRM_LEADS_LIMIT")

    analytics_timezone: str = Field(default="UTC", alias="ANALYTICS_TIMEZONE")
    analytics_trend_days: int = Field(default=7, ge=1, alias="ANALYTICS_TREND_DAYS")
    analytics_response_outlier_hours: int = Field(
        default=720, ge=1, alias="ANALYTICS_RESPONSE_OUTLIER_HOURS"
    )
    analytics_default_response_hours: int = Field(
        default=24, ge=0, alias="ANALYTICS_DEFAULT_RESPONSE_HOURS"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_cors_origins() -> list[str]:
    settings = get_settings()
    return [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
