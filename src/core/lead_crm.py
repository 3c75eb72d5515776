from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.core.config import Settings, get_settings
from src.core.errors import FetchFailureError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429}


class RetryableStatusError(Exception):
    """Upstream answered 5xx or 429; worth another attempt."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class LeadCrmClient:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        settings = settings or get_settings()
        self.base_url = settings.lead_crm_base_url.rstrip("/")
        self.api_token = settings.lead_crm_api_token
        self.max_retries = settings.lead_crm_max_retries
        self.retry_delay_seconds = settings.lead_crm_retry_delay_seconds
        self.leads_limit = settings.lead_crm_leads_limit
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.lead_crm_timeout_seconds,
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_employees(self, role: str = "employee") -> List[Dict[str, Any]]:
        return await self._get_collection(f"/users/role/{role}")

    async def list_leads(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"limit": str(limit or self.leads_limit)}
        return await self._get_collection("/leads", params=params)

    async def _get_collection(
        self, path: str, params: Optional[Dict[str, str]] = None
    ) -> List[Dict[str, Any]]:
        url = f"{self.base_url}{path}"
        response = await self._get(url, params)
        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchFailureError("Lead CRM returned a non-JSON response", url=url) from exc

        rows = payload.get("data") if isinstance(payload, dict) else payload
        if not isinstance(rows, list):
            raise FetchFailureError("Lead CRM response has no data collection", url=url)
        return [row for row in rows if isinstance(row, dict)]

    async def _get(self, url: str, params: Optional[Dict[str, str]]) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"

        def log_retry(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "Retrying %s after %s (attempt %d of %d, waiting %.2fs)",
                url,
                exc,
                retry_state.attempt_number,
                self.max_retries,
                retry_state.next_action.sleep if retry_state.next_action else 0.0,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.retry_delay_seconds, exp_base=2),
            retry=retry_if_exception_type((httpx.TransportError, RetryableStatusError)),
            before_sleep=log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._send(url, params, headers)
        except httpx.TransportError as exc:
            raise FetchFailureError(
                f"Lead CRM unreachable: {exc.__class__.__name__}", url=url
            ) from exc
        except RetryableStatusError as exc:
            raise FetchFailureError(
                f"Lead CRM responded with HTTP {exc.status_code}",
                url=url,
                upstream_status=exc.status_code,
            ) from exc
        return response

    async def _send(
        self, url: str, params: Optional[Dict[str, str]], headers: Dict[str, str]
    ) -> httpx.Response:
        response = await self._client.get(url, params=params, headers=headers)
        if response.is_success:
            return response
        status = response.status_code
        if self._is_retryable(status):
            raise RetryableStatusError(status)
        raise FetchFailureError(
            f"Lead CRM responded with HTTP {status}", url=url, upstream_status=status
        )

    @staticmethod
    def _is_retryable(status_code: int) -> bool:
        return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES
