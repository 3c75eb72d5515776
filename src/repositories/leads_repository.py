from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from src.core.lead_crm import LeadCrmClient
from src.models.leads import EmployeeRecord, LeadRecord

logger = logging.getLogger(__name__)


def resolve_employee_ref(value: Any) -> Optional[str]:
    """Collapse the assigned-employee field to a plain identifier.

    The CRM returns either nothing, the employee id, or the populated employee
    document (``{"_id": ..., "name": ...}``) depending on the endpoint.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
        if value is None:
            return None
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        identifier = str(value).strip()
        return identifier or None
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds.
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning("Ignoring unparseable timestamp %r", value)
            return None
    else:
        logger.warning("Ignoring unsupported timestamp value %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class LeadsRepository:
    def __init__(self, client: LeadCrmClient) -> None:
        self.client = client

    async def list_employees(self, role: str = "employee") -> List[EmployeeRecord]:
        rows = await self.client.list_employees(role=role)
        employees: List[EmployeeRecord] = []
        for row in rows:
            record = self._to_employee_record(row)
            if record is None:
                logger.warning("Skipping employee row without an identifier")
                continue
            employees.append(record)
        return employees

    async def list_leads(self, limit: Optional[int] = None) -> List[LeadRecord]:
        rows = await self.client.list_leads(limit=limit)
        return [self._to_lead_record(row) for row in rows]

    async def fetch_employees_and_leads(
        self, role: str = "employee", limit: Optional[int] = None
    ) -> Tuple[List[EmployeeRecord], List[LeadRecord]]:
        employees, leads = await asyncio.gather(
            self.list_employees(role=role), self.list_leads(limit=limit)
        )
        return employees, leads

    @staticmethod
    def _to_employee_record(row: Dict[str, Any]) -> Optional[EmployeeRecord]:
        employee_id = resolve_employee_ref(row)
        if employee_id is None:
            return None
        return EmployeeRecord(
            id=employee_id,
            name=_optional_str(row.get("name")),
            email=_optional_str(row.get("email")),
            role=_optional_str(row.get("role")),
        )

    @staticmethod
    def _to_lead_record(row: Dict[str, Any]) -> LeadRecord:
        return LeadRecord(
            id=_optional_str(row.get("_id") or row.get("id")),
            name=_optional_str(row.get("name")),
            status=row.get("status") if isinstance(row.get("status"), str) else None,
            source=_optional_str(row.get("source")),
            assigned_employee_id=resolve_employee_ref(
                row.get("assignedEmployee") or row.get("assignedEmployeeRef")
            ),
            created_at=parse_timestamp(row.get("createdAt")),
            updated_at=parse_timestamp(row.get("updatedAt")),
        )
