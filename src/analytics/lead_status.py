from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class CanonicalStatus(str, Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    IN_PROGRESS = "InProgress"
    CONVERTED = "Converted"
    LOST = "Lost"
    UNKNOWN = "Unknown"


# Matching is exact and case-sensitive; the CRM writes these labels verbatim.
RAW_STATUS_MAP: Dict[str, CanonicalStatus] = {
    "New Lead": CanonicalStatus.NEW,
    "New": CanonicalStatus.NEW,
    "Contact Made": CanonicalStatus.CONTACTED,
    "Contacted": CanonicalStatus.CONTACTED,
    "Qualified": CanonicalStatus.IN_PROGRESS,
    "In Progress": CanonicalStatus.IN_PROGRESS,
    "Negotiation": CanonicalStatus.IN_PROGRESS,
    "Converted": CanonicalStatus.CONVERTED,
    "Closed": CanonicalStatus.CONVERTED,
    "Won": CanonicalStatus.CONVERTED,
    "Lost": CanonicalStatus.LOST,
    "Rejected": CanonicalStatus.LOST,
}

STATUS_RANK: Dict[CanonicalStatus, int] = {
    CanonicalStatus.NEW: 1,
    CanonicalStatus.CONTACTED: 2,
    CanonicalStatus.IN_PROGRESS: 3,
    CanonicalStatus.CONVERTED: 4,
    CanonicalStatus.LOST: 5,
    CanonicalStatus.UNKNOWN: 6,
}

CONTACTED_STATUSES = frozenset(
    {CanonicalStatus.CONTACTED, CanonicalStatus.IN_PROGRESS, CanonicalStatus.CONVERTED}
)


def normalize_status(raw_status: Optional[str]) -> CanonicalStatus:
    if not isinstance(raw_status, str):
        return CanonicalStatus.UNKNOWN
    return RAW_STATUS_MAP.get(raw_status, CanonicalStatus.UNKNOWN)


def status_rank(status: CanonicalStatus) -> int:
    return STATUS_RANK[status]
