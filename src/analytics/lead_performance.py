from __future__ import annotations

import math
from collections import Counter, defaultdict
from datetime import date, datetime, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence

from src.analytics.lead_status import (
    CONTACTED_STATUSES,
    CanonicalStatus,
    normalize_status,
    status_rank,
)
from src.models.leads import EmployeeRecord, LeadRecord
from src.schemas.lead_analytics import (
    EmployeePerformance,
    SourceDistributionEntry,
    StatusDistributionEntry,
    SummaryMetrics,
    TrendPoint,
)
from src.shared.time import calendar_day, trailing_days

DEFAULT_TREND_DAYS = 7
DEFAULT_RESPONSE_HOURS = 24
RESPONSE_OUTLIER_HOURS = 720
UNKNOWN_SOURCE = "Unknown"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        return 0
    return round_half_up(numerator / denominator * 100)


def build_status_distribution(leads: Iterable[LeadRecord]) -> List[StatusDistributionEntry]:
    counts: Counter[CanonicalStatus] = Counter()
    for lead in leads:
        counts[normalize_status(lead.status)] += 1
    return [
        StatusDistributionEntry(status=status, count=counts[status])
        for status in sorted(counts, key=status_rank)
        if counts[status] > 0
    ]


def build_source_distribution(leads: Iterable[LeadRecord]) -> List[SourceDistributionEntry]:
    counts: Dict[str, int] = {}
    for lead in leads:
        source = (lead.source or "").strip() or UNKNOWN_SOURCE
        counts[source] = counts.get(source, 0) + 1
    # sorted() is stable, so equal counts keep first-seen order.
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [SourceDistributionEntry(source=source, count=count) for source, count in ordered]


def compute_employee_performance(
    employees: Sequence[EmployeeRecord], leads: Iterable[LeadRecord]
) -> List[EmployeePerformance]:
    statuses_by_employee: Dict[str, List[CanonicalStatus]] = defaultdict(list)
    for lead in leads:
        if lead.assigned_employee_id is not None:
            statuses_by_employee[lead.assigned_employee_id].append(normalize_status(lead.status))

    rows: List[EmployeePerformance] = []
    for employee in employees:
        statuses = statuses_by_employee.get(employee.id, [])
        assigned = len(statuses)
        contacted = sum(1 for status in statuses if status in CONTACTED_STATUSES)
        converted = sum(1 for status in statuses if status is CanonicalStatus.CONVERTED)
        rows.append(
            EmployeePerformance(
                employee_id=employee.id,
                name=employee.name,
                email=employee.email,
                assigned=assigned,
                contacted=contacted,
                converted=converted,
                conversion_rate=percentage(converted, assigned),
            )
        )
    # Ties must keep the input employee order; sorted() is stable.
    return sorted(rows, key=lambda row: row.assigned, reverse=True)


def filter_employee_performance(
    rows: Iterable[EmployeePerformance],
    employee_id: Optional[str] = None,
    search: Optional[str] = None,
) -> List[EmployeePerformance]:
    """Narrow performance rows to one employee and/or a name/email substring.

    Matching is case-insensitive and the incoming order is preserved.
    """
    needle = (search or "").strip().lower()
    filtered: List[EmployeePerformance] = []
    for row in rows:
        if employee_id and row.employee_id != employee_id:
            continue
        if needle:
            haystacks = ((row.name or "").lower(), (row.email or "").lower())
            if not any(needle in haystack for haystack in haystacks):
                continue
        filtered.append(row)
    return filtered


def average_response_hours(
    leads: Iterable[LeadRecord],
    outlier_hours: int = RESPONSE_OUTLIER_HOURS,
    default_hours: int = DEFAULT_RESPONSE_HOURS,
) -> int:
    samples: List[int] = []
    for lead in leads:
        if lead.created_at is None or lead.updated_at is None:
            continue
        if normalize_status(lead.status) is CanonicalStatus.NEW:
            continue
        elapsed_seconds = (lead.updated_at - lead.created_at).total_seconds()
        hours = round_half_up(elapsed_seconds / 3600)
        if 0 < hours < outlier_hours:
            samples.append(hours)
    if not samples:
        return default_hours
    return round_half_up(sum(samples) / len(samples))


def compute_summary_metrics(
    leads: Sequence[LeadRecord],
    outlier_hours: int = RESPONSE_OUTLIER_HOURS,
    default_response_hours: int = DEFAULT_RESPONSE_HOURS,
) -> SummaryMetrics:
    assigned_leads = sum(1 for lead in leads if lead.assigned_employee_id is not None)
    converted_leads = sum(
        1 for lead in leads if normalize_status(lead.status) is CanonicalStatus.CONVERTED
    )
    return SummaryMetrics(
        total_leads=len(leads),
        assigned_leads=assigned_leads,
        converted_leads=converted_leads,
        conversion_rate=percentage(converted_leads, assigned_leads),
        avg_response_time_hours=average_response_hours(
            leads, outlier_hours=outlier_hours, default_hours=default_response_hours
        ),
    )


def build_trend(
    leads: Iterable[LeadRecord],
    reference_date: date,
    tz: tzinfo,
    window_days: int = DEFAULT_TREND_DAYS,
) -> List[TrendPoint]:
    days = trailing_days(reference_date, window_days)
    lead_counts: Dict[date, int] = {day: 0 for day in days}
    conversion_counts: Dict[date, int] = {day: 0 for day in days}

    for lead in leads:
        if lead.created_at is None:
            continue
        created_day = calendar_day(lead.created_at, tz)
        if created_day not in lead_counts:
            continue
        lead_counts[created_day] += 1

        if normalize_status(lead.status) is not CanonicalStatus.CONVERTED:
            continue
        converted_day = _conversion_day(lead, created_day, tz)
        # Conversions landing outside the window are dropped, not re-attributed.
        if converted_day in conversion_counts:
            conversion_counts[converted_day] += 1

    return [
        TrendPoint(day=day, leads=lead_counts[day], conversions=conversion_counts[day])
        for day in days
    ]


def _conversion_day(lead: LeadRecord, created_day: date, tz: tzinfo) -> date:
    updated_at: Optional[datetime] = lead.updated_at
    if updated_at is None:
        return created_day
    return calendar_day(updated_at, tz)
