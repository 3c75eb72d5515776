from __future__ import annotations

import pytest

from src.analytics.lead_status import CanonicalStatus, normalize_status, status_rank


@pytest.mark.parametrize(
    "raw_status, expected",
    [
        ("New Lead", CanonicalStatus.NEW),
        ("New", CanonicalStatus.NEW),
        ("Contact Made", CanonicalStatus.CONTACTED),
        ("Contacted", CanonicalStatus.CONTACTED),
        ("Qualified", CanonicalStatus.IN_PROGRESS),
        ("In Progress", CanonicalStatus.IN_PROGRESS),
        ("Negotiation", CanonicalStatus.IN_PROGRESS),
        ("Converted", CanonicalStatus.CONVERTED),
        ("Closed", CanonicalStatus.CONVERTED),
        ("Won", CanonicalStatus.CONVERTED),
        ("Lost", CanonicalStatus.LOST),
        ("Rejected", CanonicalStatus.LOST),
    ],
)
def test_documented_labels_map_to_canonical_status(raw_status, expected):
    assert normalize_status(raw_status) is expected


@pytest.mark.parametrize("raw_status", [None, "", "won", "NEW", " New", "Follow Up", 42])
def test_unmatched_labels_fall_back_to_unknown(raw_status):
    assert normalize_status(raw_status) is CanonicalStatus.UNKNOWN


def test_normalize_is_deterministic():
    for raw_status in ["Won", "mystery", None]:
        assert normalize_status(raw_status) is normalize_status(raw_status)


def test_status_rank_orders_the_funnel():
    ordered = sorted(CanonicalStatus, key=status_rank)
    assert ordered == [
        CanonicalStatus.NEW,
        CanonicalStatus.CONTACTED,
        CanonicalStatus.IN_PROGRESS,
        CanonicalStatus.CONVERTED,
        CanonicalStatus.LOST,
        CanonicalStatus.UNKNOWN,
    ]
    assert status_rank(CanonicalStatus.NEW) == 1
    assert status_rank(CanonicalStatus.UNKNOWN) == 6


def test_canonical_status_serializes_as_label():
    assert CanonicalStatus.IN_PROGRESS.value == "InProgress"
