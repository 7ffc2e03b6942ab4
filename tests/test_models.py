import logging
import math

import pytest

from smb_tracker.models import (
    KpiEntry,
    RevenueEntry,
    Snapshot,
    entries_from_records,
    to_amount,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0.0),
        ("", 0.0),
        ("   ", 0.0),
        ("1200", 1200.0),
        ("1,250.50", 1250.5),
        (42, 42.0),
        (float("nan"), 0.0),
        (True, 0.0),
    ],
)
def test_to_amount_coercion(raw, expected: float) -> None:
    assert to_amount(raw) == pytest.approx(expected)


def test_to_amount_logs_invalid_values(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="smb_tracker.models"):
        assert to_amount("abc", "amount") == 0.0
        assert to_amount(float("inf"), "amount") == 0.0

    messages = [r.getMessage() for r in caplog.records]
    assert any("'abc'" in m for m in messages)
    assert len(messages) == 2


def test_missing_values_are_not_logged(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="smb_tracker.models"):
        to_amount(None)
        to_amount("")
    assert caplog.records == []


def test_revenue_entry_from_record_normalizes_fields() -> None:
    entry = RevenueEntry.from_record(
        {
            "id": "r1",
            "date": "2025-01-10",
            "client": " Acme ",
            "category": None,
            "amount": "not a number",
            "notes": "",
        }
    )
    assert entry.client == "Acme"
    assert entry.category == ""
    assert entry.amount == 0.0
    assert entry.notes is None
    assert math.isfinite(entry.amount)


def test_kpi_entry_direction_values() -> None:
    assert KpiEntry.from_record({"direction": "LOWER"}).direction == "lower"
    assert KpiEntry.from_record({"direction": ""}).direction is None
    assert KpiEntry.from_record({"direction": "sideways"}).direction is None


def test_entries_without_id_are_never_merged() -> None:
    entries = entries_from_records(
        "cash_flow",
        [
            {"month": "2025-01", "inflows": 100, "outflows": 0},
            {"month": "2025-01", "inflows": 100, "outflows": 0},
        ],
    )
    assert len(entries) == 2
    assert set(entries) == {"cash_flow-0", "cash_flow-1"}


def test_duplicate_ids_are_kept() -> None:
    entries = entries_from_records(
        "revenue",
        [{"id": "x", "amount": 10}, {"id": "x", "amount": 20}],
    )
    assert len(entries) == 2
    assert sum(e.amount for e in entries.values()) == pytest.approx(30.0)
    for key, entry in entries.items():
        assert entry.id == key


def test_unknown_kind_raises() -> None:
    with pytest.raises(ValueError):
        entries_from_records("invoices", [])
    with pytest.raises(ValueError):
        Snapshot.from_records(invoices=[])


def test_snapshot_counts_and_emptiness() -> None:
    assert Snapshot().is_empty()

    snap = Snapshot.from_records(
        revenue=[{"id": "r1", "amount": "1200"}],
        debts=[{"id": "d1", "current_balance": 5000}],
    )
    assert not snap.is_empty()
    counts = snap.counts()
    assert counts["revenue"] == 1
    assert counts["debts"] == 1
    assert counts["kpis"] == 0
