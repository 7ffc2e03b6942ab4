from datetime import date

import pytest

from smb_tracker.debts import (
    DebtSettings,
    classify_urgency,
    days_until_due,
    summarize_debts,
)
from smb_tracker.models import DebtEntry

TODAY = date(2025, 2, 15)


def debt(entry_id: str, creditor: str, due_date: str, **amounts) -> DebtEntry:
    values = {
        "original_amount": 1000.0,
        "current_balance": 500.0,
        "interest_rate": 5.0,
        "monthly_payment": 100.0,
    }
    values.update(amounts)
    return DebtEntry(
        id=entry_id,
        creditor=creditor,
        type="Loan",
        due_date=due_date,
        notes=None,
        **values,
    )


def test_days_until_due() -> None:
    assert days_until_due("2025-02-20", TODAY) == 5
    assert days_until_due("2025-02-10", TODAY) == -5
    assert days_until_due("2025-02-20T00:00:00", TODAY) == 5
    assert days_until_due("", TODAY) is None
    assert days_until_due("soon", TODAY) is None


@pytest.mark.parametrize(
    "days, expected",
    [
        (-30, "high"),
        (0, "high"),
        (7, "high"),
        (8, "medium"),
        (30, "medium"),
        (31, "low"),
        (None, "low"),
    ],
)
def test_classify_urgency(days, expected: str) -> None:
    assert classify_urgency(days) == expected


def test_custom_urgency_thresholds() -> None:
    settings = DebtSettings(high_urgency_days=3, medium_urgency_days=10)
    assert classify_urgency(5, settings) == "medium"
    assert classify_urgency(11, settings) == "low"


def test_summary_totals_and_ordering() -> None:
    debts = [
        debt(
            "d1",
            "Bank",
            "2025-06-30",
            original_amount=25000.0,
            current_balance=18750.0,
            interest_rate=6.0,
        ),
        debt(
            "d2",
            "Card",
            "2025-02-20",
            original_amount=12000.0,
            current_balance=9200.0,
            interest_rate=20.0,
        ),
        debt(
            "d3",
            "Lease",
            "",
            original_amount=8000.0,
            current_balance=6500.0,
            interest_rate=4.0,
        ),
        debt(
            "d4",
            "Supplier",
            "2025-02-01",
            original_amount=0.0,
            current_balance=0.0,
            interest_rate=0.0,
        ),
    ]
    summary = summarize_debts(debts, today=TODAY)

    assert summary.total_debt == pytest.approx(34450.0)
    assert summary.total_borrowed == pytest.approx(45000.0)
    assert summary.total_paid == pytest.approx(10550.0)
    assert summary.paid_off_pct == pytest.approx(10550.0 / 45000.0 * 100.0)
    assert summary.average_interest_rate == pytest.approx(7.5)
    assert summary.monthly_payments == pytest.approx(400.0)

    # Overdue first, then by proximity, debts without a due date last.
    assert [d.id for d in summary.debts] == ["d4", "d2", "d1", "d3"]
    assert [d.urgency for d in summary.debts] == ["high", "high", "low", "low"]
    assert summary.high_urgency_count == 2

    by_id = {d.id: d for d in summary.debts}
    assert by_id["d1"].payoff_progress == pytest.approx(25.0)
    assert by_id["d4"].payoff_progress == 0.0


def test_empty_summary() -> None:
    summary = summarize_debts([], today=TODAY)
    assert summary.total_debt == 0.0
    assert summary.paid_off_pct == 0.0
    assert summary.average_interest_rate == 0.0
    assert summary.debts == ()
