# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Debt helpers for SMB Tracker.

This module classifies each debt by the proximity of its due date and builds
the debt summary displayed next to the dashboard metrics (amount borrowed,
amount repaid, payoff progress, average interest rate).

Urgency bands (defaults, see DebtSettings):

- high:   due in 7 days or less (overdue debts included),
- medium: due in 30 days or less,
- low:    anything later, or no usable due date.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .formulas import safe_ratio
from .models import DebtEntry

HIGH_URGENCY_DAYS = 7
MEDIUM_URGENCY_DAYS = 30


@dataclass(frozen=True)
class DebtSettings:
    """Thresholds (in days until due) for the debt urgency classification."""

    high_urgency_days: int = HIGH_URGENCY_DAYS
    medium_urgency_days: int = MEDIUM_URGENCY_DAYS


@dataclass(frozen=True)
class DebtStatus:
    """Per-debt derived figures."""

    id: str
    creditor: str
    type: str
    current_balance: float
    monthly_payment: float
    days_until_due: Optional[int]
    urgency: str
    payoff_progress: float


@dataclass(frozen=True)
class DebtSummary:
    """Totals over all debts of a snapshot."""

    total_debt: float
    monthly_payments: float
    total_borrowed: float
    total_paid: float
    paid_off_pct: float
    average_interest_rate: float
    high_urgency_count: int
    debts: tuple[DebtStatus, ...]


def _today() -> date:
    """Return today's date (isolated for easier testing)."""
    return datetime.today().date()


def days_until_due(due_date: str, today: date) -> Optional[int]:
    """Number of days from ``today`` to ``due_date`` (negative when overdue)."""
    if not due_date:
        return None
    try:
        due = date.fromisoformat(due_date[:10])
    except ValueError:
        return None
    return (due - today).days


def classify_urgency(
    days: Optional[int],
    settings: DebtSettings = DebtSettings(),
) -> str:
    if days is None:
        return "low"
    if days <= settings.high_urgency_days:
        return "high"
    if days <= settings.medium_urgency_days:
        return "medium"
    return "low"


def payoff_progress(debt: DebtEntry) -> float:
    """Share of the original amount already repaid, in percent."""
    paid = debt.original_amount - debt.current_balance
    return safe_ratio(paid, debt.original_amount) * 100.0


def summarize_debts(
    debts: Iterable[DebtEntry],
    today: Optional[date] = None,
    settings: DebtSettings = DebtSettings(),
) -> DebtSummary:
    """
    Build the debt summary.

    Per-debt statuses are sorted by days until due (debts without a usable
    due date last), then by creditor.
    """
    if today is None:
        today = _today()

    debts = list(debts)
    statuses = []
    for debt in debts:
        days = days_until_due(debt.due_date, today)
        statuses.append(
            DebtStatus(
                id=debt.id,
                creditor=debt.creditor,
                type=debt.type,
                current_balance=debt.current_balance,
                monthly_payment=debt.monthly_payment,
                days_until_due=days,
                urgency=classify_urgency(days, settings),
                payoff_progress=payoff_progress(debt),
            )
        )

    statuses.sort(
        key=lambda s: (
            s.days_until_due is None,
            s.days_until_due if s.days_until_due is not None else 0,
            s.creditor,
        )
    )

    total_debt = sum(d.current_balance for d in debts)
    total_borrowed = sum(d.original_amount for d in debts)
    total_paid = total_borrowed - total_debt
    average_rate = (
        sum(d.interest_rate for d in debts) / len(debts) if debts else 0.0
    )

    return DebtSummary(
        total_debt=total_debt,
        monthly_payments=sum(d.monthly_payment for d in debts),
        total_borrowed=total_borrowed,
        total_paid=total_paid,
        paid_off_pct=safe_ratio(total_paid, total_borrowed) * 100.0,
        average_interest_rate=average_rate,
        high_urgency_count=sum(1 for s in statuses if s.urgency == "high"),
        debts=tuple(statuses),
    )
