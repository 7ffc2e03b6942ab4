# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Typed entry records for SMB Tracker.

Every collection the dashboard works with (revenue, expenses, debts, cash
flow, profit & loss, KPIs) is represented here by a frozen dataclass. Raw
records coming from the database, a CSV file or any other source are turned
into these dataclasses through the ``from_record()`` constructors, which is
the single place where loosely typed values are normalized:

- numeric fields go through :func:`to_amount` (missing, empty, non-numeric
  or non-finite values become 0.0, invalid values are logged),
- text fields go through :func:`to_text` (None becomes an empty string),
- optional notes stay None when empty.

Downstream modules (formulas, rollups, KPIs, engine) can therefore rely on
clean floats and strings and never re-coerce anything.

A :class:`Snapshot` groups the six collections, each keyed by entry id. It is
the only input of the aggregation engine.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Optional

logger = logging.getLogger(__name__)

ENTRY_KINDS: tuple[str, ...] = (
    "revenue",
    "expenses",
    "debts",
    "cash_flow",
    "profit_loss",
    "kpis",
)

KPI_DIRECTIONS: tuple[str, ...] = ("higher", "lower")


def to_amount(value: Any, field_name: str = "amount") -> float:
    """
    Convert a raw value into a finite float, defaulting to 0.0.

    Missing values (None, empty strings, NaN) silently become 0.0. Values
    that cannot be interpreted as a finite number are logged as a warning
    and also become 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return 0.0

    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid numeric value %r for %r, using 0.", value, field_name)
        return 0.0

    if math.isnan(number):
        return 0.0
    if math.isinf(number):
        logger.warning("Non-finite value %r for %r, using 0.", value, field_name)
        return 0.0

    return number


def to_text(value: Any) -> str:
    """Return a stripped string, or an empty string for missing values."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    text = to_text(value)
    return text or None


def _direction(value: Any) -> Optional[str]:
    text = to_text(value).lower()
    if not text:
        return None
    if text not in KPI_DIRECTIONS:
        logger.warning(
            "Unknown KPI direction %r, expected one of %s.", value, KPI_DIRECTIONS
        )
        return None
    return text


@dataclass(frozen=True)
class RevenueEntry:
    """A revenue line (one invoice, sale or payment received)."""

    id: str
    date: str
    client: str
    category: str
    amount: float
    notes: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "RevenueEntry":
        return cls(
            id=to_text(record.get("id")),
            date=to_text(record.get("date")),
            client=to_text(record.get("client")),
            category=to_text(record.get("category")),
            amount=to_amount(record.get("amount")),
            notes=_optional_text(record.get("notes")),
        )


@dataclass(frozen=True)
class ExpenseEntry:
    """An expense line (one bill or purchase)."""

    id: str
    date: str
    vendor: str
    category: str
    amount: float
    notes: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ExpenseEntry":
        return cls(
            id=to_text(record.get("id")),
            date=to_text(record.get("date")),
            vendor=to_text(record.get("vendor")),
            category=to_text(record.get("category")),
            amount=to_amount(record.get("amount")),
            notes=_optional_text(record.get("notes")),
        )


@dataclass(frozen=True)
class DebtEntry:
    """
    An outstanding debt (loan, credit line, card balance, ...).

    ``current_balance`` is expected to be lower than ``original_amount`` but
    this is not enforced. ``due_date`` is an ISO date string (YYYY-MM-DD).
    """

    id: str
    creditor: str
    type: str
    original_amount: float
    current_balance: float
    interest_rate: float
    monthly_payment: float
    due_date: str
    notes: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "DebtEntry":
        return cls(
            id=to_text(record.get("id")),
            creditor=to_text(record.get("creditor")),
            type=to_text(record.get("type")),
            original_amount=to_amount(
                record.get("original_amount"), "original_amount"
            ),
            current_balance=to_amount(
                record.get("current_balance"), "current_balance"
            ),
            interest_rate=to_amount(record.get("interest_rate"), "interest_rate"),
            monthly_payment=to_amount(
                record.get("monthly_payment"), "monthly_payment"
            ),
            due_date=to_text(record.get("due_date")),
            notes=_optional_text(record.get("notes")),
        )


@dataclass(frozen=True)
class CashFlowEntry:
    """Forecast inflows and outflows for one month label ("YYYY-MM")."""

    id: str
    month: str
    inflows: float
    outflows: float

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CashFlowEntry":
        return cls(
            id=to_text(record.get("id")),
            month=to_text(record.get("month")),
            inflows=to_amount(record.get("inflows"), "inflows"),
            outflows=to_amount(record.get("outflows"), "outflows"),
        )


@dataclass(frozen=True)
class ProfitLossEntry:
    """Manually reconciled monthly profit & loss summary."""

    id: str
    month: str
    revenue_total: float
    expenses_total: float

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ProfitLossEntry":
        return cls(
            id=to_text(record.get("id")),
            month=to_text(record.get("month")),
            revenue_total=to_amount(record.get("revenue_total"), "revenue_total"),
            expenses_total=to_amount(record.get("expenses_total"), "expenses_total"),
        )


@dataclass(frozen=True)
class KpiEntry:
    """
    A tracked KPI with its current value and target.

    ``direction`` is "higher" when a value above target is good, "lower" when
    a value below target is good (costs, ratios), or None when the user did
    not say. See ``kpis.resolve_direction`` for how None is handled.
    """

    id: str
    metric_name: str
    category: str
    value: float
    target: float
    direction: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "KpiEntry":
        return cls(
            id=to_text(record.get("id")),
            metric_name=to_text(record.get("metric_name")),
            category=to_text(record.get("category")),
            value=to_amount(record.get("value"), "value"),
            target=to_amount(record.get("target"), "target"),
            direction=_direction(record.get("direction")),
        )


ENTRY_TYPES = {
    "revenue": RevenueEntry,
    "expenses": ExpenseEntry,
    "debts": DebtEntry,
    "cash_flow": CashFlowEntry,
    "profit_loss": ProfitLossEntry,
    "kpis": KpiEntry,
}


def entries_from_records(
    kind: str,
    records: Iterable[Mapping[str, Any]],
) -> dict[str, Any]:
    """
    Build a mapping ``id -> entry`` for the given kind from raw records.

    Records without an id receive a positional one (``"<kind>-<n>"``) so that
    rows that look alike are never merged together.

    Raises:
        ValueError: if ``kind`` is not one of ENTRY_KINDS.
    """
    try:
        entry_type = ENTRY_TYPES[kind]
    except KeyError as exc:
        raise ValueError(
            f"Unknown entry kind: {kind!r}. Expected one of {ENTRY_KINDS}."
        ) from exc

    out: dict[str, Any] = {}
    for position, record in enumerate(records):
        entry = entry_type.from_record(record)
        entry_id = entry.id or f"{kind}-{position}"
        if entry_id in out:
            # Same id twice in one batch: keep both rows.
            entry_id = f"{entry_id}#{position}"
        if entry_id != entry.id:
            entry = replace(entry, id=entry_id)
        out[entry_id] = entry
    return out


@dataclass(frozen=True)
class Snapshot:
    """
    Point-in-time view of all entry collections of one user.

    Each attribute is a mapping ``entry id -> entry``. The snapshot is never
    mutated by the engine.
    """

    revenue: Mapping[str, RevenueEntry] = field(default_factory=dict)
    expenses: Mapping[str, ExpenseEntry] = field(default_factory=dict)
    debts: Mapping[str, DebtEntry] = field(default_factory=dict)
    cash_flow: Mapping[str, CashFlowEntry] = field(default_factory=dict)
    profit_loss: Mapping[str, ProfitLossEntry] = field(default_factory=dict)
    kpis: Mapping[str, KpiEntry] = field(default_factory=dict)

    @classmethod
    def from_records(
        cls,
        **records_by_kind: Iterable[Mapping[str, Any]],
    ) -> "Snapshot":
        """
        Build a snapshot from raw records grouped by kind.

        Example:
            Snapshot.from_records(
                revenue=[{"id": "r1", "amount": "1200"}],
                debts=[{"id": "d1", "current_balance": 5000}],
            )
        """
        unknown = set(records_by_kind) - set(ENTRY_KINDS)
        if unknown:
            raise ValueError(f"Unknown entry kind(s): {', '.join(sorted(unknown))}")

        collections = {
            kind: entries_from_records(kind, records)
            for kind, records in records_by_kind.items()
        }
        return cls(**collections)

    def is_empty(self) -> bool:
        return not any(getattr(self, kind) for kind in ENTRY_KINDS)

    def counts(self) -> dict[str, int]:
        """Return the number of entries per kind."""
        return {kind: len(getattr(self, kind)) for kind in ENTRY_KINDS}
