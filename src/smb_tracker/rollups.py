# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Group-by rollups for SMB Tracker.

Rollups turn a collection of entries into a mapping ``group -> total``:

- revenue by category and by client,
- expenses by category (and each category's share of total expenses),
- outstanding debt by debt type.

Entries whose grouping field is empty are collected under a fallback key
("Uncategorized", "Unknown" or "Other"). Rows are summed, never overwritten,
and the result does not depend on the order of the input.
"""

from collections.abc import Callable, Iterable
from typing import Any

import pandas as pd

from .models import DebtEntry, ExpenseEntry, RevenueEntry

UNCATEGORIZED = "Uncategorized"
UNKNOWN_CLIENT = "Unknown"
OTHER_DEBT_TYPE = "Other"


def group_totals(
    entries: Iterable[Any],
    key: Callable[[Any], str],
    value: Callable[[Any], float],
    fallback: str,
) -> dict[str, float]:
    """
    Sum ``value(entry)`` per ``key(entry)``.

    Args:
        entries: Any iterable of entry records.
        key: Returns the grouping label of an entry.
        value: Returns the amount to sum for an entry.
        fallback: Label used when ``key(entry)`` is empty.

    Returns:
        A dictionary ``label -> total`` sorted by label.
    """
    rows = [
        {"group": key(entry) or fallback, "amount": float(value(entry))}
        for entry in entries
    ]
    if not rows:
        return {}

    df = pd.DataFrame(rows)
    totals = df.groupby("group", sort=True)["amount"].sum()
    return {str(k): float(v) for k, v in totals.items()}


def revenue_by_category(entries: Iterable[RevenueEntry]) -> dict[str, float]:
    return group_totals(
        entries, lambda e: e.category, lambda e: e.amount, UNCATEGORIZED
    )


def revenue_by_client(entries: Iterable[RevenueEntry]) -> dict[str, float]:
    return group_totals(entries, lambda e: e.client, lambda e: e.amount, UNKNOWN_CLIENT)


def expense_by_category(entries: Iterable[ExpenseEntry]) -> dict[str, float]:
    return group_totals(
        entries, lambda e: e.category, lambda e: e.amount, UNCATEGORIZED
    )


def debt_by_type(entries: Iterable[DebtEntry]) -> dict[str, float]:
    return group_totals(
        entries, lambda e: e.type, lambda e: e.current_balance, OTHER_DEBT_TYPE
    )


def shares(totals: dict[str, float]) -> dict[str, float]:
    """
    Express each group total as a percentage of the grand total.

    Returns 0 for every group when the grand total is not positive.
    """
    grand_total = sum(totals.values())
    if grand_total <= 0:
        return {k: 0.0 for k in totals}
    return {k: v / grand_total * 100.0 for k, v in totals.items()}
