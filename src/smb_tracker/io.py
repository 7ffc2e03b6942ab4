# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for SMB Tracker.

This module handles reading entries from CSV files and normalizing them into
a consistent structure suitable for storage in the database.

Expected input formats
----------------------

One CSV file per entry kind (column names are case-insensitive, columns in
brackets are optional):

- revenue:      date, client, category, amount, [notes]
- expenses:     date, vendor, category, amount, [notes]
- debts:        creditor, type, original_amount, current_balance,
                interest_rate, monthly_payment, due_date, [notes]
- cash_flow:    month, inflows, outflows
- profit_loss:  month, revenue_total, expenses_total
- kpis:         metric_name, category, value, target, [direction]

An optional ``id`` column is kept when present.

Normalization
-------------
- ``date`` and ``due_date`` are parsed strictly and stored as "YYYY-MM-DD".
- ``month`` must be a "YYYY-MM" label.
- Numeric columns that cannot be parsed become 0; each such cell is logged
  as a warning. Missing numeric cells silently become 0.
- Text columns become empty strings when missing; ``notes`` and
  ``direction`` stay None.

If the CSV structure does not match the expected columns, a clear
ValueError is raised.
"""

import logging
import os
from typing import Optional, Union

import pandas as pd

from .models import ENTRY_KINDS, KPI_DIRECTIONS

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, tuple[str, ...]] = {
    "revenue": ("date", "client", "category", "amount"),
    "expenses": ("date", "vendor", "category", "amount"),
    "debts": (
        "creditor",
        "type",
        "original_amount",
        "current_balance",
        "interest_rate",
        "monthly_payment",
        "due_date",
    ),
    "cash_flow": ("month", "inflows", "outflows"),
    "profit_loss": ("month", "revenue_total", "expenses_total"),
    "kpis": ("metric_name", "category", "value", "target"),
}

OPTIONAL_COLUMNS: dict[str, tuple[str, ...]] = {
    "revenue": ("notes",),
    "expenses": ("notes",),
    "debts": ("notes",),
    "cash_flow": (),
    "profit_loss": (),
    "kpis": ("direction",),
}

NUMERIC_COLUMNS = {
    "amount",
    "original_amount",
    "current_balance",
    "interest_rate",
    "monthly_payment",
    "inflows",
    "outflows",
    "revenue_total",
    "expenses_total",
    "value",
    "target",
}
DATE_COLUMNS = {"date", "due_date"}
MONTH_COLUMNS = {"month"}
NULLABLE_TEXT_COLUMNS = {"notes", "direction"}


def _coerce_numeric(d: pd.DataFrame, col: str) -> None:
    """Convert a column to float in place, logging unparseable cells."""
    raw = d[col]
    if raw.dtype == object:
        raw = raw.astype(str).str.strip().str.replace(",", "", regex=False)
        raw = raw.mask(raw.isin(["", "nan", "None"]))
    values = pd.to_numeric(raw, errors="coerce")

    invalid = values.isna() & raw.notna()
    for idx in d.index[invalid]:
        logger.warning(
            "Invalid numeric value %r in column %r (row %s), using 0.",
            d.at[idx, col],
            col,
            idx,
        )
    d[col] = values.fillna(0.0).astype(float)


def _parse_dates(d: pd.DataFrame, col: str) -> None:
    try:
        parsed = pd.to_datetime(d[col], errors="raise")
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Invalid values in '{col}' column.") from exc
    if parsed.isna().any():
        raise ValueError(f"Missing values in '{col}' column.")
    d[col] = parsed.dt.strftime("%Y-%m-%d")


def _parse_months(d: pd.DataFrame, col: str) -> None:
    labels = d[col].astype(str).str.strip()
    try:
        parsed = pd.to_datetime(labels, format="%Y-%m", errors="raise")
    except Exception as exc:  # noqa: BLE001
        raise ValueError(
            f"Invalid values in '{col}' column, expected YYYY-MM labels."
        ) from exc
    d[col] = parsed.dt.strftime("%Y-%m")


def normalize_entries(df: pd.DataFrame, kind: str) -> pd.DataFrame:
    """
    Validate and normalize a raw DataFrame of entries of the given kind.

    Returns
    -------
    pandas.DataFrame
        A DataFrame with the required columns, the optional columns of the
        kind (None when absent) and ``id`` when it was provided.

    Raises
    ------
    ValueError
        If the kind is unknown, required columns are missing, or date/month
        values cannot be parsed.
    """
    if kind not in REQUIRED_COLUMNS:
        raise ValueError(
            f"Unknown entry kind: {kind!r}. Expected one of {ENTRY_KINDS}."
        )

    d = df.copy()
    d.columns = [str(c).lower().strip() for c in d.columns]

    required = REQUIRED_COLUMNS[kind]
    missing = [c for c in required if c not in d.columns]
    if missing:
        raise ValueError(
            f"Invalid {kind} entries structure, missing column(s): "
            f"{', '.join(missing)}. Expected: {', '.join(required)}"
            + (
                f" (optional: {', '.join(OPTIONAL_COLUMNS[kind])})"
                if OPTIONAL_COLUMNS[kind]
                else ""
            )
            + "."
        )

    columns = list(required) + list(OPTIONAL_COLUMNS[kind])
    if "id" in d.columns:
        columns = ["id", *columns]
    for col in OPTIONAL_COLUMNS[kind]:
        if col not in d.columns:
            d[col] = None

    out = d[columns].copy()

    for col in columns:
        if col in NUMERIC_COLUMNS:
            _coerce_numeric(out, col)
        elif col in DATE_COLUMNS:
            _parse_dates(out, col)
        elif col in MONTH_COLUMNS:
            _parse_months(out, col)
        elif col in NULLABLE_TEXT_COLUMNS:
            out[col] = [
                None if pd.isna(v) or not str(v).strip() else str(v).strip()
                for v in out[col]
            ]
        elif col == "id":
            out[col] = [None if pd.isna(v) else str(v).strip() for v in out[col]]
        else:
            out[col] = out[col].fillna("").astype(str).str.strip()

    if "direction" in out.columns:
        out["direction"] = [_normalize_direction(v) for v in out["direction"]]

    return out


def _normalize_direction(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).lower()
    if text not in KPI_DIRECTIONS:
        raise ValueError(
            f"Invalid KPI direction {value!r}, expected one of {KPI_DIRECTIONS}."
        )
    return text


def read_entries(
    path: Union[str, "os.PathLike[str]"],
    kind: str,
) -> pd.DataFrame:
    """
    Read entries of one kind from a CSV file and normalize them.

    Parameters
    ----------
    path:
        Path to the CSV file.
    kind:
        Entry kind (one of ENTRY_KINDS).

    Returns
    -------
    pandas.DataFrame
        See :func:`normalize_entries`.
    """
    df = pd.read_csv(path)
    return normalize_entries(df, kind)
