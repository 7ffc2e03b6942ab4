# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for SMB Tracker.

This module provides the low-level accessors for the local SQLite store in
which users' entries are kept. It is responsible for:

- Initializing the database schema (idempotent).
- Inserting, updating and deleting entries of every kind.
- Listing entries of one kind for one user as a DataFrame.
- Loading a full :class:`~smb_tracker.models.Snapshot` for one user.

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

One table per entry kind. Every table has:

- id          TEXT PRIMARY KEY   -- generated uuid4 hex unless provided
- user_id     TEXT NOT NULL      -- owner of the row
- created_at  TEXT NOT NULL      -- ISO datetime, UTC
- updated_at  TEXT               -- ISO datetime, UTC, set on update

plus the business columns of the kind:

1) revenue_entries      date, client, category, amount, notes
2) expense_entries      date, vendor, category, amount, notes
3) debt_entries         creditor, type, original_amount, current_balance,
                        interest_rate, monthly_payment, due_date, notes
4) cash_flow_entries    month, inflows, outflows
5) profit_loss_entries  month, revenue_total, expenses_total
6) kpi_entries          metric_name, category, value, target, direction

Amounts are stored as REAL. All reads are scoped by user_id.

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- All timestamps are stored as ISO-8601 text (UTC).
- Foreign key enforcement is explicitly enabled on every connection.
- Connections are opened per call and always closed.
"""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd

from .models import ENTRY_KINDS, Snapshot, entries_from_records

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for SMB Tracker.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


@dataclass(frozen=True)
class ImportStats:
    """
    Summary of a bulk import of entries.

    Attributes
    ----------
    kind:
        Entry kind the rows were imported into.
    rows_inserted:
        Number of rows inserted.
    """

    kind: str
    rows_inserted: int


@dataclass(frozen=True)
class TableLayout:
    """Name and business columns (with SQL types) of one entry table."""

    table: str
    columns: tuple[tuple[str, str], ...]

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.columns)


TABLES: dict[str, TableLayout] = {
    "revenue": TableLayout(
        "revenue_entries",
        (
            ("date", "TEXT NOT NULL"),
            ("client", "TEXT NOT NULL DEFAULT ''"),
            ("category", "TEXT NOT NULL DEFAULT ''"),
            ("amount", "REAL NOT NULL DEFAULT 0"),
            ("notes", "TEXT"),
        ),
    ),
    "expenses": TableLayout(
        "expense_entries",
        (
            ("date", "TEXT NOT NULL"),
            ("vendor", "TEXT NOT NULL DEFAULT ''"),
            ("category", "TEXT NOT NULL DEFAULT ''"),
            ("amount", "REAL NOT NULL DEFAULT 0"),
            ("notes", "TEXT"),
        ),
    ),
    "debts": TableLayout(
        "debt_entries",
        (
            ("creditor", "TEXT NOT NULL DEFAULT ''"),
            ("type", "TEXT NOT NULL DEFAULT ''"),
            ("original_amount", "REAL NOT NULL DEFAULT 0"),
            ("current_balance", "REAL NOT NULL DEFAULT 0"),
            ("interest_rate", "REAL NOT NULL DEFAULT 0"),
            ("monthly_payment", "REAL NOT NULL DEFAULT 0"),
            ("due_date", "TEXT NOT NULL DEFAULT ''"),
            ("notes", "TEXT"),
        ),
    ),
    "cash_flow": TableLayout(
        "cash_flow_entries",
        (
            ("month", "TEXT NOT NULL"),
            ("inflows", "REAL NOT NULL DEFAULT 0"),
            ("outflows", "REAL NOT NULL DEFAULT 0"),
        ),
    ),
    "profit_loss": TableLayout(
        "profit_loss_entries",
        (
            ("month", "TEXT NOT NULL"),
            ("revenue_total", "REAL NOT NULL DEFAULT 0"),
            ("expenses_total", "REAL NOT NULL DEFAULT 0"),
        ),
    ),
    "kpis": TableLayout(
        "kpi_entries",
        (
            ("metric_name", "TEXT NOT NULL"),
            ("category", "TEXT NOT NULL DEFAULT ''"),
            ("value", "REAL NOT NULL DEFAULT 0"),
            ("target", "REAL NOT NULL DEFAULT 0"),
            ("direction", "TEXT"),
        ),
    ),
}

# Sort order used when listing a table.
_ORDER_BY: dict[str, str] = {
    "revenue": "date, id",
    "expenses": "date, id",
    "debts": "due_date, id",
    "cash_flow": "month, id",
    "profit_loss": "month, id",
    "kpis": "metric_name, id",
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection with foreign keys enabled.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    conn = sqlite3.connect(cfg.path)
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _layout(kind: str) -> TableLayout:
    """Return the table layout for an entry kind, or raise ValueError."""
    try:
        return TABLES[kind]
    except KeyError as exc:
        raise ValueError(
            f"Unknown entry kind: {kind!r}. Expected one of {ENTRY_KINDS}."
        ) from exc


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _clean_value(value: Any) -> Any:
    """Convert pandas/NumPy scalars and NaN into plain SQLite-friendly values."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if hasattr(value, "item"):
        return value.item()
    return value


def _business_values(
    layout: TableLayout, values: Mapping[str, Any]
) -> dict[str, Any]:
    """Keep only known business columns, rejecting unknown ones."""
    unknown = set(values) - set(layout.column_names) - {"id", "user_id"}
    if unknown:
        cols = ", ".join(sorted(unknown))
        raise ValueError(f"Unknown column(s) for {layout.table}: {cols}")
    return {
        name: _clean_value(values[name])
        for name in layout.column_names
        if name in values
    }


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Create the entry tables and their indexes if they do not exist yet.

    This function is idempotent and can be called multiple times safely.
    """
    for layout in TABLES.values():
        business_columns = ",\n".join(
            f"            {name} {sql_type}" for name, sql_type in layout.columns
        )
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {layout.table} (
                id          TEXT NOT NULL,
                user_id     TEXT NOT NULL,
{business_columns},
                created_at  TEXT NOT NULL,
                updated_at  TEXT,
                PRIMARY KEY (user_id, id)
            );
            """
        )
        conn.execute(
            f"""
            CREATE INDEX IF NOT EXISTS idx_{layout.table}_user
                ON {layout.table}(user_id);
            """
        )

    conn.commit()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig) -> None:
    """
    Initialize the database schema if needed.

    - Creates the SQLite file (and its parent directory) if it does not exist.
    - Creates one table per entry kind if missing.
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    _ensure_sqlite(cfg)
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn)
    finally:
        conn.close()


def insert_entry(
    cfg: DatabaseConfig,
    kind: str,
    user_id: str,
    values: Mapping[str, Any],
) -> str:
    """
    Insert a single entry and return its id.

    An ``id`` key in ``values`` is used as the primary key when present,
    otherwise a new uuid4 hex id is generated.

    Raises
    ------
    ValueError
        If ``kind`` is unknown or ``values`` contains unknown columns.
    sqlite3.IntegrityError
        If the id already exists for this user or a required column is
        missing.
    """
    layout = _layout(kind)
    business = _business_values(layout, values)
    entry_id = str(values.get("id") or uuid.uuid4().hex)

    columns = ["id", "user_id", *business.keys(), "created_at"]
    params = [entry_id, user_id, *business.values(), _now_utc_iso()]
    placeholders = ", ".join("?" for _ in columns)

    conn = _connect(cfg)
    try:
        conn.execute(
            f"INSERT INTO {layout.table} ({', '.join(columns)}) "
            f"VALUES ({placeholders});",
            params,
        )
        conn.commit()
    finally:
        conn.close()

    return entry_id


def import_entries(
    df: pd.DataFrame,
    cfg: DatabaseConfig,
    *,
    kind: str,
    user_id: str,
) -> ImportStats:
    """
    Insert all rows of a normalized DataFrame as entries of one kind.

    The DataFrame is expected to come from :mod:`smb_tracker.io` and to
    contain only business columns (plus an optional ``id``). All rows are
    inserted in a single transaction: either all of them are stored or none.

    Returns
    -------
    ImportStats
        The kind and number of inserted rows.
    """
    layout = _layout(kind)
    init_database(cfg)

    created_at = _now_utc_iso()
    conn = _connect(cfg)
    try:
        rows_inserted = 0
        for record in df.to_dict(orient="records"):
            business = _business_values(layout, record)
            entry_id = _clean_value(record.get("id")) or uuid.uuid4().hex
            columns = ["id", "user_id", *business.keys(), "created_at"]
            placeholders = ", ".join("?" for _ in columns)
            conn.execute(
                f"INSERT INTO {layout.table} ({', '.join(columns)}) "
                f"VALUES ({placeholders});",
                [str(entry_id), user_id, *business.values(), created_at],
            )
            rows_inserted += 1
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    return ImportStats(kind=kind, rows_inserted=rows_inserted)


def update_entry(
    cfg: DatabaseConfig,
    kind: str,
    user_id: str,
    entry_id: str,
    values: Mapping[str, Any],
) -> None:
    """
    Apply a partial update to an existing entry.

    Only the columns present in ``values`` are modified; ``updated_at`` is
    always refreshed.

    Raises
    ------
    ValueError
        If ``kind`` is unknown or ``values`` contains unknown columns.
    KeyError
        If no entry with this id exists for this user.
    """
    layout = _layout(kind)
    business = _business_values(layout, values)
    business.pop("id", None)

    assignments = [f"{name} = ?" for name in business]
    assignments.append("updated_at = ?")
    params = [*business.values(), _now_utc_iso(), entry_id, user_id]

    conn = _connect(cfg)
    try:
        cur = conn.execute(
            f"UPDATE {layout.table} SET {', '.join(assignments)} "
            "WHERE id = ? AND user_id = ?;",
            params,
        )
        if cur.rowcount == 0:
            raise KeyError(f"No {kind} entry with id {entry_id!r} for this user.")
        conn.commit()
    finally:
        conn.close()


def delete_entry(
    cfg: DatabaseConfig,
    kind: str,
    user_id: str,
    entry_id: str,
) -> None:
    """
    Permanently delete an entry.

    Raises
    ------
    KeyError
        If no entry with this id exists for this user.
    """
    layout = _layout(kind)

    conn = _connect(cfg)
    try:
        cur = conn.execute(
            f"DELETE FROM {layout.table} WHERE id = ? AND user_id = ?;",
            (entry_id, user_id),
        )
        if cur.rowcount == 0:
            raise KeyError(f"No {kind} entry with id {entry_id!r} for this user.")
        conn.commit()
    finally:
        conn.close()


def fetch_records(
    cfg: DatabaseConfig,
    kind: str,
    user_id: str,
) -> list[dict[str, Any]]:
    """Return all rows of one kind for one user as plain dictionaries."""
    layout = _layout(kind)
    columns = ["id", *layout.column_names]

    conn = _connect(cfg)
    try:
        cur = conn.execute(
            f"SELECT {', '.join(columns)} FROM {layout.table} "
            f"WHERE user_id = ? ORDER BY {_ORDER_BY[kind]};",
            (user_id,),
        )
        rows = cur.fetchall()
    finally:
        conn.close()

    return [dict(zip(columns, row)) for row in rows]


def list_entries(cfg: DatabaseConfig, kind: str, user_id: str) -> pd.DataFrame:
    """
    Return the entries of one kind for one user as a DataFrame.

    Columns are ``id`` followed by the business columns of the kind. An
    empty DataFrame with the same columns is returned when there are none.
    """
    layout = _layout(kind)
    init_database(cfg)
    records = fetch_records(cfg, kind, user_id)
    return pd.DataFrame(records, columns=["id", *layout.column_names])


def load_snapshot(cfg: DatabaseConfig, user_id: str) -> Snapshot:
    """
    Load every entry collection of one user into a Snapshot.

    Each collection is read in one query; the result is a consistent view
    of the rows present at the time of the call.
    """
    init_database(cfg)

    collections: dict[str, Iterable[Mapping[str, Any]]] = {}
    conn = _connect(cfg)
    try:
        # One read transaction so that all collections come from the same state.
        conn.execute("BEGIN;")
        for kind, layout in TABLES.items():
            columns = ["id", *layout.column_names]
            cur = conn.execute(
                f"SELECT {', '.join(columns)} FROM {layout.table} "
                f"WHERE user_id = ? ORDER BY {_ORDER_BY[kind]};",
                (user_id,),
            )
            collections[kind] = [dict(zip(columns, row)) for row in cur.fetchall()]
        conn.execute("COMMIT;")
    finally:
        conn.close()

    return Snapshot(
        **{kind: entries_from_records(kind, rows) for kind, rows in collections.items()}
    )


def has_entries(cfg: DatabaseConfig, user_id: str) -> bool:
    """
    Return True if the user has at least one entry of any kind.

    Useful to warn the user when the dashboard is requested on an empty DB.
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        for layout in TABLES.values():
            cur = conn.execute(
                f"SELECT 1 FROM {layout.table} WHERE user_id = ? LIMIT 1;", (user_id,)
            )
            if cur.fetchone() is not None:
                return True
        return False
    finally:
        conn.close()
