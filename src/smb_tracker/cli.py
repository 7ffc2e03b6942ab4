# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for SMB Tracker.

This module wires together the main building blocks of SMB Tracker:

- global configuration (database, user, engine settings, display options),
- CSV import & database access,
- the dashboard service (snapshot loading and recomputation),
- view helpers (tabular rendering).

The CLI is intentionally thin: it does not implement any financial logic
itself. It orchestrates the underlying modules based on command-line
arguments and configuration files.


High-level pipeline
-------------------

1) Load the main TOML configuration (smb_tracker_config.toml by default)
   using ``load_app_config()``.

2) Apply CLI overrides (user, starting balance, display mode).

3) Initialize the database and, when ``--import KIND CSV_PATH`` is given,
   store the CSV entries of that kind for the selected user.

4) Build the dashboard report for the user from a fresh snapshot.

5) Convert the requested parts of the report into tabular views and render
   them as console tables and/or CSV files depending on the display mode.


Scopes: what to render
----------------------

- ``summary`` (default): headline metrics (net profit, margin, burn rate,
  runway, health score, balances).
- ``breakdowns``: revenue by category and client, expenses by category,
  debt by type.
- ``cashflow``: month-by-month running balance.
- ``pnl``: monthly profit & loss table.
- ``debts``: debts with urgency and payoff progress.
- ``kpis``: KPIs with progress and status.
- ``all``: everything above.


Display modes and output
------------------------

``display.mode = "table" | "csv" | "both"`` in the configuration, which can
be overridden with ``--display-mode``. CSV files are written into
``--output DIR`` (``data/output`` by default) with timestamped names such
as ``summary_YYYY-MM-DD-HH-MM-SS.csv``.


Examples
--------

    python -m smb_tracker.cli --import revenue data/samples/revenue.csv
    python -m smb_tracker.cli --scope all --display-mode both
    python -m smb_tracker.cli --scope cashflow --starting-balance 10000


Entries subcommands
-------------------

    python -m smb_tracker.cli entries list debts
    python -m smb_tracker.cli entries add revenue \\
        --set date=2025-01-15 --set client=Acme --set category=Services \\
        --set amount=1200
    python -m smb_tracker.cli entries delete revenue 3f2a...

End of module description.
"""

import argparse
import logging
import sqlite3
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import AppConfig, load_app_config
from .db import has_entries, init_database
from .io import normalize_entries
from .models import ENTRY_KINDS
from .service import DashboardService
from .views import (
    cash_flow_to_dataframe,
    debt_totals_lines,
    debts_to_dataframe,
    kpi_totals_line,
    kpis_to_dataframe,
    metrics_to_dataframe,
    profit_loss_to_dataframe,
    profit_loss_totals_line,
    rollups_to_dataframe,
)

SCOPES = ["summary", "breakdowns", "cashflow", "pnl", "debts", "kpis", "all"]


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m smb_tracker.cli",
        description=(
            "SMB Tracker - Financial tracking dashboard for small businesses. "
            "Reads revenue, expenses, debts, cash-flow, P&L and KPI entries "
            "and renders the derived financial metrics."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of smb_tracker and exit.",
    )

    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the main TOML configuration file. "
            "If omitted, 'smb_tracker_config.toml' in the current directory is used."
        ),
    )

    ap.add_argument(
        "--user",
        dest="user_id",
        help="User whose entries are used. Overrides [user].id from config.",
    )

    ap.add_argument(
        "--log-level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging verbosity (default: WARNING).",
    )

    # Optional import: feed the database from a CSV file before running the dashboard
    ap.add_argument(
        "--import",
        dest="import_args",
        nargs=2,
        metavar=("KIND", "CSV_PATH"),
        help=(
            "Import entries of the given kind "
            f"({', '.join(ENTRY_KINDS)}) from a CSV file into the database "
            "before running the dashboard."
        ),
    )

    ap.add_argument(
        "--starting-balance",
        dest="starting_balance",
        type=float,
        help=(
            "Cash available before the first cash-flow month. "
            "Overrides [cash_flow].starting_balance from config."
        ),
    )

    # Scope: what to render
    ap.add_argument(
        "--scope",
        choices=SCOPES,
        default="summary",
        help=(
            "Select what to render: summary, breakdowns, cashflow, pnl, "
            "debts, kpis, or all."
        ),
    )

    # Display options
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=["table", "csv", "both"],
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. "
            "If omitted, 'data/output' is used."
        ),
    )

    # ------------------------------------------------------------------
    # Subcommands: entries
    # ------------------------------------------------------------------
    subparsers = ap.add_subparsers(
        dest="command",
        metavar="command",
        help="Optional subcommands (e.g. 'entries') for managing data.",
    )

    entries_parser = subparsers.add_parser(
        "entries",
        help="Inspect and manage entries stored in the database.",
    )

    entries_subparsers = entries_parser.add_subparsers(
        dest="entries_command",
        metavar="entries-command",
        help="Entries subcommands ('list', 'add', 'delete').",
    )

    entries_list = entries_subparsers.add_parser(
        "list",
        help="List the entries of one kind.",
    )
    entries_list.add_argument("kind", choices=ENTRY_KINDS, help="Entry kind.")

    entries_add = entries_subparsers.add_parser(
        "add",
        help="Add a single entry.",
    )
    entries_add.add_argument("kind", choices=ENTRY_KINDS, help="Entry kind.")
    entries_add.add_argument(
        "--set",
        dest="fields",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help=(
            "Field value of the new entry. Repeat for each field, using the "
            "same column names as the CSV import."
        ),
    )

    entries_delete = entries_subparsers.add_parser(
        "delete",
        help="Permanently delete a single entry.",
    )
    entries_delete.add_argument("kind", choices=ENTRY_KINDS, help="Entry kind.")
    entries_delete.add_argument("entry_id", help="Id of the entry to delete.")

    return ap


def _parse_fields(pairs: list[str]) -> dict[str, str]:
    """Turn ["amount=12", "client=Acme"] into a dictionary."""
    fields: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Invalid field {pair!r}, expected FIELD=VALUE.")
        fields[name.strip().lower()] = value.strip()
    return fields


def _handle_entries_list(args: argparse.Namespace, service: DashboardService) -> None:
    df = service.list_entries(args.kind)

    print(f"User: {service.user_id} | Kind: {args.kind}")
    if df.empty:
        print("No entries found.")
        return

    print()
    print(df.to_string(index=False))
    print()
    print(f"Total entries: {len(df)}")


def _handle_entries_add(args: argparse.Namespace, service: DashboardService) -> None:
    """
    Handle the 'entries add' subcommand.

    Field values are validated with the same rules as the CSV import.
    """
    fields = _parse_fields(args.fields)
    normalized = normalize_entries(pd.DataFrame([fields]), args.kind)
    record = normalized.to_dict(orient="records")[0]
    if record.get("id") is None:
        record.pop("id", None)

    entry_id = service.add_entry(args.kind, record)
    print(f"Added {args.kind} entry {entry_id}.")


def _handle_entries_delete(
    args: argparse.Namespace, service: DashboardService
) -> None:
    service.delete_entry(args.kind, args.entry_id)
    print(f"Deleted {args.kind} entry {args.entry_id}.")


def _handle_entries_command(
    args: argparse.Namespace,
    service: DashboardService,
    parser: argparse.ArgumentParser,
) -> None:
    """Dispatch 'entries' subcommands."""
    subcmd = getattr(args, "entries_command", None)

    try:
        if subcmd == "list":
            _handle_entries_list(args, service)
        elif subcmd == "add":
            _handle_entries_add(args, service)
        elif subcmd == "delete":
            _handle_entries_delete(args, service)
        else:
            print(
                "No entries subcommand specified. "
                "Available subcommands are: 'list', 'add', 'delete'."
            )
    except KeyError as exc:
        parser.error(str(exc.args[0]) if exc.args else str(exc))
    except ValueError as exc:
        parser.error(str(exc))
    except sqlite3.IntegrityError as exc:
        parser.error(f"Cannot store {args.kind} entry: {exc}")


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a copy of the configuration with CLI overrides applied."""
    if args.user_id:
        config = replace(config, user_id=args.user_id)
    if args.starting_balance is not None:
        config = replace(
            config,
            metrics=replace(config.metrics, starting_balance=args.starting_balance),
        )
    if args.display_mode:
        config = replace(config, display_mode=args.display_mode)
    return config


def _build_sections(
    scope: str,
    service: DashboardService,
    decimals: int,
) -> list[tuple[str, str, pd.DataFrame, list[str]]]:
    """Return (name, title, table, footer lines) for each requested view."""
    report = service.report
    want = set(SCOPES[:-1]) if scope == "all" else {scope}

    sections: list[tuple[str, str, pd.DataFrame, list[str]]] = []
    if "summary" in want:
        sections.append(
            ("summary", "Dashboard summary", metrics_to_dataframe(report, decimals), [])
        )
    if "breakdowns" in want:
        sections.append(
            ("breakdowns", "Breakdowns", rollups_to_dataframe(report, decimals), [])
        )
    if "cashflow" in want:
        sections.append(
            (
                "cash_flow",
                "Cash-flow projection",
                cash_flow_to_dataframe(report, decimals),
                [f"Projected next-month balance: {report.projected_balance:.2f}"],
            )
        )
    if "pnl" in want:
        sections.append(
            (
                "profit_loss",
                "Profit & loss by month",
                profit_loss_to_dataframe(report, decimals),
                [profit_loss_totals_line(report)],
            )
        )
    if "debts" in want:
        sections.append(
            (
                "debts",
                "Debts",
                debts_to_dataframe(report.debts, decimals),
                debt_totals_lines(report.debts, decimals),
            )
        )
    if "kpis" in want:
        sections.append(
            (
                "kpis",
                "KPIs",
                kpis_to_dataframe(report.kpis, decimals),
                [kpi_totals_line(report.kpis)],
            )
        )
    return sections


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the SMB Tracker CLI.

    This function parses command-line arguments, loads the application
    configuration, initializes the database, optionally imports entries
    from a CSV file, builds the dashboard report for the selected user and
    finally renders the selected scope as console tables and/or CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"smb_tracker version {__version__}")
        return

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    # 1) Load application configuration and apply CLI overrides
    if args.config_path:
        config = load_app_config(args.config_path)
    else:
        config = load_app_config()
    config = _apply_overrides(config, args)

    # 2) Initialize the database (create file and schema if needed)
    init_database(config.database)
    service = DashboardService(config, config.user_id)

    if not args.import_args and not has_entries(config.database, config.user_id):
        print(
            f"Warning: no entries for user {config.user_id!r}. "
            "Use --import KIND CSV_PATH to load entries."
        )

    # 3) Optional import from CSV into the database
    if args.import_args:
        kind, csv_arg = args.import_args
        if kind not in ENTRY_KINDS:
            parser.error(
                f"Unknown entry kind for --import: {kind!r}. "
                f"Expected one of: {', '.join(ENTRY_KINDS)}."
            )
        csv_path = Path(csv_arg)
        if not csv_path.is_file():
            parser.error(f"CSV file for --import not found: {csv_path}")

        print(f"Importing {kind} entries from {csv_path} into the database...")
        try:
            stats = service.import_csv(csv_path, kind)
        except ValueError as exc:
            parser.error(str(exc))
        except sqlite3.IntegrityError as exc:
            parser.error(f"Cannot import {kind} entries from {csv_path}: {exc}")
        print(f"Imported {stats.rows_inserted} {stats.kind} entries.")

    # If an 'entries' subcommand was requested, handle it now and exit early.
    if getattr(args, "command", None) == "entries":
        _handle_entries_command(args, service, parser)
        return

    # 4) Build the requested views
    sections = _build_sections(args.scope, service, config.decimals)

    # 5) Render to console (table mode).
    display_mode = config.display_mode
    if display_mode in {"table", "both"}:
        print(f"User: {config.user_id} | Currency: {config.currency}")
        for _, title, df, footer in sections:
            print()
            print(f"=== {title} ===")
            if df.empty:
                print("No data.")
            else:
                print(df.to_string(index=False))
            for line in footer:
                print(line)

    # 6) Render to CSV files (csv mode).
    if display_mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else Path("data/output")
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")

        for name, _, df, _ in sections:
            path = output_dir / f"{name}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


if __name__ == "__main__":
    main()
