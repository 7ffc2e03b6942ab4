# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
SMB Tracker
-----------

A Python-based financial tracking toolkit for small businesses. Users log
revenue, expenses, debts, cash-flow forecasts, profit & loss figures and
KPIs; SMB Tracker turns them into a financial dashboard.

Main capabilities:
- a deterministic aggregation engine (net profit, profit margin, burn rate,
  cash runway, health score),
- category, client and debt-type breakdowns,
- month-by-month cash-flow projection with running balance,
- monthly profit & loss table and profit growth,
- debt urgency and payoff tracking,
- KPI progress and status classification,
- a local SQLite store with CSV import and CRUD operations,
- a dashboard service recomputing the metrics on every change,
- a command-line interface rendering tables and CSV files.

Version: 0.1.0

Usage:
    python -m smb_tracker.cli --help
"""

__all__ = ["engine", "formulas", "models", "service", "views", "io"]

__version__ = "0.1.0"
