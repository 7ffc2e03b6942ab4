# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for SMB Tracker.

This module contains helpers that transform a ``DashboardReport`` into
tabular "views" ready for display or CSV export. Each view is a pandas
DataFrame with a stable column order:

- summary:     one row per headline metric (key, label, value, unit),
- breakdowns:  one row per rollup group (breakdown, group, amount, share),
- cash flow:   the running-balance projection,
- P&L:         the monthly profit & loss table,
- debts:       one row per debt with urgency and payoff progress,
- KPIs:        one row per KPI with progress, direction and status.

The computation itself is performed by ``engine.build_dashboard``. This
module only rounds and arranges the results.
"""

import math

import pandas as pd

from .debts import DebtSummary
from .engine import DashboardReport
from .kpis import KpiSummary
from .rollups import shares

SUMMARY_COLUMNS = ["key", "label", "value", "unit"]
BREAKDOWN_COLUMNS = ["breakdown", "group", "amount", "share_pct"]
DEBT_COLUMNS = [
    "id",
    "creditor",
    "type",
    "current_balance",
    "monthly_payment",
    "days_until_due",
    "urgency",
    "payoff_progress",
]
KPI_COLUMNS = [
    "id",
    "metric_name",
    "category",
    "value",
    "target",
    "progress",
    "direction",
    "status",
]

INFINITY_DISPLAY = "∞"


def format_amount(value: float, decimals: int = 2, currency: str = "") -> str:
    """Format an amount with thousands separators, e.g. "12,500.00 USD"."""
    text = f"{value:,.{decimals}f}"
    return f"{text} {currency}".strip()


def _round(value: float, decimals: int) -> float:
    if math.isinf(value) or math.isnan(value):
        return value
    return round(value, decimals)


def metrics_to_dataframe(report: DashboardReport, decimals: int = 2) -> pd.DataFrame:
    """
    Convert the headline figures of a report into a DataFrame.

    The resulting DataFrame has the following columns:
        - key:   Internal metric identifier (e.g. "net_profit").
        - label: Human-readable label to display.
        - value: Value rounded to ``decimals`` (strings for labels and for
                 an unbounded runway, shown as "∞").
        - unit:  Unit hint ("amount", "percent", "months", "score", "label").
    """
    m = report.metrics
    runway_value: object = (
        INFINITY_DISPLAY if math.isinf(m.runway) else _round(m.runway, decimals)
    )

    rows: list[tuple[str, str, object, str]] = [
        ("total_revenue", "Total revenue", _round(m.total_revenue, decimals), "amount"),
        (
            "total_expenses",
            "Total expenses",
            _round(m.total_expenses, decimals),
            "amount",
        ),
        ("net_profit", "Net profit", _round(m.net_profit, decimals), "amount"),
        ("net_profit_source", "Net profit source", m.net_profit_source, "label"),
        (
            "profit_margin",
            "Profit margin",
            _round(m.profit_margin, decimals),
            "percent",
        ),
        ("total_debt", "Total debt", _round(m.total_debt, decimals), "amount"),
        (
            "monthly_debt_payments",
            "Monthly debt payments",
            _round(m.monthly_debt_payments, decimals),
            "amount",
        ),
        ("cash_flow", "Cash flow", _round(m.cash_flow, decimals), "amount"),
        ("burn_rate", "Burn rate", _round(m.burn_rate, decimals), "amount"),
        ("runway", "Runway", runway_value, "months"),
        ("runway_status", "Runway status", m.runway_status, "label"),
        ("health_score", "Health score", _round(m.health_score, decimals), "score"),
        ("health_label", "Health", m.health_label, "label"),
        (
            "final_balance",
            "Ending cash balance",
            _round(report.final_balance, decimals),
            "amount",
        ),
        (
            "projected_balance",
            "Projected next-month balance",
            _round(report.projected_balance, decimals),
            "amount",
        ),
    ]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def rollups_to_dataframe(report: DashboardReport, decimals: int = 2) -> pd.DataFrame:
    """
    Flatten every rollup of a report into one long DataFrame.

    ``share_pct`` is the share of the group within its own breakdown.
    """
    m = report.metrics
    breakdowns = [
        ("revenue_by_category", m.revenue_by_category),
        ("revenue_by_client", m.revenue_by_client),
        ("expense_by_category", m.expense_by_category),
        ("debt_by_type", m.debt_by_type),
    ]

    rows: list[dict[str, object]] = []
    for name, totals in breakdowns:
        group_shares = shares(totals)
        for group, amount in totals.items():
            share = group_shares[group]
            rows.append(
                {
                    "breakdown": name,
                    "group": group,
                    "amount": round(amount, decimals),
                    "share_pct": round(share, decimals),
                }
            )

    if not rows:
        return pd.DataFrame(columns=BREAKDOWN_COLUMNS)
    return pd.DataFrame(rows)[BREAKDOWN_COLUMNS]


def cash_flow_to_dataframe(report: DashboardReport, decimals: int = 2) -> pd.DataFrame:
    df = report.cash_flow_projection.copy()
    if df.empty:
        return df
    numeric = ["inflows", "outflows", "net_cash_flow", "balance"]
    df[numeric] = df[numeric].astype(float).round(decimals)
    return df


def profit_loss_to_dataframe(
    report: DashboardReport, decimals: int = 2
) -> pd.DataFrame:
    df = report.profit_loss_by_month.copy()
    if df.empty:
        return df
    numeric = ["revenue_total", "expenses_total", "net_profit", "profit_margin"]
    df[numeric] = df[numeric].astype(float).round(decimals)
    return df


def debts_to_dataframe(summary: DebtSummary, decimals: int = 2) -> pd.DataFrame:
    """
    One row per debt, ordered by due-date proximity.

    ``days_until_due`` is left empty for debts without a usable due date.
    """
    if not summary.debts:
        return pd.DataFrame(columns=DEBT_COLUMNS)

    rows = [
        {
            "id": d.id,
            "creditor": d.creditor,
            "type": d.type,
            "current_balance": round(d.current_balance, decimals),
            "monthly_payment": round(d.monthly_payment, decimals),
            "days_until_due": d.days_until_due,
            "urgency": d.urgency,
            "payoff_progress": round(d.payoff_progress, decimals),
        }
        for d in summary.debts
    ]
    return pd.DataFrame(rows)[DEBT_COLUMNS]


def kpis_to_dataframe(summary: KpiSummary, decimals: int = 2) -> pd.DataFrame:
    """
    One row per KPI. Directions guessed from the metric name are marked
    with a trailing "*".
    """
    if not summary.kpis:
        return pd.DataFrame(columns=KPI_COLUMNS)

    rows = [
        {
            "id": k.id,
            "metric_name": k.metric_name,
            "category": k.category,
            "value": round(k.value, decimals),
            "target": round(k.target, decimals),
            "progress": round(k.progress, decimals),
            "direction": f"{k.direction}*" if k.direction_inferred else k.direction,
            "status": k.status,
        }
        for k in summary.kpis
    ]
    return pd.DataFrame(rows)[KPI_COLUMNS]


def debt_totals_lines(summary: DebtSummary, decimals: int = 2) -> list[str]:
    """Footer lines printed under the debts table."""
    return [
        f"Total debt: {format_amount(summary.total_debt, decimals)} | "
        f"Monthly payments: {format_amount(summary.monthly_payments, decimals)}",
        f"Borrowed: {format_amount(summary.total_borrowed, decimals)} | "
        f"Paid off: {summary.paid_off_pct:.1f}% | "
        f"Average rate: {summary.average_interest_rate:.2f}%",
        f"Due within the high-urgency window: {summary.high_urgency_count}",
    ]


def profit_loss_totals_line(report: DashboardReport) -> str:
    """Footer line printed under the monthly P&L table."""
    return (
        f"Overall margin: {report.pnl_margin:.1f}% | "
        f"Profit growth: {report.profit_growth:.1f}% | "
        f"Expense ratio: {report.expense_ratio:.1f}%"
    )


def kpi_totals_line(summary: KpiSummary) -> str:
    return (
        f"On target: {summary.on_target} | At risk: {summary.at_risk} | "
        f"Critical: {summary.critical} | Overall score: {summary.score:.1f}%"
    )
