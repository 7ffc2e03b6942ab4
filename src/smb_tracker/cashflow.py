# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Month-by-month tables for SMB Tracker.

Two monthly views are built here:

1) Cash-flow projection
   ---------------------
   Cash-flow entries are grouped by month label (entries sharing a month are
   summed), sorted by month ascending, and a running balance is computed:

       balance[0] = starting_balance + inflows[0] - outflows[0]
       balance[i] = balance[i-1]      + inflows[i] - outflows[i]

   The recurrence depends on month order, which is why the table is always
   re-sorted here whatever the order of the input.

2) Profit & loss by month
   -----------------------
   Manual P&L entries grouped by month with net profit and margin per month,
   plus the month-over-month profit growth used by the P&L view.

Month labels are compared as strings ("YYYY-MM" sorts chronologically).
"""

from collections.abc import Iterable

import pandas as pd

from .formulas import growth_rate, safe_ratio
from .models import CashFlowEntry, ProfitLossEntry

CASH_FLOW_COLUMNS = ["month", "inflows", "outflows", "net_cash_flow", "balance"]
PROFIT_LOSS_COLUMNS = [
    "month",
    "revenue_total",
    "expenses_total",
    "net_profit",
    "profit_margin",
]


def cash_flow_projection(
    entries: Iterable[CashFlowEntry],
    starting_balance: float = 0.0,
) -> pd.DataFrame:
    """
    Build the running-balance table for cash-flow entries.

    Args:
        entries: Cash-flow entries, in any order.
        starting_balance: Cash available before the first month.

    Returns:
        A DataFrame with columns month, inflows, outflows, net_cash_flow and
        balance, one row per distinct month, sorted by month ascending. An
        empty DataFrame with the same columns is returned when there are no
        entries.
    """
    rows = [
        {"month": e.month, "inflows": e.inflows, "outflows": e.outflows}
        for e in entries
    ]
    if not rows:
        return pd.DataFrame(columns=CASH_FLOW_COLUMNS)

    df = pd.DataFrame(rows)
    df = df.groupby("month", as_index=False, sort=True)[["inflows", "outflows"]].sum()
    df = df.sort_values("month", kind="stable").reset_index(drop=True)

    df["net_cash_flow"] = df["inflows"] - df["outflows"]
    df["balance"] = float(starting_balance) + df["net_cash_flow"].cumsum()
    return df[CASH_FLOW_COLUMNS]


def final_balance(projection: pd.DataFrame, starting_balance: float = 0.0) -> float:
    """Balance after the last month, or the starting balance if there is none."""
    if projection.empty:
        return float(starting_balance)
    return float(projection["balance"].iloc[-1])


def projected_next_balance(
    projection: pd.DataFrame,
    starting_balance: float = 0.0,
) -> float:
    """
    Naive projection of the balance one month after the last forecast month.

    The last balance is extended by the average monthly net cash flow.
    """
    if projection.empty:
        return float(starting_balance)
    average_net = float(projection["net_cash_flow"].mean())
    return final_balance(projection, starting_balance) + average_net


def profit_loss_by_month(entries: Iterable[ProfitLossEntry]) -> pd.DataFrame:
    """
    Build the monthly profit & loss table.

    Returns:
        A DataFrame with columns month, revenue_total, expenses_total,
        net_profit and profit_margin (percent, 0 for months without revenue),
        sorted by month ascending.
    """
    rows = [
        {
            "month": e.month,
            "revenue_total": e.revenue_total,
            "expenses_total": e.expenses_total,
        }
        for e in entries
    ]
    if not rows:
        return pd.DataFrame(columns=PROFIT_LOSS_COLUMNS)

    df = pd.DataFrame(rows)
    df = df.groupby("month", as_index=False, sort=True)[
        ["revenue_total", "expenses_total"]
    ].sum()
    df["net_profit"] = df["revenue_total"] - df["expenses_total"]
    df["profit_margin"] = [
        safe_ratio(net, revenue) * 100.0
        for net, revenue in zip(df["net_profit"], df["revenue_total"])
    ]
    return df[PROFIT_LOSS_COLUMNS]


def profit_growth(monthly: pd.DataFrame) -> float:
    """
    Month-over-month growth of net profit between the two latest months.

    Returns 0 when fewer than two months are available.
    """
    if len(monthly) < 2:
        return 0.0
    latest = float(monthly["net_profit"].iloc[-1])
    previous = float(monthly["net_profit"].iloc[-2])
    return growth_rate(latest, previous)


def expense_ratio(revenue_total: float, expenses_total: float) -> float:
    """Expenses as a percentage of revenue; 0 when there is no revenue."""
    return safe_ratio(expenses_total, revenue_total) * 100.0
