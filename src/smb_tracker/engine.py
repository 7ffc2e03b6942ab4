# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Core financial aggregation engine for SMB Tracker.

The engine turns a :class:`~smb_tracker.models.Snapshot` into the figures
displayed across the dashboard. It holds no state between calls: given the
same snapshot and settings it always returns the same result, and every
call recomputes everything from scratch.

The engine orchestrates two responsibilities:

1. Derived metrics
   ---------------
   ``aggregate(snapshot, settings)`` returns a :class:`DerivedMetrics`
   record:

   - totals: revenue, expenses, outstanding debt, monthly debt service,
     aggregate cash flow (inflows - outflows),
   - net profit (manual P&L totals take precedence over the ledger),
   - profit margin, burn rate, runway and health score, each computed by
     its single function in ``formulas.py``,
   - rollups by revenue category, revenue client, expense category and
     debt type (``rollups.py``).

2. Dashboard report
   ----------------
   ``build_dashboard(snapshot, settings, today)`` wraps the derived metrics
   together with the month-by-month tables (cash-flow projection, P&L by
   month), the debt summary and the KPI summary. This is what the service
   layer caches and what the views render.

Notes
-----
Numeric coercion is done once when the snapshot is built (models.py), so
the engine works on clean floats and never raises on business edge cases:
empty collections and zero denominators all have defined results.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import pandas as pd

from . import cashflow, formulas, rollups
from .debts import DebtSettings, DebtSummary, summarize_debts
from .kpis import KpiSettings, KpiSummary, summarize_kpis
from .models import Snapshot


@dataclass(frozen=True)
class MetricSettings:
    """
    Inputs of the engine that do not come from the entries themselves.

    Attributes:
        starting_balance: Cash available before the first cash-flow month.
        health_weights: Weights of the health score components.
        kpi: KPI classification settings.
        debts: Debt urgency thresholds.
    """

    starting_balance: float = 0.0
    health_weights: formulas.HealthScoreWeights = formulas.DEFAULT_WEIGHTS
    kpi: KpiSettings = KpiSettings()
    debts: DebtSettings = DebtSettings()


@dataclass(frozen=True)
class DerivedMetrics:
    """
    Summary figures derived from one snapshot.

    ``runway`` is ``math.inf`` when the burn rate is zero.
    ``net_profit_source`` is "profit_loss" when manual P&L entries were used
    and "ledger" otherwise.
    """

    total_revenue: float
    total_expenses: float
    total_debt: float
    monthly_debt_payments: float
    cash_flow: float
    net_profit: float
    net_profit_source: str
    profit_margin: float
    burn_rate: float
    runway: float
    runway_status: str
    health_score: float
    health_label: str
    revenue_by_category: dict[str, float] = field(default_factory=dict)
    revenue_by_client: dict[str, float] = field(default_factory=dict)
    expense_by_category: dict[str, float] = field(default_factory=dict)
    debt_by_type: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True, eq=False)
class DashboardReport:
    """Everything the dashboard views need for one snapshot."""

    metrics: DerivedMetrics
    cash_flow_projection: pd.DataFrame
    final_balance: float
    projected_balance: float
    profit_loss_by_month: pd.DataFrame
    profit_growth: float
    expense_ratio: float
    pnl_margin: float
    debts: DebtSummary
    kpis: KpiSummary


def aggregate(
    snapshot: Snapshot,
    settings: MetricSettings = MetricSettings(),
) -> DerivedMetrics:
    """Compute the derived metrics of a snapshot.

    Steps:
        1. Sum the ledger collections (order does not matter).
        2. Resolve net profit: P&L entries, when present, override the
           revenue/expense ledger.
        3. Derive margin, burn rate, runway and health score.
        4. Build the category/client/type rollups.

    Args:
        snapshot: Point-in-time entries of one user.
        settings: Health score weights and other engine inputs.

    Returns:
        A DerivedMetrics record. Never raises for empty collections.
    """
    revenue = list(snapshot.revenue.values())
    expenses = list(snapshot.expenses.values())
    debts = list(snapshot.debts.values())
    cash_flow_entries = list(snapshot.cash_flow.values())
    profit_loss = list(snapshot.profit_loss.values())

    # 1) Totals
    total_revenue = float(sum(e.amount for e in revenue))
    total_expenses = float(sum(e.amount for e in expenses))
    total_debt = float(sum(d.current_balance for d in debts))
    monthly_debt_payments = float(sum(d.monthly_payment for d in debts))
    cash_flow_value = float(
        sum(c.inflows for c in cash_flow_entries)
        - sum(c.outflows for c in cash_flow_entries)
    )

    # 2) Net profit with P&L precedence
    pl_revenue: Optional[float] = None
    pl_expenses: Optional[float] = None
    if profit_loss:
        pl_revenue = float(sum(p.revenue_total for p in profit_loss))
        pl_expenses = float(sum(p.expenses_total for p in profit_loss))

    net_profit_value = formulas.net_profit(
        total_revenue, total_expenses, pl_revenue, pl_expenses
    )

    # 3) Derived figures
    margin = formulas.profit_margin(net_profit_value, total_revenue)
    burn = formulas.burn_rate(total_expenses, monthly_debt_payments)
    runway_months = formulas.runway(cash_flow_value, burn)
    score = formulas.health_score(
        margin,
        cash_flow_value,
        total_debt,
        net_profit_value,
        settings.health_weights,
    )

    # 4) Rollups
    return DerivedMetrics(
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        total_debt=total_debt,
        monthly_debt_payments=monthly_debt_payments,
        cash_flow=cash_flow_value,
        net_profit=net_profit_value,
        net_profit_source="profit_loss" if profit_loss else "ledger",
        profit_margin=margin,
        burn_rate=burn,
        runway=runway_months,
        runway_status=formulas.runway_status(runway_months),
        health_score=score,
        health_label=formulas.health_label(score),
        revenue_by_category=rollups.revenue_by_category(revenue),
        revenue_by_client=rollups.revenue_by_client(revenue),
        expense_by_category=rollups.expense_by_category(expenses),
        debt_by_type=rollups.debt_by_type(debts),
    )


def build_dashboard(
    snapshot: Snapshot,
    settings: MetricSettings = MetricSettings(),
    today: Optional[date] = None,
) -> DashboardReport:
    """
    Build the full dashboard report for a snapshot.

    Args:
        snapshot: Point-in-time entries of one user.
        settings: Engine settings (starting balance, weights, thresholds).
        today: Reference date for debt due-date proximity. Defaults to the
            current date.

    Returns:
        A DashboardReport combining derived metrics, monthly tables, the
        debt summary and the KPI summary.
    """
    metrics = aggregate(snapshot, settings)

    projection = cashflow.cash_flow_projection(
        snapshot.cash_flow.values(), settings.starting_balance
    )
    monthly_pl = cashflow.profit_loss_by_month(snapshot.profit_loss.values())

    if not monthly_pl.empty:
        pl_revenue = float(monthly_pl["revenue_total"].sum())
        pl_expenses = float(monthly_pl["expenses_total"].sum())
    else:
        pl_revenue = pl_expenses = 0.0

    return DashboardReport(
        metrics=metrics,
        cash_flow_projection=projection,
        final_balance=cashflow.final_balance(projection, settings.starting_balance),
        projected_balance=cashflow.projected_next_balance(
            projection, settings.starting_balance
        ),
        profit_loss_by_month=monthly_pl,
        profit_growth=cashflow.profit_growth(monthly_pl),
        expense_ratio=cashflow.expense_ratio(pl_revenue, pl_expenses),
        pnl_margin=formulas.profit_margin(pl_revenue - pl_expenses, pl_revenue),
        debts=summarize_debts(snapshot.debts.values(), today, settings.debts),
        kpis=summarize_kpis(snapshot.kpis.values(), settings.kpi),
    )
