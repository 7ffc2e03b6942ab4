# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Scalar financial formulas for SMB Tracker.

This module is the single home of every derived figure shown on the
dashboard. Each metric has exactly one function here and the engine calls
each function from exactly one place, so that two views can never disagree
on what "burn rate" or "runway" means.

1. Profitability
   -------------
   - net_profit(): manual P&L totals take precedence over the ledger.
   - profit_margin(): net profit over revenue, in percent (0 if no revenue).

2. Cash consumption
   ----------------
   - burn_rate(): total expenses plus monthly debt service, treated as a
     monthly figure.
   - runway(): months of cash left at the current burn rate, floored at 0.
     When nothing is burned the runway is unbounded and ``math.inf`` is
     returned.

3. Health score
   ------------
   A 0-100 composite blending the profit margin, a bonus or penalty for the
   sign of the cash flow and a bonus or penalty depending on whether total
   debt stays below a multiple of net profit. Weights live in
   :class:`HealthScoreWeights` and can be overridden from the configuration.

4. Labels
   ------
   health_label() and runway_status() map numbers to the wording used by the
   dashboard views.

All functions are pure and never raise on edge cases: every zero
denominator has a defined result.
"""

import math
from dataclasses import dataclass
from typing import Optional

# ---------------------------------------------------------------------------
# Named constants
# ---------------------------------------------------------------------------

# Health score components.
MARGIN_WEIGHT = 1.0
CASH_FLOW_BONUS = 20.0
CASH_FLOW_PENALTY = 20.0
DEBT_BONUS = 10.0
DEBT_PENALTY = 30.0
DEBT_TO_PROFIT_LIMIT = 2.0

HEALTH_SCORE_MIN = 0.0
HEALTH_SCORE_MAX = 100.0

# Health label bands (lower bounds, checked from the top).
HEALTH_LABELS: tuple[tuple[float, str], ...] = (
    (80.0, "Excellent"),
    (60.0, "Good"),
    (40.0, "Needs Attention"),
)
HEALTH_LABEL_FLOOR = "Critical"

# Runway status bands, in months.
RUNWAY_HEALTHY_MONTHS = 24.0
RUNWAY_MODERATE_MONTHS = 12.0

INFINITE_RUNWAY = math.inf


@dataclass(frozen=True)
class HealthScoreWeights:
    """
    Weights of the health score components.

    Attributes:
        margin_weight: Multiplier applied to the profit margin (percent).
        cash_flow_bonus: Points added when the aggregate cash flow is positive.
        cash_flow_penalty: Points removed when the cash flow is zero or negative.
        debt_bonus: Points added when total debt < limit x net profit.
        debt_penalty: Points removed otherwise.
        debt_to_profit_limit: The multiple of net profit debt is compared to.
    """

    margin_weight: float = MARGIN_WEIGHT
    cash_flow_bonus: float = CASH_FLOW_BONUS
    cash_flow_penalty: float = CASH_FLOW_PENALTY
    debt_bonus: float = DEBT_BONUS
    debt_penalty: float = DEBT_PENALTY
    debt_to_profit_limit: float = DEBT_TO_PROFIT_LIMIT


DEFAULT_WEIGHTS = HealthScoreWeights()


def safe_ratio(numerator: float, denominator: float, fallback: float = 0.0) -> float:
    """Return numerator / denominator, or ``fallback`` when denominator <= 0."""
    if denominator <= 0:
        return fallback
    return numerator / denominator


def net_profit(
    total_revenue: float,
    total_expenses: float,
    pl_revenue_total: Optional[float] = None,
    pl_expenses_total: Optional[float] = None,
) -> float:
    """
    Net profit for the dashboard.

    When profit & loss totals are given (i.e. at least one P&L entry exists)
    they are used exclusively; the ledger totals are ignored, even if they
    disagree. Otherwise net profit is revenue minus expenses.
    """
    if pl_revenue_total is not None and pl_expenses_total is not None:
        return pl_revenue_total - pl_expenses_total
    return total_revenue - total_expenses


def profit_margin(net_profit_value: float, total_revenue: float) -> float:
    """Net profit as a percentage of revenue; 0 when there is no revenue."""
    return safe_ratio(net_profit_value, total_revenue) * 100.0


def burn_rate(total_expenses: float, monthly_debt_payments: float) -> float:
    """Monthly cash consumption: expenses plus monthly debt service."""
    return total_expenses + monthly_debt_payments


def runway(cash_flow: float, burn_rate_value: float) -> float:
    """
    Months of operation sustainable at the current burn rate.

    Returns ``math.inf`` when burn rate <= 0, otherwise
    ``max(0, cash_flow / burn_rate)``.
    """
    if burn_rate_value <= 0:
        return INFINITE_RUNWAY
    return max(0.0, cash_flow / burn_rate_value)


def health_score(
    profit_margin_value: float,
    cash_flow: float,
    total_debt: float,
    net_profit_value: float,
    weights: HealthScoreWeights = DEFAULT_WEIGHTS,
) -> float:
    """
    Composite 0-100 health indicator.

    score = margin * margin_weight
            + (cash_flow_bonus if cash_flow > 0 else -cash_flow_penalty)
            + (debt_bonus if total_debt < limit * net_profit else -debt_penalty)

    The result is always clamped to [0, 100], including for extreme inputs.
    """
    margin_part = profit_margin_value * weights.margin_weight
    if math.isnan(margin_part):
        margin_part = 0.0

    if cash_flow > 0:
        cash_part = weights.cash_flow_bonus
    else:
        cash_part = -weights.cash_flow_penalty

    if total_debt < weights.debt_to_profit_limit * net_profit_value:
        debt_part = weights.debt_bonus
    else:
        debt_part = -weights.debt_penalty

    score = margin_part + cash_part + debt_part
    if math.isnan(score):
        return HEALTH_SCORE_MIN
    return min(HEALTH_SCORE_MAX, max(HEALTH_SCORE_MIN, score))


def health_label(score: float) -> str:
    for lower_bound, label in HEALTH_LABELS:
        if score >= lower_bound:
            return label
    return HEALTH_LABEL_FLOOR


def runway_status(months: float) -> str:
    """Healthy beyond 24 months (or unbounded), Moderate beyond 12, else Critical."""
    if months > RUNWAY_HEALTHY_MONTHS:
        return "Healthy"
    if months > RUNWAY_MODERATE_MONTHS:
        return "Moderate"
    return "Critical"


def growth_rate(latest: float, previous: float) -> float:
    """
    Period-over-period growth in percent.

    With a zero previous value, growth is 100 when the latest value is
    positive and 0 otherwise.
    """
    if previous == 0:
        return 100.0 if latest > 0 else 0.0
    return (latest - previous) / abs(previous) * 100.0
