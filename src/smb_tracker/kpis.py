# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
KPI scoring for SMB Tracker.

For each KPI entry:

- progress = value / target * 100 (0 when target <= 0),
- direction = "higher" (more is better) or "lower" (less is better),
- status = "on_target", "at_risk" or "critical" from progress bands:

      higher is better:  >= 100 on target | >= 80 at risk | below critical
      lower is better:   <= 100 on target | <= 120 at risk | above critical

The overall KPI score is the plain mean of all progress values.

Direction
---------
The direction is taken from ``KpiEntry.direction`` when the user set it.
When it is missing, it is inferred from keywords in the metric name (by
default "cost" and "ratio") and a warning is logged for that KPI, so the
guess is visible. An empty keyword list disables the inference and missing
directions then default to "higher".
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .formulas import safe_ratio
from .models import KpiEntry

logger = logging.getLogger(__name__)

ON_TARGET = "on_target"
AT_RISK = "at_risk"
CRITICAL = "critical"

LOWER_IS_BETTER_KEYWORDS: tuple[str, ...] = ("cost", "ratio")
AT_RISK_FLOOR = 80.0
AT_RISK_CEILING = 120.0
TARGET_PROGRESS = 100.0


@dataclass(frozen=True)
class KpiSettings:
    """
    KPI classification settings.

    Attributes:
        lower_is_better_keywords: Name keywords used to infer a "lower is
            better" direction when the entry does not define one.
        at_risk_floor: Lower bound of the at-risk band (higher is better).
        at_risk_ceiling: Upper bound of the at-risk band (lower is better).
    """

    lower_is_better_keywords: tuple[str, ...] = LOWER_IS_BETTER_KEYWORDS
    at_risk_floor: float = AT_RISK_FLOOR
    at_risk_ceiling: float = AT_RISK_CEILING


@dataclass(frozen=True)
class KpiStatus:
    id: str
    metric_name: str
    category: str
    value: float
    target: float
    progress: float
    direction: str
    direction_inferred: bool
    status: str


@dataclass(frozen=True)
class KpiSummary:
    """Counts per status and the overall KPI score."""

    on_target: int
    at_risk: int
    critical: int
    score: float
    kpis: tuple[KpiStatus, ...]


def kpi_progress(value: float, target: float) -> float:
    """Progress towards target in percent; 0 when target <= 0."""
    return safe_ratio(value, target) * 100.0


def resolve_direction(
    kpi: KpiEntry,
    settings: KpiSettings = KpiSettings(),
) -> tuple[str, bool]:
    """
    Return ``(direction, inferred)`` for a KPI entry.

    ``inferred`` is True when the direction was guessed from the metric name.
    """
    if kpi.direction:
        return kpi.direction, False

    name = kpi.metric_name.lower()
    for keyword in settings.lower_is_better_keywords:
        if keyword and keyword.lower() in name:
            logger.warning(
                "KPI %r has no direction; treating it as 'lower is better' "
                "because its name contains %r.",
                kpi.metric_name,
                keyword,
            )
            return "lower", True

    return "higher", False


def classify_kpi(
    progress: float,
    direction: str,
    settings: KpiSettings = KpiSettings(),
) -> str:
    if direction == "lower":
        if progress <= TARGET_PROGRESS:
            return ON_TARGET
        if progress <= settings.at_risk_ceiling:
            return AT_RISK
        return CRITICAL

    if progress >= TARGET_PROGRESS:
        return ON_TARGET
    if progress >= settings.at_risk_floor:
        return AT_RISK
    return CRITICAL


def evaluate_kpi(kpi: KpiEntry, settings: KpiSettings = KpiSettings()) -> KpiStatus:
    progress = kpi_progress(kpi.value, kpi.target)
    direction, inferred = resolve_direction(kpi, settings)
    return KpiStatus(
        id=kpi.id,
        metric_name=kpi.metric_name,
        category=kpi.category,
        value=kpi.value,
        target=kpi.target,
        progress=progress,
        direction=direction,
        direction_inferred=inferred,
        status=classify_kpi(progress, direction, settings),
    )


def summarize_kpis(
    kpis: Iterable[KpiEntry],
    settings: KpiSettings = KpiSettings(),
) -> KpiSummary:
    """Evaluate every KPI and aggregate the status counts and overall score."""
    statuses = tuple(evaluate_kpi(k, settings) for k in kpis)
    score = (
        sum(s.progress for s in statuses) / len(statuses) if statuses else 0.0
    )
    return KpiSummary(
        on_target=sum(1 for s in statuses if s.status == ON_TARGET),
        at_risk=sum(1 for s in statuses if s.status == AT_RISK),
        critical=sum(1 for s in statuses if s.status == CRITICAL),
        score=score,
        kpis=statuses,
    )
