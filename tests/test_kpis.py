import logging

import pytest

from smb_tracker.kpis import (
    AT_RISK,
    CRITICAL,
    ON_TARGET,
    KpiSettings,
    classify_kpi,
    kpi_progress,
    resolve_direction,
    summarize_kpis,
)
from smb_tracker.models import KpiEntry


def kpi(name: str, value: float, target: float, direction=None) -> KpiEntry:
    return KpiEntry(
        id=name.lower().replace(" ", "_"),
        metric_name=name,
        category="General",
        value=value,
        target=target,
        direction=direction,
    )


def test_progress_is_zero_for_non_positive_target() -> None:
    assert kpi_progress(50.0, 0.0) == 0.0
    assert kpi_progress(50.0, -10.0) == 0.0
    assert kpi_progress(50.0, 200.0) == pytest.approx(25.0)


@pytest.mark.parametrize(
    "progress, expected",
    [
        (120.0, ON_TARGET),
        (100.0, ON_TARGET),
        (99.9, AT_RISK),
        (80.0, AT_RISK),
        (79.9, CRITICAL),
        (0.0, CRITICAL),
    ],
)
def test_higher_is_better_bands(progress: float, expected: str) -> None:
    assert classify_kpi(progress, "higher") == expected


@pytest.mark.parametrize(
    "progress, expected",
    [
        (50.0, ON_TARGET),
        (100.0, ON_TARGET),
        (100.1, AT_RISK),
        (120.0, AT_RISK),
        (120.1, CRITICAL),
    ],
)
def test_lower_is_better_bands(progress: float, expected: str) -> None:
    assert classify_kpi(progress, "lower") == expected


def test_explicit_direction_is_never_overridden(caplog) -> None:
    entry = kpi("Cost per lead", 10.0, 5.0, direction="higher")
    with caplog.at_level(logging.WARNING, logger="smb_tracker.kpis"):
        assert resolve_direction(entry) == ("higher", False)
    assert caplog.records == []


def test_missing_direction_is_inferred_with_a_warning(caplog) -> None:
    entry = kpi("Customer Acquisition Cost", 450.0, 400.0)
    with caplog.at_level(logging.WARNING, logger="smb_tracker.kpis"):
        assert resolve_direction(entry) == ("lower", True)

    assert len(caplog.records) == 1
    assert "Customer Acquisition Cost" in caplog.records[0].getMessage()


def test_inference_can_be_disabled() -> None:
    entry = kpi("Expense Ratio", 65.0, 70.0)
    settings = KpiSettings(lower_is_better_keywords=())
    assert resolve_direction(entry, settings) == ("higher", False)


def test_summary_counts_and_score() -> None:
    summary = summarize_kpis(
        [
            kpi("Monthly Revenue", 20000.0, 20000.0, "higher"),  # 100 on target
            kpi("Customer Acquisition Cost", 450.0, 400.0),  # 112.5 at risk (lower)
            kpi("Signups", 50.0, 100.0, "higher"),  # 50 critical
            kpi("Churn", 10.0, 0.0, "lower"),  # target 0 -> progress 0 on target
        ]
    )

    assert summary.on_target == 2
    assert summary.at_risk == 1
    assert summary.critical == 1
    assert summary.score == pytest.approx((100.0 + 112.5 + 50.0 + 0.0) / 4)
    inferred = [k for k in summary.kpis if k.direction_inferred]
    assert [k.metric_name for k in inferred] == ["Customer Acquisition Cost"]


def test_empty_summary() -> None:
    summary = summarize_kpis([])
    assert (summary.on_target, summary.at_risk, summary.critical) == (0, 0, 0)
    assert summary.score == 0.0
    assert summary.kpis == ()
