from datetime import date

import pytest

from smb_tracker.engine import build_dashboard
from smb_tracker.models import Snapshot
from smb_tracker.views import (
    BREAKDOWN_COLUMNS,
    DEBT_COLUMNS,
    KPI_COLUMNS,
    SUMMARY_COLUMNS,
    debts_to_dataframe,
    format_amount,
    kpi_totals_line,
    kpis_to_dataframe,
    metrics_to_dataframe,
    profit_loss_totals_line,
    rollups_to_dataframe,
)


def sample_report():
    snap = Snapshot.from_records(
        revenue=[
            {"id": "r1", "client": "Acme", "category": "Services", "amount": 1000.004},
            {"id": "r2", "client": "Globex", "category": "Products", "amount": 3000},
        ],
        expenses=[{"id": "e1", "category": "Rent", "amount": 500}],
        debts=[
            {
                "id": "d1",
                "creditor": "Bank",
                "type": "Loan",
                "original_amount": 1000,
                "current_balance": 600,
                "due_date": "2025-02-20",
            },
        ],
        kpis=[
            {"id": "k1", "metric_name": "Support cost", "value": 130, "target": 100},
        ],
    )
    return build_dashboard(snap, today=date(2025, 2, 15))


def test_format_helpers() -> None:
    assert format_amount(12500.0) == "12,500.00"
    assert format_amount(12500.0, 0, "USD") == "12,500 USD"


def test_metrics_view_shows_unbounded_runway() -> None:
    df = metrics_to_dataframe(build_dashboard(Snapshot(), today=date(2025, 1, 1)))

    assert list(df.columns) == SUMMARY_COLUMNS
    values = dict(zip(df["key"], df["value"]))
    assert values["runway"] == "∞"
    assert values["runway_status"] == "Healthy"
    assert values["net_profit_source"] == "ledger"


def test_metrics_view_rounds_values() -> None:
    df = metrics_to_dataframe(sample_report(), decimals=2)
    values = dict(zip(df["key"], df["value"]))

    assert values["total_revenue"] == pytest.approx(4000.0)
    assert values["net_profit"] == pytest.approx(3500.0)
    assert values["burn_rate"] == pytest.approx(500.0)


def test_rollups_view() -> None:
    df = rollups_to_dataframe(sample_report())

    assert list(df.columns) == BREAKDOWN_COLUMNS
    revenue_rows = df[df["breakdown"] == "revenue_by_category"]
    shares = dict(zip(revenue_rows["group"], revenue_rows["share_pct"]))
    assert shares == {"Products": pytest.approx(75.0), "Services": pytest.approx(25.0)}
    assert set(df["breakdown"]) == {
        "revenue_by_category",
        "revenue_by_client",
        "expense_by_category",
        "debt_by_type",
    }


def test_debt_and_kpi_views() -> None:
    report = sample_report()

    debts = debts_to_dataframe(report.debts)
    assert list(debts.columns) == DEBT_COLUMNS
    assert debts["urgency"].iloc[0] == "high"
    assert debts["payoff_progress"].iloc[0] == pytest.approx(40.0)

    kpis = kpis_to_dataframe(report.kpis)
    assert list(kpis.columns) == KPI_COLUMNS
    # Inferred direction is flagged.
    assert kpis["direction"].iloc[0] == "lower*"
    assert kpis["status"].iloc[0] == "critical"
    assert "Critical: 1" in kpi_totals_line(report.kpis)


def test_empty_views_keep_their_columns() -> None:
    report = build_dashboard(Snapshot(), today=date(2025, 1, 1))
    assert list(rollups_to_dataframe(report).columns) == BREAKDOWN_COLUMNS
    assert list(debts_to_dataframe(report.debts).columns) == DEBT_COLUMNS
    assert list(kpis_to_dataframe(report.kpis).columns) == KPI_COLUMNS


def test_rollup_shares_are_zero_without_positive_total() -> None:
    snap = Snapshot.from_records(
        debts=[{"id": "d1", "type": "Loan", "current_balance": 0}],
    )
    df = rollups_to_dataframe(build_dashboard(snap, today=date(2025, 1, 1)))

    debt_rows = df[df["breakdown"] == "debt_by_type"]
    assert list(debt_rows["share_pct"]) == [0.0]


def test_profit_loss_footer_shows_overall_margin() -> None:
    snap = Snapshot.from_records(
        profit_loss=[
            {
                "id": "p1",
                "month": "2025-01",
                "revenue_total": 8000,
                "expenses_total": 6000,
            },
            {
                "id": "p2",
                "month": "2025-02",
                "revenue_total": 2000,
                "expenses_total": 1000,
            },
        ],
    )
    report = build_dashboard(snap, today=date(2025, 3, 1))

    assert report.pnl_margin == pytest.approx(30.0)
    line = profit_loss_totals_line(report)
    assert line.startswith("Overall margin: 30.0% | Profit growth: -50.0%")
