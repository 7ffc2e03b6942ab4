import pytest

from smb_tracker.cashflow import (
    CASH_FLOW_COLUMNS,
    PROFIT_LOSS_COLUMNS,
    cash_flow_projection,
    expense_ratio,
    final_balance,
    profit_growth,
    profit_loss_by_month,
    projected_next_balance,
)
from smb_tracker.models import CashFlowEntry, ProfitLossEntry


def cf(entry_id: str, month: str, inflows: float, outflows: float) -> CashFlowEntry:
    return CashFlowEntry(id=entry_id, month=month, inflows=inflows, outflows=outflows)


def pl(entry_id: str, month: str, revenue: float, expenses: float) -> ProfitLossEntry:
    return ProfitLossEntry(
        id=entry_id, month=month, revenue_total=revenue, expenses_total=expenses
    )


def test_running_balance_basic() -> None:
    projection = cash_flow_projection(
        [cf("a", "2024-01", 10000, 8000), cf("b", "2024-02", 12000, 9000)]
    )
    assert list(projection.columns) == CASH_FLOW_COLUMNS
    assert list(projection["balance"]) == pytest.approx([2000.0, 5000.0])


def test_running_balance_is_independent_of_insertion_order() -> None:
    """Months are re-sorted internally before the balance is computed."""
    entries = [
        cf("c", "2024-03", 1000, 4000),
        cf("a", "2024-01", 10000, 8000),
        cf("b", "2024-02", 12000, 9000),
    ]
    projection = cash_flow_projection(entries, starting_balance=1000.0)

    assert list(projection["month"]) == ["2024-01", "2024-02", "2024-03"]
    assert list(projection["balance"]) == pytest.approx([3000.0, 6000.0, 3000.0])
    assert final_balance(projection, 1000.0) == pytest.approx(
        1000.0 + (10000 + 12000 + 1000) - (8000 + 9000 + 4000)
    )


def test_rows_sharing_a_month_are_summed() -> None:
    projection = cash_flow_projection(
        [cf("a", "2024-01", 1000, 0), cf("b", "2024-01", 500, 200)]
    )
    assert len(projection) == 1
    assert projection["inflows"].iloc[0] == pytest.approx(1500.0)
    assert projection["balance"].iloc[0] == pytest.approx(1300.0)


def test_empty_projection() -> None:
    projection = cash_flow_projection([], starting_balance=250.0)
    assert projection.empty
    assert list(projection.columns) == CASH_FLOW_COLUMNS
    assert final_balance(projection, 250.0) == 250.0
    assert projected_next_balance(projection, 250.0) == 250.0


def test_projected_next_balance_uses_average_net() -> None:
    projection = cash_flow_projection(
        [cf("a", "2024-01", 3000, 1000), cf("b", "2024-02", 1000, 1000)]
    )
    # Final balance 2000, average net (2000 + 0) / 2 = 1000
    assert projected_next_balance(projection) == pytest.approx(3000.0)


def test_profit_loss_by_month_table() -> None:
    monthly = profit_loss_by_month(
        [
            pl("b", "2024-02", 0, 500),
            pl("a", "2024-01", 1000, 600),
            pl("c", "2024-01", 1000, 400),
        ]
    )
    assert list(monthly.columns) == PROFIT_LOSS_COLUMNS
    assert list(monthly["month"]) == ["2024-01", "2024-02"]
    assert list(monthly["net_profit"]) == pytest.approx([1000.0, -500.0])
    assert list(monthly["profit_margin"]) == pytest.approx([50.0, 0.0])


def test_profit_growth() -> None:
    monthly = profit_loss_by_month(
        [pl("a", "2024-01", 1000, 800), pl("b", "2024-02", 1000, 700)]
    )
    assert profit_growth(monthly) == pytest.approx(50.0)

    single = profit_loss_by_month([pl("a", "2024-01", 1000, 800)])
    assert profit_growth(single) == 0.0
    assert profit_growth(profit_loss_by_month([])) == 0.0


def test_expense_ratio() -> None:
    assert expense_ratio(1000.0, 250.0) == pytest.approx(25.0)
    assert expense_ratio(0.0, 250.0) == 0.0
