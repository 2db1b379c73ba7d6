from datetime import datetime

from budget_tracker.analytics import summarize
from budget_tracker.models import Transaction
from budget_tracker.state import BudgetState
from budget_tracker.views import (
    DashboardView,
    calendar_context,
    format_money,
    format_percentage,
    summary_chart,
)


def txn(txn_id, kind, amount_cents):
    return Transaction(
        id=txn_id,
        description=txn_id,
        amount_cents=amount_cents,
        date=datetime(2026, 12, 15),
        category="",
        kind=kind,
    )


def test_format_money():
    assert format_money(80000) == "$800.00"
    assert format_money(0) == "$0.00"
    assert format_money(-1250) == "-$12.50"
    assert format_money(123456789) == "$1,234,567.89"


def test_format_percentage_never_divides_by_zero():
    assert format_percentage(0, 0) == "0.0%"
    assert format_percentage(1, 3) == "33.3%"


def test_summary_chart_empty():
    chart = summary_chart(summarize([], []))
    assert chart["data"] == [0.0, 0.0]
    assert chart["percentages"] == ["0.0%", "0.0%"]


def test_dashboard_view_follows_state_events():
    state = BudgetState()
    view = DashboardView(state)

    state.add(txn("i", "income", 80000))
    state.add(txn("e", "expense", 20000))
    assert view.summary.balance_cents == 60000
    assert view.revision == 2

    state.delete("i")
    assert view.summary.balance_cents == -20000

    view.close()
    state.clear()
    assert view.revision == 3
    assert view.summary.expense_cents == 20000


def test_calendar_context_wraps_year():
    state = BudgetState(income=[txn("i", "income", 5000)])
    context = calendar_context(state, 2026, 12)

    assert context["month_name"] == "December"
    assert context["next"] == {"year": 2027, "month": 1}
    assert context["prev"] == {"year": 2026, "month": 11}
    assert context["month_income"] == 5000
    assert context["closing_balance"] == 5000
