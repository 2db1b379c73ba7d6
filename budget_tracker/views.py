"""
View layer: formatting, chart payloads and page contexts.

``DashboardView`` subscribes to ``BudgetState`` so the headline summary is
recomputed once per mutation instead of on every render.
"""

import calendar
from datetime import date as dt_date

from .analytics import (
    Summary,
    category_breakdown,
    daily_balances,
    filter_txns,
    group_by,
    outliers,
    percentage,
    running_balance,
    summarize,
    trend,
)
from .logic import cents_to_amount
from .state import BudgetState, StateEvent

INCOME_COLOR = "#10b981"
EXPENSE_COLOR = "#ef4444"
PALETTE = [
    "#3b82f6",
    "#f59e0b",
    "#8b5cf6",
    "#ec4899",
    "#14b8a6",
    "#f97316",
    "#6366f1",
    "#84cc16",
]


def format_money(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}${cents_to_amount(abs(cents)):,.2f}"


def format_percentage(part: int, whole: int) -> str:
    return f"{percentage(part, whole):.1f}%"


class DashboardView:
    def __init__(self, state: BudgetState):
        self.state = state
        self.revision = 0
        self.summary: Summary = summarize(state.income, state.expenses)
        state.subscribe(self.on_change)

    def on_change(self, event: StateEvent) -> None:
        self.revision += 1
        self.summary = summarize(self.state.income, self.state.expenses)

    def close(self) -> None:
        self.state.unsubscribe(self.on_change)


def summary_chart(summary: Summary) -> dict:
    whole = summary.income_cents + summary.expense_cents
    return {
        "labels": ["Income", "Expenses"],
        "data": [
            float(cents_to_amount(summary.income_cents)),
            float(cents_to_amount(summary.expense_cents)),
        ],
        "colors": [INCOME_COLOR, EXPENSE_COLOR],
        "percentages": [
            format_percentage(summary.income_cents, whole),
            format_percentage(summary.expense_cents, whole),
        ],
    }


def category_chart(breakdown: list[dict]) -> dict:
    return {
        "labels": [row["category"] for row in breakdown],
        "data": [float(cents_to_amount(row["amount_cents"])) for row in breakdown],
        "colors": [PALETTE[i % len(PALETTE)] for i in range(len(breakdown))],
    }


def trend_chart(points) -> dict:
    return {
        "labels": [p.key for p in points],
        "income": [float(cents_to_amount(p.income_cents)) for p in points],
        "expenses": [float(cents_to_amount(p.expense_cents)) for p in points],
        "net": [float(cents_to_amount(p.net_cents)) for p in points],
    }


def categories(state: BudgetState) -> list[str]:
    return sorted({t.category for t in state.all() if t.category}, key=str.casefold)


def index_context(
    state: BudgetState,
    view: DashboardView,
    *,
    start: dt_date | None,
    end: dt_date | None,
    category: str | None = None,
    search: str | None = None,
) -> dict:
    income = filter_txns(state.income, start=start, end=end, category=category, search=search)
    expenses = filter_txns(
        state.expenses, start=start, end=end, category=category, search=search
    )
    period_summary = summarize(income, expenses)
    return {
        "income": income,
        "expenses": expenses,
        "summary": period_summary,
        "overall": view.summary,
        "chart": summary_chart(period_summary),
        "categories": categories(state),
        "revision": view.revision,
    }


def calendar_context(state: BudgetState, year: int, month: int) -> dict:
    weeks = daily_balances(state.income, state.expenses, year, month)
    in_month = [cell for week in weeks for cell in week if cell.in_month]
    prev_year, prev_month = (year - 1, 12) if month == 1 else (year, month - 1)
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    return {
        "weeks": weeks,
        "year": year,
        "month": month,
        "month_name": calendar.month_name[month],
        "weekday_names": list(calendar.day_abbr),
        "month_income": sum(c.income_cents for c in in_month),
        "month_expense": sum(c.expense_cents for c in in_month),
        "closing_balance": in_month[-1].balance_cents if in_month else 0,
        "prev": {"year": prev_year, "month": prev_month},
        "next": {"year": next_year, "month": next_month},
    }


def analytics_context(
    state: BudgetState,
    *,
    start: dt_date | None,
    end: dt_date | None,
    bucket: str = "month",
    threshold: float = 2.0,
) -> dict:
    income = filter_txns(state.income, start=start, end=end)
    expenses = filter_txns(state.expenses, start=start, end=end)
    expense_breakdown = category_breakdown(expenses)
    income_breakdown = category_breakdown(income)
    points = trend(income, expenses, bucket)
    return {
        "expense_breakdown": expense_breakdown,
        "income_breakdown": income_breakdown,
        "category_chart": category_chart(expense_breakdown),
        "trend": points,
        "trend_chart": trend_chart(points),
        "daily_expenses": group_by(expenses, "day"),
        "running_balance": running_balance(income, expenses),
        "expense_outliers": outliers(expenses, threshold),
        "income_outliers": outliers(income, threshold),
        "bucket": bucket,
        "summary": summarize(income, expenses),
    }
