"""
Aggregation over transaction lists.

Everything here is a pure function of its arguments: callers pass in the
lists held by ``BudgetState`` and get plain values back. Empty input always
gives zero or empty results.
"""

import calendar
import statistics
from collections import defaultdict
from dataclasses import dataclass
from datetime import date as dt_date

from .models import Transaction

UNCATEGORIZED = "Uncategorized"
GROUP_KEYS = ("day", "week", "month", "category")


@dataclass(frozen=True)
class Summary:
    income_cents: int
    expense_cents: int
    balance_cents: int
    income_count: int
    expense_count: int


@dataclass(frozen=True)
class TrendPoint:
    key: str
    income_cents: int
    expense_cents: int
    net_cents: int


@dataclass(frozen=True)
class DayCell:
    day: dt_date
    in_month: bool
    income_cents: int
    expense_cents: int
    net_cents: int
    balance_cents: int


def total(txns) -> int:
    return sum(t.amount_cents for t in txns)


def summarize(income, expenses) -> Summary:
    income_cents = total(income)
    expense_cents = total(expenses)
    return Summary(
        income_cents=income_cents,
        expense_cents=expense_cents,
        balance_cents=income_cents - expense_cents,
        income_count=len(income),
        expense_count=len(expenses),
    )


def percentage(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return part / whole * 100


def sort_txns(txns) -> list[Transaction]:
    return sorted(txns, key=lambda t: (t.date, t.id), reverse=True)


def filter_txns(
    txns,
    *,
    start: dt_date | None = None,
    end: dt_date | None = None,
    category: str | None = None,
    search: str | None = None,
    kind: str | None = None,
) -> list[Transaction]:
    category_key = category.strip().casefold() if category else None
    needle = search.strip().casefold() if search else None
    result = []
    for txn in txns:
        day = txn.date.date()
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        if kind is not None and txn.kind != kind:
            continue
        if category_key and txn.category.strip().casefold() != category_key:
            continue
        if needle and (
            needle not in txn.description.casefold()
            and needle not in txn.category.casefold()
        ):
            continue
        result.append(txn)
    return sort_txns(result)


def bucket_key(txn: Transaction, key: str) -> str:
    if key == "day":
        return txn.date.date().isoformat()
    if key == "week":
        year, week, _ = txn.date.isocalendar()
        return f"{year}-W{week:02d}"
    if key == "month":
        return f"{txn.date.year}-{txn.date.month:02d}"
    if key == "category":
        return txn.category.strip() or UNCATEGORIZED
    raise ValueError(f"unknown group key: {key}")


def group_by(txns, key: str) -> dict[str, int]:
    buckets: dict[str, int] = defaultdict(int)
    for txn in txns:
        buckets[bucket_key(txn, key)] += txn.amount_cents
    if key == "category":
        ordered = sorted(buckets.items(), key=lambda item: (-item[1], item[0]))
    else:
        ordered = sorted(buckets.items())
    return dict(ordered)


def category_breakdown(txns) -> list[dict]:
    grouped = group_by(txns, "category")
    whole = sum(grouped.values())
    return [
        {
            "category": name,
            "amount_cents": amount,
            "percentage": percentage(amount, whole),
        }
        for name, amount in grouped.items()
    ]


def trend(income, expenses, key: str = "month") -> list[TrendPoint]:
    income_buckets = group_by(income, key)
    expense_buckets = group_by(expenses, key)
    points = []
    for bucket in sorted(set(income_buckets) | set(expense_buckets)):
        inc = income_buckets.get(bucket, 0)
        exp = expense_buckets.get(bucket, 0)
        points.append(TrendPoint(bucket, inc, exp, inc - exp))
    return points


def _daily_net(income, expenses) -> tuple[dict, dict]:
    inc: dict[dt_date, int] = defaultdict(int)
    exp: dict[dt_date, int] = defaultdict(int)
    for txn in income:
        inc[txn.date.date()] += txn.amount_cents
    for txn in expenses:
        exp[txn.date.date()] += txn.amount_cents
    return inc, exp


def running_balance(income, expenses) -> list[tuple[dt_date, int]]:
    inc, exp = _daily_net(income, expenses)
    balance = 0
    points = []
    for day in sorted(set(inc) | set(exp)):
        balance += inc.get(day, 0) - exp.get(day, 0)
        points.append((day, balance))
    return points


def daily_balances(income, expenses, year: int, month: int) -> list[list[DayCell]]:
    """Month grid, Monday first, with each day's net and end-of-day balance."""
    weeks = calendar.Calendar(firstweekday=0).monthdatescalendar(year, month)
    inc, exp = _daily_net(income, expenses)
    first_day = weeks[0][0]
    balance = sum(v for d, v in inc.items() if d < first_day) - sum(
        v for d, v in exp.items() if d < first_day
    )
    grid = []
    for week in weeks:
        row = []
        for day in week:
            day_income = inc.get(day, 0)
            day_expense = exp.get(day, 0)
            balance += day_income - day_expense
            row.append(
                DayCell(
                    day=day,
                    in_month=day.month == month,
                    income_cents=day_income,
                    expense_cents=day_expense,
                    net_cents=day_income - day_expense,
                    balance_cents=balance,
                )
            )
        grid.append(row)
    return grid


def outliers(txns, threshold: float = 2.0) -> list[Transaction]:
    txns = list(txns)
    if len(txns) < 2:
        return []
    amounts = [t.amount_cents for t in txns]
    mean = statistics.fmean(amounts)
    deviation = statistics.pstdev(amounts)
    if deviation == 0:
        return []
    return [t for t in txns if abs(t.amount_cents - mean) > threshold * deviation]
