from datetime import date as dt_date, timedelta

PERIODS = ("month", "quarter", "year", "custom", "all")


def _month_end(year: int, month: int) -> dt_date:
    if month == 12:
        next_month_start = dt_date(year + 1, 1, 1)
    else:
        next_month_start = dt_date(year, month + 1, 1)
    return next_month_start - timedelta(days=1)


def month_range(today: dt_date | None = None) -> tuple[dt_date, dt_date]:
    current = today or dt_date.today()
    return dt_date(current.year, current.month, 1), _month_end(
        current.year, current.month
    )


def quarter_range(today: dt_date | None = None) -> tuple[dt_date, dt_date]:
    current = today or dt_date.today()
    first_month = 3 * ((current.month - 1) // 3) + 1
    return dt_date(current.year, first_month, 1), _month_end(
        current.year, first_month + 2
    )


def year_range(today: dt_date | None = None) -> tuple[dt_date, dt_date]:
    current = today or dt_date.today()
    return dt_date(current.year, 1, 1), dt_date(current.year, 12, 31)


def _coerce(value) -> dt_date | None:
    if value is None or value == "":
        return None
    if isinstance(value, dt_date):
        return value
    try:
        return dt_date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"invalid date: {value}") from exc


def resolve_period(
    period: str = "month",
    today: dt_date | None = None,
    start=None,
    end=None,
) -> tuple[dt_date | None, dt_date | None]:
    if period == "month":
        return month_range(today)
    if period == "quarter":
        return quarter_range(today)
    if period == "year":
        return year_range(today)
    if period == "all":
        return None, None
    if period == "custom":
        start_date, end_date = _coerce(start), _coerce(end)
        if start_date is None or end_date is None:
            raise ValueError("custom period needs start and end")
        if start_date > end_date:
            start_date, end_date = end_date, start_date
        return start_date, end_date
    raise ValueError(f"unknown period: {period}")
