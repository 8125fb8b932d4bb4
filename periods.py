from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional


PERIOD_SLUGS = ("all", "week", "month", "30days", "custom")


@dataclass(frozen=True)
class Period:
    slug: str
    start: Optional[date]
    end: Optional[date]

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


def month_bounds(year: int, month: int) -> tuple[date, date]:
    first = date(year, month, 1)
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return first, next_month - date.resolution


def parse_month(value: str) -> tuple[int, int]:
    try:
        year_raw, month_raw = value.strip().split("-")
        year, month = int(year_raw), int(month_raw)
    except ValueError as exc:
        raise ValueError("Month must look like YYYY-MM") from exc
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 01 and 12")
    return year, month


def custom_period(year: int, month: int) -> Period:
    start, end = month_bounds(year, month)
    return Period("custom", start, end)


def resolve_period(
    period: Optional[str],
    month: Optional[str] = None,
    *,
    today: Optional[date] = None,
) -> Period:
    today = today or date.today()
    if not period or period == "all":
        return Period("all", None, None)
    if period == "week":
        return Period("week", today - timedelta(days=7), None)
    if period == "month":
        return Period("month", today.replace(day=1), None)
    if period == "30days":
        return Period("30days", today - timedelta(days=30), None)
    if period == "custom":
        if month:
            year, month_num = parse_month(month)
        else:
            year, month_num = today.year, today.month
        return custom_period(year, month_num)
    raise ValueError(f"Unknown period: {period}")
