"""Aggregations over in-memory record lists.

Everything here is a pure function of its arguments: "today" is always
passed in, nothing reads the clock, and results are recomputed from scratch
on every call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from models import TaskStatus, TransactionType
from periods import Period
from schemas import ClientOut, TransactionOut, WorkspaceTaskOut
from workspace import duration_ms


ALL_CLIENTS = "all"
NO_CLIENT = "no-client"
TOP_N = 5
UNKNOWN_CLIENT = "Unknown client"
MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass
class Aggregate:
    filtered: list[TransactionOut]
    totals: dict[str, float]
    series: list[dict[str, object]]
    breakdown: list[dict[str, object]] = field(default_factory=list)


def filter_by_client(
    records: Iterable[TransactionOut], client_filter: Optional[str]
) -> list[TransactionOut]:
    if not client_filter or client_filter == ALL_CLIENTS:
        return list(records)
    if client_filter == NO_CLIENT:
        return [r for r in records if not r.client_id]
    return [r for r in records if r.client_id == client_filter]


def filter_transactions(
    records: Iterable[TransactionOut],
    period: Period,
    client_filter: Optional[str] = ALL_CLIENTS,
) -> list[TransactionOut]:
    by_client = filter_by_client(records, client_filter)
    return [r for r in by_client if period.contains(r.date)]


def totals(records: Iterable[TransactionOut]) -> dict[str, float]:
    income = 0.0
    expense = 0.0
    for record in records:
        if record.type == TransactionType.income:
            income += record.amount
        elif record.type == TransactionType.expense:
            expense += record.amount
    return {"income": income, "expense": expense, "profit": income - expense}


def daily_span(period: Period) -> int:
    return 7 if period.slug in ("all", "week") else 30


def _day_label(day: date, span: int) -> str:
    label = f"{MONTH_NAMES[day.month - 1]} {day.day}"
    if span > 7:
        return label
    return f"{WEEKDAY_NAMES[day.weekday()]}, {label}"


def _trailing_days(today: date, span: int) -> list[date]:
    return [today - timedelta(days=offset) for offset in range(span - 1, -1, -1)]


def daily_series(
    records: Sequence[TransactionOut], period: Period, today: date
) -> list[dict[str, object]]:
    span = daily_span(period)
    income_by_day: dict[str, float] = {}
    expense_by_day: dict[str, float] = {}
    for record in records:
        key = record.date.isoformat()
        bucket = income_by_day if record.type == TransactionType.income else expense_by_day
        bucket[key] = bucket.get(key, 0.0) + record.amount

    series = []
    for day in _trailing_days(today, span):
        key = day.isoformat()
        series.append(
            {
                "date": key,
                "label": _day_label(day, span),
                "income": income_by_day.get(key, 0.0),
                "expense": expense_by_day.get(key, 0.0),
            }
        )
    return series


def monthly_series(
    records: Sequence[TransactionOut], today: date
) -> list[dict[str, object]]:
    # buckets by month name only; the same month of different years is merged
    income = [0.0] * 12
    expense = [0.0] * 12
    for record in records:
        idx = record.date.month - 1
        if record.type == TransactionType.income:
            income[idx] += record.amount
        else:
            expense[idx] += record.amount

    series = []
    for idx, name in enumerate(MONTH_NAMES):
        if income[idx] > 0 or expense[idx] > 0 or idx == today.month - 1:
            series.append({"name": name, "income": income[idx], "expense": expense[idx]})
    return series


def category_breakdown(
    records: Iterable[TransactionOut], limit: int = TOP_N
) -> list[dict[str, object]]:
    sums: dict[str, float] = {}
    for record in records:
        if record.type != TransactionType.expense:
            continue
        sums[record.category] = sums.get(record.category, 0.0) + record.amount
    ranked = sorted(sums.items(), key=lambda item: item[1], reverse=True)
    return [{"category": name, "value": value} for name, value in ranked[:limit]]


def aggregate(
    records: Sequence[TransactionOut],
    period: Period,
    client_filter: Optional[str] = ALL_CLIENTS,
    *,
    today: date,
    timeframe: str = "daily",
) -> Aggregate:
    filtered = filter_transactions(records, period, client_filter)
    if timeframe == "monthly":
        series = monthly_series(filtered, today)
    elif timeframe == "daily":
        series = daily_series(filtered, period, today)
    else:
        raise ValueError(f"Unknown timeframe: {timeframe}")
    return Aggregate(
        filtered=filtered,
        totals=totals(filtered),
        series=series,
        breakdown=category_breakdown(filtered),
    )


def client_earnings(transactions: Iterable[TransactionOut]) -> dict[str, float]:
    earnings: dict[str, float] = {}
    for txn in transactions:
        if txn.client_id and txn.type == TransactionType.income:
            earnings[txn.client_id] = earnings.get(txn.client_id, 0.0) + txn.amount
    return earnings


def rank_clients(
    clients: Iterable[ClientOut],
    transactions: Iterable[TransactionOut],
    search: str = "",
) -> list[tuple[ClientOut, float]]:
    earnings = client_earnings(transactions)
    needle = search.strip().lower()
    matches = [
        c
        for c in clients
        if needle in c.name.lower() or needle in c.platform.value.lower()
    ]
    matches.sort(key=lambda c: earnings.get(c.id, 0.0), reverse=True)
    return [(c, earnings.get(c.id, 0.0)) for c in matches]


def client_breakdown(
    transactions: Iterable[TransactionOut],
    clients: Iterable[ClientOut],
    limit: int = TOP_N,
) -> list[dict[str, object]]:
    names = {c.id: c.name for c in clients}
    ranked = sorted(client_earnings(transactions).items(), key=lambda i: i[1], reverse=True)
    return [
        {
            "client_id": client_id,
            "name": names.get(client_id, UNKNOWN_CLIENT),
            "value": value,
        }
        for client_id, value in ranked[:limit]
    ]


def insights(
    transactions: Sequence[TransactionOut], clients: Iterable[ClientOut]
) -> Optional[dict[str, object]]:
    if not transactions:
        return None
    summary = totals(transactions)
    income = summary["income"]
    profit = summary["profit"]
    months = max(1, len({t.date.strftime("%Y-%m") for t in transactions}))

    top_expense = category_breakdown(transactions, limit=1)
    top_client = None
    ranked = client_breakdown(transactions, clients, limit=1)
    if ranked and ranked[0]["name"] != UNKNOWN_CLIENT:
        top_client = {"name": ranked[0]["name"], "amount": ranked[0]["value"]}

    return {
        "total_income": income,
        "total_expense": summary["expense"],
        "profit": profit,
        "monthly_income": income / months,
        "monthly_expense": summary["expense"] / months,
        "top_expense": (
            {"category": top_expense[0]["category"], "amount": top_expense[0]["value"]}
            if top_expense
            else None
        ),
        "top_client": top_client,
        "profit_margin": (profit / income * 100) if income > 0 else 0.0,
    }


def filter_tasks(
    tasks: Iterable[WorkspaceTaskOut],
    period: Period,
    status: Optional[TaskStatus] = None,
) -> list[WorkspaceTaskOut]:
    selected = [
        t
        for t in tasks
        if period.contains(t.due_date) and (status is None or t.status == status)
    ]
    selected.sort(key=lambda t: t.created_at, reverse=True)
    return selected


def _status_counts(tasks: Iterable[WorkspaceTaskOut]) -> dict[TaskStatus, int]:
    counts = {status: 0 for status in TaskStatus}
    for task in tasks:
        counts[task.status] += 1
    return counts


def workspace_stats(
    tasks: Sequence[WorkspaceTaskOut], period: Period, today: date
) -> dict[str, object]:
    selected = filter_tasks(tasks, period)
    counts = _status_counts(selected)

    span = daily_span(period)
    progress = []
    for day in _trailing_days(today, span):
        due = _status_counts(t for t in selected if t.due_date == day)
        progress.append(
            {
                "date": day.isoformat(),
                "label": _day_label(day, span),
                "pending": due[TaskStatus.pending],
                "working": due[TaskStatus.working],
                "completed": due[TaskStatus.completed],
            }
        )

    durations = [d for d in (duration_ms(t) for t in selected) if d is not None]
    return {
        "total": len(selected),
        "pending": counts[TaskStatus.pending],
        "working": counts[TaskStatus.working],
        "completed": counts[TaskStatus.completed],
        "status_distribution": [
            {"name": status.value.capitalize(), "value": counts[status]}
            for status in TaskStatus
        ],
        "daily_progress": progress,
        "average_duration_ms": (sum(durations) / len(durations)) if durations else None,
    }
