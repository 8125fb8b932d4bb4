from datetime import date

import pytest

from analytics import (
    ALL_CLIENTS,
    NO_CLIENT,
    aggregate,
    category_breakdown,
    client_breakdown,
    daily_series,
    filter_tasks,
    filter_transactions,
    insights,
    monthly_series,
    rank_clients,
    totals,
    workspace_stats,
)
from models import Platform, ProjectType, TaskStatus, TransactionType
from periods import resolve_period
from schemas import ClientOut, TransactionOut, WorkspaceTaskOut


TODAY = date(2024, 3, 10)


def _txn(
    amount: float,
    type_: TransactionType,
    day: str,
    category: str = "General",
    client_id=None,
    txn_id: str = "",
) -> TransactionOut:
    return TransactionOut(
        id=txn_id or f"{type_.value}-{day}-{amount}",
        owner_id="u1",
        amount=amount,
        type=type_,
        category=category,
        date=date.fromisoformat(day),
        note="",
        client_id=client_id,
    )


def _client(client_id: str, name: str, platform=Platform.youtube) -> ClientOut:
    return ClientOut(
        id=client_id,
        owner_id="u1",
        name=name,
        platform=platform,
        project_type=ProjectType.thumbnail,
        created_at=1,
    )


def _ledger() -> list[TransactionOut]:
    return [
        _txn(1000, TransactionType.income, "2024-03-09", "Editing", "c1"),
        _txn(250, TransactionType.expense, "2024-03-09", "Software"),
        _txn(400, TransactionType.income, "2024-03-01", "Thumbnails", "c2"),
        _txn(80, TransactionType.expense, "2024-02-20", "Hardware", "c1"),
        _txn(600, TransactionType.income, "2023-03-05", "Editing", "gone"),
    ]


def test_literal_scenario_totals_and_breakdown():
    records = [
        _txn(1000, TransactionType.income, "2024-01-05"),
        _txn(300, TransactionType.expense, "2024-01-05", "Software"),
    ]
    result = aggregate(records, resolve_period("all", today=TODAY), today=TODAY)
    assert result.totals == {"income": 1000, "expense": 300, "profit": 700}
    assert result.breakdown == [{"category": "Software", "value": 300}]


def test_profit_is_income_minus_expense():
    summary = totals(_ledger())
    assert summary["income"] >= 0 and summary["expense"] >= 0
    assert summary["profit"] == summary["income"] - summary["expense"]


def test_client_filters_partition_the_ledger():
    ledger = _ledger()
    period = resolve_period("all", today=TODAY)
    everything = filter_transactions(ledger, period, ALL_CLIENTS)
    unassigned = filter_transactions(ledger, period, NO_CLIENT)
    per_client = [
        filter_transactions(ledger, period, client_id)
        for client_id in {t.client_id for t in ledger if t.client_id}
    ]
    assert len(everything) == len(ledger)
    assert sum(len(part) for part in per_client) + len(unassigned) == len(ledger)
    for part in per_client:
        assert set(t.id for t in part) < set(t.id for t in everything)


def test_client_filter_applies_before_window():
    period = resolve_period("month", today=TODAY)
    filtered = filter_transactions(_ledger(), period, "c1")
    assert [t.amount for t in filtered] == [1000]


def test_daily_series_sums_match_filtered_records():
    period = resolve_period("week", today=TODAY)
    result = aggregate(_ledger(), period, today=TODAY)
    assert len(result.series) == 7
    assert result.series[-1]["date"] == "2024-03-10"
    assert result.series[0]["label"] == "Mon, Mar 4"
    for bucket in result.series:
        same_day = [t for t in result.filtered if t.date.isoformat() == bucket["date"]]
        assert bucket["income"] == sum(
            t.amount for t in same_day if t.type == TransactionType.income
        )
        assert bucket["expense"] == sum(
            t.amount for t in same_day if t.type == TransactionType.expense
        )


@pytest.mark.parametrize(
    ("slug", "span"),
    [("all", 7), ("week", 7), ("month", 30), ("30days", 30), ("custom", 30)],
)
def test_daily_series_span_per_window(slug, span):
    period = resolve_period(slug, "2024-02", today=TODAY)
    series = daily_series([], period, TODAY)
    assert len(series) == span
    assert series[-1]["date"] == TODAY.isoformat()


def test_monthly_series_merges_years_and_keeps_current_month():
    series = monthly_series(_ledger(), date(2024, 7, 1))
    by_name = {bucket["name"]: bucket for bucket in series}
    assert [b["name"] for b in series] == ["Feb", "Mar", "Jul"]
    assert by_name["Mar"]["income"] == 2000
    assert by_name["Mar"]["expense"] == 250
    assert by_name["Jul"] == {"name": "Jul", "income": 0, "expense": 0}


def test_breakdown_keeps_top_five_with_stable_ties():
    records = [
        _txn(10, TransactionType.expense, "2024-03-01", name)
        for name in ["A", "B", "C", "D", "E", "F"]
    ]
    records.append(_txn(50, TransactionType.expense, "2024-03-01", "F"))
    records.append(_txn(999, TransactionType.income, "2024-03-01", "Salary"))
    breakdown = category_breakdown(records)
    assert [row["category"] for row in breakdown] == ["F", "A", "B", "C", "D"]
    assert breakdown[0]["value"] == 60


def test_unknown_timeframe_raises():
    with pytest.raises(ValueError):
        aggregate([], resolve_period("all", today=TODAY), today=TODAY, timeframe="yearly")


def test_aggregate_is_deterministic():
    period = resolve_period("30days", today=TODAY)
    first = aggregate(_ledger(), period, "c1", today=TODAY, timeframe="monthly")
    second = aggregate(_ledger(), period, "c1", today=TODAY, timeframe="monthly")
    assert first == second


def test_rank_clients_orders_by_earnings_and_searches_platform():
    clients = [
        _client("c1", "Acme"),
        _client("c2", "Beta Studio", Platform.instagram),
        _client("c3", "Gamma"),
    ]
    ranked = rank_clients(clients, _ledger())
    assert [(c.id, earned) for c, earned in ranked] == [
        ("c1", 1000),
        ("c2", 400),
        ("c3", 0),
    ]
    assert [c.id for c, _ in rank_clients(clients, _ledger(), "insta")] == ["c2"]


def test_client_breakdown_labels_dangling_references():
    rows = client_breakdown(_ledger(), [_client("c1", "Acme")])
    assert rows[0] == {"client_id": "c1", "name": "Acme", "value": 1000}
    assert {"client_id": "gone", "name": "Unknown client", "value": 600} in rows


def test_insights_summary():
    summary = insights(_ledger(), [_client("c1", "Acme")])
    assert summary["total_income"] == 2000
    assert summary["total_expense"] == 330
    assert summary["monthly_income"] == pytest.approx(2000 / 3)
    assert summary["top_expense"] == {"category": "Software", "amount": 250}
    assert summary["top_client"] == {"name": "Acme", "amount": 1000}
    assert summary["profit_margin"] == pytest.approx(1670 / 2000 * 100)


def test_insights_skips_top_client_that_was_deleted():
    summary = insights([_txn(5, TransactionType.income, "2024-01-01", client_id="x")], [])
    assert summary["top_client"] is None


def test_insights_empty_ledger():
    assert insights([], []) is None


def _task(task_id: str, status: TaskStatus, due: str, created_at: int, **extra):
    return WorkspaceTaskOut(
        id=task_id,
        owner_id="u1",
        client_id="c1",
        title=f"Task {task_id}",
        status=status,
        due_date=date.fromisoformat(due),
        created_at=created_at,
        **extra,
    )


def test_filter_tasks_by_window_and_status():
    tasks = [
        _task("a", TaskStatus.pending, "2024-03-09", 1),
        _task("b", TaskStatus.working, "2024-03-09", 3),
        _task("c", TaskStatus.pending, "2024-01-01", 2),
    ]
    week = resolve_period("week", today=TODAY)
    assert [t.id for t in filter_tasks(tasks, week)] == ["b", "a"]
    assert [t.id for t in filter_tasks(tasks, week, TaskStatus.pending)] == ["a"]


def test_workspace_stats_counts_and_progress():
    tasks = [
        _task("a", TaskStatus.pending, "2024-03-09", 1),
        _task(
            "b",
            TaskStatus.completed,
            "2024-03-10",
            2,
            started_at=1_000,
            completed_at=4_000,
        ),
        _task("c", TaskStatus.working, "2024-03-10", 3, started_at=2_000),
    ]
    stats = workspace_stats(tasks, resolve_period("all", today=TODAY), TODAY)
    assert (stats["total"], stats["pending"], stats["working"], stats["completed"]) == (
        3,
        1,
        1,
        1,
    )
    assert stats["status_distribution"][0] == {"name": "Pending", "value": 1}
    assert stats["daily_progress"][-1] == {
        "date": "2024-03-10",
        "label": "Sun, Mar 10",
        "pending": 0,
        "working": 1,
        "completed": 1,
    }
    assert stats["average_duration_ms"] == 3_000
