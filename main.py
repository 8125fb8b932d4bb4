import logging
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, Header, HTTPException, Request

from analytics import (
    ALL_CLIENTS,
    aggregate,
    client_breakdown,
    filter_by_client,
    filter_tasks,
    filter_transactions,
    insights,
    rank_clients,
    workspace_stats,
)
from backup import export_backup
from config import get_settings
from models import TaskStatus, TransactionType
from periods import Period, resolve_period
from scheduler import RemoteChangeWatcher
from schemas import (
    ClientIn,
    CredentialIn,
    TaskStatusIn,
    TransactionIn,
    WorkspaceTaskIn,
)
from storage import DataStore, Repository, ResultSource, StoreResult


logger = logging.getLogger(__name__)


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()

app = FastAPI(title="Edit IQ", version=APP_VERSION)

data_store = DataStore.from_settings()
change_watcher = RemoteChangeWatcher(data_store)


@app.on_event("startup")
def startup_event():
    change_watcher.start()


@app.on_event("shutdown")
def shutdown_event():
    change_watcher.stop()


def get_store() -> DataStore:
    return data_store


def get_today() -> date:
    return datetime.now(ZoneInfo(get_settings().timezone)).date()


def get_owner_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    owner_id = (x_user_id or "").strip()
    return owner_id or get_settings().demo_user_id


def period_from_request(request: Request, today: date) -> Period:
    period_slug = request.query_params.get("period")
    month = request.query_params.get("month")
    try:
        return resolve_period(period_slug, month, today=today)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def status_from_request(request: Request) -> Optional[TaskStatus]:
    raw = (request.query_params.get("status") or "").strip().upper()
    if not raw or raw == "ALL":
        return None
    try:
        return TaskStatus(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Unknown status: {raw}") from exc


def listing(result: StoreResult, items: list) -> dict[str, object]:
    return {
        "source": result.source.value,
        "items": [record.to_document() for record in items],
    }


def created(result: StoreResult) -> dict[str, object]:
    if result.source == ResultSource.failure:
        raise HTTPException(status_code=503, detail=result.reason or "Storage unavailable")
    return {"id": result.data, "source": result.source.value}


def removed(result: StoreResult) -> dict[str, object]:
    if result.source == ResultSource.failure:
        raise HTTPException(status_code=503, detail=result.reason or "Storage unavailable")
    return {"source": result.source.value}


def _list_all(repo: Repository, owner_id: str) -> dict[str, object]:
    result = repo.list(owner_id)
    return listing(result, result.data)


@app.get("/api/clients")
def api_clients(
    request: Request,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    clients = store.clients.list(owner_id)
    transactions = store.transactions.list(owner_id)
    ranked = rank_clients(clients.data, transactions.data, request.query_params.get("q", ""))
    return {
        "source": clients.source.value,
        "items": [
            {**client.to_document(), "earnings": earnings} for client, earnings in ranked
        ],
    }


@app.post("/api/clients", status_code=201)
def api_create_client(
    payload: ClientIn,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    return created(store.clients.create(owner_id, payload))


@app.delete("/api/clients/{client_id}")
def api_delete_client(
    client_id: str,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    return removed(store.clients.remove(owner_id, client_id))


@app.get("/api/clients/{client_id}/history")
def api_client_history(
    client_id: str,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    result = store.transactions.list(owner_id)
    history = [
        txn
        for txn in filter_by_client(result.data, client_id)
        if txn.type == TransactionType.income
    ]
    return listing(result, history)


@app.get("/api/transactions")
def api_transactions(
    request: Request,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
    today: date = Depends(get_today),
):
    period = period_from_request(request, today)
    client_filter = request.query_params.get("client", ALL_CLIENTS)
    result = store.transactions.list(owner_id)
    items = filter_transactions(result.data, period, client_filter)
    payload = listing(result, items)
    payload["total"] = len(result.data)
    return payload


@app.post("/api/transactions", status_code=201)
def api_create_transaction(
    payload: TransactionIn,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    return created(store.transactions.create(owner_id, payload))


@app.delete("/api/transactions/{transaction_id}")
def api_delete_transaction(
    transaction_id: str,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    return removed(store.transactions.remove(owner_id, transaction_id))


@app.get("/api/credentials")
def api_credentials(
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    return _list_all(store.credentials, owner_id)


@app.post("/api/credentials", status_code=201)
def api_create_credential(
    payload: CredentialIn,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    return created(store.credentials.create(owner_id, payload))


@app.delete("/api/credentials/{credential_id}")
def api_delete_credential(
    credential_id: str,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    return removed(store.credentials.remove(owner_id, credential_id))


@app.get("/api/workspace/tasks")
def api_workspace_tasks(
    request: Request,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
    today: date = Depends(get_today),
):
    period = period_from_request(request, today)
    status = status_from_request(request)
    result = store.workspace_tasks.list(owner_id)
    return listing(result, filter_tasks(result.data, period, status))


@app.post("/api/workspace/tasks", status_code=201)
def api_create_workspace_task(
    payload: WorkspaceTaskIn,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    return created(store.workspace_tasks.create(owner_id, payload))


@app.patch("/api/workspace/tasks/{task_id}/status")
def api_update_task_status(
    task_id: str,
    payload: TaskStatusIn,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    result = store.workspace_tasks.set_status(owner_id, task_id, payload.status)
    if result.source == ResultSource.failure:
        raise HTTPException(status_code=503, detail=result.reason or "Storage unavailable")
    if result.data is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"source": result.source.value, "task": result.data.to_document()}


@app.delete("/api/workspace/tasks/{task_id}")
def api_delete_workspace_task(
    task_id: str,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    return removed(store.workspace_tasks.remove(owner_id, task_id))


@app.get("/api/workspace/stats")
def api_workspace_stats(
    request: Request,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
    today: date = Depends(get_today),
):
    period = period_from_request(request, today)
    result = store.workspace_tasks.list(owner_id)
    stats = workspace_stats(result.data, period, today)
    stats["source"] = result.source.value
    return stats


@app.get("/api/dashboard")
def api_dashboard(
    request: Request,
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
    today: date = Depends(get_today),
):
    period = period_from_request(request, today)
    client_filter = request.query_params.get("client", ALL_CLIENTS)
    timeframe = request.query_params.get("timeframe", "daily")
    transactions = store.transactions.list(owner_id)
    clients = store.clients.list(owner_id)
    try:
        result = aggregate(
            transactions.data, period, client_filter, today=today, timeframe=timeframe
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "source": transactions.source.value,
        "period": period.slug,
        "totals": result.totals,
        "series": result.series,
        "breakdown": result.breakdown,
        "clients": client_breakdown(result.filtered, clients.data),
        "transactions": [txn.to_document() for txn in result.filtered],
    }


@app.get("/api/insights")
def api_insights(
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    transactions = store.transactions.list(owner_id)
    clients = store.clients.list(owner_id)
    return {
        "source": transactions.source.value,
        "insights": insights(transactions.data, clients.data),
    }


@app.get("/api/backup")
def api_backup(
    owner_id: str = Depends(get_owner_id),
    store: DataStore = Depends(get_store),
):
    return export_backup(store, owner_id)
