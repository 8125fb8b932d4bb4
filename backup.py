import logging
from datetime import datetime, timezone
from typing import Optional

from storage import DataStore


logger = logging.getLogger(__name__)


def export_backup(
    store: DataStore, owner_id: str, *, now: Optional[datetime] = None
) -> dict[str, object]:
    """Snapshot every collection the owner has, as plain JSON documents."""
    now = now or datetime.now(timezone.utc)
    results = {
        "clients": store.clients.list(owner_id),
        "transactions": store.transactions.list(owner_id),
        "credentials": store.credentials.list(owner_id),
        "workspaceTasks": store.workspace_tasks.list(owner_id),
    }
    data = {
        name: [record.to_document() for record in result.data]
        for name, result in results.items()
    }
    summary = {
        "totalClients": len(data["clients"]),
        "totalTransactions": len(data["transactions"]),
        "totalCredentials": len(data["credentials"]),
        "totalWorkspaceTasks": len(data["workspaceTasks"]),
    }
    logger.info(f"backup_export: owner={owner_id} summary={summary}")
    return {
        "exportDate": now.isoformat(),
        "userId": owner_id,
        "data": data,
        "summary": summary,
        "sources": {name: result.source.value for name, result in results.items()},
    }
