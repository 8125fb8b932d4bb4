"""Persistence facade over the remote and local document stores.

Every operation is routed by owner: owners named in the routing policy are
served from local storage, everyone else from the remote store. A remote
error is logged and the same operation is repeated against local storage.
Callers never see an exception; the returned ``StoreResult`` says which path
produced the data.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Generic, Iterable, Optional, TypeVar

from changes import ChangeFeed, Unsubscribe
from config import Settings, get_settings
from database import create_store_engine
from local_store import FileStorage, KeyValueStorage, LocalDocumentStore
from models import TaskStatus
from remote_store import RemoteDocumentStore
from schemas import (
    CLIENTS,
    CREDENTIALS,
    TRANSACTIONS,
    WORKSPACE_TASKS,
    ClientOut,
    Collection,
    WireModel,
    WorkspaceTaskOut,
)
from workspace import apply_status


logger = logging.getLogger(__name__)

T = TypeVar("T")


def now_ms() -> int:
    return int(time.time() * 1000)


class ResultSource(str, Enum):
    remote = "remote"
    local = "local"
    local_fallback = "local_fallback"
    failure = "failure"


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    source: ResultSource
    data: T
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.source != ResultSource.failure


@dataclass(frozen=True)
class RoutingPolicy:
    local_owner_ids: frozenset[str] = frozenset()

    def uses_local(self, owner_id: str) -> bool:
        return owner_id in self.local_owner_ids


class Repository:
    def __init__(
        self,
        collection: Collection,
        local: LocalDocumentStore,
        remote: Optional[RemoteDocumentStore],
        routing: RoutingPolicy,
        feed: ChangeFeed,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.collection = collection
        self.local = local
        self.remote = remote
        self.routing = routing
        self.feed = feed
        self.clock = clock

    def _run(
        self,
        action: str,
        owner_id: str,
        operation: Callable[[object], T],
        empty: T,
    ) -> StoreResult[T]:
        key = self.collection.key
        if self.routing.uses_local(owner_id):
            try:
                return StoreResult(ResultSource.local, operation(self.local))
            except Exception as exc:
                logger.exception(f"local_{action}_failed: collection={key} owner={owner_id}")
                return StoreResult(ResultSource.failure, empty, str(exc))

        try:
            if self.remote is None:
                raise RuntimeError("Remote store is not configured")
            return StoreResult(ResultSource.remote, operation(self.remote))
        except Exception as exc:
            logger.warning(
                f"remote_{action}_failed: collection={key} owner={owner_id} "
                f"error={exc!r}; using local storage"
            )
            try:
                return StoreResult(
                    ResultSource.local_fallback, operation(self.local), str(exc)
                )
            except Exception as local_exc:
                logger.exception(
                    f"local_{action}_failed: collection={key} owner={owner_id}"
                )
                return StoreResult(ResultSource.failure, empty, str(local_exc))

    def list(self, owner_id: str) -> StoreResult[list]:
        return self._run(
            "list",
            owner_id,
            lambda store: store.list(self.collection, owner_id),
            [],
        )

    def _build(self, owner_id: str, data: WireModel) -> WireModel:
        values = data.model_dump()
        values["id"] = str(uuid.uuid4())
        values["owner_id"] = owner_id
        if self.collection.stamped:
            values["created_at"] = self.clock()
        return self.collection.record.model_validate(values)

    def create(self, owner_id: str, data: WireModel) -> StoreResult[Optional[str]]:
        record = self._build(owner_id, data)

        def insert(store) -> str:
            store.insert(self.collection, record)
            return record.id

        return self._run("create", owner_id, insert, None)

    def remove(self, owner_id: str, record_id: str) -> StoreResult[None]:
        def delete(store) -> None:
            store.delete(self.collection, owner_id, record_id)

        return self._run("remove", owner_id, delete, None)

    def subscribe(
        self, owner_id: str, on_change: Callable[[list], None]
    ) -> Unsubscribe:
        """Deliver the owner's full list now and after every change."""

        def deliver() -> None:
            on_change(self.list(owner_id).data)

        unsubscribe = self.feed.subscribe(self.collection.key, owner_id, deliver)
        try:
            deliver()
        except Exception:
            logger.exception(
                f"change_listener_failed: collection={self.collection.key} owner={owner_id}"
            )
        return unsubscribe


class ClientRepository(Repository):
    @staticmethod
    def lookup(clients: Iterable[ClientOut], client_id: Optional[str]) -> Optional[ClientOut]:
        # transactions and tasks may point at deleted clients
        if not client_id:
            return None
        for client in clients:
            if client.id == client_id:
                return client
        return None


class WorkspaceTaskRepository(Repository):
    def _build(self, owner_id: str, data: WireModel) -> WireModel:
        record = super()._build(owner_id, data)
        changes = apply_status(record, record.status, record.created_at)
        return record.model_copy(update=changes)

    def set_status(
        self, owner_id: str, task_id: str, status: TaskStatus
    ) -> StoreResult[Optional[WorkspaceTaskOut]]:
        def update(store) -> Optional[WorkspaceTaskOut]:
            tasks = store.list(self.collection, owner_id)
            task = next((t for t in tasks if t.id == task_id), None)
            if task is None:
                return None
            changes = apply_status(task, status, self.clock())
            return store.update(self.collection, owner_id, task_id, changes)

        return self._run("set_status", owner_id, update, None)


class DataStore:
    def __init__(
        self,
        local: LocalDocumentStore,
        remote: Optional[RemoteDocumentStore],
        routing: RoutingPolicy,
        feed: ChangeFeed,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.local = local
        self.remote = remote
        self.routing = routing
        self.feed = feed
        args = (local, remote, routing, feed, clock)
        self.clients = ClientRepository(CLIENTS, *args)
        self.transactions = Repository(TRANSACTIONS, *args)
        self.credentials = Repository(CREDENTIALS, *args)
        self.workspace_tasks = WorkspaceTaskRepository(WORKSPACE_TASKS, *args)

    def repositories(self) -> list[Repository]:
        return [self.clients, self.transactions, self.credentials, self.workspace_tasks]

    @classmethod
    def build(
        cls,
        storage: KeyValueStorage,
        *,
        database_url: Optional[str] = None,
        local_owner_ids: Iterable[str] = (),
        clock: Callable[[], int] = now_ms,
    ) -> "DataStore":
        feed = ChangeFeed()
        local = LocalDocumentStore(storage, feed)
        remote = None
        if database_url:
            remote = RemoteDocumentStore(create_store_engine(database_url), feed)
        routing = RoutingPolicy(frozenset(local_owner_ids))
        return cls(local, remote, routing, feed, clock)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "DataStore":
        settings = settings or get_settings()
        storage = FileStorage(Path(settings.data_dir) / "local_storage")
        return cls.build(
            storage,
            database_url=settings.database_url,
            local_owner_ids=settings.local_owner_ids,
        )
