"""Local storage adapter.

Each collection is one JSON array under a fixed key, holding the records of
every owner; reads filter by owner in memory.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from changes import ChangeFeed
from schemas import Collection, WireModel


logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...


class MemoryStorage:
    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class FileStorage:
    """One ``<key>.json`` file per key; survives restarts."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)


class LocalDocumentStore:
    def __init__(self, storage: KeyValueStorage, feed: ChangeFeed) -> None:
        self.storage = storage
        self.feed = feed
        self._lock = threading.RLock()

    def _read(self, collection: Collection) -> list[dict[str, Any]]:
        raw = self.storage.get_item(collection.key)
        if not raw:
            return []
        documents = json.loads(raw)
        if not isinstance(documents, list):
            raise ValueError(f"Local storage key {collection.key!r} is not a JSON array")
        return documents

    def _write(self, collection: Collection, documents: list[dict[str, Any]]) -> None:
        self.storage.set_item(collection.key, json.dumps(documents))

    def list(self, collection: Collection, owner_id: str) -> list[WireModel]:
        with self._lock:
            documents = self._read(collection)
        records = []
        for doc in documents:
            if doc.get("userId") != owner_id:
                continue
            try:
                records.append(collection.record.model_validate(doc))
            except ValidationError as exc:
                logger.warning(
                    f"local_store_skip: collection={collection.key} id={doc.get('id')} error={exc}"
                )
        records.sort(key=lambda r: getattr(r, collection.order_by), reverse=True)
        return records

    def insert(self, collection: Collection, record: WireModel) -> None:
        with self._lock:
            documents = self._read(collection)
            documents.append(record.to_document())
            self._write(collection, documents)
        logger.info(f"local_store_insert: collection={collection.key} id={record.id}")
        self.feed.publish(collection.key, record.owner_id)

    def delete(self, collection: Collection, owner_id: str, record_id: str) -> bool:
        with self._lock:
            documents = self._read(collection)
            kept = [
                doc
                for doc in documents
                if doc.get("id") != record_id or doc.get("userId") != owner_id
            ]
            if len(kept) == len(documents):
                return False
            self._write(collection, kept)
        self.feed.publish(collection.key, owner_id)
        return True

    def update(
        self,
        collection: Collection,
        owner_id: str,
        record_id: str,
        changes: dict[str, Any],
    ) -> Optional[WireModel]:
        with self._lock:
            documents = self._read(collection)
            for idx, doc in enumerate(documents):
                if doc.get("id") == record_id and doc.get("userId") == owner_id:
                    record = collection.record.model_validate(doc).model_copy(
                        update=changes
                    )
                    documents[idx] = record.to_document()
                    self._write(collection, documents)
                    break
            else:
                return None
        self.feed.publish(collection.key, owner_id)
        return record
