"""Remote document store backed by SQLAlchemy.

Any SQLAlchemy URL works (Postgres for a hosted deployment such as Supabase,
SQLite for a single machine). Queries are always partitioned by owner.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from changes import ChangeFeed
from database import make_session_factory, session_scope
from schemas import Collection, WireModel


logger = logging.getLogger(__name__)


def _row_to_record(collection: Collection, row: Any) -> WireModel:
    values = {column.key: getattr(row, column.key) for column in row.__table__.columns}
    return collection.record.model_validate(values)


class RemoteDocumentStore:
    def __init__(
        self,
        engine: Engine,
        feed: ChangeFeed,
        session_factory: Optional[sessionmaker[Session]] = None,
    ) -> None:
        self.engine = engine
        self.feed = feed
        self.session_factory = session_factory or make_session_factory(engine)

    def list(self, collection: Collection, owner_id: str) -> list[WireModel]:
        row_cls = collection.row
        stmt = (
            select(row_cls)
            .where(row_cls.owner_id == owner_id)
            .order_by(getattr(row_cls, collection.order_by).desc())
        )
        with session_scope(self.session_factory) as session:
            rows = session.scalars(stmt).all()
            return [_row_to_record(collection, row) for row in rows]

    def insert(self, collection: Collection, record: WireModel) -> None:
        with session_scope(self.session_factory) as session:
            session.add(collection.row(**record.model_dump()))
        logger.info(f"remote_store_insert: collection={collection.key} id={record.id}")
        self.feed.publish(collection.key, record.owner_id)

    def delete(self, collection: Collection, owner_id: str, record_id: str) -> bool:
        row_cls = collection.row
        with session_scope(self.session_factory) as session:
            result = session.execute(
                delete(row_cls).where(
                    row_cls.id == record_id, row_cls.owner_id == owner_id
                )
            )
            removed = (result.rowcount or 0) > 0
        if removed:
            self.feed.publish(collection.key, owner_id)
        return removed

    def update(
        self,
        collection: Collection,
        owner_id: str,
        record_id: str,
        changes: dict[str, Any],
    ) -> Optional[WireModel]:
        with session_scope(self.session_factory) as session:
            row = session.get(collection.row, record_id)
            if row is None or row.owner_id != owner_id:
                return None
            for key, value in changes.items():
                setattr(row, key, value)
            session.flush()
            record = _row_to_record(collection, row)
        self.feed.publish(collection.key, owner_id)
        return record

    def fingerprint(self, collection: Collection, owner_id: str) -> str:
        documents = [record.to_document() for record in self.list(collection, owner_id)]
        payload = json.dumps(documents, sort_keys=True)
        return hashlib.sha1(payload.encode("utf-8")).hexdigest()
