from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Callable, Sequence

from sqlalchemy import select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from global84.api.database import get_engine, init_db
from global84.models.document import Document

from .paths import split_path
from .store import (
    SERVER_TIMESTAMP,
    Clock,
    DatastoreError,
    DatastorePermissionError,
    WriteOp,
    utc_now,
)

LOGGER = logging.getLogger(__name__)

Rules = Callable[[str | None, WriteOp], bool]


class SqlDocumentStore:
    """Document store kept in one SQLAlchemy table.

    Each ``batch_write`` call is one transaction: either every op lands or
    none do. Listing returns documents in insertion order.
    """

    def __init__(self, engine=None, clock: Clock = utc_now, rules: Rules | None = None) -> None:
        self.engine = engine if engine is not None else get_engine()
        self.clock = clock
        self.rules = rules
        init_db(self.engine)

    def _resolve(self, data: dict[str, Any]) -> dict[str, Any]:
        stamp = self.clock().isoformat()
        return {key: (stamp if value is SERVER_TIMESTAMP else value) for key, value in data.items()}

    def get_document(self, path: str) -> dict[str, Any] | None:
        path = path.strip("/")
        with Session(self.engine) as session:
            row = session.scalars(select(Document).where(Document.path == path)).first()
            if row is None:
                return None
            return {"id": row.doc_id, **json.loads(row.data_json)}

    def list_documents(self, collection_path: str) -> list[dict[str, Any]]:
        collection_path = collection_path.strip("/")
        with Session(self.engine) as session:
            rows = session.scalars(
                select(Document).where(Document.collection == collection_path).order_by(Document.id)
            ).all()
            return [{"id": row.doc_id, **json.loads(row.data_json)} for row in rows]

    def new_document_id(self, collection_path: str) -> str:
        return uuid.uuid4().hex[:20]

    def server_timestamp(self) -> Any:
        return SERVER_TIMESTAMP

    def _check_rules(self, ops: Sequence[WriteOp], actor_uid: str | None) -> None:
        if self.rules is None:
            return
        for op in ops:
            if not self.rules(actor_uid, op):
                raise DatastorePermissionError(
                    f"Missing or insufficient permissions for {op.type} on {op.path} (uid={actor_uid})",
                    path=op.path,
                )

    def _apply(self, session: Session, op: WriteOp) -> None:
        path = op.path.strip("/")
        row = session.scalars(select(Document).where(Document.path == path)).first()
        if op.type == "delete":
            if row is not None:
                session.delete(row)
            return

        data = self._resolve(op.data or {})
        if row is None:
            collection, doc_id = split_path(path)
            session.add(Document(path=path, collection=collection, doc_id=doc_id, data_json=json.dumps(data)))
            return
        if op.merge:
            data = {**json.loads(row.data_json), **data}
        row.data_json = json.dumps(data)

    def batch_write(self, ops: Sequence[WriteOp], actor_uid: str | None = None) -> None:
        if not ops:
            return
        self._check_rules(ops, actor_uid)
        try:
            with Session(self.engine) as session, session.begin():
                for op in ops:
                    self._apply(session, op)
        except OperationalError as exc:
            raise DatastoreError(str(exc.orig), code="unavailable") from exc
        except SQLAlchemyError as exc:
            raise DatastoreError(str(exc), code="internal") from exc
        LOGGER.debug("batch committed ops=%d actor=%s", len(ops), actor_uid)
