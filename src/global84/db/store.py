from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Protocol, Sequence

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class DatastoreError(Exception):
    def __init__(self, message: str, code: str = "unknown") -> None:
        super().__init__(message)
        self.code = code


class DatastorePermissionError(DatastoreError):
    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message, code="permission-denied")
        self.path = path


@dataclass(frozen=True)
class WriteOp:
    type: Literal["set", "delete"]
    path: str
    data: dict[str, Any] | None = None
    merge: bool = False

    @classmethod
    def set(cls, path: str, data: dict[str, Any], merge: bool = False) -> "WriteOp":
        return cls("set", path, data, merge)

    @classmethod
    def delete(cls, path: str) -> "WriteOp":
        return cls("delete", path)


class Datastore(Protocol):
    def get_document(self, path: str) -> dict[str, Any] | None: ...

    def list_documents(self, collection_path: str) -> list[dict[str, Any]]: ...

    def batch_write(self, ops: Sequence[WriteOp], actor_uid: str | None = None) -> None: ...

    def new_document_id(self, collection_path: str) -> str: ...

    def server_timestamp(self) -> Any: ...
