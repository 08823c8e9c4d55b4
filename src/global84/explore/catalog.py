from __future__ import annotations

from typing import Any

from global84.db.paths import explore_collection, explore_doc
from global84.db.store import Datastore, WriteOp

from .errors import ItemNotFound
from .writer import require_admin

MAX_LIST_LIMIT = 250

SEARCH_FIELDS = ("name", "neighborhood", "notes", "recommendedBy")


def search_text(record: dict[str, Any]) -> str:
    parts = [str(record.get(field) or "") for field in SEARCH_FIELDS]
    parts.extend(str(tag) for tag in record.get("tags") or [])
    return " ".join(parts).lower()


def list_explore_items(
    store: Datastore,
    cohort_id: str,
    city: str | None = None,
    type_: str | None = None,
    category: str | None = None,
    limit: int = MAX_LIST_LIMIT,
    search: str | None = None,
) -> list[dict[str, Any]]:
    filters = {"city": city, "type": type_, "category": category}
    query = (search or "").strip().lower()
    items = [
        record
        for record in store.list_documents(explore_collection(cohort_id))
        if record.get("status") == "active"
        and all(not value or record.get(field) == value for field, value in filters.items())
        and (not query or query in search_text(record))
    ]
    items.sort(key=lambda record: str(record.get("name") or "").lower())
    return items[: max(1, min(limit, MAX_LIST_LIMIT))]


def _existing_item_path(store: Datastore, cohort_id: str, item_id: str) -> str:
    path = explore_doc(cohort_id, item_id)
    if store.get_document(path) is None:
        raise ItemNotFound(path)
    return path


def archive_explore_item(store: Datastore, caller: Any, cohort_id: str | None, item_id: str) -> None:
    target = require_admin(caller, cohort_id)
    path = _existing_item_path(store, target, item_id)
    data = {"status": "archived", "updatedAt": store.server_timestamp(), "updatedByUid": caller.uid}
    store.batch_write([WriteOp.set(path, data, merge=True)], actor_uid=caller.uid)


def delete_explore_item(store: Datastore, caller: Any, cohort_id: str | None, item_id: str) -> None:
    target = require_admin(caller, cohort_id)
    path = _existing_item_path(store, target, item_id)
    store.batch_write([WriteOp.delete(path)], actor_uid=caller.uid)
