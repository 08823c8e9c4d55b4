from __future__ import annotations

import logging
from typing import Any

from global84.db.paths import explore_doc, favorite_doc, favorites_collection
from global84.db.store import Datastore, WriteOp

from .errors import ItemNotFound
from .writer import require_caller_and_target

LOGGER = logging.getLogger(__name__)


def list_favorites(store: Datastore, caller: Any, cohort_id: str | None = None) -> set[str]:
    """Explore ids the caller has favorited in the cohort."""
    target = require_caller_and_target(caller, cohort_id)
    return {str(record["id"]) for record in store.list_documents(favorites_collection(target, caller.uid))}


def toggle_favorite(store: Datastore, caller: Any, item_id: str, *, cohort_id: str | None = None) -> bool:
    """Flip the caller's favorite for ``item_id`` and return the new state.

    Adding requires the place to exist. Removing does not, so favorites of
    deleted places can still be cleared.
    """
    target = require_caller_and_target(caller, cohort_id)
    path = favorite_doc(target, caller.uid, item_id)
    if store.get_document(path) is not None:
        store.batch_write([WriteOp.delete(path)], actor_uid=caller.uid)
        LOGGER.info("favorite removed cohort=%s uid=%s item=%s", target, caller.uid, item_id)
        return False

    if store.get_document(explore_doc(target, item_id)) is None:
        raise ItemNotFound(explore_doc(target, item_id))
    data = {"exploreId": item_id, "createdAt": store.server_timestamp()}
    store.batch_write([WriteOp.set(path, data)], actor_uid=caller.uid)
    LOGGER.info("favorite added cohort=%s uid=%s item=%s", target, caller.uid, item_id)
    return True
