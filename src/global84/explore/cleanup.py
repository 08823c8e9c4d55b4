from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from global84.db.paths import explore_collection, explore_doc
from global84.db.store import Datastore, WriteOp

from .reconcile import group_by_stable_key, surplus_ids
from .writer import PHASE_DELETE, EventHook, commit_in_batches, log_event, require_admin, resolve_batch_size


@dataclass
class CleanupReport:
    removed_duplicates: int = 0


def cleanup_duplicates(
    store: Datastore,
    caller: Any,
    *,
    cohort_id: str | None = None,
    batch_size: int | None = None,
    on_event: EventHook | None = None,
) -> CleanupReport:
    """Delete every record but the earliest-created one for each stable key."""
    size = resolve_batch_size(batch_size)
    target = require_admin(caller, cohort_id)
    groups = group_by_stable_key(store.list_documents(explore_collection(target)))
    ops = [WriteOp.delete(explore_doc(target, item_id)) for item_id in surplus_ids(groups)]
    commit_in_batches(
        store,
        PHASE_DELETE,
        ops,
        batch_size=size,
        caller=caller,
        cohort_id=target,
        on_event=on_event or log_event,
    )
    return CleanupReport(removed_duplicates=len(ops))
