from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Sequence, TypeVar

from global84.db.paths import explore_collection, explore_doc, import_log_collection
from global84.db.store import Datastore, DatastoreError, DatastorePermissionError, WriteOp
from global84.settings import get_cohort_id, get_import_batch_size

from .errors import (
    BatchWriteFailure,
    MisconfiguredTarget,
    PermissionDenied,
    PermissionDeniedAtWriteTime,
    Unauthenticated,
)
from .reconcile import PlannedUpsert, ReconciliationPlan

LOGGER = logging.getLogger(__name__)

PHASE_DELETE = "delete_duplicates"
PHASE_UPSERT = "upsert"
PHASE_AUDIT = "audit_log"

T = TypeVar("T")


@dataclass(frozen=True)
class ImportEvent:
    phase: str
    outcome: str
    batch_index: int = 0
    batch_count: int = 0
    op_count: int = 0
    detail: str = ""


EventHook = Callable[[ImportEvent], None]


def log_event(event: ImportEvent) -> None:
    level = logging.WARNING if event.outcome == "failed" else logging.INFO
    LOGGER.log(
        level,
        "explore %s %s batch=%d/%d ops=%d %s",
        event.phase,
        event.outcome,
        event.batch_index,
        event.batch_count,
        event.op_count,
        event.detail,
    )


@dataclass
class ImportReport:
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    removed_duplicates: int = 0


def require_caller_and_target(caller: Any, cohort_id: str | None) -> str:
    if caller is None or not (getattr(caller, "uid", None) or "").strip():
        raise Unauthenticated()
    target = (cohort_id if cohort_id is not None else get_cohort_id()).strip()
    if not target:
        raise MisconfiguredTarget()
    return target


def require_admin(caller: Any, cohort_id: str | None) -> str:
    """Preflight shared by import and cleanup. Returns the resolved cohort id."""
    target = require_caller_and_target(caller, cohort_id)
    if not caller.is_admin_for(target):
        raise PermissionDenied(caller.uid, target)
    return target


def resolve_batch_size(batch_size: int | None) -> int:
    if batch_size is None:
        return get_import_batch_size()
    if batch_size < 1:
        raise ValueError(f"batch_size must be a positive integer, got {batch_size!r}")
    return batch_size


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    if size < 1:
        raise ValueError(f"chunk size must be a positive integer, got {size!r}")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def commit_in_batches(
    store: Datastore,
    phase: str,
    ops: Sequence[WriteOp],
    *,
    batch_size: int,
    caller: Any,
    cohort_id: str,
    on_event: EventHook,
) -> int:
    """Commit ``ops`` in batches of at most ``batch_size``.

    Committed batches stay committed when a later one fails; the raised error
    says how many got through.
    """
    batches = list(chunked(ops, batch_size))
    on_event(ImportEvent(phase, "started", batch_count=len(batches), op_count=len(ops)))
    for index, batch in enumerate(batches):
        try:
            store.batch_write(batch, actor_uid=caller.uid)
        except DatastorePermissionError as exc:
            on_event(ImportEvent(phase, "failed", index, len(batches), len(batch), str(exc)))
            raise PermissionDeniedAtWriteTime(
                phase,
                index,
                index,
                path=exc.path or batch[0].path,
                cohort_id=cohort_id,
                uid=caller.uid,
            ) from exc
        except DatastoreError as exc:
            on_event(ImportEvent(phase, "failed", index, len(batches), len(batch), str(exc)))
            raise BatchWriteFailure(phase, index, index, provider_code=exc.code, detail=str(exc)) from exc
        on_event(ImportEvent(phase, "committed", index, len(batches), len(batch)))
    on_event(ImportEvent(phase, "finished", len(batches), len(batches), len(ops)))
    return len(batches)


def build_upsert_payload(upsert: PlannedUpsert, caller: Any, timestamp: Any) -> dict[str, Any]:
    payload = upsert.row.to_record()
    payload.update(
        {
            "stableKey": upsert.stable_key,
            "status": "active",
            "updatedAt": timestamp,
            "updatedByUid": caller.uid,
        }
    )
    if upsert.is_create:
        payload.update(
            {
                "createdAt": timestamp,
                "createdByUid": caller.uid,
                "createdByName": getattr(caller, "display_name", "") or "Admin",
            }
        )
    return payload


def apply_plan(
    store: Datastore,
    plan: ReconciliationPlan,
    caller: Any,
    *,
    cohort_id: str | None = None,
    file_name: str = "",
    batch_size: int | None = None,
    on_event: EventHook | None = None,
) -> ImportReport:
    """Write a reconciliation plan: delete surplus, upsert, then append the audit log.

    Admin preflight runs before the first write. There is no rollback across
    batches or phases; a failure stops the run and reports where.
    """
    size = resolve_batch_size(batch_size)
    target = require_admin(caller, cohort_id)
    hook = on_event or log_event
    timestamp = store.server_timestamp()

    delete_ops = [WriteOp.delete(explore_doc(target, item_id)) for item_id in plan.delete_ids]
    commit_in_batches(
        store, PHASE_DELETE, delete_ops, batch_size=size, caller=caller, cohort_id=target, on_event=hook
    )

    collection = explore_collection(target)
    upsert_ops = []
    for upsert in plan.upserts:
        item_id = upsert.existing_id or store.new_document_id(collection)
        upsert_ops.append(
            WriteOp.set(
                explore_doc(target, item_id),
                build_upsert_payload(upsert, caller, timestamp),
                merge=not upsert.is_create,
            )
        )
    commit_in_batches(
        store, PHASE_UPSERT, upsert_ops, batch_size=size, caller=caller, cohort_id=target, on_event=hook
    )

    report = ImportReport(
        imported=plan.create_count,
        updated=plan.update_count,
        skipped=plan.skipped_count,
        removed_duplicates=len(plan.delete_ids),
    )
    log_collection = import_log_collection(target)
    log_entry = {
        "timestamp": timestamp,
        "adminUid": caller.uid,
        "fileName": file_name,
        "importedCount": report.imported,
        "updatedCount": report.updated,
        "skippedCount": report.skipped,
        "removedDuplicates": report.removed_duplicates,
    }
    commit_in_batches(
        store,
        PHASE_AUDIT,
        [WriteOp.set(f"{log_collection}/{store.new_document_id(log_collection)}", log_entry)],
        batch_size=size,
        caller=caller,
        cohort_id=target,
        on_event=hook,
    )
    return report
