"""Entry points used by the HTTP app and the CLI.

Order of checks for an import: batch size, caller identity and cohort id (no I/O), then
row validation (no I/O), then the admin allowlist read, then the snapshot
read of existing records, then the writes. Two admins importing at once are
not coordinated; the snapshot can go stale before the writes land. A later
import or cleanup re-derives the keys and converges the duplicates.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from global84.db.paths import explore_collection
from global84.db.store import Datastore

from .cleanup import CleanupReport, cleanup_duplicates
from .csv_parser import missing_required_columns, read_csv
from .errors import MissingColumns, NoValidRows
from .normalization import REQUIRED_COLUMNS
from .preview import DEFAULT_PREVIEW_LIMIT, PreviewResult, build_preview
from .reconcile import reconcile
from .writer import (
    EventHook,
    ImportReport,
    apply_plan,
    require_admin,
    require_caller_and_target,
    resolve_batch_size,
)

LOGGER = logging.getLogger(__name__)


def get_explore_import_preview(
    rows: Iterable[Mapping[str, Any]], preview_limit: int = DEFAULT_PREVIEW_LIMIT
) -> PreviewResult:
    return build_preview(rows, preview_limit)


def import_explore_items(
    store: Datastore,
    caller: Any,
    rows: Iterable[Mapping[str, Any]],
    *,
    cohort_id: str | None = None,
    file_name: str = "",
    batch_size: int | None = None,
    on_event: EventHook | None = None,
) -> ImportReport:
    size = resolve_batch_size(batch_size)
    target = require_caller_and_target(caller, cohort_id)
    preview = build_preview(rows, limit=0)
    if not preview.valid_rows:
        raise NoValidRows(preview.skipped_count)

    require_admin(caller, target)
    existing = store.list_documents(explore_collection(target))
    plan = reconcile(preview.valid_rows, existing, skipped_count=preview.skipped_count)
    LOGGER.info(
        "explore import plan cohort=%s uid=%s file=%s creates=%d updates=%d deletes=%d skipped=%d",
        target,
        caller.uid,
        file_name,
        plan.create_count,
        plan.update_count,
        len(plan.delete_ids),
        plan.skipped_count,
    )
    return apply_plan(
        store,
        plan,
        caller,
        cohort_id=target,
        file_name=file_name,
        batch_size=size,
        on_event=on_event,
    )


def import_explore_csv(
    store: Datastore,
    caller: Any,
    text: str,
    *,
    cohort_id: str | None = None,
    file_name: str = "",
    batch_size: int | None = None,
    on_event: EventHook | None = None,
) -> ImportReport:
    header, rows = read_csv(text)
    missing = missing_required_columns(header, REQUIRED_COLUMNS)
    if missing:
        raise MissingColumns(missing)
    return import_explore_items(
        store,
        caller,
        rows,
        cohort_id=cohort_id,
        file_name=file_name,
        batch_size=batch_size,
        on_event=on_event,
    )


def cleanup_explore_duplicates(
    store: Datastore,
    caller: Any,
    *,
    cohort_id: str | None = None,
    batch_size: int | None = None,
    on_event: EventHook | None = None,
) -> CleanupReport:
    return cleanup_duplicates(store, caller, cohort_id=cohort_id, batch_size=batch_size, on_event=on_event)
