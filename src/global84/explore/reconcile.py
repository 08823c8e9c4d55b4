from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from .keys import make_stable_key, record_stable_key
from .normalization import ImportRow


@dataclass(frozen=True)
class PlannedUpsert:
    stable_key: str
    row: ImportRow
    existing_id: str | None

    @property
    def is_create(self) -> bool:
        return self.existing_id is None


@dataclass
class ReconciliationPlan:
    upserts: list[PlannedUpsert] = field(default_factory=list)
    delete_ids: list[str] = field(default_factory=list)
    skipped_count: int = 0

    @property
    def create_count(self) -> int:
        return sum(1 for upsert in self.upserts if upsert.is_create)

    @property
    def update_count(self) -> int:
        return len(self.upserts) - self.create_count


_NO_TIME = datetime.min.replace(tzinfo=timezone.utc)


def parse_created_at(value: Any) -> datetime | None:
    """Read a ``createdAt`` value as an aware datetime; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _created_sort_key(item: tuple[int, Mapping[str, Any]]) -> tuple[int, datetime, int]:
    position, record = item
    created = record.get("createdAt")
    parsed = parse_created_at(created)
    if parsed is not None:
        return (0, parsed, position)
    if created:
        # present but unreadable
        return (1, _NO_TIME, position)
    return (2, _NO_TIME, position)


def canonical_order(records: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    """Earliest ``createdAt`` first, compared as instants.

    Unparseable stamps follow the dated records and undated records go last.
    Ties keep listing order.
    """
    return [record for _, record in sorted(enumerate(records), key=_created_sort_key)]


def group_by_stable_key(existing: Iterable[Mapping[str, Any]]) -> dict[str, list[Mapping[str, Any]]]:
    groups: dict[str, list[Mapping[str, Any]]] = {}
    for record in existing:
        key = record_stable_key(record)
        if key is None or not record.get("id"):
            continue
        groups.setdefault(key, []).append(record)
    return {key: canonical_order(records) for key, records in groups.items()}


def surplus_ids(groups: Mapping[str, list[Mapping[str, Any]]]) -> list[str]:
    return [str(record["id"]) for records in groups.values() for record in records[1:]]


def dedupe_incoming(rows: Iterable[ImportRow]) -> dict[str, ImportRow]:
    """Last row in file order wins for repeated keys."""
    incoming: dict[str, ImportRow] = {}
    for row in rows:
        if not row.valid:
            continue
        incoming[make_stable_key(row.city, row.type, row.name)] = row
    return incoming


def reconcile(
    valid_rows: Iterable[ImportRow],
    existing: Iterable[Mapping[str, Any]],
    skipped_count: int = 0,
) -> ReconciliationPlan:
    """Map incoming rows onto existing records by stable key.

    The existing snapshot is grouped by key and each group is put in
    canonical order; the first record is the update target and the rest are
    queued for deletion. Keys with no existing record become creates. Pure:
    nothing is read or written here.
    """
    existing_by_key = group_by_stable_key(existing)
    plan = ReconciliationPlan(skipped_count=skipped_count)

    for key, row in dedupe_incoming(valid_rows).items():
        records = existing_by_key.get(key)
        if not records:
            plan.upserts.append(PlannedUpsert(key, row, None))
            continue
        plan.upserts.append(PlannedUpsert(key, row, str(records[0]["id"])))
        plan.delete_ids.extend(str(record["id"]) for record in records[1:])

    return plan
