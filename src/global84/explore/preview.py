from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .normalization import ImportRow, normalize_row

DEFAULT_PREVIEW_LIMIT = 10


@dataclass(frozen=True)
class PreviewResult:
    preview_rows: list[ImportRow]
    valid_rows: list[ImportRow]
    importable_count: int
    skipped_count: int

    @property
    def total_rows(self) -> int:
        return self.importable_count + self.skipped_count


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> list[ImportRow]:
    return [normalize_row(raw, row_number=index) for index, raw in enumerate(rows, start=1)]


def build_preview(rows: Iterable[Mapping[str, Any]], limit: int = DEFAULT_PREVIEW_LIMIT) -> PreviewResult:
    normalized = normalize_rows(rows)
    valid_rows = [row for row in normalized if row.valid]
    return PreviewResult(
        preview_rows=normalized[: max(limit, 0)],
        valid_rows=valid_rows,
        importable_count=len(valid_rows),
        skipped_count=len(normalized) - len(valid_rows),
    )
