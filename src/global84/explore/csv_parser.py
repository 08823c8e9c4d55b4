from __future__ import annotations

import csv
import io
import logging

LOGGER = logging.getLogger(__name__)

BOM = "\ufeff"


def _normalize_header(value: str) -> str:
    return (value or "").strip().lower()


def _is_blank(cells: list[str]) -> bool:
    return all(not cell.strip() for cell in cells)


def read_csv(text: str) -> tuple[list[str], list[dict[str, str]]]:
    """Parse CSV text into (header, rows).

    The first non-blank line is the header. Header cells are lowercased and
    trimmed; blank header cells drop their column from every row. Blank data
    lines are skipped and short rows are padded with "". Malformed quoting
    never raises: a broken quote swallows the rest of the field, and a reader
    error stops parsing with the rows read so far.
    """
    if not text:
        return [], []
    if text.startswith(BOM):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""), strict=False)
    columns: list[tuple[int, str]] = []
    rows: list[dict[str, str]] = []
    try:
        for cells in reader:
            if _is_blank(cells):
                continue
            if not columns:
                columns = [(index, _normalize_header(cell)) for index, cell in enumerate(cells)]
                columns = [(index, key) for index, key in columns if key]
                if not columns:
                    return [], []
                continue
            rows.append(
                {key: (cells[index].strip() if index < len(cells) else "") for index, key in columns}
            )
    except csv.Error as exc:
        LOGGER.warning("csv parse stopped at line %s: %s", reader.line_num, exc)

    header = list(dict.fromkeys(key for _, key in columns))
    return header, rows


def parse_csv(text: str) -> list[dict[str, str]]:
    return read_csv(text)[1]


def missing_required_columns(header: list[str], required: tuple[str, ...]) -> list[str]:
    present = set(header)
    return [column for column in required if column not in present]
