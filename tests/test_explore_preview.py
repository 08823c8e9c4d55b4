from global84.explore.preview import build_preview
from global84.explore.service import get_explore_import_preview


def _rows(count: int) -> list[dict[str, str]]:
    rows = []
    for i in range(count):
        name = "" if i % 3 == 0 else f"Place {i}"
        rows.append({"city": "Singapore", "type": "Bar", "name": name})
    return rows


def test_preview_counts_and_row_numbers() -> None:
    preview = build_preview(_rows(12))
    assert preview.importable_count == 8
    assert preview.skipped_count == 4
    assert preview.importable_count + preview.skipped_count == 12
    assert [row.row_number for row in preview.valid_rows][:3] == [2, 3, 5]


def test_preview_rows_are_sliced_before_filtering() -> None:
    preview = get_explore_import_preview(_rows(12), 5)
    assert [row.row_number for row in preview.preview_rows] == [1, 2, 3, 4, 5]
    assert [row.valid for row in preview.preview_rows] == [False, True, True, False, True]


def test_default_preview_limit_is_ten() -> None:
    assert len(build_preview(_rows(30)).preview_rows) == 10
    assert build_preview([]).preview_rows == []
