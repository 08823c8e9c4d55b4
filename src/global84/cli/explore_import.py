from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from global84.auth.caller import Caller
from global84.db.sql_store import SqlDocumentStore
from global84.explore.csv_parser import missing_required_columns, read_csv
from global84.explore.errors import ExploreImportError
from global84.explore.normalization import REQUIRED_COLUMNS, unrecognized_columns
from global84.explore.service import cleanup_explore_duplicates, get_explore_import_preview, import_explore_csv
from global84.settings import configure_logging


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1: {value!r}")
    return number


def _print_preview(csv_path: str, limit: int) -> None:
    header, rows = read_csv(Path(csv_path).read_text(encoding="utf-8"))
    preview = get_explore_import_preview(rows, limit)
    missing = missing_required_columns(header, REQUIRED_COLUMNS)
    print(f"headers={','.join(header)} missing={','.join(missing)} ignored={','.join(unrecognized_columns(header))}")
    for row in preview.preview_rows:
        status = "valid" if row.valid else "invalid:" + "|".join(row.errors)
        print(f"{row.row_number}\t{row.city}\t{row.type}\t{row.category}\t{row.name}\t{status}")
    print(f"rows={preview.total_rows} importable={preview.importable_count} skipped={preview.skipped_count}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import Explore places from a CSV export and remove duplicates")
    parser.add_argument("command", choices=("preview", "import", "cleanup"))
    parser.add_argument("--csv", help="CSV file (preview/import)")
    parser.add_argument("--db", default=None, help="SQLite file; defaults to SQLITE_DB_PATH")
    parser.add_argument("--cohort", default=None, help="cohort id; defaults to GLOBAL84_COHORT_ID")
    parser.add_argument("--uid", default=os.getenv("GLOBAL84_UID"), help="acting admin uid")
    parser.add_argument("--name", default="", help="acting admin display name")
    parser.add_argument("--batch-size", type=_positive_int, default=None)
    parser.add_argument("--limit", type=int, default=10, help="preview rows to show")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    if args.command in ("preview", "import") and not args.csv:
        parser.error(f"{args.command} requires --csv")

    if args.command == "preview":
        _print_preview(args.csv, args.limit)
        return 0

    if args.db:
        os.environ["SQLITE_DB_PATH"] = args.db
    store = SqlDocumentStore()
    caller = Caller(uid=args.uid, display_name=args.name, store=store)

    try:
        if args.command == "import":
            report = import_explore_csv(
                store,
                caller,
                Path(args.csv).read_text(encoding="utf-8"),
                cohort_id=args.cohort,
                file_name=Path(args.csv).name,
                batch_size=args.batch_size,
            )
            print(
                " ".join(
                    [
                        f"imported={report.imported}",
                        f"updated={report.updated}",
                        f"skipped={report.skipped}",
                        f"removed_duplicates={report.removed_duplicates}",
                    ]
                )
            )
        else:
            report = cleanup_explore_duplicates(store, caller, cohort_id=args.cohort, batch_size=args.batch_size)
            print(f"removed_duplicates={report.removed_duplicates}")
    except ExploreImportError as exc:
        print(f"error[{exc.code}]: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
