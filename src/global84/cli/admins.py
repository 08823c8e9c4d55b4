from __future__ import annotations

import argparse
import os

from global84.auth.admins import grant_admin, is_admin, revoke_admin
from global84.db.sql_store import SqlDocumentStore
from global84.settings import get_cohort_id


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Manage the cohort admin allowlist")
    parser.add_argument("command", choices=("grant", "revoke", "check"))
    parser.add_argument("uid")
    parser.add_argument("--db", default=None)
    parser.add_argument("--cohort", default=None)
    args = parser.parse_args(argv)

    cohort_id = (args.cohort or get_cohort_id()).strip()
    if not cohort_id:
        parser.error("cohort id required (--cohort or GLOBAL84_COHORT_ID)")
    if args.db:
        os.environ["SQLITE_DB_PATH"] = args.db
    store = SqlDocumentStore()

    if args.command == "grant":
        grant_admin(store, cohort_id, args.uid)
    elif args.command == "revoke":
        revoke_admin(store, cohort_id, args.uid)
    print(f"cohort={cohort_id} uid={args.uid} is_admin={is_admin(store, cohort_id, args.uid)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
