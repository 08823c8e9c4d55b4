from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

import pytest
from sqlalchemy import create_engine

REPO_ROOT = Path(__file__).resolve().parents[1]


def repo_path(*parts: str) -> Path:
    return REPO_ROOT.joinpath(*parts)


SRC = repo_path("src")
sys.path.insert(0, str(SRC))

from global84.auth.admins import grant_admin  # noqa: E402
from global84.auth.caller import Caller  # noqa: E402
from global84.db.sql_store import SqlDocumentStore  # noqa: E402

COHORT = "c84"


class TickingClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class RecordingStore:
    """Wraps a store, records every batch_write call and can fail one of them."""

    def __init__(self, inner, fail_on_call: int | None = None, error: Exception | None = None) -> None:
        self.inner = inner
        self.fail_on_call = fail_on_call
        self.error = error
        self.batch_calls: list[list] = []

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def batch_write(self, ops, actor_uid=None):
        self.batch_calls.append(list(ops))
        if self.fail_on_call is not None and len(self.batch_calls) - 1 == self.fail_on_call:
            raise self.error
        self.inner.batch_write(ops, actor_uid=actor_uid)


def make_store(path: Path, rules=None) -> SqlDocumentStore:
    engine = create_engine(f"sqlite+pysqlite:///{path.as_posix()}")
    return SqlDocumentStore(engine, clock=TickingClock(), rules=rules)


@pytest.fixture
def store(tmp_path):
    return make_store(tmp_path / "store.sqlite3")


@pytest.fixture
def admin(store):
    grant_admin(store, COHORT, "admin-1")
    return Caller(uid="admin-1", display_name="Ada", store=store)


@pytest.fixture
def member(store):
    return Caller(uid="member-1", display_name="Mo", store=store)
