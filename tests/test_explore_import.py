import pytest

from global84.auth.admins import admin_write_rules, grant_admin, revoke_admin
from global84.auth.caller import Caller
from global84.db.paths import explore_collection, import_log_collection
from global84.db.store import DatastoreError, WriteOp
from global84.explore.catalog import archive_explore_item
from global84.explore.errors import (
    BatchWriteFailure,
    MisconfiguredTarget,
    MissingColumns,
    NoValidRows,
    PermissionDenied,
    PermissionDeniedAtWriteTime,
    Unauthenticated,
)
from global84.explore.service import import_explore_csv, import_explore_items
from global84.explore.writer import PHASE_AUDIT, PHASE_DELETE, PHASE_UPSERT

from conftest import COHORT, RecordingStore, make_store

CSV_TEXT = (
    "City,Type,Name,Price,Tags,GoogleMapsUrl\n"
    "singapore,coffee,Toast Box,$,\"kaya, breakfast\",https://maps.example/tb\n"
    "Singapore,drinks,Level 33,$$$,rooftop,\n"
    "hcmc,market,Ben Thanh,,,\n"
    "Singapore,,Missing Type,,,\n"
)


def _explore(store):
    return store.list_documents(explore_collection(COHORT))


def test_case_and_whitespace_variants_converge_on_one_record(store, admin) -> None:
    rows = [
        {"city": "singapore", "type": "coffee", "name": "Toast Box"},
        {"city": "Singapore", "type": "Coffee", "name": " toast box "},
    ]
    first = import_explore_items(store, admin, rows, cohort_id=COHORT)
    assert (first.imported, first.updated, first.removed_duplicates) == (1, 0, 0)

    records = _explore(store)
    assert len(records) == 1
    assert records[0]["type"] == "Coffee"
    assert records[0]["category"] == "dining"
    assert records[0]["stableKey"] == "Singapore::Coffee::toast box"

    second = import_explore_items(store, admin, rows, cohort_id=COHORT)
    assert (second.imported, second.updated) == (0, 1)
    assert len(_explore(store)) == 1


def test_reimporting_the_same_csv_only_updates(store, admin) -> None:
    first = import_explore_csv(store, admin, CSV_TEXT, cohort_id=COHORT, file_name="places.csv")
    assert (first.imported, first.updated, first.skipped, first.removed_duplicates) == (3, 0, 1, 0)
    created = {record["id"]: record for record in _explore(store)}

    second = import_explore_csv(store, admin, CSV_TEXT, cohort_id=COHORT, file_name="places.csv")
    assert (second.imported, second.updated, second.skipped, second.removed_duplicates) == (0, 3, 1, 0)

    for record in _explore(store):
        before = created[record["id"]]
        assert record["createdAt"] == before["createdAt"]
        assert record["createdByUid"] == "admin-1"
        assert record["createdByName"] == "Ada"
        assert record["updatedAt"] > before["updatedAt"]
        assert record["status"] == "active"


def test_import_writes_one_audit_log_entry_per_run(store, admin) -> None:
    import_explore_csv(store, admin, CSV_TEXT, cohort_id=COHORT, file_name="places.csv")
    logs = store.list_documents(import_log_collection(COHORT))
    assert len(logs) == 1
    entry = logs[0]
    assert entry["adminUid"] == "admin-1"
    assert entry["fileName"] == "places.csv"
    assert (entry["importedCount"], entry["updatedCount"], entry["skippedCount"], entry["removedDuplicates"]) == (
        3,
        0,
        1,
        0,
    )
    assert entry["timestamp"]


def test_import_removes_existing_duplicates_and_keeps_earliest(store, admin) -> None:
    collection = explore_collection(COHORT)
    store.batch_write(
        [
            WriteOp.set(f"{collection}/late", {"city": "Singapore", "type": "Bar", "name": "Loft", "createdAt": "2024-05-01"}),
            WriteOp.set(f"{collection}/early", {"city": "Singapore", "type": "Bar", "name": "loft", "createdAt": "2024-01-01"}),
        ]
    )
    report = import_explore_items(store, admin, [{"city": "Singapore", "type": "Bar", "name": "LOFT"}], cohort_id=COHORT)
    assert (report.imported, report.updated, report.removed_duplicates) == (0, 1, 1)
    records = _explore(store)
    assert [record["id"] for record in records] == ["early"]
    assert records[0]["createdAt"] == "2024-01-01"
    assert records[0]["name"] == "LOFT"


def test_archived_record_is_revived_by_import(store, admin) -> None:
    import_explore_items(store, admin, [{"city": "Singapore", "type": "Spa", "name": "Calm"}], cohort_id=COHORT)
    archive_explore_item(store, admin, COHORT, _explore(store)[0]["id"])
    assert _explore(store)[0]["status"] == "archived"

    import_explore_items(store, admin, [{"city": "Singapore", "type": "Spa", "name": "Calm"}], cohort_id=COHORT)
    assert _explore(store)[0]["status"] == "active"


def test_events_follow_phase_order(store, admin) -> None:
    events = []
    import_explore_csv(store, admin, CSV_TEXT, cohort_id=COHORT, batch_size=2, on_event=events.append)
    phases = [(event.phase, event.outcome) for event in events]
    assert phases[0] == (PHASE_DELETE, "started")
    assert phases[1] == (PHASE_DELETE, "finished")
    assert phases[2:6] == [
        (PHASE_UPSERT, "started"),
        (PHASE_UPSERT, "committed"),
        (PHASE_UPSERT, "committed"),
        (PHASE_UPSERT, "finished"),
    ]
    assert phases[-1] == (PHASE_AUDIT, "finished")


@pytest.mark.parametrize("enabled", [None, False])
def test_non_admin_import_is_rejected_without_writes(store, enabled) -> None:
    if enabled is False:
        grant_admin(store, COHORT, "member-1")
        revoke_admin(store, COHORT, "member-1")
    recording = RecordingStore(store)
    caller = Caller(uid="member-1", store=recording)

    with pytest.raises(PermissionDenied) as excinfo:
        import_explore_csv(recording, caller, CSV_TEXT, cohort_id=COHORT)

    assert recording.batch_calls == []
    assert "member-1" in str(excinfo.value)
    assert COHORT in str(excinfo.value)


def test_preflight_errors_come_before_any_io(store, admin, monkeypatch) -> None:
    recording = RecordingStore(store)
    rows = [{"city": "Singapore", "type": "Bar", "name": "Loft"}]

    with pytest.raises(Unauthenticated):
        import_explore_items(recording, Caller(uid=None), rows, cohort_id=COHORT)
    with pytest.raises(MisconfiguredTarget):
        import_explore_items(recording, admin, rows, cohort_id="   ")
    monkeypatch.delenv("GLOBAL84_COHORT_ID", raising=False)
    with pytest.raises(MisconfiguredTarget):
        import_explore_items(recording, admin, rows)
    with pytest.raises(NoValidRows):
        import_explore_items(recording, admin, [{"city": "Singapore", "name": "No type"}], cohort_id=COHORT)
    with pytest.raises(MissingColumns) as excinfo:
        import_explore_csv(recording, admin, "city,name\nSingapore,Loft\n", cohort_id=COHORT)

    assert excinfo.value.missing == ["type"]
    assert recording.batch_calls == []


def test_cohort_id_falls_back_to_environment(store, admin, monkeypatch) -> None:
    monkeypatch.setenv("GLOBAL84_COHORT_ID", COHORT)
    report = import_explore_items(store, admin, [{"city": "Singapore", "type": "Bar", "name": "Loft"}])
    assert report.imported == 1
    assert len(_explore(store)) == 1


def test_failed_batch_reports_phase_and_committed_batches(store, admin) -> None:
    recording = RecordingStore(store, fail_on_call=1, error=DatastoreError("deadline exceeded", code="deadline-exceeded"))
    caller = Caller(uid="admin-1", store=recording)
    rows = [{"city": "Singapore", "type": "Bar", "name": f"Bar {i}"} for i in range(5)]

    with pytest.raises(BatchWriteFailure) as excinfo:
        import_explore_items(recording, caller, rows, cohort_id=COHORT, batch_size=2)

    error = excinfo.value
    assert (error.phase, error.batch_index, error.committed_batches) == (PHASE_UPSERT, 1, 1)
    assert error.provider_code == "deadline-exceeded"
    assert isinstance(error.__cause__, DatastoreError)
    assert len(_explore(store)) == 2
    assert store.list_documents(import_log_collection(COHORT)) == []


def test_rule_rejection_after_preflight_is_reported_with_context(tmp_path) -> None:
    store = make_store(tmp_path / "guarded.sqlite3")
    store.rules = admin_write_rules(store, COHORT)
    stale = make_store(tmp_path / "stale.sqlite3")
    grant_admin(stale, COHORT, "ghost")
    caller = Caller(uid="ghost", store=stale)

    with pytest.raises(PermissionDeniedAtWriteTime) as excinfo:
        import_explore_items(store, caller, [{"city": "Singapore", "type": "Bar", "name": "Loft"}], cohort_id=COHORT)

    error = excinfo.value
    assert isinstance(error, BatchWriteFailure)
    assert error.phase == PHASE_UPSERT
    assert error.uid == "ghost"
    assert error.cohort_id == COHORT
    assert error.path.startswith(f"cohorts/{COHORT}/explore/")
    assert error.path in str(error)
    assert _explore(store) == []


@pytest.mark.parametrize("batch_size", [0, -5])
def test_non_positive_batch_size_is_rejected_before_writing(store, admin, batch_size) -> None:
    recording = RecordingStore(store)
    rows = [{"city": "Singapore", "type": "Bar", "name": "Loft"}]

    with pytest.raises(ValueError):
        import_explore_items(recording, admin, rows, cohort_id=COHORT, batch_size=batch_size)

    assert recording.batch_calls == []
    assert _explore(store) == []
    assert store.list_documents(import_log_collection(COHORT)) == []


def test_whitespace_uid_is_unauthenticated(store) -> None:
    caller = Caller(uid="   ", store=store)
    with pytest.raises(Unauthenticated):
        import_explore_items(store, caller, [{"city": "Singapore", "type": "Bar", "name": "Loft"}], cohort_id=COHORT)
