from global84.auth.admins import grant_admin, is_admin, revoke_admin
from global84.auth.caller import ANONYMOUS, Caller
from global84.auth.session import AdminGate, AuthState
from global84.db.paths import admin_doc
from global84.db.store import WriteOp

from conftest import COHORT


def test_is_admin_requires_enabled_true(store) -> None:
    assert not is_admin(store, COHORT, "u1")
    store.batch_write([WriteOp.set(admin_doc(COHORT, "u1"), {"enabled": "true"})])
    assert not is_admin(store, COHORT, "u1")
    grant_admin(store, COHORT, "u1")
    assert is_admin(store, COHORT, "u1")
    assert not is_admin(store, "other-cohort", "u1")
    revoke_admin(store, COHORT, "u1")
    assert not is_admin(store, COHORT, "u1")
    assert not is_admin(store, COHORT, None)


def test_auth_state_emits_current_value_then_changes() -> None:
    auth = AuthState()
    seen = []
    dispose = auth.subscribe(seen.append)
    caller = Caller(uid="u1")
    auth.sign_in(caller)
    auth.sign_out()
    dispose()
    auth.sign_in(caller)
    assert seen == [ANONYMOUS, caller, ANONYMOUS]


def test_admin_gate_tracks_sign_in_and_allowlist(store) -> None:
    grant_admin(store, COHORT, "admin-1")
    auth = AuthState()
    gate = AdminGate(auth, store, COHORT)
    seen = []
    dispose = gate.subscribe(seen.append)

    auth.sign_in(Caller(uid="member-1", store=store))
    auth.sign_in(Caller(uid="admin-1", store=store))
    revoke_admin(store, COHORT, "admin-1")
    assert gate.refresh() is False
    grant_admin(store, COHORT, "admin-1")
    gate.refresh()
    auth.sign_out()

    assert seen == [False, True, False, True, False]

    dispose()
    auth.sign_in(Caller(uid="admin-1", store=store))
    assert seen == [False, True, False, True, False]
    assert gate.is_admin is True


def test_admin_gate_close_stops_following_auth(store) -> None:
    grant_admin(store, COHORT, "admin-1")
    auth = AuthState()
    gate = AdminGate(auth, store, COHORT)
    gate.close()
    auth.sign_in(Caller(uid="admin-1", store=store))
    assert gate.is_admin is False


def test_admin_gate_picks_up_revocation_on_refresh(store) -> None:
    grant_admin(store, COHORT, "admin-1")
    auth = AuthState()
    gate = AdminGate(auth, store, COHORT)
    auth.sign_in(Caller(uid="admin-1", store=store))
    seen = []
    gate.subscribe(seen.append)

    revoke_admin(store, COHORT, "admin-1")
    assert gate.is_admin is True
    assert seen == [True]

    assert gate.refresh() is False
    assert seen == [True, False]
