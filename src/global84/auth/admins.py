from __future__ import annotations

from typing import Callable

from global84.db.paths import admin_doc, cohort_path, member_path
from global84.db.store import Datastore, WriteOp


def is_admin(store: Datastore, cohort_id: str, uid: str | None) -> bool:
    if not uid or not cohort_id:
        return False
    record = store.get_document(admin_doc(cohort_id, uid))
    return bool(record) and record.get("enabled") is True


def grant_admin(store: Datastore, cohort_id: str, uid: str, granted_by: str | None = None) -> None:
    data = {"enabled": True, "grantedAt": store.server_timestamp()}
    if granted_by:
        data["grantedByUid"] = granted_by
    store.batch_write([WriteOp.set(admin_doc(cohort_id, uid), data, merge=True)], actor_uid=granted_by)


def revoke_admin(store: Datastore, cohort_id: str, uid: str, revoked_by: str | None = None) -> None:
    data = {"enabled": False, "revokedAt": store.server_timestamp()}
    store.batch_write([WriteOp.set(admin_doc(cohort_id, uid), data, merge=True)], actor_uid=revoked_by)


def admin_write_rules(store: Datastore, cohort_id: str) -> Callable[[str | None, WriteOp], bool]:
    """Server-side style rule set: only enabled admins may write under the cohort.

    Members may write their own ``members/{uid}/`` subtree.
    """
    prefix = cohort_path(cohort_id) + "/"

    def allow(actor_uid: str | None, op: WriteOp) -> bool:
        path = op.path.strip("/")
        if not path.startswith(prefix):
            return True
        if actor_uid and path.startswith(member_path(cohort_id, actor_uid) + "/"):
            return True
        return is_admin(store, cohort_id, actor_uid)

    return allow
