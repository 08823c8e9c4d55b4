from __future__ import annotations


def cohort_path(cohort_id: str) -> str:
    return f"cohorts/{cohort_id}"


def explore_collection(cohort_id: str) -> str:
    return f"{cohort_path(cohort_id)}/explore"


def explore_doc(cohort_id: str, item_id: str) -> str:
    return f"{explore_collection(cohort_id)}/{item_id}"


def admin_doc(cohort_id: str, uid: str) -> str:
    return f"{cohort_path(cohort_id)}/admins/{uid}"


def import_log_collection(cohort_id: str) -> str:
    return f"{cohort_path(cohort_id)}/exploreImports"


def member_path(cohort_id: str, uid: str) -> str:
    return f"{cohort_path(cohort_id)}/members/{uid}"


def favorites_collection(cohort_id: str, uid: str) -> str:
    return f"{member_path(cohort_id, uid)}/favorites"


def favorite_doc(cohort_id: str, uid: str, item_id: str) -> str:
    return f"{favorites_collection(cohort_id, uid)}/{item_id}"


def split_path(path: str) -> tuple[str, str]:
    collection, _, doc_id = path.strip("/").rpartition("/")
    if not collection or not doc_id:
        raise ValueError(f"not a document path: {path!r}")
    return collection, doc_id
