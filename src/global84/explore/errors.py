from __future__ import annotations


class ExploreImportError(Exception):
    code = "explore-import-error"


class Unauthenticated(ExploreImportError):
    code = "unauthenticated"

    def __init__(self) -> None:
        super().__init__("Not signed in.")


class MisconfiguredTarget(ExploreImportError):
    code = "misconfigured-target"

    def __init__(self) -> None:
        super().__init__("Cohort id is not configured (set GLOBAL84_COHORT_ID).")


class PermissionDenied(ExploreImportError):
    code = "permission-denied"

    def __init__(self, uid: str, cohort_id: str) -> None:
        super().__init__(
            f"uid={uid} is not an enabled admin for cohort={cohort_id} "
            f"(check cohorts/{cohort_id}/admins/{uid} has enabled=true)"
        )
        self.uid = uid
        self.cohort_id = cohort_id


class NoValidRows(ExploreImportError):
    code = "no-valid-rows"

    def __init__(self, skipped: int) -> None:
        super().__init__(f"No valid rows found (need city, type, name); skipped={skipped}")
        self.skipped = skipped


class MissingColumns(ExploreImportError):
    code = "missing-columns"

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"CSV must include headers: {', '.join(missing)}")
        self.missing = missing


class ItemNotFound(ExploreImportError):
    code = "not-found"

    def __init__(self, path: str) -> None:
        super().__init__(f"No explore item at {path}")
        self.path = path


class BatchWriteFailure(ExploreImportError):
    code = "batch-write-failed"

    def __init__(
        self,
        phase: str,
        batch_index: int,
        committed_batches: int,
        provider_code: str | None = None,
        detail: str = "",
    ) -> None:
        message = f"{phase} batch {batch_index} failed after {committed_batches} committed batch(es)"
        if provider_code:
            message += f" ({provider_code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.phase = phase
        self.batch_index = batch_index
        self.committed_batches = committed_batches
        self.provider_code = provider_code


class PermissionDeniedAtWriteTime(BatchWriteFailure):
    code = "permission-denied-at-write"

    def __init__(
        self,
        phase: str,
        batch_index: int,
        committed_batches: int,
        path: str,
        cohort_id: str,
        uid: str,
    ) -> None:
        super().__init__(
            phase,
            batch_index,
            committed_batches,
            provider_code="permission-denied",
            detail=(
                f"write rejected by datastore rules at path={path} cohort={cohort_id} uid={uid}; "
                "admin preflight passed, so the rule configuration and the admin record disagree"
            ),
        )
        self.path = path
        self.cohort_id = cohort_id
        self.uid = uid
