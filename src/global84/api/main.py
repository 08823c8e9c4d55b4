import os
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, FastAPI, Header, Query, Request, status
from fastapi.responses import JSONResponse, Response

from global84.api.schemas import (
    CleanupResultRead,
    CsvImportRequest,
    FavoriteToggleRead,
    FavoritesRead,
    ImportResultRead,
    ImportRowRead,
    PreviewRead,
    PreviewRequest,
)
from global84.auth.caller import Caller
from global84.db.sql_store import SqlDocumentStore
from global84.explore.catalog import (
    MAX_LIST_LIMIT,
    archive_explore_item,
    delete_explore_item,
    list_explore_items,
)
from global84.explore.favorites import list_favorites, toggle_favorite
from global84.explore.csv_parser import missing_required_columns, read_csv
from global84.explore.errors import ExploreImportError, MisconfiguredTarget
from global84.explore.normalization import REQUIRED_COLUMNS, unrecognized_columns
from global84.explore.service import cleanup_explore_duplicates, get_explore_import_preview, import_explore_csv
from global84.settings import get_cohort_id

app = FastAPI(title="Global 84")

ERROR_STATUS = {
    "unauthenticated": status.HTTP_401_UNAUTHORIZED,
    "misconfigured-target": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "permission-denied": status.HTTP_403_FORBIDDEN,
    "permission-denied-at-write": status.HTTP_403_FORBIDDEN,
    "no-valid-rows": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "missing-columns": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "not-found": status.HTTP_404_NOT_FOUND,
    "batch-write-failed": status.HTTP_502_BAD_GATEWAY,
}


@app.exception_handler(ExploreImportError)
def _explore_error(request: Request, exc: ExploreImportError) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST),
        content={"detail": str(exc), "code": exc.code},
    )


def get_store():
    return SqlDocumentStore()


Store = Annotated[SqlDocumentStore, Depends(get_store)]


def get_caller(
    store: Store,
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_name: Annotated[str | None, Header()] = None,
) -> Caller:
    return Caller(uid=(x_user_id or "").strip() or None, display_name=(x_user_name or "").strip(), store=store)


CurrentCaller = Annotated[Caller, Depends(get_caller)]


@app.get("/health")
def health():
    payload = {
        "status": "ok",
        "app": app.title,
        "time": datetime.now(timezone.utc).isoformat(),
    }
    if os.getenv("GLOBAL84_COHORT_ID") is not None:
        payload["cohort_configured"] = bool(get_cohort_id())
    return payload


@app.get("/explore")
def list_explore(
    store: Store,
    city: str | None = None,
    type: str | None = None,
    category: str | None = None,
    limit: Annotated[int, Query(ge=1, le=MAX_LIST_LIMIT)] = MAX_LIST_LIMIT,
    q: str | None = None,
):
    cohort_id = get_cohort_id()
    if not cohort_id:
        raise MisconfiguredTarget()
    return list_explore_items(store, cohort_id, city=city, type_=type, category=category, limit=limit, search=q)


@app.get("/explore/favorites", response_model=FavoritesRead)
def my_favorites(store: Store, caller: CurrentCaller):
    return FavoritesRead(explore_ids=sorted(list_favorites(store, caller)))


@app.post("/explore/import/preview", response_model=PreviewRead)
def preview_import(payload: PreviewRequest):
    header, rows = read_csv(payload.csv_text)
    preview = get_explore_import_preview(rows, payload.preview_limit)
    return PreviewRead(
        headers=header,
        missing_columns=missing_required_columns(header, REQUIRED_COLUMNS),
        ignored_columns=unrecognized_columns(header),
        total_rows=preview.total_rows,
        importable_count=preview.importable_count,
        skipped_count=preview.skipped_count,
        preview_rows=[ImportRowRead.model_validate(row) for row in preview.preview_rows],
    )


@app.post("/explore/import", response_model=ImportResultRead)
def run_import(payload: CsvImportRequest, store: Store, caller: CurrentCaller):
    report = import_explore_csv(store, caller, payload.csv_text, file_name=payload.file_name)
    return ImportResultRead(
        imported=report.imported,
        updated=report.updated,
        skipped=report.skipped,
        removed_duplicates=report.removed_duplicates,
    )


@app.post("/explore/cleanup", response_model=CleanupResultRead)
def run_cleanup(store: Store, caller: CurrentCaller):
    report = cleanup_explore_duplicates(store, caller)
    return CleanupResultRead(removed_duplicates=report.removed_duplicates)


@app.post("/explore/{item_id}/archive", status_code=status.HTTP_204_NO_CONTENT)
def archive_item(item_id: str, store: Store, caller: CurrentCaller):
    archive_explore_item(store, caller, None, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.delete("/explore/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(item_id: str, store: Store, caller: CurrentCaller):
    delete_explore_item(store, caller, None, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/explore/{item_id}/favorite", response_model=FavoriteToggleRead)
def favorite_item(item_id: str, store: Store, caller: CurrentCaller):
    return FavoriteToggleRead(explore_id=item_id, favorited=toggle_favorite(store, caller, item_id))
