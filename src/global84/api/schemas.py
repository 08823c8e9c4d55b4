from pydantic import BaseModel, Field


class CsvImportRequest(BaseModel):
    csv_text: str = Field(..., min_length=1)
    file_name: str = ""


class PreviewRequest(BaseModel):
    csv_text: str
    preview_limit: int = Field(10, ge=0, le=500)


class ImportRowRead(BaseModel):
    row_number: int
    valid: bool
    city: str
    type: str
    category: str
    name: str
    neighborhood: str = ""
    hours: str = ""
    price: str = ""
    tags: list[str] = []
    google_maps_url: str = ""
    reservation_url: str = ""
    notes: str = ""
    recommended_by: str = ""
    errors: list[str] = []

    class Config:
        from_attributes = True


class PreviewRead(BaseModel):
    headers: list[str]
    missing_columns: list[str]
    ignored_columns: list[str]
    total_rows: int
    importable_count: int
    skipped_count: int
    preview_rows: list[ImportRowRead]


class ImportResultRead(BaseModel):
    imported: int
    updated: int
    skipped: int
    removed_duplicates: int


class CleanupResultRead(BaseModel):
    removed_duplicates: int


class FavoritesRead(BaseModel):
    explore_ids: list[str]


class FavoriteToggleRead(BaseModel):
    explore_id: str
    favorited: bool
