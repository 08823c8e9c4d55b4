from __future__ import annotations

from typing import Any, Mapping

from global84.util.text import clean_text, collapse_whitespace

from .normalization import normalize_city, normalize_type


def normalize_name_for_key(name: str | None) -> str:
    return collapse_whitespace(name).lower()


def make_stable_key(city: str | None, type_: str | None, name: str | None) -> str:
    return f"{clean_text(city)}::{clean_text(type_)}::{normalize_name_for_key(name)}"


def record_stable_key(record: Mapping[str, Any]) -> str | None:
    """Key for a stored Explore record, or None when it cannot carry one.

    City and type are passed through the row normalizer first so records
    written before the alias tables existed (e.g. type "cafe") group with
    the canonical spelling.
    """
    city = normalize_city(clean_text(record.get("city")))
    type_ = normalize_type(clean_text(record.get("type")))
    name = clean_text(record.get("name"))
    if not city or not type_ or not name:
        return None
    return make_stable_key(city, type_, name)
