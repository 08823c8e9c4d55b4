from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from global84.util.text import clean_text, collapse_whitespace, title_case

REQUIRED_COLUMNS = ("city", "type", "name")
OPTIONAL_COLUMNS = (
    "neighborhood",
    "hours",
    "price",
    "tags",
    "category",
    "googlemapsurl",
    "reservationurl",
    "notes",
    "recommendedby",
)

MAX_TAGS = 20
PRICES = ("$", "$$", "$$$")
CATEGORIES = ("dining", "activity")

CITY_ALIASES = {
    "singapore": "Singapore",
    "sg": "Singapore",
    "ho chi minh city": "Ho Chi Minh City",
    "ho chi minh": "Ho Chi Minh City",
    "hcmc": "Ho Chi Minh City",
    "saigon": "Ho Chi Minh City",
}

TYPE_ALIASES = {
    "restaurant": "Restaurant",
    "restaurants": "Restaurant",
    "food": "Restaurant",
    "coffee": "Coffee",
    "cafe": "Coffee",
    "café": "Coffee",
    "coffee shop": "Coffee",
    "bar": "Bar",
    "bars": "Bar",
    "drinks": "Bar",
    "pub": "Bar",
    "cocktail bar": "Bar",
    "rooftop bar": "Rooftop Bar",
    "rooftop": "Rooftop Bar",
    "hawker": "Hawker Center",
    "hawker center": "Hawker Center",
    "hawker centre": "Hawker Center",
    "food court": "Hawker Center",
    "museum": "Museum",
    "museums": "Museum",
    "temple": "Temple",
    "pagoda": "Temple",
    "market": "Market",
    "markets": "Market",
    "night market": "Market",
    "shopping": "Shopping",
    "mall": "Shopping",
    "spa": "Spa",
    "massage": "Spa",
    "nightlife": "Nightlife",
    "club": "Nightlife",
    "nature": "Nature",
    "park": "Nature",
    "tour": "Tour",
    "tours": "Tour",
    "adventure": "Adventure",
}

DINING_TYPES = frozenset({"Restaurant", "Coffee", "Bar", "Rooftop Bar", "Hawker Center"})


@dataclass(frozen=True)
class ImportRow:
    row_number: int
    valid: bool
    city: str
    type: str
    category: str
    name: str
    neighborhood: str = ""
    hours: str = ""
    price: str = ""
    tags: tuple[str, ...] = ()
    google_maps_url: str = ""
    reservation_url: str = ""
    notes: str = ""
    recommended_by: str = ""
    errors: tuple[str, ...] = ()

    def to_record(self) -> dict[str, Any]:
        """Persisted field names, as stored on an Explore document."""
        return {
            "city": self.city,
            "type": self.type,
            "category": self.category,
            "name": self.name,
            "neighborhood": self.neighborhood,
            "hours": self.hours,
            "price": self.price,
            "tags": list(self.tags),
            "googleMapsUrl": self.google_maps_url,
            "reservationUrl": self.reservation_url,
            "notes": self.notes,
            "recommendedBy": self.recommended_by,
        }


def _field(raw: Mapping[str, Any], *names: str) -> str:
    for name in names:
        value = clean_text(raw.get(name))
        if value:
            return value
    return ""


def normalize_city(value: str | None) -> str:
    city = clean_text(value)
    if not city:
        return ""
    return CITY_ALIASES.get(collapse_whitespace(city).lower(), city)


def normalize_type(value: str | None) -> str:
    key = collapse_whitespace(value).lower()
    if not key:
        return ""
    return TYPE_ALIASES.get(key) or title_case(key)


def normalize_category(value: str | None, normalized_type: str) -> str:
    explicit = clean_text(value).lower()
    if explicit in CATEGORIES:
        return explicit
    return "dining" if normalized_type in DINING_TYPES else "activity"


def normalize_price(value: str | None) -> str:
    price = clean_text(value)
    return price if price in PRICES else ""


def parse_tags(value: Any) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        parts = [clean_text(item) for item in value]
    else:
        parts = clean_text(value).split(",")
    tags = [part.strip().lower() for part in parts]
    return tuple(tag for tag in tags if tag)[:MAX_TAGS]


def normalize_row(raw: Mapping[str, Any], row_number: int = 0) -> ImportRow:
    """Clean one raw row into an ImportRow.

    Never raises for malformed optional fields; they degrade to "". Only a
    missing city, type or name marks the row invalid, and the reasons are
    kept in ``errors`` for reporting.
    """
    city = normalize_city(_field(raw, "city"))
    type_ = normalize_type(_field(raw, "type"))
    name = _field(raw, "name")

    errors = tuple(f"missing_{column}" for column, value in zip(REQUIRED_COLUMNS, (city, type_, name)) if not value)

    return ImportRow(
        row_number=row_number,
        valid=not errors,
        city=city,
        type=type_,
        category=normalize_category(_field(raw, "category"), type_),
        name=name,
        neighborhood=_field(raw, "neighborhood"),
        hours=_field(raw, "hours"),
        price=normalize_price(_field(raw, "price")),
        tags=parse_tags(raw.get("tags")),
        google_maps_url=_field(raw, "googlemapsurl", "googleMapsUrl"),
        reservation_url=_field(raw, "reservationurl", "reservationUrl"),
        notes=_field(raw, "notes"),
        recommended_by=_field(raw, "recommendedby", "recommendedBy"),
        errors=errors,
    )


def unrecognized_columns(header: list[str]) -> list[str]:
    known = set(REQUIRED_COLUMNS) | set(OPTIONAL_COLUMNS)
    return [column for column in header if column not in known]
