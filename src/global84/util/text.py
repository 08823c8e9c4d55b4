from __future__ import annotations

import re

_WS_RE = re.compile(r"\s+")


def clean_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def collapse_whitespace(value: str | None) -> str:
    return _WS_RE.sub(" ", value or "").strip()


def title_case(value: str | None) -> str:
    # str.title() would turn "tan's" into "Tan'S"
    words = collapse_whitespace(value).split(" ")
    return " ".join(word[:1].upper() + word[1:].lower() for word in words if word)
