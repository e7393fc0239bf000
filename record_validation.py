"""Structural validation of book records before they are saved."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from models import STATUSES, Record

PATTERNS: dict[str, re.Pattern[str]] = {
    # At least one non-space character and no leading/trailing whitespace.
    "title": re.compile(r"\S(?:.*\S)?"),
    # Non-negative number with at most two decimals.
    "numeric": re.compile(r"(0|[1-9][0-9]*)(\.[0-9]{1,2})?"),
    "date": re.compile(r"[0-9]{4}-(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])"),
    # Letter groups joined by single spaces or hyphens (authors and tags).
    "tag": re.compile(r"[A-Za-z]+(?:[ -][A-Za-z]+)*"),
    "duplicate_word": re.compile(r"\b(\w+)\s+\1\b", re.IGNORECASE),
}

MSG_TITLE = "Title must not have leading/trailing spaces and must contain text."
MSG_DUPLICATE_WORD = "Title should not contain the same word twice in a row."
MSG_AUTHOR = "Author contains invalid characters. (Allowed: letters, spaces, hyphens)"
MSG_PAGES_FORMAT = "Pages must be a positive number (max 2 decimals)."
MSG_PAGES_MIN = "Pages must be at least 1."
MSG_TAG = "Tag must contain only letters, spaces, or hyphens."
MSG_STATUS = "Status must be unread, reading, or done."
MSG_DATE = "Date must be in YYYY-MM-DD format."


def validate_record(record: Mapping[str, Any] | Record) -> list[str]:
    """Return every rule violation for ``record``, in rule order.

    An empty list means the record may be saved. Fields are read by their JSON
    names (``dateAdded``; ``date_added`` is accepted too). Missing or non-text
    values are coerced rather than rejected with an exception.
    """
    if isinstance(record, Record):
        record = record.to_dict()
    elif not isinstance(record, Mapping):
        record = {}

    title = _text(record.get("title"))
    author = _text(record.get("author"))
    pages = _text(record.get("pages"))
    tag = _text(record.get("tag"))
    status = record.get("status")
    date_added = _text(record.get("dateAdded", record.get("date_added")))

    errors: list[str] = []

    if not PATTERNS["title"].fullmatch(title):
        errors.append(MSG_TITLE)
    if PATTERNS["duplicate_word"].search(title):
        errors.append(MSG_DUPLICATE_WORD)
    if author and not PATTERNS["tag"].fullmatch(author):
        errors.append(MSG_AUTHOR)
    if not PATTERNS["numeric"].fullmatch(pages):
        errors.append(MSG_PAGES_FORMAT)
    magnitude = _as_number(pages)
    if magnitude is not None and magnitude < 1:
        errors.append(MSG_PAGES_MIN)
    if not PATTERNS["tag"].fullmatch(tag):
        errors.append(MSG_TAG)
    if status not in STATUSES:
        errors.append(MSG_STATUS)
    if not PATTERNS["date"].fullmatch(date_added):
        errors.append(MSG_DATE)

    return errors


def _text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return value if isinstance(value, str) else str(value)


def _as_number(text: str) -> float | None:
    """Numeric value of ``text``; blank counts as 0, non-numbers as None."""
    if not text.strip():
        return 0.0
    try:
        return float(text)
    except ValueError:
        return None
