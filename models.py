"""Shared typed models for the reading tracker."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, NamedTuple

STATUSES: tuple[str, ...] = ("unread", "reading", "done")

SORT_KEYS: tuple[str, ...] = (
    "date_desc",
    "date_asc",
    "title_asc",
    "title_desc",
    "pages_asc",
    "pages_desc",
)
DEFAULT_SORT_KEY = "date_desc"


@dataclass(slots=True)
class Record:
    """One tracked book, as stored in the collection and exported to JSON."""

    id: str
    title: str
    author: str
    pages: int | float
    tag: str
    status: str
    date_added: str
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "pages": self.pages,
            "tag": self.tag,
            "status": self.status,
            "dateAdded": self.date_added,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Record:
        """Build a Record from its JSON form; missing keys get empty values."""
        return cls(
            id=_as_text(data.get("id")),
            title=_as_text(data.get("title")),
            author=_as_text(data.get("author")),
            pages=parse_pages(data.get("pages")),
            tag=_as_text(data.get("tag")),
            status=_as_text(data.get("status")) or "unread",
            date_added=_as_text(data.get("dateAdded", data.get("date_added"))),
            created_at=_as_text(data.get("createdAt", data.get("created_at"))),
            updated_at=_as_text(data.get("updatedAt", data.get("updated_at"))),
        )


@dataclass(slots=True)
class Settings:
    """User preferences persisted next to the records."""

    goal: int = 0
    unit: str = "pages"
    case_insensitive: bool = True
    sort_by: str = DEFAULT_SORT_KEY

    def to_dict(self) -> dict[str, Any]:
        return {
            "goal": self.goal,
            "unit": self.unit,
            "caseInsensitive": self.case_insensitive,
            "sortBy": self.sort_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Settings:
        data = data or {}
        defaults = cls()
        sort_by = data.get("sortBy", data.get("sort_by"))
        case_insensitive = data.get("caseInsensitive", data.get("case_insensitive"))
        return cls(
            goal=_as_int(data.get("goal")),
            unit=_as_text(data.get("unit")) or defaults.unit,
            case_insensitive=(
                defaults.case_insensitive if case_insensitive is None else bool(case_insensitive)
            ),
            sort_by=sort_by if sort_by in SORT_KEYS else defaults.sort_by,
        )

    def replace(self, **changes: Any) -> Settings:
        """Return a copy with ``changes`` applied; unknown names raise TypeError."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return Settings(**{**asdict(self), **changes})


class TagCount(NamedTuple):
    tag: str
    count: int


def parse_pages(value: Any) -> int | float:
    """Convert a pages value to a number; unparseable input becomes 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip()) if value is not None else 0.0
        except ValueError:
            return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
