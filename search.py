"""Query compilation, match highlighting and the filtered/sorted record view.

Public API
----------
compile_pattern(query, extra_flags)        -> re.Pattern | None
highlight_matches(text, pattern)           -> str   # escaped markup
filter_records(records, pattern)           -> list[Record]
sort_records(records, sort_key)            -> list[Record]
search_records(records, query, ...)        -> SearchResult
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable

from escaping import escape_html, escape_pattern
from models import DEFAULT_SORT_KEY, Record, parse_pages

LOGGER = logging.getLogger(__name__)

# Flag letters accepted after the closing delimiter of /pattern/flags.
# "g", "u", "y", "d" and "v" are accepted but change nothing: scans are
# always exhaustive and str patterns are always unicode.
_FLAG_BITS: dict[str, int] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "g": 0,
    "u": 0,
    "y": 0,
    "d": 0,
    "v": 0,
}

DEFAULT_LITERAL_FLAGS = "i"


# ─────────────────────────────────────────────────────────────────────────────
# Pattern compilation
# ─────────────────────────────────────────────────────────────────────────────

def compile_pattern(query: Any, extra_flags: str | None = None) -> re.Pattern[str] | None:
    """Compile a user query into a regex, or return None.

    Two query forms are understood:

    - ``/pattern/flags`` (e.g. ``/foo/i``): the body is used as-is and the
      flag letters are unioned with ``extra_flags``.
    - anything else: the trimmed query is matched as a literal substring.
      ``extra_flags`` of None means the default case-insensitive search;
      pass ``""`` to make the literal search case-sensitive.

    None is returned for absent or blank queries and for queries that fail to
    compile, so callers can treat every None as "do not filter".
    """
    if not isinstance(query, str):
        return None
    query = query.strip()
    if not query:
        return None

    last_slash = query.rfind("/")
    if query.startswith("/") and last_slash > 0:
        source = query[1:last_slash]
        flags = _merge_flags(query[last_slash + 1:], extra_flags or "")
    else:
        source = escape_pattern(query)
        flags = DEFAULT_LITERAL_FLAGS if extra_flags is None else extra_flags

    try:
        return re.compile(source, _flag_bits(flags))
    except (re.error, ValueError) as exc:
        LOGGER.warning("Invalid regex %r: %s", query, exc)
        return None


def _merge_flags(*groups: str) -> str:
    """Union flag letters, dropping duplicates and keeping first-seen order."""
    return "".join(dict.fromkeys("".join(groups)))


def _flag_bits(flags: str) -> int:
    bits = 0
    for letter in flags:
        if letter not in _FLAG_BITS:
            raise ValueError(f"unknown flag {letter!r}")
        bits |= _FLAG_BITS[letter]
    return bits


# ─────────────────────────────────────────────────────────────────────────────
# Highlighting
# ─────────────────────────────────────────────────────────────────────────────

def highlight_matches(text: Any, pattern: re.Pattern[str] | None) -> str:
    """Return ``text`` as escaped markup with every match wrapped in <mark>.

    Matching always scans the whole text for non-overlapping matches. A
    zero-width match yields an empty <mark></mark> and the scan moves on by one
    character; that character stays part of the following unmatched span.
    """
    if text is None:
        text = ""
    elif not isinstance(text, str):
        text = str(text)
    if pattern is None:
        return escape_html(text)

    out: list[str] = []
    emitted = 0
    pos = 0
    while pos <= len(text):
        match = pattern.search(text, pos)
        if match is None:
            break
        start, end = match.span()
        out.append(escape_html(text[emitted:start]))
        out.append(f"<mark>{escape_html(match.group(0))}</mark>")
        emitted = end
        pos = end if end > start else end + 1
    out.append(escape_html(text[emitted:]))
    return "".join(out)


# ─────────────────────────────────────────────────────────────────────────────
# Filtered / sorted view
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class SearchResult:
    records: list[Record]
    pattern: re.Pattern[str] | None
    invalid: bool  # a query was given but did not compile


def filter_records(records: Iterable[Record], pattern: re.Pattern[str] | None) -> list[Record]:
    """Keep records whose title, author or tag match ``pattern``."""
    if pattern is None:
        return list(records)
    return [r for r in records if pattern.search(f"{r.title} {r.author} {r.tag}")]


def _date_key(record: Record) -> date:
    try:
        return date.fromisoformat(record.date_added)
    except ValueError:
        return date.min


def _title_key(record: Record) -> str:
    return record.title.casefold()


def _pages_key(record: Record) -> int | float:
    return parse_pages(record.pages)


_SORTS: dict[str, tuple[Callable[[Record], Any], bool]] = {
    "date_desc": (_date_key, True),
    "date_asc": (_date_key, False),
    "title_asc": (_title_key, False),
    "title_desc": (_title_key, True),
    "pages_asc": (_pages_key, False),
    "pages_desc": (_pages_key, True),
}


def sort_records(records: Iterable[Record], sort_key: str | None = None) -> list[Record]:
    """Return a stably sorted copy; unknown keys fall back to newest first."""
    key_fn, reverse = _SORTS.get(sort_key or DEFAULT_SORT_KEY, _SORTS[DEFAULT_SORT_KEY])
    return sorted(records, key=key_fn, reverse=reverse)


def search_records(
    records: Iterable[Record],
    query: str | None,
    case_insensitive: bool = True,
    sort_key: str | None = None,
) -> SearchResult:
    """Filter by ``query`` and sort; an invalid query leaves records unfiltered."""
    q = (query or "").strip()
    pattern = compile_pattern(q, "i" if case_insensitive else "") if q else None
    matched = filter_records(records, pattern)
    return SearchResult(
        records=sort_records(matched, sort_key),
        pattern=pattern,
        invalid=bool(q) and pattern is None,
    )
