"""HTML report of the record collection with search matches highlighted.

The report is a single self-contained page:

  records.html — one table row per record, in the current sort order.
                 Title, author and tag cells carry <mark> spans for the
                 active search; every other cell is escaped text.

Runnable standalone against the stored records:
    python report.py [QUERY]
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterable

from escaping import escape_html
from models import Record
from search import highlight_matches

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configurable paths
# ---------------------------------------------------------------------------

REPORT_PATH = os.getenv("REPORT_PATH", "records.html")

# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

COLUMNS = ["Title", "Author", "Pages", "Tag", "Status", "Date Added"]

EMPTY_ROW = f'<tr><td colspan="{len(COLUMNS)}" class="empty">No records found.</td></tr>'

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
<h1>{title}</h1>
{table}
</body>
</html>
"""


def _render_row(record: Record, pattern: re.Pattern[str] | None) -> str:
    cells = [
        highlight_matches(record.title, pattern),
        highlight_matches(record.author, pattern),
        escape_html(record.pages),
        highlight_matches(record.tag, pattern),
        f'<span class="status-{escape_html(record.status)}">{escape_html(record.status or "unread")}</span>',
        escape_html(record.date_added),
    ]
    body = "".join(f"<td>{cell}</td>" for cell in cells)
    return f'<tr data-id="{escape_html(record.id)}">{body}</tr>'


def render_records_table(records: Iterable[Record], pattern: re.Pattern[str] | None = None) -> str:
    """Render records as an HTML table; matches of ``pattern`` are marked."""
    rows = [_render_row(r, pattern) for r in records] or [EMPTY_ROW]
    head = "".join(f"<th>{escape_html(c)}</th>" for c in COLUMNS)
    return (
        "<table>\n"
        f"<thead><tr>{head}</tr></thead>\n"
        "<tbody>\n" + "\n".join(rows) + "\n</tbody>\n"
        "</table>"
    )


def write_records_report(
    records: Iterable[Record],
    pattern: re.Pattern[str] | None = None,
    path: str | None = None,
    title: str = "Reading Tracker",
) -> Path:
    """Write the records table as a complete HTML page and return its path."""
    records = list(records)
    out = Path(path or REPORT_PATH)
    html = _PAGE_TEMPLATE.format(title=escape_html(title), table=render_records_table(records, pattern))
    out.write_text(html, encoding="utf-8")
    LOGGER.info("report: %d records → %s", len(records), out)
    return out


# ---------------------------------------------------------------------------
# Standalone execution
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import sys

    from dotenv import load_dotenv

    from search import search_records
    from store import RecordStore

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    store = RecordStore.open()
    query = sys.argv[1] if len(sys.argv) > 1 else None
    result = search_records(
        store.records,
        query,
        case_insensitive=store.settings.case_insensitive,
        sort_key=store.settings.sort_by,
    )
    print(f"Report → {write_records_report(result.records, result.pattern)}")
