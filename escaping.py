"""Escaping helpers shared by the highlighter and the HTML report."""

from __future__ import annotations

import re
from typing import Any

# str.translate substitutes every character in one pass, so the entities it
# produces are never escaped a second time.
_HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
})


def escape_html(text: Any) -> str:
    """Escape ``& < > " '`` for safe interpolation into markup."""
    if text is None:
        return ""
    value = text if isinstance(text, str) else str(text)
    return value.translate(_HTML_ESCAPES)


def escape_pattern(text: Any) -> str:
    """Escape regex metacharacters so ``text`` matches literally."""
    if text is None:
        return ""
    return re.escape(text if isinstance(text, str) else str(text))
