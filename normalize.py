"""Whitespace normalization for free-text record fields."""

from __future__ import annotations

import re
from typing import Any

_WHITESPACE_RUN = re.compile(r"\s{2,}")


def normalize_text(text: Any) -> str:
    """Collapse runs of two or more whitespace characters and trim.

    ``None`` becomes an empty string; other non-text values are coerced with
    ``str``. The result is stable under repeated application.
    """
    if text is None:
        return ""
    value = text if isinstance(text, str) else str(text)
    return _WHITESPACE_RUN.sub(" ", value).strip()
