"""JSON file persistence for records and settings, plus seed loading."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import requests

RECORDS_PATH = os.getenv("RECORDS_PATH", "reading_records.json")
SETTINGS_PATH = os.getenv("SETTINGS_PATH", "reading_settings.json")
SEED_URL = os.getenv("SEED_URL", "seed.json")
REQUEST_TIMEOUT_SECONDS = 20

LOGGER = logging.getLogger(__name__)


def load_records(path: str | None = None) -> list[dict[str, Any]]:
    """Return the stored record dicts, or [] if the file is missing or corrupt."""
    data = _read_json(Path(path or RECORDS_PATH), default=[])
    if not isinstance(data, list):
        LOGGER.error("Load records error: expected a list in %s", path or RECORDS_PATH)
        return []
    return [item for item in data if isinstance(item, dict)]


def save_records(records: list[dict[str, Any]], path: str | None = None) -> None:
    _write_json(Path(path or RECORDS_PATH), records)


def load_settings(path: str | None = None) -> dict[str, Any]:
    data = _read_json(Path(path or SETTINGS_PATH), default={})
    return data if isinstance(data, dict) else {}


def save_settings(settings: dict[str, Any], path: str | None = None) -> None:
    _write_json(Path(path or SETTINGS_PATH), settings)


def load_seed(url: str | None = None) -> list[dict[str, Any]]:
    """Load seed records from an http(s) URL or a local JSON file.

    The payload may be a bare list of records or ``{"records": [...]}``.
    Failures are logged and yield an empty list.
    """
    source = url or SEED_URL
    try:
        if source.startswith(("http://", "https://")):
            response = requests.get(source, timeout=REQUEST_TIMEOUT_SECONDS)
            response.raise_for_status()
            payload = response.json()
        else:
            payload = json.loads(Path(source).read_text(encoding="utf-8"))
    except (requests.RequestException, OSError, ValueError) as exc:
        LOGGER.warning("Seed load failed for %s: %s", source, exc)
        return []

    if isinstance(payload, dict):
        payload = payload.get("records")
    if not isinstance(payload, list):
        LOGGER.warning("Seed load failed for %s: expected a list of records", source)
        return []

    seed = [item for item in payload if isinstance(item, dict)]
    LOGGER.info("Loaded %s seed records from %s", len(seed), source)
    return seed


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        with path.open(encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        LOGGER.error("Failed to read %s: %s", path, exc)
        return default


def _write_json(path: Path, data: Any) -> None:
    try:
        with path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
    except OSError as exc:
        LOGGER.error("Failed to write %s: %s", path, exc)
