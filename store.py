"""Observable in-memory record collection with optional JSON persistence."""

from __future__ import annotations

import json
import logging
import uuid
from collections import Counter
from datetime import UTC, date, datetime
from typing import Any, Callable, Iterable

import storage
from models import Record, Settings, TagCount, parse_pages

LOGGER = logging.getLogger(__name__)

Listener = Callable[["RecordStore"], None]

UNTAGGED = "Untagged"

# Attribute names accepted in update() changes, mapped to their JSON keys.
_JSON_KEYS = {
    "date_added": "dateAdded",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def new_record_id() -> str:
    return f"rec_{str(uuid.uuid4())[:8]}"


def _now() -> str:
    return datetime.now(UTC).isoformat()


class RecordStore:
    """Ordered record collection plus settings.

    Every mutating method persists (when paths are configured) and then calls
    the subscribed listeners synchronously, in registration order.
    """

    def __init__(
        self,
        records: Iterable[Record] | None = None,
        settings: Settings | None = None,
        records_path: str | None = None,
        settings_path: str | None = None,
    ) -> None:
        self.records: list[Record] = list(records or [])
        self.settings: Settings = settings or Settings()
        self.records_path = records_path
        self.settings_path = settings_path
        self._listeners: list[Listener] = []

    @classmethod
    def open(cls, records_path: str | None = None, settings_path: str | None = None) -> RecordStore:
        """Load a store from the given files (or the storage defaults)."""
        records_path = records_path or storage.RECORDS_PATH
        settings_path = settings_path or storage.SETTINGS_PATH
        records = [Record.from_dict(item) for item in storage.load_records(records_path)]
        settings = Settings.from_dict(storage.load_settings(settings_path))
        LOGGER.debug("Opened store with %s records from %s", len(records), records_path)
        return cls(records, settings, records_path=records_path, settings_path=settings_path)

    # ── observers ───────────────────────────────────────────────────────────

    def subscribe(self, fn: Listener) -> Callable[[], None]:
        """Register ``fn``; the returned callable unsubscribes it."""
        self._listeners.append(fn)

        def unsubscribe() -> None:
            if fn in self._listeners:
                self._listeners.remove(fn)

        return unsubscribe

    def notify(self) -> None:
        for fn in list(self._listeners):
            fn(self)

    # ── mutations ───────────────────────────────────────────────────────────

    def get(self, record_id: str) -> Record | None:
        return next((r for r in self.records if r.id == record_id), None)

    def add(self, payload: dict[str, Any]) -> Record:
        now = _now()
        record = Record.from_dict({"createdAt": now, "updatedAt": now, **payload})
        record.id = record.id or new_record_id()
        self.records.append(record)
        self._save_records()
        self.notify()
        return record

    def update(self, record_id: str, changes: dict[str, Any]) -> Record | None:
        for idx, current in enumerate(self.records):
            if current.id == record_id:
                break
        else:
            return None
        changes = {_JSON_KEYS.get(key, key): value for key, value in changes.items()}
        merged = {**current.to_dict(), **changes}
        merged.update(id=current.id, createdAt=current.created_at, updatedAt=_now())
        self.records[idx] = Record.from_dict(merged)
        self._save_records()
        self.notify()
        return self.records[idx]

    def remove(self, record_id: str) -> bool:
        before = len(self.records)
        self.records = [r for r in self.records if r.id != record_id]
        if len(self.records) == before:
            return False
        self._save_records()
        self.notify()
        return True

    def set_records(self, records: Iterable[Record]) -> None:
        self.records = list(records)
        self._save_records()
        self.notify()

    def set_settings(self, **changes: Any) -> Settings:
        self.settings = self.settings.replace(**changes)
        self._save_settings()
        self.notify()
        return self.settings

    def clear_all(self) -> None:
        self.records = []
        self.settings = Settings()
        self._save_records()
        self._save_settings()
        self.notify()

    def load_seed(self, entries: Iterable[dict[str, Any]]) -> int:
        """Replace the collection with seed entries, filling in ids and timestamps."""
        now = _now()
        seeded = []
        for entry in entries:
            record = Record.from_dict({"createdAt": now, "updatedAt": now, **entry})
            record.id = record.id or new_record_id()
            record.created_at = record.created_at or now
            record.updated_at = record.updated_at or now
            seeded.append(record)
        self.set_records(seeded)
        return len(seeded)

    # ── import / export ─────────────────────────────────────────────────────

    def export_json(self) -> str:
        return json.dumps(
            {
                "records": [r.to_dict() for r in self.records],
                "settings": self.settings.to_dict(),
            },
            indent=2,
            ensure_ascii=False,
        )

    def import_json(self, raw: str) -> bool:
        """Replace records (and settings, if present) from exported JSON."""
        try:
            data = json.loads(raw)
            if not isinstance(data, dict) or not isinstance(data.get("records"), list):
                raise ValueError("Invalid records array")
            records = [Record.from_dict(item) for item in data["records"] if isinstance(item, dict)]
            settings = (
                Settings.from_dict(data["settings"])
                if isinstance(data.get("settings"), dict)
                else self.settings
            )
        except ValueError as exc:
            LOGGER.error("Import failed: %s", exc)
            return False

        self.records = records
        self.settings = settings
        self._save_records()
        self._save_settings()
        self.notify()
        return True

    # ── stats ───────────────────────────────────────────────────────────────

    def total_pages(self) -> int | float:
        return sum(parse_pages(r.pages) for r in self.records)

    def pages_read(self) -> int | float:
        return sum(parse_pages(r.pages) for r in self.records if r.status == "done")

    def top_tags(self, limit: int = 3) -> list[TagCount]:
        counts = Counter((r.tag or UNTAGGED).strip() for r in self.records)
        return [TagCount(tag, count) for tag, count in counts.most_common(limit)]

    def weekly_trend(self, today: date | None = None) -> list[int | float]:
        """Pages per day over the last seven days, oldest first."""
        today = today or datetime.now(UTC).date()
        trend: list[int | float] = [0] * 7
        for record in self.records:
            try:
                added = date.fromisoformat(record.date_added)
            except ValueError:
                continue
            diff = (today - added).days
            if 0 <= diff < 7:
                trend[6 - diff] += parse_pages(record.pages)
        return trend

    # ── persistence ─────────────────────────────────────────────────────────

    def _save_records(self) -> None:
        if self.records_path:
            storage.save_records([r.to_dict() for r in self.records], self.records_path)

    def _save_settings(self) -> None:
        if self.settings_path:
            storage.save_settings(self.settings.to_dict(), self.settings_path)
