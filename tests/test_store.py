from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

import storage
from models import Record, Settings, TagCount
from store import RecordStore

DUNE = {
    "title": "Dune",
    "author": "Frank Herbert",
    "pages": 412,
    "tag": "Sci-Fi",
    "status": "done",
    "dateAdded": "2024-01-15",
}
EMMA = {
    "title": "Emma",
    "author": "Jane Austen",
    "pages": 474,
    "tag": "Classic",
    "status": "reading",
    "dateAdded": "2024-01-13",
}


@pytest.fixture
def paths(tmp_path: Path) -> tuple[str, str]:
    return str(tmp_path / "records.json"), str(tmp_path / "settings.json")


@pytest.fixture
def store(paths: tuple[str, str]) -> RecordStore:
    return RecordStore.open(*paths)


def test_open_missing_files_gives_empty_store(store: RecordStore) -> None:
    assert store.records == []
    assert store.settings == Settings()


def test_add_assigns_id_and_timestamps(store: RecordStore) -> None:
    record = store.add(DUNE)
    assert record.id.startswith("rec_")
    assert len(record.id) == len("rec_") + 8
    assert record.created_at == record.updated_at
    assert store.records == [record]


def test_add_persists_to_records_file(store: RecordStore, paths: tuple[str, str]) -> None:
    store.add(DUNE)
    saved = json.loads(Path(paths[0]).read_text(encoding="utf-8"))
    assert saved[0]["title"] == "Dune"
    assert saved[0]["dateAdded"] == "2024-01-15"


def test_reopen_restores_records(store: RecordStore, paths: tuple[str, str]) -> None:
    added = store.add(DUNE)
    reopened = RecordStore.open(*paths)
    assert reopened.records == [added]


def test_update_keeps_id_and_created_at(store: RecordStore) -> None:
    record = store.add(DUNE)
    updated = store.update(record.id, {"status": "reading", "id": "rec_hijack", "createdAt": "x"})
    assert updated is not None
    assert updated.id == record.id
    assert updated.created_at == record.created_at
    assert updated.status == "reading"
    assert updated.title == "Dune"
    assert updated.updated_at >= record.updated_at


def test_update_unknown_id_returns_none(store: RecordStore) -> None:
    store.add(DUNE)
    assert store.update("rec_missing", {"title": "X"}) is None


def test_remove(store: RecordStore) -> None:
    record = store.add(DUNE)
    store.add(EMMA)
    assert store.remove(record.id) is True
    assert [r.title for r in store.records] == ["Emma"]
    assert store.remove(record.id) is False


def test_listeners_called_after_each_mutation(store: RecordStore) -> None:
    calls: list[int] = []
    store.subscribe(lambda s: calls.append(len(s.records)))

    record = store.add(DUNE)
    store.update(record.id, {"pages": 500})
    store.remove(record.id)
    store.set_settings(goal=1000)

    assert calls == [1, 1, 0, 0]


def test_failed_mutations_do_not_notify(store: RecordStore) -> None:
    calls: list[RecordStore] = []
    store.subscribe(calls.append)
    store.update("rec_missing", {})
    store.remove("rec_missing")
    assert calls == []


def test_unsubscribe_stops_notifications(store: RecordStore) -> None:
    calls: list[RecordStore] = []
    unsubscribe = store.subscribe(calls.append)
    store.add(DUNE)
    unsubscribe()
    store.add(EMMA)
    assert len(calls) == 1


def test_set_settings_persists(store: RecordStore, paths: tuple[str, str]) -> None:
    store.set_settings(goal=500, unit="minutes", sort_by="title_asc", case_insensitive=False)
    saved = json.loads(Path(paths[1]).read_text(encoding="utf-8"))
    assert saved == {"goal": 500, "unit": "minutes", "caseInsensitive": False, "sortBy": "title_asc"}


def test_set_settings_rejects_unknown_names(store: RecordStore) -> None:
    with pytest.raises(TypeError):
        store.set_settings(colour="blue")


def test_export_import_round_trip(store: RecordStore) -> None:
    store.add(DUNE)
    store.add({**EMMA, "pages": 12.5})
    store.set_settings(goal=900)
    exported = store.export_json()

    other = RecordStore()
    assert other.import_json(exported) is True
    assert other.records == store.records
    assert other.settings == store.settings
    assert json.loads(other.export_json()) == json.loads(exported)


def test_export_shape(store: RecordStore) -> None:
    store.add(DUNE)
    data = json.loads(store.export_json())
    assert set(data) == {"records", "settings"}
    assert set(data["records"][0]) == {
        "id", "title", "author", "pages", "tag", "status", "dateAdded", "createdAt", "updatedAt",
    }


@pytest.mark.parametrize("raw", ["not json", "[]", '{"records": {}}', '{"settings": {}}'])
def test_import_rejects_invalid_payload(store: RecordStore, raw: str) -> None:
    store.add(DUNE)
    assert store.import_json(raw) is False
    assert [r.title for r in store.records] == ["Dune"]


def test_import_without_settings_keeps_current(store: RecordStore) -> None:
    store.set_settings(goal=42)
    assert store.import_json(json.dumps({"records": [DUNE]})) is True
    assert store.settings.goal == 42
    assert store.records[0].title == "Dune"


def test_clear_all_resets(store: RecordStore, paths: tuple[str, str]) -> None:
    store.add(DUNE)
    store.set_settings(goal=10)
    store.clear_all()
    assert store.records == []
    assert store.settings == Settings()
    assert storage.load_records(paths[0]) == []


def test_load_seed_fills_missing_ids(store: RecordStore) -> None:
    count = store.load_seed([DUNE, {**EMMA, "id": "rec_seed0001"}])
    assert count == 2
    assert store.records[0].id.startswith("rec_")
    assert store.records[1].id == "rec_seed0001"
    assert all(r.created_at and r.updated_at for r in store.records)


def test_stats() -> None:
    store = RecordStore([
        Record.from_dict(DUNE),
        Record.from_dict(EMMA),
        Record.from_dict({**DUNE, "title": "Dune Messiah", "pages": 256, "status": "unread"}),
        Record.from_dict({**EMMA, "tag": ""}),
    ])
    assert store.total_pages() == 412 + 474 + 256 + 474
    assert store.pages_read() == 412
    assert store.top_tags() == [TagCount("Sci-Fi", 2), TagCount("Classic", 1), TagCount("Untagged", 1)]
    assert store.top_tags(limit=1) == [TagCount("Sci-Fi", 2)]


def test_weekly_trend_buckets_last_seven_days() -> None:
    store = RecordStore([
        Record.from_dict({**DUNE, "dateAdded": "2024-01-15"}),
        Record.from_dict({**EMMA, "dateAdded": "2024-01-13"}),
        Record.from_dict({**EMMA, "dateAdded": "2024-01-01"}),
        Record.from_dict({**EMMA, "dateAdded": "2024-01-16"}),
        Record.from_dict({**EMMA, "dateAdded": "not a date"}),
    ])
    assert store.weekly_trend(today=date(2024, 1, 15)) == [0, 0, 0, 0, 474, 0, 412]


def test_update_accepts_attribute_name_for_date(store: RecordStore) -> None:
    record = store.add(DUNE)
    updated = store.update(record.id, {"date_added": "2024-02-29"})
    assert updated is not None
    assert updated.date_added == "2024-02-29"


def test_update_ignores_attribute_name_for_created_at(store: RecordStore) -> None:
    record = store.add(DUNE)
    updated = store.update(record.id, {"created_at": "1999-01-01T00:00:00+00:00"})
    assert updated is not None
    assert updated.created_at == record.created_at


@pytest.mark.parametrize("goal", ["Infinity", "-Infinity", "1e999", '"1e999"', "NaN"])
def test_import_with_non_finite_goal_falls_back_to_zero(store: RecordStore, goal: str) -> None:
    raw = '{"records": [], "settings": {"goal": %s}}' % goal
    assert store.import_json(raw) is True
    assert store.settings.goal == 0


def test_open_with_infinite_goal_in_settings_file(paths: tuple[str, str]) -> None:
    Path(paths[1]).write_text('{"goal": 1e999, "unit": "pages"}', encoding="utf-8")
    store = RecordStore.open(*paths)
    assert store.settings.goal == 0
    assert store.settings.unit == "pages"
