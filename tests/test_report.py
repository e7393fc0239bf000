from pathlib import Path

from models import Record
from report import EMPTY_ROW, render_records_table, write_records_report
from search import compile_pattern

RECORD = Record(
    id="rec_1",
    title="<Dune>",
    author="Frank Herbert",
    pages=412,
    tag="Sci-Fi",
    status="done",
    date_added="2024-01-15",
    created_at="",
    updated_at="",
)


def test_table_highlights_searchable_fields_only() -> None:
    html = render_records_table([RECORD], compile_pattern("e"))
    assert "<td>&lt;Dun<mark>e</mark>&gt;</td>" in html
    assert "<td>Frank H<mark>e</mark>rb<mark>e</mark>rt</td>" in html
    assert "<td>2024-01-15</td>" in html
    assert '<span class="status-done">done</span>' in html


def test_table_without_pattern_escapes_text() -> None:
    html = render_records_table([RECORD])
    assert "&lt;Dune&gt;" in html
    assert "<mark>" not in html
    assert '<tr data-id="rec_1">' in html


def test_empty_table_has_placeholder_row() -> None:
    assert EMPTY_ROW in render_records_table([])


def test_write_records_report(tmp_path: Path) -> None:
    out = write_records_report([RECORD], compile_pattern("dune"), path=str(tmp_path / "r.html"))
    html = out.read_text(encoding="utf-8")
    assert html.startswith("<!DOCTYPE html>")
    assert "&lt;<mark>Dune</mark>&gt;" in html
