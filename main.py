"""CLI entrypoint for the reading tracker.

Each subcommand is one user action: it calls into the core (normalize,
validate, search, store) and then renders the outcome to the terminal.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any, Callable

from dotenv import load_dotenv

import storage
from dashboard import build_dashboard
from models import SORT_KEYS, STATUSES, Record, parse_pages
from normalize import normalize_text
from record_validation import validate_record
from report import write_records_report
from search import SearchResult, search_records
from store import RecordStore

ERROR_SEPARATOR = " • "
INVALID_QUERY_NOTICE = "Invalid regular expression — search ignored."

_FORM_FIELDS = ("title", "author", "pages", "tag")


def _add_record_fields(parser: argparse.ArgumentParser, required: bool) -> None:
    parser.add_argument("--title", required=required, default=None)
    parser.add_argument("--author", default=None)
    parser.add_argument("--pages", required=required, default=None)
    parser.add_argument("--tag", required=required, default=None)
    parser.add_argument("--status", default=None, help=f"One of: {', '.join(STATUSES)} (default unread)")
    parser.add_argument("--date", dest="date_added", default=None, help="YYYY-MM-DD (default today)")


def _add_search_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--query", default=None, help="Literal text or /pattern/flags")
    case = parser.add_mutually_exclusive_group()
    case.add_argument("--case-sensitive", dest="case_insensitive", action="store_false", default=None)
    case.add_argument("--case-insensitive", dest="case_insensitive", action="store_true")
    parser.add_argument("--sort", choices=SORT_KEYS, default=None)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Track books, search them, and follow a reading goal")
    parser.add_argument("--records", default=None, help="Records JSON file (env RECORDS_PATH)")
    parser.add_argument("--settings", default=None, help="Settings JSON file (env SETTINGS_PATH)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add a record")
    _add_record_fields(add, required=True)

    edit = sub.add_parser("edit", help="Edit fields of an existing record")
    edit.add_argument("id")
    _add_record_fields(edit, required=False)

    delete = sub.add_parser("delete", help="Delete a record")
    delete.add_argument("id")

    check = sub.add_parser("check", help="Validate a record without saving it")
    _add_record_fields(check, required=False)
    check.add_argument("--no-normalize", dest="normalize", action="store_false")

    listing = sub.add_parser("list", help="List records, optionally filtered")
    _add_search_options(listing)

    report = sub.add_parser("report", help="Write an HTML table of records with matches highlighted")
    _add_search_options(report)
    report.add_argument("--output", default=None, help="HTML path (env REPORT_PATH)")

    sub.add_parser("stats", help="Show totals, top tags and goal progress")

    settings = sub.add_parser("settings", help="Show or change settings")
    settings.add_argument("--goal", type=int, default=None)
    settings.add_argument("--unit", default=None)
    settings.add_argument("--sort", choices=SORT_KEYS, default=None)
    case = settings.add_mutually_exclusive_group()
    case.add_argument("--case-sensitive", dest="case_insensitive", action="store_false", default=None)
    case.add_argument("--case-insensitive", dest="case_insensitive", action="store_true")

    export = sub.add_parser("export", help="Export records and settings as JSON")
    export.add_argument("--output", default=None, help="File to write (default stdout)")

    import_ = sub.add_parser("import", help="Replace records and settings from exported JSON")
    import_.add_argument("file")

    seed = sub.add_parser("seed", help="Replace records with seed data")
    seed.add_argument("--url", default=None, help="URL or path of seed JSON (env SEED_URL)")

    clear = sub.add_parser("clear", help="Delete all records and reset settings")
    clear.add_argument("--yes", action="store_true", help="Confirm clearing all data")

    return parser.parse_args(argv)


# ─────────────────────────────────────────────────────────────────────────────
# Form handling
# ─────────────────────────────────────────────────────────────────────────────

def _form_payload(args: argparse.Namespace, base: Record | None = None, normalize: bool = True) -> dict[str, Any]:
    """Build a candidate record from flags, falling back to ``base`` fields."""
    current = base.to_dict() if base else {}
    payload: dict[str, Any] = {}
    for name in _FORM_FIELDS:
        value = getattr(args, name)
        if value is None:
            value = current.get(name, "")
        payload[name] = normalize_text(value) if normalize else value
    payload["status"] = args.status or current.get("status") or "unread"
    payload["dateAdded"] = args.date_added or current.get("dateAdded") or date.today().isoformat()
    return payload


def _report_errors(errors: list[str]) -> int:
    print(ERROR_SEPARATOR.join(errors), file=sys.stderr)
    return 1


# ─────────────────────────────────────────────────────────────────────────────
# Actions
# ─────────────────────────────────────────────────────────────────────────────

def cmd_add(store: RecordStore, args: argparse.Namespace) -> int:
    payload = _form_payload(args)
    errors = validate_record(payload)
    if errors:
        return _report_errors(errors)
    payload["pages"] = parse_pages(payload["pages"])
    record = store.add(payload)
    print(f"Record added. ({record.id})")
    return 0


def cmd_edit(store: RecordStore, args: argparse.Namespace) -> int:
    current = store.get(args.id)
    if current is None:
        print(f"No record with id {args.id}.", file=sys.stderr)
        return 1
    payload = _form_payload(args, base=current)
    errors = validate_record(payload)
    if errors:
        return _report_errors(errors)
    payload["pages"] = parse_pages(payload["pages"])
    store.update(args.id, payload)
    print("Record updated.")
    return 0


def cmd_delete(store: RecordStore, args: argparse.Namespace) -> int:
    if not store.remove(args.id):
        print(f"No record with id {args.id}.", file=sys.stderr)
        return 1
    print("Record deleted.")
    return 0


def cmd_check(store: RecordStore, args: argparse.Namespace) -> int:
    payload = _form_payload(args, normalize=args.normalize)
    errors = validate_record(payload)
    if errors:
        for error in errors:
            print(f"- {error}")
        print("INVALID")
        return 1
    print("No validation errors.")
    print("VALID")
    return 0


def _search(store: RecordStore, args: argparse.Namespace) -> SearchResult:
    case_insensitive = store.settings.case_insensitive if args.case_insensitive is None else args.case_insensitive
    result = search_records(
        store.records,
        args.query,
        case_insensitive=case_insensitive,
        sort_key=args.sort or store.settings.sort_by,
    )
    if result.invalid:
        print(INVALID_QUERY_NOTICE, file=sys.stderr)
    return result


def cmd_list(store: RecordStore, args: argparse.Namespace) -> int:
    result = _search(store, args)
    if not result.records:
        print("No records found.")
        return 0
    print("\t".join(["id", "title", "author", "pages", "tag", "status", "dateAdded"]))
    for r in result.records:
        print("\t".join([r.id, r.title, r.author, str(r.pages), r.tag, r.status, r.date_added]))
    return 0


def cmd_report(store: RecordStore, args: argparse.Namespace) -> int:
    result = _search(store, args)
    path = write_records_report(result.records, result.pattern, path=args.output)
    print(f"Report written to {path}")
    return 0


def cmd_stats(store: RecordStore, args: argparse.Namespace) -> int:
    board = build_dashboard(store)
    print(f"Total books: {board.total_books}")
    print(f"Total pages: {board.total_pages}")
    tags = ", ".join(f"{t.tag} ({t.count})" for t in board.top_tags) or "—"
    print(f"Top tags: {tags}")
    print(f"Reading goal: {board.goal.reading_goal}")
    if board.goal.message:
        print(f"{board.goal.message} ({board.goal.progress_pct}%)")
    print("Last 7 days: " + " ".join(str(v) for v in board.weekly_trend))
    return 0


def cmd_settings(store: RecordStore, args: argparse.Namespace) -> int:
    changes = {
        name: value
        for name, value in (
            ("goal", args.goal),
            ("unit", args.unit),
            ("sort_by", args.sort),
            ("case_insensitive", args.case_insensitive),
        )
        if value is not None
    }
    if changes:
        store.set_settings(**changes)
        print("Settings saved.")
    for key, value in store.settings.to_dict().items():
        print(f"{key}: {value}")
    return 0


def cmd_export(store: RecordStore, args: argparse.Namespace) -> int:
    data = store.export_json()
    if args.output:
        Path(args.output).write_text(data, encoding="utf-8")
        print(f"Exported {len(store.records)} records to {args.output}")
    else:
        print(data)
    return 0


def cmd_import(store: RecordStore, args: argparse.Namespace) -> int:
    try:
        raw = Path(args.file).read_text(encoding="utf-8")
    except OSError as exc:
        logging.error("Import failed: %s", exc)
        raw = ""
    if not store.import_json(raw):
        print("Import failed — invalid file.", file=sys.stderr)
        return 1
    print("Import successful.")
    return 0


def cmd_seed(store: RecordStore, args: argparse.Namespace) -> int:
    seed = storage.load_seed(args.url)
    if not seed:
        print("Seed load failed.", file=sys.stderr)
        return 1
    count = store.load_seed(seed)
    print(f"Seed loaded. ({count} records)")
    return 0


def cmd_clear(store: RecordStore, args: argparse.Namespace) -> int:
    if not args.yes:
        print("Refusing to clear all data without --yes.", file=sys.stderr)
        return 1
    store.clear_all()
    print("All data cleared.")
    return 0


COMMANDS: dict[str, Callable[[RecordStore, argparse.Namespace], int]] = {
    "add": cmd_add,
    "edit": cmd_edit,
    "delete": cmd_delete,
    "check": cmd_check,
    "list": cmd_list,
    "report": cmd_report,
    "stats": cmd_stats,
    "settings": cmd_settings,
    "export": cmd_export,
    "import": cmd_import,
    "seed": cmd_seed,
    "clear": cmd_clear,
}


def main(argv: list[str] | None = None) -> int:
    """Initialize config, open the store and dispatch one action."""
    load_dotenv()
    args = parse_args(argv)
    level = logging.DEBUG if args.verbose else os.getenv("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    store = RecordStore.open(args.records, args.settings)
    store.subscribe(lambda s: logging.debug("Store changed: %s records", len(s.records)))
    return COMMANDS[args.command](store, args)


if __name__ == "__main__":
    sys.exit(main())
