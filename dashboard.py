"""Aggregated reading statistics and goal progress."""

from __future__ import annotations

from dataclasses import dataclass, field

from models import TagCount
from store import RecordStore


@dataclass(frozen=True, slots=True)
class GoalSummary:
    reading_goal: str
    message: str
    level: str  # "status", "alert", or "" when no goal is set
    progress_pct: int


@dataclass(frozen=True, slots=True)
class Dashboard:
    total_books: int
    total_pages: int | float
    pages_read: int | float
    top_tags: list[TagCount] = field(default_factory=list)
    weekly_trend: list[int | float] = field(default_factory=list)
    goal: GoalSummary | None = None


def _fmt(value: int | float) -> str:
    return f"{value:g}" if isinstance(value, float) else str(value)


def summarize_goal(pages_read: int | float, goal: int, unit: str = "pages") -> GoalSummary:
    """Compare pages read (status "done" only) against the reading goal."""
    if goal <= 0:
        return GoalSummary(
            reading_goal=f"{_fmt(pages_read)} {unit} read",
            message="",
            level="",
            progress_pct=0,
        )

    diff = pages_read - goal
    if diff < 0:
        message, level = f"Under goal — {_fmt(-diff)} {unit} remaining.", "status"
    elif diff == 0:
        message, level = "Goal achieved!", "status"
    else:
        message, level = f"Goal exceeded by {_fmt(diff)} {unit}.", "alert"

    return GoalSummary(
        reading_goal=f"{_fmt(pages_read)} / {goal} {unit}",
        message=message,
        level=level,
        progress_pct=min(100, round(pages_read / goal * 100)),
    )


def build_dashboard(store: RecordStore) -> Dashboard:
    pages_read = store.pages_read()
    return Dashboard(
        total_books=len(store.records),
        total_pages=store.total_pages(),
        pages_read=pages_read,
        top_tags=store.top_tags(),
        weekly_trend=store.weekly_trend(),
        goal=summarize_goal(pages_read, store.settings.goal, store.settings.unit),
    )
