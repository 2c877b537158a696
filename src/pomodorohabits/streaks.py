"""Streak accounting over habit completion dates.

Nothing here reads the wall clock. The caller passes ``anchor``, the date it
considers "today", which keeps every result reproducible.

Every public function takes ``date`` objects or canonical ``YYYY-MM-DD``
strings and reports anything else as an ``InvalidInputError`` result.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import AbstractSet, FrozenSet, Iterable, Tuple, Union

from .results import InvalidInputError, Result

DayLike = Union[date, str]

PERIODS = ("daily", "weekly", "monthly")

_CANONICAL_DAY = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


@dataclass(frozen=True)
class Streaks:
    current: int = 0
    longest: int = 0


@dataclass(frozen=True)
class Toggled:
    dates: Tuple[str, ...]
    streaks: Streaks


def parse_day(value: DayLike) -> Result[date]:
    """Accept a ``date`` or a canonical ``YYYY-MM-DD`` string.

    A ``datetime`` is cut down to its calendar date so only the day is kept.
    """
    if isinstance(value, datetime):
        return Result.success(value.date())
    if isinstance(value, date):
        return Result.success(value)
    if not isinstance(value, str) or not _CANONICAL_DAY.fullmatch(value):
        return Result.failure(InvalidInputError(f"expected a YYYY-MM-DD date, got {value!r}"))
    try:
        return Result.success(date.fromisoformat(value))
    except ValueError:
        return Result.failure(InvalidInputError(f"{value!r} is not a calendar date"))


def parse_days(values: Iterable[DayLike]) -> Result[FrozenSet[date]]:
    """Parse a collection of days; the first bad one fails the lot."""
    days = set()
    for value in values:
        parsed = parse_day(value)
        if not parsed.ok:
            return Result.failure(parsed.error)  # type: ignore[arg-type]
        days.add(parsed.value)
    return Result.success(frozenset(days))


def _streaks(days: AbstractSet[date], anchor: date) -> Streaks:
    ordered = sorted(days)
    if not ordered:
        return Streaks()

    one_day = timedelta(days=1)
    run = longest = 1
    for previous, day in zip(ordered, ordered[1:]):
        if day == previous + one_day:
            run += 1
        else:
            run = 1
        longest = max(longest, run)

    current = run if ordered[-1] in (anchor, anchor - one_day) else 0
    return Streaks(current=current, longest=longest)


def compute_streaks(dates: Iterable[DayLike], anchor: DayLike) -> Result[Streaks]:
    """Return the current and longest run of consecutive days.

    The final run only counts as current when it ends on ``anchor`` or the
    day before; otherwise it has lapsed and only contributes to ``longest``.
    """
    parsed_anchor = parse_day(anchor)
    if not parsed_anchor.ok:
        return Result.failure(parsed_anchor.error)  # type: ignore[arg-type]
    days = parse_days(dates)
    if not days.ok:
        return Result.failure(days.error)  # type: ignore[arg-type]
    return Result.success(_streaks(days.value, parsed_anchor.value))  # type: ignore[arg-type]


def toggle_completion(dates: Iterable[DayLike], day: DayLike, *, anchor: DayLike) -> Result[Toggled]:
    """Add ``day`` if it is missing, remove it if present, and recompute streaks."""
    parsed = parse_day(day)
    if not parsed.ok:
        return Result.failure(parsed.error)  # type: ignore[arg-type]
    parsed_anchor = parse_day(anchor)
    if not parsed_anchor.ok:
        return Result.failure(parsed_anchor.error)  # type: ignore[arg-type]
    existing = parse_days(dates)
    if not existing.ok:
        return Result.failure(existing.error)  # type: ignore[arg-type]

    toggled = set(existing.value)  # type: ignore[arg-type]
    target = parsed.value
    if target in toggled:
        toggled.discard(target)
    else:
        toggled.add(target)  # type: ignore[arg-type]

    canonical = tuple(d.isoformat() for d in sorted(toggled))
    return Result.success(Toggled(dates=canonical, streaks=_streaks(toggled, parsed_anchor.value)))  # type: ignore[arg-type]


def period_start(period: str, anchor: date) -> date:
    if period == "weekly":
        return anchor - timedelta(days=anchor.weekday())
    if period == "monthly":
        return anchor.replace(day=1)
    return anchor


def completions_in_period(dates: Iterable[DayLike], period: str, anchor: DayLike) -> Result[int]:
    """Count completions from the start of the anchor's day, week (Monday) or month."""
    if period not in PERIODS:
        return Result.failure(InvalidInputError(f"period must be one of {', '.join(PERIODS)} (got {period!r})"))
    parsed_anchor = parse_day(anchor)
    if not parsed_anchor.ok:
        return Result.failure(parsed_anchor.error)  # type: ignore[arg-type]
    days = parse_days(dates)
    if not days.ok:
        return Result.failure(days.error)  # type: ignore[arg-type]
    anchor_day = parsed_anchor.value
    start = period_start(period, anchor_day)  # type: ignore[arg-type]
    return Result.success(sum(1 for d in days.value if start <= d <= anchor_day))  # type: ignore[union-attr,operator]


def progress_percent(count: int, target: int) -> int:
    if target <= 0:
        return 0
    return min(100, round(count / target * 100))
