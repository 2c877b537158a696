"""Habit records and the operations on a collection of them.

A collection is a plain tuple of ``Habit`` values. Every operation takes the
current tuple and returns a new one inside a ``Result``; nothing is mutated
in place.
"""
from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

from .results import InvalidInputError, PersistenceReadError, Result
from .streaks import PERIODS, DayLike, compute_streaks, parse_day, parse_days, toggle_completion

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#6366f1"

Habits = Tuple["Habit", ...]


@dataclass(frozen=True)
class Habit:
    id: str
    name: str
    created_at: str
    completed_dates: Tuple[str, ...] = ()
    current_streak: int = 0
    longest_streak: int = 0
    description: str = ""
    target: int = 1
    period: str = "daily"
    color: str = DEFAULT_COLOR

    def is_completed_on(self, day: DayLike) -> bool:
        parsed = parse_day(day)
        return parsed.ok and parsed.value.isoformat() in self.completed_dates  # type: ignore[union-attr]


def new_habit(
    name: str,
    *,
    habit_id: Optional[str] = None,
    created_at: Optional[str] = None,
    description: str = "",
    target: int = 1,
    period: str = "daily",
    color: str = DEFAULT_COLOR,
) -> Result[Habit]:
    name = (name or "").strip()
    if not name:
        return Result.failure(InvalidInputError("habit name cannot be empty"))
    if target < 1:
        return Result.failure(InvalidInputError(f"target must be at least 1 (got {target})"))
    if period not in PERIODS:
        return Result.failure(InvalidInputError(f"period must be one of {', '.join(PERIODS)} (got {period!r})"))
    return Result.success(
        Habit(
            id=habit_id or uuid.uuid4().hex,
            name=name,
            created_at=created_at or datetime.now().astimezone().isoformat(timespec="seconds"),
            description=description.strip(),
            target=target,
            period=period,
            color=color,
        )
    )


def find_habit(habits: Habits, habit_id: str) -> Optional[Habit]:
    for habit in habits:
        if habit.id == habit_id:
            return habit
    return None


def add_habit(habits: Habits, habit: Habit) -> Result[Habits]:
    if find_habit(habits, habit.id) is not None:
        return Result.failure(InvalidInputError(f"a habit with id {habit.id!r} already exists"))
    return Result.success(tuple(habits) + (habit,))


def toggle_habit(habits: Habits, habit_id: str, day: DayLike, *, anchor: DayLike) -> Result[Habits]:
    """Flip ``day`` for one habit and refresh its streaks."""
    habit = find_habit(habits, habit_id)
    if habit is None:
        return Result.failure(InvalidInputError(f"no habit with id {habit_id!r}"))
    toggled = toggle_completion(habit.completed_dates, day, anchor=anchor)
    if not toggled.ok:
        return Result.failure(toggled.error)  # type: ignore[arg-type]
    result = toggled.value
    updated = replace(
        habit,
        completed_dates=result.dates,
        current_streak=result.streaks.current,
        longest_streak=result.streaks.longest,
    )
    logger.debug("toggled %s for %s: streak %d/%d", day, habit_id, updated.current_streak, updated.longest_streak)
    return Result.success(tuple(updated if h.id == habit_id else h for h in habits))


def delete_habit(habits: Habits, habit_id: str) -> Result[Habits]:
    if find_habit(habits, habit_id) is None:
        return Result.failure(InvalidInputError(f"no habit with id {habit_id!r}"))
    return Result.success(tuple(h for h in habits if h.id != habit_id))


def refresh_streaks(habits: Habits, anchor: DayLike) -> Result[Habits]:
    """Recompute the cached streak fields of every habit against ``anchor``."""
    refreshed = []
    for habit in habits:
        computed = compute_streaks(habit.completed_dates, anchor)
        if not computed.ok:
            return Result.failure(computed.error)  # type: ignore[arg-type]
        streaks = computed.value
        refreshed.append(replace(habit, current_streak=streaks.current, longest_streak=streaks.longest))  # type: ignore[union-attr]
    return Result.success(tuple(refreshed))


# -------------------------
# Snapshot codec
# -------------------------

def _to_record(habit: Habit) -> Dict[str, Any]:
    return {
        "id": habit.id,
        "name": habit.name,
        "createdAt": habit.created_at,
        "completedDates": list(habit.completed_dates),
        "currentStreak": habit.current_streak,
        "longestStreak": habit.longest_streak,
        "description": habit.description,
        "target": habit.target,
        "period": habit.period,
        "color": habit.color,
    }


def encode_snapshot(habits: Habits) -> bytes:
    payload = json.dumps([_to_record(h) for h in habits], indent=2, ensure_ascii=False) + "\n"
    return payload.encode("utf-8")


def _from_record(raw: Any, anchor: date) -> Habit:
    if not isinstance(raw, dict):
        raise ValueError(f"habit record must be an object, got {type(raw).__name__}")
    for key in ("id", "name", "createdAt"):
        if not isinstance(raw.get(key), str) or not raw[key]:
            raise ValueError(f"habit record is missing {key!r}")
    dates = raw.get("completedDates", [])
    if not isinstance(dates, list):
        raise ValueError("completedDates must be a list")
    parsed = parse_days(dates)
    if not parsed.ok:
        raise ValueError(str(parsed.error))
    days = parsed.value

    target = raw.get("target", 1)
    period = raw.get("period", "daily")
    if not isinstance(target, int) or isinstance(target, bool) or target < 1:
        raise ValueError(f"bad target {target!r}")
    if period not in PERIODS:
        raise ValueError(f"bad period {period!r}")

    # stored streak fields are a cache; recompute instead of trusting them
    streaks = compute_streaks(days, anchor).value
    return Habit(
        id=raw["id"],
        name=raw["name"],
        created_at=raw["createdAt"],
        completed_dates=tuple(d.isoformat() for d in sorted(days)),
        current_streak=streaks.current,  # type: ignore[union-attr]
        longest_streak=streaks.longest,  # type: ignore[union-attr]
        description=str(raw.get("description", "")),
        target=target,
        period=period,
        color=str(raw.get("color", DEFAULT_COLOR)),
    )


def decode_snapshot(data: bytes, *, anchor: DayLike) -> Result[Habits]:
    """Parse a stored snapshot; any bad record rejects the whole snapshot."""
    parsed_anchor = parse_day(anchor)
    if not parsed_anchor.ok:
        return Result.failure(parsed_anchor.error)  # type: ignore[arg-type]
    try:
        records = json.loads(data.decode("utf-8"))
        if not isinstance(records, list):
            raise ValueError(f"snapshot must be a list, got {type(records).__name__}")
        habits = tuple(_from_record(raw, parsed_anchor.value) for raw in records)
    except (UnicodeDecodeError, ValueError) as exc:
        return Result.failure(PersistenceReadError(f"unreadable habit snapshot: {exc}"))

    ids = [h.id for h in habits]
    if len(ids) != len(set(ids)):
        return Result.failure(PersistenceReadError("unreadable habit snapshot: duplicate habit ids"))
    return Result.success(habits)
