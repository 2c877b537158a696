"""Pomodoro phases, timer settings and the cycle transition rule."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Tuple

from .results import ConfigurationError, Result


class Phase(str, Enum):
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_break(self) -> bool:
        return self is not Phase.WORK


_LABELS = {
    Phase.WORK: "Focus",
    Phase.SHORT_BREAK: "Short break",
    Phase.LONG_BREAK: "Long break",
}


DEFAULTS = {
    "pomodoros": 4,
    "focus_minutes": 25,
    "short_break_minutes": 5,
    "long_break_minutes": 15,
    "long_break_interval": 4,
}


@dataclass(frozen=True)
class CycleConfig:
    """Durations for each phase and the long break cadence."""

    focus_minutes: int = DEFAULTS["focus_minutes"]
    short_break_minutes: int = DEFAULTS["short_break_minutes"]
    long_break_minutes: int = DEFAULTS["long_break_minutes"]
    long_break_interval: int = DEFAULTS["long_break_interval"]

    def duration_for(self, phase: Phase) -> int:
        minutes = {
            Phase.WORK: self.focus_minutes,
            Phase.SHORT_BREAK: self.short_break_minutes,
            Phase.LONG_BREAK: self.long_break_minutes,
        }[phase]
        return minutes * 60


TECHNIQUES: Dict[str, CycleConfig] = {
    "traditional": CycleConfig(25, 5, 15, 4),
    "long-focus": CycleConfig(50, 10, 30, 2),
    "short-sessions": CycleConfig(15, 3, 15, 6),
}


def validate_config(config: CycleConfig) -> Result[CycleConfig]:
    if min(config.focus_minutes, config.short_break_minutes, config.long_break_minutes) <= 0:
        return Result.failure(ConfigurationError("all durations must be positive"))
    if config.long_break_interval < 1:
        return Result.failure(
            ConfigurationError(f"long_break_interval must be at least 1 (got {config.long_break_interval})")
        )
    return Result.success(config)


def next_phase(phase: Phase, completed_work_intervals: int, long_break_interval: int) -> Tuple[Phase, int]:
    """Return the phase that follows ``phase`` and the updated work count.

    Finishing a work interval counts it; every ``long_break_interval``-th one
    is followed by a long break. Breaks always lead back to work.
    """
    if phase is Phase.WORK:
        completed = completed_work_intervals + 1
        if completed % long_break_interval == 0:
            return Phase.LONG_BREAK, completed
        return Phase.SHORT_BREAK, completed
    return Phase.WORK, completed_work_intervals


@dataclass(frozen=True)
class Interval:
    """Represents one focus or break interval."""

    phase: Phase
    label: str
    duration_seconds: int


@dataclass
class PomodoroPlan:
    """Holds a preview of the upcoming intervals."""

    intervals: List[Interval]

    @property
    def total_seconds(self) -> int:
        return sum(interval.duration_seconds for interval in self.intervals)

    def __iter__(self) -> Iterable[Interval]:
        return iter(self.intervals)


def build_plan(*, pomodoros: int = DEFAULTS["pomodoros"], config: CycleConfig = CycleConfig()) -> PomodoroPlan:
    """Preview the intervals for ``pomodoros`` focus sessions.

    Args:
        pomodoros: Number of focus sessions.
        config: Durations and long break cadence used by the running timer.

    Raises:
        ValueError: when ``pomodoros`` is below 1 or ``config`` is invalid.
    """
    if pomodoros < 1:
        raise ValueError("pomodoros must be at least 1")
    checked = validate_config(config)
    if not checked.ok:
        raise ValueError(str(checked.error))

    intervals: List[Interval] = []
    phase, completed = Phase.WORK, 0
    short_breaks = 0
    while completed < pomodoros:
        if phase is Phase.WORK:
            label = f"Focus {completed + 1}"
        elif phase is Phase.SHORT_BREAK:
            short_breaks += 1
            label = f"Short break {short_breaks}"
        else:
            label = "Long break"
        intervals.append(Interval(phase=phase, label=label, duration_seconds=config.duration_for(phase)))
        phase, completed = next_phase(phase, completed, config.long_break_interval)

    # the break that follows the last focus session
    label = "Long break" if phase is Phase.LONG_BREAK else f"Short break {short_breaks + 1}"
    intervals.append(Interval(phase=phase, label=label, duration_seconds=config.duration_for(phase)))
    return PomodoroPlan(intervals)
