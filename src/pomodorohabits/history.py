"""Session history and the statistics derived from it."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .scheduler import Phase


@dataclass(frozen=True)
class SessionRecord:
    """One phase that ended, either by running out or by being abandoned."""

    phase: Phase
    completed: bool
    duration_seconds: int
    ended_at: str


@dataclass(frozen=True)
class SessionStats:
    total_sessions: int = 0
    work_sessions: int = 0
    completed_work_sessions: int = 0
    focus_seconds: int = 0
    break_seconds: int = 0
    completion_rate: float = 0.0
    work_to_break_ratio: float = 0.0
    average_focus_seconds: float = 0.0


def summarize(records: Iterable[SessionRecord]) -> SessionStats:
    """Aggregate history records.

    Focus and break seconds count the time actually spent, so abandoned
    phases contribute whatever had elapsed before they were left.
    """
    records = list(records)
    work = [r for r in records if r.phase is Phase.WORK]
    completed_work = [r for r in work if r.completed]
    focus_seconds = sum(r.duration_seconds for r in work)
    break_seconds = sum(r.duration_seconds for r in records if r.phase.is_break)
    completed_focus = sum(r.duration_seconds for r in completed_work)
    return SessionStats(
        total_sessions=len(records),
        work_sessions=len(work),
        completed_work_sessions=len(completed_work),
        focus_seconds=focus_seconds,
        break_seconds=break_seconds,
        completion_rate=(len(completed_work) / len(work) * 100) if work else 0.0,
        work_to_break_ratio=(focus_seconds / break_seconds) if break_seconds else 0.0,
        average_focus_seconds=(completed_focus / len(completed_work)) if completed_work else 0.0,
    )
