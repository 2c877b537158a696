"""Countdown primitive for the active phase.

The clock never schedules anything itself: whoever drives it (the terminal
loop, the dashboard) measures elapsed time and calls ``advance`` with it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from .results import InvalidInputError, Result
from .scheduler import Phase

logger = logging.getLogger(__name__)

DEFAULT_HANDOFF_SECONDS = 25 * 60


@dataclass(frozen=True)
class TimerSession:
    phase: Phase
    total_seconds: int
    remaining_seconds: int
    running: bool = False
    signaled: bool = False

    @property
    def elapsed_seconds(self) -> int:
        return self.total_seconds - self.remaining_seconds

    @property
    def progress(self) -> float:
        """Fraction of the phase already elapsed, 0.0 to 1.0."""
        return self.elapsed_seconds / self.total_seconds


@dataclass(frozen=True)
class CompletionSignal:
    phase: Phase


def format_time(seconds: int) -> str:
    minutes, remainder = divmod(max(seconds, 0), 60)
    return f"{minutes:02d}:{remainder:02d}"


def advance_session(session: TimerSession, delta_seconds: int) -> Result[TimerSession]:
    """Return ``session`` moved forward by ``delta_seconds``.

    Remaining time is floored at zero. The returned session has ``signaled``
    set once it reaches zero; callers compare against the old session to
    detect the first arrival.
    """
    if delta_seconds < 0:
        return Result.failure(InvalidInputError(f"delta_seconds must not be negative (got {delta_seconds})"))
    if not session.running or session.signaled:
        return Result.success(session)
    remaining = max(0, session.remaining_seconds - delta_seconds)
    return Result.success(replace(session, remaining_seconds=remaining, signaled=remaining == 0))


def session_from_handoff(
    remaining: Optional[int] = None,
    total: Optional[int] = None,
    phase: Phase = Phase.WORK,
) -> Result[TimerSession]:
    """Build a session from a ``(remaining, total)`` pair handed over by another view."""
    if total is None:
        total = DEFAULT_HANDOFF_SECONDS
    if remaining is None:
        remaining = total
    if total <= 0:
        return Result.failure(InvalidInputError(f"total_seconds must be positive (got {total})"))
    if not 0 <= remaining <= total:
        return Result.failure(
            InvalidInputError(f"remaining_seconds must be between 0 and {total} (got {remaining})")
        )
    return Result.success(TimerSession(phase=phase, total_seconds=total, remaining_seconds=remaining))


class Clock:
    """Holds the current ``TimerSession`` and applies transitions to it."""

    def __init__(self, session: TimerSession) -> None:
        self.session = session

    @property
    def running(self) -> bool:
        return self.session.running

    @property
    def remaining_seconds(self) -> int:
        return self.session.remaining_seconds

    def advance(self, delta_seconds: int) -> Result[Optional[CompletionSignal]]:
        before = self.session
        result = advance_session(before, delta_seconds)
        if not result.ok:
            logger.debug("rejected tick: %s", result.error)
            return Result.failure(result.error)  # type: ignore[arg-type]
        self.session = result.value  # type: ignore[assignment]
        if self.session.signaled and not before.signaled:
            return Result.success(CompletionSignal(phase=self.session.phase))
        return Result.success(None)

    def reset(self, total_seconds: int, phase: Optional[Phase] = None) -> Result[TimerSession]:
        if total_seconds <= 0:
            return Result.failure(InvalidInputError(f"total_seconds must be positive (got {total_seconds})"))
        self.session = TimerSession(
            phase=phase if phase is not None else self.session.phase,
            total_seconds=total_seconds,
            remaining_seconds=total_seconds,
            running=True,
        )
        return Result.success(self.session)

    def pause(self) -> None:
        self.session = replace(self.session, running=False)

    def resume(self) -> None:
        self.session = replace(self.session, running=True)
