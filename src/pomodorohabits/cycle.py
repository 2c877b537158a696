"""The work / short break / long break cycle driven by clock completions."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from .clock import Clock, TimerSession
from .history import SessionRecord
from .notifications import Dispatcher
from .results import ConfigurationError, Result
from .scheduler import DEFAULTS, TECHNIQUES, CycleConfig, Phase, next_phase, validate_config

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


@dataclass(frozen=True)
class CycleState:
    phase: Phase = Phase.WORK
    completed_work_intervals: int = 0
    long_break_interval: int = DEFAULTS["long_break_interval"]


@dataclass(frozen=True)
class PhaseChangeEvent:
    from_phase: Phase
    to_phase: Phase
    completed_work_intervals: int


class SessionCycleController:
    """Owns the cycle state and the clock of the active phase.

    Automatic transitions (the clock running out) emit a ``PhaseChangeEvent``
    to every dispatcher. Manual changes (``select_phase``, ``skip``,
    ``restart``) move the cycle without emitting anything and leave the
    re-armed clock paused until ``start``.
    """

    def __init__(
        self,
        config: Optional[CycleConfig] = None,
        *,
        session: Optional[TimerSession] = None,
        dispatchers: Iterable[Dispatcher] = (),
        auto_start_breaks: bool = True,
        auto_start_work: bool = True,
        now: Callable[[], str] = _now_iso,
    ) -> None:
        config = config or CycleConfig()
        checked = validate_config(config)
        if not checked.ok:
            logger.warning("ignoring invalid timer settings: %s", checked.error)
            config = CycleConfig()
        self.config = config
        self.auto_start_breaks = auto_start_breaks
        self.auto_start_work = auto_start_work
        self.dispatchers: List[Dispatcher] = list(dispatchers)
        self.history: List[SessionRecord] = []
        self._now = now

        if session is None:
            seconds = config.duration_for(Phase.WORK)
            session = TimerSession(phase=Phase.WORK, total_seconds=seconds, remaining_seconds=seconds)
        self.state = CycleState(phase=session.phase, long_break_interval=config.long_break_interval)
        self.clock = Clock(session)

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def completed_work_intervals(self) -> int:
        return self.state.completed_work_intervals

    @property
    def session(self) -> TimerSession:
        return self.clock.session

    # ---- driving ----

    def start(self) -> None:
        self.clock.resume()

    def pause(self) -> None:
        self.clock.pause()

    def tick(self, delta_seconds: int) -> Result[Optional[PhaseChangeEvent]]:
        """Advance the clock; run the transition if the phase just ran out."""
        ticked = self.clock.advance(delta_seconds)
        if not ticked.ok:
            return Result.failure(ticked.error)  # type: ignore[arg-type]
        if ticked.value is None:
            return Result.success(None)
        return Result.success(self.advance())

    def advance(self) -> PhaseChangeEvent:
        before = self.state
        finished = self.clock.session
        phase, completed = next_phase(before.phase, before.completed_work_intervals, before.long_break_interval)
        self.state = replace(before, phase=phase, completed_work_intervals=completed)
        self._record(before.phase, completed=True, seconds=finished.elapsed_seconds)

        auto_start = self.auto_start_breaks if phase.is_break else self.auto_start_work
        self._rearm(running=auto_start)

        event = PhaseChangeEvent(from_phase=before.phase, to_phase=phase, completed_work_intervals=completed)
        logger.debug("phase change %s -> %s (%d done)", before.phase.value, phase.value, completed)
        self._emit(event)
        return event

    # ---- manual changes ----

    def select_phase(self, phase: Phase) -> None:
        """Jump straight to ``phase``; the work count is left alone."""
        self.state = replace(self.state, phase=phase)
        self._rearm(running=False)

    def skip(self) -> None:
        """Abandon the current phase and move to the one the cycle would pick next.

        A skipped work interval does not count as completed.
        """
        current = self.state
        self._record(current.phase, completed=False, seconds=self.clock.session.elapsed_seconds)
        if current.phase is Phase.WORK:
            upcoming = current.completed_work_intervals + 1
            phase = Phase.LONG_BREAK if upcoming % current.long_break_interval == 0 else Phase.SHORT_BREAK
        else:
            phase = Phase.WORK
        self.state = replace(current, phase=phase)
        self._rearm(running=False)

    def restart(self) -> None:
        """Start the current phase over from its full duration."""
        elapsed = self.clock.session.elapsed_seconds
        if elapsed:
            self._record(self.state.phase, completed=False, seconds=elapsed)
        self._rearm(running=False)

    # ---- settings ----

    def set_long_break_interval(self, interval: int) -> Result[int]:
        if interval < 1:
            error = ConfigurationError(f"long_break_interval must be at least 1 (got {interval})")
            logger.warning("%s; keeping %d", error, self.state.long_break_interval)
            return Result.failure(error)
        self.state = replace(self.state, long_break_interval=interval)
        self.config = replace(self.config, long_break_interval=interval)
        return Result.success(interval)

    def configure(self, config: CycleConfig) -> Result[CycleConfig]:
        """Replace durations and cadence.

        New durations apply from the next clock reset, except that an idle
        clock that has not started its phase yet is re-armed right away.
        """
        checked = validate_config(config)
        if not checked.ok:
            logger.warning("rejected timer settings: %s", checked.error)
            return checked
        self.config = config
        self.state = replace(self.state, long_break_interval=config.long_break_interval)
        session = self.clock.session
        if not session.running and session.elapsed_seconds == 0:
            self._rearm(running=False)
        return checked

    def apply_technique(self, name: str) -> Result[CycleConfig]:
        config = TECHNIQUES.get(name)
        if config is None:
            return Result.failure(ConfigurationError(f"unknown technique {name!r}"))
        return self.configure(config)

    # ---- internals ----

    def _rearm(self, *, running: bool) -> None:
        self.clock.reset(self.config.duration_for(self.state.phase), self.state.phase)
        if not running:
            self.clock.pause()

    def _record(self, phase: Phase, *, completed: bool, seconds: int) -> None:
        self.history.append(
            SessionRecord(phase=phase, completed=completed, duration_seconds=seconds, ended_at=self._now())
        )

    def _emit(self, event: PhaseChangeEvent) -> None:
        for dispatch in self.dispatchers:
            try:
                dispatch(event)
            except Exception:
                logger.exception("notification dispatcher %r failed", dispatch)
