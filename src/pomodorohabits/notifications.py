"""What to tell the user when a phase ends on its own.

Delivery (sounds, desktop popups, toasts) belongs to the caller. This module
only turns a ``PhaseChangeEvent`` into text and offers a dispatcher that
writes it to the log.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from .scheduler import Phase

if TYPE_CHECKING:
    from .cycle import PhaseChangeEvent

logger = logging.getLogger(__name__)

Dispatcher = Callable[["PhaseChangeEvent"], None]


@dataclass(frozen=True)
class Notification:
    title: str
    body: str


def describe(event: "PhaseChangeEvent") -> Notification:
    if event.from_phase is Phase.WORK:
        count = event.completed_work_intervals
        noun = "pomodoro" if count == 1 else "pomodoros"
        title = "Focus complete!"
        if event.to_phase is Phase.LONG_BREAK:
            body = f"{count} {noun} done. Time for a long break."
        else:
            body = f"{count} {noun} done. Time for a short break."
        return Notification(title, body)
    return Notification(f"{event.from_phase.label} is over", "Back to focus.")


class LoggingDispatcher:
    """Dispatcher that records each notification at INFO level."""

    def __init__(self, log: logging.Logger = logger) -> None:
        self.log = log

    def __call__(self, event: "PhaseChangeEvent") -> None:
        note = describe(event)
        self.log.info("%s %s", note.title, note.body)
