import logging

from pomodorohabits.cycle import PhaseChangeEvent
from pomodorohabits.history import SessionRecord, SessionStats, summarize
from pomodorohabits.notifications import LoggingDispatcher, describe
from pomodorohabits.scheduler import Phase


def record(phase, completed, seconds):
    return SessionRecord(phase=phase, completed=completed, duration_seconds=seconds, ended_at="2024-01-03T10:00:00")


def test_summarize_empty_history():
    assert summarize([]) == SessionStats()


def test_summarize_counts_and_rates():
    stats = summarize(
        [
            record(Phase.WORK, True, 1500),
            record(Phase.SHORT_BREAK, True, 300),
            record(Phase.WORK, False, 600),
            record(Phase.WORK, True, 1500),
            record(Phase.LONG_BREAK, True, 900),
        ]
    )
    assert stats.total_sessions == 5
    assert stats.work_sessions == 3
    assert stats.completed_work_sessions == 2
    assert stats.focus_seconds == 3600
    assert stats.break_seconds == 1200
    assert stats.work_to_break_ratio == 3.0
    assert stats.average_focus_seconds == 1500
    assert round(stats.completion_rate, 1) == 66.7


def test_describe_work_completion():
    note = describe(PhaseChangeEvent(Phase.WORK, Phase.LONG_BREAK, 4))
    assert note.title == "Focus complete!"
    assert note.body == "4 pomodoros done. Time for a long break."
    single = describe(PhaseChangeEvent(Phase.WORK, Phase.SHORT_BREAK, 1))
    assert single.body == "1 pomodoro done. Time for a short break."


def test_describe_break_completion():
    note = describe(PhaseChangeEvent(Phase.SHORT_BREAK, Phase.WORK, 1))
    assert note.title == "Short break is over"
    assert note.body == "Back to focus."


def test_logging_dispatcher_logs_at_info(caplog):
    with caplog.at_level(logging.INFO, logger="pomodorohabits.notifications"):
        LoggingDispatcher()(PhaseChangeEvent(Phase.WORK, Phase.SHORT_BREAK, 1))
    assert "Focus complete!" in caplog.text
