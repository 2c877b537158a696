import pytest

from pomodorohabits.clock import session_from_handoff
from pomodorohabits.cycle import PhaseChangeEvent, SessionCycleController
from pomodorohabits.results import ConfigurationError, InvalidInputError
from pomodorohabits.scheduler import CycleConfig, Phase

# one-minute phases keep the arithmetic readable
CONFIG = CycleConfig(focus_minutes=1, short_break_minutes=1, long_break_minutes=2, long_break_interval=4)


@pytest.fixture()
def events():
    return []


@pytest.fixture()
def controller(events):
    c = SessionCycleController(CONFIG, dispatchers=[events.append], now=lambda: "2024-01-01T09:00:00+00:00")
    c.start()
    return c


def finish_phase(controller):
    return controller.tick(controller.session.remaining_seconds).value


def test_initial_state(controller):
    assert controller.phase is Phase.WORK
    assert controller.completed_work_intervals == 0
    assert controller.session.total_seconds == 60


def test_four_work_completions_end_in_long_break(controller):
    after_work = []
    for _ in range(4):
        event = finish_phase(controller)
        after_work.append(event.to_phase)
        finish_phase(controller)  # the break
    assert after_work == [Phase.SHORT_BREAK, Phase.SHORT_BREAK, Phase.SHORT_BREAK, Phase.LONG_BREAK]
    assert controller.completed_work_intervals == 4


def test_completion_emits_event_and_resets_clock(controller, events):
    controller.tick(59)
    assert events == []
    event = controller.tick(1).value
    assert event == PhaseChangeEvent(from_phase=Phase.WORK, to_phase=Phase.SHORT_BREAK, completed_work_intervals=1)
    assert events == [event]
    assert controller.session.phase is Phase.SHORT_BREAK
    assert controller.session.remaining_seconds == 60
    assert controller.session.running


def test_break_completion_returns_to_work(controller):
    finish_phase(controller)
    event = finish_phase(controller)
    assert event.from_phase is Phase.SHORT_BREAK
    assert event.to_phase is Phase.WORK
    assert event.completed_work_intervals == 1


def test_negative_tick_is_reported(controller):
    result = controller.tick(-1)
    assert isinstance(result.error, InvalidInputError)
    assert controller.session.remaining_seconds == 60


def test_manual_selection_emits_nothing_and_keeps_count(controller, events):
    finish_phase(controller)
    events.clear()
    controller.select_phase(Phase.LONG_BREAK)
    assert events == []
    assert controller.phase is Phase.LONG_BREAK
    assert controller.completed_work_intervals == 1
    assert controller.session.total_seconds == 120
    assert not controller.session.running


def test_interval_of_one_gives_long_break_every_time(events):
    controller = SessionCycleController(CycleConfig(long_break_interval=1), dispatchers=[events.append])
    controller.start()
    for _ in range(3):
        assert finish_phase(controller).to_phase is Phase.LONG_BREAK
        finish_phase(controller)


def test_invalid_interval_keeps_last_valid(controller):
    assert controller.set_long_break_interval(2).ok
    result = controller.set_long_break_interval(0)
    assert isinstance(result.error, ConfigurationError)
    assert controller.state.long_break_interval == 2


def test_interval_change_applies_on_next_evaluation(controller):
    for _ in range(3):
        finish_phase(controller)
        finish_phase(controller)
    controller.set_long_break_interval(3)
    # 3 intervals already done; the 4th is not a multiple of 3
    assert finish_phase(controller).to_phase is Phase.SHORT_BREAK


def test_constructor_falls_back_to_defaults_on_bad_config():
    controller = SessionCycleController(CycleConfig(long_break_interval=0))
    assert controller.state.long_break_interval == 4


def test_configure_rejects_bad_durations(controller):
    result = controller.configure(CycleConfig(focus_minutes=0))
    assert isinstance(result.error, ConfigurationError)
    assert controller.config == CONFIG


def test_configure_rearms_an_untouched_idle_clock():
    controller = SessionCycleController(CONFIG)
    controller.configure(CycleConfig(focus_minutes=50))
    assert controller.session.total_seconds == 50 * 60
    assert not controller.session.running


def test_apply_technique(controller):
    assert controller.apply_technique("long-focus").ok
    assert controller.state.long_break_interval == 2
    assert isinstance(controller.apply_technique("nope").error, ConfigurationError)


def test_skip_does_not_count_work(controller, events):
    controller.tick(30)
    controller.skip()
    assert events == []
    assert controller.phase is Phase.SHORT_BREAK
    assert controller.completed_work_intervals == 0
    record = controller.history[-1]
    assert record.completed is False
    assert record.duration_seconds == 30
    assert not controller.session.running


def test_skip_picks_long_break_on_the_interval(controller):
    for _ in range(3):
        finish_phase(controller)
        finish_phase(controller)
    controller.skip()
    assert controller.phase is Phase.LONG_BREAK


def test_restart_rewinds_current_phase(controller):
    controller.tick(20)
    controller.restart()
    assert controller.phase is Phase.WORK
    assert controller.session.remaining_seconds == 60
    assert controller.history[-1].completed is False
    assert not controller.session.running


def test_auto_start_off_leaves_next_phase_paused(events):
    controller = SessionCycleController(CONFIG, auto_start_breaks=False)
    controller.start()
    finish_phase(controller)
    assert controller.phase is Phase.SHORT_BREAK
    assert not controller.session.running
    assert controller.tick(60).value is None


def test_failing_dispatcher_does_not_break_the_cycle(events):
    def broken(event):
        raise RuntimeError("speaker unplugged")

    controller = SessionCycleController(CONFIG, dispatchers=[broken, events.append])
    controller.start()
    event = finish_phase(controller)
    assert controller.phase is Phase.SHORT_BREAK
    assert events == [event]


def test_handoff_session_starts_mid_phase():
    session = session_from_handoff(remaining=10, total=60).value
    controller = SessionCycleController(CONFIG, session=session)
    controller.start()
    assert controller.tick(10).value.to_phase is Phase.SHORT_BREAK


def test_history_records_completed_phases(controller):
    finish_phase(controller)
    record = controller.history[-1]
    assert record.phase is Phase.WORK
    assert record.completed is True
    assert record.duration_seconds == 60
    assert record.ended_at == "2024-01-01T09:00:00+00:00"


def test_manual_changes_wait_for_start(controller):
    controller.skip()
    assert controller.tick(30).value is None
    assert controller.session.remaining_seconds == 60
    controller.start()
    controller.tick(30)
    assert controller.session.remaining_seconds == 30
