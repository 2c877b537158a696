import pytest

from pomodorohabits import scheduler
from pomodorohabits.scheduler import CycleConfig, Phase


def test_build_plan_puts_long_break_on_the_interval():
    config = CycleConfig(focus_minutes=1, short_break_minutes=1, long_break_minutes=2, long_break_interval=2)
    plan = scheduler.build_plan(pomodoros=2, config=config)
    labels = [interval.label for interval in plan]
    assert labels == ["Focus 1", "Short break 1", "Focus 2", "Long break"]
    assert plan.intervals[-1].duration_seconds == 2 * 60


def test_build_plan_follows_cycle_past_the_first_long_break():
    config = CycleConfig(long_break_interval=2)
    phases = [interval.phase for interval in scheduler.build_plan(pomodoros=3, config=config)]
    assert phases == [
        Phase.WORK, Phase.SHORT_BREAK,
        Phase.WORK, Phase.LONG_BREAK,
        Phase.WORK, Phase.SHORT_BREAK,
    ]


def test_requires_positive_durations():
    with pytest.raises(ValueError):
        scheduler.build_plan(pomodoros=0)
    with pytest.raises(ValueError):
        scheduler.build_plan(config=CycleConfig(focus_minutes=0))
    with pytest.raises(ValueError):
        scheduler.build_plan(config=CycleConfig(long_break_interval=0))


def test_total_seconds_sums_all_intervals():
    config = CycleConfig(focus_minutes=2, short_break_minutes=1, long_break_minutes=3, long_break_interval=1)
    plan = scheduler.build_plan(pomodoros=1, config=config)
    expected = (2 * 60) + (3 * 60)  # one focus and the long break
    assert plan.total_seconds == expected


def test_four_work_completions_give_three_short_then_long():
    phase, completed = Phase.WORK, 0
    after_each_work = []
    for _ in range(4):
        phase, completed = scheduler.next_phase(Phase.WORK, completed, 4)
        after_each_work.append(phase)
    assert after_each_work == [Phase.SHORT_BREAK, Phase.SHORT_BREAK, Phase.SHORT_BREAK, Phase.LONG_BREAK]
    assert completed == 4


def test_breaks_lead_back_to_work_without_counting():
    assert scheduler.next_phase(Phase.SHORT_BREAK, 3, 4) == (Phase.WORK, 3)
    assert scheduler.next_phase(Phase.LONG_BREAK, 4, 4) == (Phase.WORK, 4)


def test_interval_of_one_always_gives_long_break():
    assert scheduler.next_phase(Phase.WORK, 0, 1) == (Phase.LONG_BREAK, 1)
    assert scheduler.next_phase(Phase.WORK, 1, 1) == (Phase.LONG_BREAK, 2)


def test_techniques_are_valid_and_durations_in_seconds():
    for config in scheduler.TECHNIQUES.values():
        assert scheduler.validate_config(config).ok
    traditional = scheduler.TECHNIQUES["traditional"]
    assert traditional.duration_for(Phase.WORK) == 25 * 60
    assert traditional.duration_for(Phase.SHORT_BREAK) == 5 * 60
    assert traditional.duration_for(Phase.LONG_BREAK) == 15 * 60


def test_phase_labels():
    assert Phase.WORK.label == "Focus"
    assert Phase.LONG_BREAK.is_break
    assert not Phase.WORK.is_break
