"""Command line interface for the Pomodoro timer and habit tracker."""
from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import replace
from datetime import date
from typing import Callable, Iterable, Optional

from . import scheduler
from .clock import format_time, session_from_handoff
from .cycle import SessionCycleController
from .habits import Habit, Habits
from .history import summarize
from .notifications import LoggingDispatcher, describe
from .paths import resolve_data_path
from .results import Result
from .storage import HabitStore, HabitTracker, JsonFileAdapter
from .streaks import completions_in_period, parse_day
from .tasks import Task, TaskList


def _timer_options() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument("--technique", choices=sorted(scheduler.TECHNIQUES), default=None, help="start from a preset")
    parent.add_argument("--focus-minutes", type=int, default=None, help="minutes per focus session")
    parent.add_argument("--short-break-minutes", type=int, default=None, help="minutes per short break")
    parent.add_argument("--long-break-minutes", type=int, default=None, help="minutes per long break")
    parent.add_argument("--long-break-interval", type=int, default=None, help="focus sessions between long breaks")
    return parent


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pomodorohabits", description="Pomodoro timer and habit streaks in your terminal.")
    parser.add_argument("--data", default=None, help="path to the habits JSON file (overrides env/default)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")

    sub = parser.add_subparsers(dest="cmd", required=True)
    timer_options = _timer_options()

    plan = sub.add_parser("plan", parents=[timer_options], help="show the planned intervals without running them")
    plan.add_argument("--pomodoros", type=int, default=scheduler.DEFAULTS["pomodoros"], help="number of focus sessions to plan")
    plan.set_defaults(func=cmd_plan)

    run = sub.add_parser("run", parents=[timer_options], help="run the timer")
    run.add_argument("--cycles", type=int, default=scheduler.DEFAULTS["pomodoros"], help="focus sessions to run before stopping")
    run.add_argument("--fast", action="store_true", help="treat one real second as one Pomodoro minute (handy for demos)")
    run.add_argument("--remaining", type=int, default=None, help="seconds left in a focus session handed over from elsewhere")
    run.add_argument("--total", type=int, default=None, help="full length in seconds of that focus session")
    run.add_argument("--task", default=None, help="what you are working on; finished focus sessions count toward it")
    run.add_argument("--estimate", type=int, default=1, help="pomodoros the task should take")
    run.set_defaults(func=cmd_run)

    # ---- habit ----
    habit = sub.add_parser("habit", help="habit tracking")
    habit.add_argument("--as-of", default=None, help="date treated as today (YYYY-MM-DD)")
    habit_sub = habit.add_subparsers(dest="habit_cmd", required=True)

    habit_add = habit_sub.add_parser("add", help="add a habit")
    habit_add.add_argument("name")
    habit_add.add_argument("--description", default="")
    habit_add.add_argument("--target", type=int, default=1, help="completions wanted per period")
    habit_add.add_argument("--period", choices=["daily", "weekly", "monthly"], default="daily")
    habit_add.set_defaults(func=cmd_habit_add)

    habit_sub.add_parser("list", help="list habits with their streaks").set_defaults(func=cmd_habit_list)

    habit_toggle = habit_sub.add_parser("toggle", help="mark or unmark a day as done")
    habit_toggle.add_argument("habit_id", help="habit id or a unique prefix of it")
    habit_toggle.add_argument("--date", default=None, help="day to toggle (YYYY-MM-DD, default today)")
    habit_toggle.set_defaults(func=cmd_habit_toggle)

    habit_delete = habit_sub.add_parser("delete", help="remove a habit")
    habit_delete.add_argument("habit_id", help="habit id or a unique prefix of it")
    habit_delete.set_defaults(func=cmd_habit_delete)

    return parser.parse_args(list(argv))


# -------------------------
# Helpers
# -------------------------

def _check(result: Result):
    for warning in result.warnings:
        print(f"⚠ {warning}", file=sys.stderr)
    if not result.ok:
        raise SystemExit(str(result.error))
    return result.value


def config_from_args(args: argparse.Namespace) -> scheduler.CycleConfig:
    config = scheduler.TECHNIQUES[args.technique] if args.technique else scheduler.CycleConfig()
    overrides = {
        name: getattr(args, name)
        for name in ("focus_minutes", "short_break_minutes", "long_break_minutes", "long_break_interval")
        if getattr(args, name) is not None
    }
    return _check(scheduler.validate_config(replace(config, **overrides)))


def _anchor(args: argparse.Namespace) -> date:
    if args.as_of is None:
        return date.today()
    return _check(parse_day(args.as_of))


def _tracker(args: argparse.Namespace) -> HabitTracker:
    anchor = _anchor(args)
    tracker = HabitTracker(HabitStore(JsonFileAdapter(args.data_path)), today=lambda: anchor)
    _check(tracker.load())
    return tracker


def _resolve_id(habits: Habits, raw: str) -> str:
    matches = [h.id for h in habits if h.id == raw]
    if not matches:
        matches = [h.id for h in habits if h.id.startswith(raw)]
    if len(matches) != 1:
        raise SystemExit(f"No habit matches {raw!r}" if not matches else f"{raw!r} matches more than one habit")
    return matches[0]


def format_habit(habit: Habit, anchor: date) -> str:
    done = "✓" if habit.is_completed_on(anchor) else " "
    days = "day" if habit.current_streak == 1 else "days"
    count = completions_in_period(habit.completed_dates, habit.period, anchor).value or 0
    return (
        f"[{done}] {habit.name} ({habit.id[:8]}) "
        f"🔥 {habit.current_streak} {days}, best {habit.longest_streak} · "
        f"{count}/{habit.target} {habit.period}"
    )


def format_task(task: Task) -> str:
    done = "✓" if task.completed else " "
    return f"[{done}] {task.title} {task.completed_pomodoros}/{task.pomodoros} pomodoro(s)"


# -------------------------
# Commands
# -------------------------

def cmd_plan(args: argparse.Namespace) -> None:
    config = config_from_args(args)
    try:
        plan = scheduler.build_plan(pomodoros=args.pomodoros, config=config)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    print("Planned intervals:")
    for item in plan:
        print(f"- {item.label}: {item.duration_seconds // 60} minute(s)")
    print(f"Total: {plan.total_seconds // 60} minute(s)")


def run_cycles(
    controller: SessionCycleController,
    *,
    cycles: int,
    step_seconds: int = 1,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Drive ``controller`` until ``cycles`` focus sessions and the break after the last one are done."""
    print(f"\n▶ {controller.phase.label} — {format_time(controller.session.remaining_seconds)}")
    controller.start()
    while True:
        sys.stdout.write(f"\r{format_time(controller.session.remaining_seconds)} remaining")
        sys.stdout.flush()
        sleep(1)
        event = _check(controller.tick(step_seconds))
        if event is None:
            continue
        note = describe(event)
        print(f"\n✓ {note.title} {note.body}")
        if event.from_phase.is_break and event.completed_work_intervals >= cycles:
            return
        print(f"\n▶ {controller.phase.label} — {format_time(controller.session.remaining_seconds)}")


def cmd_run(args: argparse.Namespace) -> None:
    config = config_from_args(args)
    if args.cycles < 1:
        raise SystemExit("--cycles must be at least 1")
    session = None
    if args.remaining is not None or args.total is not None:
        session = _check(session_from_handoff(args.remaining, args.total))

    tasks = TaskList()
    if args.task is not None:
        _check(tasks.add(args.task, pomodoros=args.estimate))

    controller = SessionCycleController(config, session=session, dispatchers=[LoggingDispatcher(), tasks])

    print("Pomodoro timer")
    print("--------------")
    print("Focus     :", config.focus_minutes, "minute(s)")
    print("Short br. :", config.short_break_minutes, "minute(s)")
    print("Long br.  :", config.long_break_minutes, "minute(s)")
    print("Long every:", config.long_break_interval, "pomodoro(s)")
    if tasks.current is not None:
        print("Task      :", format_task(tasks.current))
    print()

    print("Press Ctrl+C to exit early. Running timers…")
    try:
        run_cycles(controller, cycles=args.cycles, step_seconds=60 if args.fast else 1)
    except KeyboardInterrupt:
        print("\nSession interrupted. See you next time!")

    stats = summarize(controller.history)
    print(
        f"\nCompleted {stats.completed_work_sessions} pomodoro(s), "
        f"{stats.focus_seconds // 60} minute(s) of focus."
    )
    if tasks.current is not None:
        print(f"Task: {format_task(tasks.current)}")


def cmd_habit_add(args: argparse.Namespace) -> None:
    tracker = _tracker(args)
    habit = _check(tracker.add(args.name, description=args.description, target=args.target, period=args.period))
    print(f"Added {habit.name} ({habit.id[:8]})")


def cmd_habit_list(args: argparse.Namespace) -> None:
    tracker = _tracker(args)
    if not tracker.habits:
        print("No habits yet.")
        return
    anchor = tracker.today()
    for habit in tracker.habits:
        print(format_habit(habit, anchor))


def cmd_habit_toggle(args: argparse.Namespace) -> None:
    tracker = _tracker(args)
    habit_id = _resolve_id(tracker.habits, args.habit_id)
    day: Optional[date] = _check(parse_day(args.date)) if args.date else None
    habits = _check(tracker.toggle(habit_id, day))
    habit = next(h for h in habits if h.id == habit_id)
    print(format_habit(habit, tracker.today()))


def cmd_habit_delete(args: argparse.Namespace) -> None:
    tracker = _tracker(args)
    habit_id = _resolve_id(tracker.habits, args.habit_id)
    _check(tracker.delete(habit_id))
    print(f"Deleted {habit_id[:8]}")


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.data_path = resolve_data_path(args.data)
    args.func(args)


if __name__ == "__main__":  # pragma: no cover
    main()
