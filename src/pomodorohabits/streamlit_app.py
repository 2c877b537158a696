"""Streamlit dashboard for the Pomodoro timer and habit tracker.

Run with:

    streamlit run src/pomodorohabits/streamlit_app.py

Features:
- Sidebar for technique presets, durations, long break cadence and auto-start.
- Large centered timer, progress bar, Start/Pause/Restart/Skip buttons.
- Task list; finished focus sessions count toward the current task.
- Habit list with today's check-off, streaks and progress for the period.
- Plays uploaded alarm file or a generated beep when a phase runs out.

The page itself is the tick source: every rerun measures the wall time since
the previous one and feeds whole seconds to the controller.
"""
from __future__ import annotations

import io
import math
import struct
import time
import wave
from typing import List

import streamlit as st

from pomodorohabits import scheduler
from pomodorohabits.clock import format_time
from pomodorohabits.cycle import PhaseChangeEvent, SessionCycleController
from pomodorohabits.history import summarize
from pomodorohabits.notifications import LoggingDispatcher, describe
from pomodorohabits.paths import resolve_data_path
from pomodorohabits.storage import HabitStore, HabitTracker, JsonFileAdapter
from pomodorohabits.streaks import completions_in_period, progress_percent
from pomodorohabits.tasks import TaskList


def generate_beep(duration_s: float = 0.5, freq: float = 880.0, volume: float = 0.5, samplerate: int = 44100) -> bytes:
    """Generate a short WAV beep (mono 16-bit PCM) in memory."""
    n_samples = int(samplerate * duration_s)
    amplitude = int(32767 * volume)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(samplerate)
        for i in range(n_samples):
            t = i / samplerate
            sample = int(amplitude * math.sin(2 * math.pi * freq * t))
            wf.writeframes(struct.pack("<h", sample))
    return buf.getvalue()


def _controller() -> SessionCycleController:
    if "controller" not in st.session_state:
        events: List[PhaseChangeEvent] = []
        st.session_state.events = events
        st.session_state.tasks = TaskList()
        st.session_state.controller = SessionCycleController(
            dispatchers=[events.append, st.session_state.tasks, LoggingDispatcher()]
        )
        st.session_state.last_tick = time.monotonic()
    return st.session_state.controller


def _tracker() -> HabitTracker:
    if "tracker" not in st.session_state:
        tracker = HabitTracker(HabitStore(JsonFileAdapter(resolve_data_path(None))))
        tracker.load()
        st.session_state.tracker = tracker
    return st.session_state.tracker


def _tick(controller: SessionCycleController) -> None:
    now = time.monotonic()
    whole = int(now - st.session_state.last_tick)
    if whole > 0:
        st.session_state.last_tick += whole
        controller.tick(whole)


def _show_result(result) -> None:
    if not result.ok:
        st.error(str(result.error))
    for warning in result.warnings:
        st.warning(str(warning))


def timer_sidebar(controller: SessionCycleController):
    with st.sidebar:
        technique = st.selectbox("Technique", ["custom"] + sorted(scheduler.TECHNIQUES), index=0)
        preset = scheduler.TECHNIQUES.get(technique, controller.config)
        config = scheduler.CycleConfig(
            focus_minutes=int(st.number_input("Focus minutes", min_value=1, value=preset.focus_minutes)),
            short_break_minutes=int(st.number_input("Short break minutes", min_value=1, value=preset.short_break_minutes)),
            long_break_minutes=int(st.number_input("Long break minutes", min_value=1, value=preset.long_break_minutes)),
            long_break_interval=int(
                st.number_input("Long break every N pomodoros", min_value=1, value=preset.long_break_interval)
            ),
        )
        if config != controller.config:
            _show_result(controller.configure(config))
        controller.auto_start_breaks = st.checkbox("Auto start breaks", value=controller.auto_start_breaks)
        controller.auto_start_work = st.checkbox("Auto start pomodoros", value=controller.auto_start_work)
        st.write("---")
        return st.file_uploader("Alarm sound (optional)")


def timer_panel(controller: SessionCycleController, alarm_file) -> None:
    st.markdown(
        """
        <style>
        .big-timer {font-size:56px; font-weight:700; text-align:center; margin: 12px 0}
        div.stButton > button {height:56px; width:100%; font-size:18px}
        </style>
        """,
        unsafe_allow_html=True,
    )

    for col, phase in zip(st.columns(3), scheduler.Phase):
        if col.button(phase.label, key=f"phase_{phase.value}"):
            controller.select_phase(phase)

    _tick(controller)

    c1, c2, c3, c4 = st.columns(4)
    if c1.button("Start"):
        controller.start()
    if c2.button("Pause"):
        controller.pause()
    if c3.button("Restart"):
        controller.restart()
    if c4.button("Skip"):
        controller.skip()

    events: List[PhaseChangeEvent] = st.session_state.events
    for event in events:
        note = describe(event)
        st.toast(f"{note.title} {note.body}")
        alarm_bytes = alarm_file.getvalue() if alarm_file is not None else generate_beep()
        st.audio(alarm_bytes, autoplay=True)
    events.clear()

    session = controller.session
    marker = "▶" if session.running else "⏸"
    st.markdown(
        f"<div class='big-timer'>{marker} {controller.phase.label}: {format_time(session.remaining_seconds)}</div>",
        unsafe_allow_html=True,
    )
    st.progress(int(session.progress * 100))
    st.caption(
        f"Completed pomodoros: {controller.completed_work_intervals} · "
        f"long break every {controller.state.long_break_interval}"
    )

    with st.expander("Session stats"):
        stats = summarize(controller.history)
        st.write(f"- Sessions: {stats.total_sessions}")
        st.write(f"- Completed pomodoros: {stats.completed_work_sessions} of {stats.work_sessions}")
        st.write(f"- Completion rate: {stats.completion_rate:.0f}%")
        st.write(f"- Focus: {stats.focus_seconds // 60} min · Breaks: {stats.break_seconds // 60} min")


def tasks_panel(tasks: TaskList) -> None:
    with st.expander("Tasks", expanded=bool(tasks.tasks)):
        with st.form("add_task", clear_on_submit=True):
            title = st.text_input("New task")
            estimate = st.number_input("Estimated pomodoros", min_value=1, value=1)
            if st.form_submit_button("Add task"):
                _show_result(tasks.add(title, pomodoros=int(estimate)))

        if not tasks.tasks:
            st.write("No tasks yet.")
            return

        ids = [None] + [t.id for t in tasks.tasks]
        titles = {t.id: t.title for t in tasks.tasks}
        current = st.selectbox(
            "Working on",
            ids,
            index=ids.index(tasks.current_id),
            format_func=lambda task_id: "(nothing)" if task_id is None else titles[task_id],
        )
        if current != tasks.current_id:
            _show_result(tasks.select(current))

        for task in tasks.tasks:
            left, right = st.columns([4, 1])
            left.checkbox(
                f"{task.title} · 🍅 {task.completed_pomodoros}/{task.pomodoros}",
                value=task.completed,
                key=f"task_{task.id}_{task.completed}",
                on_change=lambda task_id=task.id: _show_result(tasks.toggle(task_id)),
            )
            if right.button("Delete", key=f"delete_task_{task.id}"):
                _show_result(tasks.delete(task.id))
                st.rerun()


def habits_panel(tracker: HabitTracker) -> None:
    st.subheader("Habits")
    for warning in tracker.load_warnings:
        st.warning(f"{warning}. Starting with an empty habit list.")

    today = tracker.today()
    if not tracker.habits:
        st.write("No habits added yet.")
    for habit in tracker.habits:
        left, right = st.columns([4, 1])
        left.checkbox(
            habit.name,
            value=habit.is_completed_on(today),
            key=f"habit_{habit.id}_{today.isoformat()}",
            on_change=lambda habit_id=habit.id: _show_result(tracker.toggle(habit_id)),
        )
        count = completions_in_period(habit.completed_dates, habit.period, today).value or 0
        left.progress(progress_percent(count, habit.target))
        left.caption(
            f"🔥 {habit.current_streak} · best {habit.longest_streak} · {count}/{habit.target} {habit.period}"
        )
        if right.button("Delete", key=f"delete_{habit.id}"):
            _show_result(tracker.delete(habit.id))
            st.rerun()

    with st.form("add_habit", clear_on_submit=True):
        name = st.text_input("New habit")
        description = st.text_input("Description (optional)")
        target = st.number_input("Target", min_value=1, value=1)
        period = st.selectbox("Period", ["daily", "weekly", "monthly"])
        if st.form_submit_button("Add habit"):
            result = tracker.add(name, description=description, target=int(target), period=period)
            _show_result(result)
            if result.ok:
                st.rerun()


def main() -> None:
    st.set_page_config(page_title="Pomodoro Dashboard", layout="centered")
    st.title("Pomodoro")

    controller = _controller()
    tracker = _tracker()

    alarm_file = timer_sidebar(controller)
    timer_panel(controller, alarm_file)
    tasks_panel(st.session_state.tasks)
    st.write("---")
    habits_panel(tracker)

    if controller.session.running:
        time.sleep(1)
        st.rerun()


if __name__ == "__main__":
    main()
