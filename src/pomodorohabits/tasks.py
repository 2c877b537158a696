"""Tasks that focus sessions are counted against.

A task list is a plain tuple of ``Task`` values, handled the same way as the
habit collection: each operation returns a new tuple inside a ``Result``.
``TaskList`` keeps the tuple together with the task being worked on and
doubles as a dispatcher, so a controller credits the current task whenever a
focus session runs out on its own.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from .results import InvalidInputError, Result
from .scheduler import Phase

if TYPE_CHECKING:
    from .cycle import PhaseChangeEvent

logger = logging.getLogger(__name__)

Tasks = Tuple["Task", ...]


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    pomodoros: int = 1  # estimate
    completed_pomodoros: int = 0
    completed: bool = False

    @property
    def remaining(self) -> int:
        return max(0, self.pomodoros - self.completed_pomodoros)


def new_task(title: str, *, pomodoros: int = 1, task_id: Optional[str] = None) -> Result[Task]:
    title = (title or "").strip()
    if not title:
        return Result.failure(InvalidInputError("task title cannot be empty"))
    if pomodoros < 1:
        return Result.failure(InvalidInputError(f"estimate must be at least 1 pomodoro (got {pomodoros})"))
    return Result.success(Task(id=task_id or uuid.uuid4().hex, title=title, pomodoros=pomodoros))


def find_task(tasks: Tasks, task_id: str) -> Optional[Task]:
    for task in tasks:
        if task.id == task_id:
            return task
    return None


def add_task(tasks: Tasks, task: Task) -> Result[Tasks]:
    if find_task(tasks, task.id) is not None:
        return Result.failure(InvalidInputError(f"a task with id {task.id!r} already exists"))
    return Result.success(tuple(tasks) + (task,))


def _update(tasks: Tasks, task_id: str, **changes) -> Result[Tasks]:
    task = find_task(tasks, task_id)
    if task is None:
        return Result.failure(InvalidInputError(f"no task with id {task_id!r}"))
    updated = replace(task, **changes)
    return Result.success(tuple(updated if t.id == task_id else t for t in tasks))


def toggle_task(tasks: Tasks, task_id: str) -> Result[Tasks]:
    task = find_task(tasks, task_id)
    if task is None:
        return Result.failure(InvalidInputError(f"no task with id {task_id!r}"))
    return _update(tasks, task_id, completed=not task.completed)


def credit_pomodoro(tasks: Tasks, task_id: str) -> Result[Tasks]:
    """Count one finished focus session; the task is done once it meets its estimate."""
    task = find_task(tasks, task_id)
    if task is None:
        return Result.failure(InvalidInputError(f"no task with id {task_id!r}"))
    count = task.completed_pomodoros + 1
    return _update(tasks, task_id, completed_pomodoros=count, completed=task.completed or count >= task.pomodoros)


def delete_task(tasks: Tasks, task_id: str) -> Result[Tasks]:
    if find_task(tasks, task_id) is None:
        return Result.failure(InvalidInputError(f"no task with id {task_id!r}"))
    return Result.success(tuple(t for t in tasks if t.id != task_id))


class TaskList:
    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self.tasks: Tasks = tuple(tasks)
        self.current_id: Optional[str] = None

    @property
    def current(self) -> Optional[Task]:
        return find_task(self.tasks, self.current_id) if self.current_id else None

    def add(self, title: str, *, pomodoros: int = 1) -> Result[Task]:
        """Append a task; it becomes the current one when nothing is selected."""
        created = new_task(title, pomodoros=pomodoros)
        if not created.ok:
            return created
        added = add_task(self.tasks, created.value)  # type: ignore[arg-type]
        if not added.ok:
            return Result.failure(added.error)  # type: ignore[arg-type]
        self.tasks = added.value  # type: ignore[assignment]
        if self.current_id is None:
            self.current_id = created.value.id  # type: ignore[union-attr]
        return created

    def select(self, task_id: Optional[str]) -> Result[Optional[Task]]:
        if task_id is None:
            self.current_id = None
            return Result.success(None)
        task = find_task(self.tasks, task_id)
        if task is None:
            return Result.failure(InvalidInputError(f"no task with id {task_id!r}"))
        self.current_id = task_id
        return Result.success(task)

    def toggle(self, task_id: str) -> Result[Tasks]:
        toggled = toggle_task(self.tasks, task_id)
        if toggled.ok:
            self.tasks = toggled.value  # type: ignore[assignment]
        return toggled

    def delete(self, task_id: str) -> Result[Tasks]:
        removed = delete_task(self.tasks, task_id)
        if removed.ok:
            self.tasks = removed.value  # type: ignore[assignment]
            if self.current_id == task_id:
                self.current_id = None
        return removed

    def __call__(self, event: "PhaseChangeEvent") -> None:
        if event.from_phase is not Phase.WORK or self.current_id is None:
            return
        credited = credit_pomodoro(self.tasks, self.current_id)
        if not credited.ok:
            logger.warning("could not credit focus session: %s", credited.error)
            return
        self.tasks = credited.value  # type: ignore[assignment]
        task = self.current
        logger.debug("credited %s: %d/%d", task.title, task.completed_pomodoros, task.pomodoros)  # type: ignore[union-attr]
