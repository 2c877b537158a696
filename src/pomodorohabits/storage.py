"""Persistence for the habit collection.

An adapter only moves bytes: ``load()`` returns the stored snapshot (or
``None`` when there is none) and ``save(data)`` replaces it wholesale.
``HabitStore`` adds the policy on top: a corrupt snapshot is logged, copied
aside through ``quarantine()`` and treated as an empty collection, and a
failed write is reported as a warning while the in-memory collection stays
authoritative.
"""
from __future__ import annotations

import logging
import os
import time
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Protocol

from .habits import Habit, Habits, add_habit, decode_snapshot, delete_habit, encode_snapshot, new_habit, toggle_habit
from .results import PersistenceReadError, PersistenceWriteError, Result
from .streaks import DayLike

logger = logging.getLogger(__name__)


class PersistenceAdapter(Protocol):
    def load(self) -> Optional[bytes]: ...

    def save(self, data: bytes) -> Result[None]: ...

    def quarantine(self) -> Result[Optional[str]]: ...


class MemoryAdapter:
    """Keeps the snapshot in memory; handy for tests and throwaway sessions."""

    def __init__(self, data: Optional[bytes] = None) -> None:
        self.data = data
        self.backups: List[bytes] = []

    def load(self) -> Optional[bytes]:
        return self.data

    def save(self, data: bytes) -> Result[None]:
        self.data = data
        return Result.success(None)

    def quarantine(self) -> Result[Optional[str]]:
        if self.data is None:
            return Result.success(None)
        self.backups.append(self.data)
        return Result.success(f"backup #{len(self.backups)}")


class JsonFileAdapter:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[bytes]:
        if not self.path.exists():
            return None
        data = self.path.read_bytes()
        return data if data.strip() else None

    def save(self, data: bytes) -> Result[None]:
        """Replace the file in one step so a crash mid-write leaves the old snapshot intact.

        The bytes go to a sibling ``.tmp`` file that is synced to disk before
        ``os.replace`` swaps it in. The result is then made owner-only where
        the platform allows it.
        """
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError as exc:
            return Result.failure(PersistenceWriteError(f"could not write {self.path}: {exc}"))

        try:
            os.chmod(self.path, 0o600)
        except OSError:
            logger.debug("could not restrict permissions on %s", self.path)
        return Result.success(None)

    def quarantine(self) -> Result[Optional[str]]:
        """Copy the current file to ``<stem>.corrupt-<unix time><suffix>``.

        An identical earlier copy is reused, so loading the same broken file
        twice leaves one backup.
        """
        if not self.path.exists():
            return Result.success(None)
        try:
            raw = self.path.read_bytes()
            for existing in sorted(self.path.parent.glob(f"{self.path.stem}.corrupt-*{self.path.suffix}")):
                if existing.read_bytes() == raw:
                    return Result.success(str(existing))
            backup = self.path.with_name(f"{self.path.stem}.corrupt-{int(time.time())}{self.path.suffix}")
            backup.write_bytes(raw)
        except OSError as exc:
            return Result.failure(PersistenceWriteError(f"could not back up {self.path}: {exc}"))
        return Result.success(str(backup))


class HabitStore:
    def __init__(self, adapter: PersistenceAdapter) -> None:
        self.adapter = adapter
        self.pending = False

    def load(self, anchor: DayLike) -> Result[Habits]:
        """Return the stored habits, or an empty collection with a warning."""
        try:
            data = self.adapter.load()
        except OSError as exc:
            error = PersistenceReadError(f"could not read habit snapshot: {exc}")
            logger.warning("%s; starting with no habits", error)
            return Result.success((), warnings=(error,))
        if data is None:
            return Result.success(())

        decoded = decode_snapshot(data, anchor=anchor)
        if decoded.ok or not isinstance(decoded.error, PersistenceReadError):
            return decoded

        # keep the unreadable snapshot around; the next save replaces it
        warnings = [decoded.error]
        backup = self.adapter.quarantine()
        if not backup.ok:
            warnings.append(backup.error)
            logger.warning("%s; %s; starting with no habits", decoded.error, backup.error)
        else:
            logger.warning("%s; copy kept at %s; starting with no habits", decoded.error, backup.value)
        return Result.success((), warnings=tuple(warnings))  # type: ignore[arg-type]

    def save(self, habits: Habits) -> Result[None]:
        """Write a full snapshot of ``habits``."""
        result = self.adapter.save(encode_snapshot(habits))
        if not result.ok:
            logger.warning("%s; will retry on the next change", result.error)
            self.pending = True
            return result
        self.pending = False
        return result


class HabitTracker:
    """In-memory habit collection that writes through to a ``HabitStore``.

    ``today`` supplies the anchor date; it is only called here, at the edge,
    never inside the streak computations.
    """

    def __init__(self, store: HabitStore, *, today: Callable[[], date] = date.today) -> None:
        self.store = store
        self.today = today
        self.habits: Habits = ()
        self.load_warnings: tuple = ()

    def load(self) -> Result[Habits]:
        result = self.store.load(self.today())
        self.habits = result.value or ()
        self.load_warnings = result.warnings
        return result

    def add(self, name: str, **fields) -> Result[Habit]:
        created = new_habit(name, **fields)
        if not created.ok:
            return created
        added = add_habit(self.habits, created.value)  # type: ignore[arg-type]
        if not added.ok:
            return Result.failure(added.error)  # type: ignore[arg-type]
        return self._commit(added.value, created.value)  # type: ignore[arg-type]

    def toggle(self, habit_id: str, day: Optional[DayLike] = None) -> Result[Habits]:
        today = self.today()
        toggled = toggle_habit(self.habits, habit_id, day if day is not None else today, anchor=today)
        if not toggled.ok:
            return toggled
        return self._commit(toggled.value, toggled.value)  # type: ignore[arg-type]

    def delete(self, habit_id: str) -> Result[Habits]:
        removed = delete_habit(self.habits, habit_id)
        if not removed.ok:
            return removed
        return self._commit(removed.value, removed.value)  # type: ignore[arg-type]

    def flush(self) -> Result[None]:
        """Retry a save that failed earlier."""
        return self.store.save(self.habits)

    def _commit(self, habits: Habits, value):
        self.habits = habits
        saved = self.store.save(habits)
        if not saved.ok:
            return Result.success(value, warnings=(saved.error,))
        return Result.success(value)
