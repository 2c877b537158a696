from __future__ import annotations

import os
from pathlib import Path


def default_data_path() -> Path:
    return Path.home() / ".config" / "pomodorohabits" / "habits.json"


def resolve_data_path(data_arg: str | None) -> Path:
    if data_arg:
        return Path(data_arg).expanduser().resolve()
    env = os.environ.get("POMODOROHABITS_DATA")
    if env:
        return Path(env).expanduser().resolve()
    return default_data_path().expanduser().resolve()
