"""Local JSON file storage for tasks and focus history."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TASKS_FILE = "tasks_v1.json"
FOCUS_FILE = "focus_history.json"


class JsonFileRepository:
    """Keeps the task list and focus history as two JSON documents."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    @property
    def tasks_path(self) -> Path:
        return self.directory / TASKS_FILE

    @property
    def focus_path(self) -> Path:
        return self.directory / FOCUS_FILE

    def load_tasks(self) -> list[dict[str, Any]]:
        data = self._read(self.tasks_path, default=[])
        if not isinstance(data, list):
            logger.warning(f"Ignoring malformed task file {self.tasks_path}")
            return []
        return data

    def save_tasks(self, tasks: list[dict[str, Any]]) -> None:
        self._write(self.tasks_path, tasks)

    def load_focus_history(self) -> dict[str, int]:
        data = self._read(self.focus_path, default={})
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed focus file {self.focus_path}")
            return {}
        return {str(day): int(seconds) for day, seconds in data.items()}

    def save_focus_history(self, history: dict[str, int]) -> None:
        self._write(self.focus_path, history)

    def clear(self) -> None:
        for path in (self.tasks_path, self.focus_path):
            path.unlink(missing_ok=True)

    def _read(self, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(f"Could not decode {path}, starting empty")
            return default

    def _write(self, path: Path, payload: Any) -> None:
        # write-then-rename keeps the previous file intact on failure
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp_path, path)
