"""
JSON Task Store - reads and writes the ``tasks.json`` document.

Writes go to a temporary file in the same directory and are moved into
place with ``os.replace`` so a crash never leaves a half-written file.
"""

import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from taskmaster.core.domain.entities import TasksData
from taskmaster.core.exceptions import TaskStoreError
from taskmaster.core.ports.task_store import TaskStorePort


class JsonTaskStore(TaskStorePort):
    """
    File-backed task store.

    One re-entrant lock serializes every ``transaction`` in the process, so
    concurrent handlers cannot lose each other's updates. Other processes
    writing the same file are not coordinated with.
    """

    def __init__(self, indent: int = 2):
        self.indent = indent
        self._lock = threading.RLock()
        self.logger = logging.getLogger("JsonTaskStore")

    def read(self, path: str) -> TasksData:
        file_path = Path(path)
        with self._lock:
            try:
                raw = json.loads(file_path.read_text(encoding="utf-8"))
            except FileNotFoundError as e:
                raise TaskStoreError(f"Tasks file not found: {path}", path=str(path), cause=e) from e
            except json.JSONDecodeError as e:
                raise TaskStoreError(f"Invalid JSON in tasks file {path}: {e}", path=str(path), cause=e) from e
            except OSError as e:
                raise TaskStoreError(f"Cannot read tasks file {path}: {e}", path=str(path), cause=e) from e

        if not isinstance(raw, dict):
            raise TaskStoreError(f"Tasks file {path} must contain a JSON object", path=str(path))
        try:
            return TasksData.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            raise TaskStoreError(f"Malformed task in {path}: {e}", path=str(path), cause=e) from e

    def write(self, path: str, data: TasksData) -> None:
        file_path = Path(path)
        content = json.dumps(data.to_dict(), indent=self.indent, ensure_ascii=False) + "\n"

        with self._lock:
            try:
                file_path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(prefix=f".{file_path.name}.", dir=file_path.parent)
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
                os.replace(tmp_name, file_path)
            except OSError as e:
                raise TaskStoreError(f"Cannot write tasks file {path}: {e}", path=str(path), cause=e) from e

        self.logger.debug(f"Wrote {len(data.tasks)} tasks to {path}")

    @contextmanager
    def transaction(self, path: str) -> Iterator[TasksData]:
        with self._lock:
            data = self.read(path)
            yield data
            self.write(path, data)
