"""
In-memory Task Store - keeps documents in a dictionary keyed by path.
"""

import threading
from collections import Counter
from collections.abc import Iterator
from contextlib import contextmanager

from taskmaster.core.domain.entities import TasksData
from taskmaster.core.exceptions import TaskStoreError
from taskmaster.core.ports.task_store import TaskStorePort


class InMemoryTaskStore(TaskStorePort):
    """
    Task store that never touches disk.

    Every read returns a deep copy, like re-reading a file would, and
    ``write_count`` records how many times each path was written.
    """

    def __init__(self, documents: dict[str, TasksData] | None = None):
        self._documents: dict[str, TasksData] = {
            path: data.copy() for path, data in (documents or {}).items()
        }
        self._lock = threading.RLock()
        self.write_count: Counter[str] = Counter()

    def read(self, path: str) -> TasksData:
        with self._lock:
            if path not in self._documents:
                raise TaskStoreError(f"Tasks file not found: {path}", path=path)
            return self._documents[path].copy()

    def write(self, path: str, data: TasksData) -> None:
        with self._lock:
            self._documents[path] = data.copy()
            self.write_count[path] += 1

    @contextmanager
    def transaction(self, path: str) -> Iterator[TasksData]:
        with self._lock:
            data = self.read(path)
            yield data
            self.write(path, data)
