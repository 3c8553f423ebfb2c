"""
Task Store Port - Abstract interface for persisting the task collection.

Implementations:
- JsonTaskStore: tasks.json on disk
- InMemoryTaskStore: dictionary keyed by path (tests, embedding)
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from taskmaster.core.domain.entities import TasksData
from taskmaster.core.exceptions import TaskStoreError


class TaskStorePort(ABC):
    """
    Full-document read and write of the task collection.

    ``transaction`` is the only safe way to read-modify-write: it holds the
    store's single-writer lock from the read until the write.
    """

    @abstractmethod
    def read(self, path: str) -> TasksData:
        """
        Read the task collection.

        Raises:
            TaskStoreError: If the document is missing or malformed
        """
        ...

    @abstractmethod
    def write(self, path: str, data: TasksData) -> None:
        """Replace the stored document with ``data``."""
        ...

    @abstractmethod
    def transaction(self, path: str) -> AbstractContextManager[TasksData]:
        """
        Read, yield for mutation, then write back on normal exit.

        Nothing is written if the block raises.
        """
        ...

    def exists(self, path: str) -> bool:
        """Check whether a document exists at ``path``."""
        try:
            self.read(path)
        except TaskStoreError:
            return False
        return True

