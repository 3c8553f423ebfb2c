"""
Exit Codes - process exit status for the taskmaster CLI.
"""

from enum import IntEnum

from taskmaster.core.exceptions import (
    AuthenticationError,
    ConfigError,
    TaskNotFoundError,
    TaskStoreError,
    TransientError,
)


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    FILE_NOT_FOUND = 3
    CONNECTION_ERROR = 4
    VALIDATION_ERROR = 5
    INTERRUPTED = 130

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ExitCode":
        """Pick the exit code that best describes an unhandled error."""
        if isinstance(exc, KeyboardInterrupt):
            return cls.INTERRUPTED
        if isinstance(exc, ConfigError):
            return cls.CONFIG_ERROR
        if isinstance(exc, TaskStoreError):
            return cls.FILE_NOT_FOUND if isinstance(exc.cause, FileNotFoundError) else cls.ERROR
        if isinstance(exc, (TaskNotFoundError, ValueError)):
            return cls.VALIDATION_ERROR
        if isinstance(exc, (AuthenticationError, TransientError)):
            return cls.CONNECTION_ERROR
        return cls.ERROR
