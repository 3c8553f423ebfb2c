"""
Tests for exit code selection.
"""

import pytest

from taskmaster.cli.exit_codes import ExitCode
from taskmaster.core.exceptions import (
    AuthenticationError,
    ConfigError,
    RateLimitError,
    TaskNotFoundError,
    TaskStoreError,
)


class TestExitCodeFromException:
    @pytest.mark.parametrize(
        "exc, expected",
        [
            (KeyboardInterrupt(), ExitCode.INTERRUPTED),
            (ConfigError("bad"), ExitCode.CONFIG_ERROR),
            (TaskNotFoundError(7), ExitCode.VALIDATION_ERROR),
            (ValueError("bad status"), ExitCode.VALIDATION_ERROR),
            (AuthenticationError("401"), ExitCode.CONNECTION_ERROR),
            (RateLimitError("429", retry_after=5), ExitCode.CONNECTION_ERROR),
            (RuntimeError("boom"), ExitCode.ERROR),
        ],
    )
    def test_mapping(self, exc, expected):
        assert ExitCode.from_exception(exc) == expected

    def test_missing_tasks_file(self):
        exc = TaskStoreError("Tasks file not found", cause=FileNotFoundError("tasks.json"))
        assert ExitCode.from_exception(exc) == ExitCode.FILE_NOT_FOUND

    def test_unreadable_tasks_file(self):
        exc = TaskStoreError("Invalid JSON", cause=ValueError("Expecting value"))
        assert ExitCode.from_exception(exc) == ExitCode.ERROR

    def test_values(self):
        assert int(ExitCode.SUCCESS) == 0
        assert int(ExitCode.INTERRUPTED) == 130
