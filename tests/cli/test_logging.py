"""
Tests for text and JSON log output.
"""

import json
import logging
import sys
from unittest.mock import patch

import pytest

from taskmaster.cli.logging import (
    ContextLogger,
    JSONFormatter,
    TextFormatter,
    get_logger,
    setup_logging,
)


def make_record(msg="Created PROJ-9", args=(), level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="JiraTicketingProvider",
        level=level,
        pathname="adapter.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# =============================================================================
# JSONFormatter Tests
# =============================================================================


class TestJSONFormatter:
    """Tests for the JSON log formatter."""

    def test_basic_fields(self):
        parsed = json.loads(JSONFormatter().format(make_record()))

        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "JiraTicketingProvider"
        assert parsed["message"] == "Created PROJ-9"
        assert "context" not in parsed

    def test_message_args(self):
        parsed = json.loads(JSONFormatter().format(make_record("Synced %d tasks", args=(5,))))
        assert parsed["message"] == "Synced 5 tasks"

    def test_timestamp_is_utc_millis(self):
        timestamp = json.loads(JSONFormatter().format(make_record()))["timestamp"]
        assert timestamp.endswith("Z")
        assert len(timestamp) == 24

    def test_exception(self):
        try:
            raise ValueError("bad status")
        except ValueError:
            record = make_record(level=logging.ERROR, exc_info=sys.exc_info())

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["exception"]["type"] == "ValueError"
        assert parsed["exception"]["message"] == "bad status"
        assert "Traceback" in parsed["exception"]["traceback"]

    def test_extra_attributes_become_context(self):
        parsed = json.loads(JSONFormatter().format(make_record(ticket_key="PROJ-9", task_id=5)))
        assert parsed["context"] == {"ticket_key": "PROJ-9", "task_id": 5}

    def test_static_fields_and_location(self):
        formatter = JSONFormatter(include_location=True, static_fields={"service": "taskmaster"})

        parsed = json.loads(formatter.format(make_record()))

        assert parsed["service"] == "taskmaster"
        assert parsed["location"]["line"] == 42
        assert parsed["location"]["file"] == "adapter.py"

    def test_optional_fields_can_be_dropped(self):
        formatter = JSONFormatter(include_timestamp=False, include_level=False, include_logger=False)
        assert json.loads(formatter.format(make_record())) == {"message": "Created PROJ-9"}


# =============================================================================
# TextFormatter Tests
# =============================================================================


class TestTextFormatter:
    def test_plain(self):
        output = TextFormatter(use_colors=False).format(make_record())
        assert "INFO" in output
        assert "JiraTicketingProvider: Created PROJ-9" in output
        assert "\033[" not in output

    def test_colors(self):
        output = TextFormatter(use_colors=True).format(make_record(level=logging.ERROR))
        assert output.startswith("\033[31m")
        assert output.endswith("\033[0m")

    def test_context(self):
        output = TextFormatter(use_colors=False, include_context=True).format(make_record(ticket_key="PROJ-9"))
        assert output.endswith("ticket_key=PROJ-9")


# =============================================================================
# ContextLogger Tests
# =============================================================================


class TestContextLogger:
    """Tests for the context logger wrapper."""

    def test_context_is_passed_as_extra(self):
        with patch("logging.Logger.log") as mock_log:
            ContextLogger("TicketSynchronizer", {"tasks_path": "tasks.json"}).info("Starting")

        level, message = mock_log.call_args.args[:2]
        assert level == logging.INFO
        assert message == "Starting"
        assert mock_log.call_args.kwargs["extra"] == {"tasks_path": "tasks.json"}

    def test_call_extra_merges(self):
        with patch("logging.Logger.log") as mock_log:
            ContextLogger("X", {"a": 1}).warning("w", extra={"b": 2})
        assert mock_log.call_args.kwargs["extra"] == {"a": 1, "b": 2}

    def test_bind_does_not_mutate_original(self):
        original = get_logger("TicketSynchronizer", tasks_path="tasks.json")
        bound = original.bind(task_id=5)

        assert original._context == {"tasks_path": "tasks.json"}
        assert bound._context == {"tasks_path": "tasks.json", "task_id": 5}

    def test_all_levels(self):
        with patch("logging.Logger.log") as mock_log:
            logger = ContextLogger("X")
            logger.debug("d")
            logger.info("i")
            logger.warning("w")
            logger.error("e")
            logger.critical("c")

        levels = [call.args[0] for call in mock_log.call_args_list]
        assert levels == [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL]


# =============================================================================
# setup_logging Tests
# =============================================================================


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_text(self):
        setup_logging(level=logging.INFO, log_format="text")

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_json_with_static_fields(self):
        setup_logging(level=logging.DEBUG, log_format="json", static_fields={"service": "taskmaster"})

        formatter = logging.getLogger().handlers[0].formatter
        assert isinstance(formatter, JSONFormatter)
        assert formatter.static_fields == {"service": "taskmaster"}

    def test_debug_text_includes_context(self):
        setup_logging(level=logging.DEBUG, log_format="text", use_colors=False)
        assert logging.getLogger().handlers[0].formatter.include_context is True

    @pytest.mark.parametrize("name", ["urllib3", "requests"])
    def test_noisy_loggers_quieted(self, name):
        setup_logging()
        assert logging.getLogger(name).level == logging.WARNING

    def test_replaces_existing_handlers(self):
        root = logging.getLogger()
        root.addHandler(logging.NullHandler())
        root.addHandler(logging.NullHandler())

        setup_logging()

        assert len(root.handlers) == 1

    def test_log_file_receives_json(self, tmp_path):
        log_file = tmp_path / "taskmaster.log"
        setup_logging(level=logging.INFO, log_format="json", log_file=str(log_file))

        logging.getLogger("TaskService").info("Added task 3")
        for handler in logging.getLogger().handlers:
            handler.flush()

        entry = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert entry["logger"] == "TaskService"
        assert entry["message"] == "Added task 3"
