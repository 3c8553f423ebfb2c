"""
CLI context - wires configuration, task store, event system and task service
together for one command invocation.
"""

from dataclasses import dataclass

from taskmaster.adapters.config import EnvironmentConfigProvider
from taskmaster.adapters.task_store import JsonTaskStore
from taskmaster.application.events import EventSystem
from taskmaster.application.tasks import TaskService
from taskmaster.core.exceptions import ConfigError
from taskmaster.core.ports.config_provider import AppConfig


@dataclass
class CliContext:
    config_provider: EnvironmentConfigProvider
    config: AppConfig
    store: JsonTaskStore
    events: EventSystem
    tasks: TaskService

    @property
    def tasks_path(self) -> str:
        if not self.config.tasks_path:
            raise ConfigError("No tasks file configured")
        return self.config.tasks_path


def build_context(args) -> CliContext:
    """Build the collaborators for a parsed command line."""
    config_provider = EnvironmentConfigProvider(
        config_file=getattr(args, "config", None),
        project_root=getattr(args, "project_root", None),
        cli_overrides={
            "tasks_file": getattr(args, "tasks_file", None),
            "project_root": getattr(args, "project_root", None),
        },
    )
    config = config_provider.load()
    store = JsonTaskStore()
    events = EventSystem(config_provider, store)
    tasks = TaskService(store, events.bus, project_root=config.project_root)
    return CliContext(
        config_provider=config_provider,
        config=config,
        store=store,
        events=events,
        tasks=tasks,
    )
