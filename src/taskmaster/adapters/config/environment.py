"""
Environment Configuration Provider - Layer env vars and .env over file config.

Precedence (highest first):
1. CLI overrides
2. Environment variables
3. .env file in the project root
4. Config file (.taskmaster.yaml, .taskmaster.toml, .taskmasterconfig, pyproject.toml)
5. Defaults
"""

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from taskmaster.core.ports.config_provider import AppConfig, ConfigProviderPort

from .file_provider import (
    FileConfigProvider,
    apply_cli_overrides,
    build_app_config,
    get_dotted,
    set_dotted,
)


# Environment variable -> dotted config key
ENV_KEYS = {
    "TASKMASTER_TICKETING_ENABLED": "ticketing.enabled",
    "TASKMASTER_TICKETING_SYSTEM": "ticketing.system",
    "TASKMASTER_TASKS_FILE": "tasks",
    "TASKMASTER_DRY_RUN": "sync.dry_run",
    "TASKMASTER_MAX_WORKERS": "sync.max_workers",
    "TASKMASTER_TIMEOUT": "sync.timeout",
    "JIRA_URL": "jira.url",
    "JIRA_EMAIL": "jira.email",
    "JIRA_API_TOKEN": "jira.api_token",
    "JIRA_PROJECT_KEY": "jira.project",
    "AZURE_DEVOPS_ORG": "azure.organization",
    "AZURE_DEVOPS_PROJECT": "azure.project",
    "AZURE_DEVOPS_PAT": "azure.pat",
    "GITHUB_TOKEN": "github.token",
    "GITHUB_OWNER": "github.owner",
    "GITHUB_REPO": "github.repo",
    "GITHUB_PROJECT_NUMBER": "github.project_number",
}


class EnvironmentConfigProvider(ConfigProviderPort):
    """
    Configuration provider backed by environment variables.

    Wraps a FileConfigProvider so a config file, a .env file, and the process
    environment combine into one AppConfig.
    """

    def __init__(
        self,
        config_file: Path | str | None = None,
        project_root: Path | str | None = None,
        env_file: Path | str | None = None,
        cli_overrides: dict[str, Any] | None = None,
        environ: dict[str, str] | None = None,
    ):
        """
        Initialize the environment provider.

        Args:
            config_file: Explicit config file (auto-detected when omitted)
            project_root: Project directory; defaults to the current directory
            env_file: Explicit .env file (defaults to <project_root>/.env)
            cli_overrides: Flat overrides from command line arguments
            environ: Environment mapping (defaults to os.environ)
        """
        self._file_provider = FileConfigProvider(config_path=config_file, project_root=project_root)
        self._env_file = Path(env_file) if env_file else None
        self._cli_overrides = cli_overrides or {}
        self._environ = environ if environ is not None else os.environ
        self._overrides: dict[str, Any] = {}
        self.logger = logging.getLogger("EnvironmentConfigProvider")

    @property
    def name(self) -> str:
        config_file = self._file_provider.config_file_path
        if config_file:
            return f"Environment + {config_file.name}"
        return "Environment"

    @property
    def project_root(self) -> Path:
        override = self._cli_overrides.get("project_root")
        return Path(override) if override else self._file_provider.project_root

    @property
    def env_file_path(self) -> Path:
        return self._env_file or self.project_root / ".env"

    def values(self) -> dict[str, Any]:
        """Merged settings from every layer."""
        merged = self._file_provider.file_values()

        env_file = self.env_file_path
        if env_file.is_file():
            self._apply_env(merged, dotenv_values(env_file))
            self.logger.debug(f"Loaded environment from {env_file}")

        self._apply_env(merged, self._environ)
        apply_cli_overrides(merged, self._cli_overrides)

        for key, value in self._overrides.items():
            set_dotted(merged, key, value)
        return merged

    def _apply_env(self, values: dict[str, Any], env: Any) -> None:
        for env_name, dotted in ENV_KEYS.items():
            value = env.get(env_name)
            if value not in (None, ""):
                set_dotted(values, dotted, value)

    # -------------------------------------------------------------------------
    # ConfigProviderPort
    # -------------------------------------------------------------------------

    def load(self) -> AppConfig:
        return build_app_config(self.values(), base_dir=self.project_root)

    def get(self, key: str, default: Any = None) -> Any:
        value = get_dotted(self.values(), key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        self._overrides[key] = value

    def validate(self) -> list[str]:
        errors = self._file_provider.load_errors()
        errors.extend(self.load().validate())
        return errors
