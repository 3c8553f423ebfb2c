"""
File Configuration Provider - Load settings from project config files.

Supported files, searched in the project root in this order:
- .taskmaster.yaml / .taskmaster.yml
- .taskmaster.toml
- .taskmasterconfig (legacy JSON with a ``ticketing`` section)
- pyproject.toml ([tool.taskmaster] section)

Example .taskmaster.yaml:

    ticketing:
      enabled: true
      system: jira

    jira:
      url: https://company.atlassian.net
      email: dev@company.com
      api_token: your-token
      project: PROJ

    sync:
      dry_run: false
      timeout: 120

    tasks: tasks/tasks.json
"""

import copy
import json
import logging
import tomllib
from pathlib import Path
from typing import Any

import yaml

from taskmaster.core.ports.config_provider import (
    AppConfig,
    AzureDevOpsConfig,
    ConfigProviderPort,
    GitHubConfig,
    JiraConfig,
    SyncConfig,
    TicketingConfig,
)


CONFIG_FILE_NAMES = (
    ".taskmaster.yaml",
    ".taskmaster.yml",
    ".taskmaster.toml",
    ".taskmasterconfig",
    "pyproject.toml",
)

DEFAULT_TASKS_PATH = "tasks/tasks.json"

# Flat CLI override names -> dotted config keys
CLI_OVERRIDE_KEYS = {
    "ticketing_enabled": "ticketing.enabled",
    "ticketing_system": "ticketing.system",
    "jira_url": "jira.url",
    "jira_email": "jira.email",
    "jira_api_token": "jira.api_token",
    "jira_project": "jira.project",
    "dry_run": "sync.dry_run",
    "max_workers": "sync.max_workers",
    "timeout": "sync.timeout",
    "tasks_file": "tasks",
    "project_root": "project_root",
}

# .taskmasterconfig "ticketing" keys -> dotted config keys
LEGACY_TICKETING_KEYS = {
    "integrationEnabled": "ticketing.enabled",
    "system": "ticketing.system",
    "jiraProjectKey": "jira.project",
    "jiraBaseUrl": "jira.url",
    "jiraEmail": "jira.email",
    "jiraApiToken": "jira.api_token",
    "azureOrganization": "azure.organization",
    "azureProjectName": "azure.project",
    "azurePersonalAccessToken": "azure.pat",
    "githubToken": "github.token",
    "githubOwner": "github.owner",
    "githubRepository": "github.repo",
    "githubProjectNumber": "github.project_number",
}

TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


# =============================================================================
# Helpers shared with EnvironmentConfigProvider
# =============================================================================


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_VALUES


def get_dotted(data: dict[str, Any], key: str, default: Any = None) -> Any:
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def set_dotted(data: dict[str, Any], key: str, value: Any) -> None:
    parts = key.split(".")
    current = data
    for part in parts[:-1]:
        nested = current.get(part)
        if not isinstance(nested, dict):
            nested = {}
            current[part] = nested
        current = nested
    current[parts[-1]] = value


def build_app_config(values: dict[str, Any], base_dir: Path | None = None) -> AppConfig:
    """
    Build an AppConfig from a nested settings dictionary.

    Relative tasks paths are resolved against ``base_dir`` (the project root).
    """

    def _get(key: str, default: Any = None) -> Any:
        value = get_dotted(values, key)
        return default if value is None else value

    project_number = _get("github.project_number")
    project_root = _get("project_root") or (str(base_dir) if base_dir else None)

    tasks_path = _get("tasks", DEFAULT_TASKS_PATH)
    if project_root and not Path(tasks_path).is_absolute():
        tasks_path = str(Path(project_root) / tasks_path)

    return AppConfig(
        ticketing=TicketingConfig(
            enabled=to_bool(_get("ticketing.enabled", False)),
            system=str(_get("ticketing.system", "none")),
            jira=JiraConfig(
                url=str(_get("jira.url", "")),
                email=str(_get("jira.email", "")),
                api_token=str(_get("jira.api_token", "")),
                project_key=str(_get("jira.project", _get("jira.project_key", ""))),
                story_issue_type=str(_get("jira.story_issue_type", "Story")),
                subtask_issue_type=str(_get("jira.subtask_issue_type", "Sub-task")),
            ),
            azure=AzureDevOpsConfig(
                organization=str(_get("azure.organization", "")),
                project=str(_get("azure.project", "")),
                pat=str(_get("azure.pat", "")),
                base_url=str(_get("azure.base_url", "https://dev.azure.com")),
            ),
            github=GitHubConfig(
                token=str(_get("github.token", "")),
                owner=str(_get("github.owner", "")),
                repo=str(_get("github.repo", "")),
                project_number=int(project_number) if project_number not in (None, "") else None,
                base_url=str(_get("github.base_url", "https://api.github.com")),
            ),
        ),
        sync=SyncConfig(
            dry_run=to_bool(_get("sync.dry_run", False)),
            max_workers=int(_get("sync.max_workers", 4)),
            request_timeout=float(_get("sync.timeout", 120.0)),
        ),
        project_root=project_root,
        tasks_path=tasks_path,
    )


# =============================================================================
# Provider
# =============================================================================


class FileConfigProvider(ConfigProviderPort):
    """
    Configuration provider that reads a YAML, TOML, or JSON config file.

    Precedence (highest first): CLI overrides, file values, defaults.
    """

    def __init__(
        self,
        config_path: Path | str | None = None,
        project_root: Path | str | None = None,
        cli_overrides: dict[str, Any] | None = None,
    ):
        """
        Initialize the file provider.

        Args:
            config_path: Explicit config file. Auto-detected when omitted.
            project_root: Directory to search; defaults to the current directory.
            cli_overrides: Flat overrides from command line arguments (None values ignored).
        """
        self._explicit_path = Path(config_path) if config_path else None
        self._project_root = Path(project_root) if project_root else None
        self._cli_overrides = cli_overrides or {}
        self._values: dict[str, Any] | None = None
        self._config_file: Path | None = None
        self._errors: list[str] = []
        self.logger = logging.getLogger("FileConfigProvider")

    @property
    def name(self) -> str:
        if self._config_file:
            return f"File ({self._config_file})"
        return "File"

    @property
    def config_file_path(self) -> Path | None:
        """The config file that was loaded, if any."""
        self._ensure_loaded()
        return self._config_file

    @property
    def project_root(self) -> Path:
        if self._project_root is not None:
            return self._project_root
        if self._explicit_path is not None:
            return self._explicit_path.resolve().parent
        return Path.cwd()

    # -------------------------------------------------------------------------
    # ConfigProviderPort
    # -------------------------------------------------------------------------

    def load(self) -> AppConfig:
        return build_app_config(self.values(), base_dir=self.project_root)

    def get(self, key: str, default: Any = None) -> Any:
        value = get_dotted(self.values(), key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        set_dotted(self._ensure_loaded(), key, value)

    def load_errors(self) -> list[str]:
        """Problems reading or parsing the config file."""
        self._ensure_loaded()
        return list(self._errors)

    def validate(self) -> list[str]:
        errors = self.load_errors()
        if not errors:
            errors.extend(self.load().validate())
        return errors

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def values(self) -> dict[str, Any]:
        """Merged settings (file values with CLI overrides applied)."""
        merged = copy.deepcopy(self._ensure_loaded())
        apply_cli_overrides(merged, self._cli_overrides)
        return merged

    def file_values(self) -> dict[str, Any]:
        """Settings from the config file alone."""
        return copy.deepcopy(self._ensure_loaded())

    def _ensure_loaded(self) -> dict[str, Any]:
        if self._values is not None:
            return self._values

        self._values = {}
        path = self._explicit_path or self._find_config_file()
        if path is None:
            self.logger.debug("No config file found")
        elif not path.exists():
            self._errors.append(f"Config file not found: {path}")
        else:
            self._config_file = path
            self._values = self._read_file(path)
            self.logger.debug(f"Loaded config from {path}")
        return self._values

    def _find_config_file(self) -> Path | None:
        root = self.project_root
        for file_name in CONFIG_FILE_NAMES:
            candidate = root / file_name
            if not candidate.is_file():
                continue
            if file_name == "pyproject.toml" and "taskmaster" not in self._read_toml(candidate).get("tool", {}):
                continue
            return candidate
        return None

    def _read_file(self, path: Path) -> dict[str, Any]:
        if path.name == "pyproject.toml":
            return dict(self._read_toml(path).get("tool", {}).get("taskmaster", {}))
        if path.suffix == ".toml":
            return self._read_toml(path)
        if path.suffix in (".yaml", ".yml"):
            return self._read_yaml(path)
        return self._read_json(path)

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            self._errors.append(f"Invalid YAML syntax in {path}: {e}")
            return {}
        except OSError as e:
            self._errors.append(f"Cannot read {path}: {e}")
            return {}
        if data is None:
            return {}
        if not isinstance(data, dict):
            self._errors.append(f"Config file {path} must contain a mapping at the top level")
            return {}
        return data

    def _read_toml(self, path: Path) -> dict[str, Any]:
        try:
            return tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            self._errors.append(f"Invalid TOML syntax in {path}: {e}")
        except OSError as e:
            self._errors.append(f"Cannot read {path}: {e}")
        return {}

    def _read_json(self, path: Path) -> dict[str, Any]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            self._errors.append(f"Invalid JSON syntax in {path}: {e}")
            return {}
        except OSError as e:
            self._errors.append(f"Cannot read {path}: {e}")
            return {}
        if not isinstance(data, dict):
            self._errors.append(f"Config file {path} must contain an object at the top level")
            return {}
        return translate_legacy_config(data)


def translate_legacy_config(data: dict[str, Any]) -> dict[str, Any]:
    """Convert a ``.taskmasterconfig`` document to the nested settings layout."""
    result: dict[str, Any] = {}
    ticketing = data.get("ticketing") or {}
    for legacy_key, dotted in LEGACY_TICKETING_KEYS.items():
        if legacy_key in ticketing:
            set_dotted(result, dotted, ticketing[legacy_key])
    return result


def apply_cli_overrides(values: dict[str, Any], overrides: dict[str, Any]) -> None:
    for name, value in overrides.items():
        if value is None:
            continue
        dotted = CLI_OVERRIDE_KEYS.get(name)
        if dotted is not None:
            set_dotted(values, dotted, value)
