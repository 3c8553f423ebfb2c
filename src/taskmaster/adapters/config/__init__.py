"""
Configuration adapters - file and environment based providers.
"""

from .environment import ENV_KEYS, EnvironmentConfigProvider
from .file_provider import (
    CONFIG_FILE_NAMES,
    FileConfigProvider,
    build_app_config,
    translate_legacy_config,
)


__all__ = [
    "CONFIG_FILE_NAMES",
    "ENV_KEYS",
    "EnvironmentConfigProvider",
    "FileConfigProvider",
    "build_app_config",
    "translate_legacy_config",
]
