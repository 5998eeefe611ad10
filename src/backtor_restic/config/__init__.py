"""Configuration system for backtor-restic.

This module provides TOML-based configuration loading, environment and
command-line overrides, validation, and schema definitions.
"""

from .loader import ConfigError, find_config_file, generate_example_config, load_config
from .schema import (
    Config,
    ConductorConfig,
    LoggingConfig,
    RepositoryConfig,
    WorkerConfig,
)

__all__ = [
    "Config",
    "ConductorConfig",
    "LoggingConfig",
    "RepositoryConfig",
    "WorkerConfig",
    "load_config",
    "find_config_file",
    "generate_example_config",
    "ConfigError",
]
