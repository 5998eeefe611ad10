"""TOML configuration loading and validation.

Handles config file discovery, parsing, environment and command-line
overrides, and validation with helpful error messages.
"""

import os
import tomllib
from pathlib import Path
from typing import Any, Mapping, Optional

from ..__logger__ import LOG_LEVELS
from .schema import (
    Config,
    ConductorConfig,
    LoggingConfig,
    RepositoryConfig,
    WorkerConfig,
)


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "backtor-restic" / "config.toml",
    Path("/etc/backtor-restic/config.toml"),
]

# Environment variables and the (section, key) they set
ENV_VARS = {
    "CONDUCTOR_API_URL": ("conductor", "url"),
    "REPO_DIR": ("repository", "repo_dir"),
    "RESTIC_PASSWORD": ("repository", "password"),
    "SOURCE_DATA_PATH": ("worker", "source_path"),
    "LOG_LEVEL": ("logging", "level"),
}

# Options without a default, with the flag that sets them
REQUIRED = [
    ("repository", "password", "--restic-password"),
    ("conductor", "url", "--conductor-url"),
]

# Options with a default that may not be overridden with an empty value
NON_EMPTY = [
    ("repository", "repo_dir", "--repo-dir"),
    ("worker", "source_path", "--source-path"),
]


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _get_int(section: str, data: Mapping[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ConfigError(f"'{section}.{key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"'{section}.{key}' must be an integer, got {value!r}")


def _get_float(
    section: str, data: Mapping[str, Any], key: str, default: Optional[float]
) -> Optional[float]:
    value = data.get(key, default)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ConfigError(f"'{section}.{key}' must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"'{section}.{key}' must be a number, got {value!r}")


def _parse_repository(data: dict[str, Any]) -> RepositoryConfig:
    """Parse repository configuration from dict."""
    return RepositoryConfig(
        repo_dir=str(data.get("repo_dir", "/backup-repo")),
        password=str(data.get("password", "")),
        engine=str(data.get("engine", "restic")),
        lock_file=data.get("lock_file") or None,
    )


def _parse_worker(data: dict[str, Any]) -> WorkerConfig:
    """Parse worker configuration from dict."""
    return WorkerConfig(
        source_path=str(data.get("source_path", "/backup-source")),
        default_timeout=_get_int("worker", data, "default_timeout", 60),
        remove_timeout=_get_float("worker", data, "remove_timeout", None),
    )


def _parse_conductor(data: dict[str, Any]) -> ConductorConfig:
    """Parse conductor configuration from dict."""
    conductor = ConductorConfig(
        url=str(data.get("url", "")).rstrip("/"),
        poll_interval=_get_float("conductor", data, "poll_interval", 0.5) or 0.5,
        thread_count=_get_int("conductor", data, "thread_count", 1),
        http_timeout=_get_float("conductor", data, "http_timeout", 30.0) or 30.0,
    )
    if data.get("worker_id"):
        conductor.worker_id = str(data["worker_id"])
    return conductor


def _parse_logging(data: dict[str, Any]) -> LoggingConfig:
    """Parse logging configuration from dict."""
    return LoggingConfig(
        level=str(data.get("level", "info")).lower(),
        log_file=data.get("log_file") or None,
    )


def _merge(data: dict[str, Any], updates: Mapping[str, Mapping[str, Any]]) -> None:
    for section, values in updates.items():
        target = data.setdefault(section, {})
        for key, value in values.items():
            if value is not None:
                target[key] = value


def _env_overrides(env: Mapping[str, str]) -> dict[str, dict[str, Any]]:
    overrides: dict[str, dict[str, Any]] = {}
    for var, (section, key) in ENV_VARS.items():
        value = env.get(var)
        if value:
            overrides.setdefault(section, {})[key] = value
    return overrides


def _validate_config(config: Config) -> list[str]:
    """Validate configuration, raise on fatal problems and return warnings."""
    for section, key, flag in REQUIRED:
        if not getattr(getattr(config, section), key):
            raise ConfigError(f"'{flag}' is required")
    for section, key, flag in NON_EMPTY:
        if not getattr(getattr(config, section), key):
            raise ConfigError(f"'{flag}' must not be empty")

    if config.logging.level not in LOG_LEVELS:
        raise ConfigError(
            f"Unknown log level {config.logging.level!r} "
            f"(expected one of: {', '.join(LOG_LEVELS)})"
        )
    if config.worker.default_timeout <= 0:
        raise ConfigError("'worker.default_timeout' must be positive")
    if config.worker.remove_timeout is not None and config.worker.remove_timeout <= 0:
        raise ConfigError("'worker.remove_timeout' must be positive")
    if config.conductor.thread_count < 1:
        raise ConfigError("'conductor.thread_count' must be at least 1")
    if not config.conductor.url.startswith(("http://", "https://")):
        raise ConfigError(f"Conductor URL must be http(s): {config.conductor.url}")

    warnings = []
    if not Path(config.worker.source_path).is_dir():
        warnings.append(f"Source path '{config.worker.source_path}' is not a directory")
    return warnings


def load_config(
    path: Path | str | None = None,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> tuple[Config, list[str]]:
    """Load and validate configuration.

    Values are layered: defaults, then the TOML file, then environment
    variables, then ``overrides`` (command-line flags).

    Args:
        path: Path to configuration file (None to use no file)
        env: Environment to read (defaults to os.environ)
        overrides: Nested {section: {key: value}} mapping; None values are ignored

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    data: dict[str, Any] = {}
    if path is not None:
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML syntax: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}")

    _merge(data, _env_overrides(os.environ if env is None else env))
    if overrides:
        _merge(data, overrides)

    config = Config(
        repository=_parse_repository(data.get("repository", {})),
        worker=_parse_worker(data.get("worker", {})),
        conductor=_parse_conductor(data.get("conductor", {})),
        logging=_parse_logging(data.get("logging", {})),
    )

    warnings = _validate_config(config)

    return config, warnings


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# backtor-restic configuration
# Environment variables (CONDUCTOR_API_URL, REPO_DIR, RESTIC_PASSWORD,
# SOURCE_DATA_PATH, LOG_LEVEL) and command-line flags override this file.

[repository]
repo_dir = "/backup-repo"
# password = "..."          # prefer RESTIC_PASSWORD
engine = "restic"
# lock_file = "/run/backtor-restic.lock"

[worker]
source_path = "/backup-source"
default_timeout = 60        # seconds, used when a backup task sets none
# remove_timeout = 300      # seconds, unlimited when unset

[conductor]
url = "http://conductor-server:8080/api"
poll_interval = 0.5
thread_count = 1
# worker_id = "backup-worker-1"

[logging]
level = "info"              # debug, info, warning, error
# log_file = "/var/log/backtor-restic.log"
"""
