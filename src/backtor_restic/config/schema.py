"""Configuration schema definitions using dataclasses.

Defines the structure for TOML configuration with sensible defaults.
"""

import socket
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class RepositoryConfig:
    """Restic repository configuration.

    Attributes:
        repo_dir: Restic repository location
        password: Restic repository password
        engine: restic executable name or path
        lock_file: Optional lock file serializing worker processes on one host
    """

    repo_dir: str = "/backup-repo"
    password: str = field(default="", repr=False)
    engine: str = "restic"
    lock_file: Optional[str] = None


@dataclass
class WorkerConfig:
    """Backup/remove task settings.

    Attributes:
        source_path: Directory with one subdirectory per backup name
        default_timeout: Backup timeout in seconds when a task sets none
        remove_timeout: Timeout in seconds for forget (None for no limit)
    """

    source_path: str = "/backup-source"
    default_timeout: int = 60
    remove_timeout: Optional[float] = None


@dataclass
class ConductorConfig:
    """Conductor task-distribution settings.

    Attributes:
        url: Conductor API base URL (e.g. http://conductor:8080/api)
        worker_id: Identity reported to Conductor when polling
        poll_interval: Seconds between polls when no task is pending
        thread_count: Max tasks executed concurrently
        http_timeout: Seconds allowed for each Conductor HTTP request
    """

    url: str = ""
    worker_id: str = field(default_factory=socket.gethostname)
    poll_interval: float = 0.5
    thread_count: int = 1
    http_timeout: float = 30.0


@dataclass
class LoggingConfig:
    """Logging settings.

    Attributes:
        level: One of debug, info, warning, error
        log_file: Path to log file (None for no file logging)
    """

    level: str = "info"
    log_file: Optional[str] = None


@dataclass
class Config:
    """Root configuration object."""

    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    worker: WorkerConfig = field(default_factory=WorkerConfig)
    conductor: ConductorConfig = field(default_factory=ConductorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
