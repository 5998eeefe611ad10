"""Worker command: initialize the repository and serve backup/remove tasks."""

import argparse
import logging
import time

from .. import __util__, __version__
from ..__logger__ import create_logger
from ..config import (
    Config,
    ConfigError,
    find_config_file,
    generate_example_config,
    load_config,
)
from ..conductor import ConductorClient, TaskWorker, build_handlers
from ..core import CommandRunner, RepositoryGuard, RepositoryHandle, ResticRepository
from .common import add_verbosity_args, get_log_level

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the worker argument parser."""
    parser = argparse.ArgumentParser(
        prog="backtor-restic",
        description="Conductor worker creating and removing restic backups",
    )

    add_verbosity_args(parser)

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print an example configuration file and exit",
    )

    group = parser.add_argument_group("Worker options")
    group.add_argument(
        "--conductor-url",
        metavar="URL",
        help="Conductor API URL (env: CONDUCTOR_API_URL)",
    )
    group.add_argument(
        "--source-path",
        metavar="PATH",
        help="Backup source path (env: SOURCE_DATA_PATH, default: /backup-source)",
    )
    group.add_argument(
        "--repo-dir",
        metavar="PATH",
        help="Restic repository of backups (env: REPO_DIR, default: /backup-repo)",
    )
    group.add_argument(
        "--restic-password",
        metavar="PASSWORD",
        help="Restic repository password (env: RESTIC_PASSWORD)",
    )
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, dict]:
    """Translate command-line flags into config overrides."""
    return {
        "conductor": {"url": args.conductor_url},
        "repository": {"repo_dir": args.repo_dir, "password": args.restic_password},
        "worker": {"source_path": args.source_path},
        "logging": {"level": get_log_level(args)},
    }


def build_repository(config: Config) -> ResticRepository:
    """Create the repository object described by ``config``."""
    return ResticRepository(
        RepositoryHandle(config.repository.repo_dir, config.repository.password),
        runner=CommandRunner(),
        guard=RepositoryGuard(config.repository.lock_file),
        engine=config.repository.engine,
    )


def build_worker(config: Config, repository: ResticRepository) -> TaskWorker:
    """Create the polling worker with the backup and remove handlers registered."""
    client = ConductorClient(config.conductor.url, timeout=config.conductor.http_timeout)
    worker = TaskWorker(
        client,
        worker_id=config.conductor.worker_id,
        poll_interval=config.conductor.poll_interval,
        thread_count=config.conductor.thread_count,
    )
    handlers = build_handlers(
        repository,
        config.worker.source_path,
        default_timeout=config.worker.default_timeout,
        remove_timeout=config.worker.remove_timeout,
    )
    for task_type, handler in handlers.items():
        worker.register(task_type, handler)
    return worker


def execute_worker(args: argparse.Namespace) -> int:
    """Execute the worker.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    if getattr(args, "version", False):
        print(f"backtor-restic {__version__}")
        return 0
    if getattr(args, "print_config", False):
        print(generate_example_config(), end="")
        return 0

    # Log configuration problems before the configured level is known
    create_logger(get_log_level(args) or "info")

    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is not None:
            logger.info("Loading configuration from: %s", config_path)
        config, warnings = load_config(config_path, overrides=_overrides(args))
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    try:
        create_logger(config.logging.level, log_file=config.logging.log_file)
    except OSError as e:
        logger.error("Cannot open log file %s: %s", config.logging.log_file, e)
        return 1
    for warning in warnings:
        logger.warning("Config: %s", warning)

    logger.info("====Starting Restic Conductor Worker====")
    logger.info(__util__.log_heading(f"Started at {time.ctime()}"))

    repository = build_repository(config)
    try:
        repository.initialize()
    except __util__.RepositoryInitError as e:
        logger.error("Repository initialization failed: %s", e)
        return 1

    worker = build_worker(config, repository)
    try:
        worker.run_forever()
    finally:
        worker.client.close()

    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))
    return 0
