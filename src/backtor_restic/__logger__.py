# pyright: standard

"""backtor-restic: backtor_restic/__logger__.py
A common logger for displaying through rich.
"""

import logging
import logging.handlers
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(level) -> int:
    """Translate a level name (debug, info, warning, error) to a logging level."""
    if isinstance(level, int):
        return level
    try:
        return LOG_LEVELS[str(level).strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level!r}") from None


def create_logger(level="info", log_file: Optional[str] = None) -> None:
    """Helper function to setup logging for the worker process."""
    numeric_level = parse_level(level)

    rich_handler = RichHandler(console=Console(stderr=True), show_path=False)
    handlers: list[logging.Handler] = [rich_handler]

    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        format="(%(threadName)s) %(message)s",
        datefmt="%H:%M:%S",
        level=numeric_level,
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
