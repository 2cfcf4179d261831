"""Logging configuration for tilediff.

Benchmark lines go to stdout, so console logs are rendered by rich on stderr
and never interleave with them. An optional log file gets plain timestamped
lines.

Every tilediff logger lives under the ``tilediff`` namespace; get_logger()
nests names from outside the package (plugin codecs, for instance) under it
so they share the same handlers.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "tilediff"

# Benchmark runs stay quiet unless --verbose is given
DEFAULT_LEVEL = logging.WARNING

# The console handler draws its own time and level columns
CONSOLE_FORMAT = "%(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_handler(level: int) -> logging.Handler:
    # Console(stderr=True) looks sys.stderr up on every write
    handler = RichHandler(
        console=Console(stderr=True, soft_wrap=True),
        show_path=level <= logging.DEBUG,
        markup=False,
        log_time_format=f"[{DATE_FORMAT}]",
    )
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def configure_logging(
    level: int = DEFAULT_LEVEL,
    log_file: Optional[Path] = None,
    console: bool = True,
) -> None:
    """Configure the ``tilediff`` logger.

    Calling it again replaces the previous handlers (closing any open log
    file).

    Args:
        level: Logging level for the logger and every handler
        log_file: Also write plain log lines to this file
        console: Render logs on stderr with rich

    Example:
        # What the CLI does for --verbose --log-file run.log
        configure_logging(level=logging.DEBUG, log_file=Path("run.log"))
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = []
    if console:
        handlers.append(_console_handler(level))
    if log_file:
        handlers.append(_file_handler(log_file))

    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)

    # Prevent propagation to root logger (avoid duplicate logs)
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``tilediff`` namespace.

    Example:
        >>> get_logger("tilediff.fixtures.loader").name
        'tilediff.fixtures.loader'
        >>> get_logger("mlt_decoder").name
        'tilediff.mlt_decoder'
    """
    if name != LOGGER_NAME and not name.startswith(f"{LOGGER_NAME}."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)


# Configure default logging on module import
configure_logging()
