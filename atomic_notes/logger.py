"""Logging helpers with rich console output.

Every module gets its logger through ``get_logger(__name__)``; the CLI calls
``setup_logging`` once at startup.

Usage:
    from atomic_notes.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Extracting ideas from %s", path)
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# Shared console so notices and log lines interleave cleanly
console = Console()


def _rich_handler(show_time: bool = False, show_path: bool = False) -> RichHandler:
    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    return handler


def get_logger(
    name: str,
    level: str | None = None,
    show_time: bool = False,
    show_path: bool = False,
) -> logging.Logger:
    """Get a logger with rich output.

    Args:
        name: Logger name (typically ``__name__`` of the module)
        level: Logging level name. If None, uses the LOG_LEVEL environment
               variable or defaults to INFO.
        show_time: Show timestamp in log output
        show_path: Show file path in log output

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    logger.setLevel(level.upper())

    # The root logger carries the handler once setup_logging has run
    if not logging.getLogger().handlers:
        logger.addHandler(_rich_handler(show_time=show_time, show_path=show_path))
        logger.propagate = True

    return logger


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure the root logger for the whole application.

    Args:
        level: Default logging level for all modules
        log_file: Optional file path to also log to a file
    """
    level = os.getenv("LOG_LEVEL", level).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(_rich_handler())

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

    # Module loggers created before setup would otherwise print twice
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and logger.name.startswith("atomic_notes"):
            logger.handlers.clear()
            logger.setLevel(level)
