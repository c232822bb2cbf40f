"""Package logger setup for the mask editor."""

from pathlib import Path
from typing import Optional, Union
import logging
import sys

PACKAGE_LOGGER = "maskpaint"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%H:%M:%S"


def resolve_level(level: Union[int, str]) -> int:
    """Map a level name from the config file (any case) to its number; unknown names give INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _make_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Route the ``maskpaint`` loggers to stdout and, optionally, a log file.

    Calling it again replaces the previous handlers, so reloading the
    config never duplicates output.

    Args:
        level: Level number or name, e.g. ``logging.DEBUG`` or ``"debug"``
        log_file: File that receives the same records, appended per session

    Returns:
        The package logger
    """
    level = resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_make_handler(logging.StreamHandler(sys.stdout), level))

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_make_handler(logging.FileHandler(path, encoding="utf-8"), level))

    logger.debug("Logging to stdout%s", f" and {path}" if log_file else "")
    return logger
