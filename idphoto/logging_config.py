"""Logging configuration for the ID photo compliance engine.

All module loggers live under the ``idphoto`` namespace and propagate to a
single package logger, which owns the handlers. Scripts call
``setup_logging()`` once; library modules only call ``get_logger(__name__)``.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from idphoto.errors import ConfigurationError

PACKAGE_LOGGER = "idphoto"

# Format: 2025-11-04 15:30:45 | INFO | idphoto.analyzer | Message
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name when writing to a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str, datefmt: str, stream=None):
        super().__init__(fmt, datefmt=datefmt)
        self._stream = stream if stream is not None else sys.stdout

    def format(self, record: logging.LogRecord) -> str:
        """Format record, coloring only a copy so other handlers stay plain."""
        if not (hasattr(self._stream, "isatty") and self._stream.isatty()):
            return super().format(record)

        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def _resolve_level(level: Optional[str]) -> int:
    if level is None:
        try:
            from idphoto.config import get_config

            level = get_config().log_level
        except ConfigurationError:
            level = "INFO"
    return getattr(logging, level.upper(), logging.INFO)


def setup_logging(
    name: str = PACKAGE_LOGGER,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Configure the package logger and return the logger for ``name``.

    Args:
        name: Logger name. Names outside the ``idphoto`` namespace (for example
              ``__main__`` in scripts) get their own handlers.
        level: Log level name. If None, reads LOG_LEVEL through Config.
        log_file: Optional path to also write plain-text logs to.

    Returns:
        Configured logger instance.

    Example:
        >>> logger = setup_logging(__name__, level="DEBUG")
        >>> logger.info("Checking photo.jpg")
    """
    root_name = PACKAGE_LOGGER if name.startswith(PACKAGE_LOGGER) else name
    root = logging.getLogger(root_name)

    if not root.handlers:
        root.setLevel(_resolve_level(level))

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT, sys.stdout))
        root.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            root.addHandler(file_handler)

        root.propagate = False
    elif level is not None:
        root.setLevel(_resolve_level(level))

    return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    """Get the logger for a module inside the package.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger that propagates to the configured package logger.

    Example:
        >>> from idphoto.logging_config import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("Sampled 200x200 buffer")
    """
    if not name.startswith(PACKAGE_LOGGER):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
