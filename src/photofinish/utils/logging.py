"""Logging configuration for photofinish.

Rich console output on stderr with an optional plain-text log file. Library
modules log through ``logging.getLogger(__name__)`` and never configure
handlers themselves; the CLI calls :func:`setup_logging` once.

Example:
    >>> from photofinish.utils.logging import setup_logging, LogContext
    >>> setup_logging(level="DEBUG")
    >>> with LogContext("Reconciling IMG_0001.jpg"):
    ...     result = reconciler.reconcile(candidates)
    ... # Logs: "Reconciling IMG_0001.jpg completed in 0.00s"
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# =============================================================================
# Constants
# =============================================================================

PACKAGE_NAME = "photofinish"

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_console = Console(stderr=True)


# =============================================================================
# Setup Functions
# =============================================================================


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> logging.Logger:
    """Configure the ``photofinish`` logger.

    Replaces any handlers from an earlier call, so calling it twice is safe.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file; parent directories are created.

    Returns:
        The package logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    package_logger = logging.getLogger(PACKAGE_NAME)
    package_logger.setLevel(numeric_level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=_console,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=numeric_level == logging.DEBUG,
        markup=False,
    )
    console_handler.setLevel(numeric_level)
    package_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
        package_logger.addHandler(file_handler)

    package_logger.propagate = False
    package_logger.debug(f"Logging configured: level={level}, file={log_file}")
    return package_logger


# =============================================================================
# Log Context Manager
# =============================================================================


class LogContext:
    """Context manager for timing and logging an operation.

    Attributes:
        message: Description of the operation.
        level: Log level for start and completion messages.
        logger: Logger instance to use.
        elapsed: Elapsed time in seconds (after exit).
    """

    def __init__(
        self,
        message: str,
        level: int = logging.DEBUG,
        logger: logging.Logger | None = None,
    ) -> None:
        self.message = message
        self.level = level
        self.logger = logger or logging.getLogger(PACKAGE_NAME)
        self.elapsed: float = 0.0
        self._start_time: float = 0.0

    def __enter__(self) -> LogContext:
        self._start_time = time.perf_counter()
        self.logger.log(self.level, f"{self.message}...")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.elapsed = time.perf_counter() - self._start_time
        if exc_type is not None:
            self.logger.error(f"{self.message} failed after {self.elapsed:.2f}s: {exc_val}")
        else:
            self.logger.log(self.level, f"{self.message} completed in {self.elapsed:.2f}s")
