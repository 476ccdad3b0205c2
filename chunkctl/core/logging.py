"""Logging utilities for chunkctl.

Library modules log through ``logging.getLogger(__name__)`` and never attach
handlers. The CLI calls :func:`setup_logging` once per invocation.
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Any, Optional

# =============================================================================
# Constants
# =============================================================================

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PACKAGE_LOGGER = "chunkctl"

# Transport libraries log every request at INFO/DEBUG.
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


# =============================================================================
# Logger Setup
# =============================================================================


def resolve_level(
    level: int = logging.WARNING, *, quiet: bool = False, verbose: bool = False
) -> int:
    """Map the CLI verbosity flags onto a logging level."""
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return level


def setup_logging(
    level: int = logging.WARNING,
    *,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Configure stderr logging for the chunkctl package.

    Args:
        level: Base logging level.
        quiet: If True, only show errors.
        verbose: If True, show debug messages from chunkctl.
    """
    level = resolve_level(level, quiet=quiet, verbose=verbose)

    logging.basicConfig(
        level=logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)


# =============================================================================
# Log Context
# =============================================================================


class LogContext:
    """Times one operation and tags every message with its context fields.

    Example:
        with LogContext("upload session", logger, session=sid) as log:
            log.debug("sent %d chunks", n)
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        **context: Any,
    ):
        self.operation = operation
        self.logger = logger or get_logger(PACKAGE_LOGGER)
        self.context = context
        self._started: Optional[float] = None

    @property
    def elapsed(self) -> float:
        """Seconds since the context was entered."""
        if self._started is None:
            return 0.0
        return time.monotonic() - self._started

    def _fields(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.context.items())

    def __enter__(self) -> LogContext:
        self._started = time.monotonic()
        self.logger.info("Starting %s (%s)", self.operation, self._fields())
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self.logger.info("%s completed in %.2fs", self.operation, self.elapsed)
        elif issubclass(exc_type, (KeyboardInterrupt, SystemExit)):
            self.logger.warning("%s interrupted after %.2fs", self.operation, self.elapsed)
        else:
            self.logger.error("%s failed after %.2fs: %s", self.operation, self.elapsed, exc_val)

    def log(self, level: int, message: str, *args: Any) -> None:
        """Log ``message`` prefixed with the operation and suffixed with fields."""
        if self.logger.isEnabledFor(level):
            self.logger.log(level, f"[{self.operation}] {message} ({self._fields()})", *args)

    def info(self, message: str, *args: Any) -> None:
        self.log(logging.INFO, message, *args)

    def warning(self, message: str, *args: Any) -> None:
        self.log(logging.WARNING, message, *args)

    def debug(self, message: str, *args: Any) -> None:
        self.log(logging.DEBUG, message, *args)
