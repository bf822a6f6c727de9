"""Centralized logging configuration for the notify hook."""

import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import Generator, Optional

# Log format constants
SIMPLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Environment variable names
LOG_LEVEL_ENV = "PROMPTVC_LOG_LEVEL"
LOG_FILE_ENV = "PROMPTVC_LOG_FILE"

# Default values
DEFAULT_LOG_LEVEL = "INFO"


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure logging for the hook process.

    Logs go to stderr; stdout belongs to the assistant that runs the hook.

    Args:
        level: Log level override. If not provided, uses PROMPTVC_LOG_LEVEL env var or INFO.
        log_file: Also append logs to this file. If not provided, uses PROMPTVC_LOG_FILE env var.
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    # Use simple format for INFO+, detailed format with line numbers for DEBUG
    fmt = DETAILED_FORMAT if log_level == logging.DEBUG else SIMPLE_FORMAT

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    log_file = log_file or os.environ.get(LOG_FILE_ENV)
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as e:
            print(f"Cannot open log file {log_file}: {e}", file=sys.stderr)

    logging.basicConfig(
        level=log_level,
        format=fmt,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    # Quiet noisy third-party libraries
    logging.getLogger("git").setLevel(logging.WARNING)


@contextmanager
def log_timing(
    logger: logging.Logger, operation: str, level: int = logging.DEBUG
) -> Generator[None, None, None]:
    """Context manager for timing operations.

    Args:
        logger: Logger instance to use.
        operation: Name of the operation being timed.
        level: Log level for the timing message (default: DEBUG).

    Example:
        with log_timing(logger, "Capture"):
            outcome = capture_safely(repo_root)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        logger.log(level, "%s completed in %.1fms", operation, duration_ms)
