"""Observability and logging utilities for Fuzzy Search.

This module provides the logging infrastructure shared by the back-fill
pipeline, the index manager, the search executor and the command-line entry
point. All progress and metrics lines (ping latency, pass duration, index
build time) go through these loggers to stderr, leaving stdout free for
search results.

Design Principles:
    - Observable: All components emit progress and timing logs
    - Fail-Safe: Logging failures should not crash the application
"""

import logging
import sys

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with standard configuration.

    The logger writes to stderr with the standard format.

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        Configured Logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Submitting batch", extra={"batch_size": 100})
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers if this logger or the root is already configured
    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(
            fmt=DEFAULT_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # Set default level if not already set
    if not logger.level:
        logger.setLevel(logging.INFO)

    return logger


def resolve_level(level: str) -> int:
    """Translate a level name into a logging constant (INFO when unknown)."""
    return _LEVELS.get(level.upper(), logging.INFO)


def configure_logger(
    level: str = "INFO",
    format: str | None = None,
    log_file: str | None = None
) -> None:
    """Configure the root logger for the application.

    Loggers previously handed out by get_logger() drop their own
    handler and propagate to the root at the same level.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        format: Custom log format string (optional)
        log_file: Path to log file (optional, for file logging)

    Example:
        >>> configure_logger(level="DEBUG", log_file="./fuzzy_search.log")
    """
    log_level = resolve_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_formatter = logging.Formatter(fmt=format or DEFAULT_FORMAT)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(console_formatter)
        root_logger.addHandler(file_handler)

    # Module loggers hand their output over to the root handlers
    for existing in logging.Logger.manager.loggerDict.values():
        if isinstance(existing, logging.Logger) and existing.handlers:
            existing.handlers.clear()
            existing.setLevel(log_level)
