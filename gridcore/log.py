"""Logging utilities for gridcore.

Engine operations log instead of raising for invalid caller input.
"""

from __future__ import annotations

import logging
import sys


class _LoggerHolder:
    """Holder for the global logger instance."""

    instance: logging.Logger | None = None


def get_logger() -> logging.Logger:
    """Get the gridcore logger instance.

    Level and format are taken from ``LogSettings`` the first time the
    logger is created.

    Returns
    -------
    logging.Logger
        The gridcore logger configured with a stream handler.
    """
    if _LoggerHolder.instance is None:
        from .config import get_settings  # pylint: disable=import-outside-toplevel

        log_settings = get_settings().log
        logger = logging.getLogger("gridcore")
        logger.setLevel(log_settings.level)

        # Only add handler if none exists
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter(log_settings.format))
            logger.addHandler(handler)

        _LoggerHolder.instance = logger

    return _LoggerHolder.instance


def reset_logger() -> None:
    """Drop the cached logger so the next call re-reads ``LogSettings``."""
    if _LoggerHolder.instance is not None:
        for handler in list(_LoggerHolder.instance.handlers):
            _LoggerHolder.instance.removeHandler(handler)
    _LoggerHolder.instance = None


def debug(msg: str) -> None:
    """Log a debug message.

    Parameters
    ----------
    msg : str
        The message to log.
    """
    get_logger().debug(msg)


def info(msg: str) -> None:
    """Log an info message."""
    get_logger().info(msg)


def warn(msg: str) -> None:
    """Log a warning message. Never raises exceptions.

    Parameters
    ----------
    msg : str
        The warning message to log.
    """
    get_logger().warning(msg)


def error(msg: str) -> None:
    """Log an error message. Never raises exceptions."""
    get_logger().error(msg)


def set_level(level: int | str) -> None:
    """Set the logging level.

    Parameters
    ----------
    level : int or str
        The logging level (e.g., logging.DEBUG, "DEBUG").
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    get_logger().setLevel(level)


def exception(msg: str) -> None:
    """Log an exception with full traceback.

    Call this from within an except block.
    """
    get_logger().exception(msg)


def log_callback_error(kind: str, name: str, exc: BaseException) -> None:
    """Log a failure inside a user-supplied callable.

    Parameters
    ----------
    kind : str
        What the callable was used for (e.g. ``"aggregation"``).
    name : str
        The field or registry name the callable was bound to.
    exc : BaseException
        The exception that was raised.
    """
    get_logger().exception(f"{kind} callback for '{name}' failed: {exc}")


def enable_debug() -> None:
    """Enable debug mode for verbose rebuild and selection logging."""
    set_level(logging.DEBUG)
