"""
Logging helpers for deploy-kit.

All loggers live under the ``deploy_kit`` namespace so that a single call
to ``setup_logging`` controls the whole package. Library code only calls
``get_logger``; handlers are installed by the application.
"""

import logging
import sys
from typing import TextIO

ROOT_LOGGER_NAME = "deploy_kit"

_DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_VERBOSE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

_loggers: dict[str, logging.Logger] = {}


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a logger under the deploy_kit namespace.

    Args:
        name: Optional component name, e.g. "patterns.engine"

    Returns:
        Logger instance
    """
    full_name = ROOT_LOGGER_NAME if not name else f"{ROOT_LOGGER_NAME}.{name}"
    if full_name not in _loggers:
        _loggers[full_name] = logging.getLogger(full_name)
    return _loggers[full_name]


def setup_logging(
    level: int | str = logging.INFO,
    verbose: bool = False,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Install a single stream handler on the deploy_kit root logger.

    Calling this more than once replaces the previous handler.

    Args:
        level: Minimum log level (name or number)
        verbose: Include file and line number in each record
        stream: Output stream (defaults to stderr)

    Returns:
        The configured root logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = get_logger()
    root_logger.setLevel(logging.DEBUG if verbose else level)

    # Remove existing handlers
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_VERBOSE_FORMAT if verbose else _DEFAULT_FORMAT))
    root_logger.addHandler(handler)

    return root_logger
