"""
Logging utilities for the moderation bot.
Uses Rich for colored console output.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Custom theme for logging
CUSTOM_THEME = Theme({
    "logging.level.debug": "dim cyan",
    "logging.level.info": "blue",
    "logging.level.warning": "yellow",
    "logging.level.error": "red",
    "logging.level.critical": "bold red",
})

console = Console(theme=CUSTOM_THEME)

_default_level = logging.INFO


def set_default_level(level: int) -> None:
    """
    Change the level used by loggers created afterwards and by
    loggers already configured through this module.

    Args:
        level: Logging level
    """
    global _default_level
    _default_level = level

    for logger in list(logging.root.manager.loggerDict.values()):
        if not isinstance(logger, logging.Logger):
            continue
        if any(isinstance(h, RichHandler) for h in logger.handlers):
            logger.setLevel(level)
            for handler in logger.handlers:
                handler.setLevel(level)


def setup_logging(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Set up a logger with RichHandler.

    Args:
        name: Logger name
        level: Logging level (default: module default, INFO unless changed)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if level is None:
        level = _default_level

    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers = []

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)

    formatter = logging.Formatter(
        fmt="[%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return setup_logging(name)
