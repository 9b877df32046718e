"""Logging configuration for docman.

Handlers are attached to the ``docman`` logger only, so applications
embedding the package keep control of the root logger.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List

from rich.logging import RichHandler

from docman.config.models import LoggingSettings

LOGGER_NAME = "docman"
FILE_FORMAT = "[%(asctime)s] [%(name)s#%(funcName)s:%(lineno)d] [%(levelname)s] %(message)s"

_installed: List[logging.Handler] = []


def configure_logging(settings: LoggingSettings | None = None) -> logging.Logger:
    """Install console and rotating file handlers described by ``settings``.

    Calling this again replaces the handlers installed by the previous call.
    When neither console nor file output is requested, all docman output is
    disabled.

    Args:
        settings: Logging section of the configuration; defaults apply when omitted.

    Returns:
        logging.Logger: The configured ``docman`` logger.

    Raises:
        ValueError: If ``settings.level`` is not a known level name.
    """
    settings = settings or LoggingSettings()
    logger = logging.getLogger(LOGGER_NAME)

    for handler in _installed:
        logger.removeHandler(handler)
        handler.close()
    _installed.clear()

    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown logging level: {settings.level}")

    if settings.console:
        console = RichHandler(show_path=False, rich_tracebacks=True)
        console.setLevel(level)
        _installed.append(console)

    if settings.file:
        log_path = Path(settings.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            str(log_path),
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        _installed.append(file_handler)

    for handler in _installed:
        logger.addHandler(handler)

    if _installed:
        logger.setLevel(level)
        logger.propagate = False
    else:
        logger.setLevel(logging.CRITICAL + 1)
    return logger


__all__ = ["LOGGER_NAME", "FILE_FORMAT", "configure_logging"]
