"""Tests for logging configuration."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator

import pytest
from rich.logging import RichHandler

from docman.config import LoggingSettings
from docman.logging_config import LOGGER_NAME, configure_logging


@pytest.fixture(autouse=True)
def _restore_logger() -> Iterator[None]:
    logger = logging.getLogger(LOGGER_NAME)
    level, propagate = logger.level, logger.propagate
    yield
    configure_logging(LoggingSettings(console=False))
    logger.setLevel(level)
    logger.propagate = propagate


def test_console_logging_installs_rich_handler() -> None:
    logger = configure_logging(LoggingSettings(level="debug"))

    assert logger.level == logging.DEBUG
    assert [type(handler) for handler in logger.handlers] == [RichHandler]


def test_file_logging_writes_formatted_records(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "docman.log"
    logger = configure_logging(
        LoggingSettings(level="INFO", console=False, file=str(log_file), backup_count=2)
    )

    logging.getLogger("docman.database.manager").info("stored %d entries", 3)
    for handler in logger.handlers:
        handler.flush()

    (handler,) = logger.handlers
    assert isinstance(handler, RotatingFileHandler)
    assert handler.backupCount == 2
    text = log_file.read_text(encoding="utf-8")
    assert "[docman.database.manager#" in text
    assert "[INFO] stored 3 entries" in text


def test_reconfiguring_replaces_handlers(tmp_path: Path) -> None:
    configure_logging(LoggingSettings(file=str(tmp_path / "a.log")))
    logger = configure_logging(LoggingSettings(console=False, file=str(tmp_path / "b.log")))

    assert len(logger.handlers) == 1
    assert logger.handlers[0].baseFilename == str(tmp_path / "b.log")  # type: ignore[attr-defined]


def test_no_outputs_disables_logging() -> None:
    logger = configure_logging(LoggingSettings(console=False))

    assert logger.handlers == []
    assert not logger.isEnabledFor(logging.CRITICAL)


def test_unknown_level_is_rejected() -> None:
    with pytest.raises(ValueError):
        configure_logging(LoggingSettings(level="chatty"))
