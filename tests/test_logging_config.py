"""Logging setup tests."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.logging import RichHandler

from reeltrack.config import LoggingSettings
from reeltrack.logging_config import configure_logging


def test_configure_logging_replaces_its_own_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "reeltrack.log"
    settings = LoggingSettings(level="info", file=str(log_file), backup_count=2)

    configure_logging(settings)
    logger = configure_logging(settings)

    assert logger.level == logging.INFO
    assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1
    file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].backupCount == 2

    logging.getLogger("reeltrack.app.runtime").info("service call finished")
    file_handlers[0].flush()
    assert "INFO | reeltrack.app.runtime | service call finished" in log_file.read_text(
        encoding="utf-8"
    )

    configure_logging(LoggingSettings())


def test_verbose_forces_debug() -> None:
    logger = configure_logging(LoggingSettings(level="ERROR"), verbose=True)

    assert logger.level == logging.DEBUG

    configure_logging(LoggingSettings())
