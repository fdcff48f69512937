"""Logging setup shared by the CLI and embedding applications."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from reeltrack.config import LoggingSettings

_HANDLER_MARKER = "_reeltrack_handler"


def configure_logging(settings: LoggingSettings, *, verbose: bool = False) -> logging.Logger:
    """Install Reeltrack's handlers on the ``reeltrack`` logger.

    Calling this again replaces previously installed handlers, so the CLI may
    reconfigure after loading overrides.

    Args:
        settings: Logging section of the effective configuration.
        verbose: Force ``DEBUG`` regardless of the configured level.

    Returns:
        logging.Logger: The configured package logger.
    """
    level = logging.DEBUG if verbose else getattr(logging, settings.level.upper(), logging.WARNING)
    logger = logging.getLogger("reeltrack")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    setattr(console_handler, _HANDLER_MARKER, True)
    logger.addHandler(console_handler)

    if settings.file:
        log_path = Path(settings.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max(1, settings.max_size_mb) * 1024 * 1024,
            backupCount=max(0, settings.backup_count),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        setattr(file_handler, _HANDLER_MARKER, True)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


__all__ = ["configure_logging"]
