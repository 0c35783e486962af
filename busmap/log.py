"""Logging setup driven by the ``logging`` config section."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from busmap.config import LoggingConfig

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
LOG_FILENAME = "busmap.log"


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Attach console and rotating file handlers to the ``busmap`` logger."""
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level '{config.level}'")

    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILENAME, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    logger = logging.getLogger("busmap")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(console)
    logger.addHandler(file_handler)
    logger.setLevel(level)
    return logger


__all__ = ["configure_logging"]
