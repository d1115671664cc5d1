"""Logging utilities for declmerge commands."""

from __future__ import annotations

import logging
from pathlib import Path

from .models import ExtractorLogLevel

_LOGGER_NAME = "declmerge"

_EXTRACTOR_LEVELS = {
    ExtractorLogLevel.ERROR: logging.ERROR,
    ExtractorLogLevel.WARNING: logging.WARNING,
    ExtractorLogLevel.INFO: logging.INFO,
    ExtractorLogLevel.VERBOSE: logging.DEBUG,
}


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the declmerge hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def log_extractor_message(
    logger: logging.Logger, log_level: ExtractorLogLevel, message: str
) -> None:
    """Emit an API Extractor style message at its configured level; ``none`` drops it."""
    level = _EXTRACTOR_LEVELS.get(log_level)
    if level is not None:
        logger.log(level, message)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Install the console handler (and an optional file sink) for declmerge runs."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Drop previous handlers so repeated CLI invocations do not double every line.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter("[declmerge] %(levelname)s %(message)s"))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(level)
        sink.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(sink)

    return logger


__all__ = ["configure_logging", "get_logger", "log_extractor_message"]
