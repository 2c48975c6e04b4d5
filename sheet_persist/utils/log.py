"""
RESPONSIBILITIES
- Configure the sheet_persist package logger once (rotating file + stdout).
- Hand out namespaced child loggers to stores and codecs.
PROCESS OVERVIEW
1. Callers request get_logger(name, root).
2. log_dir() creates the log directory if necessary.
3. The package logger is configured on first use and a child logger is returned.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .paths import log_dir

PACKAGE_LOGGER = "sheet_persist"
LOG_FILE_NAME = "sheet_persist.log"

_LOGGER: logging.Logger | None = None


def _configure_logging(directory: Path) -> logging.Logger:
    global _LOGGER
    if _LOGGER is not None:
        return _LOGGER

    log_path = directory / LOG_FILE_NAME

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.INFO)
    logger.propagate = False

    fmt = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(log_path, maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(fmt)
    logger.addHandler(file_handler)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(fmt)
    logger.addHandler(console)

    _LOGGER = logger
    return logger


def get_logger(name: str, root: Path | None = None) -> logging.Logger:
    """Return a namespaced logger under the ``sheet_persist`` package logger."""

    base_logger = _configure_logging(log_dir(root))
    return base_logger.getChild(name)


def reset_logging() -> None:
    """Detach handlers so the next get_logger() call reconfigures. Used by tests."""

    global _LOGGER
    if _LOGGER is None:
        return
    for handler in _LOGGER.handlers[:]:
        _LOGGER.removeHandler(handler)
        handler.close()
    _LOGGER = None
