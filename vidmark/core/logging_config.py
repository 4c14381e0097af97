"""Root logging setup for the ``vidmark`` command line tool."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 1024 * 1024
LOG_FILE_BACKUPS = 2

# libav prints per-packet chatter at INFO; Pillow logs plugin probing at DEBUG.
NOISY_LOGGERS = ("libav", "PIL")

_configured = False


def coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        value = logging.getLevelName(level.strip().upper())
        if not isinstance(value, int):
            raise ValueError(f"Unknown log level '{level}'")
        return value
    return int(level)


def _build_handlers(log_file: Optional[Path]) -> List[logging.Handler]:
    # stdout carries the CLI's status lines, so records go to stderr.
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    log_file: Optional[Union[str, Path]] = None,
    force: bool = False,
) -> None:
    """Install stderr (and optional rotating file) handlers on the root logger.

    A second call only adjusts the level unless ``force`` is set. The
    ``libav`` and ``PIL`` loggers are held at ERROR.

    Raises:
        ValueError: ``level`` names no known logging level.
    """
    global _configured
    numeric_level = coerce_level(level)
    root = logging.getLogger()

    if not _configured or force:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in _build_handlers(Path(log_file) if log_file else None):
            root.addHandler(handler)
        _configured = True

    root.setLevel(numeric_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)


__all__ = ["configure_logging", "coerce_level", "LOG_FORMAT", "LOG_DATEFMT", "NOISY_LOGGERS"]
