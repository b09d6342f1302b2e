"""Logging setup for replay runs."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
LOG_MAX_BYTES = 5_000_000
LOG_BACKUPS = 3

_FILE_HANDLER = "trafficreplay.file"
_CONSOLE_HANDLER = "trafficreplay.console"


def _installed(logger: logging.Logger, name: str) -> bool:
    return any(h.get_name() == name for h in logger.handlers)


def _attach(logger: logging.Logger, handler: logging.Handler, name: str) -> None:
    handler.set_name(name)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def setup_logging(log_path: Optional[Path] = None, level: str = "INFO") -> logging.Logger:
    """Send replay logs to the console and, when ``log_path`` is given, a rotating file.

    Calling it again only changes the level; handlers are installed once per process.
    """

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if log_path is not None and not _installed(root, _FILE_HANDLER):
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _attach(root, RotatingFileHandler(log_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"), _FILE_HANDLER)

    if not _installed(root, _CONSOLE_HANDLER):
        _attach(root, logging.StreamHandler(), _CONSOLE_HANDLER)

    return root
