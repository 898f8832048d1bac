"""Logging utilities."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

LOG_DIR = Path(os.environ.get("GP_FINALISE_LOG_DIR", "/var/log/gp-finalise"))
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ROOT_LOGGER = "gp_finalise"

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def configure_file_logging(log_file: Path | None = None) -> Path | None:
    """Attach the rotating run log to the package logger.

    Returns the log path, or ``None`` when the log directory is not writable
    (for instance when the tool is started without root).
    """

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG)
    for handler in root.handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            return Path(handler.baseFilename)
    log_file = log_file or LOG_DIR / "gp-finalise.log"
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(log_file, maxBytes=2 * 1024 * 1024, backupCount=3)
    except OSError:
        return None
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    return log_file


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(f"{ROOT_LOGGER}.{name}")
    logger.setLevel(logging.DEBUG)
    return logger
