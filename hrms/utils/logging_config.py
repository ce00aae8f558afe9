"""
Logging setup for the HR backend.

Two destinations, both rotating files under LOG_DIR (default ./logs):

    app.log    everything at the configured level (also echoed to the console)
    trail.log  only the operator trail: "hrms.actions" (who did what, see
               action_log.py) and "hrms.audit" (audit rows that could not be
               written, see services/audit.py)

The trail loggers still propagate to the root handlers, so trail lines also
appear in app.log and on the console.
"""
import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

LOG_DIR = Path(os.getenv("LOG_DIR", Path(__file__).resolve().parent.parent.parent / "logs"))
APP_LOG_NAME = "app.log"
TRAIL_LOG_NAME = "trail.log"
MAX_BYTES = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 5

ACTIONS_LOGGER = "hrms.actions"
AUDIT_LOGGER = "hrms.audit"
TRAIL_LOGGERS = (ACTIONS_LOGGER, AUDIT_LOGGER)

FORMAT_CONSOLE = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
FORMAT_APP = "%(asctime)s | %(levelname)-7s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
# Trail lines already carry actor and target fields; source location adds nothing
FORMAT_TRAIL = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
DATE_FMT = "%Y-%m-%d %H:%M:%S"

# Marks the handler configure_trail_logging installed; a second call replaces it
_TRAIL_HANDLER_NAME = "hrms-trail"


def _rotating_handler(path: Path, level: int, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FMT))
    return handler


def configure_trail_logging(log_dir: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """
    Send hrms.actions and hrms.audit to trail.log in log_dir (LOG_DIR by default).
    Returns the file path, or None when the directory is not writable.
    """
    directory = Path(log_dir) if log_dir is not None else LOG_DIR
    path = directory / TRAIL_LOG_NAME
    try:
        directory.mkdir(parents=True, exist_ok=True)
        handler = _rotating_handler(path, logging.INFO, FORMAT_TRAIL)
    except OSError:
        logging.getLogger(__name__).warning("Could not create trail log %s; trail file logging disabled", path)
        return None
    handler.set_name(_TRAIL_HANDLER_NAME)

    for name in TRAIL_LOGGERS:
        logger = logging.getLogger(name)
        for existing in [h for h in logger.handlers if h.get_name() == _TRAIL_HANDLER_NAME]:
            logger.removeHandler(existing)
            existing.close()
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return path


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger (console + app.log) and the trail file."""
    level_value = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level_value)

    # Avoid duplicate handlers when reloading
    if root.handlers:
        return

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level_value)
    console.setFormatter(logging.Formatter(FORMAT_CONSOLE, datefmt=DATE_FMT))
    root.addHandler(console)

    app_log = LOG_DIR / APP_LOG_NAME
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        root.addHandler(_rotating_handler(app_log, level_value, FORMAT_APP))
    except OSError:
        root.warning("Could not create log file %s; file logging disabled", app_log)

    configure_trail_logging()

    # Reduce noise from third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
