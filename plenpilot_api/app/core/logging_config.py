"""
Logging setup for the API process and the scheduled jobs.

Records go to the console and, when ``LOG_FILE`` is set, to a file.
Relative log paths live next to the database under ``plenpilot_api/``.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .config import settings

HANDLER_NAME = "plenpilot"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Chatty client libraries used for push delivery.
QUIET_LOGGERS = ("urllib3", "google.auth", "firebase_admin")


def get_log_path(logfile: str) -> str:
    """Resolve ``logfile`` against the project root unless it is absolute."""
    if os.path.isabs(logfile):
        return logfile
    base_dir = Path(__file__).resolve().parent.parent.parent  # plenpilot_api/
    return str((base_dir / logfile).resolve())


def setup_logging(level: Optional[str] = None, logfile: Optional[str] = None) -> None:
    """Configure the root logger once per process.

    ``level`` and ``logfile`` default to ``LOG_LEVEL`` and ``LOG_FILE``.
    Handlers installed by someone else (for example a test runner) are
    left alone; only our own named handlers mark logging as done.
    """
    root = logging.getLogger()
    if any(handler.get_name() == HANDLER_NAME for handler in root.handlers):
        return

    level = level or settings.log_level
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers = [logging.StreamHandler()]
    logfile = logfile if logfile is not None else settings.log_file
    if logfile:
        log_path = Path(get_log_path(logfile))
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    for handler in handlers:
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
