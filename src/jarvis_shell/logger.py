"""
Logging setup: everything goes to a log file so the terminal stays free for
the REPL and rendered results.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from jarvis_shell.runtime_config import JARVIS_LOG_LEVEL_ENV, get_data_dir

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_FILE_NAME = "jarvis.log"


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None) -> Path:
    """
    Configure the ``jarvis_shell`` logger to write to ``log_file``.

    The level defaults to JARVIS_LOG_LEVEL, then INFO. Calling this again
    replaces the previously installed file handler.

    Returns:
        The path of the log file.
    """
    level_name = (level or os.environ.get(JARVIS_LOG_LEVEL_ENV) or "INFO").upper()
    if log_file is None:
        log_dir = get_data_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / LOG_FILE_NAME

    package_logger = logging.getLogger("jarvis_shell")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_jarvis_file_handler", False):
            package_logger.removeHandler(handler)
            handler.close()

    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._jarvis_file_handler = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level_name, logging.INFO))
    return log_file
