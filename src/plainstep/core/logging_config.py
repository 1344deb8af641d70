"""
PlainStep Logging Setup

Console output plus two size-rotated files under the log directory:
test_run.log (INFO and up) and test_error.log (ERROR only).
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LOG_BYTES = 1024 * 1024
LOG_BACKUPS = 3


def configure_logging(log_dir: str, level: str = "INFO") -> None:
    """Install the run's log handlers on the root logger, replacing any others."""
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level.upper())

    run_file = RotatingFileHandler(
        directory / "test_run.log",
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    run_file.setLevel(logging.INFO)

    error_file = RotatingFileHandler(
        directory / "test_error.log",
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    error_file.setLevel(logging.ERROR)

    logging.basicConfig(
        level=logging.DEBUG if level.upper() == "DEBUG" else logging.INFO,
        format=LOG_FORMAT,
        handlers=[console, run_file, error_file],
        force=True,
    )
