"""Logging setup: rich console output plus a rotating log file."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

APP_NAME = "LocBundle"
LOG_FILE_NAME = "locbundle.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_log_directory() -> Path:
    """Platform-specific folder for log files."""
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Logs" / APP_NAME
    if sys.platform == "win32":
        return home / "AppData" / "Roaming" / APP_NAME / "logs"
    if sys.platform.startswith("linux"):
        state_home = os.environ.get("XDG_STATE_HOME") or str(home / ".local" / "state")
        return Path(state_home) / APP_NAME.lower() / "logs"
    return home / f".{APP_NAME.lower()}" / "logs"


def setup_logging(
    level: Optional[str] = None,
    log_dir: Optional[Union[str, Path]] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Warnings and errors go to the console through rich; everything at
    `level` and above goes to a rotating file.

    Args:
        level: File log level name, defaults to LOCBUNDLE_LOG_LEVEL or INFO
        log_dir: Log folder, defaults to LOCBUNDLE_LOG_DIR or the platform folder
        console: Console the rich handler writes to

    Returns:
        The configured "locbundle" logger
    """
    from .config import settings

    level_name = (level or settings.log_level or "INFO").upper()
    directory = Path(log_dir or settings.log_dir or get_log_directory())

    root = logging.getLogger("locbundle")
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=console,
        level=logging.WARNING,
        show_path=False,
        rich_tracebacks=True,
    )
    root.addHandler(console_handler)

    try:
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            directory / LOG_FILE_NAME,
            maxBytes=20 * 1024 * 1024,
            backupCount=7,
            encoding="utf-8",
        )
    except OSError as e:
        root.warning("Cannot write log file in %s: %s", directory, e)
    else:
        file_handler.setLevel(level_name)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    root.propagate = False
    return root
