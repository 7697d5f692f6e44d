from __future__ import annotations

import logging
import sys

from docvault.app.core.config import settings
from docvault.app.core.paths import resolve_repo_path

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the `docvault` logger.

    Calling it again is a no-op once handlers are installed, so both the CLI
    runner and `create_app()` may call it.
    """
    logger = logging.getLogger("docvault")
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if logger.handlers:
        return logger

    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    path = log_file or settings.LOG_FILE
    if path:
        resolved = resolve_repo_path(path)
        resolved.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(resolved, encoding="utf-8", mode="a")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
