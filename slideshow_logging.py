"""Logging initialization utilities using loguru."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger


def init_logging(level: str = "INFO", log_file: str | Path | None = None) -> None:
    """Send log messages to stdout and, optionally, to a rotating file."""
    logger.remove()
    logger.add(sys.stdout, format="{message}", level=level)
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            rotation="10 MB",
            retention="10 days",
            enqueue=True,
            backtrace=False,
            diagnose=False,
            level=level,
        )
