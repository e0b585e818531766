"""
Logging configuration.

All mnemo loggers hang off the "mnemo" logger; library users who never
call setup_logging() get no output from us.
"""

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(
    level: int | str = logging.INFO,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the mnemo logger. Calling it again replaces earlier handlers."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("mnemo")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    # stderr, so command output on stdout stays machine-readable
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger, e.g. get_logger("memory.store") -> "mnemo.memory.store"."""
    return logging.getLogger(f"mnemo.{name}")
