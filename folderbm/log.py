"""Package logger for folderbm.

Every module logs through ``from .log import logger``.  Nothing is emitted
until :func:`setup_logging` attaches handlers (the CLI does this once).
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "folderbm"

logger = logging.getLogger(LOGGER_NAME)
logger.addHandler(logging.NullHandler())


def setup_logging(level: int = logging.WARNING, log_file: Path | None = None) -> None:
    """Attach a stderr handler (and optionally a file handler) to the package logger.

    Safe to call more than once: handlers are only added on the first call,
    later calls just adjust the level.
    """
    logger.setLevel(level)
    if any(isinstance(h, RichHandler) for h in logger.handlers):
        for handler in logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(level)
        return

    console = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    console.setLevel(level)
    logger.addHandler(console)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError:
            logger.debug("cannot open log file %s", log_file, exc_info=True)
            return
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)
