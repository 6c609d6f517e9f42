"""
Logging setup: plain text lines to the console and to an append-only log file.
"""

import logging
import sys

LOGGER_NAME = "autovolume"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(log_file: str | None, level: str | int = logging.INFO) -> logging.Logger:
    """Attach console and file handlers to the package logger.

    Handlers from an earlier call are closed and replaced, so calling this
    more than once in a process does not duplicate lines.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
