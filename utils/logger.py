"""Shared logger for the bot"""
import logging
import os
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def setup_logger(name: str = "relaydl") -> logging.Logger:
    """
    Configure and return the project logger.

    Level comes from LOG_LEVEL (default INFO). Safe to call more than once,
    the handler is only attached the first time.
    """
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
    log.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    log.propagate = False

    # aiogram logs every handled update at INFO
    logging.getLogger("aiogram.event").setLevel(logging.WARNING)
    return log


logger = setup_logger()
