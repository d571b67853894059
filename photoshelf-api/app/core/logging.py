# app/core/logging.py
# One place to configure the "photoshelf" logger tree (server + scripts).
from __future__ import annotations
import logging

LOGGER_NAME = "photoshelf"

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str = "") -> logging.Logger:
    """Child logger under 'photoshelf' (e.g. get_logger('catalog'))."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Console handler on the 'photoshelf' logger.
    Safe to call more than once: old handlers are replaced, not stacked.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)

    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(ch)
    return logger
