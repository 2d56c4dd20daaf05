"""Logging setup for the axon command line.

The library itself only creates loggers under the ``axon`` namespace and
never configures handlers; the package root carries a NullHandler so it is
silent unless the application opts in.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

LOGGER_NAME = "axon"


def setup_logging(level: int = logging.DEBUG,
                  stream: Optional[TextIO] = None) -> logging.Logger:
    """Attach one stderr handler to the ``axon`` logger (idempotent)."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    target = stream if stream is not None else sys.stderr
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream is target:
            return logger

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(target)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger
