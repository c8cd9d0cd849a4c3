"""Logging setup for the ``sidetree`` package logger."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "sidetree"


def setup_logging(level: int | str = logging.WARNING) -> logging.Logger:
    """Attach one stderr handler to the package logger and set its level."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)
    return logger
