"""Logging helpers."""

from __future__ import annotations

import logging


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger("callcoach")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)

    return logger
