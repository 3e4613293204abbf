"""Shared logger for the storefront core."""
from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure the ``storefront`` logger once and return it."""
    log = logging.getLogger("storefront")
    resolved = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log.setLevel(getattr(logging, resolved, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
    return log


logger = setup_logging()

__all__ = ["logger", "setup_logging", "LOG_FORMAT"]
