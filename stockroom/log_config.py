"""Logging setup shared by the server entry point and the app factory."""
from __future__ import annotations

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Set the root log level and make sure a handler is attached.

    Flask's development server and pytest may already have installed handlers;
    in that case only the level changes.
    """

    if level is None:
        from .config import get_settings

        level = get_settings().log_level
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    logging.getLogger(__name__).debug("Logging configured at %s", level.upper())


__all__ = ["LOG_FORMAT", "setup_logging"]
