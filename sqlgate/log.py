from __future__ import annotations

import logging
import sys

from .config import LoggingConfig

LOGGER_NAME = "sqlgate"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Send sqlgate logs to stderr. stdout belongs to the stdio transport."""
    root = logging.getLogger(LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.propagate = False

    if config.enabled:
        root.setLevel(getattr(logging, config.level.upper()))
    else:
        root.setLevel(logging.CRITICAL + 1)
    return root


def preview(sql: str, limit: int = 100) -> str:
    text = " ".join((sql or "").split())
    return text if len(text) <= limit else text[:limit] + "..."
