"""Logging helpers for the mockprep project."""

from __future__ import annotations

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Per-request INFO lines from the HTTP stack drown out pipeline events.
_QUIET_LOGGERS = ("httpx", "httpcore", "openai")

_LOGGER_CONFIGURED = False


def configure_logging(level: int = logging.INFO, *, force: bool = False) -> None:
    """Configure basic logging once for the application.

    ``force`` re-applies the configuration, which the CLI uses when the
    ``--verbose`` flag raises the level after modules have already logged.
    """

    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED and not force:
        return

    logging.basicConfig(level=level, format=LOG_FORMAT, force=force)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    _LOGGER_CONFIGURED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Convenience helper that ensures logging is configured."""

    configure_logging()
    return logging.getLogger(name or "mockprep")


__all__ = ["configure_logging", "get_logger"]
