"""Logging for the EZ Clear API.

API loggers live under ``ezclear.api`` so they share handlers with the
library's ``ezclear`` logger.
"""

import logging

from ezclear.logging_config import setup_ezclear_logging

API_LOGGER_PREFIX = "ezclear.api"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under ``ezclear.api``."""
    if name.startswith(API_LOGGER_PREFIX):
        return logging.getLogger(name)
    return logging.getLogger(f"{API_LOGGER_PREFIX}.{name}")


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach the shared handlers and return the API logger."""
    setup_ezclear_logging(level=level)
    return logging.getLogger(API_LOGGER_PREFIX)

