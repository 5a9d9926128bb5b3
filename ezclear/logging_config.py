"""Logging configuration for EZ Clear.

The ``ezclear`` logger writes to a dated file under ``$EZCLEAR_DATA_DIR/logs``
(``~/.ezclear/logs`` by default). Lifecycle events (status transitions,
notifications) additionally go to a separate append-only event log so a job's
history can be reconstructed from the logs alone.
"""

import logging
import os
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
ROOT_LOGGER_NAME = "ezclear"


def get_data_dir() -> Path:
    """Return the EZ Clear data directory."""
    env_dir = os.environ.get("EZCLEAR_DATA_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".ezclear"


def get_log_dir() -> Path:
    """Return (and create) the log directory."""
    log_dir = get_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_ezclear_logging(level: str = "INFO", log_dir: Optional[Path] = None) -> logging.Logger:
    """Configure the ``ezclear`` logger.

    Adds a file handler writing to ``marketplace-YYYY-MM-DD.log``. At DEBUG
    level a console handler is added as well. Safe to call repeatedly; handlers
    are only attached once.

    Args:
        level: Log level name (case-insensitive). Unknown names fall back to INFO.
        log_dir: Override for the log directory.

    Returns:
        The configured ``ezclear`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    numeric_level = _resolve_level(level)
    logger.setLevel(numeric_level)

    target_dir = log_dir or get_log_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        log_file = target_dir / f"marketplace-{date.today().isoformat()}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )
    if numeric_level <= logging.DEBUG and not has_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``ezclear`` namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_lifecycle_event(event_type: str, details: str, job_id: Optional[int] = None) -> None:
    """Append a lifecycle event line to ``lifecycle-events-YYYY-MM-DD.log``."""
    try:
        log_file = get_log_dir() / f"lifecycle-events-{date.today().isoformat()}.log"
        timestamp = datetime.now(timezone.utc).isoformat()
        job_part = f"job={job_id}" if job_id is not None else "job=-"
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(f"{timestamp} | {event_type} | {job_part} | {details}\n")
    except OSError as e:
        logging.getLogger(ROOT_LOGGER_NAME).warning(f"Could not write lifecycle event: {e}")


def log_transition(
    entity: str,
    entity_id: Optional[int],
    from_status: Optional[str],
    to_status: str,
    actor_id: Optional[str] = None,
    job_id: Optional[int] = None,
) -> None:
    """Log a status transition of a job or application."""
    details = (
        f"entity={entity}, id={entity_id}, from={from_status or '-'}, "
        f"to={to_status}, actor={actor_id or 'system'}"
    )
    log_lifecycle_event("transition", details, job_id=job_id)


def log_notification(user_id: str, notification_type: str, title: str, job_id: Optional[int] = None) -> None:
    """Log an emitted notification."""
    log_lifecycle_event(
        "notification",
        f"user={user_id}, type={notification_type}, title={title[:50]}",
        job_id=job_id,
    )
