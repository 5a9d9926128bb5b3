"""
Viewed/unviewed application tracking.

A hirer's "N new applicants" badge counts the pending applications they have
not opened yet. The viewed set can live in a local JSON key-value file (the
per-device behaviour) or server-side per user (``SupabaseViewedStore``), which
keeps the badge consistent across devices.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Protocol, Set, Union

from ezclear.marketplace.models import ApplicationStatus, JobApplication

logger = logging.getLogger(__name__)

VIEWED_APPLICATIONS_KEY = "viewedApplications"
USER_TYPE_KEY = "userType"
USER_TYPES = ("worker", "hirer")

ApplicationLike = Union[JobApplication, Dict[str, Any]]


class ViewedStore(Protocol):
    """Persistence for one user's viewed-application set."""

    def load(self) -> Set[int]:
        ...

    def add(self, application_ids: Iterable[int]) -> None:
        """Record application ids as viewed. Re-adding is a no-op."""
        ...


class InMemoryViewedStore:
    def __init__(self, initial: Optional[Iterable[int]] = None):
        self._ids: Set[int] = set(initial or ())

    def load(self) -> Set[int]:
        return set(self._ids)

    def add(self, application_ids: Iterable[int]) -> None:
        self._ids.update(int(i) for i in application_ids)


class LocalKeyValueStore:
    """JSON file holding string keys, the client-side local store.

    Values are stored JSON-encoded, one top-level key per entry.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable local store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)


class LocalViewedStore:
    """Viewed set stored as ``{"<application_id>": true}`` under ``viewedApplications``."""

    def __init__(self, kv: LocalKeyValueStore):
        self.kv = kv

    def load(self) -> Set[int]:
        raw = self.kv.get(VIEWED_APPLICATIONS_KEY) or {}
        if not isinstance(raw, dict):
            return set()
        ids = set()
        for key, viewed in raw.items():
            if not viewed:
                continue
            try:
                ids.add(int(key))
            except (TypeError, ValueError):
                logger.debug(f"Skipping non-numeric viewed key: {key!r}")
        return ids

    def add(self, application_ids: Iterable[int]) -> None:
        merged = self.load() | {int(i) for i in application_ids}
        # The whole map is rewritten on every change
        self.kv.set(VIEWED_APPLICATIONS_KEY, {str(i): True for i in sorted(merged)})


class UserTypePreference:
    """Currently selected UI role (``worker`` or ``hirer``).

    Only drives UI branching; never used for authorization.
    """

    def __init__(self, kv: LocalKeyValueStore):
        self.kv = kv

    def get(self) -> Optional[str]:
        value = self.kv.get(USER_TYPE_KEY)
        return value if value in USER_TYPES else None

    def set(self, user_type: str) -> None:
        if user_type not in USER_TYPES:
            raise ValueError(f"Invalid user type: {user_type}. Must be one of {list(USER_TYPES)}")
        self.kv.set(USER_TYPE_KEY, user_type)

    def clear(self) -> None:
        self.kv.remove(USER_TYPE_KEY)


def _field(application: ApplicationLike, name: str) -> Any:
    if isinstance(application, dict):
        return application.get(name)
    return getattr(application, name)


class ViewStateTracker:
    """Tracks which applications a hirer has opened.

    The set is loaded lazily from the store and every change is written
    through immediately.
    """

    def __init__(self, store: ViewedStore):
        self.store = store
        self._viewed: Optional[Set[int]] = None

    def _ids(self) -> Set[int]:
        if self._viewed is None:
            self._viewed = self.store.load()
        return self._viewed

    def mark_viewed(self, application_id: int) -> None:
        self.mark_all_viewed([application_id])

    def mark_all_viewed(self, application_ids: Iterable[int]) -> None:
        ids = {int(i) for i in application_ids}
        if not ids:
            return
        self.store.add(ids)
        self._ids().update(ids)

    def is_viewed(self, application_id: int) -> bool:
        return int(application_id) in self._ids()

    def viewed_ids(self) -> Set[int]:
        return set(self._ids())

    def new_count(self, applications: Iterable[ApplicationLike]) -> int:
        """Count pending applications that have not been viewed."""
        viewed = self._ids()
        return sum(
            1
            for app in applications
            if _field(app, "status") == ApplicationStatus.PENDING.value
            and _field(app, "id") not in viewed
        )
