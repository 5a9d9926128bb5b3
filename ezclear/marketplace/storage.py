"""
Marketplace storage layer.

Defines the persistence protocol for jobs, applications and the job state
transition log, plus an in-memory backend for tests and local development.
The Supabase backend lives in ``ezclear.marketplace.supabase_storage``.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, Union

from ezclear.marketplace.errors import DuplicateApplicationError
from ezclear.marketplace.models import (
    ApplicationStatus,
    Job,
    JobApplication,
    JobStateTransition,
    JobStatus,
)

logger = logging.getLogger(__name__)

StatusFilter = Union[str, Enum, Iterable[Union[str, Enum]]]

# Result error markers for conditional writes
NOT_FOUND = "not_found"
CONFLICT = "conflict"


def status_values(expected: StatusFilter) -> List[str]:
    """Normalize one status or a collection of statuses to plain strings."""
    if isinstance(expected, (str, Enum)):
        expected = [expected]
    return [s.value if isinstance(s, Enum) else s for s in expected]


class MarketplaceStorage(Protocol):
    """Protocol for job/application persistence backends."""

    # Jobs
    def save_job(self, job: Job) -> Job:
        """Insert a job. Returns the stored job with its assigned ID."""
        ...

    def get_job(self, job_id: int) -> Optional[Job]:
        ...

    def get_jobs(self, job_ids: Iterable[int]) -> Dict[int, Job]:
        """Fetch several jobs by ID. Missing IDs are absent from the result."""
        ...

    def list_jobs(
        self,
        status: Optional[JobStatus] = None,
        user_id: Optional[str] = None,
        service_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Job]:
        """List jobs, newest first."""
        ...

    def update_job(self, job: Job) -> bool:
        """Write non-status fields of a job. Returns True if the job exists."""
        ...

    def atomic_update_job_status(
        self,
        job_id: int,
        expected_status: StatusFilter,
        new_status: JobStatus,
        **updates: Any,
    ) -> Tuple[Optional[Job], Optional[str]]:
        """Conditionally update a job's status.

        The write only applies while the job's current status is one of
        ``expected_status``.

        Returns:
            ``(job, None)`` on success, ``(None, "not_found")`` or
            ``(None, "conflict")`` otherwise.
        """
        ...

    def delete_job(self, job_id: int) -> bool:
        ...

    # Applications
    def save_application(self, application: JobApplication) -> JobApplication:
        """Insert an application.

        Raises:
            DuplicateApplicationError: (job_id, applicant_id) already exists
        """
        ...

    def get_application(self, application_id: int) -> Optional[JobApplication]:
        ...

    def find_application(self, job_id: int, applicant_id: str) -> Optional[JobApplication]:
        ...

    def list_applications(
        self,
        job_id: Optional[int] = None,
        applicant_id: Optional[str] = None,
        status: Optional[StatusFilter] = None,
        job_ids: Optional[List[int]] = None,
        limit: int = 500,
    ) -> List[JobApplication]:
        """List applications, newest first."""
        ...

    def count_applications(self, job_id: int, status: Optional[StatusFilter] = None) -> int:
        ...

    def atomic_update_application_status(
        self,
        application_id: int,
        expected_status: StatusFilter,
        new_status: ApplicationStatus,
    ) -> Tuple[Optional[JobApplication], Optional[str]]:
        """Conditionally update an application's status (see job variant)."""
        ...

    def set_application_conversation(self, application_id: int, conversation_id: int) -> bool:
        ...

    def delete_applications_for_job(self, job_id: int) -> int:
        """Delete all applications of a job. Returns the number removed."""
        ...

    # Transitions (audit log)
    def save_transition(self, transition: JobStateTransition) -> JobStateTransition:
        ...

    def get_transitions(self, job_id: int) -> List[JobStateTransition]:
        """Get all state transitions for a job, oldest first."""
        ...


class InMemoryMarketplaceStorage:
    """In-memory marketplace storage for testing and local development.

    Conditional writes and the uniqueness check run under one lock, so the
    store behaves like a database with row-level compare-and-set.
    """

    def __init__(self):
        self._jobs: dict[int, Job] = {}
        self._applications: dict[int, JobApplication] = {}
        self._transitions: dict[int, list[JobStateTransition]] = {}
        self._lock = threading.Lock()
        self._next_job_id = 1
        self._next_application_id = 1
        self._next_transition_id = 1

    def _utc_now(self) -> datetime:
        return datetime.now(timezone.utc)

    # === Jobs ===

    def save_job(self, job: Job) -> Job:
        with self._lock:
            now = self._utc_now()
            stored = replace(
                job,
                id=job.id if job.id is not None else self._next_job_id,
                created_at=job.created_at or now,
                updated_at=now,
            )
            self._next_job_id = max(self._next_job_id, stored.id) + 1
            self._jobs[stored.id] = stored
            self._transitions.setdefault(stored.id, [])
            return replace(stored)

    def get_job(self, job_id: int) -> Optional[Job]:
        job = self._jobs.get(job_id)
        return replace(job) if job else None

    def get_jobs(self, job_ids: Iterable[int]) -> Dict[int, Job]:
        return {jid: replace(self._jobs[jid]) for jid in set(job_ids) if jid in self._jobs}

    def list_jobs(
        self,
        status: Optional[JobStatus] = None,
        user_id: Optional[str] = None,
        service_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Job]:
        jobs = list(self._jobs.values())

        if status is not None:
            wanted = status_values(status)
            jobs = [j for j in jobs if j.status in wanted]
        if user_id is not None:
            jobs = [j for j in jobs if j.user_id == user_id]
        if service_type is not None:
            service_value = service_type.value if isinstance(service_type, Enum) else service_type
            jobs = [j for j in jobs if j.service_type == service_value]

        jobs.sort(key=lambda j: (j.created_at or self._utc_now(), j.id or 0), reverse=True)
        return [replace(j) for j in jobs[offset : offset + limit]]

    def update_job(self, job: Job) -> bool:
        with self._lock:
            current = self._jobs.get(job.id)
            if current is None:
                return False
            # Status only moves through atomic_update_job_status
            self._jobs[job.id] = replace(job, status=current.status, updated_at=self._utc_now())
            return True

    def atomic_update_job_status(
        self,
        job_id: int,
        expected_status: StatusFilter,
        new_status: JobStatus,
        **updates: Any,
    ) -> Tuple[Optional[Job], Optional[str]]:
        expected = status_values(expected_status)
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                return None, NOT_FOUND
            if current.status not in expected:
                logger.warning(
                    f"Race condition detected on job {job_id}: "
                    f"expected status {expected}, found '{current.status}'"
                )
                return None, CONFLICT
            updated = replace(
                current,
                status=status_values(new_status)[0],
                updated_at=self._utc_now(),
                **updates,
            )
            self._jobs[job_id] = updated
            return replace(updated), None

    def delete_job(self, job_id: int) -> bool:
        with self._lock:
            return self._jobs.pop(job_id, None) is not None

    # === Applications ===

    def save_application(self, application: JobApplication) -> JobApplication:
        with self._lock:
            for existing in self._applications.values():
                if (
                    existing.job_id == application.job_id
                    and existing.applicant_id == application.applicant_id
                ):
                    raise DuplicateApplicationError("You have already applied to this job")
            now = self._utc_now()
            stored = replace(
                application,
                id=application.id if application.id is not None else self._next_application_id,
                created_at=application.created_at or now,
                updated_at=now,
            )
            self._next_application_id = max(self._next_application_id, stored.id) + 1
            self._applications[stored.id] = stored
            return replace(stored)

    def get_application(self, application_id: int) -> Optional[JobApplication]:
        app = self._applications.get(application_id)
        return replace(app) if app else None

    def find_application(self, job_id: int, applicant_id: str) -> Optional[JobApplication]:
        for app in self._applications.values():
            if app.job_id == job_id and app.applicant_id == applicant_id:
                return replace(app)
        return None

    def list_applications(
        self,
        job_id: Optional[int] = None,
        applicant_id: Optional[str] = None,
        status: Optional[StatusFilter] = None,
        job_ids: Optional[List[int]] = None,
        limit: int = 500,
    ) -> List[JobApplication]:
        apps = list(self._applications.values())

        if job_id is not None:
            apps = [a for a in apps if a.job_id == job_id]
        if job_ids is not None:
            apps = [a for a in apps if a.job_id in set(job_ids)]
        if applicant_id is not None:
            apps = [a for a in apps if a.applicant_id == applicant_id]
        if status is not None:
            wanted = status_values(status)
            apps = [a for a in apps if a.status in wanted]

        apps.sort(key=lambda a: (a.created_at or self._utc_now(), a.id or 0), reverse=True)
        return [replace(a) for a in apps[:limit]]

    def count_applications(self, job_id: int, status: Optional[StatusFilter] = None) -> int:
        return len(self.list_applications(job_id=job_id, status=status, limit=len(self._applications) + 1))

    def atomic_update_application_status(
        self,
        application_id: int,
        expected_status: StatusFilter,
        new_status: ApplicationStatus,
    ) -> Tuple[Optional[JobApplication], Optional[str]]:
        expected = status_values(expected_status)
        with self._lock:
            current = self._applications.get(application_id)
            if current is None:
                return None, NOT_FOUND
            if current.status not in expected:
                logger.warning(
                    f"Race condition detected on application {application_id}: "
                    f"expected status {expected}, found '{current.status}'"
                )
                return None, CONFLICT
            updated = replace(
                current,
                status=status_values(new_status)[0],
                updated_at=self._utc_now(),
            )
            self._applications[application_id] = updated
            return replace(updated), None

    def set_application_conversation(self, application_id: int, conversation_id: int) -> bool:
        with self._lock:
            app = self._applications.get(application_id)
            if app is None:
                return False
            self._applications[application_id] = replace(app, conversation_id=conversation_id)
            return True

    def delete_applications_for_job(self, job_id: int) -> int:
        with self._lock:
            doomed = [a.id for a in self._applications.values() if a.job_id == job_id]
            for app_id in doomed:
                del self._applications[app_id]
            return len(doomed)

    # === Transitions ===

    def save_transition(self, transition: JobStateTransition) -> JobStateTransition:
        with self._lock:
            stored = replace(
                transition,
                id=transition.id if transition.id is not None else self._next_transition_id,
                created_at=transition.created_at or self._utc_now(),
            )
            self._next_transition_id = max(self._next_transition_id, stored.id) + 1
            self._transitions.setdefault(stored.job_id, []).append(stored)
            return stored

    def get_transitions(self, job_id: int) -> List[JobStateTransition]:
        transitions = self._transitions.get(job_id, [])
        return sorted(transitions, key=lambda t: (t.created_at or self._utc_now(), t.id or 0))
