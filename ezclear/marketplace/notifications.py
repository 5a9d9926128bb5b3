"""
Notification sink and the lifecycle notification builders.

The lifecycle engine is the only producer of lifecycle notifications. Each
builder below corresponds to exactly one status transition.
"""

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from ezclear.marketplace.models import Job, JobApplication, Notification, NotificationType


class NotificationSink(Protocol):
    """Protocol for notification persistence."""

    def emit(self, notification: Notification) -> Notification:
        """Persist a notification. Returns it with its assigned ID."""
        ...

    def list_for_user(
        self, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> List[Notification]:
        """List a user's notifications, newest first."""
        ...

    def mark_read(
        self, notification_id: int, user_id: str, read: bool = True
    ) -> Optional[Notification]:
        """Set the read flag on one of the user's notifications."""
        ...


class InMemoryNotificationSink:
    """In-memory notification sink for testing."""

    def __init__(self):
        self._notifications: dict[int, Notification] = {}
        self._lock = threading.Lock()
        self._next_id = 1

    @property
    def emitted(self) -> List[Notification]:
        """All notifications in emission order."""
        return [self._notifications[k] for k in sorted(self._notifications)]

    def emit(self, notification: Notification) -> Notification:
        with self._lock:
            stored = replace(
                notification,
                id=self._next_id,
                created_at=notification.created_at or datetime.now(timezone.utc),
            )
            self._next_id += 1
            self._notifications[stored.id] = stored
            return stored

    def list_for_user(
        self, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> List[Notification]:
        result = [n for n in self._notifications.values() if n.user_id == user_id]
        if unread_only:
            result = [n for n in result if not n.read]
        result.sort(key=lambda n: (n.created_at, n.id), reverse=True)
        return result[:limit]

    def mark_read(
        self, notification_id: int, user_id: str, read: bool = True
    ) -> Optional[Notification]:
        with self._lock:
            current = self._notifications.get(notification_id)
            if current is None or current.user_id != user_id:
                return None
            updated = replace(current, read=read)
            self._notifications[notification_id] = updated
            return updated


# =============================================================================
# Builders
# =============================================================================


def _payload(job: Job, application: JobApplication) -> dict:
    return {
        "job_id": job.id,
        "application_id": application.id,
        "applicant_id": application.applicant_id,
    }


def new_application_notification(
    job: Job, application: JobApplication, applicant_name: Optional[str] = None
) -> Notification:
    """Tell the job owner someone applied."""
    return Notification(
        user_id=job.user_id,
        type=NotificationType.APPLICATION,
        title="New Job Application",
        description=(
            f'New application from {applicant_name or "a worker"} '
            f'for your job "{job.title}"'
        ),
        data=_payload(job, application),
    )


def application_accepted_notification(job: Job, application: JobApplication) -> Notification:
    return Notification(
        user_id=application.applicant_id,
        type=NotificationType.APPLICATION,
        title="Application Accepted! 🎉",
        description=(
            f'Your application for "{job.title}" has been accepted. '
            "You can now message the client."
        ),
        data=_payload(job, application),
    )


def application_declined_notification(job: Job, application: JobApplication) -> Notification:
    return Notification(
        user_id=application.applicant_id,
        type=NotificationType.APPLICATION,
        title="Application Update",
        description=f'Your application for "{job.title}" was not selected.',
        data=_payload(job, application),
    )


def hired_notification(job: Job, application: JobApplication) -> Notification:
    scheduled = f" on {job.scheduled_date.isoformat()}" if job.scheduled_date else ""
    return Notification(
        user_id=application.applicant_id,
        type=NotificationType.JOB,
        title="You've been hired! 🎉",
        description=f'You\'ve been hired for the job "{job.title}"{scheduled}',
        data=_payload(job, application),
    )


def job_completed_notification(job: Job, application: JobApplication) -> Notification:
    return Notification(
        user_id=application.applicant_id,
        type=NotificationType.JOB,
        title="Job Completed",
        description=f'The job "{job.title}" has been marked as completed.',
        data=_payload(job, application),
    )
