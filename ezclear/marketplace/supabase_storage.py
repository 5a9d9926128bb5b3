"""
Supabase-backed marketplace storage.

All adapters here share one policy:

- every request runs with the client's uniform timeout;
- idempotent reads are retried with backoff on transport errors;
- mutations are sent exactly once;
- upstream failures surface as ``UpstreamUnavailableError``, except unique
  violations on applications, which surface as ``DuplicateApplicationError``.

Status changes use conditional updates (``UPDATE ... WHERE id = ? AND status
IN (...)``). A zero-row result is re-read to tell a missing row from a lost race.
"""

import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple, TypeVar

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

from ezclear.marketplace.config import MarketplaceConfig
from ezclear.marketplace.errors import DuplicateApplicationError, UpstreamUnavailableError
from ezclear.marketplace.models import (
    ApplicationStatus,
    Job,
    JobApplication,
    JobStateTransition,
    JobStatus,
    Notification,
)
from ezclear.marketplace.queries import PROFILE_FIELDS
from ezclear.marketplace.retry import retry_read
from ezclear.marketplace.storage import CONFLICT, NOT_FOUND, StatusFilter, status_values

logger = logging.getLogger(__name__)

T = TypeVar("T")

# =============================================================================
# Table Names
# =============================================================================

JOBS_TABLE = "jobs"
APPLICATIONS_TABLE = "job_applications"
TRANSITIONS_TABLE = "job_state_transitions"
NOTIFICATIONS_TABLE = "notifications"
APPLICATION_VIEWS_TABLE = "application_views"
PROFILES_TABLE = "profiles"
CONVERSATIONS_TABLE = "conversations"
MESSAGES_TABLE = "messages"

UNIQUE_VIOLATION = "23505"


def create_supabase_client(url: str, key: str, config: Optional[MarketplaceConfig] = None) -> Client:
    """Create a Supabase client with the marketplace request timeout."""
    config = config or MarketplaceConfig()
    options = ClientOptions(postgrest_client_timeout=config.request_timeout_seconds)
    return create_client(url, key, options=options)


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _row(data: Dict[str, Any], drop: Iterable[str] = ()) -> Dict[str, Any]:
    """Prepare a dict for insert: drop unset keys the database fills in."""
    skip = set(drop)
    return {
        k: _serialize(v)
        for k, v in data.items()
        if k not in skip and not (k in ("id", "created_at", "updated_at") and v is None)
    }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseAdapter:
    """Base class with the shared read/write error policy."""

    def __init__(self, client: Client, config: Optional[MarketplaceConfig] = None):
        self.client = client
        self.config = config or MarketplaceConfig()

    def _read(self, description: str, fn: Callable[[], T]) -> T:
        try:
            return retry_read(
                fn,
                attempts=self.config.read_retry_attempts,
                base_delay=self.config.read_retry_base_delay,
            )
        except (httpx.HTTPError, APIError) as e:
            logger.error(f"Supabase read failed ({description}): {e}")
            raise UpstreamUnavailableError(f"Could not {description}") from e

    def _write(self, description: str, fn: Callable[[], T], duplicate_message: Optional[str] = None) -> T:
        try:
            return fn()
        except APIError as e:
            if duplicate_message and e.code == UNIQUE_VIOLATION:
                raise DuplicateApplicationError(duplicate_message) from e
            logger.error(f"Supabase write failed ({description}): {e}")
            raise UpstreamUnavailableError(f"Could not {description}") from e
        except httpx.HTTPError as e:
            logger.error(f"Supabase write failed ({description}): {e}")
            raise UpstreamUnavailableError(f"Could not {description}") from e


class SupabaseMarketplaceStorage(SupabaseAdapter):
    """Jobs, applications and the transition log in Supabase."""

    # === Jobs ===

    def save_job(self, job: Job) -> Job:
        row = _row(job.to_dict())
        result = self._write(
            f"insert into {JOBS_TABLE}",
            lambda: self.client.table(JOBS_TABLE).insert(row).execute(),
        )
        return Job.from_dict(result.data[0])

    def get_job(self, job_id: int) -> Optional[Job]:
        result = self._read(
            f"read job {job_id}",
            lambda: self.client.table(JOBS_TABLE).select("*").eq("id", job_id).limit(1).execute(),
        )
        return Job.from_dict(result.data[0]) if result.data else None

    def get_jobs(self, job_ids: Iterable[int]) -> Dict[int, Job]:
        ids = sorted(set(job_ids))
        if not ids:
            return {}
        result = self._read(
            f"read {len(ids)} jobs",
            lambda: self.client.table(JOBS_TABLE).select("*").in_("id", ids).execute(),
        )
        jobs = (Job.from_dict(row) for row in result.data or [])
        return {j.id: j for j in jobs}

    def list_jobs(
        self,
        status: Optional[StatusFilter] = None,
        user_id: Optional[str] = None,
        service_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Job]:
        def run():
            query = self.client.table(JOBS_TABLE).select("*")
            if status is not None:
                query = query.in_("status", status_values(status))
            if user_id is not None:
                query = query.eq("user_id", user_id)
            if service_type is not None:
                query = query.eq("service_type", _serialize(service_type))
            return query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()

        result = self._read("list jobs", run)
        return [Job.from_dict(row) for row in result.data or []]

    def update_job(self, job: Job) -> bool:
        data = _row(job.to_dict(), drop=("id", "status", "created_at", "updated_at"))
        data["updated_at"] = _now()
        result = self._write(
            f"update job {job.id}",
            lambda: self.client.table(JOBS_TABLE).update(data).eq("id", job.id).execute(),
        )
        return bool(result.data)

    def atomic_update_job_status(
        self,
        job_id: int,
        expected_status: StatusFilter,
        new_status: JobStatus,
        **updates: Any,
    ) -> Tuple[Optional[Job], Optional[str]]:
        expected = status_values(expected_status)
        data = {k: _serialize(v) for k, v in updates.items()}
        data["status"] = _serialize(new_status)
        data["updated_at"] = _now()

        result = self._write(
            f"update job {job_id} status",
            lambda: (
                self.client.table(JOBS_TABLE)
                .update(data)
                .eq("id", job_id)
                .in_("status", expected)
                .execute()
            ),
        )
        if result.data:
            return Job.from_dict(result.data[0]), None

        current = self.get_job(job_id)
        if current is None:
            return None, NOT_FOUND
        logger.warning(
            f"Race condition detected on job {job_id}: "
            f"expected status {expected}, found '{current.status}'"
        )
        return None, CONFLICT

    def delete_job(self, job_id: int) -> bool:
        result = self._write(
            f"delete job {job_id}",
            lambda: self.client.table(JOBS_TABLE).delete().eq("id", job_id).execute(),
        )
        return bool(result.data)

    # === Applications ===

    def save_application(self, application: JobApplication) -> JobApplication:
        row = _row(application.to_dict())
        result = self._write(
            f"insert into {APPLICATIONS_TABLE}",
            lambda: self.client.table(APPLICATIONS_TABLE).insert(row).execute(),
            duplicate_message="You have already applied to this job",
        )
        return JobApplication.from_dict(result.data[0])

    def get_application(self, application_id: int) -> Optional[JobApplication]:
        result = self._read(
            f"read application {application_id}",
            lambda: (
                self.client.table(APPLICATIONS_TABLE)
                .select("*")
                .eq("id", application_id)
                .limit(1)
                .execute()
            ),
        )
        return JobApplication.from_dict(result.data[0]) if result.data else None

    def find_application(self, job_id: int, applicant_id: str) -> Optional[JobApplication]:
        result = self._read(
            f"check existing application on job {job_id}",
            lambda: (
                self.client.table(APPLICATIONS_TABLE)
                .select("*")
                .eq("job_id", job_id)
                .eq("applicant_id", applicant_id)
                .limit(1)
                .execute()
            ),
        )
        return JobApplication.from_dict(result.data[0]) if result.data else None

    def list_applications(
        self,
        job_id: Optional[int] = None,
        applicant_id: Optional[str] = None,
        status: Optional[StatusFilter] = None,
        job_ids: Optional[List[int]] = None,
        limit: int = 500,
    ) -> List[JobApplication]:
        if job_ids is not None and not job_ids:
            return []

        def run():
            query = self.client.table(APPLICATIONS_TABLE).select("*")
            if job_id is not None:
                query = query.eq("job_id", job_id)
            if job_ids is not None:
                query = query.in_("job_id", list(job_ids))
            if applicant_id is not None:
                query = query.eq("applicant_id", applicant_id)
            if status is not None:
                query = query.in_("status", status_values(status))
            return query.order("created_at", desc=True).limit(limit).execute()

        result = self._read("list applications", run)
        return [JobApplication.from_dict(row) for row in result.data or []]

    def count_applications(self, job_id: int, status: Optional[StatusFilter] = None) -> int:
        def run():
            query = (
                self.client.table(APPLICATIONS_TABLE)
                .select("id", count="exact")
                .eq("job_id", job_id)
            )
            if status is not None:
                query = query.in_("status", status_values(status))
            return query.execute()

        result = self._read(f"count applications on job {job_id}", run)
        return result.count or 0

    def atomic_update_application_status(
        self,
        application_id: int,
        expected_status: StatusFilter,
        new_status: ApplicationStatus,
    ) -> Tuple[Optional[JobApplication], Optional[str]]:
        expected = status_values(expected_status)
        data = {"status": _serialize(new_status), "updated_at": _now()}

        result = self._write(
            f"update application {application_id} status",
            lambda: (
                self.client.table(APPLICATIONS_TABLE)
                .update(data)
                .eq("id", application_id)
                .in_("status", expected)
                .execute()
            ),
        )
        if result.data:
            return JobApplication.from_dict(result.data[0]), None

        current = self.get_application(application_id)
        if current is None:
            return None, NOT_FOUND
        logger.warning(
            f"Race condition detected on application {application_id}: "
            f"expected status {expected}, found '{current.status}'"
        )
        return None, CONFLICT

    def set_application_conversation(self, application_id: int, conversation_id: int) -> bool:
        result = self._write(
            f"link conversation to application {application_id}",
            lambda: (
                self.client.table(APPLICATIONS_TABLE)
                .update({"conversation_id": conversation_id})
                .eq("id", application_id)
                .execute()
            ),
        )
        return bool(result.data)

    def delete_applications_for_job(self, job_id: int) -> int:
        result = self._write(
            f"delete applications of job {job_id}",
            lambda: self.client.table(APPLICATIONS_TABLE).delete().eq("job_id", job_id).execute(),
        )
        return len(result.data or [])

    # === Transitions ===

    def save_transition(self, transition: JobStateTransition) -> JobStateTransition:
        row = _row(transition.to_dict())
        result = self._write(
            f"insert into {TRANSITIONS_TABLE}",
            lambda: self.client.table(TRANSITIONS_TABLE).insert(row).execute(),
        )
        return JobStateTransition.from_dict(result.data[0])

    def get_transitions(self, job_id: int) -> List[JobStateTransition]:
        result = self._read(
            f"read history of job {job_id}",
            lambda: (
                self.client.table(TRANSITIONS_TABLE)
                .select("*")
                .eq("job_id", job_id)
                .order("created_at")
                .execute()
            ),
        )
        return [JobStateTransition.from_dict(row) for row in result.data or []]


class SupabaseNotificationSink(SupabaseAdapter):
    """Notifications in the ``notifications`` table."""

    def emit(self, notification: Notification) -> Notification:
        row = _row(notification.to_dict())
        result = self._write(
            f"insert into {NOTIFICATIONS_TABLE}",
            lambda: self.client.table(NOTIFICATIONS_TABLE).insert(row).execute(),
        )
        return Notification.from_dict(result.data[0])

    def list_for_user(
        self, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> List[Notification]:
        def run():
            query = self.client.table(NOTIFICATIONS_TABLE).select("*").eq("user_id", user_id)
            if unread_only:
                query = query.eq("read", False)
            return query.order("created_at", desc=True).limit(limit).execute()

        result = self._read(f"list notifications for {user_id}", run)
        return [Notification.from_dict(row) for row in result.data or []]

    def mark_read(
        self, notification_id: int, user_id: str, read: bool = True
    ) -> Optional[Notification]:
        result = self._write(
            f"mark notification {notification_id}",
            lambda: (
                self.client.table(NOTIFICATIONS_TABLE)
                .update({"read": read})
                .eq("id", notification_id)
                .eq("user_id", user_id)
                .execute()
            ),
        )
        return Notification.from_dict(result.data[0]) if result.data else None


class SupabaseViewedStore(SupabaseAdapter):
    """Server-side viewed set: one ``application_views`` row per (user, application)."""

    def __init__(self, client: Client, user_id: str, config: Optional[MarketplaceConfig] = None):
        super().__init__(client, config)
        self.user_id = user_id

    def load(self) -> Set[int]:
        result = self._read(
            f"read viewed applications of {self.user_id}",
            lambda: (
                self.client.table(APPLICATION_VIEWS_TABLE)
                .select("application_id")
                .eq("user_id", self.user_id)
                .execute()
            ),
        )
        return {int(row["application_id"]) for row in result.data or []}

    def add(self, application_ids: Iterable[int]) -> None:
        now = _now()
        rows = [
            {"user_id": self.user_id, "application_id": int(app_id), "viewed_at": now}
            for app_id in sorted(set(application_ids))
        ]
        if not rows:
            return
        self._write(
            f"mark {len(rows)} applications viewed",
            lambda: (
                self.client.table(APPLICATION_VIEWS_TABLE)
                .upsert(rows, on_conflict="user_id,application_id")
                .execute()
            ),
        )


class SupabaseProfileDirectory(SupabaseAdapter):
    """Read-only profile lookups from the ``profiles`` table."""

    def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        result = self._read(
            f"read {len(ids)} profiles",
            lambda: (
                self.client.table(PROFILES_TABLE)
                .select(",".join(PROFILE_FIELDS))
                .in_("id", ids)
                .execute()
            ),
        )
        return {row["id"]: row for row in result.data or []}


class SupabaseConversationGateway(SupabaseAdapter):
    """Conversations and messages owned by the messaging system."""

    def get_or_create_conversation(self, user1_id: str, user2_id: str) -> int:
        pair_filter = (
            f"and(user1_id.eq.{user1_id},user2_id.eq.{user2_id}),"
            f"and(user1_id.eq.{user2_id},user2_id.eq.{user1_id})"
        )
        existing = self._read(
            "find conversation",
            lambda: (
                self.client.table(CONVERSATIONS_TABLE)
                .select("id")
                .or_(pair_filter)
                .limit(1)
                .execute()
            ),
        )
        if existing.data:
            return existing.data[0]["id"]

        row = {
            "user1_id": user1_id,
            "user2_id": user2_id,
            "last_message": "",
            "last_message_time": _now(),
            "unread_count": 0,
        }
        created = self._write(
            f"insert into {CONVERSATIONS_TABLE}",
            lambda: self.client.table(CONVERSATIONS_TABLE).insert(row).execute(),
        )
        logger.info(f"Conversation created | id={created.data[0]['id']}")
        return created.data[0]["id"]

    def send_message(self, conversation_id: int, sender_id: str, content: str) -> None:
        now = _now()
        self._write(
            f"insert into {MESSAGES_TABLE}",
            lambda: (
                self.client.table(MESSAGES_TABLE)
                .insert({"conversation_id": conversation_id, "sender_id": sender_id, "content": content})
                .execute()
            ),
        )
        self._write(
            f"update conversation {conversation_id}",
            lambda: (
                self.client.table(CONVERSATIONS_TABLE)
                .update({"last_message": content, "last_message_time": now})
                .eq("id", conversation_id)
                .execute()
            ),
        )
