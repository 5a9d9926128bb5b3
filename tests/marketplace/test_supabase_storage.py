"""Tests for the Supabase adapters against a fake chainable client."""

import re
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from postgrest.exceptions import APIError

from ezclear.marketplace.config import MarketplaceConfig
from ezclear.marketplace.errors import DuplicateApplicationError, UpstreamUnavailableError
from ezclear.marketplace.models import ApplicationStatus, Job, JobApplication, JobStatus, Notification
from ezclear.marketplace.storage import CONFLICT, NOT_FOUND
from ezclear.marketplace.supabase_storage import (
    APPLICATION_VIEWS_TABLE,
    APPLICATIONS_TABLE,
    CONVERSATIONS_TABLE,
    JOBS_TABLE,
    MESSAGES_TABLE,
    PROFILES_TABLE,
    SupabaseConversationGateway,
    SupabaseMarketplaceStorage,
    SupabaseNotificationSink,
    SupabaseProfileDirectory,
    SupabaseViewedStore,
)


class FakeResult:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    """Minimal PostgREST query builder over an in-memory table."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.payload: Any = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.order_by: Optional[tuple] = None
        self.limit_n: Optional[int] = None
        self.offset = 0
        self.count_mode: Optional[str] = None
        self.on_conflict: Optional[str] = None

    # Actions
    def select(self, columns="*", count=None):
        self.action = "select"
        self.count_mode = count
        return self

    def insert(self, row):
        self.action, self.payload = "insert", row
        return self

    def update(self, data):
        self.action, self.payload = "update", data
        return self

    def delete(self):
        self.action = "delete"
        return self

    def upsert(self, rows, on_conflict=None):
        self.action, self.payload, self.on_conflict = "upsert", rows, on_conflict
        return self

    # Filters
    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def or_(self, expression):
        clauses = re.findall(r"and\(user1_id\.eq\.([^,]+),user2_id\.eq\.([^)]+)\)", expression)
        self.filters.append(
            lambda row: any(row.get("user1_id") == a and row.get("user2_id") == b for a, b in clauses)
        )
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def range(self, start, end):
        self.offset, self.limit_n = start, end - start + 1
        return self

    def execute(self):
        self.db.calls.append((self.table_name, self.action))
        failure = self.db.failures.pop((self.table_name, self.action), None)
        if failure is not None:
            raise failure
        rows = self.db.tables.setdefault(self.table_name, [])

        if self.action == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            stored = [self.db.store(self.table_name, dict(r)) for r in new_rows]
            return FakeResult([dict(r) for r in stored])

        if self.action == "upsert":
            keys = self.on_conflict.split(",")
            for new in self.payload:
                existing = next(
                    (r for r in rows if all(r.get(k) == new.get(k) for k in keys)), None
                )
                if existing:
                    existing.update(new)
                else:
                    self.db.store(self.table_name, dict(new))
            return FakeResult([dict(r) for r in self.payload])

        matched = [r for r in rows if all(f(r) for f in self.filters)]

        if self.action == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResult([dict(r) for r in matched])

        if self.action == "delete":
            for row in matched:
                rows.remove(row)
            return FakeResult([dict(r) for r in matched])

        if self.order_by:
            column, desc = self.order_by
            matched.sort(key=lambda r: (r.get(column) or "", r.get("id") or 0), reverse=desc)
        total = len(matched)
        matched = matched[self.offset :]
        if self.limit_n is not None:
            matched = matched[: self.limit_n]
        return FakeResult(
            [dict(r) for r in matched], count=total if self.count_mode == "exact" else None
        )


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failures: Dict[tuple, Exception] = {}
        self.calls: List[tuple] = []
        self._ids: Dict[str, int] = {}
        self._clock = 0

    def store(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        if row.get("id") is None:
            self._ids[table] = self._ids.get(table, 0) + 1
            row["id"] = self._ids[table]
        self._clock += 1
        row.setdefault("created_at", datetime(2026, 1, 1, 0, 0, self._clock % 60, tzinfo=timezone.utc).isoformat())
        self.tables.setdefault(table, []).append(row)
        return row

    def fail_next(self, table: str, action: str, error: Exception) -> None:
        self.failures[(table, action)] = error

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


def api_error(code: str, message: str = "boom") -> APIError:
    return APIError({"message": message, "code": code, "details": "", "hint": ""})


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def sb_config():
    return MarketplaceConfig(read_retry_attempts=3, read_retry_base_delay=0)


@pytest.fixture
def sb_storage(db, sb_config):
    return SupabaseMarketplaceStorage(db, sb_config)


def make_job(**overrides) -> Job:
    fields = dict(
        user_id="hirer-1",
        title="Clear my driveway",
        description="d",
        location="l",
        service_type="snow_removal",
    )
    fields.update(overrides)
    return Job(**fields)


class TestJobs:
    def test_save_and_get(self, sb_storage, db):
        saved = sb_storage.save_job(make_job())

        assert saved.id == 1
        fetched = sb_storage.get_job(saved.id)
        assert fetched.title == "Clear my driveway"
        assert fetched.status == "open"

    def test_get_missing(self, sb_storage):
        assert sb_storage.get_job(42) is None

    def test_list_filters(self, sb_storage):
        sb_storage.save_job(make_job())
        sb_storage.save_job(make_job(service_type="handyman"))
        sb_storage.save_job(make_job(user_id="hirer-2"))

        assert len(sb_storage.list_jobs(user_id="hirer-1")) == 2
        assert len(sb_storage.list_jobs(service_type="handyman")) == 1
        assert len(sb_storage.list_jobs(status=JobStatus.OPEN)) == 3
        assert len(sb_storage.list_jobs(limit=2)) == 2

    def test_conditional_status_update(self, sb_storage, db):
        job = sb_storage.save_job(make_job())

        updated, error = sb_storage.atomic_update_job_status(
            job.id, JobStatus.OPEN, JobStatus.ASSIGNED, scheduled_date=date(2026, 12, 1)
        )

        assert error is None
        assert updated.status == "assigned"
        assert updated.scheduled_date == date(2026, 12, 1)
        assert db.tables[JOBS_TABLE][0]["scheduled_date"] == "2026-12-01"

    def test_conditional_update_conflict(self, sb_storage):
        job = sb_storage.save_job(make_job(status="completed"))

        updated, error = sb_storage.atomic_update_job_status(job.id, JobStatus.OPEN, JobStatus.ASSIGNED)

        assert updated is None
        assert error == CONFLICT

    def test_conditional_update_missing(self, sb_storage):
        assert sb_storage.atomic_update_job_status(9, JobStatus.OPEN, JobStatus.ASSIGNED) == (None, NOT_FOUND)

    def test_update_job_keeps_status(self, sb_storage, db):
        job = sb_storage.save_job(make_job(status="assigned"))
        job.title = "New title"
        job.status = "open"

        assert sb_storage.update_job(job) is True
        row = db.tables[JOBS_TABLE][0]
        assert row["title"] == "New title"
        assert row["status"] == "assigned"

    def test_delete(self, sb_storage):
        job = sb_storage.save_job(make_job())
        assert sb_storage.delete_job(job.id) is True
        assert sb_storage.delete_job(job.id) is False


class TestApplications:
    def test_unique_violation_is_duplicate(self, sb_storage, db):
        db.fail_next(APPLICATIONS_TABLE, "insert", api_error("23505", "duplicate key value"))

        with pytest.raises(DuplicateApplicationError, match="already applied"):
            sb_storage.save_application(JobApplication(job_id=1, applicant_id="worker-1"))

    def test_other_insert_error_is_upstream(self, sb_storage, db):
        db.fail_next(APPLICATIONS_TABLE, "insert", api_error("42501", "permission denied"))

        with pytest.raises(UpstreamUnavailableError):
            sb_storage.save_application(JobApplication(job_id=1, applicant_id="worker-1"))

    def test_find_and_count(self, sb_storage):
        sb_storage.save_application(JobApplication(job_id=1, applicant_id="worker-1"))
        sb_storage.save_application(JobApplication(job_id=1, applicant_id="worker-2", status="accepted"))
        sb_storage.save_application(JobApplication(job_id=2, applicant_id="worker-1"))

        assert sb_storage.find_application(1, "worker-2").status == "accepted"
        assert sb_storage.find_application(1, "worker-3") is None
        assert sb_storage.count_applications(1) == 2
        assert sb_storage.count_applications(1, status=ApplicationStatus.ACCEPTED) == 1

    def test_list_by_job_ids(self, sb_storage):
        sb_storage.save_application(JobApplication(job_id=1, applicant_id="worker-1"))
        sb_storage.save_application(JobApplication(job_id=2, applicant_id="worker-1"))
        sb_storage.save_application(JobApplication(job_id=3, applicant_id="worker-1"))

        assert {a.job_id for a in sb_storage.list_applications(job_ids=[1, 3])} == {1, 3}
        assert sb_storage.list_applications(job_ids=[]) == []

    def test_application_conditional_update(self, sb_storage):
        app = sb_storage.save_application(JobApplication(job_id=1, applicant_id="worker-1"))

        updated, error = sb_storage.atomic_update_application_status(
            app.id, [ApplicationStatus.PENDING, ApplicationStatus.ACCEPTED], ApplicationStatus.DECLINED
        )
        assert error is None
        assert updated.status == "declined"

        again, error = sb_storage.atomic_update_application_status(
            app.id, ApplicationStatus.PENDING, ApplicationStatus.ACCEPTED
        )
        assert again is None
        assert error == CONFLICT

    def test_delete_for_job(self, sb_storage):
        sb_storage.save_application(JobApplication(job_id=1, applicant_id="worker-1"))
        sb_storage.save_application(JobApplication(job_id=1, applicant_id="worker-2"))

        assert sb_storage.delete_applications_for_job(1) == 2
        assert sb_storage.list_applications(job_id=1) == []


class TestRetryPolicy:
    def test_reads_retry_transport_errors(self, sb_storage, db):
        sb_storage.save_job(make_job())
        db.fail_next(JOBS_TABLE, "select", httpx.ConnectError("connection reset"))

        assert sb_storage.get_job(1) is not None
        assert db.calls.count((JOBS_TABLE, "select")) == 2

    def test_reads_give_up(self, db):
        storage = SupabaseMarketplaceStorage(db, MarketplaceConfig(read_retry_attempts=1))
        db.fail_next(JOBS_TABLE, "select", httpx.ReadTimeout("timed out"))

        with pytest.raises(UpstreamUnavailableError, match="read job 1"):
            storage.get_job(1)

    def test_writes_are_not_retried(self, sb_storage, db):
        db.fail_next(JOBS_TABLE, "insert", httpx.ConnectError("connection reset"))

        with pytest.raises(UpstreamUnavailableError):
            sb_storage.save_job(make_job())
        assert db.calls.count((JOBS_TABLE, "insert")) == 1
        assert db.tables.get(JOBS_TABLE, []) == []


class TestCollaborators:
    def test_notification_sink(self, db, sb_config):
        sink = SupabaseNotificationSink(db, sb_config)
        first = sink.emit(Notification(user_id="worker-1", type="job", title="Job Completed"))
        sink.emit(Notification(user_id="worker-2", type="job", title="Other"))

        assert first.id == 1
        assert [n.title for n in sink.list_for_user("worker-1")] == ["Job Completed"]

        assert sink.mark_read(first.id, "worker-2") is None
        assert sink.mark_read(first.id, "worker-1").read is True
        assert sink.list_for_user("worker-1", unread_only=True) == []

    def test_viewed_store_upserts(self, db, sb_config):
        store = SupabaseViewedStore(db, "hirer-1", sb_config)
        store.add([3, 5])
        store.add([5, 7])

        assert store.load() == {3, 5, 7}
        assert len(db.tables[APPLICATION_VIEWS_TABLE]) == 3
        assert SupabaseViewedStore(db, "hirer-2", sb_config).load() == set()

    def test_profile_directory(self, db, sb_config):
        db.store(PROFILES_TABLE, {"id": "worker-1", "name": "Walt"})
        directory = SupabaseProfileDirectory(db, sb_config)

        profiles = directory.get_profiles(["worker-1", "ghost"])

        assert list(profiles) == ["worker-1"]
        assert directory.get_profiles([]) == {}

    def test_conversation_reused_in_either_order(self, db, sb_config):
        gateway = SupabaseConversationGateway(db, sb_config)

        first = gateway.get_or_create_conversation("worker-1", "hirer-1")
        second = gateway.get_or_create_conversation("hirer-1", "worker-1")

        assert first == second
        assert len(db.tables[CONVERSATIONS_TABLE]) == 1

    def test_send_message_updates_conversation(self, db, sb_config):
        gateway = SupabaseConversationGateway(db, sb_config)
        conversation_id = gateway.get_or_create_conversation("worker-1", "hirer-1")

        gateway.send_message(conversation_id, "worker-1", 'Application for "Mow": hi')

        assert db.tables[MESSAGES_TABLE][0]["content"] == 'Application for "Mow": hi'
        assert db.tables[CONVERSATIONS_TABLE][0]["last_message"] == 'Application for "Mow": hi'
