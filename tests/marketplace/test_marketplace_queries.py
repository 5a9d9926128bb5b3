"""Tests for read-side query shaping."""

import pytest

from ezclear.marketplace.errors import JobNotFoundError
from ezclear.marketplace.models import JobStatus
from ezclear.marketplace.queries import UNKNOWN_JOB_TITLE, MarketplaceQueries
from ezclear.marketplace.views import InMemoryViewedStore, ViewStateTracker

HIRER = "hirer-1"
WORKER = "worker-1"
OTHER_WORKER = "worker-2"


class TestJobQueries:
    def test_job_detail_includes_poster(self, queries, engine, open_job):
        engine.submit_application(open_job.id, WORKER)

        detail = queries.get_job_detail(open_job.id)

        assert detail["title"] == "Clear my driveway"
        assert detail["user"]["name"] == "Hannah Hirer"
        assert detail["application_count"] == 1

    def test_job_detail_missing(self, queries):
        with pytest.raises(JobNotFoundError):
            queries.get_job_detail(1234)

    def test_list_open_jobs(self, queries, engine, open_job):
        other = engine.create_job(
            user_id=HIRER, title="Gutters", description="d", location="l", service_type="gutter_cleaning"
        )
        engine.mark_job_completed(other.id, actor_id=HIRER)

        listed = queries.list_open_jobs()

        assert [j["id"] for j in listed] == [open_job.id]
        assert listed[0]["display_title"] == "Clear my driveway"

    def test_list_jobs_by_status(self, queries, engine, open_job):
        engine.mark_job_completed(open_job.id, actor_id=HIRER)

        assert len(queries.list_jobs(status=JobStatus.COMPLETED)) == 1
        assert queries.list_jobs(status=JobStatus.OPEN) == []

    def test_profile_failure_does_not_fail_read(self, storage, engine, open_job):
        class BrokenDirectory:
            def get_profiles(self, user_ids):
                raise ConnectionError("profiles unavailable")

        detail = MarketplaceQueries(storage, BrokenDirectory()).get_job_detail(open_job.id)

        assert detail["user"] is None


class TestApplicationQueries:
    def test_job_applications_with_applicants(self, queries, engine, open_job):
        engine.submit_application(open_job.id, WORKER)
        engine.submit_application(open_job.id, OTHER_WORKER)

        rows = queries.list_job_applications(open_job.id)

        assert [r["applicant_id"] for r in rows] == [OTHER_WORKER, WORKER]
        assert rows[1]["applicant"]["business_name"] == "Walt's Snow Co"

    def test_job_applications_of_missing_job(self, queries):
        assert queries.list_job_applications(404) == []

    def test_worker_applications_enriched(self, queries, engine, open_job):
        engine.submit_application(open_job.id, WORKER, "Ready")

        rows = queries.list_worker_applications(WORKER)

        assert len(rows) == 1
        row = rows[0]
        assert row["job_title"] == "Clear my driveway"
        assert row["job_location"] == "12 Birch St"
        assert row["job_service_type"] == "snow_removal"
        assert row["job_poster"]["name"] == "Hannah Hirer"
        assert row["job"]["id"] == open_job.id

    def test_orphans_hidden_unless_requested(self, queries, engine, open_job):
        engine.submit_application(open_job.id, WORKER)
        engine.delete_job(open_job.id, HIRER)

        assert queries.list_worker_applications(WORKER) == []
        orphaned = queries.list_worker_applications(WORKER, include_orphaned=True)
        assert orphaned[0]["job_title"] == UNKNOWN_JOB_TITLE
        assert orphaned[0]["job"] is None

    def test_user_applications_union(self, queries, engine, open_job):
        # The hirer also works: applies to someone else's job
        other_job = engine.create_job(
            user_id=WORKER, title="Rake", description="d", location="l", service_type="leaf_cleanup"
        )
        engine.submit_application(open_job.id, WORKER)
        engine.submit_application(open_job.id, OTHER_WORKER)
        engine.submit_application(other_job.id, HIRER)

        rows = queries.list_applications(user_id=HIRER)

        assert sorted((r["job_id"], r["applicant_id"]) for r in rows) == sorted(
            [(open_job.id, WORKER), (open_job.id, OTHER_WORKER), (other_job.id, HIRER)]
        )
        assert len({r["id"] for r in rows}) == len(rows)


class TestHirerDashboard:
    def test_counts_new_applications(self, queries, engine, open_job):
        first = engine.submit_application(open_job.id, WORKER)
        second = engine.submit_application(open_job.id, OTHER_WORKER)
        engine.accept_application(second.id, actor_id=HIRER)
        tracker = ViewStateTracker(InMemoryViewedStore())

        dashboard = queries.list_hirer_jobs(HIRER, tracker=tracker)
        assert dashboard[0]["application_count"] == 2
        assert dashboard[0]["new_applications_count"] == 1

        tracker.mark_viewed(first.id)
        dashboard = queries.list_hirer_jobs(HIRER, tracker=tracker)
        assert dashboard[0]["new_applications_count"] == 0
        viewed = {a["id"]: a["viewed"] for a in dashboard[0]["applications"]}
        assert viewed == {first.id: True, second.id: False}

    def test_without_tracker_every_pending_is_new(self, queries, engine, open_job):
        engine.submit_application(open_job.id, WORKER)

        assert queries.list_hirer_jobs(HIRER)[0]["new_applications_count"] == 1

    def test_no_jobs(self, queries):
        assert queries.list_hirer_jobs("nobody") == []
