"""Tests for application API routes."""

HIRER_ID = "usr_TEST_ONLY_hirer"
WORKER_ID = "usr_TEST_ONLY_worker"
OTHER_WORKER_ID = "usr_TEST_ONLY_worker2"


def submit(client, job_id, headers, message="I have a snow blower"):
    return client.post("/api/applications", json={"job_id": job_id, "message": message}, headers=headers)


class TestSubmitApplication:
    def test_submit(self, client, worker_headers, posted_job, marketplace):
        response = submit(client, posted_job["id"], worker_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["applicant_id"] == WORKER_ID
        assert data["status"] == "pending"
        assert data["conversation_id"] is not None

        sent = marketplace.messaging.messages[0]
        assert sent.content == 'Application for "Clear my driveway": I have a snow blower'
        owner_note = marketplace.notifications.emitted[0]
        assert owner_note.user_id == HIRER_ID
        assert owner_note.title == "New Job Application"

    def test_duplicate(self, client, worker_headers, posted_job):
        submit(client, posted_job["id"], worker_headers)
        response = submit(client, posted_job["id"], worker_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "duplicate_application"

    def test_own_job(self, client, hirer_headers, posted_job):
        response = submit(client, posted_job["id"], hirer_headers)

        assert response.status_code == 400
        assert "own job" in response.json()["detail"]

    def test_on_behalf_of_someone_else(self, client, worker_headers, posted_job):
        response = client.post(
            "/api/applications",
            json={"job_id": posted_job["id"], "applicant_id": OTHER_WORKER_ID},
            headers=worker_headers,
        )
        assert response.status_code == 403

    def test_missing_job(self, client, worker_headers):
        assert submit(client, 4040, worker_headers).status_code == 404

    def test_closed_job(self, client, hirer_headers, worker_headers, posted_job):
        client.patch(f"/api/jobs/{posted_job['id']}", json={"status": "completed"}, headers=hirer_headers)

        response = submit(client, posted_job["id"], worker_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "job_not_open"


class TestStatusUpdates:
    def test_accept_decline_reconsider(self, client, hirer_headers, worker_headers, posted_job, marketplace):
        app_id = submit(client, posted_job["id"], worker_headers).json()["id"]

        for status in ("accepted", "declined", "pending"):
            response = client.patch(
                "/api/applications", json={"id": app_id, "status": status}, headers=hirer_headers
            )
            assert response.status_code == 200
            assert response.json()["status"] == status

        titles = [n.title for n in marketplace.notifications.emitted if n.user_id == WORKER_ID]
        assert titles == ["Application Accepted! 🎉", "Application Update"]

    def test_worker_cannot_accept(self, client, worker_headers, posted_job):
        app_id = submit(client, posted_job["id"], worker_headers).json()["id"]

        response = client.patch("/api/applications", json={"id": app_id, "status": "accepted"}, headers=worker_headers)

        assert response.status_code == 403

    def test_invalid_transition(self, client, hirer_headers, worker_headers, posted_job):
        app_id = submit(client, posted_job["id"], worker_headers).json()["id"]

        response = client.patch("/api/applications", json={"id": app_id, "status": "hired"}, headers=hirer_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_transition"

    def test_hire_via_patch(self, client, hirer_headers, worker_headers, posted_job, marketplace):
        app_id = submit(client, posted_job["id"], worker_headers).json()["id"]
        client.patch("/api/applications", json={"id": app_id, "status": "accepted"}, headers=hirer_headers)

        response = client.patch(
            "/api/applications",
            json={"id": app_id, "status": "hired", "scheduled_date": "2026-12-12"},
            headers=hirer_headers,
        )

        assert response.status_code == 200
        job = marketplace.storage.get_job(posted_job["id"])
        assert job.status == "assigned"
        assert job.scheduled_date.isoformat() == "2026-12-12"

    def test_unknown_status(self, client, hirer_headers, worker_headers, posted_job):
        app_id = submit(client, posted_job["id"], worker_headers).json()["id"]

        response = client.patch("/api/applications", json={"id": app_id, "status": "maybe"}, headers=hirer_headers)

        assert response.status_code == 400

    def test_missing_application(self, client, hirer_headers):
        response = client.patch("/api/applications", json={"id": 777, "status": "accepted"}, headers=hirer_headers)
        assert response.status_code == 404


class TestListApplications:
    def test_worker_view(self, client, worker_headers, posted_job):
        submit(client, posted_job["id"], worker_headers)

        response = client.get("/api/applications", params={"worker_id": WORKER_ID}, headers=worker_headers)

        assert response.status_code == 200
        rows = response.json()
        assert rows[0]["job_title"] == "Clear my driveway"
        assert rows[0]["job_poster"]["name"] == "Test Hirer"

    def test_other_workers_list_forbidden(self, client, worker_headers):
        response = client.get("/api/applications", params={"worker_id": OTHER_WORKER_ID}, headers=worker_headers)
        assert response.status_code == 403

    def test_hirer_sees_received(self, client, hirer_headers, worker_headers, posted_job):
        submit(client, posted_job["id"], worker_headers)

        rows = client.get("/api/applications", headers=hirer_headers).json()

        assert [r["applicant_id"] for r in rows] == [WORKER_ID]
        assert rows[0]["applicant"]["name"] == "Test Worker"

    def test_deleted_job_hidden(self, client, hirer_headers, worker_headers, posted_job):
        submit(client, posted_job["id"], worker_headers)
        client.delete(f"/api/jobs/{posted_job['id']}", headers=hirer_headers)

        response = client.get("/api/applications", params={"worker_id": WORKER_ID}, headers=worker_headers)

        assert response.json() == []

    def test_job_applications_owner_only(self, client, hirer_headers, worker_headers, posted_job):
        submit(client, posted_job["id"], worker_headers)

        owner = client.get("/api/applications/job", params={"job_id": posted_job["id"]}, headers=hirer_headers)
        other = client.get("/api/applications/job", params={"job_id": posted_job["id"]}, headers=worker_headers)

        assert owner.status_code == 200
        assert len(owner.json()) == 1
        assert other.status_code == 403


class TestViewed:
    def test_mark_and_read(self, client, hirer_headers, make_headers):
        response = client.post("/api/applications/viewed", json={"application_ids": [3, 1]}, headers=hirer_headers)
        assert response.json() == {"application_ids": [1, 3]}

        client.post("/api/applications/viewed", json={"application_ids": [3]}, headers=hirer_headers)
        response = client.get("/api/applications/viewed", headers=hirer_headers)
        assert response.json() == {"application_ids": [1, 3]}

        other = client.get("/api/applications/viewed", headers=make_headers(OTHER_WORKER_ID))
        assert other.json() == {"application_ids": []}
