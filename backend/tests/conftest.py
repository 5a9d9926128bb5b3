"""Pytest configuration and fixtures."""

import os
import secrets
import tempfile

import pytest

# Generate a unique test secret for this test run to prevent token forgery
_TEST_JWT_SECRET = f"test-only-{secrets.token_urlsafe(32)}"

# Mock values; the API never reaches a real Supabase project in tests
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", _TEST_JWT_SECRET)
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EZCLEAR_DATA_DIR", tempfile.mkdtemp(prefix="ezclear-tests-"))

from app.auth import CurrentUser, create_access_token  # noqa: E402
from app.config import get_settings  # noqa: E402
from app.database import get_engine, get_notification_sink, get_queries, get_view_tracker  # noqa: E402
from app.main import app  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from ezclear.marketplace.messaging import InMemoryConversationGateway  # noqa: E402
from ezclear.marketplace.notifications import InMemoryNotificationSink  # noqa: E402
from ezclear.marketplace.queries import InMemoryProfileDirectory, MarketplaceQueries  # noqa: E402
from ezclear.marketplace.service import LifecycleEngine  # noqa: E402
from ezclear.marketplace.storage import InMemoryMarketplaceStorage  # noqa: E402
from ezclear.marketplace.views import InMemoryViewedStore, ViewStateTracker  # noqa: E402

# Clearly invalid test IDs that cannot collide with production IDs
HIRER_ID = "usr_TEST_ONLY_hirer"
WORKER_ID = "usr_TEST_ONLY_worker"
OTHER_WORKER_ID = "usr_TEST_ONLY_worker2"


class Marketplace:
    """In-memory marketplace wired into the API for one test."""

    def __init__(self):
        self.storage = InMemoryMarketplaceStorage()
        self.notifications = InMemoryNotificationSink()
        self.messaging = InMemoryConversationGateway()
        self.profiles = InMemoryProfileDirectory()
        self.profiles.add(HIRER_ID, name="Test Hirer")
        self.profiles.add(WORKER_ID, name="Test Worker")
        self.viewed: dict[str, InMemoryViewedStore] = {}
        self.engine = LifecycleEngine(
            storage=self.storage,
            notifications=self.notifications,
            messaging=self.messaging,
            profiles=self.profiles,
        )
        self.queries = MarketplaceQueries(self.storage, self.profiles)

    def tracker_for(self, user_id: str) -> ViewStateTracker:
        store = self.viewed.setdefault(user_id, InMemoryViewedStore())
        return ViewStateTracker(store)


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Keep lifecycle logs out of the real home directory."""
    monkeypatch.setenv("EZCLEAR_DATA_DIR", str(tmp_path / "ezclear-data"))


@pytest.fixture
def marketplace():
    """Replace the Supabase-backed dependencies with in-memory ones."""
    market = Marketplace()

    def _tracker(auth: CurrentUser) -> ViewStateTracker:
        return market.tracker_for(auth.user_id)

    app.dependency_overrides[get_engine] = lambda: market.engine
    app.dependency_overrides[get_queries] = lambda: market.queries
    app.dependency_overrides[get_notification_sink] = lambda: market.notifications
    app.dependency_overrides[get_view_tracker] = _tracker
    yield market
    app.dependency_overrides.clear()


@pytest.fixture
def client(marketplace):
    """Create a test client."""
    return TestClient(app)


@pytest.fixture
def make_headers():
    """Build auth headers for a user with a test token."""
    settings = get_settings()

    def _make(user_id: str, user_type: str | None = None) -> dict:
        token = create_access_token(user_id, settings, user_type=user_type)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def hirer_headers(make_headers):
    return make_headers(HIRER_ID, user_type="hirer")


@pytest.fixture
def worker_headers(make_headers):
    return make_headers(WORKER_ID, user_type="worker")


@pytest.fixture
def job_payload():
    return {
        "title": "Clear my driveway",
        "description": "Double driveway, about 20cm of snow",
        "location": "12 Birch St",
        "service_type": "snow_removal",
        "city": "Halifax",
        "province": "NS",
    }


@pytest.fixture
def posted_job(client, hirer_headers, job_payload):
    """A job posted through the API by the hirer."""
    response = client.post("/api/jobs", json=job_payload, headers=hirer_headers)
    assert response.status_code == 201
    return response.json()
