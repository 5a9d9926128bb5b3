"""
Pytest fixtures and test configuration for EZ Clear tests.
"""

from datetime import date

import pytest

from ezclear.marketplace.config import MarketplaceConfig
from ezclear.marketplace.messaging import InMemoryConversationGateway
from ezclear.marketplace.notifications import InMemoryNotificationSink
from ezclear.marketplace.queries import InMemoryProfileDirectory, MarketplaceQueries
from ezclear.marketplace.service import LifecycleEngine
from ezclear.marketplace.storage import InMemoryMarketplaceStorage

HIRER_ID = "hirer-1"
WORKER_ID = "worker-1"
OTHER_WORKER_ID = "worker-2"


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Keep log files out of the real home directory."""
    data_dir = tmp_path / "ezclear-data"
    monkeypatch.setenv("EZCLEAR_DATA_DIR", str(data_dir))
    return data_dir


@pytest.fixture
def storage():
    """Create in-memory storage for testing."""
    return InMemoryMarketplaceStorage()


@pytest.fixture
def notifications():
    return InMemoryNotificationSink()


@pytest.fixture
def messaging():
    return InMemoryConversationGateway()


@pytest.fixture
def profiles():
    """Profile directory with one hirer and two workers."""
    directory = InMemoryProfileDirectory()
    directory.add(HIRER_ID, name="Hannah Hirer", city="Halifax", province="NS")
    directory.add(WORKER_ID, name="Walt Worker", business_name="Walt's Snow Co")
    directory.add(OTHER_WORKER_ID, name="Wendy Worker")
    return directory


@pytest.fixture
def config():
    """Create test configuration."""
    return MarketplaceConfig()


@pytest.fixture
def engine(storage, notifications, messaging, profiles, config):
    """Create lifecycle engine for testing."""
    return LifecycleEngine(
        storage=storage,
        notifications=notifications,
        messaging=messaging,
        profiles=profiles,
        config=config,
    )


@pytest.fixture
def queries(storage, profiles):
    return MarketplaceQueries(storage, profiles)


@pytest.fixture
def open_job(engine):
    """An open snow removal job posted by the hirer."""
    return engine.create_job(
        user_id=HIRER_ID,
        title="Clear my driveway",
        description="Double driveway, about 20cm of snow",
        location="12 Birch St",
        service_type="snow_removal",
        city="Halifax",
        province="NS",
    )


@pytest.fixture
def hire_date():
    return date(2026, 12, 1)
