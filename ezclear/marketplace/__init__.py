"""
EZ Clear marketplace core.

Jobs posted by hirers, applications from workers, and the lifecycle that
connects them: apply, accept or decline, hire, complete.
"""

from ezclear.marketplace.config import MarketplaceConfig
from ezclear.marketplace.errors import (
    ApplicationNotFoundError,
    DuplicateApplicationError,
    InvalidRequestError,
    InvalidTransitionError,
    JobAlreadyAssignedError,
    JobNotFoundError,
    JobNotOpenError,
    MarketplaceError,
    NotFoundError,
    NotOwnerError,
    UpstreamUnavailableError,
)
from ezclear.marketplace.messaging import ConversationGateway, InMemoryConversationGateway
from ezclear.marketplace.models import (
    ApplicationStatus,
    Job,
    JobApplication,
    JobStateTransition,
    JobStatus,
    Notification,
    NotificationType,
    RecurringFrequency,
    ServiceType,
)
from ezclear.marketplace.notifications import InMemoryNotificationSink, NotificationSink
from ezclear.marketplace.queries import InMemoryProfileDirectory, MarketplaceQueries, ProfileDirectory
from ezclear.marketplace.service import LifecycleEngine
from ezclear.marketplace.storage import InMemoryMarketplaceStorage, MarketplaceStorage
from ezclear.marketplace.views import (
    InMemoryViewedStore,
    LocalKeyValueStore,
    LocalViewedStore,
    UserTypePreference,
    ViewStateTracker,
)

__all__ = [
    # Config
    "MarketplaceConfig",
    # Models
    "ApplicationStatus",
    "Job",
    "JobApplication",
    "JobStateTransition",
    "JobStatus",
    "Notification",
    "NotificationType",
    "RecurringFrequency",
    "ServiceType",
    # Engine and reads
    "LifecycleEngine",
    "MarketplaceQueries",
    # Storage
    "MarketplaceStorage",
    "InMemoryMarketplaceStorage",
    # Collaborators
    "ConversationGateway",
    "InMemoryConversationGateway",
    "NotificationSink",
    "InMemoryNotificationSink",
    "ProfileDirectory",
    "InMemoryProfileDirectory",
    # View state
    "ViewStateTracker",
    "InMemoryViewedStore",
    "LocalKeyValueStore",
    "LocalViewedStore",
    "UserTypePreference",
    # Errors
    "MarketplaceError",
    "NotFoundError",
    "JobNotFoundError",
    "ApplicationNotFoundError",
    "InvalidTransitionError",
    "JobNotOpenError",
    "JobAlreadyAssignedError",
    "DuplicateApplicationError",
    "NotOwnerError",
    "InvalidRequestError",
    "UpstreamUnavailableError",
]
