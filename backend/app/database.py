"""Supabase wiring and marketplace dependencies."""

from typing import Annotated

from fastapi import Depends
from supabase import Client

from ezclear.marketplace.notifications import NotificationSink
from ezclear.marketplace.queries import MarketplaceQueries
from ezclear.marketplace.service import LifecycleEngine
from ezclear.marketplace.supabase_storage import (
    JOBS_TABLE,
    SupabaseConversationGateway,
    SupabaseMarketplaceStorage,
    SupabaseNotificationSink,
    SupabaseProfileDirectory,
    SupabaseViewedStore,
    create_supabase_client,
)
from ezclear.marketplace.views import ViewStateTracker

from .auth import CurrentUser
from .config import Settings, get_settings

_supabase_client: Client | None = None


def get_supabase_client(settings: Settings | None = None) -> Client:
    """Get cached Supabase client."""
    global _supabase_client
    if _supabase_client is None:
        if settings is None:
            settings = get_settings()
        api_key = settings.supabase_secret_key or settings.supabase_service_role_key
        if not api_key:
            raise ValueError("Either SUPABASE_SECRET_KEY or SUPABASE_SERVICE_ROLE_KEY must be set")
        _supabase_client = create_supabase_client(
            settings.supabase_url, api_key, settings.marketplace_config()
        )
    return _supabase_client


def check_database(db: Client) -> None:
    """Cheap round trip used by the health check. Raises on failure."""
    db.table(JOBS_TABLE).select("id").limit(1).execute()


def get_db(settings: Annotated[Settings, Depends(get_settings)]) -> Client:
    """FastAPI dependency for Supabase client."""
    return get_supabase_client(settings)


Database = Annotated[Client, Depends(get_db)]


def get_engine(db: Database, settings: Annotated[Settings, Depends(get_settings)]) -> LifecycleEngine:
    """Lifecycle engine over the Supabase adapters."""
    config = settings.marketplace_config()
    return LifecycleEngine(
        storage=SupabaseMarketplaceStorage(db, config),
        notifications=SupabaseNotificationSink(db, config),
        messaging=SupabaseConversationGateway(db, config),
        profiles=SupabaseProfileDirectory(db, config),
        config=config,
    )


def get_queries(db: Database, settings: Annotated[Settings, Depends(get_settings)]) -> MarketplaceQueries:
    config = settings.marketplace_config()
    return MarketplaceQueries(
        SupabaseMarketplaceStorage(db, config),
        SupabaseProfileDirectory(db, config),
    )


def get_notification_sink(
    db: Database, settings: Annotated[Settings, Depends(get_settings)]
) -> NotificationSink:
    return SupabaseNotificationSink(db, settings.marketplace_config())


def get_view_tracker(
    auth: CurrentUser, db: Database, settings: Annotated[Settings, Depends(get_settings)]
) -> ViewStateTracker:
    """The caller's server-side viewed-application set."""
    return ViewStateTracker(SupabaseViewedStore(db, auth.user_id, settings.marketplace_config()))


# Type aliases for dependency injection
Engine = Annotated[LifecycleEngine, Depends(get_engine)]
Queries = Annotated[MarketplaceQueries, Depends(get_queries)]
Notifications = Annotated[NotificationSink, Depends(get_notification_sink)]
ViewTracker = Annotated[ViewStateTracker, Depends(get_view_tracker)]
