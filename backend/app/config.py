"""Configuration settings for the EZ Clear backend."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

from ezclear.marketplace.config import MarketplaceConfig


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Supabase
    supabase_url: str
    supabase_secret_key: str | None = None  # Backend/admin access
    # Legacy key name, used when the secret key is not set
    supabase_service_role_key: str | None = None

    # JWT (tokens are issued by the auth provider)
    jwt_secret_key: str  # Required - no default for security
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = "authenticated"
    jwt_expire_minutes: int = 60 * 24

    # App
    debug: bool = False
    log_level: str = "INFO"
    rate_limit_enabled: bool = True
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Marketplace
    require_assignment_for_completion: bool = False
    decline_other_applications_on_hire: bool = False
    job_delete_policy: Literal["hide", "cascade"] = "hide"
    request_timeout_seconds: float = 10.0
    read_retry_attempts: int = 3
    read_retry_base_delay: float = 0.5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars not in model

    def marketplace_config(self) -> MarketplaceConfig:
        """Build the library configuration from these settings."""
        return MarketplaceConfig(
            require_assignment_for_completion=self.require_assignment_for_completion,
            decline_other_applications_on_hire=self.decline_other_applications_on_hire,
            job_delete_policy=self.job_delete_policy,
            request_timeout_seconds=self.request_timeout_seconds,
            read_retry_attempts=self.read_retry_attempts,
            read_retry_base_delay=self.read_retry_base_delay,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
