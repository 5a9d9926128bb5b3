"""Marketplace configuration."""

import os
from dataclasses import dataclass
from typing import Literal

from ezclear.marketplace.models import MAX_TITLE_LENGTH

JobDeletePolicy = Literal["hide", "cascade"]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class MarketplaceConfig:
    """Tunables for the lifecycle engine and storage adapters.

    Attributes:
        require_assignment_for_completion: Only ``assigned`` jobs may be marked
            completed. Off by default, so an ``open`` job can be closed by its owner.
        decline_other_applications_on_hire: Decline the remaining pending and
            accepted applications once someone is hired.
        job_delete_policy: ``hide`` keeps applications of a deleted job (read
            paths skip them); ``cascade`` deletes them with the job.
        request_timeout_seconds: Timeout applied to every upstream request.
        read_retry_attempts: Attempts for idempotent reads (mutations are never retried).
        read_retry_base_delay: Initial backoff delay between read attempts.
        max_title_length: Longest accepted job title on create/update.
    """

    require_assignment_for_completion: bool = False
    decline_other_applications_on_hire: bool = False
    job_delete_policy: JobDeletePolicy = "hide"
    request_timeout_seconds: float = 10.0
    read_retry_attempts: int = 3
    read_retry_base_delay: float = 0.5
    max_title_length: int = MAX_TITLE_LENGTH

    def __post_init__(self):
        if self.job_delete_policy not in ("hide", "cascade"):
            raise ValueError(f"Invalid job_delete_policy: {self.job_delete_policy}")
        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        if self.read_retry_attempts < 1:
            raise ValueError("read_retry_attempts must be at least 1")

    @classmethod
    def from_env(cls) -> "MarketplaceConfig":
        """Load configuration from ``EZCLEAR_*`` environment variables."""
        return cls(
            require_assignment_for_completion=_env_bool(
                "EZCLEAR_REQUIRE_ASSIGNMENT_FOR_COMPLETION", False
            ),
            decline_other_applications_on_hire=_env_bool(
                "EZCLEAR_DECLINE_OTHER_APPLICATIONS_ON_HIRE", False
            ),
            job_delete_policy=os.environ.get("EZCLEAR_JOB_DELETE_POLICY", "hide"),
            request_timeout_seconds=float(os.environ.get("EZCLEAR_REQUEST_TIMEOUT_SECONDS", "10")),
            read_retry_attempts=int(os.environ.get("EZCLEAR_READ_RETRY_ATTEMPTS", "3")),
            read_retry_base_delay=float(os.environ.get("EZCLEAR_READ_RETRY_BASE_DELAY", "0.5")),
        )
