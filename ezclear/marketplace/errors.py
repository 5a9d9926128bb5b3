"""Marketplace error taxonomy.

Every error carries a stable ``code`` so the HTTP layer can map it to a status
and clients can branch on it without parsing messages.
"""

from typing import Optional


class MarketplaceError(Exception):
    """Base exception for marketplace operations."""

    code = "marketplace_error"


class NotFoundError(MarketplaceError):
    """A job, application or profile does not exist."""

    code = "not_found"


class JobNotFoundError(NotFoundError):
    """Job does not exist."""

    code = "job_not_found"

    def __init__(self, job_id: Optional[int] = None, message: Optional[str] = None):
        self.job_id = job_id
        super().__init__(message or f"Job {job_id} not found")


class ApplicationNotFoundError(NotFoundError):
    """Application does not exist."""

    code = "application_not_found"

    def __init__(self, application_id: Optional[int] = None, message: Optional[str] = None):
        self.application_id = application_id
        super().__init__(message or f"Application {application_id} not found")


class InvalidTransitionError(MarketplaceError):
    """Status change not permitted from the current state."""

    code = "invalid_transition"


class JobNotOpenError(InvalidTransitionError):
    """Job is no longer accepting applications."""

    code = "job_not_open"


class JobAlreadyAssignedError(InvalidTransitionError):
    """Another applicant has already been hired for the job."""

    code = "job_already_assigned"


class DuplicateApplicationError(MarketplaceError):
    """The applicant has already applied to this job."""

    code = "duplicate_application"


class NotOwnerError(MarketplaceError):
    """The requester is not allowed to act on this job."""

    code = "not_owner"


class InvalidRequestError(MarketplaceError):
    """Input failed validation."""

    code = "invalid_request"


class UpstreamUnavailableError(MarketplaceError):
    """Persistence or auth collaborator failed or timed out."""

    code = "upstream_unavailable"
