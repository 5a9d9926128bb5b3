"""Pydantic request/response models for the EZ Clear API."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ezclear.marketplace.models import (
    MAX_TITLE_LENGTH,
    WEEKDAYS,
    ApplicationStatus,
    Job,
    JobApplication,
    JobStateTransition,
    JobStatus,
    Notification,
    RecurringFrequency,
    ServiceType,
)


def _normalize_days(v: list[str] | None) -> list[str] | None:
    if v is None:
        return None
    days = [d.lower().strip() for d in v if d.strip()]
    invalid = [d for d in days if d not in WEEKDAYS]
    if invalid:
        raise ValueError(f"Invalid recurring days: {invalid}")
    return days


# =============================================================================
# Jobs
# =============================================================================


class JobCreate(BaseModel):
    """Request to post a job."""

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    description: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    service_type: ServiceType
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    image_url: str | None = None
    is_recurring: bool = False
    recurring_frequency: RecurringFrequency | None = None
    recurring_days: list[str] = Field(default_factory=list)
    recurring_end_date: date | None = None

    @field_validator("recurring_days")
    @classmethod
    def validate_days(cls, v: list[str]) -> list[str]:
        return _normalize_days(v) or []


class JobUpdate(BaseModel):
    """Partial job update.

    ``status: completed`` marks the job completed; ``scheduled_date`` moves
    an assigned job; the remaining fields edit an open job.
    """

    status: JobStatus | None = None
    scheduled_date: date | None = None
    title: str | None = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    description: str | None = Field(None, min_length=1)
    location: str | None = Field(None, min_length=1)
    service_type: ServiceType | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    image_url: str | None = None
    is_recurring: bool | None = None
    recurring_frequency: RecurringFrequency | None = None
    recurring_days: list[str] | None = None
    recurring_end_date: date | None = None

    @field_validator("recurring_days")
    @classmethod
    def validate_days(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_days(v)


class JobResponse(BaseModel):
    """Job details response."""

    id: int
    user_id: str
    title: str
    display_title: str
    description: str
    location: str
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    service_type: str
    status: str
    image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    scheduled_date: date | None = None
    completed_at: datetime | None = None
    is_recurring: bool = False
    recurring_frequency: str | None = None
    recurring_days: list[str] | None = None
    recurring_end_date: date | None = None

    @classmethod
    def from_job(cls, job: Job) -> "JobResponse":
        return cls(**job.to_dict(), display_title=job.display_title)


class HireRequest(BaseModel):
    """Request to hire an accepted applicant."""

    application_id: int
    scheduled_date: date


class CountResponse(BaseModel):
    count: int


class TransitionResponse(BaseModel):
    """One entry of a job's status history."""

    id: int | None = None
    job_id: int
    from_status: str | None = None
    to_status: str
    actor_id: str | None = None
    reason: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_transition(cls, transition: JobStateTransition) -> "TransitionResponse":
        return cls(**transition.to_dict())


# =============================================================================
# Applications
# =============================================================================


class ApplicationCreate(BaseModel):
    """Request to apply to a job. ``applicant_id`` defaults to the caller."""

    job_id: int
    applicant_id: str | None = None
    message: str | None = Field(None, max_length=5000)


class ApplicationStatusUpdate(BaseModel):
    """Request to move an application to a new status."""

    id: int
    status: ApplicationStatus
    scheduled_date: date | None = None


class ApplicationResponse(BaseModel):
    """Job application response."""

    id: int
    job_id: int
    applicant_id: str
    message: str | None = None
    status: str
    conversation_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_application(cls, application: JobApplication) -> "ApplicationResponse":
        return cls(**application.to_dict())


class HireResponse(BaseModel):
    job: JobResponse
    application: ApplicationResponse


class ViewedApplicationsRequest(BaseModel):
    application_ids: list[int] = Field(default_factory=list)


class ViewedApplicationsResponse(BaseModel):
    application_ids: list[int]


# =============================================================================
# Notifications
# =============================================================================


class NotificationCreate(BaseModel):
    """Request to create a notification."""

    user_id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class NotificationUpdate(BaseModel):
    id: int
    read: bool = True


class NotificationResponse(BaseModel):
    id: int
    user_id: str
    type: str
    title: str
    description: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        return cls(**notification.to_dict())


class ErrorResponse(BaseModel):
    detail: str
    code: str
