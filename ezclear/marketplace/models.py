"""
Marketplace data models.

Jobs are posted by hirers and move through ``open -> assigned -> completed``.
Applications link a worker to a job and move through
``pending -> accepted -> hired`` (or ``declined``).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

MAX_TITLE_LENGTH = 100
DISPLAY_TITLE_LENGTH = 97


class JobStatus(str, Enum):
    """Job lifecycle status."""

    OPEN = "open"
    ASSIGNED = "assigned"
    COMPLETED = "completed"


class ApplicationStatus(str, Enum):
    """Application lifecycle status."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    HIRED = "hired"


class ServiceType(str, Enum):
    """Service categories a job can be posted under."""

    SNOW_REMOVAL = "snow_removal"
    LANDSCAPING = "landscaping"
    LAWN_MOWING = "lawn_mowing"
    GUTTER_CLEANING = "gutter_cleaning"
    LEAF_CLEANUP = "leaf_cleanup"
    JUNK_REMOVAL = "junk_removal"
    POWER_WASHING = "power_washing"
    HANDYMAN = "handyman"
    ICE_CONTROL = "ice_control"


class RecurringFrequency(str, Enum):
    """How often a recurring job repeats."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class NotificationType(str, Enum):
    """Notification categories emitted by the lifecycle."""

    APPLICATION = "application"
    JOB = "job"


WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

VALID_JOB_TRANSITIONS: Dict[JobStatus, set] = {
    JobStatus.OPEN: {JobStatus.ASSIGNED, JobStatus.COMPLETED},
    JobStatus.ASSIGNED: {JobStatus.COMPLETED},
    JobStatus.COMPLETED: set(),
}

VALID_APPLICATION_TRANSITIONS: Dict[ApplicationStatus, set] = {
    ApplicationStatus.PENDING: {ApplicationStatus.ACCEPTED, ApplicationStatus.DECLINED},
    ApplicationStatus.ACCEPTED: {ApplicationStatus.HIRED, ApplicationStatus.DECLINED},
    # Reconsider
    ApplicationStatus.DECLINED: {ApplicationStatus.PENDING},
    ApplicationStatus.HIRED: set(),
}


def _status_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _parse_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def truncate_title(title: str) -> str:
    """Shorten long titles for list display."""
    if len(title) > MAX_TITLE_LENGTH:
        return title[:DISPLAY_TITLE_LENGTH] + "..."
    return title


@dataclass
class Job:
    """A job posted by a hirer.

    Attributes:
        id: Database ID (None until persisted)
        user_id: Owner (the hirer who posted the job)
        title: Short job title
        description: What needs doing
        location: Free-text address
        service_type: One of ``ServiceType``
        status: One of ``JobStatus``
        scheduled_date: Set when a worker is hired
        completed_at: Set when the job is marked completed
        is_recurring: Whether the job repeats
        recurring_frequency: One of ``RecurringFrequency``
        recurring_days: Lower-case weekday names
        recurring_end_date: Last date of the recurrence
    """

    user_id: str
    title: str
    description: str
    location: str
    service_type: str
    id: Optional[int] = None
    status: str = JobStatus.OPEN.value
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    scheduled_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    is_recurring: bool = False
    recurring_frequency: Optional[str] = None
    recurring_days: List[str] = field(default_factory=list)
    recurring_end_date: Optional[date] = None

    def __post_init__(self):
        self.status = _status_value(self.status)
        self.service_type = _status_value(self.service_type)
        self.recurring_frequency = _status_value(self.recurring_frequency)

        valid_statuses = [s.value for s in JobStatus]
        if self.status not in valid_statuses:
            raise ValueError(f"Invalid status: {self.status}. Must be one of {valid_statuses}")
        # Length is enforced on create only; older rows may carry long titles.
        if not self.title or not self.title.strip():
            raise ValueError("Title is required")
        if self.recurring_frequency is not None:
            valid_frequencies = [f.value for f in RecurringFrequency]
            if self.recurring_frequency not in valid_frequencies:
                raise ValueError(f"Invalid recurring frequency: {self.recurring_frequency}")
        self.recurring_days = [d.lower() for d in (self.recurring_days or [])]
        for day in self.recurring_days:
            if day not in WEEKDAYS:
                raise ValueError(f"Invalid recurring day: {day}")

    @property
    def display_title(self) -> str:
        return truncate_title(self.title)

    @property
    def is_open(self) -> bool:
        return self.status == JobStatus.OPEN.value

    @property
    def is_assigned(self) -> bool:
        return self.status == JobStatus.ASSIGNED.value

    @property
    def is_terminal(self) -> bool:
        return self.status == JobStatus.COMPLETED.value

    def can_transition_to(self, new_status: JobStatus | str) -> bool:
        """Check if the job may move to ``new_status``."""
        target = JobStatus(_status_value(new_status))
        return target in VALID_JOB_TRANSITIONS[JobStatus(self.status)]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a row dict (dates as ISO strings)."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "city": self.city,
            "province": self.province,
            "postal_code": self.postal_code,
            "service_type": self.service_type,
            "status": self.status,
            "image_url": self.image_url,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "scheduled_date": _iso(self.scheduled_date),
            "completed_at": _iso(self.completed_at),
            "is_recurring": self.is_recurring,
            "recurring_frequency": self.recurring_frequency,
            "recurring_days": list(self.recurring_days) if self.recurring_days else None,
            "recurring_end_date": _iso(self.recurring_end_date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        """Build a Job from a database row."""
        return cls(
            id=data.get("id"),
            user_id=data["user_id"],
            title=data["title"],
            description=data.get("description") or "",
            location=data.get("location") or "",
            city=data.get("city"),
            province=data.get("province"),
            postal_code=data.get("postal_code"),
            service_type=data.get("service_type") or "",
            status=data.get("status") or JobStatus.OPEN.value,
            image_url=data.get("image_url"),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
            scheduled_date=_parse_date(data.get("scheduled_date")),
            completed_at=_parse_datetime(data.get("completed_at")),
            is_recurring=bool(data.get("is_recurring")),
            recurring_frequency=data.get("recurring_frequency"),
            recurring_days=data.get("recurring_days") or [],
            recurring_end_date=_parse_date(data.get("recurring_end_date")),
        )


@dataclass
class JobApplication:
    """A worker's application to a job."""

    job_id: int
    applicant_id: str
    id: Optional[int] = None
    message: Optional[str] = None
    status: str = ApplicationStatus.PENDING.value
    conversation_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.status = _status_value(self.status)
        valid_statuses = [s.value for s in ApplicationStatus]
        if self.status not in valid_statuses:
            raise ValueError(f"Invalid status: {self.status}. Must be one of {valid_statuses}")
        if self.message is not None and not self.message.strip():
            self.message = None

    @property
    def is_pending(self) -> bool:
        return self.status == ApplicationStatus.PENDING.value

    @property
    def is_accepted(self) -> bool:
        return self.status == ApplicationStatus.ACCEPTED.value

    @property
    def is_hired(self) -> bool:
        return self.status == ApplicationStatus.HIRED.value

    def can_transition_to(self, new_status: ApplicationStatus | str) -> bool:
        target = ApplicationStatus(_status_value(new_status))
        return target in VALID_APPLICATION_TRANSITIONS[ApplicationStatus(self.status)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "job_id": self.job_id,
            "applicant_id": self.applicant_id,
            "message": self.message,
            "status": self.status,
            "conversation_id": self.conversation_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobApplication":
        return cls(
            id=data.get("id"),
            job_id=data["job_id"],
            applicant_id=data["applicant_id"],
            message=data.get("message"),
            status=data.get("status") or ApplicationStatus.PENDING.value,
            conversation_id=data.get("conversation_id"),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )


@dataclass
class Notification:
    """A notification record for one user."""

    user_id: str
    type: str
    title: str
    id: Optional[int] = None
    description: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    read: bool = False
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.type = _status_value(self.type)
        if not self.user_id:
            raise ValueError("Notification requires a user_id")
        if not self.title:
            raise ValueError("Notification requires a title")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "data": dict(self.data),
            "read": self.read,
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notification":
        return cls(
            id=data.get("id"),
            user_id=data["user_id"],
            type=data["type"],
            title=data["title"],
            description=data.get("description"),
            data=data.get("data") or {},
            read=bool(data.get("read", False)),
            created_at=_parse_datetime(data.get("created_at")),
        )


@dataclass
class JobStateTransition:
    """Audit log entry for a job status change."""

    job_id: int
    to_status: str
    id: Optional[int] = None
    from_status: Optional[str] = None
    actor_id: Optional[str] = None
    reason: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.to_status = _status_value(self.to_status)
        self.from_status = _status_value(self.from_status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "job_id": self.job_id,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "actor_id": self.actor_id,
            "reason": self.reason,
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobStateTransition":
        return cls(
            id=data.get("id"),
            job_id=data["job_id"],
            from_status=data.get("from_status"),
            to_status=data["to_status"],
            actor_id=data.get("actor_id"),
            reason=data.get("reason"),
            created_at=_parse_datetime(data.get("created_at")),
        )
