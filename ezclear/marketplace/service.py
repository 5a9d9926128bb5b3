"""
Lifecycle engine for jobs and applications.

Every status change of a job or an application goes through one of the
named operations here. Each operation validates the transition, applies it
with a conditional write, records it in the audit log and decides which
notification (if any) to emit. Side effects after the primary write
(conversation, message, notifications) are best-effort: their failure is
logged and never undoes the write.
"""

import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from dateutil import parser as date_parser

from ezclear.logging_config import log_notification, log_transition
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
    NotOwnerError,
)
from ezclear.marketplace.messaging import ConversationGateway, application_message
from ezclear.marketplace.models import (
    ApplicationStatus,
    Job,
    JobApplication,
    JobStateTransition,
    JobStatus,
    Notification,
    ServiceType,
)
from ezclear.marketplace.notifications import (
    NotificationSink,
    application_accepted_notification,
    application_declined_notification,
    hired_notification,
    job_completed_notification,
    new_application_notification,
)
from ezclear.marketplace.queries import ProfileDirectory
from ezclear.marketplace.storage import CONFLICT, NOT_FOUND, MarketplaceStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fields a job can never be without
REQUIRED_JOB_FIELDS = frozenset({"title", "description", "location", "service_type", "is_recurring"})

# Descriptive fields an owner may edit while the job is open
EDITABLE_JOB_FIELDS = frozenset(
    {
        "title",
        "description",
        "location",
        "city",
        "province",
        "postal_code",
        "service_type",
        "image_url",
        "is_recurring",
        "recurring_frequency",
        "recurring_days",
        "recurring_end_date",
    }
)


def coerce_date(value: Any, field_name: str = "scheduled_date") -> date:
    """Accept a date, a datetime or an ISO-8601 string.

    Raises:
        InvalidRequestError: If the value is missing or unparseable
    """
    if value is None or value == "":
        raise InvalidRequestError(f"{field_name} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date_parser.isoparse(str(value)).date()
    except (ValueError, OverflowError) as e:
        raise InvalidRequestError(f"Invalid {field_name}: {value}") from e


class LifecycleEngine:
    """Applies job and application status transitions.

    Args:
        storage: Job/application persistence.
        notifications: Sink for lifecycle notifications (optional).
        messaging: Conversation gateway used when a worker applies (optional).
        profiles: Profile directory, used for applicant names in notifications.
        config: Engine settings; defaults to ``MarketplaceConfig()``.
    """

    def __init__(
        self,
        storage: MarketplaceStorage,
        notifications: Optional[NotificationSink] = None,
        messaging: Optional[ConversationGateway] = None,
        profiles: Optional[ProfileDirectory] = None,
        config: Optional[MarketplaceConfig] = None,
    ):
        self.storage = storage
        self.notifications = notifications
        self.messaging = messaging
        self.profiles = profiles
        self.config = config or MarketplaceConfig()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _best_effort(self, description: str, fn: Callable[..., T], *args: Any) -> Optional[T]:
        try:
            return fn(*args)
        except Exception as e:
            logger.warning(f"Best-effort step failed ({description}): {e}", exc_info=True)
            return None

    def _notify(self, notification: Notification, job_id: Optional[int] = None) -> None:
        if self.notifications is None:
            return
        stored = self._best_effort(
            f"notify {notification.user_id}", self.notifications.emit, notification
        )
        if stored is not None:
            log_notification(notification.user_id, notification.type, notification.title, job_id=job_id)

    def _record_transition(
        self,
        job_id: int,
        from_status: Optional[str],
        to_status: str,
        actor_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        transition = JobStateTransition(
            job_id=job_id,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
            reason=reason,
        )
        self._best_effort(f"audit job {job_id}", self.storage.save_transition, transition)
        log_transition("job", job_id, from_status, to_status, actor_id=actor_id, job_id=job_id)

    def _require_owner(self, job: Job, actor_id: Optional[str], action: str) -> None:
        if actor_id is not None and actor_id != job.user_id:
            raise NotOwnerError(f"Only the job owner can {action}")

    def _applicant_name(self, applicant_id: str) -> Optional[str]:
        if self.profiles is None:
            return None
        profiles = self._best_effort(
            f"profile lookup {applicant_id}", self.profiles.get_profiles, [applicant_id]
        )
        profile = (profiles or {}).get(applicant_id) or {}
        return profile.get("name") or profile.get("business_name")

    def get_job(self, job_id: int) -> Job:
        """Get a job by ID.

        Raises:
            JobNotFoundError: If the job doesn't exist
        """
        job = self.storage.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def get_application(self, application_id: int) -> JobApplication:
        """Get an application by ID.

        Raises:
            ApplicationNotFoundError: If the application doesn't exist
        """
        application = self.storage.get_application(application_id)
        if application is None:
            raise ApplicationNotFoundError(application_id)
        return application

    def get_job_history(self, job_id: int) -> List[JobStateTransition]:
        """Audit log of a job's status changes, oldest first."""
        transitions = self.storage.get_transitions(job_id)
        if not transitions and self.storage.get_job(job_id) is None:
            raise JobNotFoundError(job_id)
        return transitions

    def _apply_application_status(
        self,
        application: JobApplication,
        expected: Any,
        new_status: ApplicationStatus,
        actor_id: Optional[str],
    ) -> JobApplication:
        updated, error = self.storage.atomic_update_application_status(
            application.id, expected, new_status
        )
        if error == NOT_FOUND:
            raise ApplicationNotFoundError(application.id)
        if error == CONFLICT or updated is None:
            raise InvalidTransitionError(
                f"Application {application.id} changed status concurrently; "
                f"cannot move to {new_status.value}"
            )
        log_transition(
            "application",
            application.id,
            application.status,
            updated.status,
            actor_id=actor_id,
            job_id=application.job_id,
        )
        return updated

    # =========================================================================
    # Jobs
    # =========================================================================

    def create_job(
        self,
        user_id: str,
        title: str,
        description: str,
        location: str,
        service_type: str,
        city: Optional[str] = None,
        province: Optional[str] = None,
        postal_code: Optional[str] = None,
        image_url: Optional[str] = None,
        is_recurring: bool = False,
        recurring_frequency: Optional[str] = None,
        recurring_days: Optional[List[str]] = None,
        recurring_end_date: Any = None,
    ) -> Job:
        """Post a new job as ``open``.

        Raises:
            InvalidRequestError: If a required field is missing or invalid
        """
        missing = [
            name
            for name, value in (
                ("user_id", user_id),
                ("title", title),
                ("description", description),
                ("location", location),
                ("service_type", service_type),
            )
            if not value or not str(value).strip()
        ]
        if missing:
            raise InvalidRequestError(f"Missing required fields: {', '.join(missing)}")

        self._validate_job_fields(title=title, service_type=service_type)
        if is_recurring and not recurring_frequency:
            raise InvalidRequestError("Recurring jobs need a recurring_frequency")

        try:
            job = Job(
                user_id=user_id,
                title=title.strip(),
                description=description.strip(),
                location=location.strip(),
                service_type=service_type,
                city=city,
                province=province,
                postal_code=postal_code,
                image_url=image_url,
                is_recurring=is_recurring,
                recurring_frequency=recurring_frequency if is_recurring else None,
                recurring_days=list(recurring_days or []) if is_recurring else [],
                recurring_end_date=(
                    coerce_date(recurring_end_date, "recurring_end_date")
                    if is_recurring and recurring_end_date
                    else None
                ),
            )
        except ValueError as e:
            raise InvalidRequestError(str(e)) from e

        job = self.storage.save_job(job)
        self._record_transition(job.id, None, JobStatus.OPEN.value, actor_id=user_id, reason="created")
        logger.info(f"Job created | id={job.id} | owner={user_id} | service={job.service_type}")
        return job

    def _validate_job_fields(self, **fields: Any) -> None:
        title = fields.get("title")
        if title is not None and len(title.strip()) > self.config.max_title_length:
            raise InvalidRequestError(
                f"Title must be {self.config.max_title_length} characters or less"
            )
        service_type = fields.get("service_type")
        if service_type is not None:
            valid = [s.value for s in ServiceType]
            if getattr(service_type, "value", service_type) not in valid:
                raise InvalidRequestError(
                    f"Invalid service_type: {service_type}. Must be one of {valid}"
                )

    def update_job(self, job_id: int, requester_id: str, **fields: Any) -> Job:
        """Edit descriptive fields of an open job.

        Raises:
            JobNotFoundError: If the job doesn't exist
            NotOwnerError: If the requester doesn't own the job
            InvalidRequestError: If a field is unknown, invalid, or ``status``
            JobNotOpenError: If the job is no longer open
        """
        if "status" in fields:
            raise InvalidRequestError("Job status can only change through lifecycle operations")
        unknown = sorted(set(fields) - EDITABLE_JOB_FIELDS)
        if unknown:
            raise InvalidRequestError(f"Fields cannot be edited: {', '.join(unknown)}")

        job = self.get_job(job_id)
        self._require_owner(job, requester_id, "edit this job")
        if not job.is_open:
            raise JobNotOpenError(f"Only open jobs can be edited (status: {job.status})")
        if not fields:
            return job

        for name in sorted(REQUIRED_JOB_FIELDS & set(fields)):
            value = fields[name]
            if value is None or (isinstance(value, str) and not value.strip()):
                raise InvalidRequestError(f"{name} cannot be empty")
            if name in ("title", "description", "location"):
                fields[name] = value.strip()

        self._validate_job_fields(**fields)
        if fields.get("is_recurring", job.is_recurring):
            if not fields.get("recurring_frequency", job.recurring_frequency):
                raise InvalidRequestError("Recurring jobs need a recurring_frequency")
            if "recurring_days" in fields:
                fields["recurring_days"] = list(fields["recurring_days"] or [])
            if fields.get("recurring_end_date"):
                fields["recurring_end_date"] = coerce_date(
                    fields["recurring_end_date"], "recurring_end_date"
                )
        else:
            fields.update(recurring_frequency=None, recurring_days=[], recurring_end_date=None)
        try:
            updated = replace(job, **fields)
        except ValueError as e:
            raise InvalidRequestError(str(e)) from e

        if not self.storage.update_job(updated):
            raise JobNotFoundError(job_id)
        logger.info(f"Job updated | id={job_id} | fields={sorted(fields)}")
        return self.get_job(job_id)

    def reschedule_job(self, job_id: int, scheduled_date: Any, actor_id: Optional[str] = None) -> Job:
        """Move the scheduled date of an assigned job.

        Raises:
            JobNotFoundError: If the job doesn't exist
            NotOwnerError: If ``actor_id`` doesn't own the job
            InvalidTransitionError: If the job isn't assigned
        """
        new_date = coerce_date(scheduled_date)
        job = self.get_job(job_id)
        self._require_owner(job, actor_id, "reschedule this job")
        if not job.is_assigned:
            raise InvalidTransitionError(f"Only assigned jobs can be rescheduled (status: {job.status})")

        updated, error = self.storage.atomic_update_job_status(
            job_id, JobStatus.ASSIGNED, JobStatus.ASSIGNED, scheduled_date=new_date
        )
        if error == NOT_FOUND:
            raise JobNotFoundError(job_id)
        if error == CONFLICT or updated is None:
            raise InvalidTransitionError(f"Job {job_id} changed status concurrently")
        logger.info(f"Job rescheduled | id={job_id} | date={new_date.isoformat()}")
        return updated

    def mark_job_completed(self, job_id: int, actor_id: Optional[str] = None) -> Job:
        """Mark a job completed and notify the hired worker.

        Raises:
            JobNotFoundError: If the job doesn't exist
            NotOwnerError: If ``actor_id`` doesn't own the job
            InvalidTransitionError: If the job is already completed, or is
                still open while completion requires an assignment
        """
        job = self.get_job(job_id)
        self._require_owner(job, actor_id, "mark this job completed")
        if job.is_terminal:
            raise InvalidTransitionError(f"Job {job_id} is already completed")
        if self.config.require_assignment_for_completion and not job.is_assigned:
            raise InvalidTransitionError(
                f"Job {job_id} must be assigned before it can be completed (status: {job.status})"
            )
        if not job.can_transition_to(JobStatus.COMPLETED):
            raise InvalidTransitionError(f"Cannot complete job in status: {job.status}")

        updated, error = self.storage.atomic_update_job_status(
            job_id,
            job.status,
            JobStatus.COMPLETED,
            completed_at=datetime.now(timezone.utc),
        )
        if error == NOT_FOUND:
            raise JobNotFoundError(job_id)
        if error == CONFLICT or updated is None:
            raise InvalidTransitionError(f"Job {job_id} changed status concurrently")

        self._record_transition(job_id, job.status, updated.status, actor_id=actor_id, reason="completed")

        hired = self._best_effort(
            f"find hired worker for job {job_id}",
            lambda: self.storage.list_applications(job_id=job_id, status=ApplicationStatus.HIRED),
        )
        for application in hired or []:
            self._notify(job_completed_notification(updated, application), job_id=job_id)

        logger.info(f"Job completed | id={job_id} | from={job.status}")
        return updated

    def delete_job(self, job_id: int, requester_id: str) -> None:
        """Delete an open job.

        With the ``hide`` policy the job's applications are kept and read
        paths skip them; with ``cascade`` they are deleted too.

        Raises:
            JobNotFoundError: If the job doesn't exist
            NotOwnerError: If the requester doesn't own the job
            InvalidTransitionError: If the job isn't open
        """
        job = self.get_job(job_id)
        if requester_id != job.user_id:
            raise NotOwnerError("Only the job owner can delete this job")
        if not job.is_open:
            raise InvalidTransitionError(f"Only open jobs can be deleted (status: {job.status})")

        removed = 0
        if self.config.job_delete_policy == "cascade":
            removed = self.storage.delete_applications_for_job(job_id)
        if not self.storage.delete_job(job_id):
            raise JobNotFoundError(job_id)

        log_transition("job", job_id, job.status, "deleted", actor_id=requester_id, job_id=job_id)
        logger.info(
            f"Job deleted | id={job_id} | policy={self.config.job_delete_policy} | "
            f"applications_removed={removed}"
        )

    # =========================================================================
    # Applications
    # =========================================================================

    def submit_application(
        self, job_id: int, applicant_id: str, message: Optional[str] = None
    ) -> JobApplication:
        """Apply to an open job.

        After the application is stored, a conversation with the job owner is
        opened, the application text is posted to it and the owner is
        notified. These steps are best-effort.

        Raises:
            JobNotFoundError: If the job doesn't exist
            JobNotOpenError: If the job isn't open
            InvalidRequestError: If the applicant owns the job
            DuplicateApplicationError: If the applicant already applied
        """
        if not applicant_id:
            raise InvalidRequestError("Missing required fields: applicant_id")

        job = self.get_job(job_id)
        if not job.is_open:
            raise JobNotOpenError(f"Job {job_id} is not accepting applications (status: {job.status})")
        if applicant_id == job.user_id:
            raise InvalidRequestError("You cannot apply to your own job")
        if self.storage.find_application(job_id, applicant_id) is not None:
            raise DuplicateApplicationError("You have already applied to this job")

        # The store enforces uniqueness again for concurrent submits
        application = self.storage.save_application(
            JobApplication(job_id=job_id, applicant_id=applicant_id, message=message)
        )
        log_transition(
            "application", application.id, None, application.status, actor_id=applicant_id, job_id=job_id
        )
        logger.info(f"Application submitted | id={application.id} | job={job_id} | applicant={applicant_id}")

        if self.messaging is not None:
            conversation_id = self._best_effort(
                f"open conversation for application {application.id}",
                self.messaging.get_or_create_conversation,
                applicant_id,
                job.user_id,
            )
            if conversation_id is not None:
                self._best_effort(
                    f"send application message {application.id}",
                    self.messaging.send_message,
                    conversation_id,
                    applicant_id,
                    application_message(job.title, application.message),
                )
                if self._best_effort(
                    f"link conversation to application {application.id}",
                    self.storage.set_application_conversation,
                    application.id,
                    conversation_id,
                ):
                    application = replace(application, conversation_id=conversation_id)

        self._notify(
            new_application_notification(job, application, self._applicant_name(applicant_id)),
            job_id=job_id,
        )
        return application

    def accept_application(self, application_id: int, actor_id: Optional[str] = None) -> JobApplication:
        """Accept a pending application and notify the applicant.

        Raises:
            ApplicationNotFoundError: If the application doesn't exist
            JobNotFoundError: If its job was deleted
            NotOwnerError: If ``actor_id`` doesn't own the job
            JobNotOpenError: If the job is no longer open
            InvalidTransitionError: If the application isn't pending
        """
        application = self.get_application(application_id)
        job = self.get_job(application.job_id)
        self._require_owner(job, actor_id, "accept applications")
        if not job.is_open:
            raise JobNotOpenError(f"Job {job.id} is no longer open (status: {job.status})")
        if not application.can_transition_to(ApplicationStatus.ACCEPTED):
            raise InvalidTransitionError(f"Cannot accept application in status: {application.status}")

        updated = self._apply_application_status(
            application, ApplicationStatus.PENDING, ApplicationStatus.ACCEPTED, actor_id
        )
        self._notify(application_accepted_notification(job, updated), job_id=job.id)
        logger.info(f"Application accepted | id={application_id} | job={job.id}")
        return updated

    def decline_application(self, application_id: int, actor_id: Optional[str] = None) -> JobApplication:
        """Decline a pending or accepted application and notify the applicant.

        Raises:
            ApplicationNotFoundError: If the application doesn't exist
            JobNotFoundError: If its job was deleted
            NotOwnerError: If ``actor_id`` doesn't own the job
            InvalidTransitionError: If the application is hired or already declined
        """
        application = self.get_application(application_id)
        job = self.get_job(application.job_id)
        self._require_owner(job, actor_id, "decline applications")
        return self._decline(application, job, actor_id)

    def _decline(self, application: JobApplication, job: Job, actor_id: Optional[str]) -> JobApplication:
        if not application.can_transition_to(ApplicationStatus.DECLINED):
            raise InvalidTransitionError(f"Cannot decline application in status: {application.status}")
        updated = self._apply_application_status(
            application,
            [ApplicationStatus.PENDING, ApplicationStatus.ACCEPTED],
            ApplicationStatus.DECLINED,
            actor_id,
        )
        self._notify(application_declined_notification(job, updated), job_id=job.id)
        logger.info(f"Application declined | id={application.id} | job={job.id}")
        return updated

    def reconsider_application(
        self, application_id: int, actor_id: Optional[str] = None
    ) -> JobApplication:
        """Move a declined application back to pending.

        Raises:
            ApplicationNotFoundError: If the application doesn't exist
            JobNotFoundError: If its job was deleted
            NotOwnerError: If ``actor_id`` doesn't own the job
            JobNotOpenError: If the job is no longer open
            InvalidTransitionError: If the application isn't declined
        """
        application = self.get_application(application_id)
        job = self.get_job(application.job_id)
        self._require_owner(job, actor_id, "reconsider applications")
        if not job.is_open:
            raise JobNotOpenError(f"Job {job.id} is no longer open (status: {job.status})")
        if not application.can_transition_to(ApplicationStatus.PENDING):
            raise InvalidTransitionError(
                f"Cannot reconsider application in status: {application.status}"
            )
        updated = self._apply_application_status(
            application, ApplicationStatus.DECLINED, ApplicationStatus.PENDING, actor_id
        )
        logger.info(f"Application reconsidered | id={application_id} | job={job.id}")
        return updated

    def hire_applicant(
        self,
        job_id: int,
        application_id: int,
        scheduled_date: Any,
        actor_id: Optional[str] = None,
    ) -> Tuple[Job, JobApplication]:
        """Hire an accepted applicant and assign the job.

        The job is moved ``open -> assigned`` first with a conditional write,
        so of two concurrent hires on one job only one can succeed. If the
        application then fails to move ``accepted -> hired``, the job write
        is reverted.

        Returns:
            The assigned job and the hired application.

        Raises:
            ApplicationNotFoundError: If the application doesn't exist or
                belongs to another job
            JobNotFoundError: If the job doesn't exist
            NotOwnerError: If ``actor_id`` doesn't own the job
            InvalidTransitionError: If the application isn't accepted or the
                job is completed
            JobAlreadyAssignedError: If someone is already hired for the job
        """
        hire_date = coerce_date(scheduled_date)

        application = self.get_application(application_id)
        if application.job_id != job_id:
            raise ApplicationNotFoundError(
                application_id, f"Application {application_id} not found for job {job_id}"
            )
        job = self.get_job(job_id)
        self._require_owner(job, actor_id, "hire applicants")

        if not application.is_accepted:
            raise InvalidTransitionError(f"Cannot hire application in status: {application.status}")
        already_hired = self.storage.list_applications(job_id=job_id, status=ApplicationStatus.HIRED)
        if already_hired or job.is_assigned:
            raise JobAlreadyAssignedError(f"Job {job_id} already has a hired worker")
        if job.is_terminal:
            raise InvalidTransitionError(f"Cannot hire for job in status: {job.status}")

        updated_job, job_error = self.storage.atomic_update_job_status(
            job_id, JobStatus.OPEN, JobStatus.ASSIGNED, scheduled_date=hire_date
        )
        if job_error == NOT_FOUND:
            raise JobNotFoundError(job_id)
        if job_error == CONFLICT or updated_job is None:
            raise JobAlreadyAssignedError(f"Job {job_id} was assigned by another request")

        try:
            updated_app, app_error = self.storage.atomic_update_application_status(
                application_id, ApplicationStatus.ACCEPTED, ApplicationStatus.HIRED
            )
        except MarketplaceError:
            self._revert_assignment(job_id, application_id)
            raise
        if app_error is not None or updated_app is None:
            self._revert_assignment(job_id, application_id)
            raise InvalidTransitionError(
                f"Application {application_id} changed status during hire; job left open"
            )

        self._record_transition(
            job_id,
            job.status,
            updated_job.status,
            actor_id=actor_id,
            reason=f"hired application {application_id}",
        )
        log_transition(
            "application",
            application_id,
            application.status,
            updated_app.status,
            actor_id=actor_id,
            job_id=job_id,
        )
        self._notify(hired_notification(updated_job, updated_app), job_id=job_id)

        if self.config.decline_other_applications_on_hire:
            others = self.storage.list_applications(
                job_id=job_id, status=[ApplicationStatus.PENDING, ApplicationStatus.ACCEPTED]
            )
            for other in others:
                self._best_effort(
                    f"decline application {other.id} after hire",
                    self._decline,
                    other,
                    updated_job,
                    actor_id,
                )

        logger.info(
            f"Applicant hired | job={job_id} | application={application_id} | "
            f"worker={updated_app.applicant_id} | date={hire_date.isoformat()}"
        )
        return updated_job, updated_app

    def _revert_assignment(self, job_id: int, application_id: int) -> None:
        """Put a job back to ``open`` after its hire could not complete."""
        try:
            _, revert_error = self.storage.atomic_update_job_status(
                job_id, JobStatus.ASSIGNED, JobStatus.OPEN, scheduled_date=None
            )
        except MarketplaceError as e:
            revert_error = str(e)
        if revert_error is not None:
            logger.error(
                f"Could not revert job {job_id} after failed hire of application "
                f"{application_id}: {revert_error}"
            )

    def update_application_status(
        self,
        application_id: int,
        status: str,
        scheduled_date: Any = None,
        actor_id: Optional[str] = None,
    ) -> JobApplication:
        """Route a requested application status to its lifecycle operation.

        ``hired`` without a date hires for today.

        Raises:
            InvalidRequestError: If ``status`` isn't an application status
        """
        try:
            target = ApplicationStatus(getattr(status, "value", status))
        except ValueError as e:
            valid = [s.value for s in ApplicationStatus]
            raise InvalidRequestError(f"Invalid status: {status}. Must be one of {valid}") from e

        if target == ApplicationStatus.ACCEPTED:
            return self.accept_application(application_id, actor_id=actor_id)
        if target == ApplicationStatus.DECLINED:
            return self.decline_application(application_id, actor_id=actor_id)
        if target == ApplicationStatus.PENDING:
            return self.reconsider_application(application_id, actor_id=actor_id)

        application = self.get_application(application_id)
        _, hired = self.hire_applicant(
            application.job_id,
            application_id,
            scheduled_date or date.today(),
            actor_id=actor_id,
        )
        return hired
