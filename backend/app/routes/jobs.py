"""Job routes.

Endpoints for posting, browsing and managing jobs. Every status change is
delegated to the lifecycle engine.
"""

from typing import Any

from fastapi import APIRouter, Query, Request, status

from ezclear.marketplace.errors import InvalidRequestError, NotOwnerError
from ezclear.marketplace.models import JobStatus, ServiceType

from ..auth import CurrentUser
from ..database import Engine, Queries, ViewTracker
from ..logging_config import get_logger
from ..models import (
    ApplicationResponse,
    CountResponse,
    HireRequest,
    HireResponse,
    JobCreate,
    JobResponse,
    JobUpdate,
    TransitionResponse,
)
from ..rate_limit import limiter

logger = get_logger("jobs")
router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_job_listing(
    request: Request,
    job: JobCreate,
    auth: CurrentUser,
    engine: Engine,
):
    """
    Post a new job.

    The caller becomes the job owner. Jobs start in 'open' status.
    """
    logger.info(f"POST /jobs | owner={auth.user_id} | title={job.title[:50]}")

    created = engine.create_job(
        user_id=auth.user_id,
        title=job.title,
        description=job.description,
        location=job.location,
        service_type=job.service_type.value,
        city=job.city,
        province=job.province,
        postal_code=job.postal_code,
        image_url=job.image_url,
        is_recurring=job.is_recurring,
        recurring_frequency=job.recurring_frequency.value if job.recurring_frequency else None,
        recurring_days=job.recurring_days,
        recurring_end_date=job.recurring_end_date,
    )
    return JobResponse.from_job(created)


@router.get("")
@limiter.limit("60/minute")
async def list_jobs_endpoint(
    request: Request,
    auth: CurrentUser,
    queries: Queries,
    status_filter: JobStatus | None = Query(None, alias="status"),
    user_id: str | None = Query(None),
    service_type: ServiceType | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> list[dict[str, Any]]:
    """
    List jobs, newest first.

    Filters:
    - status: Filter by job status
    - user_id: Only jobs posted by this user
    - service_type: Filter by service category
    """
    logger.info(
        f"GET /jobs | user={auth.user_id} | status={status_filter} | "
        f"owner={user_id} | service={service_type}"
    )
    return queries.list_jobs(
        status=status_filter,
        user_id=user_id,
        service_type=service_type.value if service_type else None,
        limit=limit,
        offset=offset,
    )


@router.get("/mine")
@limiter.limit("60/minute")
async def list_my_jobs(
    request: Request,
    auth: CurrentUser,
    queries: Queries,
    tracker: ViewTracker,
) -> list[dict[str, Any]]:
    """
    The caller's posted jobs with their applications.

    Each job carries `application_count` and `new_applications_count`
    (pending applications the caller has not viewed yet).
    """
    logger.info(f"GET /jobs/mine | owner={auth.user_id}")
    return queries.list_hirer_jobs(auth.user_id, tracker=tracker)


@router.get("/open")
@limiter.limit("60/minute")
async def list_open_jobs_endpoint(
    request: Request,
    auth: CurrentUser,
    queries: Queries,
    service_type: ServiceType | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
) -> list[dict[str, Any]]:
    """Jobs still accepting applications, for workers browsing by service."""
    logger.info(f"GET /jobs/open | user={auth.user_id} | service={service_type}")
    return queries.list_open_jobs(
        service_type=service_type.value if service_type else None,
        limit=limit,
    )


@router.get("/{job_id}")
@limiter.limit("60/minute")
async def get_job_details(
    request: Request,
    job_id: int,
    auth: CurrentUser,
    queries: Queries,
) -> dict[str, Any]:
    """Get a job with its poster's profile."""
    logger.info(f"GET /jobs/{job_id} | user={auth.user_id}")
    return queries.get_job_detail(job_id)


@router.patch("/{job_id}", response_model=JobResponse)
@limiter.limit("20/minute")
async def update_job_endpoint(
    request: Request,
    job_id: int,
    update: JobUpdate,
    auth: CurrentUser,
    engine: Engine,
):
    """
    Update a job.

    - `status: completed` marks the job completed (owner only).
    - `scheduled_date` on an assigned job reschedules it.
    - Other fields edit the job while it is open.

    Other status values are rejected: a job is assigned by hiring an applicant.
    """
    fields = update.model_dump(exclude_unset=True)
    logger.info(f"PATCH /jobs/{job_id} | user={auth.user_id} | fields={sorted(fields)}")

    new_status = fields.pop("status", None)
    if new_status is not None:
        if new_status != JobStatus.COMPLETED:
            raise InvalidRequestError(
                f"Job status cannot be set to '{new_status.value}' directly; "
                "hire an applicant to assign the job"
            )
        if fields:
            raise InvalidRequestError("Completing a job cannot be combined with other changes")
        return JobResponse.from_job(engine.mark_job_completed(job_id, actor_id=auth.user_id))

    scheduled_date = fields.pop("scheduled_date", None)
    if scheduled_date is not None:
        if fields:
            raise InvalidRequestError("Rescheduling cannot be combined with other changes")
        return JobResponse.from_job(engine.reschedule_job(job_id, scheduled_date, actor_id=auth.user_id))

    for key in ("service_type", "recurring_frequency"):
        if fields.get(key) is not None:
            fields[key] = fields[key].value
    return JobResponse.from_job(engine.update_job(job_id, auth.user_id, **fields))


@router.delete("/{job_id}")
@limiter.limit("10/minute")
async def delete_job_endpoint(
    request: Request,
    job_id: int,
    auth: CurrentUser,
    engine: Engine,
):
    """Delete an open job (owner only)."""
    logger.info(f"DELETE /jobs/{job_id} | user={auth.user_id}")
    engine.delete_job(job_id, requester_id=auth.user_id)
    return {"success": True, "id": job_id}


@router.post("/{job_id}/hire", response_model=HireResponse)
@limiter.limit("10/minute")
async def hire_applicant_endpoint(
    request: Request,
    job_id: int,
    hire: HireRequest,
    auth: CurrentUser,
    engine: Engine,
):
    """
    Hire an accepted applicant.

    The job moves to 'assigned' with the given scheduled date and the
    application to 'hired'. Fails with 409 if someone is already hired.
    """
    logger.info(f"POST /jobs/{job_id}/hire | user={auth.user_id} | app={hire.application_id}")
    job, application = engine.hire_applicant(
        job_id, hire.application_id, hire.scheduled_date, actor_id=auth.user_id
    )
    return HireResponse(
        job=JobResponse.from_job(job),
        application=ApplicationResponse.from_application(application),
    )


@router.get("/{job_id}/applications/count", response_model=CountResponse)
@limiter.limit("60/minute")
async def count_job_applications(
    request: Request,
    job_id: int,
    auth: CurrentUser,
    queries: Queries,
):
    """Number of applications on a job."""
    logger.info(f"GET /jobs/{job_id}/applications/count | user={auth.user_id}")
    return CountResponse(count=queries.count_applications(job_id))


@router.get("/{job_id}/history", response_model=list[TransitionResponse])
@limiter.limit("30/minute")
async def get_job_history(
    request: Request,
    job_id: int,
    auth: CurrentUser,
    engine: Engine,
):
    """Status history of a job, oldest first (owner only)."""
    logger.info(f"GET /jobs/{job_id}/history | user={auth.user_id}")
    job = engine.get_job(job_id)
    if job.user_id != auth.user_id:
        raise NotOwnerError("Only the job owner can view its history")
    return [TransitionResponse.from_transition(t) for t in engine.get_job_history(job_id)]
