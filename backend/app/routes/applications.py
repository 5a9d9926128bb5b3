"""Job application routes."""

from typing import Any

from fastapi import APIRouter, Query, Request, status

from ezclear.marketplace.errors import NotOwnerError
from ezclear.marketplace.models import ApplicationStatus

from ..auth import CurrentUser
from ..database import Engine, Queries, ViewTracker
from ..logging_config import get_logger
from ..models import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatusUpdate,
    ViewedApplicationsRequest,
    ViewedApplicationsResponse,
)
from ..rate_limit import limiter

logger = get_logger("applications")
router = APIRouter(prefix="/api/applications", tags=["applications"])


@router.get("")
@limiter.limit("60/minute")
async def list_applications_endpoint(
    request: Request,
    auth: CurrentUser,
    queries: Queries,
    job_id: int | None = Query(None),
    user_id: str | None = Query(None),
    worker_id: str | None = Query(None),
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
) -> list[dict[str, Any]]:
    """
    List applications with job and applicant details.

    - `worker_id`: the worker's own applications
    - otherwise the caller's own applications plus those on jobs they posted

    Applications whose job was deleted are not listed.
    """
    logger.info(
        f"GET /applications | user={auth.user_id} | job={job_id} | "
        f"worker={worker_id} | status={status_filter}"
    )

    if worker_id is not None:
        if worker_id != auth.user_id:
            raise NotOwnerError("You can only list your own applications")
        return queries.list_worker_applications(worker_id, status=status_filter)

    if user_id is not None and user_id != auth.user_id:
        raise NotOwnerError("You can only list your own applications")
    return queries.list_applications(job_id=job_id, user_id=auth.user_id, status=status_filter)


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def submit_application_endpoint(
    request: Request,
    application: ApplicationCreate,
    auth: CurrentUser,
    engine: Engine,
):
    """
    Apply to an open job.

    Opens a conversation with the job owner, posts the application message
    and notifies the owner. One application per worker per job.
    """
    applicant_id = application.applicant_id or auth.user_id
    logger.info(f"POST /applications | applicant={applicant_id} | job={application.job_id}")

    if applicant_id != auth.user_id:
        raise NotOwnerError("You can only apply on your own behalf")

    created = engine.submit_application(application.job_id, applicant_id, application.message)
    return ApplicationResponse.from_application(created)


@router.patch("", response_model=ApplicationResponse)
@limiter.limit("20/minute")
async def update_application_status_endpoint(
    request: Request,
    update: ApplicationStatusUpdate,
    auth: CurrentUser,
    engine: Engine,
):
    """
    Move an application to a new status (job owner only).

    `pending` reconsiders a declined application; `hired` hires it, on
    `scheduled_date` or today.
    """
    logger.info(
        f"PATCH /applications | user={auth.user_id} | id={update.id} | status={update.status.value}"
    )
    updated = engine.update_application_status(
        update.id, update.status, scheduled_date=update.scheduled_date, actor_id=auth.user_id
    )
    return ApplicationResponse.from_application(updated)


@router.get("/job")
@limiter.limit("60/minute")
async def list_job_applications_endpoint(
    request: Request,
    auth: CurrentUser,
    engine: Engine,
    queries: Queries,
    job_id: int = Query(...),
) -> list[dict[str, Any]]:
    """Applications on one job with applicant profiles (job owner only)."""
    logger.info(f"GET /applications/job | user={auth.user_id} | job={job_id}")
    job = engine.get_job(job_id)
    if job.user_id != auth.user_id:
        raise NotOwnerError("Only the job owner can view its applications")
    return queries.list_job_applications(job_id)


@router.get("/viewed", response_model=ViewedApplicationsResponse)
@limiter.limit("60/minute")
async def get_viewed_applications(
    request: Request,
    auth: CurrentUser,
    tracker: ViewTracker,
):
    """Application ids the caller has already opened."""
    logger.info(f"GET /applications/viewed | user={auth.user_id}")
    return ViewedApplicationsResponse(application_ids=sorted(tracker.viewed_ids()))


@router.post("/viewed", response_model=ViewedApplicationsResponse)
@limiter.limit("60/minute")
async def mark_applications_viewed(
    request: Request,
    body: ViewedApplicationsRequest,
    auth: CurrentUser,
    tracker: ViewTracker,
):
    """Mark applications as viewed. Marking one twice is harmless."""
    logger.info(f"POST /applications/viewed | user={auth.user_id} | count={len(body.application_ids)}")
    tracker.mark_all_viewed(body.application_ids)
    return ViewedApplicationsResponse(application_ids=sorted(tracker.viewed_ids()))
