"""
Read-side query shaping.

Builds the denormalised view models the UI consumes: jobs with their poster,
applications with their job and applicant, a hirer's jobs with application
counts. Profiles come from an external directory; a failed or missing profile
lookup enriches with ``None`` and never fails the read.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol

from ezclear.marketplace.errors import JobNotFoundError
from ezclear.marketplace.models import ApplicationStatus, Job, JobApplication, JobStatus
from ezclear.marketplace.storage import MarketplaceStorage, StatusFilter
from ezclear.marketplace.views import ViewStateTracker

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("id", "name", "profile_image", "business_name", "city", "province", "description")
UNKNOWN_JOB_TITLE = "Unknown Job"


class ProfileDirectory(Protocol):
    """Read-only access to user profiles."""

    def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Fetch profiles by user ID. Unknown IDs are absent from the result."""
        ...


class InMemoryProfileDirectory:
    def __init__(self, profiles: Optional[Dict[str, Dict[str, Any]]] = None):
        self.profiles: Dict[str, Dict[str, Any]] = dict(profiles or {})

    def add(self, user_id: str, **fields: Any) -> None:
        self.profiles[user_id] = {"id": user_id, **fields}

    def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        return {uid: dict(self.profiles[uid]) for uid in set(user_ids) if uid in self.profiles}


def profile_subset(profile: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Trim a profile row to the public fields shown next to jobs and applications."""
    if not profile:
        return None
    return {key: profile.get(key) for key in PROFILE_FIELDS}


def job_view(job: Job) -> Dict[str, Any]:
    data = job.to_dict()
    data["display_title"] = job.display_title
    return data


class MarketplaceQueries:
    """Repository-style read methods returning UI view models."""

    def __init__(self, storage: MarketplaceStorage, profiles: Optional[ProfileDirectory] = None):
        self.storage = storage
        self.profiles = profiles

    def _profiles(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ids = {uid for uid in user_ids if uid}
        if not ids or self.profiles is None:
            return {}
        try:
            return self.profiles.get_profiles(ids)
        except Exception as e:
            logger.warning(f"Profile lookup failed for {len(ids)} users: {e}")
            return {}

    # === Jobs ===

    def list_jobs(
        self,
        status: Optional[StatusFilter] = None,
        user_id: Optional[str] = None,
        service_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        jobs = self.storage.list_jobs(
            status=status, user_id=user_id, service_type=service_type, limit=limit, offset=offset
        )
        return [job_view(j) for j in jobs]

    def list_open_jobs(self, service_type: Optional[str] = None, limit: int = 100) -> List[Dict[str, Any]]:
        return self.list_jobs(status=JobStatus.OPEN, service_type=service_type, limit=limit)

    def get_job_detail(self, job_id: int) -> Dict[str, Any]:
        """Get a job with its poster's profile and application count.

        Raises:
            JobNotFoundError: If the job doesn't exist
        """
        job = self.storage.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        data = job_view(job)
        data["user"] = profile_subset(self._profiles([job.user_id]).get(job.user_id))
        data["application_count"] = self.storage.count_applications(job_id)
        return data

    def count_applications(self, job_id: int) -> int:
        return self.storage.count_applications(job_id)

    # === Applications ===

    def _enrich(
        self,
        applications: List[JobApplication],
        include_orphaned: bool = False,
    ) -> List[Dict[str, Any]]:
        jobs = self.storage.get_jobs({a.job_id for a in applications})
        if not include_orphaned:
            # Applications of deleted jobs stay stored but are never shown
            applications = [a for a in applications if a.job_id in jobs]
        profiles = self._profiles(
            {a.applicant_id for a in applications} | {j.user_id for j in jobs.values()}
        )

        result = []
        for app in applications:
            job = jobs.get(app.job_id)
            data = app.to_dict()
            data["job"] = job_view(job) if job else None
            data["applicant"] = profile_subset(profiles.get(app.applicant_id))
            data["job_title"] = job.title if job else UNKNOWN_JOB_TITLE
            data["job_description"] = job.description if job else None
            data["job_location"] = job.location if job else None
            data["job_service_type"] = job.service_type if job else None
            data["job_poster"] = profile_subset(profiles.get(job.user_id)) if job else None
            result.append(data)
        return result

    def list_job_applications(self, job_id: int) -> List[Dict[str, Any]]:
        """Applications of one job, newest first, with applicant profiles."""
        if self.storage.get_job(job_id) is None:
            return []
        apps = self.storage.list_applications(job_id=job_id)
        profiles = self._profiles(a.applicant_id for a in apps)
        result = []
        for app in apps:
            data = app.to_dict()
            data["applicant"] = profile_subset(profiles.get(app.applicant_id))
            result.append(data)
        return result

    def list_worker_applications(
        self,
        worker_id: str,
        status: Optional[StatusFilter] = None,
        include_orphaned: bool = False,
    ) -> List[Dict[str, Any]]:
        """A worker's own applications with job and poster details."""
        apps = self.storage.list_applications(applicant_id=worker_id, status=status)
        return self._enrich(apps, include_orphaned=include_orphaned)

    def list_applications(
        self,
        job_id: Optional[int] = None,
        user_id: Optional[str] = None,
        status: Optional[StatusFilter] = None,
    ) -> List[Dict[str, Any]]:
        """List applications, newest first.

        With ``user_id`` the result is the user's own applications plus the
        applications on jobs the user posted, without duplicates.
        """
        if user_id is not None:
            own = self.storage.list_applications(job_id=job_id, applicant_id=user_id, status=status)
            posted_job_ids = [j.id for j in self.storage.list_jobs(user_id=user_id, limit=1000)]
            if job_id is not None:
                posted_job_ids = [jid for jid in posted_job_ids if jid == job_id]
            received = (
                self.storage.list_applications(job_ids=posted_job_ids, status=status)
                if posted_job_ids
                else []
            )
            merged = {a.id: a for a in own + received}
            apps = sorted(
                merged.values(),
                key=lambda a: (a.created_at is not None, a.created_at, a.id or 0),
                reverse=True,
            )
        else:
            apps = self.storage.list_applications(job_id=job_id, status=status)
        return self._enrich(apps)

    # === Hirer dashboard ===

    def list_hirer_jobs(
        self, user_id: str, tracker: Optional[ViewStateTracker] = None
    ) -> List[Dict[str, Any]]:
        """The owner's jobs with their applications and new-applicant counts.

        Without a tracker every pending application counts as new.
        """
        jobs = self.storage.list_jobs(user_id=user_id, limit=1000)
        if not jobs:
            return []
        apps = self.storage.list_applications(job_ids=[j.id for j in jobs], limit=10000)
        profiles = self._profiles(a.applicant_id for a in apps)

        by_job: Dict[int, List[Dict[str, Any]]] = {j.id: [] for j in jobs}
        for app in apps:
            data = app.to_dict()
            data["applicant"] = profile_subset(profiles.get(app.applicant_id))
            if tracker is not None:
                data["viewed"] = tracker.is_viewed(app.id)
            by_job[app.job_id].append(data)

        result = []
        for job in jobs:
            job_apps = by_job[job.id]
            data = job_view(job)
            data["applications"] = job_apps
            data["application_count"] = len(job_apps)
            if tracker is not None:
                data["new_applications_count"] = tracker.new_count(job_apps)
            else:
                data["new_applications_count"] = sum(
                    1 for a in job_apps if a["status"] == ApplicationStatus.PENDING.value
                )
            result.append(data)
        return result
