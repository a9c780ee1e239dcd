from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from jobboard.config import Settings
from jobboard.routers.dependencies import (
    RequestIdentity,
    get_app_settings,
    get_current_identity,
    get_services,
    require_applicant,
)
from jobboard.schemas.job import JobApplicationRead, JobFilters, JobRead
from jobboard.schemas.pagination import Page
from jobboard.services import ServiceRegistry


router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=Page[JobRead])
def list_jobs(
    title: str | None = Query(default=None),
    company_name: str | None = Query(default=None),
    posted_after: datetime | None = Query(default=None),
    page: int = Query(default=1),
    page_size: int | None = Query(default=None),
    _identity: RequestIdentity = Depends(get_current_identity),
    settings: Settings = Depends(get_app_settings),
    services: ServiceRegistry = Depends(get_services),
) -> Page[JobRead]:
    filters = JobFilters(
        title=title,
        company_name=company_name,
        posted_after=posted_after,
        page=page,
        page_size=page_size if page_size is not None else settings.default_page_size,
    )
    return services.jobs.list_jobs(filters)


@router.post("/{job_id}/apply", response_model=JobApplicationRead)
def apply_to_job(
    job_id: int,
    identity: RequestIdentity = Depends(require_applicant),
    services: ServiceRegistry = Depends(get_services),
) -> JobApplicationRead:
    return services.jobs.apply_to_job(job_id, identity.user_id)
