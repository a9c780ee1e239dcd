from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response, status

from jobboard.config import Settings
from jobboard.routers.dependencies import RequestIdentity, get_app_settings, get_services, require_admin
from jobboard.schemas.job import JobCreate, JobRead, JobUpdate, JobWithApplicants
from jobboard.schemas.pagination import Page
from jobboard.schemas.user import ApplicantRead
from jobboard.services import ServiceRegistry


router = APIRouter(prefix="/admin", tags=["admin"])

logger = logging.getLogger(__name__)


@router.post("/jobs", response_model=JobRead, status_code=status.HTTP_201_CREATED)
def create_job(
    payload: JobCreate,
    admin: RequestIdentity = Depends(require_admin),
    services: ServiceRegistry = Depends(get_services),
) -> JobRead:
    return services.jobs.create_job(payload, posted_by_id=admin.user_id)


@router.get("/jobs/{job_id}", response_model=JobWithApplicants)
def get_job_with_applicants(
    job_id: int,
    _admin: RequestIdentity = Depends(require_admin),
    services: ServiceRegistry = Depends(get_services),
) -> JobWithApplicants:
    return services.jobs.get_job_with_applicants(job_id)


@router.put("/jobs/{job_id}", response_model=JobRead)
def update_job(
    job_id: int,
    payload: JobUpdate,
    admin: RequestIdentity = Depends(require_admin),
    services: ServiceRegistry = Depends(get_services),
) -> JobRead:
    logger.info("admin.update_job admin_id=%s job_id=%s", admin.user_id, job_id)
    return services.jobs.update_job(job_id, payload)


@router.delete("/jobs/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job(
    job_id: int,
    admin: RequestIdentity = Depends(require_admin),
    services: ServiceRegistry = Depends(get_services),
) -> Response:
    logger.info("admin.delete_job admin_id=%s job_id=%s", admin.user_id, job_id)
    services.jobs.delete_job(job_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/applicants", response_model=Page[ApplicantRead])
def list_applicants(
    page: int = Query(default=1),
    page_size: int | None = Query(default=None),
    _admin: RequestIdentity = Depends(require_admin),
    settings: Settings = Depends(get_app_settings),
    services: ServiceRegistry = Depends(get_services),
) -> Page[ApplicantRead]:
    size = page_size if page_size is not None else settings.default_page_size
    return services.users.get_all_applicants(page, size)


@router.get("/applicants/{user_id}", response_model=ApplicantRead)
def get_applicant(
    user_id: int,
    _admin: RequestIdentity = Depends(require_admin),
    services: ServiceRegistry = Depends(get_services),
) -> ApplicantRead:
    return services.users.get_applicant_with_profile(user_id)
