# job_service.py
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from jobboard.cache.keys import JOBS_LIST, job_detail_namespace
from jobboard.errors import AlreadyAppliedError, NotFoundError, ValidationError
from jobboard.models.job import Job, JobApplication
from jobboard.models.user import User, UserType
from jobboard.schemas.job import (
    JobApplicationRead,
    JobCreate,
    JobFilters,
    JobRead,
    JobUpdate,
    JobWithApplicants,
)
from jobboard.schemas.pagination import Page
from jobboard.services.base import BaseService, page_offset, total_pages, validate_paging


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    # Naive datetimes are taken to be UTC already.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _clean(value: str | None) -> str:
    return (value or "").strip()


class JobService(BaseService):
    def __init__(self, *args, max_page_size: int = 100, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._max_page_size = max_page_size

    # -- reads -------------------------------------------------------------

    def list_jobs(self, filters: JobFilters) -> Page[JobRead]:
        validate_paging(filters.page, filters.page_size, max_page_size=self._max_page_size)
        title = _clean(filters.title) or None
        company_name = _clean(filters.company_name) or None
        posted_after = _as_utc(filters.posted_after)

        conditions = []
        if title:
            conditions.append(Job.title.icontains(title, autoescape=True))
        if company_name:
            conditions.append(Job.company_name.icontains(company_name, autoescape=True))
        if posted_after is not None:
            conditions.append(Job.posted_on >= posted_after)

        def _load() -> Page[JobRead]:
            with self._transaction("list jobs") as session:
                total = int(session.scalar(select(func.count(Job.id)).where(*conditions)) or 0)
                rows = session.scalars(
                    select(Job)
                    .where(*conditions)
                    .options(selectinload(Job.posted_by))
                    .order_by(Job.id)
                    .offset(page_offset(filters.page, filters.page_size))
                    .limit(filters.page_size)
                ).all()
                return Page[JobRead](
                    data=[JobRead.model_validate(row) for row in rows],
                    total=total,
                    page=filters.page,
                    page_size=filters.page_size,
                    total_pages=total_pages(total, filters.page_size),
                )

        return self._read_through(
            JOBS_LIST,
            Page[JobRead],
            _load,
            title=title,
            company_name=company_name,
            posted_after=posted_after,
            page=filters.page,
            page_size=filters.page_size,
        )

    def get_job_with_applicants(self, job_id: int) -> JobWithApplicants:
        def _load() -> JobWithApplicants:
            with self._transaction("get job") as session:
                job = session.scalar(
                    select(Job)
                    .where(Job.id == job_id)
                    .options(selectinload(Job.posted_by), selectinload(Job.applicants))
                )
                if job is None:
                    raise NotFoundError("Job not found")
                return JobWithApplicants.model_validate(job)

        return self._read_through(job_detail_namespace(job_id), JobWithApplicants, _load)

    # -- writes ------------------------------------------------------------

    def create_job(self, payload: JobCreate, posted_by_id: int) -> JobRead:
        title = _clean(payload.title)
        description = _clean(payload.description)
        if not title or not description:
            raise ValidationError("Job title and description are required")

        with self._transaction("create job") as session:
            poster = session.get(User, posted_by_id)
            if poster is None:
                raise NotFoundError("Posting user not found")
            if poster.user_type != UserType.ADMIN:
                raise ValidationError("Only admins can post jobs")

            job = Job(
                title=title,
                description=description,
                company_name=_clean(payload.company_name),
                posted_on=_as_utc(payload.posted_on) or _utc_now(),
                total_applications=0,
                posted_by_id=poster.id,
            )
            session.add(job)
            session.flush()
            result = JobRead.model_validate(job)

        self._logger.info("job.created job_id=%s posted_by=%s", result.id, posted_by_id)
        # Any cached page may now be missing this job.
        self._invalidate(JOBS_LIST)
        return result

    def apply_to_job(self, job_id: int, user_id: int) -> JobApplicationRead:
        """Record that `user_id` applied to `job_id`, exactly once.

        The job row is locked for the whole check-insert-increment sequence (SQLite
        gets the same effect from BEGIN IMMEDIATE), and the (job_id, user_id) unique
        constraint rejects a duplicate that slips past the check.
        """
        with self._transaction("apply to job") as session:
            job = session.scalar(select(Job).where(Job.id == job_id).with_for_update())
            if job is None:
                raise NotFoundError("Job not found")
            if session.get(User, user_id) is None:
                raise NotFoundError("User not found")

            if self._has_applied(session, job_id, user_id):
                raise AlreadyAppliedError(job_id, user_id)

            application = JobApplication(job_id=job_id, user_id=user_id, applied_at=_utc_now())
            session.add(application)
            try:
                session.flush()
            except IntegrityError as exc:
                raise AlreadyAppliedError(job_id, user_id) from exc

            session.execute(
                update(Job)
                .where(Job.id == job_id)
                .values(total_applications=Job.total_applications + 1)
                .execution_options(synchronize_session=False)
            )
            total = int(session.scalar(select(Job.total_applications).where(Job.id == job_id)))
            result = JobApplicationRead(
                job_id=job_id,
                user_id=user_id,
                total_applications=total,
                applied_at=application.applied_at,
            )

        self._logger.info("job.apply job_id=%s user_id=%s total=%s", job_id, user_id, total)
        self._invalidate(job_detail_namespace(job_id), JOBS_LIST)
        return result

    def update_job(self, job_id: int, payload: JobUpdate) -> JobRead:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        for field in ("title", "description"):
            if field in changes and not _clean(changes[field]):
                raise ValidationError(f"Job {field} cannot be empty")

        with self._transaction("update job") as session:
            job = session.scalar(select(Job).where(Job.id == job_id).options(selectinload(Job.posted_by)))
            if job is None:
                raise NotFoundError("Job not found")
            for field, value in changes.items():
                setattr(job, field, _clean(value))
            session.flush()
            result = JobRead.model_validate(job)

        self._logger.info("job.updated job_id=%s fields=%s", job_id, sorted(changes))
        # List pages embed job fields, so they go stale together with the detail entry.
        self._invalidate(job_detail_namespace(job_id), JOBS_LIST)
        return result

    def delete_job(self, job_id: int) -> None:
        with self._transaction("delete job") as session:
            job = session.get(Job, job_id)
            if job is None:
                raise NotFoundError("Job not found")
            session.execute(delete(JobApplication).where(JobApplication.job_id == job_id))
            session.delete(job)

        self._logger.info("job.deleted job_id=%s", job_id)
        self._invalidate(job_detail_namespace(job_id), JOBS_LIST)

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def _has_applied(session: Session, job_id: int, user_id: int) -> bool:
        existing = session.scalar(
            select(JobApplication.id).where(
                JobApplication.job_id == job_id,
                JobApplication.user_id == user_id,
            )
        )
        return existing is not None

    def count_applications(self, job_id: int) -> int:
        with self._transaction("count applications") as session:
            return int(
                session.scalar(select(func.count(JobApplication.id)).where(JobApplication.job_id == job_id)) or 0
            )
