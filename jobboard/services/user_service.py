# user_service.py
from __future__ import annotations

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from jobboard.cache.keys import APPLICANTS_LIST, JOBS_LIST, job_detail_namespace
from jobboard.errors import (
    ConflictError,
    EmailConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from jobboard.models.job import Job, JobApplication
from jobboard.models.user import Profile, User, UserType
from jobboard.schemas.pagination import Page
from jobboard.schemas.user import ApplicantRead, UserCreate, UserRead, UserUpdate
from jobboard.services.base import BaseService, page_offset, total_pages, validate_paging
from jobboard.utils.password_hash import (
    MAX_PASSWORD_BYTES,
    dummy_verify,
    hash_password,
    password_too_long,
    verify_password,
)


def _normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


class UserService(BaseService):
    def __init__(self, *args, max_page_size: int = 100, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._max_page_size = max_page_size

    def create_user(self, payload: UserCreate) -> UserRead:
        name = (payload.name or "").strip()
        email = _normalize_email(payload.email)
        if not name or not email or not payload.password:
            raise ValidationError("Name, email, and password are required")
        if password_too_long(payload.password):
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        password_hash = hash_password(payload.password)

        with self._transaction("create user") as session:
            user = User(
                name=name,
                email=email,
                address=payload.address,
                profile_headline=payload.profile_headline,
                user_type=payload.user_type,
                password_hash=password_hash,
            )
            session.add(user)
            try:
                session.flush()
            except IntegrityError as exc:
                # users.email is unique; a concurrent signup can still lose the race here.
                self._logger.info("user.create email conflict email=%s", email)
                raise EmailConflictError(email) from exc
            session.refresh(user)
            result = UserRead.model_validate(user)

        self._logger.info("user.created user_id=%s user_type=%s", result.id, result.user_type.value)
        self._invalidate(APPLICANTS_LIST)
        return result

    def validate_login(self, email: str, password: str) -> User:
        normalized = _normalize_email(email)
        with self._transaction("validate login") as session:
            user = session.scalar(select(User).where(User.email == normalized))

        if user is None:
            dummy_verify()
            self._logger.info("auth.login failed reason=unknown_email")
            raise InvalidCredentialsError("unknown_email")
        if password_too_long(password):
            # Stored passwords never exceed the bcrypt limit, so a longer one cannot match.
            dummy_verify()
            self._logger.info("auth.login failed reason=password_too_long user_id=%s", user.id)
            raise InvalidCredentialsError("wrong_password")
        if not verify_password(password, user.password_hash):
            self._logger.info("auth.login failed reason=wrong_password user_id=%s", user.id)
            raise InvalidCredentialsError("wrong_password")
        return user

    def get_user(self, user_id: int) -> UserRead:
        with self._transaction("get user") as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            return UserRead.model_validate(user)

    def get_all_applicants(self, page: int, page_size: int) -> Page[ApplicantRead]:
        validate_paging(page, page_size, max_page_size=self._max_page_size)

        def _load() -> Page[ApplicantRead]:
            with self._transaction("list applicants") as session:
                condition = User.user_type == UserType.APPLICANT
                total = int(session.scalar(select(func.count(User.id)).where(condition)) or 0)
                rows = session.scalars(
                    select(User)
                    .where(condition)
                    .options(selectinload(User.profile))
                    .order_by(User.id)
                    .offset(page_offset(page, page_size))
                    .limit(page_size)
                ).all()
                return Page[ApplicantRead](
                    data=[ApplicantRead.model_validate(row) for row in rows],
                    total=total,
                    page=page,
                    page_size=page_size,
                    total_pages=total_pages(total, page_size),
                )

        return self._read_through(APPLICANTS_LIST, Page[ApplicantRead], _load, page=page, page_size=page_size)

    def get_applicant_with_profile(self, user_id: int) -> ApplicantRead:
        with self._transaction("get applicant") as session:
            user = session.scalar(select(User).where(User.id == user_id).options(selectinload(User.profile)))
            if user is None:
                raise NotFoundError("Applicant not found")
            return ApplicantRead.model_validate(user)

    def update_user(self, user_id: int, payload: UserUpdate) -> UserRead:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise ValidationError("Name cannot be empty")
        if "email" in changes:
            changes["email"] = _normalize_email(changes["email"])
            if not changes["email"]:
                raise ValidationError("Email cannot be empty")

        with self._transaction("update user") as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            for field, value in changes.items():
                setattr(user, field, value)
            try:
                session.flush()
            except IntegrityError as exc:
                raise EmailConflictError(changes.get("email", "")) from exc
            result = UserRead.model_validate(user)
            job_ids = self._related_job_ids(session, user_id)

        self._logger.info("user.updated user_id=%s fields=%s", user_id, sorted(changes))
        self._invalidate_user_views(job_ids)
        return result

    def rotate_password(self, user_id: int, current_password: str, new_password: str) -> None:
        if not new_password:
            raise ValidationError("New password is required")
        if password_too_long(new_password):
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        with self._transaction("rotate password") as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            if not verify_password(current_password, user.password_hash):
                raise InvalidCredentialsError("wrong_password")
            user.password_hash = hash_password(new_password)

        self._logger.info("user.password_rotated user_id=%s", user_id)

    def delete_user(self, user_id: int) -> None:
        """Delete a user with their profile and applications.

        Each job the user applied to has its counter decremented in the same
        transaction that removes the application rows.
        """
        with self._transaction("delete user") as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            posted = session.scalar(select(func.count(Job.id)).where(Job.posted_by_id == user_id)) or 0
            if posted:
                raise ConflictError("User still owns posted jobs; delete them first")

            applied_job_ids = list(
                session.scalars(select(JobApplication.job_id).where(JobApplication.user_id == user_id)).all()
            )
            if applied_job_ids:
                session.execute(
                    update(Job)
                    .where(Job.id.in_(applied_job_ids))
                    .values(total_applications=Job.total_applications - 1)
                    .execution_options(synchronize_session=False)
                )
                session.execute(delete(JobApplication).where(JobApplication.user_id == user_id))
            session.execute(delete(Profile).where(Profile.applicant_id == user_id))
            session.delete(user)

        self._logger.info("user.deleted user_id=%s applications_removed=%s", user_id, len(applied_job_ids))
        self._invalidate_user_views(applied_job_ids)

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def _related_job_ids(session, user_id: int) -> list[int]:
        applied = session.scalars(select(JobApplication.job_id).where(JobApplication.user_id == user_id)).all()
        posted = session.scalars(select(Job.id).where(Job.posted_by_id == user_id)).all()
        return sorted(set(applied) | set(posted))

    def _invalidate_user_views(self, job_ids: list[int]) -> None:
        # User fields are embedded in applicant pages, job pages (poster) and job details.
        self._invalidate(APPLICANTS_LIST, JOBS_LIST, *(job_detail_namespace(job_id) for job_id in job_ids))
