from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import func, select

from jobboard.cache.keys import APPLICANTS_LIST
from jobboard.errors import (
    ConflictError,
    EmailConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from jobboard.models.job import Job
from jobboard.models.user import User, UserType
from jobboard.schemas.job import JobCreate, JobFilters
from jobboard.schemas.user import UserCreate, UserUpdate
from jobboard.services.base import page_offset, total_pages


@pytest.mark.parametrize(
    ("total", "page_size", "expected"),
    [(0, 10, 1), (1, 10, 1), (10, 3, 4), (9, 3, 3), (10, 10, 1), (11, 10, 2)],
)
def test_total_pages(total: int, page_size: int, expected: int) -> None:
    assert total_pages(total, page_size) == expected


def test_page_offset() -> None:
    assert page_offset(1, 10) == 0
    assert page_offset(3, 4) == 8


def test_password_is_hashed_and_round_trips(services, engine, make_user) -> None:
    created = make_user(email="login@example.com", password="CorrectHorse1")

    with engine.connect() as conn:
        stored = conn.scalar(select(User.password_hash).where(User.id == created.id))
    assert stored != "CorrectHorse1"
    assert stored.startswith("$2")

    user = services.users.validate_login(" LOGIN@example.com ", "CorrectHorse1")
    assert user.id == created.id

    with pytest.raises(InvalidCredentialsError) as wrong:
        services.users.validate_login("login@example.com", "CorrectHorse2")
    assert wrong.value.reason == "wrong_password"

    with pytest.raises(InvalidCredentialsError) as unknown:
        services.users.validate_login("nobody@example.com", "CorrectHorse1")
    assert unknown.value.reason == "unknown_email"
    assert str(unknown.value) == str(wrong.value)


def test_duplicate_email_is_conflict(services, engine, make_user) -> None:
    make_user(email="same@example.com")
    with pytest.raises(EmailConflictError):
        make_user(email="Same@Example.com")

    with engine.connect() as conn:
        count = conn.scalar(select(func.count(User.id)).where(User.email == "same@example.com"))
    assert count == 1


def test_concurrent_signups_with_same_email(services, engine) -> None:
    attempts = 4
    barrier = threading.Barrier(attempts)

    def _signup(_):
        barrier.wait()
        try:
            services.users.create_user(UserCreate(name="Racer", email="race@example.com", password="pw123456"))
            return "ok"
        except EmailConflictError:
            return "conflict"

    with ThreadPoolExecutor(max_workers=attempts) as pool:
        outcomes = list(pool.map(_signup, range(attempts)))

    assert outcomes.count("ok") == 1
    with engine.connect() as conn:
        assert conn.scalar(select(func.count(User.id)).where(User.email == "race@example.com")) == 1


@pytest.mark.parametrize(
    "fields",
    [
        {"name": "", "email": "a@example.com", "password": "pw"},
        {"name": "A", "email": "", "password": "pw"},
        {"name": "A", "email": "a@example.com", "password": ""},
        {"name": "   ", "email": "a@example.com", "password": "pw"},
    ],
)
def test_create_user_requires_fields(services, fields) -> None:
    with pytest.raises(ValidationError):
        services.users.create_user(UserCreate(**fields))


def test_applicant_listing_is_cached_and_invalidated(services, cache, make_user) -> None:
    make_user(UserType.ADMIN, email="admin@example.com")
    first = make_user()
    make_user()

    page = services.users.get_all_applicants(1, 10)
    assert page.total == 2
    assert [u.id for u in page.data][0] == first.id
    assert all(u.user_type == UserType.APPLICANT for u in page.data)
    assert len(cache) == 1
    generation = cache.generation(APPLICANTS_LIST)

    make_user()
    assert cache.generation(APPLICANTS_LIST) == generation + 1
    assert services.users.get_all_applicants(1, 10).total == 3


def test_applicant_pages_are_disjoint(services, make_user) -> None:
    created = [make_user().id for _ in range(7)]

    pages = [services.users.get_all_applicants(page, 3) for page in (1, 2, 3)]

    assert [p.total_pages for p in pages] == [3, 3, 3]
    seen = [u.id for p in pages for u in p.data]
    assert seen == created
    assert services.users.get_all_applicants(4, 3).data == []


def test_get_applicant_with_profile(services, make_user) -> None:
    user = make_user()
    services.resumes.process_resume(user.id, "cv.pdf", b"resume")

    applicant = services.users.get_applicant_with_profile(user.id)
    assert applicant.profile is not None
    assert applicant.profile.skills == "Python, SQL"

    with pytest.raises(NotFoundError):
        services.users.get_applicant_with_profile(4242)


def test_update_user_rejects_taken_email(services, make_user) -> None:
    make_user(email="taken@example.com")
    other = make_user(email="other@example.com")

    with pytest.raises(EmailConflictError):
        services.users.update_user(other.id, UserUpdate(email="taken@example.com"))
    with pytest.raises(ValidationError):
        services.users.update_user(other.id, UserUpdate(name="  "))

    renamed = services.users.update_user(other.id, UserUpdate(name="Renamed"))
    assert renamed.name == "Renamed"
    assert renamed.email == "other@example.com"


def test_update_poster_invalidates_job_views(services, cache, make_user) -> None:
    admin = make_user(UserType.ADMIN, name="Old Name")
    job = services.jobs.create_job(JobCreate(title="t", description="d"), admin.id)
    services.jobs.get_job_with_applicants(job.id)
    services.jobs.list_jobs(JobFilters())

    services.users.update_user(admin.id, UserUpdate(name="New Name"))

    assert services.jobs.get_job_with_applicants(job.id).posted_by.name == "New Name"
    assert services.jobs.list_jobs(JobFilters()).data[0].posted_by.name == "New Name"


def test_delete_user_keeps_counters_consistent(services, engine, make_user) -> None:
    admin = make_user(UserType.ADMIN)
    job = services.jobs.create_job(JobCreate(title="t", description="d"), admin.id)
    leaving = make_user()
    staying = make_user()
    services.jobs.apply_to_job(job.id, leaving.id)
    services.jobs.apply_to_job(job.id, staying.id)
    services.resumes.process_resume(leaving.id, "cv.pdf", b"resume")

    services.users.delete_user(leaving.id)

    with engine.connect() as conn:
        assert conn.scalar(select(Job.total_applications).where(Job.id == job.id)) == 1
    assert services.jobs.count_applications(job.id) == 1
    detail = services.jobs.get_job_with_applicants(job.id)
    assert [a.id for a in detail.applicants] == [staying.id]
    with pytest.raises(NotFoundError):
        services.users.get_user(leaving.id)


def test_delete_admin_with_jobs_is_conflict(services, make_user) -> None:
    admin = make_user(UserType.ADMIN)
    services.jobs.create_job(JobCreate(title="t", description="d"), admin.id)

    with pytest.raises(ConflictError):
        services.users.delete_user(admin.id)


def test_rotate_password(services, make_user) -> None:
    user = make_user(email="rot@example.com", password="before123")

    with pytest.raises(InvalidCredentialsError):
        services.users.rotate_password(user.id, "wrong", "after123")
    with pytest.raises(ValidationError):
        services.users.rotate_password(user.id, "before123", "")

    services.users.rotate_password(user.id, "before123", "after123")
    assert services.users.validate_login("rot@example.com", "after123").id == user.id
    with pytest.raises(InvalidCredentialsError):
        services.users.validate_login("rot@example.com", "before123")


def test_passwords_beyond_bcrypt_limit_are_rejected(services, make_user) -> None:
    base = "p" * 72
    with pytest.raises(ValidationError):
        make_user(email="long@example.com", password=base + "extra")
    # Multi-byte characters count by their encoded size.
    with pytest.raises(ValidationError):
        make_user(email="wide@example.com", password="é" * 37)

    user = make_user(email="edge@example.com", password=base)
    assert services.users.validate_login("edge@example.com", base).id == user.id
    with pytest.raises(InvalidCredentialsError):
        services.users.validate_login("edge@example.com", base + "anything")

    with pytest.raises(ValidationError):
        services.users.rotate_password(user.id, base, base + "x")
