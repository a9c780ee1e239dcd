from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import sessionmaker

from jobboard.cache.base import Cache
from jobboard.config import Settings
from jobboard.services.job_service import JobService
from jobboard.services.resume_service import ResumeParserClient, ResumeService
from jobboard.services.user_service import UserService


@dataclass(frozen=True)
class ServiceRegistry:
    users: UserService
    jobs: JobService
    resumes: ResumeService
    cache: Cache


def build_services(
    settings: Settings,
    session_factory: sessionmaker,
    cache: Cache,
    *,
    parser: ResumeParserClient | None = None,
) -> ServiceRegistry:
    common = {"cache_ttl_seconds": settings.cache_ttl_seconds}
    if parser is None:
        parser = ResumeParserClient(
            settings.resume_parser_url,
            settings.resume_parser_api_key,
            timeout_sec=settings.resume_parser_timeout_seconds,
        )
    return ServiceRegistry(
        users=UserService(session_factory, cache, max_page_size=settings.max_page_size, **common),
        jobs=JobService(session_factory, cache, max_page_size=settings.max_page_size, **common),
        resumes=ResumeService(
            session_factory,
            cache,
            parser=parser,
            resume_dir=settings.resume_dir,
            max_bytes=settings.max_resume_bytes,
            allowed_extensions=settings.resume_extensions,
            **common,
        ),
        cache=cache,
    )


__all__ = ["JobService", "ResumeParserClient", "ResumeService", "ServiceRegistry", "UserService", "build_services"]
