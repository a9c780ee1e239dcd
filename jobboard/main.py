# main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jobboard.api.routes.health import router as health_router
from jobboard.cache import Cache, build_cache
from jobboard.config import Settings, get_settings
from jobboard.database import create_db_engine, create_session_factory, init_database
from jobboard.errors import AuthError, JobBoardError
from jobboard.logging_config import configure_logging
from jobboard.routers import auth, jobs, resume, users
from jobboard.routers.admin import router as admin_router
from jobboard.services import build_services
from jobboard.services.resume_service import ResumeParserClient


logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    cache: Cache | None = None,
    parser: ResumeParserClient | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    engine = create_db_engine(settings)
    session_factory = create_session_factory(engine)
    services = build_services(settings, session_factory, cache or build_cache(settings), parser=parser)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_database(engine, settings)
        logger.info("app.startup environment=%s cache=%s", settings.environment, settings.cache_backend)
        yield
        engine.dispose()

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    application.state.settings = settings
    application.state.engine = engine
    application.state.services = services

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(JobBoardError)
    async def _handle_job_board_error(request: Request, exc: JobBoardError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("request.failed path=%s error=%s detail=%s", request.url.path, type(exc).__name__, exc.message)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)

    application.include_router(health_router)

    application.include_router(auth.router, prefix="/auth", tags=["auth"])
    application.include_router(users.router, prefix="/users", tags=["users"])
    application.include_router(jobs.router)
    application.include_router(resume.router, prefix="/resume", tags=["resume"])
    application.include_router(admin_router)
    return application


app = create_app()
