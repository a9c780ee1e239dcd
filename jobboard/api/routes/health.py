from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from jobboard.database import mask_db_url


router = APIRouter(prefix="/health", tags=["health"])


class HealthStatus(BaseModel):
    status: str
    timestamp: datetime


class DBHealthStatus(BaseModel):
    orm: str
    cache: str
    cache_backend: str
    orm_db_url: str
    timestamp: datetime


@router.get("/", response_model=HealthStatus, summary="API heartbeat")
def health_check() -> HealthStatus:
    return HealthStatus(status="ok", timestamp=datetime.now(timezone.utc))


@router.get("/db", response_model=DBHealthStatus, summary="Store and cache connectivity checks")
def db_health_check(request: Request) -> DBHealthStatus:
    now = datetime.now(timezone.utc)
    engine = request.app.state.engine
    settings = request.app.state.settings

    orm_status = "ok"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        orm_status = "error"

    cache_status = "ok" if request.app.state.services.cache.ping() else "error"

    return DBHealthStatus(
        orm=orm_status,
        cache=cache_status,
        cache_backend=settings.cache_backend,
        orm_db_url=mask_db_url(engine.url.render_as_string(hide_password=False)),
        timestamp=now,
    )
