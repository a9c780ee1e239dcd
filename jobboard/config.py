from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Load project-root .env early so both pydantic-settings and any direct os.getenv access
# see consistent values, even if the process CWD is not the repo root.
_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
_IN_TEST = (os.getenv("ENVIRONMENT") or "").lower() == "test" or bool(os.getenv("PYTEST_CURRENT_TEST"))
if _ENV_PATH.exists() and not _IN_TEST:
    load_dotenv(dotenv_path=_ENV_PATH, override=True)


def _parse_str_list(raw: Any) -> list[str]:
    if raw is None:
        return []

    items: list[Any]
    if isinstance(raw, (list, tuple, set)):
        items = list(raw)
    elif isinstance(raw, str):
        s = raw.strip()
        if not s:
            return []

        # Support JSON array string or comma-separated string.
        if s.startswith("["):
            try:
                parsed = json.loads(s)
                items = parsed if isinstance(parsed, list) else [parsed]
            except ValueError:
                items = [p.strip() for p in s.strip("[]").split(",")]
        else:
            items = [p.strip() for p in s.split(",")]
    else:
        items = [raw]

    return [str(item).strip() for item in items if item is not None and str(item).strip()]


class Settings(BaseSettings):
    app_name: str = Field(default="Job Board Backend")
    version: str = Field(default="0.1.0")
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Database configuration
    # DB_URL wins when set; otherwise development uses sqlite and other
    # environments build a MySQL URL from the discrete DB_* settings.
    db_url: str | None = Field(default=None, validation_alias="DB_URL")
    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=3306, validation_alias="DB_PORT")
    db_name: str = Field(default="jobboard", validation_alias="DB_NAME")
    db_user: str = Field(default="root", validation_alias="DB_USER")
    db_password: str = Field(default="password", validation_alias="DB_PASSWORD")
    db_charset: str = Field(default="utf8mb4", validation_alias="DB_CHARSET")
    # None keeps the driver default (READ COMMITTED on Postgres, REPEATABLE READ on MySQL).
    db_isolation_level: str | None = Field(default=None, validation_alias="DB_ISOLATION_LEVEL")
    db_connect_retries: int = Field(default=5, ge=1, validation_alias="DB_CONNECT_RETRIES")
    db_connect_backoff_seconds: float = Field(default=5.0, ge=0, validation_alias="DB_CONNECT_BACKOFF_SECONDS")
    auto_create_tables: bool = Field(default=True, validation_alias="AUTO_CREATE_TABLES")

    jwt_secret: str = Field(default="change-me")
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60)
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        validation_alias="CORS_ORIGINS",
    )

    # Cache configuration
    cache_backend: str = Field(default="memory", validation_alias="CACHE_BACKEND")
    cache_ttl_seconds: int = Field(default=300, ge=1, validation_alias="CACHE_TTL_SECONDS")
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")

    # Third-party resume parser. The API key is never hard-coded.
    resume_parser_url: str = Field(
        default="https://api.apilayer.com/resume_parser/upload",
        validation_alias="RESUME_PARSER_URL",
    )
    resume_parser_api_key: str = Field(default="", validation_alias="RESUME_PARSER_API_KEY")
    resume_parser_timeout_seconds: float = Field(default=30.0, validation_alias="RESUME_PARSER_TIMEOUT_SECONDS")
    resume_dir: Path = Field(default=Path("./data/resumes"), validation_alias="RESUME_DIR")
    max_resume_bytes: int = Field(default=5 * 1024 * 1024, validation_alias="MAX_RESUME_BYTES")
    resume_extensions: list[str] = Field(
        default_factory=lambda: [".pdf", ".docx", ".doc", ".txt"],
        validation_alias="RESUME_EXTENSIONS",
    )

    default_page_size: int = Field(default=10, ge=1, validation_alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=100, ge=1, validation_alias="MAX_PAGE_SIZE")

    # Admin accounts are normally created with scripts/create_admin.py.
    allow_admin_signup: bool = Field(default=False, validation_alias="ALLOW_ADMIN_SIGNUP")

    @field_validator("cors_origins", "resume_extensions", mode="before")
    @classmethod
    def _validate_str_list(cls, v: Any) -> list[str]:
        return _parse_str_list(v)

    @field_validator("cache_backend")
    @classmethod
    def _validate_cache_backend(cls, v: str) -> str:
        value = (v or "").strip().lower()
        allowed = {"memory", "redis"}
        if value not in allowed:
            raise ValueError(f"cache_backend must be one of {sorted(allowed)}")
        return value

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def build_sqlalchemy_db_url(settings: Settings) -> str:
    if settings.db_url:
        return settings.db_url

    if settings.environment.lower() in {"development", "test"}:
        return "sqlite:///./dev.db"

    # NOTE: passwords with special chars should go through DB_URL instead.
    return (
        f"mysql+pymysql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
        f"?charset={settings.db_charset}"
    )
