# database.py
from __future__ import annotations

import logging
import time

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker

from jobboard.config import Settings, build_sqlalchemy_db_url


logger = logging.getLogger(__name__)

Base = declarative_base()


class DatabaseConnectionError(RuntimeError):
    pass


def mask_db_url(db_url: str) -> str:
    try:
        return str(make_url(db_url).set(password="***"))
    except ArgumentError:
        return db_url


def _enable_sqlite_locking(engine: Engine) -> None:
    # pysqlite's own transaction handling defers BEGIN until the first write, which lets
    # two transactions read the same state before either writes. Take over BEGIN and use
    # BEGIN IMMEDIATE so writers serialize from the start of the transaction.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(settings: Settings) -> Engine:
    db_url = build_sqlalchemy_db_url(settings)
    kwargs: dict = {"future": True, "pool_pre_ping": True}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
    elif settings.db_isolation_level:
        kwargs["isolation_level"] = settings.db_isolation_level

    engine = create_engine(db_url, **kwargs)
    if db_url.startswith("sqlite"):
        _enable_sqlite_locking(engine)

    logger.info("SQLAlchemy ORM db_url=%s", mask_db_url(db_url))
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False, future=True)


def connect_with_retry(engine: Engine, *, retries: int = 5, backoff_seconds: float = 5.0) -> None:
    """Block until the store accepts a connection, retrying a bounded number of times."""
    last_exc: Exception | None = None

    for attempt in range(1, retries + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("db.connect ok attempt=%s", attempt)
            return
        except OperationalError as exc:
            last_exc = exc
            if attempt < retries:
                logger.warning("db.connect failed attempt=%s/%s retrying in %ss", attempt, retries, backoff_seconds)
                time.sleep(backoff_seconds)
                continue

    raise DatabaseConnectionError(
        f"Failed to connect to the database after {retries} attempts "
        f"({mask_db_url(str(engine.url))}). Last error: {type(last_exc).__name__}: {last_exc}"
    ) from last_exc


def init_database(engine: Engine, settings: Settings) -> None:
    connect_with_retry(
        engine,
        retries=settings.db_connect_retries,
        backoff_seconds=settings.db_connect_backoff_seconds,
    )
    if settings.auto_create_tables:
        # Import models so they register on Base.metadata.
        from jobboard import models  # noqa: F401

        Base.metadata.create_all(bind=engine)
