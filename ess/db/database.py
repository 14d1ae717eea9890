"""
Database engine and session management.

Builds the SQLAlchemy engine from environment configuration. Under pytest,
without an explicit database, an in-memory SQLite database is used.
"""
import os
import sys

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ess.utils.settings import get_settings


def _is_pytest_runtime() -> bool:
    """Best-effort detection that we're executing under pytest."""
    if os.getenv("PYTEST_RUNNING") == "1":
        return True
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    return "pytest" in sys.modules


def build_engine(url: str):
    """Create an engine with the SQLite options the service relies on.

    Read hydration runs on worker threads, so SQLite connections must be
    shareable across threads.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            # In-memory SQLite with StaticPool so the schema persists across connections
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def _resolve_database_url() -> str:
    url = get_settings().database_url
    if url:
        return url
    if _is_pytest_runtime():
        return "sqlite+pysqlite:///:memory:"
    raise ValueError(
        "Missing database configuration: set DATABASE_URL or "
        "POSTGRES_USER/POSTGRES_PASSWORD/POSTGRES_HOST/POSTGRES_PORT/POSTGRES_DB"
    )


DATABASE_URL = _resolve_database_url()

engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency to get a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
