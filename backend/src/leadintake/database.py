"""Database session factory and configuration.

Provides database connectivity and session management for the LeadIntake
backend. The engine is created once per process from ``DATABASE_URL``.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from .config import settings


def build_engine(database_url: str):
    """Create an engine with pool settings appropriate for the backend.

    Pool settings only apply to PostgreSQL (not SQLite). SQLite connections
    are shared across worker threads and wait on locks instead of failing.
    """
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": False,
    }

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
    else:
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    return create_engine(database_url, **engine_kwargs)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.query(Contact).all()

    Automatically commits on success, rolls back on exception.
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @app.get("/contacts")
        def list_contacts(db: Session = Depends(get_db)):
            return db.query(Contact).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
