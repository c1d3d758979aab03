"""Pytest fixtures for ingestion testing.

Provides reusable test fixtures for:
- A fresh SQLite database file per test (tables created from metadata)
- The SQLAlchemy lead store and inbound email processor
- Inbound email rows and lead email bodies
- A FastAPI test client wired to the per-test database

Usage:
    def test_processing(processor, make_inbound_email, lead_body):
        inbound_email = make_inbound_email(lead_body())
        result = processor.process(inbound_email.id)
        assert result.succeeded
"""

import os
import sys
import tempfile
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite:///{Path(tempfile.gettempdir()) / 'leadintake-test.db'}",
)
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select, func
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from leadintake.database import build_engine
from leadintake.domain.ingestion import InboundEmailProcessor
from leadintake.infrastructure.repositories import SqlAlchemyLeadStore
from leadintake.models import Base, Contact, InboundEmail


@pytest.fixture(scope="function")
def engine(tmp_path):
    """Create a fresh database for each test.

    A file (not :memory:) so that concurrent tests see one shared database
    across connections.
    """
    engine = build_engine(f"sqlite:///{tmp_path / 'leadintake.db'}")
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def store(session_factory) -> SqlAlchemyLeadStore:
    return SqlAlchemyLeadStore(session_factory)


@pytest.fixture(scope="function")
def processor(store) -> InboundEmailProcessor:
    return InboundEmailProcessor(store)


@pytest.fixture
def lead_body():
    """Build a forwarded lead email body (format version 1)."""
    def _lead_body(name="John Smith", phone="555-123-4567", email="john@email.com"):
        return f"Name: {name}\nPhone: {phone}\nEmail: {email}"
    return _lead_body


@pytest.fixture
def make_inbound_email(db_session: Session):
    """Insert an inbound email row and return it."""
    def _make_inbound_email(raw_text, subject="New lead", processed=False, error=None):
        inbound_email = InboundEmail(
            subject=subject,
            raw_text=raw_text,
            processed=processed,
            error=error,
        )
        db_session.add(inbound_email)
        db_session.commit()
        db_session.refresh(inbound_email)
        return inbound_email
    return _make_inbound_email


@pytest.fixture
def contact_count(session_factory):
    """Count contacts with a fresh session (never a stale identity map)."""
    def _contact_count(email=None):
        session = session_factory()
        try:
            query = select(func.count()).select_from(Contact)
            if email is not None:
                query = query.where(Contact.email == email)
            return session.execute(query).scalar_one()
        finally:
            session.close()
    return _contact_count


@pytest.fixture(scope="function")
def client(session_factory, processor):
    """Create a test client bound to the per-test database.

    The lifespan is not run; the processor comes from the dependency
    override instead.
    """
    from leadintake.main import app
    from leadintake.database import get_db
    from leadintake.dependencies import get_processor

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_processor] = lambda: processor

    yield TestClient(app)

    app.dependency_overrides.clear()
