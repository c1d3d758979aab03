"""SQLAlchemy implementation of the lead store port"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ...domain.ingestion.ports import LeadStorePort
from ...models import Contact, InboundEmail
from ...models.contact import CONTACT_EMAIL_CONSTRAINT

logger = logging.getLogger(__name__)


def is_contact_email_conflict(error: IntegrityError) -> bool:
    """Check whether an IntegrityError is the contact email unique constraint.

    PostgreSQL reports the constraint name, SQLite reports table.column.
    """
    message = str(error.orig)
    return CONTACT_EMAIL_CONSTRAINT in message or "contact.email" in message


class SqlAlchemyLeadStore(LeadStorePort):
    """Lead store backed by a relational database.

    Every operation opens its own session and commits before returning, so
    reads never come from an identity map or an open transaction. Returned
    rows are detached from their session.
    """

    def __init__(self, session_factory: sessionmaker):
        """Initialize store with a session factory.

        Args:
            session_factory: Callable returning a new SQLAlchemy Session
        """
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        session = self.session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _detach(session: Session, instance):
        if instance is not None:
            session.refresh(instance)
            session.expunge(instance)
        return instance

    def get_inbound_email(self, inbound_email_id: UUID) -> Optional[InboundEmail]:
        with self._session() as session:
            inbound_email = session.get(InboundEmail, inbound_email_id)
            if inbound_email is not None:
                session.expunge(inbound_email)
            return inbound_email

    def create_contact_if_absent(self, name: str, email: str, phone: str) -> Tuple[Contact, bool]:
        with self._session() as session:
            contact = Contact(name=name, email=email, phone=phone)
            session.add(contact)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if not is_contact_email_conflict(e):
                    raise

                # Another delivery created this contact first
                existing = session.execute(
                    select(Contact).where(Contact.email == email)
                ).scalar_one_or_none()
                if existing is None:
                    raise
                logger.info(
                    f"Contact for {email} already exists (id={existing.id}), keeping first write",
                    extra={"contact_id": str(existing.id)},
                )
                session.expunge(existing)
                return existing, False

            return self._detach(session, contact), True

    def mark_processed(self, inbound_email_id: UUID, error: Optional[str]) -> InboundEmail:
        with self._session() as session:
            inbound_email = session.get(InboundEmail, inbound_email_id)
            if inbound_email is None:
                raise LookupError(f"Inbound email {inbound_email_id} disappeared during processing")

            inbound_email.processed = True
            inbound_email.error = error
            session.commit()
            return self._detach(session, inbound_email)

    def record_error(self, inbound_email_id: UUID, error: str) -> Optional[InboundEmail]:
        with self._session() as session:
            session.execute(
                update(InboundEmail)
                .where(
                    InboundEmail.id == inbound_email_id,
                    InboundEmail.processed.is_(False),
                )
                .values(error=error)
            )
            session.commit()
            inbound_email = session.get(InboundEmail, inbound_email_id)
            if inbound_email is not None:
                session.expunge(inbound_email)
            return inbound_email
