"""Contact SQLAlchemy model"""

from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, Text, Integer, DateTime, Uuid, UniqueConstraint, Index, func

from .base import Base


# Referenced by the store when classifying IntegrityError on insert
CONTACT_EMAIL_CONSTRAINT = "uq_contact_email"


class ContactStatus(str, Enum):
    """Outreach stage of a contact, set manually through the contacts API."""
    NEW = "NEW"
    IN_SEQUENCE = "IN_SEQUENCE"
    RESPONDED = "RESPONDED"
    BOOKED = "BOOKED"
    CLOSED = "CLOSED"


class Contact(Base):
    """Contact model - the deduplicated lead record.

    ``email`` is the natural key. At most one contact exists per distinct
    email value, enforced by the ``uq_contact_email`` unique constraint.
    Rows are written once by the ingestion pipeline and never updated by it
    afterwards (first-write-wins). Manual reconciliation through the contacts
    API may edit or delete them.

    ``status`` is stored as plain text; valid values are enforced at the API
    boundary by ContactStatus.
    """
    __tablename__ = "contact"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)  # E.164
    status = Column(Text, nullable=False, default=ContactStatus.NEW.value, server_default=ContactStatus.NEW.value)
    sequence_day = Column(Integer, nullable=False, default=0, server_default="0")
    last_contacted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("email", name=CONTACT_EMAIL_CONSTRAINT),
        Index("idx_contact_status", "status"),
    )

    def __repr__(self):
        return f"<Contact(id={self.id}, email={self.email}, status={self.status})>"
