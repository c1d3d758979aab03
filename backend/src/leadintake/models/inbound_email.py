"""InboundEmail model - Represents one received webhook delivery.

Each row is the durable, uninterpreted record of a forwarded email as it
arrived from the mail-parsing webhook. The ingestion pipeline reads
``raw_text`` and records its outcome in ``processed`` / ``error``.
"""

from typing import Dict, Optional, Set
from uuid import uuid4

from sqlalchemy import Column, Text, Boolean, DateTime, Uuid, Index, func, false
from sqlalchemy.orm import validates

from .base import Base


# Allowed transitions for the processed flag.
# None is the value of a not-yet-persisted row.
# True is terminal: a processed email is never reopened.
ALLOWED_TRANSITIONS: Dict[Optional[bool], Set[bool]] = {
    None: {False, True},
    False: {False, True},
    True: {True},
}


def can_transition(current: Optional[bool], new: bool) -> bool:
    """Validate if a processed-flag transition is allowed

    Example:
        >>> can_transition(False, True)
        True
        >>> can_transition(True, False)
        False
    """
    return new in ALLOWED_TRANSITIONS.get(current, set())


class InboundEmail(Base):
    """
    InboundEmail model - Tracks raw emails received from the webhook.

    State machine for ``processed``:
        False --(parse + store success)--> True
        False --(permanent parse failure)--> True
        False --(transient failure)--> False   (eligible for retry)

    ``error`` holds the last failure message and may be set in either state.
    """
    __tablename__ = "inbound_email"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    subject = Column(Text, nullable=False, server_default="")
    raw_text = Column(Text, nullable=False)
    processed = Column(Boolean, nullable=False, default=False, server_default=false())
    error = Column(Text, nullable=True)
    received_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        # Retry sweep looks up unprocessed rows oldest first
        Index("idx_inbound_email_processed_received", "processed", "received_at"),
    )

    @validates("processed")
    def validate_processed_transition(self, key, new_value):
        """
        Reject processed True -> False.

        Raises:
            ValueError: If transition is not allowed
        """
        current = getattr(self, key, None)
        if not can_transition(current, bool(new_value)):
            raise ValueError(
                f"Invalid processed transition: {current} → {new_value}. "
                f"A processed inbound email cannot be reopened"
            )
        return bool(new_value)

    def __repr__(self):
        return (
            f"<InboundEmail(id={self.id}, processed={self.processed}, "
            f"error={self.error!r})>"
        )
