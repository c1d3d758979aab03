"""Persistence of validated webhook payloads."""

from sqlalchemy.orm import Session

from ..models import InboundEmail
from .schemas import InboundEmailPayload


def save_inbound_email(db: Session, payload: InboundEmailPayload) -> InboundEmail:
    """Store the raw email unprocessed and return the committed row.

    Knows nothing about HTTP, so it can be reused from scripts and workers.
    """
    inbound_email = InboundEmail(
        subject=payload.subject,
        raw_text=payload.raw_text,
        processed=False,
    )
    db.add(inbound_email)
    db.commit()
    db.refresh(inbound_email)
    return inbound_email
