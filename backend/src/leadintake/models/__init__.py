"""SQLAlchemy Models for LeadIntake"""

from .base import Base
from .contact import Contact, ContactStatus
from .inbound_email import InboundEmail, can_transition

__all__ = [
    "Base",
    "Contact",
    "ContactStatus",
    "InboundEmail",
    "can_transition",
]
