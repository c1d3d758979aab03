"""
Ingestion ports (interfaces) following Hexagonal Architecture.

The processor only needs these four operations from persistence. Each one
runs in its own committed transaction, so reads always see durable state.
"""
from abc import ABC, abstractmethod
from typing import Optional, Tuple
from uuid import UUID

from ...models import Contact, InboundEmail


class LeadStorePort(ABC):
    """
    Port interface for the inbound email / contact store.
    """

    @abstractmethod
    def get_inbound_email(self, inbound_email_id: UUID) -> Optional[InboundEmail]:
        """Load an inbound email by id with a fresh committed read."""
        pass

    @abstractmethod
    def create_contact_if_absent(self, name: str, email: str, phone: str) -> Tuple[Contact, bool]:
        """
        Atomically create a contact keyed by email unless one exists.

        A unique-constraint violation on email is not an error: the existing
        contact is returned untouched.

        Returns:
            (contact, created) where created is False for a pre-existing row
        """
        pass

    @abstractmethod
    def mark_processed(self, inbound_email_id: UUID, error: Optional[str]) -> InboundEmail:
        """Set processed=True and overwrite error (None clears it)."""
        pass

    @abstractmethod
    def record_error(self, inbound_email_id: UUID, error: str) -> Optional[InboundEmail]:
        """
        Record error on an email that is still unprocessed.

        Leaves processed untouched. A row that another invocation has already
        marked processed is not modified.
        """
        pass
