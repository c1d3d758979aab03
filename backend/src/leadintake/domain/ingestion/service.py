"""Inbound email processing pipeline - core business logic.

Applies the lead parser to one stored inbound email and records the
outcome, safely under at-least-once webhook delivery:

1. Load the inbound email (fresh committed read)
2. Return immediately if it is already processed
3. Parse the body into a contact candidate
4. Create the contact if no contact has that email (first-write-wins)
5. Mark the email processed, or record why it failed

Duplicate deliveries are absorbed by step 2 and by the contact email unique
constraint, which is the only arbiter of "does this contact exist". Parse
failures are permanent and close the email out; everything else is treated
as transient and leaves it open for retry. Only InboundEmailNotFoundError
escapes process().
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from ...models import Contact, InboundEmail
from ..leads import (
    ParsedLead,
    ProcessingErrorKind,
    InboundEmailNotFoundError,
    classify_parse_failure,
    is_retryable,
    parse_lead,
)
from .ports import LeadStorePort

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """
    Outcome of one process() call.

    Attributes:
        inbound_email: Inbound email row as stored after this call
        contact: Created or pre-existing contact, None if nothing was stored
        error_kind: Classified failure, None on success or already-processed
        error: Failure message, None on success
    """
    inbound_email: InboundEmail
    contact: Optional[Contact] = None
    error_kind: Optional[ProcessingErrorKind] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error_kind is None

    @property
    def retryable(self) -> bool:
        return self.error_kind is not None and is_retryable(self.error_kind)


class InboundEmailProcessor:
    """
    Runs the lead ingestion pipeline for stored inbound emails.

    The store is acquired once at process startup (API lifespan, worker boot,
    CLI entry point) and passed in. The processor holds no other state, so a
    single instance is safe to share across concurrent calls.
    """

    def __init__(self, store: LeadStorePort):
        self.store = store

    def process(self, inbound_email_id: UUID) -> ProcessResult:
        """
        Process one inbound email exactly-once-effectively.

        Args:
            inbound_email_id: Id of a stored inbound email

        Returns:
            ProcessResult. Parse and store failures are reported here, never
            raised.

        Raises:
            InboundEmailNotFoundError: If the id does not exist
        """
        inbound_email = self.store.get_inbound_email(inbound_email_id)
        if inbound_email is None:
            raise InboundEmailNotFoundError(inbound_email_id)

        if inbound_email.processed:
            logger.info(
                f"Inbound email {inbound_email_id} already processed, skipping",
                extra={"inbound_email_id": str(inbound_email_id)},
            )
            return ProcessResult(inbound_email=inbound_email)

        try:
            outcome = parse_lead(inbound_email.raw_text)

            if not isinstance(outcome, ParsedLead):
                return self._close_out_parse_failure(inbound_email_id, outcome)

            contact, created = self.store.create_contact_if_absent(
                name=outcome.name,
                email=outcome.email,
                phone=outcome.phone,
            )
            updated = self.store.mark_processed(inbound_email_id, error=None)

        except Exception as e:
            return self._record_transient_failure(inbound_email, e)

        logger.info(
            f"Processed inbound email {inbound_email_id}: "
            f"{'created' if created else 'matched existing'} contact {contact.id}",
            extra={
                "inbound_email_id": str(inbound_email_id),
                "contact_id": str(contact.id),
            },
        )
        return ProcessResult(inbound_email=updated, contact=contact)

    def _close_out_parse_failure(self, inbound_email_id: UUID, failure) -> ProcessResult:
        """Mark a malformed email processed so the webhook stops retrying it."""
        kind = classify_parse_failure(failure)
        updated = self.store.mark_processed(inbound_email_id, error=failure.message)

        logger.warning(
            f"Inbound email {inbound_email_id} could not be parsed ({kind.value}): "
            f"{failure.message}. Flagged for manual review.",
            extra={"inbound_email_id": str(inbound_email_id)},
        )
        return ProcessResult(
            inbound_email=updated,
            error_kind=kind,
            error=failure.message,
        )

    def _record_transient_failure(self, inbound_email: InboundEmail, exc: Exception) -> ProcessResult:
        """Record the error and leave the email open for a later retry."""
        message = str(exc) or type(exc).__name__
        logger.error(
            f"Processing inbound email {inbound_email.id} failed, will be retried: {message}",
            exc_info=exc,
            extra={"inbound_email_id": str(inbound_email.id)},
        )

        try:
            updated = self.store.record_error(inbound_email.id, message)
        except Exception as record_error:
            logger.error(
                f"Failed to record error on inbound email {inbound_email.id}: {record_error}",
                extra={"inbound_email_id": str(inbound_email.id)},
            )
            updated = None

        return ProcessResult(
            inbound_email=updated if updated is not None else inbound_email,
            error_kind=ProcessingErrorKind.TRANSIENT_STORE_FAILURE,
            error=message,
        )
