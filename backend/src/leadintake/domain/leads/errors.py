"""Error taxonomy for inbound lead processing.

Every failure the ingestion pipeline can hit falls in one of these kinds.
The kind decides what happens to the inbound email row:

    MISSING_FIELD            permanent  processed=True,  error recorded
    INVALID_PHONE            permanent  processed=True,  error recorded
    TRANSIENT_STORE_FAILURE  retryable  processed=False, error recorded

A missing inbound email is not a data problem but a caller contract
violation, so it is raised as InboundEmailNotFoundError instead.
"""

from enum import Enum

from .models import MissingField, InvalidPhone, LeadParseFailure


class ProcessingErrorKind(str, Enum):
    """Classified outcome of a failed processing attempt."""
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_PHONE = "INVALID_PHONE"
    TRANSIENT_STORE_FAILURE = "TRANSIENT_STORE_FAILURE"


PERMANENT_ERROR_KINDS = frozenset({
    ProcessingErrorKind.MISSING_FIELD,
    ProcessingErrorKind.INVALID_PHONE,
})


class InboundEmailNotFoundError(LookupError):
    """Raised when processing is requested for an unknown inbound email id."""

    def __init__(self, inbound_email_id):
        self.inbound_email_id = inbound_email_id
        super().__init__(f"Inbound email {inbound_email_id} does not exist")


def classify_parse_failure(failure: LeadParseFailure) -> ProcessingErrorKind:
    """Map a parser failure variant to its error kind."""
    if isinstance(failure, MissingField):
        return ProcessingErrorKind.MISSING_FIELD
    if isinstance(failure, InvalidPhone):
        return ProcessingErrorKind.INVALID_PHONE
    raise TypeError(f"Not a lead parse failure: {failure!r}")


def is_retryable(kind: ProcessingErrorKind) -> bool:
    """True if a later attempt may succeed."""
    return kind not in PERMANENT_ERROR_KINDS


def marks_processed(kind: ProcessingErrorKind) -> bool:
    """True if the failure is terminal and the email must be marked processed.

    Malformed bodies never parse on retry, so they are closed out to stop the
    webhook retry loop and left for manual triage.
    """
    return kind in PERMANENT_ERROR_KINDS
