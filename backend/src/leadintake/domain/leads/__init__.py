"""Domain layer for lead extraction.

Pure parsing of forwarded lead emails into structured contact data, plus the
error taxonomy used by the ingestion pipeline.
"""

from .models import (
    LeadField,
    ParsedLead,
    MissingField,
    InvalidPhone,
    LeadParseFailure,
    LeadParseOutcome,
)
from .lead_parser import parse_lead, normalize_phone, LEAD_FORMAT_VERSION
from .errors import (
    ProcessingErrorKind,
    InboundEmailNotFoundError,
    classify_parse_failure,
    is_retryable,
    marks_processed,
)

__all__ = [
    "LeadField",
    "ParsedLead",
    "MissingField",
    "InvalidPhone",
    "LeadParseFailure",
    "LeadParseOutcome",
    "parse_lead",
    "normalize_phone",
    "LEAD_FORMAT_VERSION",
    "ProcessingErrorKind",
    "InboundEmailNotFoundError",
    "classify_parse_failure",
    "is_retryable",
    "marks_processed",
]
