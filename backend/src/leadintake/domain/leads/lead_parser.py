"""Lead parser for forwarded lead emails.

Parses a consistently formatted forwarded email body into structured lead
data. The parser is pure: no database, no I/O, same input gives the same
outcome.

Expected layout (format version 1)::

    Name: John Smith
    Phone: 555-123-4567
    Email: john@email.com

Labels are matched case-insensitively, one per line, in any order, with any
unrelated lines (forwarding banners, signatures) around them. The label set
is a contract with the forwarding rule: changing it is a breaking format
change and must bump LEAD_FORMAT_VERSION.

Phone normalization to E.164:

    555-123-4567    → +15551234567   (10 digits, +1 prepended)
    (555) 123-4567  → +15551234567
    1-555-123-4567  → +15551234567   (11 digits starting with 1)
    +15551234567    → +15551234567   (already E.164, unchanged)
    +447700900123   → +447700900123  (already E.164, unchanged)
"""

import re
from typing import Dict, Optional, Union

from .models import (
    LeadField,
    ParsedLead,
    MissingField,
    InvalidPhone,
    LeadParseOutcome,
)

LEAD_FORMAT_VERSION = 1

# Default country code for 10-digit numbers
DEFAULT_COUNTRY_CODE = "1"

# Whitespace around the colon must stay on the labeled line. Narrower than
# format version 1 as first written (\s*), which let an empty "Name:" take
# the next line as its value.
FIELD_PATTERNS: Dict[LeadField, re.Pattern] = {
    LeadField.NAME: re.compile(r"^Name[^\S\r\n]*:[^\S\r\n]*(.+)$", re.IGNORECASE | re.MULTILINE),
    LeadField.PHONE: re.compile(r"^Phone[^\S\r\n]*:[^\S\r\n]*(.+)$", re.IGNORECASE | re.MULTILINE),
    LeadField.EMAIL: re.compile(r"^Email[^\S\r\n]*:[^\S\r\n]*(.+)$", re.IGNORECASE | re.MULTILINE),
}

# ASCII only: fullwidth or Arabic-Indic digits are not E.164
E164_PATTERN = re.compile(r"^\+\d{7,15}$", re.ASCII)
NON_DIGIT_PATTERN = re.compile(r"\D", re.ASCII)


def extract_field(body: str, field: LeadField) -> Optional[str]:
    """Return the trimmed value of the first line labeled ``field``.

    Returns None when the label is absent or its value is blank.
    """
    match = FIELD_PATTERNS[field].search(body)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def normalize_phone(raw: str) -> Union[str, InvalidPhone]:
    """Normalize a phone string to E.164 format.

    Accepts:
        - Already-valid E.164  (+15551234567, +447700900123)
        - US 10-digit local    (555-123-4567, (555) 123-4567, 5551234567)
        - US 11-digit with 1   (15551234567, 1-555-123-4567)

    Returns:
        The E.164 string, or InvalidPhone if the digit count matches no
        known pattern.
    """
    if E164_PATTERN.fullmatch(raw):
        return raw

    digits = NON_DIGIT_PATTERN.sub("", raw)

    if len(digits) == 10:
        return f"+{DEFAULT_COUNTRY_CODE}{digits}"

    if len(digits) == 11 and digits.startswith(DEFAULT_COUNTRY_CODE):
        return f"+{digits}"

    return InvalidPhone(raw=raw, digit_count=len(digits))


def parse_lead(body: str) -> LeadParseOutcome:
    """Extract name, phone and email from a forwarded email body.

    All fields are extracted before anything is reported, but only the first
    missing one (Name, Phone, Email order) is returned so the error message
    stays deterministic.

    Returns:
        ParsedLead on success, MissingField or InvalidPhone otherwise.
    """
    values = {field: extract_field(body, field) for field in LeadField}

    for field in LeadField:
        if values[field] is None:
            return MissingField(field=field)

    phone = normalize_phone(values[LeadField.PHONE])
    if isinstance(phone, InvalidPhone):
        return phone

    return ParsedLead(
        name=values[LeadField.NAME],
        phone=phone,
        email=values[LeadField.EMAIL],
    )
