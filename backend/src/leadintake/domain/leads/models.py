"""Lead Extraction Domain Models

Result variants returned by the lead parser. Parsing never raises: every
outcome is one of ParsedLead, MissingField or InvalidPhone, so callers must
handle each case explicitly.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class LeadField(str, Enum):
    """Labeled fields of the forwarded lead email, in reporting order."""
    NAME = "Name"
    PHONE = "Phone"
    EMAIL = "Email"


@dataclass(frozen=True)
class ParsedLead:
    """Structured contact candidate extracted from an email body.

    name and email are the trimmed values as written; phone is E.164.
    """
    name: str
    phone: str
    email: str


@dataclass(frozen=True)
class MissingField:
    """A required label was absent or its value was empty."""
    field: LeadField

    @property
    def message(self) -> str:
        return f'Could not extract "{self.field.value}" from email body'


@dataclass(frozen=True)
class InvalidPhone:
    """The phone value could not be reduced to E.164."""
    raw: str
    digit_count: int

    @property
    def message(self) -> str:
        return (
            f'Phone "{self.raw}" could not be normalised to E.164 '
            f"({self.digit_count} digits). Expected a 10-digit US number, "
            f"an 11-digit number starting with 1, or E.164 (+...)."
        )


LeadParseFailure = Union[MissingField, InvalidPhone]
LeadParseOutcome = Union[ParsedLead, MissingField, InvalidPhone]
