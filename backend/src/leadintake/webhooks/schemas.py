"""Pydantic schemas for the inbound email webhook.

SendGrid Inbound Parse posts form data, not JSON. Field notes:
    from     - "Name <email>" or plain address from the SMTP envelope
    to       - Recipient (the inbound parse domain address)
    subject  - Subject line; empty string if missing
    text     - Plain-text body; optional (HTML-only emails omit it)
    html     - HTML body; optional (plain-text-only emails omit it)
    envelope - JSON string: {"from": "...", "to": ["..."]}
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class InboundEmailPayload(BaseModel):
    """Validated webhook payload. At least one of text or html is required."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    from_: str = Field(..., alias="from", min_length=1)
    to: str = Field(..., min_length=1)
    subject: str = ""
    text: Optional[str] = None
    html: Optional[str] = None
    envelope: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def require_body(self) -> "InboundEmailPayload":
        if not self.text and not self.html:
            raise ValueError("at least one of text or html must be present")
        return self

    @property
    def raw_text(self) -> str:
        """Body handed to the parser: text if present, falling back to html."""
        return self.text or self.html or ""


class InboundEmailResponse(BaseModel):
    """Stored inbound email as returned to the webhook caller"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subject: str
    raw_text: str
    processed: bool
    error: Optional[str] = None
    received_at: datetime
