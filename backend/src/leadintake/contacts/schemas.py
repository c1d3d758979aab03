"""Pydantic schemas for Contacts API"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from ..domain.leads.lead_parser import E164_PATTERN
from ..models import ContactStatus

# Columns that are NOT NULL in the database; an explicit null cannot be written
NON_NULLABLE_FIELDS = ("name", "email", "phone", "status", "sequence_day")


def _validate_e164(v: Optional[str]) -> Optional[str]:
    if v is not None and not E164_PATTERN.fullmatch(v):
        raise ValueError("must be in E.164 format, e.g. +15551234567")
    return v


def _validate_name(v: Optional[str]) -> Optional[str]:
    if v is not None and not v.strip():
        raise ValueError("cannot be empty")
    return v.strip() if v else v


class ContactCreate(BaseModel):
    """Schema for creating a contact manually"""
    model_config = ConfigDict(extra="forbid")

    name: str
    email: EmailStr
    phone: str = Field(..., description="E.164 phone number, e.g. +15551234567")
    status: ContactStatus = ContactStatus.NEW

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _validate_name(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _validate_e164(v)


class ContactUpdate(BaseModel):
    """Schema for updating an existing contact (partial updates)"""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    status: Optional[ContactStatus] = None
    sequence_day: Optional[int] = Field(None, ge=0)
    last_contacted_at: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _validate_name(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _validate_e164(v)

    @model_validator(mode="after")
    def require_fields(self) -> "ContactUpdate":
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided for update")
        for field in NON_NULLABLE_FIELDS:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class ContactResponse(BaseModel):
    """Contact as exposed by the API"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: str = Field(..., description="E.164 phone number, e.g. +15551234567")
    status: ContactStatus
    sequence_day: int
    last_contacted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
