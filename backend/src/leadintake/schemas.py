"""Shared API response envelope.

Every API response is wrapped in this shape so clients can tell success from
error without inspecting HTTP status codes alone.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """{"success": true, "data": ...} or {"success": false, "error": "..."}"""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "ApiResponse[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ApiResponse[T]":
        return cls(success=False, error=error)


def validation_error_message(error: ValidationError) -> str:
    """Join pydantic error messages into the envelope's single error string.

    Field errors are prefixed with the field name, e.g.
    "phone: must be in E.164 format, e.g. +15551234567".
    """
    messages = []
    for e in error.errors():
        message = e["msg"].removeprefix("Value error, ")
        location = ".".join(str(part) for part in e["loc"])
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)
