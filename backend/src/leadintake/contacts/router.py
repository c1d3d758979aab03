"""Contacts API endpoints

The ingestion pipeline creates contacts and never touches them again
(first-write-wins). These endpoints are the manual reconciliation path:
list and inspect contacts, add one by hand, correct or advance it through
the outreach stages, or delete it.

Validation failures answer 400 with the messages joined by "; ", the same as
the webhook. Writing an email another contact already has answers 409.
"""

import logging
from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..infrastructure.repositories.lead_store import is_contact_email_conflict
from ..models import Contact
from ..schemas import ApiResponse, validation_error_message
from .schemas import ContactCreate, ContactUpdate, ContactResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["Contacts"])


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.fail(message).model_dump(mode="json"),
    )


def _not_found() -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, "Contact not found")


async def _read_json(request: Request):
    """Return the decoded JSON body, or None if it is not valid JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


def _commit_contact(db: Session, contact: Contact):
    """Commit a contact write; a JSONResponse on email conflict, else None."""
    email = contact.email
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if not is_contact_email_conflict(e):
            raise
        return _error_response(
            status.HTTP_409_CONFLICT,
            f"Contact with email '{email}' already exists",
        )
    db.refresh(contact)
    return None


@router.get("", response_model=ApiResponse[List[ContactResponse]])
def list_contacts(
    db: Annotated[Session, Depends(get_db)],
    limit: int = Query(50, ge=1, le=100, description="Page size (default 50, max 100)"),
):
    """List contacts, newest first."""
    contacts = db.execute(
        select(Contact).order_by(Contact.created_at.desc(), Contact.id).limit(limit)
    ).scalars().all()

    return ApiResponse.ok([ContactResponse.model_validate(c) for c in contacts])


@router.get("/{contact_id}", response_model=ApiResponse[ContactResponse])
def get_contact(
    contact_id: UUID,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a single contact by id. 404 if not found."""
    contact = db.get(Contact, contact_id)
    if contact is None:
        return _not_found()

    return ApiResponse.ok(ContactResponse.model_validate(contact))


@router.post("", response_model=ApiResponse[ContactResponse], status_code=status.HTTP_201_CREATED)
async def create_contact(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a contact by hand.

    Answers 400 on an invalid body and 409 if a contact with
    the email exists (the stored contact is left unchanged).
    """
    body = await _read_json(request)
    try:
        contact_data = ContactCreate.model_validate(body)
    except ValidationError as e:
        return _error_response(status.HTTP_400_BAD_REQUEST, validation_error_message(e))

    contact = Contact(
        name=contact_data.name,
        email=contact_data.email,
        phone=contact_data.phone,
        status=contact_data.status.value,
    )
    db.add(contact)
    conflict = _commit_contact(db, contact)
    if conflict is not None:
        return conflict

    logger.info(f"Created contact {contact.id} manually", extra={"contact_id": str(contact.id)})
    return ApiResponse.ok(ContactResponse.model_validate(contact))


@router.patch("/{contact_id}", response_model=ApiResponse[ContactResponse])
async def update_contact(
    contact_id: UUID,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
):
    """Update only the provided fields of a contact. 404 if not found."""
    body = await _read_json(request)
    try:
        contact_data = ContactUpdate.model_validate(body)
    except ValidationError as e:
        return _error_response(status.HTTP_400_BAD_REQUEST, validation_error_message(e))

    contact = db.get(Contact, contact_id)
    if contact is None:
        return _not_found()

    update_data = contact_data.model_dump(exclude_unset=True)
    if "status" in update_data:
        update_data["status"] = update_data["status"].value
    for field, value in update_data.items():
        setattr(contact, field, value)

    conflict = _commit_contact(db, contact)
    if conflict is not None:
        return conflict

    logger.info(
        f"Updated contact {contact_id}: {', '.join(sorted(update_data))}",
        extra={"contact_id": str(contact_id)},
    )
    return ApiResponse.ok(ContactResponse.model_validate(contact))


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(
    contact_id: UUID,
    db: Annotated[Session, Depends(get_db)],
):
    """Hard delete a contact. 404 if not found.

    A later lead email for the same address creates a new contact.
    """
    contact = db.get(Contact, contact_id)
    if contact is None:
        return _not_found()

    db.delete(contact)
    db.commit()

    logger.info(f"Deleted contact {contact_id}", extra={"contact_id": str(contact_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
