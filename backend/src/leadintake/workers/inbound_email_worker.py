"""Inbound email worker - Celery tasks for (re)processing stored emails.

Handles transient failures the webhook request could not recover from:
emails left with processed=False are retried with exponential backoff, and a
periodic sweep re-enqueues any that slipped through.
"""

import logging
from functools import lru_cache
from typing import Dict, Any
from uuid import UUID

from celery import shared_task
from sqlalchemy import select

from ..config import settings
from ..database import SessionLocal
from ..dependencies import build_processor
from ..domain.ingestion import InboundEmailProcessor
from ..domain.leads import InboundEmailNotFoundError
from ..models import InboundEmail
from ..observability.request_id import set_request_id

logger = logging.getLogger(__name__)


@lru_cache()
def get_worker_processor() -> InboundEmailProcessor:
    """Processor shared by all tasks in this worker process."""
    return build_processor(SessionLocal)


@shared_task(
    name="ingestion.process_inbound_email",
    bind=True,
    max_retries=settings.INGESTION_MAX_RETRIES,
)
def process_inbound_email_task(self, inbound_email_id: str) -> Dict[str, Any]:
    """Run the ingestion pipeline for one stored inbound email.

    Args:
        inbound_email_id: UUID string of the inbound email

    Returns:
        Dict with processing result:
        - status: 'success', 'already_processed' or 'failed'
        - inbound_email_id: Inbound email UUID
        - contact_id: Contact UUID (if a contact was stored or matched)
        - error_kind / error: Failure classification and message (if failed)

    Raises:
        ValueError: If the id is malformed or does not exist (not retried)
        celery.exceptions.Retry: On transient failure, until max_retries
    """
    set_request_id(inbound_email_id)

    try:
        email_uuid = UUID(inbound_email_id)
    except (ValueError, AttributeError, TypeError) as e:
        raise ValueError(f"Invalid inbound_email_id format '{inbound_email_id}': {str(e)}")

    try:
        result = get_worker_processor().process(email_uuid)
    except InboundEmailNotFoundError as e:
        logger.error(str(e), extra={"inbound_email_id": inbound_email_id})
        raise ValueError(str(e)) from e

    if result.retryable:
        retry_countdown = 2 ** self.request.retries * 60  # 1min, 2min, 4min, ...
        logger.warning(
            f"Transient failure for inbound email {inbound_email_id}, "
            f"retry {self.request.retries + 1}/{self.max_retries} in {retry_countdown}s",
            extra={"inbound_email_id": inbound_email_id},
        )
        raise self.retry(countdown=retry_countdown)

    if result.error_kind is not None:
        return {
            "status": "failed",
            "inbound_email_id": inbound_email_id,
            "error_kind": result.error_kind.value,
            "error": result.error,
        }

    return {
        "status": "success" if result.contact is not None else "already_processed",
        "inbound_email_id": inbound_email_id,
        "contact_id": str(result.contact.id) if result.contact is not None else None,
    }


@shared_task(name="ingestion.retry_unprocessed_inbound_emails", bind=True)
def retry_unprocessed_inbound_emails_task(self, limit: int = settings.INGESTION_SWEEP_LIMIT) -> Dict[str, Any]:
    """Re-enqueue inbound emails left unprocessed by a transient failure.

    Only rows that recorded an error are picked up, oldest first; rows still
    in flight from the webhook have no error yet.

    Returns:
        Dict with retry statistics:
        - retried_count: Number of emails re-enqueued
        - inbound_email_ids: List of ids re-enqueued
    """
    session = SessionLocal()
    try:
        pending_ids = session.execute(
            select(InboundEmail.id)
            .where(
                InboundEmail.processed.is_(False),
                InboundEmail.error.is_not(None),
            )
            .order_by(InboundEmail.received_at)
            .limit(limit)
        ).scalars().all()
    finally:
        session.close()

    logger.info(f"Found {len(pending_ids)} unprocessed inbound emails to retry")

    retried_ids = []
    for email_id in pending_ids:
        process_inbound_email_task.delay(inbound_email_id=str(email_id))
        retried_ids.append(str(email_id))

    return {
        "status": "success",
        "retried_count": len(retried_ids),
        "inbound_email_ids": retried_ids,
    }
