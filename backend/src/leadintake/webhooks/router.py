"""Webhook endpoints for inbound email delivery.

POST /webhooks/inbound-email receives a SendGrid Inbound Parse delivery,
stores the raw email, then runs the ingestion pipeline before responding.

Response codes tell the deliverer whether to retry:
    200 - stored and processed, or flagged as unparseable (no retry wanted)
    400 - payload failed validation
    500 - raw email could not be stored
    503 - transient processing failure; the delivery should be retried
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_processor
from ..domain.ingestion import InboundEmailProcessor
from ..schemas import ApiResponse, validation_error_message
from .schemas import InboundEmailPayload, InboundEmailResponse
from .service import save_inbound_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.fail(message).model_dump(mode="json"),
    )


@router.post("/inbound-email")
async def receive_inbound_email(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    processor: Annotated[InboundEmailProcessor, Depends(get_processor)],
):
    """Store and process one inbound email delivery.

    Parse failures are recorded on the stored row and still answered with
    200: the deliverer must not retry an email that was intentionally
    flagged as unparseable.
    """
    form = await request.form()

    try:
        payload = InboundEmailPayload.model_validate(dict(form))
    except ValidationError as e:
        message = validation_error_message(e)
        logger.warning(f"Rejected inbound email payload: {message}")
        return _error_response(status.HTTP_400_BAD_REQUEST, message)

    try:
        inbound_email = save_inbound_email(db, payload)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to save inbound email: {e}", exc_info=True)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to save inbound email",
        )

    logger.info(
        f"Stored inbound email {inbound_email.id}",
        extra={"inbound_email_id": str(inbound_email.id)},
    )

    result = await run_in_threadpool(processor.process, inbound_email.id)

    data = InboundEmailResponse.model_validate(result.inbound_email)
    return JSONResponse(
        status_code=(
            status.HTTP_503_SERVICE_UNAVAILABLE
            if result.retryable
            else status.HTTP_200_OK
        ),
        content=ApiResponse[InboundEmailResponse].ok(data).model_dump(mode="json"),
    )
