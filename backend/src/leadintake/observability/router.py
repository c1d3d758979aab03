"""Observability API endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from .health import check_database_health, HealthStatus

router = APIRouter(tags=["Observability"])


@router.get(
    "/health",
    summary="Health check endpoint",
    description="Returns health status of the database",
)
def health_check(db: Session = Depends(get_db)):
    """Return 200 when the database answers, 503 otherwise."""
    database = check_database_health(db)
    http_status = (
        status.HTTP_200_OK
        if database.status == HealthStatus.HEALTHY
        else status.HTTP_503_SERVICE_UNAVAILABLE
    )
    return JSONResponse(
        status_code=http_status,
        content={
            "status": database.status.value,
            "components": {"database": asdict(database)},
        },
    )
