"""Global FastAPI dependencies.

The inbound email processor is built once in the application lifespan and
stored on ``app.state``. Endpoints receive it through get_processor, never
through a module-level global, so tests can swap it with a dependency
override.
"""

from fastapi import Request

from .domain.ingestion import InboundEmailProcessor
from .infrastructure.repositories import SqlAlchemyLeadStore


def build_processor(session_factory) -> InboundEmailProcessor:
    """Create the processor and its store for one process lifetime."""
    return InboundEmailProcessor(SqlAlchemyLeadStore(session_factory))


def get_processor(request: Request) -> InboundEmailProcessor:
    """Return the processor acquired at application startup."""
    return request.app.state.processor
