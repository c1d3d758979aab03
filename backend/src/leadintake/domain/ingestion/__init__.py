"""Domain layer for inbound email ingestion.

Orchestrates the lead parser against stored inbound emails and defines the
store port it depends on.
"""

from .ports import LeadStorePort
from .service import InboundEmailProcessor, ProcessResult

__all__ = [
    "LeadStorePort",
    "InboundEmailProcessor",
    "ProcessResult",
]
