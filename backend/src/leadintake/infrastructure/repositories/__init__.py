"""Persistence adapters."""

from .lead_store import SqlAlchemyLeadStore

__all__ = ["SqlAlchemyLeadStore"]
