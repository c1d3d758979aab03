"""LeadIntake - inbound lead email ingestion backend."""

__version__ = "0.1.0"
