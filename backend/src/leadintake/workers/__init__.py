"""Background workers for asynchronous inbound email processing.

Tasks take the inbound email id as a UUID string (JSON serializable) and are
safe to run any number of times for the same id.
"""

from .inbound_email_worker import (
    process_inbound_email_task,
    retry_unprocessed_inbound_emails_task,
)

__all__ = [
    "process_inbound_email_task",
    "retry_unprocessed_inbound_emails_task",
]
