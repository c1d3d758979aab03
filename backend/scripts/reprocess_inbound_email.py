#!/usr/bin/env python
"""Manually re-run the ingestion pipeline for stored inbound emails.

Useful after a database outage left emails unprocessed, or to confirm the
state of a single email during triage. Already-processed emails are skipped
by the pipeline itself, so running this repeatedly is safe.

Usage:
    python backend/scripts/reprocess_inbound_email.py --id 7c9e6679-7425-40de-944b-e07fc1f90ae7
    python backend/scripts/reprocess_inbound_email.py --pending [--limit 100]

Environment Variables:
    DATABASE_URL: PostgreSQL connection string
"""

import argparse
import sys
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from uuid import UUID
from sqlalchemy import select
from leadintake.database import SessionLocal, get_db_session
from leadintake.dependencies import build_processor
from leadintake.domain.leads import InboundEmailNotFoundError
from leadintake.models import InboundEmail


def _pending_ids(limit):
    with get_db_session() as session:
        return session.execute(
            select(InboundEmail.id)
            .where(InboundEmail.processed.is_(False))
            .order_by(InboundEmail.received_at)
            .limit(limit)
        ).scalars().all()


def main():
    """Reprocess one inbound email or all pending ones."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--id", help="Inbound email UUID")
    target.add_argument("--pending", action="store_true", help="All unprocessed emails, oldest first")
    parser.add_argument("--limit", type=int, default=100, help="Max emails with --pending (default 100)")
    args = parser.parse_args()

    if args.id:
        try:
            email_ids = [UUID(args.id)]
        except ValueError:
            print(f"ERROR: Invalid inbound email id: {args.id}")
            sys.exit(1)
    else:
        email_ids = _pending_ids(args.limit)

    processor = build_processor(SessionLocal)
    failures = 0

    for email_id in email_ids:
        try:
            result = processor.process(email_id)
        except InboundEmailNotFoundError as e:
            print(f"ERROR: {e}")
            sys.exit(1)

        if result.error_kind is None:
            contact = f"contact={result.contact.id}" if result.contact else "already processed"
            print(f"OK      {email_id}  {contact}")
        else:
            failures += int(result.retryable)
            print(f"FAILED  {email_id}  [{result.error_kind.value}] {result.error}")

    print(f"Done: {len(email_ids)} emails, {failures} still retryable")
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
