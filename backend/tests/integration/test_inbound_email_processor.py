"""Integration tests for the inbound email processing pipeline

Runs InboundEmailProcessor against a real (SQLite) database through the
SQLAlchemy lead store, covering:
- Successful processing and idempotent redelivery
- Permanent parse failures closing the email out
- First-write-wins contact deduplication
- Transient store failures leaving the email open for retry
- Concurrent processing of duplicate deliveries
"""

import threading
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from leadintake.domain.ingestion import InboundEmailProcessor
from leadintake.domain.leads import InboundEmailNotFoundError, ProcessingErrorKind
from leadintake.infrastructure.repositories import SqlAlchemyLeadStore
from leadintake.models import Contact


class FlakyLeadStore(SqlAlchemyLeadStore):
    """Lead store whose contact insert fails a set number of times."""

    def __init__(self, session_factory, failures=1, fail_record_error=False):
        super().__init__(session_factory)
        self.failures = failures
        self.fail_record_error = fail_record_error

    def create_contact_if_absent(self, name, email, phone):
        if self.failures > 0:
            self.failures -= 1
            raise OperationalError("INSERT INTO contact", {}, Exception("database is locked"))
        return super().create_contact_if_absent(name, email, phone)

    def record_error(self, inbound_email_id, error):
        if self.fail_record_error:
            raise OperationalError("UPDATE inbound_email", {}, Exception("connection reset"))
        return super().record_error(inbound_email_id, error)


class TestProcessSuccess:
    """Test the happy path"""

    def test_creates_contact_and_marks_processed(self, processor, store, make_inbound_email, lead_body, contact_count):
        """Test a valid lead email yields one contact and a processed email"""
        inbound_email = make_inbound_email(lead_body())

        result = processor.process(inbound_email.id)

        assert result.succeeded
        assert result.retryable is False
        assert result.contact.name == "John Smith"
        assert result.contact.phone == "+15551234567"
        assert result.contact.email == "john@email.com"
        assert result.inbound_email.processed is True
        assert result.inbound_email.error is None
        assert contact_count() == 1

        stored = store.get_inbound_email(inbound_email.id)
        assert stored.processed is True
        assert stored.error is None

    def test_second_call_is_a_no_op(self, processor, make_inbound_email, lead_body, contact_count):
        """Test reprocessing an already processed email changes nothing"""
        inbound_email = make_inbound_email(lead_body())
        processor.process(inbound_email.id)

        result = processor.process(inbound_email.id)

        assert result.succeeded
        assert result.contact is None
        assert result.inbound_email.processed is True
        assert contact_count() == 1

    def test_already_processed_row_is_not_reparsed(self, processor, make_inbound_email, lead_body, contact_count):
        """Test processed rows are returned unchanged even if the body is valid"""
        inbound_email = make_inbound_email(lead_body(), processed=True)

        result = processor.process(inbound_email.id)

        assert result.succeeded
        assert result.contact is None
        assert contact_count() == 0

    def test_unknown_id_raises(self, processor):
        """Test an unknown id is a caller error, not a processing failure"""
        missing_id = uuid4()

        with pytest.raises(InboundEmailNotFoundError) as exc_info:
            processor.process(missing_id)

        assert exc_info.value.inbound_email_id == missing_id


class TestProcessParseFailures:
    """Test permanent failures close the email out"""

    def test_missing_field_marks_processed_with_error(self, processor, store, make_inbound_email, contact_count):
        inbound_email = make_inbound_email("Name: John Smith\nEmail: john@email.com")

        result = processor.process(inbound_email.id)

        assert result.error_kind == ProcessingErrorKind.MISSING_FIELD
        assert result.retryable is False
        assert result.error == 'Could not extract "Phone" from email body'
        assert contact_count() == 0

        stored = store.get_inbound_email(inbound_email.id)
        assert stored.processed is True
        assert stored.error == 'Could not extract "Phone" from email body'

    def test_invalid_phone_marks_processed_with_error(self, processor, store, make_inbound_email, lead_body, contact_count):
        inbound_email = make_inbound_email(lead_body(phone="555-1234"))

        result = processor.process(inbound_email.id)

        assert result.error_kind == ProcessingErrorKind.INVALID_PHONE
        assert '"555-1234"' in result.error
        assert contact_count() == 0
        assert store.get_inbound_email(inbound_email.id).processed is True

    def test_failed_email_is_not_retried(self, processor, make_inbound_email):
        """Test a closed-out malformed email stays closed on redelivery"""
        inbound_email = make_inbound_email("no labels here")
        processor.process(inbound_email.id)

        result = processor.process(inbound_email.id)

        assert result.error_kind is None
        assert result.inbound_email.processed is True
        assert result.inbound_email.error == 'Could not extract "Name" from email body'


class TestContactDeduplication:
    """Test first-write-wins on contact email"""

    def test_later_lead_does_not_overwrite_contact(self, processor, store, make_inbound_email, lead_body, contact_count):
        first = make_inbound_email(lead_body(name="John Smith", phone="555-123-4567"))
        second = make_inbound_email(lead_body(name="Johnny Smith", phone="555-999-0000"))

        first_result = processor.process(first.id)
        second_result = processor.process(second.id)

        assert second_result.succeeded
        assert second_result.contact.id == first_result.contact.id
        assert second_result.contact.name == "John Smith"
        assert second_result.contact.phone == "+15551234567"
        assert contact_count("john@email.com") == 1
        assert store.get_inbound_email(second.id).processed is True

    def test_distinct_emails_create_distinct_contacts(self, processor, make_inbound_email, lead_body, contact_count):
        processor.process(make_inbound_email(lead_body(email="a@example.com")).id)
        processor.process(make_inbound_email(lead_body(email="b@example.com")).id)

        assert contact_count() == 2

    def test_store_reports_existing_contact(self, store):
        """Test create_contact_if_absent returns the stored row on conflict"""
        created, was_created = store.create_contact_if_absent("John Smith", "john@email.com", "+15551234567")
        existing, was_created_again = store.create_contact_if_absent("Other", "john@email.com", "+15550000000")

        assert was_created is True
        assert was_created_again is False
        assert existing.id == created.id
        assert existing.name == "John Smith"


class TestTransientFailures:
    """Test store failures leave the email open for retry"""

    def test_store_failure_records_error_and_stays_unprocessed(self, session_factory, store, make_inbound_email, lead_body, contact_count):
        processor = InboundEmailProcessor(FlakyLeadStore(session_factory, failures=1))
        inbound_email = make_inbound_email(lead_body())

        result = processor.process(inbound_email.id)

        assert result.error_kind == ProcessingErrorKind.TRANSIENT_STORE_FAILURE
        assert result.retryable is True
        assert "database is locked" in result.error
        assert contact_count() == 0

        stored = store.get_inbound_email(inbound_email.id)
        assert stored.processed is False
        assert "database is locked" in stored.error

    def test_retry_after_transient_failure_succeeds(self, session_factory, store, make_inbound_email, lead_body, contact_count):
        processor = InboundEmailProcessor(FlakyLeadStore(session_factory, failures=1))
        inbound_email = make_inbound_email(lead_body())

        assert processor.process(inbound_email.id).retryable

        result = processor.process(inbound_email.id)

        assert result.succeeded
        assert contact_count() == 1
        stored = store.get_inbound_email(inbound_email.id)
        assert stored.processed is True
        assert stored.error is None

    def test_failure_to_record_error_does_not_raise(self, session_factory, store, make_inbound_email, lead_body):
        processor = InboundEmailProcessor(
            FlakyLeadStore(session_factory, failures=1, fail_record_error=True)
        )
        inbound_email = make_inbound_email(lead_body())

        result = processor.process(inbound_email.id)

        assert result.error_kind == ProcessingErrorKind.TRANSIENT_STORE_FAILURE
        assert result.inbound_email.id == inbound_email.id
        stored = store.get_inbound_email(inbound_email.id)
        assert stored.processed is False
        assert stored.error is None

    def test_record_error_never_reopens_processed_row(self, store, make_inbound_email, lead_body):
        """Test a late transient error cannot clobber a concurrent success"""
        inbound_email = make_inbound_email(lead_body(), processed=True)

        updated = store.record_error(inbound_email.id, "late failure")

        assert updated.processed is True
        assert updated.error is None


class TestConcurrentDeliveries:
    """Test duplicate deliveries processed at the same time"""

    def test_duplicate_deliveries_create_one_contact(self, processor, make_inbound_email, lead_body, contact_count):
        """Test the same lead delivered several times yields exactly one contact"""
        emails = [make_inbound_email(lead_body()) for _ in range(4)]
        results = []
        errors = []
        barrier = threading.Barrier(len(emails))

        def worker(email_id):
            try:
                barrier.wait()
                results.append(processor.process(email_id))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(e.id,)) for e in emails]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert contact_count("john@email.com") == 1
        assert all(r.succeeded for r in results)
        assert len({r.contact.id for r in results}) == 1

    def test_same_email_processed_twice_concurrently(self, processor, store, make_inbound_email, lead_body, contact_count):
        inbound_email = make_inbound_email(lead_body())
        barrier = threading.Barrier(2)
        results = []

        def worker():
            barrier.wait()
            results.append(processor.process(inbound_email.id))

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 2
        assert all(r.succeeded for r in results)
        assert contact_count() == 1
        assert store.get_inbound_email(inbound_email.id).processed is True

    def test_conflicting_deliveries_keep_one_whole_write(self, processor, session_factory, make_inbound_email, lead_body, contact_count):
        """Test the stored name and phone come from exactly one delivery, never a mix"""
        writes = {
            ("Alice Adams", "+15551110000"): lead_body(name="Alice Adams", phone="555-111-0000", email="shared@email.com"),
            ("Bob Brown", "+15552220000"): lead_body(name="Bob Brown", phone="555-222-0000", email="shared@email.com"),
        }
        emails = [make_inbound_email(body) for body in writes.values()]
        barrier = threading.Barrier(len(emails))
        results = []
        errors = []

        def worker(email_id):
            try:
                barrier.wait()
                results.append(processor.process(email_id))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(e.id,)) for e in emails]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert contact_count("shared@email.com") == 1

        session = session_factory()
        try:
            stored = session.execute(
                select(Contact).where(Contact.email == "shared@email.com")
            ).scalar_one()
        finally:
            session.close()

        assert (stored.name, stored.phone) in writes
        assert len(results) == 2
        assert all(r.succeeded for r in results)
        assert {r.contact.id for r in results} == {stored.id}
        assert all((r.contact.name, r.contact.phone) == (stored.name, stored.phone) for r in results)
