"""Unit tests for the InboundEmail processed-flag state machine"""

import pytest

from leadintake.models import InboundEmail, can_transition


class TestProcessedTransitions:
    """Test processed flag transition validation"""

    def test_new_rows_may_start_in_either_state(self):
        """Test a new row can be created processed or unprocessed"""
        assert can_transition(None, False) is True
        assert can_transition(None, True) is True

    def test_unprocessed_to_processed(self):
        """Test False → True (success or permanent failure)"""
        assert can_transition(False, True) is True

    def test_unprocessed_stays_unprocessed(self):
        """Test False → False (transient failure, eligible for retry)"""
        assert can_transition(False, False) is True

    def test_processed_is_terminal(self):
        """Test True → False is rejected and True → True is a no-op"""
        assert can_transition(True, False) is False
        assert can_transition(True, True) is True


class TestProcessedValidator:
    """Test the ORM validator enforces the state machine"""

    def test_allows_marking_processed(self):
        inbound_email = InboundEmail(raw_text="body", processed=False)
        inbound_email.processed = True

        assert inbound_email.processed is True

    def test_rejects_reopening(self):
        inbound_email = InboundEmail(raw_text="body", processed=True)

        with pytest.raises(ValueError, match="cannot be reopened"):
            inbound_email.processed = False

    def test_error_may_change_after_processing(self):
        """Test error is independent of the terminal processed state"""
        inbound_email = InboundEmail(raw_text="body", processed=True)
        inbound_email.error = 'Could not extract "Name" from email body'

        assert inbound_email.processed is True
        assert inbound_email.error.startswith("Could not extract")
