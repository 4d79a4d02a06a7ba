"""Unit tests for cancellation support."""

from insight.core.cancel import CancellationToken


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_not_cancelled_initially(self):
        """Token is not cancelled when created."""
        token = CancellationToken()
        assert token.is_cancelled is False

    def test_cancel_sets_is_cancelled(self):
        """cancel() sets is_cancelled to True."""
        token = CancellationToken()
        token.cancel()
        assert token.is_cancelled is True

    def test_cancel_is_idempotent(self):
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.is_cancelled is True

    def test_tokens_are_independent(self):
        """Cancelling one query's token leaves the next query's token alone."""
        first, second = CancellationToken(), CancellationToken()
        first.cancel()
        assert second.is_cancelled is False
