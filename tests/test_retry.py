"""Unit tests for the retry module."""
import random

import pytest
from hypothesis import given
from hypothesis import strategies as st

from civicchat.retry import ReconnectPolicy, RetryDecision, RetryPolicy, calculate_backoff_delay
from civicchat.transport import ChatError, ErrorKind


class TestCalculateBackoffDelay:
    """Tests for exponential backoff."""

    def test_doubles_each_attempt(self):
        """Test the exponential growth."""
        delays = [calculate_backoff_delay(n, 1.0, 30.0, 2.0) for n in range(4)]

        assert delays == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_max_delay(self):
        """Test that the delay never exceeds the cap."""
        assert calculate_backoff_delay(10, 1.0, 30.0, 2.0) == 30.0

    @given(st.integers(0, 20), st.integers(0, 2**32 - 1))
    def test_jitter_stays_within_quarter(self, attempt: int, seed: int):
        """Property test: jitter moves the delay by at most 25%."""
        base = calculate_backoff_delay(attempt, 1.0, 30.0, 2.0)
        delay = calculate_backoff_delay(attempt, 1.0, 30.0, 2.0, jitter=True, rng=random.Random(seed))

        assert base * 0.75 <= delay <= base * 1.25


class TestRetryPolicy:
    """Tests for RetryPolicy decisions."""

    @pytest.mark.parametrize("kind", [ErrorKind.NETWORK_TIMEOUT, ErrorKind.NETWORK_UNAVAILABLE])
    def test_connectivity_failures_reconnect(self, kind):
        """Test that lost connectivity enters reconnect mode."""
        policy = RetryPolicy()

        assert policy.decide(ChatError(kind=kind), 0) == RetryDecision.RECONNECT
        assert policy.decide(ChatError(kind=kind), 99) == RetryDecision.RECONNECT

    def test_server_error_retried_until_budget_spent(self):
        """Test the retry budget for recoverable errors."""
        policy = RetryPolicy(max_retries=2)
        error = ChatError(kind=ErrorKind.HTTP_STATUS, status_code=503)

        assert policy.decide(error, 0) == RetryDecision.RETRY
        assert policy.decide(error, 1) == RetryDecision.RETRY
        assert policy.decide(error, 2) == RetryDecision.GIVE_UP

    def test_malformed_response_is_retried(self):
        """Test that a malformed body is treated as transient."""
        error = ChatError(kind=ErrorKind.MALFORMED_RESPONSE, status_code=200)

        assert RetryPolicy().decide(error, 0) == RetryDecision.RETRY

    @pytest.mark.parametrize(
        "error",
        [
            ChatError(kind=ErrorKind.HTTP_STATUS, status_code=400),
            ChatError(kind=ErrorKind.HTTP_STATUS, status_code=404),
            ChatError(kind=ErrorKind.SESSION_INVALID, status_code=401),
        ],
    )
    def test_fatal_errors_give_up_immediately(self, error):
        """Test that fatal errors are never retried automatically."""
        assert RetryPolicy().decide(error, 0) == RetryDecision.GIVE_UP

    def test_zero_retries(self):
        """Test a policy that never retries."""
        error = ChatError(kind=ErrorKind.HTTP_STATUS, status_code=500)

        assert RetryPolicy(max_retries=0).decide(error, 0) == RetryDecision.GIVE_UP

    def test_invalid_values_fail(self):
        """Test validation of policy settings."""
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)
        with pytest.raises(ValueError):
            RetryPolicy(initial_delay=-1.0)

    def test_backoff_delay_uses_settings(self):
        """Test that the policy delegates to the backoff calculation."""
        policy = RetryPolicy(initial_delay=0.5, max_delay=1.5, backoff_base=3.0)

        assert policy.backoff_delay(0) == 0.5
        assert policy.backoff_delay(1) == 1.5
        assert policy.backoff_delay(2) == 1.5


class TestReconnectPolicy:
    """Tests for ReconnectPolicy."""

    def test_unlimited_by_default(self):
        """Test that probing continues until reconnected."""
        assert ReconnectPolicy().should_probe(10_000)

    def test_bounded_probes(self):
        """Test a bounded number of probes."""
        policy = ReconnectPolicy(max_probe_attempts=2)

        assert policy.should_probe(0)
        assert policy.should_probe(1)
        assert not policy.should_probe(2)

    def test_negative_interval_fails(self):
        """Test interval validation."""
        with pytest.raises(ValueError):
            ReconnectPolicy(probe_interval=-1)
