# tests/test_wait.py
"""
Unit Tests for the retrying waiter
"""

import pytest
from unittest.mock import Mock, patch

from eip_controller.core.errors import ReleaseError, RetriesExhaustedError
from eip_controller.core.wait import (
    AUTH_FAILURE,
    IN_USE_IP_ADDRESS,
    Backoff,
    error_code,
    wait_for_with_retryable,
)


def no_sleep_backoff(steps: int = 4) -> Backoff:
    return Backoff(initial_interval=0, factor=1.0, jitter=0, steps=steps, max_interval=0)


class TestErrorCode:
    """Tests for error_code"""

    def test_reads_client_error_code(self, client_error):
        assert error_code(client_error(AUTH_FAILURE)) == AUTH_FAILURE

    def test_follows_cause_chain(self, client_error):
        """Test that a wrapped ClientError still yields its code"""
        cause = client_error(IN_USE_IP_ADDRESS)
        try:
            try:
                raise cause
            except Exception as e:
                raise ReleaseError("eipalloc-1", "203.0.113.1", e) from e
        except ReleaseError as wrapped:
            assert error_code(wrapped) == IN_USE_IP_ADDRESS

    def test_plain_exception_has_no_code(self):
        assert error_code(ValueError("boom")) is None
        assert error_code(None) is None


class TestBackoff:
    """Tests for Backoff schedule"""

    def test_interval_count(self):
        """Test that steps attempts need steps - 1 sleeps"""
        assert len(list(Backoff(steps=5).intervals())) == 4

    def test_intervals_grow_and_cap(self):
        backoff = Backoff(initial_interval=1.0, factor=2.0, jitter=0, steps=6, max_interval=5.0)
        assert list(backoff.intervals()) == [1.0, 2.0, 4.0, 5.0, 5.0]


class TestWaitForWithRetryable:
    """Tests for wait_for_with_retryable"""

    def test_returns_on_first_success(self):
        condition = Mock(return_value=True)

        wait_for_with_retryable(no_sleep_backoff(), condition)

        assert condition.call_count == 1

    def test_polls_until_done(self):
        condition = Mock(side_effect=[False, False, True])

        wait_for_with_retryable(no_sleep_backoff(), condition)

        assert condition.call_count == 3

    def test_retries_retryable_code(self, client_error):
        condition = Mock(side_effect=[client_error(AUTH_FAILURE), True])

        wait_for_with_retryable(no_sleep_backoff(), condition, AUTH_FAILURE)

        assert condition.call_count == 2

    def test_non_retryable_code_raises_immediately(self, client_error):
        err = client_error("UnauthorizedOperation")
        condition = Mock(side_effect=err)

        with pytest.raises(type(err)):
            wait_for_with_retryable(no_sleep_backoff(), condition, AUTH_FAILURE)

        assert condition.call_count == 1

    def test_plain_exception_is_terminal(self):
        condition = Mock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            wait_for_with_retryable(no_sleep_backoff(), condition, AUTH_FAILURE)

    def test_exhausted_retries(self, client_error):
        """Test bounded attempts end in RetriesExhaustedError carrying the last error"""
        err = client_error(IN_USE_IP_ADDRESS)
        condition = Mock(side_effect=err)

        with pytest.raises(RetriesExhaustedError) as exc_info:
            wait_for_with_retryable(no_sleep_backoff(steps=3), condition, IN_USE_IP_ADDRESS)

        assert condition.call_count == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.last_error is err

    def test_sleeps_between_attempts(self):
        backoff = Backoff(initial_interval=0.25, factor=2.0, jitter=0, steps=3, max_interval=10)
        condition = Mock(side_effect=[False, False, True])

        with patch("eip_controller.core.wait.time.sleep") as sleep:
            wait_for_with_retryable(backoff, condition)

        assert [c.args[0] for c in sleep.call_args_list] == [0.25, 0.5]
