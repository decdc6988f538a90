"""Tests for the retryable step sequence."""

from unittest.mock import AsyncMock, Mock

import pytest

from leadsync.sync.errors import (
    DataCorruptionError,
    ErrorDisposition,
    NetworkError,
    NotAuthenticatedError,
    classify_error,
)
from leadsync.sync.retry import RetryableOperation


def test_classifier():
    assert classify_error(NotAuthenticatedError()) == ErrorDisposition.ABORT
    assert classify_error(NetworkError("down")) == ErrorDisposition.RETRY
    assert classify_error(DataCorruptionError("bad")) == ErrorDisposition.SKIP
    assert classify_error(RuntimeError("?")) == ErrorDisposition.RETRY


def test_negative_retries_rejected():
    with pytest.raises(ValueError):
        RetryableOperation(max_retries=-1)


@pytest.mark.asyncio
class TestRetryableOperation:

    async def test_steps_run_in_order(self):
        calls = []

        async def first():
            calls.append("first")

        async def second():
            calls.append("second")

        operation = RetryableOperation(retry_delay=0)
        await operation.execute([first, second])

        assert calls == ["first", "second"]
        assert operation.attempts == 1

    async def test_transient_failure_restarts_sequence(self):
        first = AsyncMock()
        second = AsyncMock(side_effect=[NetworkError("timeout"), None])
        on_error = Mock()

        operation = RetryableOperation(max_retries=3, retry_delay=0)
        await operation.execute([first, second], on_error=on_error)

        assert first.await_count == 2
        assert second.await_count == 2
        assert operation.attempts == 2
        on_error.assert_called_once()

    async def test_gives_up_after_max_retries(self):
        step = AsyncMock(side_effect=NetworkError("offline"))

        operation = RetryableOperation(max_retries=3, retry_delay=0)
        with pytest.raises(NetworkError, match="offline"):
            await operation.execute([step])

        assert step.await_count == 4
        assert operation.attempts == 4

    async def test_zero_retries_means_one_attempt(self):
        step = AsyncMock(side_effect=NetworkError("offline"))

        with pytest.raises(NetworkError):
            await RetryableOperation(max_retries=0, retry_delay=0).execute([step])

        assert step.await_count == 1

    async def test_auth_error_aborts_without_retry(self):
        step = AsyncMock(side_effect=NotAuthenticatedError())

        operation = RetryableOperation(max_retries=3, retry_delay=0)
        with pytest.raises(NotAuthenticatedError):
            await operation.execute([step])

        assert step.await_count == 1

    async def test_aborting_error_is_not_reported(self):
        step = AsyncMock(side_effect=NotAuthenticatedError())
        on_error = Mock()

        operation = RetryableOperation(max_retries=3, retry_delay=0)
        with pytest.raises(NotAuthenticatedError):
            await operation.execute([step], on_error=on_error)

        on_error.assert_not_called()

    async def test_corruption_skips_step_and_continues(self):
        broken = AsyncMock(side_effect=DataCorruptionError("bad row"))
        after = AsyncMock()
        on_error = Mock()

        operation = RetryableOperation(retry_delay=0)
        await operation.execute([broken, after], on_error=on_error)

        after.assert_awaited_once()
        assert operation.attempts == 1
        on_error.assert_called_once()

    async def test_guard_runs_before_every_step(self):
        guard = Mock(side_effect=[None, NotAuthenticatedError()])
        first = AsyncMock()
        second = AsyncMock()

        with pytest.raises(NotAuthenticatedError):
            await RetryableOperation(retry_delay=0).execute([first, second], guard=guard)

        first.assert_awaited_once()
        second.assert_not_awaited()
