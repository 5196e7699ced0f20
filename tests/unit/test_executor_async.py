r"""Unit tests for the asynchronous retry executor."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, Mock, call

import pytest

from aretry.config import RetryConfig
from aretry.events import EventKind
from aretry.exceptions import MaxAttemptsExceededError
from aretry.executor_async import AsyncRetryExecutor, decorate_async, execute_async
from aretry.policy import RetryPolicy


class TransientError(Exception):
    pass


def _policy(**kwargs: object) -> RetryPolicy:
    return RetryPolicy("backend", RetryConfig(**kwargs))


#######################################
#     Tests for AsyncRetryExecutor    #
#######################################


@pytest.mark.asyncio
async def test_async_executor_success_first_attempt(mock_asleep: Mock) -> None:
    func = AsyncMock(return_value="data")
    policy = _policy()

    assert await AsyncRetryExecutor(policy).execute(func, 1, key="value") == "data"

    func.assert_awaited_once_with(1, key="value")
    mock_asleep.assert_not_called()
    assert policy.metrics.succeeded_without_retry == 1


@pytest.mark.asyncio
async def test_async_executor_retry_then_success(mock_asleep: Mock) -> None:
    func = AsyncMock(side_effect=[TransientError(), TransientError(), "data"])
    policy = _policy(max_attempts=3, wait_duration=0.5)
    events = []
    subscription = policy.emit_events(events.append)

    assert await AsyncRetryExecutor(policy).execute(func) == "data"

    assert subscription.drain(timeout=5.0)
    assert func.await_count == 3
    assert mock_asleep.call_args_list == [call(0.5), call(0.5)]
    assert [event.kind for event in events] == [
        EventKind.RETRY,
        EventKind.RETRY,
        EventKind.SUCCESS,
    ]


@pytest.mark.asyncio
async def test_async_executor_exhausted_attempts(mock_asleep: Mock) -> None:
    func = AsyncMock(side_effect=TransientError("down"))
    policy = _policy(max_attempts=3)

    with pytest.raises(TransientError, match=r"down"):
        await AsyncRetryExecutor(policy).execute(func)

    assert func.await_count == 3
    assert mock_asleep.call_count == 2
    assert policy.metrics.failed_with_retry == 1


@pytest.mark.asyncio
async def test_async_executor_fail_after_max_attempts(mock_asleep: Mock) -> None:
    func = AsyncMock(side_effect=TransientError("down"))
    policy = _policy(max_attempts=2, fail_after_max_attempts=True)

    with pytest.raises(MaxAttemptsExceededError):
        await AsyncRetryExecutor(policy).execute(func)

    assert func.await_count == 2


@pytest.mark.asyncio
async def test_async_executor_ignored_exception(mock_asleep: Mock) -> None:
    func = AsyncMock(side_effect=KeyError("missing"))
    policy = _policy(ignore_exceptions=[KeyError])

    with pytest.raises(KeyError):
        await AsyncRetryExecutor(policy).execute(func)

    func.assert_awaited_once()
    mock_asleep.assert_not_called()


@pytest.mark.asyncio
async def test_async_executor_retry_on_result(mock_asleep: Mock) -> None:
    func = AsyncMock(side_effect=[None, "data"])
    policy = _policy(retry_on_result_predicate=lambda result: result is None)

    assert await AsyncRetryExecutor(policy).execute(func) == "data"
    assert mock_asleep.call_count == 1


@pytest.mark.asyncio
async def test_async_executor_plain_function(mock_asleep: Mock) -> None:
    """Test that synchronous work units are accepted."""
    func = Mock(side_effect=[TransientError(), "data"])
    assert await AsyncRetryExecutor(_policy()).execute(func) == "data"
    assert func.call_count == 2


@pytest.mark.asyncio
async def test_async_executor_custom_sleep() -> None:
    sleep = AsyncMock()
    func = AsyncMock(side_effect=[TransientError(), "data"])

    await AsyncRetryExecutor(_policy(wait_duration=2.0), sleep=sleep).execute(func)

    sleep.assert_awaited_once_with(2.0)


@pytest.mark.asyncio
async def test_async_executor_cancelled_during_wait() -> None:
    """Test that cancellation while waiting propagates without updating
    the metrics."""
    func = AsyncMock(side_effect=TransientError())
    policy = _policy(max_attempts=3, wait_duration=60.0)

    task = asyncio.create_task(AsyncRetryExecutor(policy).execute(func))
    while func.await_count == 0:
        await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert func.await_count == 1
    assert policy.metrics.failed_with_retry == 0
    assert policy.metrics.failed_without_retry == 0


@pytest.mark.asyncio
async def test_async_executor_concurrent_tasks(mock_asleep: Mock) -> None:
    policy = _policy(max_attempts=3)
    executor = AsyncRetryExecutor(policy)

    results = await asyncio.gather(
        *(executor.execute(AsyncMock(side_effect=[TransientError(), i])) for i in range(5))
    )

    assert results == [0, 1, 2, 3, 4]
    assert policy.metrics.succeeded_with_retry == 5


##########################################
#     Tests for the function helpers     #
##########################################


@pytest.mark.asyncio
async def test_execute_async(mock_asleep: Mock) -> None:
    func = AsyncMock(side_effect=[TransientError(), 42])
    assert await execute_async(_policy(), func) == 42


@pytest.mark.asyncio
async def test_policy_execute_async(mock_asleep: Mock) -> None:
    func = AsyncMock(side_effect=[TransientError(), 42])
    assert await _policy().execute_async(func) == 42


@pytest.mark.asyncio
async def test_decorate_async(mock_asleep: Mock) -> None:
    calls = []

    @decorate_async(_policy())
    async def fetch(key: str) -> str:
        calls.append(key)
        if len(calls) < 3:
            raise TransientError
        return key.upper()

    assert await fetch("data") == "DATA"
    assert fetch.__name__ == "fetch"
    assert len(calls) == 3
    assert mock_asleep.call_count == 2
