r"""Asynchronous retry executor.

This module provides the AsyncRetryExecutor class, the asyncio
counterpart of ``RetryExecutor``. Waits between attempts suspend only the
running task, so other tasks keep running.
"""

from __future__ import annotations

__all__ = ["AsyncRetryExecutor", "decorate_async", "execute_async"]

import asyncio
import functools
import inspect
import logging
from typing import TYPE_CHECKING, Any

from aretry.utils.structured_logging import invocation_context, log_structured

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from aretry.policy import RetryPolicy

logger: logging.Logger = logging.getLogger(__name__)


class AsyncRetryExecutor:
    """Executes an async work unit with automatic retry logic.

    The work unit may be a coroutine function or a plain function; any
    awaitable it returns is awaited before the outcome is classified.
    Cancelling the task (``asyncio.CancelledError``) during an attempt or a
    wait propagates without updating the metrics.

    Args:
        policy: The retry policy to apply.
        sleep: Optional coroutine function used to wait between attempts.
            Defaults to ``asyncio.sleep``.

    Example:
        ```pycon
        >>> import asyncio
        >>> from aretry.executor_async import AsyncRetryExecutor
        >>> from aretry.policy import RetryPolicy
        >>> async def fetch():
        ...     return "data"
        ...
        >>> asyncio.run(AsyncRetryExecutor(RetryPolicy("backend")).execute(fetch))
        'data'

        ```
    """

    def __init__(
        self, policy: RetryPolicy, sleep: Callable[[float], Awaitable[object]] | None = None
    ) -> None:
        self.policy = policy
        self.sleep = sleep

    async def execute(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Await ``func(*args, **kwargs)`` until the policy ends the
        invocation.

        Args:
            func: The work unit.
            *args: Positional arguments passed to ``func``.
            **kwargs: Keyword arguments passed to ``func``.

        Returns:
            The accepted result, or the last result when the attempts are
            exhausted on a retryable result.

        Raises:
            MaxAttemptsExceededError: If the attempts are exhausted and the
                policy fails after max attempts.
            Exception: The work unit's own exception when it is not retried
                or the attempts are exhausted.
        """
        context = self.policy.context()
        with invocation_context(self.policy.name):
            while True:
                log_structured(
                    logger,
                    logging.DEBUG,
                    f"Calling {getattr(func, '__qualname__', func)} "
                    f"(attempt {context.attempt}/{context.max_attempts})",
                    attempt=context.attempt,
                    max_attempts=context.max_attempts,
                )
                try:
                    result = func(*args, **kwargs)
                    if inspect.isawaitable(result):
                        result = await result
                except Exception as exc:
                    wait = context.on_error(exc)
                else:
                    wait = context.on_result(result)
                    if wait is None:
                        return result
                await self._wait(wait)

    async def _wait(self, seconds: float) -> None:
        if self.sleep is not None:
            await self.sleep(seconds)
        else:
            await asyncio.sleep(seconds)


async def execute_async(
    policy: RetryPolicy, func: Callable[..., Any], *args: Any, **kwargs: Any
) -> Any:
    """Await ``func(*args, **kwargs)`` under ``policy``."""
    return await AsyncRetryExecutor(policy).execute(func, *args, **kwargs)


def decorate_async(
    policy: RetryPolicy,
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Return a decorator running the decorated coroutine function under
    ``policy``."""

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return await AsyncRetryExecutor(policy).execute(func, *args, **kwargs)

        return wrapper

    return decorator
