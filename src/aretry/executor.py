r"""Synchronous retry executor.

This module provides the RetryExecutor class that repeatedly calls a work
unit under a retry policy, sleeping on the calling thread between
attempts, together with function and decorator helpers built on it.
"""

from __future__ import annotations

__all__ = ["RetryExecutor", "decorate", "execute", "with_retry"]

import functools
import logging
import time
from typing import TYPE_CHECKING, Any

from aretry.registry import get_default_registry
from aretry.utils.structured_logging import invocation_context, log_structured

if TYPE_CHECKING:
    from collections.abc import Callable

    from aretry.policy import RetryPolicy
    from aretry.registry import RetryRegistry

logger: logging.Logger = logging.getLogger(__name__)


class RetryExecutor:
    """Executes a work unit with automatic retry logic.

    The executor owns no state besides its policy and sleep function, so
    one instance may serve concurrent calls. Each call gets a fresh
    ``RetryContext`` from the policy. The sleep between attempts only
    blocks the calling thread; no lock is held while sleeping.

    Args:
        policy: The retry policy to apply.
        sleep: Optional function used to wait between attempts.
            Defaults to ``time.sleep``.

    Example:
        ```pycon
        >>> from aretry.executor import RetryExecutor
        >>> from aretry.policy import RetryPolicy
        >>> executor = RetryExecutor(RetryPolicy("backend"), sleep=lambda seconds: None)
        >>> executor.execute(sum, [1, 2, 3])
        6

        ```
    """

    def __init__(
        self, policy: RetryPolicy, sleep: Callable[[float], object] | None = None
    ) -> None:
        self.policy = policy
        self.sleep = sleep

    def execute(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Call ``func(*args, **kwargs)`` until the policy ends the
        invocation.

        Only ``Exception`` subclasses are classified. Other exceptions,
        such as ``KeyboardInterrupt``, propagate immediately without
        updating the metrics.

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
                    f"Calling {_func_name(func)} "
                    f"(attempt {context.attempt}/{context.max_attempts})",
                    attempt=context.attempt,
                    max_attempts=context.max_attempts,
                )
                try:
                    result = func(*args, **kwargs)
                except Exception as exc:
                    wait = context.on_error(exc)
                else:
                    wait = context.on_result(result)
                    if wait is None:
                        return result
                self._wait(wait)

    def _wait(self, seconds: float) -> None:
        if self.sleep is not None:
            self.sleep(seconds)
        else:
            time.sleep(seconds)


def execute(policy: RetryPolicy, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call ``func(*args, **kwargs)`` under ``policy``.

    Example:
        ```pycon
        >>> from aretry import RetryPolicy, execute
        >>> execute(RetryPolicy("backend"), max, 3, 7)
        7

        ```
    """
    return RetryExecutor(policy).execute(func, *args, **kwargs)


def decorate(policy: RetryPolicy) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Return a decorator running the decorated function under
    ``policy``."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return RetryExecutor(policy).execute(func, *args, **kwargs)

        return wrapper

    return decorator


def with_retry(
    policy: RetryPolicy | str, registry: RetryRegistry | None = None
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator running the decorated function under a policy or a
    named policy.

    When ``policy`` is a name, the policy is looked up in ``registry`` (the
    default registry when None) on every call, and created with the
    ``"default"`` configuration if it does not exist yet.

    Args:
        policy: A policy, or the name of one.
        registry: Registry used to resolve names.

    Returns:
        The decorator.

    Example:
        ```pycon
        >>> from aretry import RetryRegistry, with_retry
        >>> registry = RetryRegistry()
        >>> @with_retry("backend", registry=registry)
        ... def fetch():
        ...     return "data"
        ...
        >>> fetch()
        'data'
        >>> registry.find("backend")
        RetryPolicy(name='backend')

        ```
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return RetryExecutor(resolve_policy(policy, registry)).execute(func, *args, **kwargs)

        return wrapper

    return decorator


def resolve_policy(policy: RetryPolicy | str, registry: RetryRegistry | None) -> RetryPolicy:
    if not isinstance(policy, str):
        return policy
    if registry is None:
        registry = get_default_registry()
    return registry.retry(policy)


def _func_name(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", None) or repr(func)
