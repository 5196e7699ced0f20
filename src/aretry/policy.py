r"""Retry policy and its per-invocation state machine.

A ``RetryPolicy`` binds a name and an immutable ``RetryConfig`` to a set of
metrics and an event publisher. It is reusable: every invocation gets its
own ``RetryContext`` from ``RetryPolicy.context()``, which walks through
the states below and updates the shared metrics when it finishes.

```
RUNNING(1) -> RUNNING(2) -> ... -> SUCCEEDED | FAILED_PERMANENTLY | EXHAUSTED
```
"""

from __future__ import annotations

__all__ = ["ANONYMOUS_NAME", "RetryContext", "RetryPolicy", "RetryState"]

import logging
from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, NoReturn

from aretry.classifier import Decision, FailureClassifier, Outcome
from aretry.config import RetryConfig
from aretry.events import (
    RetryOnErrorEvent,
    RetryOnIgnoredErrorEvent,
    RetryOnRetryEvent,
    RetryOnSuccessEvent,
)
from aretry.exceptions import MaxAttemptsExceededError
from aretry.metrics import RetryMetrics
from aretry.publisher import EventPublisher

if TYPE_CHECKING:
    import queue
    from collections.abc import Callable, Iterable

    from aretry.events import Event, EventKind
    from aretry.publisher import Subscription

logger: logging.Logger = logging.getLogger(__name__)

# Name given to policies created without one
ANONYMOUS_NAME = "anonymous"


class RetryState(Enum):
    """States of a single invocation.

    Attributes:
        RUNNING: An attempt is in progress or scheduled.
        SUCCEEDED: The call returned a value that was accepted.
        FAILED_PERMANENTLY: A failure was classified as not retryable.
        EXHAUSTED: The last allowed attempt was classified as retryable.
    """

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED_PERMANENTLY = "failed_permanently"
    EXHAUSTED = "exhausted"


class RetryContext:
    """State of one invocation driven by a policy.

    The executor reports every attempt outcome with ``on_result`` or
    ``on_error``. Both return the wait before the next attempt, or end the
    invocation: ``on_result`` returns None when the value should be handed
    back to the caller, and ``on_error`` raises the error to propagate.

    Args:
        policy: The policy driving this invocation.
    """

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy
        self.attempt = 1
        self.state = RetryState.RUNNING

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(policy={self.policy.name!r}, "
            f"attempt={self.attempt}, state={self.state.value})"
        )

    @property
    def max_attempts(self) -> int:
        return self.policy.config.max_attempts

    def on_result(self, result: Any) -> float | None:
        """Report an attempt that returned ``result``.

        Args:
            result: The value returned by the work unit.

        Returns:
            The wait in seconds before the next attempt, or None if
            ``result`` should be returned to the caller.

        Raises:
            MaxAttemptsExceededError: If the result is retryable, no attempt
                is left and the policy fails after max attempts.
        """
        outcome = Outcome.success(result)
        decision = self._classify(outcome)
        if decision is Decision.SUCCEED:
            self._succeed()
            return None
        if self.attempt < self.max_attempts:
            return self._schedule_retry(outcome)
        self._exhaust(outcome)
        return None

    def on_error(self, exc: Exception) -> float:
        """Report an attempt that raised ``exc``.

        Args:
            exc: The exception raised by the work unit.

        Returns:
            The wait in seconds before the next attempt.

        Raises:
            Exception: ``exc`` itself when the failure is permanent or the
                attempts are exhausted.
            MaxAttemptsExceededError: If no attempt is left and the policy
                fails after max attempts.
        """
        outcome = Outcome.failure(exc)
        decision = self._classify(outcome)
        if decision is Decision.FAIL_PERMANENTLY:
            self._fail_permanently(outcome)
        if decision is Decision.RETRY and self.attempt < self.max_attempts:
            return self._schedule_retry(outcome)
        # Retryable, but no attempt left
        self._exhaust(outcome)
        raise exc

    def _classify(self, outcome: Outcome) -> Decision:
        if self.state is not RetryState.RUNNING:
            msg = f"Retry context is already finished ({self.state.value})"
            raise RuntimeError(msg)
        try:
            return self.policy.classifier.classify(outcome)
        except Exception as exc:
            self._fail_on_hook_error(exc)

    def _succeed(self) -> None:
        self.state = RetryState.SUCCEEDED
        self.policy.metrics.record_success(self.attempt)
        if self.attempt > 1:
            logger.debug(f"Retry '{self.policy.name}' succeeded on attempt {self.attempt}")
            self.policy.publish(
                RetryOnSuccessEvent(policy_name=self.policy.name, attempt=self.attempt)
            )

    def _schedule_retry(self, outcome: Outcome) -> float:
        try:
            wait = self.policy.compute_wait(self.attempt, outcome)
        except Exception as exc:
            self._fail_on_hook_error(exc)
        logger.debug(
            f"Retry '{self.policy.name}' attempt {self.attempt}/{self.max_attempts} failed, "
            f"waiting {wait:.3f}s"
        )
        self.policy.publish(
            RetryOnRetryEvent(
                policy_name=self.policy.name,
                attempt=self.attempt,
                wait_interval=wait,
                last_outcome=outcome,
            )
        )
        self.attempt += 1
        return wait

    def _exhaust(self, outcome: Outcome) -> None:
        self.state = RetryState.EXHAUSTED
        logger.debug(f"Retry '{self.policy.name}' exhausted after {self.attempt} attempts")
        self.policy.publish(
            RetryOnErrorEvent(
                policy_name=self.policy.name, attempt=self.attempt, last_outcome=outcome
            )
        )
        self.policy.metrics.record_failure(self.attempt)
        if self.policy.config.fail_after_max_attempts:
            raise MaxAttemptsExceededError(
                self.policy.name, self.attempt, outcome
            ) from outcome.exception

    def _fail_permanently(self, outcome: Outcome) -> NoReturn:
        self.state = RetryState.FAILED_PERMANENTLY
        logger.debug(
            f"Retry '{self.policy.name}' will not retry {type(outcome.exception).__name__} "
            f"(attempt {self.attempt})"
        )
        self.policy.publish(
            RetryOnIgnoredErrorEvent(
                policy_name=self.policy.name, attempt=self.attempt, last_outcome=outcome
            )
        )
        self.policy.metrics.record_failure(self.attempt)
        raise outcome.exception

    def _fail_on_hook_error(self, exc: Exception) -> NoReturn:
        # A raising predicate or interval function ends the invocation with its own error
        logger.debug(
            f"Retry '{self.policy.name}' hook raised {type(exc).__name__} "
            f"(attempt {self.attempt})"
        )
        self._fail_permanently(Outcome.failure(exc))


class RetryPolicy:
    """Reusable retry policy bound to one configuration.

    The policy itself holds no per-invocation state, so the same instance
    can drive concurrent independent calls. Metrics accumulate across all
    calls.

    Args:
        name: Name of the policy, used in events and logs.
        config: A ``RetryConfig``, a mapping of configuration keys, or None
            for the defaults.

    Attributes:
        name: Name of the policy.
        config: The immutable configuration.
        metrics: Counters of finished calls.
        event_publisher: Publisher of the policy events.

    Example:
        ```pycon
        >>> from aretry.policy import RetryPolicy
        >>> policy = RetryPolicy("backend", {"max-attempts": 2, "wait-duration": 0})
        >>> calls = []
        >>> def flaky():
        ...     calls.append(1)
        ...     if len(calls) < 2:
        ...         raise ConnectionError("reset")
        ...     return "ok"
        ...
        >>> policy.execute(flaky)
        'ok'
        >>> policy.metrics.succeeded_with_retry
        1

        ```
    """

    def __init__(
        self, name: str | None = None, config: RetryConfig | Mapping[str, Any] | None = None
    ) -> None:
        if config is None:
            config = RetryConfig()
        elif isinstance(config, Mapping):
            config = RetryConfig.from_dict(config)
        self.name = ANONYMOUS_NAME if name is None else name
        self.config: RetryConfig = config
        self.classifier = FailureClassifier.from_config(config)
        self.metrics = RetryMetrics()
        self.event_publisher = EventPublisher()
        self._interval = config.resolve_interval()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(name={self.name!r})"

    def context(self) -> RetryContext:
        """Start a new invocation."""
        return RetryContext(self)

    def compute_wait(self, attempt: int, outcome: Outcome) -> float:
        """Compute the wait in seconds after ``attempt`` failed with
        ``outcome``.

        Negative values returned by a custom interval function are clamped
        to zero.
        """
        wait = float(self._interval(attempt, outcome))
        if wait < 0:
            logger.warning(
                f"Interval function of retry '{self.name}' returned a negative wait "
                f"({wait}), using 0"
            )
            wait = 0.0
        return wait

    def publish(self, event: Event) -> None:
        self.event_publisher.publish(event)

    def emit_events(
        self,
        target: Callable[[Any], object] | queue.Queue | None = None,
        *,
        only: Iterable[EventKind | str] | None = None,
        exclude: Iterable[EventKind | str] | None = None,
    ) -> Subscription:
        """Subscribe to the events of this policy.

        Args:
            target: A callable receiving each event, an existing
                ``queue.Queue`` to feed, or None to create a bounded queue.
            only: Optional kinds to deliver exclusively. Wins over
                ``exclude``.
            exclude: Optional kinds to skip.

        Returns:
            The subscription.
        """
        return self.event_publisher.emit_to(target, only=only, exclude=exclude)

    def execute(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Call ``func`` with ``args`` and ``kwargs`` under this policy,
        blocking the calling thread between attempts."""
        from aretry.executor import RetryExecutor

        return RetryExecutor(self).execute(func, *args, **kwargs)

    async def execute_async(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Await ``func`` with ``args`` and ``kwargs`` under this policy,
        suspending the running task between attempts."""
        from aretry.executor_async import AsyncRetryExecutor

        return await AsyncRetryExecutor(self).execute(func, *args, **kwargs)
