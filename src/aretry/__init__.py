r"""aretry - Configurable retry execution engine.

This package runs a unit of work repeatedly until it succeeds, a failure
is classified as permanent, or a maximum number of attempts is reached.
Waits between attempts are computed by pluggable interval functions, and
every notable outcome is published as an event.

Key Features:
    - Immutable, validated retry configurations built from keyword
      arguments or plain mappings
    - Fixed, randomized, exponential and exponential randomized intervals
    - Failure classification by result predicate, exception predicate and
      retryable or ignored exception types
    - Reusable policies with thread-safe metrics
    - Synchronous and asyncio executors, plus decorators
    - Named registry of policies and configurations with a process-wide
      default
    - Event streams for policies and registries, delivered to callbacks or
      bounded queues

Example:
    ```pycon
    >>> from aretry import RetryPolicy, exponential_backoff
    >>> policy = RetryPolicy(
    ...     "backend",
    ...     {"max-attempts": 4, "interval-function": exponential_backoff(0.1, 2.0)},
    ... )
    >>> policy.execute(lambda: "data")
    'data'

    ```
"""

from __future__ import annotations

__all__ = [
    "AsyncRetryExecutor",
    "ConfigurationError",
    "ConfigurationNotFoundError",
    "Decision",
    "EntryAddedEvent",
    "EntryRemovedEvent",
    "EntryReplacedEvent",
    "Event",
    "EventKind",
    "EventPublisher",
    "ExponentialBackoff",
    "ExponentialRandomBackoff",
    "FailureClassifier",
    "Fixed",
    "MaxAttemptsExceededError",
    "MetricsSnapshot",
    "Outcome",
    "Randomized",
    "RetryConfig",
    "RetryContext",
    "RetryError",
    "RetryExecutor",
    "RetryMetrics",
    "RetryOnErrorEvent",
    "RetryOnIgnoredErrorEvent",
    "RetryOnRetryEvent",
    "RetryOnSuccessEvent",
    "RetryPolicy",
    "RetryRegistry",
    "__version__",
    "configure_default_registry",
    "decorate",
    "decorate_async",
    "execute",
    "execute_async",
    "exponential_backoff",
    "exponential_random_backoff",
    "get_default_registry",
    "interval",
    "randomized",
    "set_default_registry",
    "with_retry",
]

from importlib.metadata import PackageNotFoundError, version

from aretry.classifier import Decision, FailureClassifier, Outcome
from aretry.config import RetryConfig
from aretry.events import (
    EntryAddedEvent,
    EntryRemovedEvent,
    EntryReplacedEvent,
    Event,
    EventKind,
    RetryOnErrorEvent,
    RetryOnIgnoredErrorEvent,
    RetryOnRetryEvent,
    RetryOnSuccessEvent,
)
from aretry.exceptions import (
    ConfigurationError,
    ConfigurationNotFoundError,
    MaxAttemptsExceededError,
    RetryError,
)
from aretry.executor import RetryExecutor, decorate, execute, with_retry
from aretry.executor_async import AsyncRetryExecutor, decorate_async, execute_async
from aretry.interval import (
    ExponentialBackoff,
    ExponentialRandomBackoff,
    Fixed,
    Randomized,
    exponential_backoff,
    exponential_random_backoff,
    interval,
    randomized,
)
from aretry.metrics import MetricsSnapshot, RetryMetrics
from aretry.policy import RetryContext, RetryPolicy
from aretry.publisher import EventPublisher
from aretry.registry import (
    RetryRegistry,
    configure_default_registry,
    get_default_registry,
    set_default_registry,
)

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
