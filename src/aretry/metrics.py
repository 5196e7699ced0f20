r"""Thread-safe call counters of a retry policy."""

from __future__ import annotations

__all__ = ["MetricsSnapshot", "RetryMetrics"]

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time copy of the counters of a policy.

    Attributes:
        succeeded_without_retry: Calls that succeeded on the first attempt.
        succeeded_with_retry: Calls that succeeded after at least one retry.
        failed_with_retry: Calls that failed after at least one retry.
        failed_without_retry: Calls that failed on the first attempt.
    """

    succeeded_without_retry: int = 0
    succeeded_with_retry: int = 0
    failed_with_retry: int = 0
    failed_without_retry: int = 0


class RetryMetrics:
    """Monotonic counters of finished invocations.

    Counters only grow. Every increment happens under a lock so that
    concurrent invocations of the same policy never lose updates.

    Example:
        ```pycon
        >>> from aretry.metrics import RetryMetrics
        >>> metrics = RetryMetrics()
        >>> metrics.record_success(attempt=1)
        >>> metrics.record_failure(attempt=3)
        >>> metrics.succeeded_without_retry, metrics.failed_with_retry
        (1, 1)

        ```
    """

    def __init__(self) -> None:
        self._succeeded_without_retry = 0
        self._succeeded_with_retry = 0
        self._failed_with_retry = 0
        self._failed_without_retry = 0
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self.snapshot()})"

    @property
    def succeeded_without_retry(self) -> int:
        with self._lock:
            return self._succeeded_without_retry

    @property
    def succeeded_with_retry(self) -> int:
        with self._lock:
            return self._succeeded_with_retry

    @property
    def failed_with_retry(self) -> int:
        with self._lock:
            return self._failed_with_retry

    @property
    def failed_without_retry(self) -> int:
        with self._lock:
            return self._failed_without_retry

    def record_success(self, attempt: int) -> None:
        """Count a call that succeeded on ``attempt`` (1-indexed)."""
        with self._lock:
            if attempt > 1:
                self._succeeded_with_retry += 1
            else:
                self._succeeded_without_retry += 1

    def record_failure(self, attempt: int) -> None:
        """Count a call that failed on ``attempt`` (1-indexed)."""
        with self._lock:
            if attempt > 1:
                self._failed_with_retry += 1
            else:
                self._failed_without_retry += 1

    def snapshot(self) -> MetricsSnapshot:
        """Return a consistent copy of all counters."""
        with self._lock:
            return MetricsSnapshot(
                succeeded_without_retry=self._succeeded_without_retry,
                succeeded_with_retry=self._succeeded_with_retry,
                failed_with_retry=self._failed_with_retry,
                failed_without_retry=self._failed_without_retry,
            )
