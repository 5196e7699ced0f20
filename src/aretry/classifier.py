r"""Failure classification for retry attempts.

This module provides the FailureClassifier class that encapsulates the
logic for deciding whether the outcome of an attempt is a success, should
be retried, or is a permanent failure.
"""

from __future__ import annotations

__all__ = ["Decision", "FailureClassifier", "Outcome"]

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from aretry.config import RetryConfig

logger: logging.Logger = logging.getLogger(__name__)


class Decision(Enum):
    """Classification of an attempt outcome.

    Attributes:
        SUCCEED: The outcome is returned to the caller.
        RETRY: The attempt should be made again, if attempts remain.
        FAIL_PERMANENTLY: The failure is propagated without further attempts.
    """

    SUCCEED = "succeed"
    RETRY = "retry"
    FAIL_PERMANENTLY = "fail_permanently"


@dataclass(frozen=True)
class Outcome:
    """Outcome of a single attempt: either a value or an exception.

    Attributes:
        value: The returned value, ``None`` for failures.
        exception: The raised exception, ``None`` for successes.

    Example:
        ```pycon
        >>> from aretry.classifier import Outcome
        >>> Outcome.success(42).is_failure
        False
        >>> Outcome.failure(ValueError("boom")).is_failure
        True

        ```
    """

    value: Any = None
    exception: BaseException | None = None

    @classmethod
    def success(cls, value: Any) -> Outcome:
        return cls(value=value)

    @classmethod
    def failure(cls, exception: BaseException) -> Outcome:
        return cls(exception=exception)

    @property
    def is_failure(self) -> bool:
        return self.exception is not None


class FailureClassifier:
    """Decides whether the outcome of an attempt should be retried.

    The evaluation order is fixed:

    1. A returned value is retried if ``retry_on_result_predicate`` holds,
       otherwise it succeeds.
    2. An exception whose type matches ``ignore_exceptions`` fails
       permanently. Otherwise, if ``retry_exceptions`` is non-empty and
       the type matches none of them, it fails permanently. Otherwise, if
       ``retry_exception_predicate`` returns False, it fails permanently.
       Anything else is retried.

    Type matching honors subclasses.

    Args:
        retry_on_result_predicate: Predicate over returned values.
        retry_exception_predicate: Predicate over raised exceptions.
        retry_exceptions: Retryable exception classes, empty for all.
        ignore_exceptions: Exception classes that are never retried.

    Example:
        ```pycon
        >>> from aretry.classifier import FailureClassifier, Outcome
        >>> classifier = FailureClassifier(ignore_exceptions=(KeyError,))
        >>> classifier.classify(Outcome.failure(KeyError("missing")))
        <Decision.FAIL_PERMANENTLY: 'fail_permanently'>
        >>> classifier.classify(Outcome.failure(TimeoutError()))
        <Decision.RETRY: 'retry'>

        ```
    """

    def __init__(
        self,
        retry_on_result_predicate: Callable[[Any], bool] | None = None,
        retry_exception_predicate: Callable[[BaseException], bool] | None = None,
        retry_exceptions: tuple[type[BaseException], ...] = (),
        ignore_exceptions: tuple[type[BaseException], ...] = (),
    ) -> None:
        self.retry_on_result_predicate = retry_on_result_predicate
        self.retry_exception_predicate = retry_exception_predicate
        self.retry_exceptions = tuple(retry_exceptions)
        self.ignore_exceptions = tuple(ignore_exceptions)

    @classmethod
    def from_config(cls, config: RetryConfig) -> FailureClassifier:
        """Build a classifier from the predicates and type sets of a
        config."""
        return cls(
            retry_on_result_predicate=config.retry_on_result_predicate,
            retry_exception_predicate=config.retry_exception_predicate,
            retry_exceptions=config.retry_exceptions,
            ignore_exceptions=config.ignore_exceptions,
        )

    def classify(self, outcome: Outcome) -> Decision:
        """Classify the outcome of an attempt.

        Args:
            outcome: The outcome to classify.

        Returns:
            The decision for this outcome.
        """
        if not outcome.is_failure:
            return self.classify_result(outcome.value)
        return self.classify_exception(outcome.exception)

    def classify_result(self, result: Any) -> Decision:
        if self.retry_on_result_predicate is not None and self.retry_on_result_predicate(result):
            return Decision.RETRY
        return Decision.SUCCEED

    def classify_exception(self, exception: BaseException) -> Decision:
        if self.ignore_exceptions and isinstance(exception, self.ignore_exceptions):
            logger.debug(f"{type(exception).__name__} is an ignored exception type")
            return Decision.FAIL_PERMANENTLY
        if self.retry_exceptions and not isinstance(exception, self.retry_exceptions):
            logger.debug(f"{type(exception).__name__} is not a retryable exception type")
            return Decision.FAIL_PERMANENTLY
        if self.retry_exception_predicate is not None and not self.retry_exception_predicate(
            exception
        ):
            logger.debug(f"{type(exception).__name__} rejected by retry_exception_predicate")
            return Decision.FAIL_PERMANENTLY
        return Decision.RETRY
