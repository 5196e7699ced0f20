r"""Configuration dataclass and defaults for retry policies.

This module provides the immutable ``RetryConfig`` bundle of policy
parameters together with the mapping-based configuration surface used by
the registry.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_KEYS",
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_WAIT_DURATION",
    "RetryConfig",
    "always_retry_exception",
    "never_retry_result",
]

from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any

from aretry.exceptions import ConfigurationError
from aretry.interval import Fixed
from aretry.validation import (
    validate_callable,
    validate_exception_types,
    validate_retry_params,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from aretry.classifier import Outcome

# Name of the configuration used when no other one is requested
DEFAULT_CONFIG_NAME = "default"

# Total attempts including the initial call
DEFAULT_MAX_ATTEMPTS = 3

# Wait in seconds between attempts when no interval function is given
DEFAULT_WAIT_DURATION = 0.5

# Recognized keys of the mapping surface, mapped to field names
CONFIG_KEYS = {
    "max-attempts": "max_attempts",
    "wait-duration": "wait_duration",
    "interval-function": "interval_function",
    "interval-bi-function": "interval_bi_function",
    "retry-on-result-predicate": "retry_on_result_predicate",
    "retry-exception-predicate": "retry_exception_predicate",
    "retry-exceptions": "retry_exceptions",
    "ignore-exceptions": "ignore_exceptions",
    "fail-after-max-attempts": "fail_after_max_attempts",
}


def never_retry_result(result: Any) -> bool:  # noqa: ARG001
    """Default result predicate: no result triggers a retry."""
    return False


def always_retry_exception(exc: BaseException) -> bool:  # noqa: ARG001
    """Default exception predicate: every exception triggers a retry."""
    return True


@dataclass(frozen=True)
class RetryConfig:
    """Immutable configuration of a retry policy.

    Args:
        max_attempts: Maximum number of attempts, including the initial
            call. Must be >= 1.
        wait_duration: Wait in seconds between attempts, used when no
            interval function is given. Must be >= 0.
        interval_function: Optional function mapping the attempt number
            (1-indexed) to a wait in seconds.
        interval_bi_function: Optional function mapping the attempt number
            and the last ``Outcome`` to a wait in seconds. Mutually
            exclusive with ``interval_function``.
        retry_on_result_predicate: Predicate deciding whether a returned
            value should be retried.
        retry_exception_predicate: Predicate deciding whether a raised
            exception should be retried.
        retry_exceptions: Exception classes that are retried. Empty means
            every exception class is retryable.
        ignore_exceptions: Exception classes that are never retried. They
            take precedence over ``retry_exceptions`` and the predicate.
        fail_after_max_attempts: Whether exhausting the attempts raises
            ``MaxAttemptsExceededError`` instead of returning the last
            outcome.

    An exception raised by a predicate or an interval function ends the
    call as a permanent failure: an ``ignored_error`` event is published,
    the metrics are updated and that exception propagates in place of the
    attempt outcome.

    Raises:
        ConfigurationError: If any parameter fails validation.

    Example:
        ```pycon
        >>> from aretry.config import RetryConfig
        >>> config = RetryConfig()
        >>> config.max_attempts
        3
        >>> config = RetryConfig(max_attempts=5, retry_exceptions=[ConnectionError])
        >>> config.retry_exceptions
        (<class 'ConnectionError'>,)
        >>> merged = config.merge(max_attempts=10)
        >>> merged.max_attempts
        10
        >>> config.max_attempts  # Original unchanged
        5

        ```
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    wait_duration: float = DEFAULT_WAIT_DURATION
    interval_function: Callable[[int], float] | None = None
    interval_bi_function: Callable[[int, Outcome], float] | None = None
    retry_on_result_predicate: Callable[[Any], bool] = never_retry_result
    retry_exception_predicate: Callable[[BaseException], bool] = always_retry_exception
    retry_exceptions: tuple[type[BaseException], ...] = field(default_factory=tuple)
    ignore_exceptions: tuple[type[BaseException], ...] = field(default_factory=tuple)
    fail_after_max_attempts: bool = False

    def __post_init__(self) -> None:
        # Accept any iterable of exception classes but store tuples
        object.__setattr__(self, "retry_exceptions", tuple(self.retry_exceptions))
        object.__setattr__(self, "ignore_exceptions", tuple(self.ignore_exceptions))

        validate_retry_params(max_attempts=self.max_attempts, wait_duration=self.wait_duration)
        if self.interval_function is not None and self.interval_bi_function is not None:
            msg = "interval_function and interval_bi_function cannot both be set"
            raise ConfigurationError(msg)
        if self.interval_function is not None:
            validate_callable("interval_function", self.interval_function)
        if self.interval_bi_function is not None:
            validate_callable("interval_bi_function", self.interval_bi_function)
        validate_callable("retry_on_result_predicate", self.retry_on_result_predicate)
        validate_callable("retry_exception_predicate", self.retry_exception_predicate)
        validate_exception_types("retry_exceptions", self.retry_exceptions)
        validate_exception_types("ignore_exceptions", self.ignore_exceptions)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RetryConfig:
        """Create a config from a mapping of configuration keys.

        Keys may be spelled in kebab case (``"max-attempts"``) or snake
        case (``"max_attempts"``). Unknown keys are ignored and ``None``
        values fall back to the defaults.

        Args:
            data: The mapping to read.

        Returns:
            The validated config.

        Raises:
            ConfigurationError: If a recognized value fails validation.

        Example:
            ```pycon
            >>> from aretry.config import RetryConfig
            >>> config = RetryConfig.from_dict({"max-attempts": 5, "unknown": 1})
            >>> config.max_attempts
            5

            ```
        """
        known = set(CONFIG_KEYS.values())
        kwargs = {}
        for key, value in data.items():
            name = CONFIG_KEYS.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    def merge(self, **overrides: Any) -> RetryConfig:
        """Create a new config with specified parameters overridden.

        Only non-None override values are applied. The result is
        validated again.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new RetryConfig instance with overrides applied.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert the configuration to a dictionary keyed by field name.

        Returns:
            Dictionary with the configuration parameters.
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def resolve_interval(self) -> Callable[[int, Outcome], float]:
        """Return the effective interval as a function of the attempt
        number and the last outcome.

        Example:
            ```pycon
            >>> from aretry.config import RetryConfig
            >>> interval = RetryConfig(wait_duration=2.0).resolve_interval()
            >>> interval(1, None)
            2.0

            ```
        """
        if self.interval_bi_function is not None:
            return self.interval_bi_function
        interval_function = self.interval_function
        if interval_function is None:
            interval_function = Fixed(self.wait_duration)
        return lambda attempt, outcome: interval_function(attempt)  # noqa: ARG005
