r"""Exception classes raised by the retry engine.

The work unit's own exceptions are never wrapped unless a policy is
configured with ``fail_after_max_attempts=True``; the classes below only
describe failures of the engine itself.
"""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "ConfigurationNotFoundError",
    "MaxAttemptsExceededError",
    "RetryError",
]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aretry.classifier import Outcome


class RetryError(Exception):
    """Base class for all errors raised by aretry."""


class ConfigurationError(RetryError, ValueError):
    """Exception raised when a retry parameter is invalid.

    Example:
        ```pycon
        >>> from aretry.exceptions import ConfigurationError
        >>> raise ConfigurationError("max_attempts must be >= 1, got 0")
        Traceback (most recent call last):
            ...
        aretry.exceptions.ConfigurationError: max_attempts must be >= 1, got 0

        ```
    """


class ConfigurationNotFoundError(RetryError, LookupError):
    """Exception raised when a named configuration is not registered.

    Args:
        config_name: The name that was looked up.

    Example:
        ```pycon
        >>> from aretry.exceptions import ConfigurationNotFoundError
        >>> exc = ConfigurationNotFoundError("slow-backend")
        >>> exc.config_name
        'slow-backend'

        ```
    """

    def __init__(self, config_name: str) -> None:
        super().__init__(f"Configuration with name '{config_name}' does not exist")
        self.config_name = config_name


class MaxAttemptsExceededError(RetryError):
    """Exception raised when a policy exhausts its attempts and is
    configured to fail after the last one.

    The last outcome is kept on the exception. When the last attempt
    raised, that exception is also chained as ``__cause__``.

    Args:
        policy_name: Name of the policy that gave up.
        attempts: Number of attempts that were made.
        last_outcome: Outcome of the final attempt.

    Example:
        ```pycon
        >>> from aretry.classifier import Outcome
        >>> from aretry.exceptions import MaxAttemptsExceededError
        >>> exc = MaxAttemptsExceededError("backend", 3, Outcome.success(None))
        >>> str(exc)
        "Retry 'backend' has exhausted all attempts (3)"

        ```
    """

    def __init__(self, policy_name: str, attempts: int, last_outcome: Outcome) -> None:
        super().__init__(f"Retry '{policy_name}' has exhausted all attempts ({attempts})")
        self.policy_name = policy_name
        self.attempts = attempts
        self.last_outcome = last_outcome
