r"""Parameter validation utilities for retry configurations.

This module provides validation functions for retry parameters to ensure
they meet the required constraints before a policy is built from them.
"""

from __future__ import annotations

__all__ = [
    "validate_callable",
    "validate_exception_types",
    "validate_name",
    "validate_queue_size",
    "validate_retry_params",
]

from typing import Any

from aretry.exceptions import ConfigurationError


def validate_retry_params(max_attempts: int, wait_duration: float) -> None:
    """Validate the numeric retry parameters.

    Args:
        max_attempts: Maximum number of attempts, including the initial
            call. Must be an ``int`` >= 1.
        wait_duration: Base wait in seconds between attempts. Must be >= 0.

    Raises:
        ConfigurationError: If a parameter is out of range.

    Example:
        ```pycon
        >>> from aretry.validation import validate_retry_params
        >>> validate_retry_params(max_attempts=3, wait_duration=0.5)
        >>> validate_retry_params(max_attempts=0, wait_duration=0.5)
        Traceback (most recent call last):
        ...
        aretry.exceptions.ConfigurationError: max_attempts must be >= 1, got 0

        ```
    """
    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int):
        msg = f"max_attempts must be an int, got {max_attempts!r}"
        raise ConfigurationError(msg)
    if max_attempts < 1:
        msg = f"max_attempts must be >= 1, got {max_attempts}"
        raise ConfigurationError(msg)
    if isinstance(wait_duration, bool) or not isinstance(wait_duration, (int, float)):
        msg = f"wait_duration must be a number, got {wait_duration!r}"
        raise ConfigurationError(msg)
    if wait_duration < 0:
        msg = f"wait_duration must be >= 0, got {wait_duration}"
        raise ConfigurationError(msg)


def validate_callable(name: str, value: Any) -> None:
    """Raise ``ConfigurationError`` if ``value`` is not callable."""
    if not callable(value):
        msg = f"{name} must be callable, got {value!r}"
        raise ConfigurationError(msg)


def validate_exception_types(name: str, types: tuple[Any, ...]) -> None:
    """Raise ``ConfigurationError`` unless every entry is an exception
    class."""
    for exc_type in types:
        if not (isinstance(exc_type, type) and issubclass(exc_type, BaseException)):
            msg = f"{name} must only contain exception classes, got {exc_type!r}"
            raise ConfigurationError(msg)


def validate_name(name: Any) -> str:
    """Validate and normalize a policy or configuration name.

    Strings are used as is. Enum members are replaced by their value.

    Args:
        name: The name to validate.

    Returns:
        The normalized name.

    Raises:
        ConfigurationError: If the name is not a non-empty string.

    Example:
        ```pycon
        >>> from aretry.validation import validate_name
        >>> validate_name("backend")
        'backend'

        ```
    """
    value = getattr(name, "value", name)
    if not isinstance(value, str) or not value:
        msg = f"name must be a non-empty string, got {name!r}"
        raise ConfigurationError(msg)
    return value


def validate_queue_size(maxsize: Any) -> int:
    """Validate the capacity of an event queue.

    Args:
        maxsize: The capacity. Must be an ``int`` >= 1, since an unbounded
            queue could hold events indefinitely.

    Returns:
        The capacity.

    Raises:
        ConfigurationError: If the capacity is not a positive int.

    Example:
        ```pycon
        >>> from aretry.validation import validate_queue_size
        >>> validate_queue_size(10)
        10
        >>> validate_queue_size(0)
        Traceback (most recent call last):
        ...
        aretry.exceptions.ConfigurationError: maxsize must be >= 1, got 0

        ```
    """
    if isinstance(maxsize, bool) or not isinstance(maxsize, int):
        msg = f"maxsize must be an int, got {maxsize!r}"
        raise ConfigurationError(msg)
    if maxsize < 1:
        msg = f"maxsize must be >= 1, got {maxsize}"
        raise ConfigurationError(msg)
    return maxsize
