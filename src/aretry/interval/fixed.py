r"""Fixed interval function."""

from __future__ import annotations

__all__ = ["Fixed", "interval"]

from aretry.interval.base import BaseIntervalFunction, check_attempt


class Fixed(BaseIntervalFunction):
    """Fixed interval function.

    Returns the same wait for every attempt, regardless of the attempt
    number. This is the default interval of a retry config.

    Args:
        interval: The wait in seconds between attempts.

    Example:
        ```pycon
        >>> from aretry.interval import Fixed
        >>> fixed = Fixed(2.5)
        >>> fixed.calculate(1)
        2.5
        >>> fixed.calculate(10)
        2.5

        ```
    """

    def __init__(self, interval: float) -> None:
        if interval < 0:
            msg = f"interval must be non-negative, got {interval}"
            raise ValueError(msg)

        self.interval = interval

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(interval={self.interval})"

    def calculate(self, attempt: int) -> float:
        check_attempt(attempt)
        return self.interval


def interval(interval: float) -> Fixed:
    """Create a fixed interval function.

    Args:
        interval: The wait in seconds between attempts.

    Returns:
        The interval function.
    """
    return Fixed(interval)
