r"""Exponential interval functions."""

from __future__ import annotations

__all__ = [
    "DEFAULT_MULTIPLIER",
    "MAX_INTERVAL",
    "ExponentialBackoff",
    "ExponentialRandomBackoff",
    "exponential_backoff",
    "exponential_random_backoff",
]

from typing import TYPE_CHECKING

from aretry.interval.base import BaseIntervalFunction, check_attempt
from aretry.interval.randomized import DEFAULT_RANDOMIZATION_FACTOR, check_factor, randomize

if TYPE_CHECKING:
    import random

DEFAULT_MULTIPLIER = 1.5

# Hard upper bound for any exponential interval (one day)
MAX_INTERVAL = 86400.0


class ExponentialBackoff(BaseIntervalFunction):
    """Exponential backoff interval function.

    Calculates the wait as ``initial * multiplier ** (attempt - 1)``,
    capped at ``max_interval`` when given and always at
    ``MAX_INTERVAL``.

    Args:
        initial: The wait in seconds after the first attempt (default: 0.5).
        multiplier: Growth factor between consecutive waits. Must be >= 1
            (default: 1.5).
        max_interval: Optional cap in seconds.

    Example:
        ```pycon
        >>> from aretry.interval import ExponentialBackoff
        >>> backoff = ExponentialBackoff(initial=0.1, multiplier=2)
        >>> [backoff.calculate(attempt) for attempt in range(1, 5)]
        [0.1, 0.2, 0.4, 0.8]
        >>> backoff = ExponentialBackoff(initial=1.0, multiplier=2, max_interval=5.0)
        >>> backoff.calculate(10)  # Would be 512.0, but capped
        5.0

        ```
    """

    def __init__(
        self,
        initial: float = 0.5,
        multiplier: float = DEFAULT_MULTIPLIER,
        max_interval: float | None = None,
    ) -> None:
        if initial < 0:
            msg = f"initial must be non-negative, got {initial}"
            raise ValueError(msg)
        if multiplier < 1:
            msg = f"multiplier must be >= 1, got {multiplier}"
            raise ValueError(msg)
        if max_interval is not None and max_interval <= 0:
            msg = f"max_interval must be positive if specified, got {max_interval}"
            raise ValueError(msg)

        self.initial = initial
        self.multiplier = multiplier
        self.max_interval = max_interval

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(initial={self.initial}, "
            f"multiplier={self.multiplier}, max_interval={self.max_interval})"
        )

    def calculate(self, attempt: int) -> float:
        check_attempt(attempt)
        cap = MAX_INTERVAL if self.max_interval is None else min(self.max_interval, MAX_INTERVAL)
        try:
            delay = self.initial * self.multiplier ** (attempt - 1)
        except OverflowError:
            return cap
        return min(delay, cap)


class ExponentialRandomBackoff(ExponentialBackoff):
    """Exponential backoff with randomization.

    The exponential wait is spread by ``factor`` around its value, the same
    way ``Randomized`` spreads a fixed interval.

    Args:
        initial: The wait in seconds after the first attempt (default: 0.5).
        multiplier: Growth factor between consecutive waits (default: 1.5).
        factor: The randomization factor in ``[0, 1]`` (default: 0.5).
        rng: Optional random source, mostly useful for deterministic tests.
        max_interval: Optional cap in seconds, applied before randomization.

    Example:
        ```pycon
        >>> import random
        >>> from aretry.interval import ExponentialRandomBackoff
        >>> backoff = ExponentialRandomBackoff(1.0, multiplier=2, factor=0.5, rng=random.Random(1))
        >>> 2.0 <= backoff.calculate(3) <= 6.0
        True

        ```
    """

    def __init__(
        self,
        initial: float = 0.5,
        multiplier: float = DEFAULT_MULTIPLIER,
        factor: float = DEFAULT_RANDOMIZATION_FACTOR,
        rng: random.Random | None = None,
        max_interval: float | None = None,
    ) -> None:
        super().__init__(initial=initial, multiplier=multiplier, max_interval=max_interval)
        check_factor(factor)
        self.factor = factor
        self.rng = rng

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(initial={self.initial}, "
            f"multiplier={self.multiplier}, factor={self.factor}, "
            f"max_interval={self.max_interval})"
        )

    def calculate(self, attempt: int) -> float:
        return randomize(super().calculate(attempt), self.factor, self.rng)


def exponential_backoff(
    initial: float = 0.5, multiplier: float = DEFAULT_MULTIPLIER
) -> ExponentialBackoff:
    """Create an exponential backoff interval function."""
    return ExponentialBackoff(initial=initial, multiplier=multiplier)


def exponential_random_backoff(
    initial: float = 0.5,
    multiplier: float = DEFAULT_MULTIPLIER,
    factor: float = DEFAULT_RANDOMIZATION_FACTOR,
) -> ExponentialRandomBackoff:
    """Create an exponential random backoff interval function."""
    return ExponentialRandomBackoff(initial=initial, multiplier=multiplier, factor=factor)
