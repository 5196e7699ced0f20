r"""Randomized interval function."""

from __future__ import annotations

__all__ = ["DEFAULT_RANDOMIZATION_FACTOR", "Randomized", "randomize", "randomized"]

import random

from aretry.interval.base import BaseIntervalFunction, check_attempt

# Default spread around the base interval: +/- 50%
DEFAULT_RANDOMIZATION_FACTOR = 0.5


def check_factor(factor: float) -> None:
    if not 0 <= factor <= 1:
        msg = f"randomization factor must be in [0, 1], got {factor}"
        raise ValueError(msg)


def randomize(value: float, factor: float, rng: random.Random | None = None) -> float:
    """Spread a wait interval uniformly around its value.

    The result is drawn from ``[value * (1 - factor), value * (1 + factor)]``
    and never negative.

    Args:
        value: The base interval in seconds.
        factor: The randomization factor, in ``[0, 1]``.
        rng: Optional random source. Defaults to the non-seeded module source.

    Returns:
        The randomized interval in seconds.

    Example:
        ```pycon
        >>> import random
        >>> from aretry.interval.randomized import randomize
        >>> randomize(1.0, 0.0)
        1.0
        >>> 0.5 <= randomize(1.0, 0.5, random.Random(42)) <= 1.5
        True

        ```
    """
    if factor == 0:
        return value
    delta = factor * value
    uniform = rng.uniform if rng is not None else random.uniform
    return max(0.0, uniform(value - delta, value + delta))


class Randomized(BaseIntervalFunction):
    """Randomized interval function.

    Returns a wait drawn uniformly around a fixed interval, which spreads
    out retries of concurrent callers.

    Args:
        interval: The base interval in seconds (default: 0.5).
        factor: The randomization factor in ``[0, 1]`` (default: 0.5).
        rng: Optional random source, mostly useful for deterministic tests.

    Example:
        ```pycon
        >>> import random
        >>> from aretry.interval import Randomized
        >>> func = Randomized(1.0, factor=0.2, rng=random.Random(0))
        >>> 0.8 <= func.calculate(1) <= 1.2
        True

        ```
    """

    def __init__(
        self,
        interval: float = 0.5,
        factor: float = DEFAULT_RANDOMIZATION_FACTOR,
        rng: random.Random | None = None,
    ) -> None:
        if interval < 0:
            msg = f"interval must be non-negative, got {interval}"
            raise ValueError(msg)
        check_factor(factor)

        self.interval = interval
        self.factor = factor
        self.rng = rng

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(interval={self.interval}, factor={self.factor})"

    def calculate(self, attempt: int) -> float:
        check_attempt(attempt)
        return randomize(self.interval, self.factor, self.rng)


def randomized(
    interval: float, factor: float = DEFAULT_RANDOMIZATION_FACTOR, rng: random.Random | None = None
) -> Randomized:
    """Create a randomized interval function."""
    return Randomized(interval, factor=factor, rng=rng)
