r"""Abstract base class for interval functions."""

from __future__ import annotations

__all__ = ["BaseIntervalFunction", "check_attempt"]

from abc import ABC, abstractmethod


def check_attempt(attempt: int) -> None:
    """Raise ``ValueError`` if ``attempt`` is not a valid 1-indexed
    attempt number."""
    if attempt < 1:
        msg = f"attempt must be >= 1, got {attempt}"
        raise ValueError(msg)


class BaseIntervalFunction(ABC):
    """Abstract base class for interval functions.

    An interval function determines how long to wait before the next
    attempt based on the number of attempts made so far. Instances are
    callable, so they can be used anywhere a plain
    ``Callable[[int], float]`` is accepted.
    """

    @abstractmethod
    def calculate(self, attempt: int) -> float:
        """Calculate the wait interval after a given attempt.

        Args:
            attempt: The attempt that just failed (1-indexed). For example,
                attempt=1 is the initial call, attempt=2 the first retry, etc.

        Returns:
            The wait in seconds before the next attempt.
        """

    def __call__(self, attempt: int) -> float:
        return self.calculate(attempt)
