r"""Interval functions for computing the wait between retry attempts.

This package provides the strategies used by retry policies to decide how
long to wait before the next attempt: fixed, randomized, exponential and
exponential-with-randomization intervals.
"""

from __future__ import annotations

__all__ = [
    "MAX_INTERVAL",
    "BaseIntervalFunction",
    "ExponentialBackoff",
    "ExponentialRandomBackoff",
    "Fixed",
    "Randomized",
    "exponential_backoff",
    "exponential_random_backoff",
    "interval",
    "randomized",
]

from aretry.interval.base import BaseIntervalFunction
from aretry.interval.exponential import (
    MAX_INTERVAL,
    ExponentialBackoff,
    ExponentialRandomBackoff,
    exponential_backoff,
    exponential_random_backoff,
)
from aretry.interval.fixed import Fixed, interval
from aretry.interval.randomized import Randomized, randomized
