r"""Unit tests for the exponential interval functions."""

from __future__ import annotations

import random

import pytest

from aretry.interval import (
    MAX_INTERVAL,
    ExponentialBackoff,
    ExponentialRandomBackoff,
    exponential_backoff,
    exponential_random_backoff,
)

##########################################
#     Tests for ExponentialBackoff       #
##########################################


def test_exponential_backoff_basic() -> None:
    """Test basic exponential backoff calculation."""
    backoff = ExponentialBackoff(initial=0.1, multiplier=2)
    assert backoff.calculate(1) == 0.1  # 0.1 * 2^0
    assert backoff.calculate(2) == 0.2  # 0.1 * 2^1
    assert backoff.calculate(3) == 0.4  # 0.1 * 2^2
    assert backoff.calculate(4) == 0.8  # 0.1 * 2^3


def test_exponential_backoff_integer_sequence() -> None:
    backoff = ExponentialBackoff(initial=100.0, multiplier=2.0)
    assert [backoff(attempt) for attempt in range(1, 5)] == [100.0, 200.0, 400.0, 800.0]


def test_exponential_backoff_default_values() -> None:
    """Test exponential backoff with default values."""
    backoff = ExponentialBackoff()
    assert backoff.initial == 0.5
    assert backoff.multiplier == 1.5
    assert backoff.max_interval is None
    assert backoff.calculate(1) == 0.5
    assert backoff.calculate(2) == 0.75


def test_exponential_backoff_with_max_interval() -> None:
    """Test exponential backoff with max_interval cap."""
    backoff = ExponentialBackoff(initial=1.0, multiplier=2, max_interval=5.0)
    assert backoff.calculate(3) == 4.0
    assert backoff.calculate(4) == 5.0  # Would be 8.0, but capped
    assert backoff.calculate(10) == 5.0


def test_exponential_backoff_monotonic() -> None:
    backoff = ExponentialBackoff(initial=0.5, multiplier=1.5)
    values = [backoff.calculate(attempt) for attempt in range(1, 30)]
    assert values == sorted(values)


def test_exponential_backoff_overflow() -> None:
    """Test that huge attempt numbers are capped instead of
    overflowing."""
    backoff = ExponentialBackoff(initial=1.0, multiplier=10.0)
    assert backoff.calculate(10_000) == MAX_INTERVAL


def test_exponential_backoff_multiplier_one() -> None:
    backoff = ExponentialBackoff(initial=2.0, multiplier=1.0)
    assert backoff.calculate(1) == backoff.calculate(50) == 2.0


def test_exponential_backoff_invalid_initial() -> None:
    with pytest.raises(ValueError, match=r"initial must be non-negative"):
        ExponentialBackoff(initial=-1.0)


def test_exponential_backoff_invalid_multiplier() -> None:
    with pytest.raises(ValueError, match=r"multiplier must be >= 1"):
        ExponentialBackoff(multiplier=0.5)


def test_exponential_backoff_invalid_max_interval() -> None:
    """Test that non-positive max_interval raises ValueError."""
    with pytest.raises(ValueError, match=r"max_interval must be positive"):
        ExponentialBackoff(max_interval=0)
    with pytest.raises(ValueError, match=r"max_interval must be positive"):
        ExponentialBackoff(max_interval=-5.0)


def test_exponential_backoff_invalid_attempt() -> None:
    with pytest.raises(ValueError, match=r"attempt must be >= 1"):
        ExponentialBackoff().calculate(0)


def test_exponential_backoff_factory() -> None:
    backoff = exponential_backoff(1.0, 3.0)
    assert isinstance(backoff, ExponentialBackoff)
    assert backoff.calculate(3) == 9.0


################################################
#     Tests for ExponentialRandomBackoff       #
################################################


def test_exponential_random_backoff_bounds() -> None:
    """Test that the randomized wait stays within the spread of the
    exponential wait."""
    backoff = ExponentialRandomBackoff(
        initial=1.0, multiplier=2.0, factor=0.5, rng=random.Random(0)
    )
    for _ in range(50):
        assert 0.5 <= backoff.calculate(1) <= 1.5
        assert 2.0 <= backoff.calculate(3) <= 6.0


def test_exponential_random_backoff_zero_factor() -> None:
    backoff = ExponentialRandomBackoff(initial=1.0, multiplier=2.0, factor=0.0)
    assert backoff.calculate(4) == 8.0


def test_exponential_random_backoff_invalid_factor() -> None:
    with pytest.raises(ValueError, match=r"randomization factor must be in \[0, 1\]"):
        ExponentialRandomBackoff(factor=2.0)


def test_exponential_random_backoff_factory() -> None:
    backoff = exponential_random_backoff(0.5, 2.0, 0.1)
    assert isinstance(backoff, ExponentialRandomBackoff)
    assert backoff.factor == 0.1
