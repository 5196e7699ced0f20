r"""Unit tests for the Fixed interval function."""

from __future__ import annotations

import pytest

from aretry.interval import Fixed, interval


def test_fixed_calculate() -> None:
    """Test that Fixed returns the same wait for every attempt."""
    fixed = Fixed(2.5)
    assert fixed.calculate(1) == 2.5
    assert fixed.calculate(2) == 2.5
    assert fixed.calculate(100) == 2.5


def test_fixed_call() -> None:
    """Test that Fixed is callable like a plain interval function."""
    assert Fixed(1.0)(3) == 1.0


def test_fixed_zero_interval() -> None:
    assert Fixed(0.0).calculate(5) == 0.0


def test_fixed_negative_interval() -> None:
    """Test that a negative interval raises ValueError."""
    with pytest.raises(ValueError, match=r"interval must be non-negative"):
        Fixed(-1.0)


def test_fixed_invalid_attempt() -> None:
    """Test that attempts are 1-indexed."""
    with pytest.raises(ValueError, match=r"attempt must be >= 1, got 0"):
        Fixed(1.0).calculate(0)


def test_fixed_repr() -> None:
    assert repr(Fixed(2.0)) == "Fixed(interval=2.0)"


def test_interval_factory() -> None:
    """Test that the interval factory creates a Fixed function."""
    func = interval(0.25)
    assert isinstance(func, Fixed)
    assert func.calculate(1) == 0.25
