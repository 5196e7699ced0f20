from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import Mock, patch

import pytest

from aretry.registry import get_default_registry, set_default_registry

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def mock_sleep() -> Generator[Mock, None, None]:
    """Patch time.sleep to make tests run faster."""
    with patch("time.sleep", return_value=None) as mock:
        yield mock


@pytest.fixture
def mock_asleep() -> Generator[Mock, None, None]:
    """Patch asyncio.sleep to make tests run faster."""
    with patch("asyncio.sleep", return_value=None) as mock:
        yield mock


@pytest.fixture
def mock_callback() -> Mock:
    """Create a mock event consumer for testing subscriptions.

    Returns:
        A Mock object that can be passed wherever an event callback is
        expected.

    Example:
        >>> def test_events(mock_callback):
        ...     subscription = policy.emit_events(mock_callback)
        ...     subscription.drain(timeout=5.0)
        ...     mock_callback.assert_called_once()
    """
    return Mock()


@pytest.fixture
def default_registry() -> Generator[None, None, None]:
    """Restore the process-wide registry after the test."""
    previous = get_default_registry()
    yield
    set_default_registry(previous)
