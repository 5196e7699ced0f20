from __future__ import annotations

import json
import logging
from io import StringIO
from typing import TYPE_CHECKING
from unittest.mock import Mock

import pytest

from aretry.config import RetryConfig
from aretry.executor import RetryExecutor
from aretry.policy import RetryPolicy
from aretry.utils.structured_logging import (
    InvocationContext,
    StructuredFormatter,
    get_invocation_context,
    invocation_context,
    log_structured,
)

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def stream() -> Generator[StringIO, None, None]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("aretry")
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        yield stream
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)


def _records(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().strip().split("\n") if line]


##############################################
#     Tests for invocation context           #
##############################################


def test_get_invocation_context_initially_none() -> None:
    assert get_invocation_context() is None


def test_invocation_context() -> None:
    with invocation_context("backend") as context:
        assert isinstance(context, InvocationContext)
        assert get_invocation_context() is context
        assert context.policy == "backend"
    assert get_invocation_context() is None


def test_invocation_context_nested() -> None:
    """Test that leaving a nested context restores the outer one."""
    with invocation_context("outer") as outer:
        with invocation_context("inner") as inner:
            assert get_invocation_context() is inner
            assert inner.invocation_id > outer.invocation_id
        assert get_invocation_context() is outer


def test_invocation_context_reset_on_error() -> None:
    with pytest.raises(ValueError, match=r"boom"), invocation_context("backend"):
        raise ValueError("boom")
    assert get_invocation_context() is None


##############################################
#     Tests for StructuredFormatter          #
##############################################


def test_structured_formatter_basic_log(stream: StringIO) -> None:
    """Test that StructuredFormatter produces valid JSON."""
    logging.getLogger("aretry.test").info("Test message")

    (log_data,) = _records(stream)
    assert log_data["message"] == "Test message"
    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "aretry.test"
    assert "timestamp" in log_data
    assert "module" in log_data
    assert "function" in log_data
    assert "line" in log_data
    assert "thread" in log_data
    assert "policy" not in log_data


def test_structured_formatter_with_invocation_context(stream: StringIO) -> None:
    with invocation_context("backend") as context:
        logging.getLogger("aretry.test").info("Attempt failed")

    (log_data,) = _records(stream)
    assert log_data["policy"] == "backend"
    assert log_data["invocation_id"] == context.invocation_id


def test_structured_formatter_with_extra_fields(stream: StringIO) -> None:
    logging.getLogger("aretry.test").info("Waiting", extra={"attempt": 2, "wait": 0.5})

    (log_data,) = _records(stream)
    assert log_data["attempt"] == 2
    assert log_data["wait"] == 0.5


def test_structured_formatter_non_serializable_extra(stream: StringIO) -> None:
    logging.getLogger("aretry.test").info("Outcome", extra={"error": ValueError("boom")})

    (log_data,) = _records(stream)
    assert log_data["error"] == "ValueError('boom')"


def test_structured_formatter_with_exception(stream: StringIO) -> None:
    """Test that StructuredFormatter includes exception information."""
    try:
        raise ValueError("Test error")
    except ValueError:
        logging.getLogger("aretry.test").error("An error occurred", exc_info=True)

    (log_data,) = _records(stream)
    assert "ValueError: Test error" in log_data["exception"]


def test_structured_formatter_timestamp_format(stream: StringIO) -> None:
    logging.getLogger("aretry.test").info("Timestamp test")

    timestamp = _records(stream)[0]["timestamp"]
    # Format: YYYY-MM-DDTHH:MM:SS.MMMZ
    assert "T" in timestamp
    assert timestamp.endswith("Z")
    assert len(timestamp) == 24


def test_executor_logs_carry_invocation(stream: StringIO, mock_sleep: Mock) -> None:
    """Test that every attempt of one call is logged with the same
    invocation id."""
    policy = RetryPolicy("backend", RetryConfig(max_attempts=3))
    RetryExecutor(policy).execute(Mock(side_effect=[ConnectionError(), "data"]))

    attempts = [record for record in _records(stream) if "attempt" in record]
    assert [record["attempt"] for record in attempts] == [1, 2]
    assert {record["policy"] for record in attempts} == {"backend"}
    assert len({record["invocation_id"] for record in attempts}) == 1


##############################################
#     Tests for log_structured helper        #
##############################################


def test_log_structured_with_extra_fields(stream: StringIO) -> None:
    log_structured(logging.getLogger("aretry.test"), logging.INFO, "Done", attempt=3)

    (log_data,) = _records(stream)
    assert log_data["message"] == "Done"
    assert log_data["attempt"] == 3


def test_log_structured_respects_log_level() -> None:
    """Test that log_structured does nothing below the logger level."""
    logger = Mock(spec=logging.Logger, isEnabledFor=Mock(return_value=False))
    log_structured(logger, logging.DEBUG, "Debug message", attempt=1)
    logger.log.assert_not_called()
