r"""Structured logging utilities for machine-readable log output.

This module provides a JSON log formatter and an invocation context. While
an executor runs a call, every log record emitted in that thread or task
can be tied to the policy and the invocation that produced it.

The structured logging system is opt-in and can be enabled by configuring
Python's logging system to use the provided formatter.

Example:
    Enable structured logging for aretry:

    ```python
    import logging
    from aretry.utils.structured_logging import StructuredFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    logger = logging.getLogger("aretry")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    ```
"""

from __future__ import annotations

__all__ = [
    "InvocationContext",
    "StructuredFormatter",
    "get_invocation_context",
    "invocation_context",
    "log_structured",
]

import contextvars
import itertools
import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

_invocation_ids = itertools.count(1)

# Context variable for the running invocation (thread-safe and task-safe)
_invocation: contextvars.ContextVar[InvocationContext | None] = contextvars.ContextVar(
    "aretry_invocation", default=None
)

# LogRecord attributes that are not user supplied extra fields
_RECORD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "msecs",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "sinfo",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "taskName",
    }
)


@dataclass(frozen=True)
class InvocationContext:
    """Identifies one execution of a work unit under a policy.

    Attributes:
        policy: Name of the policy driving the invocation.
        invocation_id: Process-unique, increasing identifier.
    """

    policy: str
    invocation_id: int


def get_invocation_context() -> InvocationContext | None:
    """Get the context of the running invocation.

    Returns:
        The current invocation context, or None outside an execution.

    Example:
        ```pycon
        >>> from aretry.utils.structured_logging import (
        ...     get_invocation_context,
        ...     invocation_context,
        ... )
        >>> get_invocation_context() is None
        True
        >>> with invocation_context("backend") as ctx:
        ...     get_invocation_context().policy
        ...
        'backend'

        ```
    """
    return _invocation.get()


@contextmanager
def invocation_context(policy: str) -> Iterator[InvocationContext]:
    """Mark the enclosed block as one invocation of ``policy``.

    Contexts nest; leaving the block restores the previous one.

    Args:
        policy: Name of the policy driving the invocation.

    Yields:
        The new invocation context.
    """
    context = InvocationContext(policy=policy, invocation_id=next(_invocation_ids))
    token = _invocation.set(context)
    try:
        yield context
    finally:
        _invocation.reset(token)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Standard fields in the JSON output:
        - timestamp: ISO 8601 timestamp
        - level: Log level name
        - logger: Logger name
        - message: Log message
        - module, function, line: Where the log originated
        - thread: Thread name
        - policy, invocation_id: Present inside an invocation context

    Any additional fields added via the ``extra`` parameter in logging calls
    are included as well. Values that are not JSON serializable are written
    with ``repr``.

    Example:
        ```pycon
        >>> import logging
        >>> from io import StringIO
        >>> from aretry.utils.structured_logging import StructuredFormatter
        >>> stream = StringIO()
        >>> handler = logging.StreamHandler(stream)
        >>> handler.setFormatter(StructuredFormatter())
        >>> logger = logging.getLogger("test_logger")
        >>> logger.addHandler(handler)
        >>> logger.setLevel(logging.INFO)
        >>> logger.info("Attempt failed", extra={"attempt": 2})
        >>> '"attempt": 2' in stream.getvalue()
        True

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
        }

        context = get_invocation_context()
        if context is not None:
            log_data["policy"] = context.policy
            log_data["invocation_id"] = context.invocation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value

        return json.dumps(log_data, default=repr)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: ARG002
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """Log a message with structured data.

    The extra fields are included in JSON output when using
    StructuredFormatter. Nothing is computed when ``level`` is disabled.

    Args:
        logger: Logger to use.
        level: Log level (e.g., logging.DEBUG).
        message: Log message.
        **extra: Additional structured fields to include in the log.
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra=extra)
