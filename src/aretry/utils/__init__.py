r"""Utility helpers shared across the aretry package."""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "get_invocation_context",
    "invocation_context",
    "log_structured",
]

from aretry.utils.structured_logging import (
    StructuredFormatter,
    get_invocation_context,
    invocation_context,
    log_structured,
)
