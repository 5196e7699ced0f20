r"""Unit tests for event types."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from aretry.classifier import Outcome
from aretry.events import (
    EntryAddedEvent,
    EntryRemovedEvent,
    EntryReplacedEvent,
    EventKind,
    RetryOnErrorEvent,
    RetryOnIgnoredErrorEvent,
    RetryOnRetryEvent,
    RetryOnSuccessEvent,
    parse_kinds,
)
from aretry.policy import RetryPolicy

###############################
#     Tests for parse_kinds   #
###############################


def test_parse_kinds_none() -> None:
    assert parse_kinds(None) is None


def test_parse_kinds_strings_and_members() -> None:
    assert parse_kinds(["retry", EventKind.SUCCESS]) == frozenset(
        {EventKind.RETRY, EventKind.SUCCESS}
    )


def test_parse_kinds_dashes() -> None:
    assert parse_kinds(["ignored-error"]) == frozenset({EventKind.IGNORED_ERROR})


def test_parse_kinds_single_value() -> None:
    assert parse_kinds("error") == frozenset({EventKind.ERROR})
    assert parse_kinds(EventKind.ADDED) == frozenset({EventKind.ADDED})


def test_parse_kinds_unknown() -> None:
    with pytest.raises(ValueError, match=r"'unknown' is not a valid EventKind"):
        parse_kinds(["unknown"])


##########################
#     Tests for events   #
##########################


def test_retry_event() -> None:
    exc = TimeoutError("slow")
    event = RetryOnRetryEvent(
        policy_name="backend", attempt=1, wait_interval=0.5, last_outcome=Outcome.failure(exc)
    )
    assert event.kind is EventKind.RETRY
    assert event.last_exception is exc
    assert event.creation_time.tzinfo is timezone.utc


def test_retry_event_on_result() -> None:
    event = RetryOnRetryEvent(
        policy_name="backend", attempt=2, wait_interval=1.0, last_outcome=Outcome.success(None)
    )
    assert event.last_exception is None


def test_success_event() -> None:
    event = RetryOnSuccessEvent(policy_name="backend", attempt=3)
    assert event.kind is EventKind.SUCCESS
    assert event.to_dict()["attempt"] == 3


def test_error_and_ignored_error_events() -> None:
    exc = KeyError("missing")
    error = RetryOnErrorEvent(policy_name="p", attempt=3, last_outcome=Outcome.failure(exc))
    ignored = RetryOnIgnoredErrorEvent(
        policy_name="p", attempt=1, last_outcome=Outcome.failure(exc)
    )
    assert error.kind is EventKind.ERROR
    assert ignored.kind is EventKind.IGNORED_ERROR
    assert error.last_exception is ignored.last_exception is exc


def test_event_equality_ignores_creation_time() -> None:
    first = RetryOnSuccessEvent(
        policy_name="backend", attempt=2, creation_time=datetime(2020, 1, 1, tzinfo=timezone.utc)
    )
    second = RetryOnSuccessEvent(policy_name="backend", attempt=2)
    assert first == second


def test_event_is_frozen() -> None:
    event = RetryOnSuccessEvent(policy_name="backend", attempt=2)
    with pytest.raises(AttributeError):
        event.attempt = 3  # type: ignore[misc]


def test_event_requires_keywords() -> None:
    with pytest.raises(TypeError):
        RetryOnSuccessEvent("backend", 2)  # type: ignore[misc]


def test_event_to_dict() -> None:
    event = RetryOnSuccessEvent(policy_name="backend", attempt=2)
    assert event.to_dict() == {
        "event_type": "success",
        "creation_time": event.creation_time,
        "policy_name": "backend",
        "attempt": 2,
    }


def test_registry_events() -> None:
    old, new = RetryPolicy("old"), RetryPolicy("new")
    assert EntryAddedEvent(added_entry=old).kind is EventKind.ADDED
    assert EntryRemovedEvent(removed_entry=old).kind is EventKind.REMOVED
    replaced = EntryReplacedEvent(old_entry=old, new_entry=new)
    assert replaced.kind is EventKind.REPLACED
    assert replaced.to_dict()["event_type"] == "replaced"
    assert replaced.new_entry is new
