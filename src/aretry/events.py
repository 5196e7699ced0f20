r"""Event types published by retry policies and registries.

Policies publish one event per notable attempt outcome and registries
publish one event per mutation. Subscribers receive these immutable
records through an ``EventPublisher``.

Policy events:
- ``RetryOnRetryEvent``: an attempt failed and another one is scheduled
- ``RetryOnSuccessEvent``: a call succeeded after at least one retry
- ``RetryOnErrorEvent``: a call exhausted its attempts
- ``RetryOnIgnoredErrorEvent``: a failure was classified as permanent

Registry events:
- ``EntryAddedEvent``, ``EntryRemovedEvent``, ``EntryReplacedEvent``

Example:
    ```pycon
    >>> from aretry.events import EventKind, RetryOnSuccessEvent
    >>> event = RetryOnSuccessEvent(policy_name="backend", attempt=2)
    >>> event.kind
    <EventKind.SUCCESS: 'success'>
    >>> event.to_dict()["event_type"]
    'success'

    ```
"""

from __future__ import annotations

__all__ = [
    "EntryAddedEvent",
    "EntryRemovedEvent",
    "EntryReplacedEvent",
    "Event",
    "EventKind",
    "RetryOnErrorEvent",
    "RetryOnIgnoredErrorEvent",
    "RetryOnRetryEvent",
    "RetryOnSuccessEvent",
    "parse_kinds",
]

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from collections.abc import Iterable

    from aretry.classifier import Outcome
    from aretry.policy import RetryPolicy


class EventKind(Enum):
    """Kinds of events, used to filter subscriptions."""

    ADDED = "added"
    REMOVED = "removed"
    REPLACED = "replaced"
    RETRY = "retry"
    SUCCESS = "success"
    ERROR = "error"
    IGNORED_ERROR = "ignored_error"


def parse_kinds(kinds: Iterable[EventKind | str] | None) -> frozenset[EventKind] | None:
    """Normalize a collection of event kinds.

    Strings are accepted with either dashes or underscores, so
    ``"ignored-error"`` and ``EventKind.IGNORED_ERROR`` are equivalent.

    Args:
        kinds: The kinds to normalize, or None.

    Returns:
        The kinds as a frozenset, or None if ``kinds`` is None.

    Raises:
        ValueError: If a string does not name a known kind.
    """
    if kinds is None:
        return None
    if isinstance(kinds, (str, EventKind)):
        kinds = [kinds]
    return frozenset(
        kind if isinstance(kind, EventKind) else EventKind(kind.replace("-", "_"))
        for kind in kinds
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class Event:
    """Base class of all events.

    Attributes:
        creation_time: When the event was created (timezone aware, UTC).
            Not part of event equality.
    """

    kind: ClassVar[EventKind]

    creation_time: datetime = field(default_factory=_utcnow, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert the event to a flat dictionary with an ``event_type``
        key."""
        data: dict[str, Any] = {"event_type": self.kind.value}
        data.update({f.name: getattr(self, f.name) for f in fields(self)})
        return data


@dataclass(frozen=True, kw_only=True)
class PolicyEvent(Event):
    """Base class of events published by a retry policy.

    Attributes:
        policy_name: Name of the publishing policy.
        attempt: The attempt the event refers to (1-indexed).
    """

    policy_name: str
    attempt: int


@dataclass(frozen=True, kw_only=True)
class RetryOnRetryEvent(PolicyEvent):
    """Published after a failed attempt, before waiting for the next one.

    Attributes:
        wait_interval: The wait in seconds before the next attempt.
        last_outcome: The outcome that triggered the retry.
    """

    kind: ClassVar[EventKind] = EventKind.RETRY

    wait_interval: float
    last_outcome: Outcome

    @property
    def last_exception(self) -> BaseException | None:
        return self.last_outcome.exception


@dataclass(frozen=True, kw_only=True)
class RetryOnSuccessEvent(PolicyEvent):
    """Published when a call succeeds after at least one retry."""

    kind: ClassVar[EventKind] = EventKind.SUCCESS


@dataclass(frozen=True, kw_only=True)
class RetryOnErrorEvent(PolicyEvent):
    """Published when a call exhausts its attempts.

    Attributes:
        last_outcome: The outcome of the final attempt.
    """

    kind: ClassVar[EventKind] = EventKind.ERROR

    last_outcome: Outcome

    @property
    def last_exception(self) -> BaseException | None:
        return self.last_outcome.exception


@dataclass(frozen=True, kw_only=True)
class RetryOnIgnoredErrorEvent(PolicyEvent):
    """Published when a failure is classified as not retryable.

    Attributes:
        last_outcome: The outcome that was not retried.
    """

    kind: ClassVar[EventKind] = EventKind.IGNORED_ERROR

    last_outcome: Outcome

    @property
    def last_exception(self) -> BaseException | None:
        return self.last_outcome.exception


@dataclass(frozen=True, kw_only=True)
class EntryAddedEvent(Event):
    """Published when a registry creates a policy."""

    kind: ClassVar[EventKind] = EventKind.ADDED

    added_entry: RetryPolicy


@dataclass(frozen=True, kw_only=True)
class EntryRemovedEvent(Event):
    """Published when a policy is removed from a registry."""

    kind: ClassVar[EventKind] = EventKind.REMOVED

    removed_entry: RetryPolicy


@dataclass(frozen=True, kw_only=True)
class EntryReplacedEvent(Event):
    """Published when a registry entry is replaced by another policy."""

    kind: ClassVar[EventKind] = EventKind.REPLACED

    old_entry: RetryPolicy
    new_entry: RetryPolicy
