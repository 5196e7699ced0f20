r"""Publish/subscribe channels for retry and registry events.

Every policy and every registry owns an ``EventPublisher``. Subscribers
attach either a callback or a bounded queue, optionally filtered by event
kind. Publishing never blocks and never raises: events are only ever added
to bounded queues with ``put_nowait``, and a full queue drops the event.
Callbacks run on a dispatcher thread owned by their subscription, where a
failing callback is logged and skipped.

Example:
    ```pycon
    >>> from aretry.events import RetryOnSuccessEvent
    >>> from aretry.publisher import EventPublisher
    >>> publisher = EventPublisher()
    >>> received = []
    >>> subscription = publisher.subscribe(received.append, only=["success"])
    >>> publisher.publish(RetryOnSuccessEvent(policy_name="backend", attempt=2))
    >>> subscription.drain(timeout=1.0)
    True
    >>> len(received)
    1
    >>> subscription.cancel()

    ```
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_QUEUE_SIZE",
    "CallbackSubscription",
    "EventPublisher",
    "QueueSubscription",
    "Subscription",
]

import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from aretry.events import parse_kinds
from aretry.validation import validate_queue_size

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from aretry.events import Event, EventKind

logger: logging.Logger = logging.getLogger(__name__)

# Capacity of the queues created by subscriptions
DEFAULT_QUEUE_SIZE = 100

# Marker telling a dispatcher thread to stop
_STOP = object()


class Subscription(ABC):
    """A filtered channel attached to an ``EventPublisher``.

    When ``only`` is given, only those kinds are delivered and ``exclude``
    is ignored. Otherwise every kind not in ``exclude`` is delivered.

    Args:
        only: Optional kinds to deliver exclusively.
        exclude: Optional kinds to skip.
    """

    def __init__(
        self,
        only: Iterable[EventKind | str] | None = None,
        exclude: Iterable[EventKind | str] | None = None,
    ) -> None:
        self.only = parse_kinds(only)
        self.exclude = parse_kinds(exclude)
        self.publisher: EventPublisher | None = None

    def accepts(self, event: Event) -> bool:
        """Return whether ``event`` passes the filters of this
        subscription."""
        if self.only is not None:
            return event.kind in self.only
        if self.exclude is not None:
            return event.kind not in self.exclude
        return True

    @abstractmethod
    def deliver(self, event: Event) -> None:
        """Hand ``event`` to the subscriber without blocking or raising."""

    def close(self) -> None:
        """Release the resources of this subscription once it is
        detached."""

    @property
    def active(self) -> bool:
        return self.publisher is not None

    def cancel(self) -> None:
        """Detach this subscription from its publisher.

        Cancelling twice is a no-op.
        """
        publisher = self.publisher
        if publisher is not None:
            publisher.unsubscribe(self)


class CallbackSubscription(Subscription):
    """Subscription calling a function for every accepted event.

    ``deliver`` only adds the event to a bounded queue with
    ``put_nowait``. A daemon dispatcher thread, started on the first
    event, takes events from the queue in order and calls the consumer,
    so a slow consumer never holds up the producer. When the queue is full
    the event is dropped and counted in ``dropped``. Exceptions raised by
    the consumer are logged and discarded.

    Events accepted before the subscription is cancelled are still handed
    to the consumer.

    Args:
        consumer: Function receiving each accepted event.
        only: Optional kinds to deliver exclusively.
        exclude: Optional kinds to skip.
        maxsize: Maximum number of events waiting for the consumer.
            Must be >= 1.

    Raises:
        ConfigurationError: If ``maxsize`` is not a positive int.
    """

    def __init__(
        self,
        consumer: Callable[[Event], object],
        only: Iterable[EventKind | str] | None = None,
        exclude: Iterable[EventKind | str] | None = None,
        maxsize: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        super().__init__(only=only, exclude=exclude)
        self.consumer = consumer
        self.maxsize = validate_queue_size(maxsize)
        # One extra slot is kept for the stop marker
        self._pending: queue.Queue[object] = queue.Queue(self.maxsize + 1)
        self._idle = threading.Condition()
        self._unfinished = 0
        self._dropped = 0
        self._closed = False
        self._thread: threading.Thread | None = None

    @property
    def dropped(self) -> int:
        """Number of events dropped because the queue was full."""
        with self._idle:
            return self._dropped

    def deliver(self, event: Event) -> None:
        with self._idle:
            if self._closed:
                return
            if self._pending.qsize() >= self.maxsize:
                self._dropped += 1
                logger.debug(
                    f"Event consumer {self.consumer!r} is behind, dropping "
                    f"{event.kind.value} event"
                )
                return
            self._pending.put_nowait(event)
            self._unfinished += 1
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._dispatch, name=f"aretry-events-{id(self):x}", daemon=True
                )
                self._thread.start()

    def drain(self, timeout: float | None = None) -> bool:
        """Wait until every accepted event has been handed to the
        consumer.

        Must not be called from the consumer itself.

        Args:
            timeout: Maximum wait in seconds, or None to wait forever.

        Returns:
            True if no event is pending, False if the timeout expired
            first.
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._unfinished == 0, timeout)

    def close(self) -> None:
        with self._idle:
            if self._closed:
                return
            self._closed = True
            if self._thread is not None:
                self._pending.put_nowait(_STOP)

    def _dispatch(self) -> None:
        while True:
            event = self._pending.get()
            if event is _STOP:
                return
            try:
                self.consumer(event)
            except Exception:
                logger.warning(
                    f"Event subscriber {self.consumer!r} failed on {event.kind.value} event",
                    exc_info=True,
                )
            finally:
                with self._idle:
                    self._unfinished -= 1
                    if self._unfinished == 0:
                        self._idle.notify_all()


class QueueSubscription(Subscription):
    """Subscription feeding a bounded queue.

    Events are added with ``put_nowait``; when the queue is full the event
    is dropped and counted in ``dropped``.

    Args:
        maxsize: Capacity of the queue created when none is given.
            Must be >= 1.
        only: Optional kinds to deliver exclusively.
        exclude: Optional kinds to skip.
        events: Optional existing queue to feed. It must be bounded.

    Raises:
        ConfigurationError: If the capacity is not a positive int.

    Example:
        ```pycon
        >>> from aretry.events import RetryOnSuccessEvent
        >>> from aretry.publisher import EventPublisher
        >>> publisher = EventPublisher()
        >>> subscription = publisher.subscribe_queue(maxsize=1)
        >>> for _ in range(3):
        ...     publisher.publish(RetryOnSuccessEvent(policy_name="backend", attempt=2))
        ...
        >>> subscription.events.qsize(), subscription.dropped
        (1, 2)

        ```
    """

    def __init__(
        self,
        maxsize: int = DEFAULT_QUEUE_SIZE,
        only: Iterable[EventKind | str] | None = None,
        exclude: Iterable[EventKind | str] | None = None,
        events: queue.Queue[Event] | None = None,
    ) -> None:
        super().__init__(only=only, exclude=exclude)
        if events is None:
            events = queue.Queue(validate_queue_size(maxsize))
        else:
            validate_queue_size(events.maxsize)
        self.events: queue.Queue[Event] = events
        self._dropped = 0
        self._lock = threading.Lock()

    @property
    def dropped(self) -> int:
        """Number of events dropped because the queue was full."""
        with self._lock:
            return self._dropped

    def deliver(self, event: Event) -> None:
        try:
            self.events.put_nowait(event)
        except queue.Full:
            with self._lock:
                self._dropped += 1
            logger.debug(f"Event queue is full, dropping {event.kind.value} event")

    def get(self, timeout: float | None = None) -> Event | None:
        """Take the next event, waiting up to ``timeout`` seconds.

        Returns:
            The next event, or None if none arrived in time.
        """
        try:
            return self.events.get(timeout=timeout)
        except queue.Empty:
            return None


class EventPublisher:
    """Fan-out of events to independent subscriptions.

    Subscriptions can be added and removed concurrently with publishing.
    Each publish delivers to the subscriptions present when it started.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def add(self, subscription: Subscription) -> Subscription:
        """Attach an existing subscription and return it."""
        with self._lock:
            self._subscriptions.append(subscription)
            subscription.publisher = self
        return subscription

    def subscribe(
        self,
        consumer: Callable[[Event], object],
        *,
        only: Iterable[EventKind | str] | None = None,
        exclude: Iterable[EventKind | str] | None = None,
        maxsize: int = DEFAULT_QUEUE_SIZE,
    ) -> CallbackSubscription:
        """Attach a callback.

        Args:
            consumer: Function receiving each accepted event on the
                dispatcher thread of the subscription.
            only: Optional kinds to deliver exclusively.
            exclude: Optional kinds to skip.
            maxsize: Maximum number of events waiting for the consumer.

        Returns:
            The new subscription.
        """
        return self.add(
            CallbackSubscription(consumer, only=only, exclude=exclude, maxsize=maxsize)
        )

    def subscribe_queue(
        self,
        maxsize: int = DEFAULT_QUEUE_SIZE,
        *,
        only: Iterable[EventKind | str] | None = None,
        exclude: Iterable[EventKind | str] | None = None,
        events: queue.Queue[Event] | None = None,
    ) -> QueueSubscription:
        """Attach a bounded queue.

        Args:
            maxsize: Capacity of the queue created when ``events`` is None.
            only: Optional kinds to deliver exclusively.
            exclude: Optional kinds to skip.
            events: Optional existing bounded queue to feed.

        Returns:
            The new subscription. Its ``events`` attribute is the queue.

        Raises:
            ConfigurationError: If the capacity is not a positive int.
        """
        return self.add(QueueSubscription(maxsize, only=only, exclude=exclude, events=events))

    def emit_to(
        self,
        target: Callable[[Event], object] | queue.Queue[Event] | None = None,
        *,
        only: Iterable[EventKind | str] | None = None,
        exclude: Iterable[EventKind | str] | None = None,
    ) -> Subscription:
        """Attach a callback, an existing bounded queue, or a new bounded
        queue when ``target`` is None."""
        if target is None:
            return self.subscribe_queue(only=only, exclude=exclude)
        if isinstance(target, queue.Queue):
            return self.subscribe_queue(only=only, exclude=exclude, events=target)
        return self.subscribe(target, only=only, exclude=exclude)

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
            if subscription.publisher is self:
                subscription.publisher = None
        subscription.close()

    def publish(self, event: Event) -> None:
        """Deliver ``event`` to every accepting subscription.

        This method never blocks on a subscriber and never raises.
        """
        with self._lock:
            subscriptions = tuple(self._subscriptions)
        for subscription in subscriptions:
            if subscription.accepts(event):
                subscription.deliver(event)
