r"""Concurrent named store of retry policies and configurations.

A ``RetryRegistry`` maps names to policies and names to configurations.
The ``"default"`` configuration is always present and is used for
policies created without an explicit configuration. Every mutation of the
policy map publishes a registry event.

Example:
    ```pycon
    >>> from aretry.registry import RetryRegistry
    >>> registry = RetryRegistry({"slow": {"max-attempts": 5}})
    >>> policy = registry.retry("backend", "slow")
    >>> policy.config.max_attempts
    5
    >>> registry.retry("backend") is policy
    True

    ```
"""

from __future__ import annotations

__all__ = [
    "RetryRegistry",
    "configure_default_registry",
    "get_default_registry",
    "set_default_registry",
]

import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from aretry.config import DEFAULT_CONFIG_NAME, RetryConfig
from aretry.events import EntryAddedEvent, EntryRemovedEvent, EntryReplacedEvent
from aretry.exceptions import ConfigurationNotFoundError
from aretry.policy import RetryPolicy
from aretry.publisher import EventPublisher
from aretry.validation import validate_name

if TYPE_CHECKING:
    import queue
    from collections.abc import Callable, Iterable

    from aretry.events import Event, EventKind
    from aretry.publisher import Subscription

logger: logging.Logger = logging.getLogger(__name__)


def _to_config(config: RetryConfig | Mapping[str, Any]) -> RetryConfig:
    if isinstance(config, RetryConfig):
        return config
    return RetryConfig.from_dict(config)


class RetryRegistry:
    """Thread-safe registry of named retry policies and configurations.

    The policy map is guarded by a single lock held only for the map
    update itself, never while a policy executes or sleeps. Events are
    published after the lock is released.

    Args:
        configs: Optional seed configurations keyed by name. Values are
            ``RetryConfig`` instances or mappings of configuration keys.
            An entry named ``"default"`` overrides the default
            configuration.

    Attributes:
        event_publisher: Publisher of the registry events.
    """

    def __init__(
        self, configs: Mapping[Any, RetryConfig | Mapping[str, Any]] | None = None
    ) -> None:
        self._configs: dict[str, RetryConfig] = {DEFAULT_CONFIG_NAME: RetryConfig()}
        for name, config in (configs or {}).items():
            self._configs[validate_name(name)] = _to_config(config)
        self._retries: dict[str, RetryPolicy] = {}
        self._lock = threading.Lock()
        self.event_publisher = EventPublisher()

    def __repr__(self) -> str:
        with self._lock:
            names = sorted(self._retries)
        return f"{self.__class__.__qualname__}(retries={names})"

    @property
    def default_config(self) -> RetryConfig:
        """The configuration used when none is requested."""
        with self._lock:
            return self._configs[DEFAULT_CONFIG_NAME]

    def add_configuration(self, name: Any, config: RetryConfig | Mapping[str, Any]) -> None:
        """Register a named configuration, replacing any previous one.

        Policies already created from the previous configuration keep it.

        Args:
            name: The configuration name.
            config: A ``RetryConfig`` or a mapping of configuration keys.

        Raises:
            ConfigurationError: If the name or the configuration is invalid.
        """
        name = validate_name(name)
        config = _to_config(config)
        with self._lock:
            self._configs[name] = config
        logger.debug(f"Registered retry configuration '{name}'")

    def get_configuration(self, name: Any) -> RetryConfig | None:
        """Return the configuration registered as ``name``, if any."""
        name = validate_name(name)
        with self._lock:
            return self._configs.get(name)

    def retry(
        self, name: Any, config: RetryConfig | Mapping[str, Any] | str | None = None
    ) -> RetryPolicy:
        """Return the policy registered as ``name``, creating it if needed.

        When the policy already exists, ``config`` is ignored. Otherwise
        the new policy uses:

        - the configuration registered under ``config`` if it is a name,
        - ``config`` itself if it is a ``RetryConfig`` or a mapping,
        - the ``"default"`` configuration if it is None.

        Concurrent calls for the same unseen name create exactly one
        policy, which all callers receive.

        Args:
            name: The policy name.
            config: Optional configuration or configuration name.

        Returns:
            The registered policy.

        Raises:
            ConfigurationNotFoundError: If ``config`` names an unknown
                configuration.
            ConfigurationError: If the name or the configuration is invalid.
        """
        name = validate_name(name)
        with self._lock:
            policy = self._retries.get(name)
            if policy is not None:
                return policy
            policy = RetryPolicy(name, self._resolve_config(config))
            self._retries[name] = policy
        logger.debug(f"Created retry '{name}'")
        self._publish(EntryAddedEvent(added_entry=policy))
        return policy

    def find(self, name: Any) -> RetryPolicy | None:
        """Return the policy registered as ``name``, if any, without
        creating it."""
        name = validate_name(name)
        with self._lock:
            return self._retries.get(name)

    def remove(self, name: Any) -> RetryPolicy | None:
        """Remove the policy registered as ``name``.

        Returns:
            The removed policy, or None if no policy had that name.
        """
        name = validate_name(name)
        with self._lock:
            policy = self._retries.pop(name, None)
        if policy is not None:
            logger.debug(f"Removed retry '{name}'")
            self._publish(EntryRemovedEvent(removed_entry=policy))
        return policy

    def replace(self, name: Any, new_policy: RetryPolicy) -> RetryPolicy | None:
        """Replace the policy registered as ``name`` with ``new_policy``.

        Nothing happens when no policy is registered as ``name``. The new
        policy keeps its own name, which may differ from ``name``; lookups
        always use the registry key.

        Returns:
            The previous policy, or None if no policy had that name.
        """
        name = validate_name(name)
        with self._lock:
            old_policy = self._retries.get(name)
            if old_policy is not None:
                self._retries[name] = new_policy
        if old_policy is not None:
            logger.debug(f"Replaced retry '{name}'")
            self._publish(EntryReplacedEvent(old_entry=old_policy, new_entry=new_policy))
        return old_policy

    def all_retries(self) -> frozenset[RetryPolicy]:
        """Return all registered policies."""
        with self._lock:
            return frozenset(self._retries.values())

    def emit_registry_events(
        self,
        target: Callable[[Event], object] | queue.Queue | None = None,
        *,
        only: Iterable[EventKind | str] | None = None,
        exclude: Iterable[EventKind | str] | None = None,
    ) -> Subscription:
        """Subscribe to the events of this registry.

        Args:
            target: A callable receiving each event, an existing
                ``queue.Queue`` to feed, or None to create a bounded queue.
            only: Optional kinds to deliver exclusively. Wins over
                ``exclude``.
            exclude: Optional kinds to skip.

        Returns:
            The subscription.
        """
        return self.event_publisher.emit_to(target, only=only, exclude=exclude)

    def _resolve_config(self, config: RetryConfig | Mapping[str, Any] | str | None) -> RetryConfig:
        # Caller holds the lock
        if config is None:
            return self._configs[DEFAULT_CONFIG_NAME]
        if isinstance(config, (RetryConfig, Mapping)):
            return _to_config(config)
        config_name = validate_name(config)
        if config_name not in self._configs:
            raise ConfigurationNotFoundError(config_name)
        return self._configs[config_name]

    def _publish(self, event: Event) -> None:
        self.event_publisher.publish(event)


_default_registry: RetryRegistry | None = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> RetryRegistry:
    """Return the process-wide registry, creating it on first use.

    Example:
        ```pycon
        >>> from aretry.registry import get_default_registry
        >>> get_default_registry() is get_default_registry()
        True

        ```
    """
    global _default_registry  # noqa: PLW0603
    with _default_registry_lock:
        if _default_registry is None:
            _default_registry = RetryRegistry()
        return _default_registry


def set_default_registry(registry: RetryRegistry) -> RetryRegistry | None:
    """Replace the process-wide registry.

    Returns:
        The previous process-wide registry, if one was created.
    """
    global _default_registry  # noqa: PLW0603
    with _default_registry_lock:
        previous, _default_registry = _default_registry, registry
    return previous


def configure_default_registry(
    configs: Mapping[Any, RetryConfig | Mapping[str, Any]] | None = None,
) -> RetryRegistry:
    """Replace the process-wide registry with a new one seeded with
    ``configs``.

    Policies registered in the previous registry are not carried over.

    Returns:
        The new registry.
    """
    registry = RetryRegistry(configs)
    set_default_registry(registry)
    return registry
