"""Per-property accessor handles and the subscription disposer."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from liveupdate.models.subscription import SubscriptionKey

if TYPE_CHECKING:
    from liveupdate._client.subscriptions import SubscriptionManager

_logger = logging.getLogger(__name__)

Listener = Callable[["Accessor"], None]


class Accessor:
    """Read/write/freeze/thaw view of one subscription key.

    Accessors sharing an object path (or even a key) are independent: each
    has its own frozen value, listeners and revision counter.
    """

    def __init__(self, manager: SubscriptionManager, name: str, key: SubscriptionKey) -> None:
        self._manager = manager
        self._name = name
        self._key = key
        self._frozen = False
        self._frozen_value: Any = None
        # A key frozen before any value arrived stays absent until thawed.
        self._frozen_has_value = False
        self._disposed = False
        self._revision = 0
        self._listeners: list[Listener] = []

    def __repr__(self) -> str:
        return f"Accessor(name={self._name!r}, key={str(self._key)!r}, frozen={self._frozen})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def key(self) -> SubscriptionKey:
        return self._key

    @property
    def object_path(self) -> str:
        return self._key.object_path

    @property
    def property_path(self) -> str:
        return self._key.property_path

    @property
    def revision(self) -> int:
        """Incremented every time the readable value may have changed."""
        return self._revision

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def has_value(self) -> bool:
        """Whether :meth:`read` returns a pushed (or frozen) value rather than the default."""
        if self._frozen:
            return self._frozen_has_value
        return self._manager.store.has_value(self._key)

    def read(self, default: Any = None) -> Any:
        """Frozen value if frozen, else the latest pushed value, else *default*.

        A property the remote service never acknowledges reads *default*
        forever.
        """
        if self._frozen:
            return self._frozen_value if self._frozen_has_value else default
        return self._manager.store.read(self._key, default)

    def write(self, value: Any) -> None:
        """Push *value* upstream; dropped when the key has no active id."""
        if self._disposed:
            _logger.debug("Ignoring write on disposed accessor %s", self._key)
            return
        self._manager.set_values([(self._key, value)])

    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Stop following remote updates, keeping the current value."""
        if self._frozen or self._disposed:
            return
        self._frozen_has_value = self._manager.store.has_value(self._key)
        self._frozen_value = copy.deepcopy(self._manager.store.read(self._key))
        self._frozen = True
        self._manager.release([self._key])

    def thaw(self) -> None:
        """Resume following remote updates under a fresh subscription."""
        if not self._frozen or self._disposed:
            return
        self._frozen = False
        self._frozen_value = None
        self._frozen_has_value = False
        self._manager.resubscribe(self._key)
        self._notify()

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with this accessor whenever its value may change.

        Returns a callable that removes the listener again.
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self) -> None:
        if self._frozen or self._disposed:
            return
        self._revision += 1
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                _logger.warning("Listener for %s failed", self._key, exc_info=True)

    def _dispose(self) -> None:
        self._disposed = True
        self._listeners.clear()


class Subscription(Mapping[str, Accessor]):
    """Result of one subscribe call: ``name -> Accessor`` plus its disposer.

    The owner must call :meth:`dispose` (or use the subscription as a context
    manager) once it no longer needs the values; this unsubscribes every key
    the call created.  Further calls are no-ops.

    Usage::

        with client.subscribe("screen2:surface_1", {"offset": "object.offset"}) as sub:
            print(sub["offset"].read())
    """

    def __init__(self, manager: SubscriptionManager, object_path: str, accessors: Mapping[str, Accessor]) -> None:
        self._manager = manager
        self._object_path = object_path
        self._accessors = dict(accessors)
        self._disposed = False

    def __getitem__(self, name: str) -> Accessor:
        return self._accessors[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._accessors)

    def __len__(self) -> int:
        return len(self._accessors)

    def __repr__(self) -> str:
        return f"Subscription(object_path={self._object_path!r}, names={list(self._accessors)!r}, disposed={self._disposed})"

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.dispose()

    @property
    def object_path(self) -> str:
        return self._object_path

    @property
    def disposed(self) -> bool:
        return self._disposed

    def keys_created(self) -> list[SubscriptionKey]:
        return list(dict.fromkeys(accessor.key for accessor in self._accessors.values()))

    def dispose(self) -> None:
        """Unsubscribe every key created by this call."""
        if self._disposed:
            _logger.debug("Subscription for %s already disposed", self._object_path)
            return
        self._disposed = True
        self._manager.dispose(list(self._accessors.values()))

    close = dispose
