"""Synchronous event emitter used to deliver route actions.

The router never calls actions directly: a ``Route`` subscribes them on an
emitter under ``"hashroute:<method>"`` and the router publishes events on the
route. Any object implementing the :class:`Emitter` protocol can be injected;
:class:`EventEmitter` is the in-process default.

Contract
--------
- ``subscribe(target, event, handler)`` appends ``handler`` to the list for
  ``(target, event)``. The same handler may be subscribed more than once.
- ``unsubscribe(target, event, handler=None)`` removes every occurrence of
  ``handler``; without a handler it drops the whole list. Unknown pairs are a
  no-op.
- ``publish(target, event, args)`` calls each handler with ``*args``,
  synchronously, in subscription order. The handler list is copied before the
  first call so handlers may (un)subscribe while an event is being delivered.
  Exceptions propagate to the publisher and stop delivery.

Targets are held weakly: dropping the last reference to a route releases its
handlers.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence
from weakref import WeakKeyDictionary

__all__ = ["Emitter", "EventEmitter"]


class Emitter(Protocol):
    def subscribe(self, target: Any, event: str, handler: Callable) -> None: ...

    def unsubscribe(
        self, target: Any, event: str, handler: Optional[Callable] = None
    ) -> None: ...

    def publish(self, target: Any, event: str, args: Sequence[Any] = ()) -> None: ...


class EventEmitter:
    """Default emitter: per-target handler lists, delivered in order."""

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: "WeakKeyDictionary[Any, Dict[str, List[Callable]]]" = (
            WeakKeyDictionary()
        )

    def subscribe(self, target: Any, event: str, handler: Callable) -> None:
        if not callable(handler):
            raise TypeError(f"Handler for {event!r} must be callable, got {handler!r}")
        events = self._handlers.setdefault(target, {})
        events.setdefault(event, []).append(handler)

    def unsubscribe(self, target: Any, event: str, handler: Optional[Callable] = None) -> None:
        events = self._handlers.get(target)
        if not events or event not in events:
            return
        if handler is None:
            del events[event]
            return
        remaining = [h for h in events[event] if h != handler]
        if remaining:
            events[event] = remaining
        else:
            del events[event]

    def publish(self, target: Any, event: str, args: Sequence[Any] = ()) -> None:
        events = self._handlers.get(target)
        if not events:
            return
        for handler in list(events.get(event, ())):
            handler(*args)

    def handlers(self, target: Any, event: str) -> List[Callable]:
        """Return a copy of the handlers subscribed for ``(target, event)``."""
        events = self._handlers.get(target) or {}
        return list(events.get(event, ()))
