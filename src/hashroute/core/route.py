"""Route: compiled matcher plus per-method actions (source of truth).

Rebuild this module from the contract below.

Construction
------------
``Route(pattern, *, name=None, emitter=None, router=None)``

- ``pattern`` goes through :func:`compile_pattern`; the resulting ``matcher``
  never changes afterwards.
- ``key`` is the matcher's canonical key, the registry slot a router stores
  the route under.
- ``name`` defaults to the pattern text, the regex source for compiled
  patterns, or ``"*"`` for the catch-all route. Plugins use it as the
  configuration target.
- ``emitter`` defaults to a private :class:`EventEmitter`; routers pass their
  own so every route shares one.
- ``router`` is the owning router (``None`` for detached routes). When set,
  actions are passed through ``router._wrap_action`` before subscription.

Actions
-------
- ``attach_action(method="*", action=None)``: a single callable argument is
  attached under ``"*"``. The action is subscribed on the emitter under
  ``"hashroute:<method>"``. Non-callables raise ``TypeError``.
- ``detach_action(method="*", action=None)``: same shorthand. With an action,
  removes every attachment of it for that method; without one, removes all
  actions of that method.
- ``get``, ``post``, ``put``, ``delete`` (``del_`` alias) attach for their
  method. All attach/detach helpers return the route for chaining.
- ``actions(method)`` returns the attached callables (unwrapped) in order.
- ``rewrap()`` unsubscribes and re-subscribes every action through the
  current router wrapping, preserving the order within each method.

Actions are called as ``action(method, *params)``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple

from .emitter import Emitter, EventEmitter
from .pattern import Matcher, compile_pattern

__all__ = ["Route", "EVENT_PREFIX", "WILDCARD", "event_name"]

EVENT_PREFIX = "hashroute:"
WILDCARD = "*"


def event_name(method: str) -> str:
    return f"{EVENT_PREFIX}{method}"


class Route:
    """Single route of a hash router."""

    __slots__ = (
        "matcher",
        "name",
        "router",
        "emitter",
        "metadata",
        "plugins",
        "_actions",
        "__weakref__",
    )

    def __init__(
        self,
        pattern: Any = None,
        *,
        name: Optional[str] = None,
        emitter: Optional[Emitter] = None,
        router: Any = None,
    ) -> None:
        self.matcher: Matcher = compile_pattern(pattern)
        self.name = name or _default_name(pattern)
        self.router = router
        self.emitter = emitter if emitter is not None else EventEmitter()
        self.metadata: Dict[str, Any] = {}
        self.plugins: List[str] = []
        self._actions: Dict[str, List[Tuple[Callable, Callable]]] = {}

    @property
    def key(self) -> str:
        return self.matcher.key

    @property
    def pattern(self) -> Any:
        return self.matcher.source

    @property
    def param_names(self) -> Tuple[Optional[str], ...]:
        return self.matcher.param_names

    def match(self, hash: str) -> Optional[Tuple[Optional[str], ...]]:
        """Return the captured params for ``hash``, or ``None`` on mismatch."""
        return self.matcher.match(hash)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def attach_action(self, method: Any = WILDCARD, action: Optional[Callable] = None) -> "Route":
        method, action = _normalize(method, action)
        if not callable(action):
            raise TypeError(f"Route action must be callable, got {action!r}")
        listener = self._wrap(method, action)
        self._actions.setdefault(method, []).append((action, listener))
        self.emitter.subscribe(self, event_name(method), listener)
        return self

    def detach_action(self, method: Any = WILDCARD, action: Optional[Callable] = None) -> "Route":
        method, action = _normalize(method, action)
        event = event_name(method)
        if action is None:
            self._actions.pop(method, None)
            self.emitter.unsubscribe(self, event)
            return self
        kept: List[Tuple[Callable, Callable]] = []
        for original, listener in self._actions.get(method, []):
            if original == action:
                self.emitter.unsubscribe(self, event, listener)
            else:
                kept.append((original, listener))
        if kept:
            self._actions[method] = kept
        else:
            self._actions.pop(method, None)
        return self

    def get(self, action: Callable) -> "Route":
        return self.attach_action("get", action)

    def post(self, action: Callable) -> "Route":
        return self.attach_action("post", action)

    def put(self, action: Callable) -> "Route":
        return self.attach_action("put", action)

    def delete(self, action: Callable) -> "Route":
        return self.attach_action("delete", action)

    del_ = delete

    def actions(self, method: str = WILDCARD) -> Tuple[Callable, ...]:
        return tuple(original for original, _ in self._actions.get(method, ()))

    def methods(self) -> Tuple[str, ...]:
        """Return the methods that currently have actions attached."""
        return tuple(self._actions)

    def rewrap(self) -> None:
        for method, pairs in self._actions.items():
            event = event_name(method)
            for _, listener in pairs:
                self.emitter.unsubscribe(self, event, listener)
            rewrapped = [(original, self._wrap(method, original)) for original, _ in pairs]
            for _, listener in rewrapped:
                self.emitter.subscribe(self, event, listener)
            self._actions[method] = rewrapped

    def _wrap(self, method: str, action: Callable) -> Callable:
        if self.router is None:
            return action
        return self.router._wrap_action(self, method, action)

    def __repr__(self) -> str:
        return f"<Route {self.name!r} {self.key}>"


def _normalize(method: Any, action: Optional[Callable]) -> Tuple[str, Optional[Callable]]:
    if action is None and callable(method):
        return WILDCARD, method
    if not isinstance(method, str) or not method:
        raise TypeError(f"Route method must be a non-empty string, got {method!r}")
    return method, action


def _default_name(pattern: Any) -> str:
    if not pattern:
        return WILDCARD
    source = getattr(pattern, "pattern", None)
    if isinstance(source, str):
        return source
    return str(pattern)
