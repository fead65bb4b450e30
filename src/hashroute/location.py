"""In-process stand-ins for the browser surfaces a router binds to.

A router reads and writes a single hash string through a *location* and,
optionally, listens to form submissions through a *forms* surface. Both are
plain protocols so an embedding (a webview bridge, a test harness) can supply
its own. The implementations here behave like their browser counterparts:

- :class:`MemoryLocation` stores the hash the way ``window.location.hash``
  does (``"#"`` prefixed, empty string when unset) and notifies subscribers
  synchronously whenever the value actually changes.
- :class:`MemoryForms` delivers a :class:`FormSubmission` to its subscribers;
  ``submit`` reports whether the default submission should go ahead, which is
  the case unless a subscriber returned ``False``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol

from .core.emitter import Emitter, EventEmitter

__all__ = [
    "FormSubmission",
    "Forms",
    "Location",
    "MemoryForms",
    "MemoryLocation",
    "strip_hash",
]

HASHCHANGE = "hashchange"


def strip_hash(value: Optional[str]) -> str:
    """Drop leading ``#`` characters (leading slashes are kept)."""
    return (value or "").lstrip("#")


class Location(Protocol):
    hash: str

    def subscribe(self, callback: Callable[..., Any]) -> None: ...

    def unsubscribe(self, callback: Callable[..., Any]) -> None: ...


class Forms(Protocol):
    def subscribe(self, callback: Callable[[Any], Any]) -> None: ...

    def unsubscribe(self, callback: Callable[[Any], Any]) -> None: ...


class MemoryLocation:
    """Hash holder with change notifications."""

    __slots__ = ("_hash", "_emitter", "__weakref__")

    def __init__(self, hash: str = "", *, emitter: Optional[Emitter] = None) -> None:
        self._emitter = emitter if emitter is not None else EventEmitter()
        self._hash = _normalize(hash)

    @property
    def hash(self) -> str:
        return self._hash

    @hash.setter
    def hash(self, value: str) -> None:
        value = _normalize(value)
        if value == self._hash:
            return
        self._hash = value
        self._emitter.publish(self, HASHCHANGE, (value,))

    def subscribe(self, callback: Callable[..., Any]) -> None:
        self._emitter.subscribe(self, HASHCHANGE, callback)

    def unsubscribe(self, callback: Callable[..., Any]) -> None:
        self._emitter.unsubscribe(self, HASHCHANGE, callback)

    def __repr__(self) -> str:
        return f"MemoryLocation({self._hash!r})"


@dataclass(frozen=True)
class FormSubmission:
    action: Optional[str]
    method: Optional[str] = "get"


class MemoryForms:
    """Form submission surface; subscribers may veto the default action."""

    __slots__ = ("_callbacks",)

    def __init__(self) -> None:
        self._callbacks: List[Callable[[Any], Any]] = []

    def subscribe(self, callback: Callable[[Any], Any]) -> None:
        self._callbacks.append(callback)

    def unsubscribe(self, callback: Callable[[Any], Any]) -> None:
        self._callbacks = [cb for cb in self._callbacks if cb != callback]

    def submit(self, form: Any) -> bool:
        proceed = True
        for callback in list(self._callbacks):
            if callback(form) is False:
                proceed = False
        return proceed


def _normalize(value: Optional[str]) -> str:
    stripped = strip_hash(value)
    return f"#{stripped}" if stripped else ""
