"""Plugin-free hash router runtime (source of truth).

If this file vanished, rebuild it from this description. The module exposes a
single class, :class:`BaseRouter`, which owns a flat registry of routes,
resolves hashes against it and binds itself to a location and a forms surface.
Subclasses add middleware but must preserve these semantics.

Constructor and slots
---------------------
Constructor signature::

    BaseRouter(name=None, *, emitter=None, location=None, forms=None,
               start_kwargs=None)

- ``emitter``: event emitter shared by every route (default
  :class:`EventEmitter`).
- ``location``: hash holder (default :class:`MemoryLocation`).
- ``forms``: optional form submission surface; ``None`` disables form binding.
- ``start_kwargs``: defaults merged via ``SmartOptions`` in ``start()``
  (``observe_hash``, ``initial_hash``).
- Slots: ``name``, ``emitter``, ``location``, ``forms``, ``observing``,
  ``_routes`` (canonical key → Route), ``_start_defaults``, ``_forms_bound``.

Registration
------------
``register_route(pattern, get_action=None, *, name=None, metadata=None, **options)``

- Builds a ``Route`` bound to this router and its emitter.
- Options named ``<plugin>_<key>`` for a registered plugin are split off and
  stored under ``route.metadata["plugin_config"]``; the remaining options and
  ``metadata`` are merged into ``route.metadata``.
- Stores the route under its canonical key, replacing any previous route with
  the same key (the replaced route keeps its actions but is no longer
  resolved). Insertion order of the key is preserved on replacement.
- Runs the ``_after_route_registered`` hook, then attaches ``get_action`` as a
  ``"get"`` action. Returns the route.

``route(pattern, method="get", **options)`` is the decorator form. It reuses
the route already stored for the pattern's key, registering one only when the
slot is empty, so stacked decorators on one pattern share a route.

``remove_route(route_or_pattern)`` deletes the slot for the route's key (a
pattern is compiled to obtain it). Missing keys are ignored.

Resolution
----------
``resolve(hash, method=None)``

- Falsy hash → ``False`` without touching the registry.
- The registry is copied before iteration; actions may register or remove
  routes, which only affects later passes.
- Every route whose matcher accepts the hash is dispatched with
  ``(method, *params)``: the wildcard event first, then the method event when
  ``method`` is truthy. Dispatch goes through ``_wrap_dispatch`` so
  subclasses can add middleware.
- Returns ``True`` when at least one route matched. All routes are checked.

Location binding
----------------
- ``get_hash()`` returns the location hash without leading ``#``.
- ``navigate(hash)`` writes the location; when the value is unchanged or the
  router is not observing, it resolves the hash with ``"get"`` itself.
- ``resolve_hash()`` resolves the current hash with ``"get"``; it is the
  listener registered on the location.
- ``handle_form_submit(form)`` resolves ``form.action`` with the lower-cased
  ``form.method`` (``"get"`` when missing) and returns ``True`` when the
  default submission should proceed, i.e. when nothing matched. Mappings are
  accepted in place of objects.
- ``start(initial_hash=None, **options)`` subscribes ``resolve_hash`` unless
  ``observe_hash`` is false, binds ``handle_form_submit`` when a forms surface
  exists, then resolves the current hash once or navigates to
  ``initial_hash`` when the current hash is empty.
- ``stop()`` removes both bindings. The registry is left untouched.

Introspection
-------------
``routes()``, ``get_route(pattern)``, ``len()``, ``in`` (pattern or route),
iteration over routes, and ``members()`` which describes every route and the
plugin store.

Hooks for subclasses
--------------------
``_wrap_dispatch``, ``_wrap_action``, ``_after_route_registered`` and
``_describe_route_extra``. Default implementations are no-ops/passthrough.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import partial
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Tuple

from smartseeds import SmartOptions
from smartseeds.typeutils import safe_is_instance

from ..location import Forms, Location, MemoryLocation, strip_hash
from .emitter import Emitter, EventEmitter
from .pattern import compile_pattern
from .route import WILDCARD, Route, event_name

__all__ = ["BaseRouter"]

logger = logging.getLogger("hashroute")


class BaseRouter:
    """Plugin-free hash router.

    Responsibilities:
    - keep one route per canonical key
    - resolve hashes against every route and publish their events
    - bind to a location (hash changes) and a forms surface (submissions)
    - provide hooks for subclasses to wrap dispatch and actions
    """

    __slots__ = (
        "name",
        "emitter",
        "location",
        "forms",
        "observing",
        "_routes",
        "_start_defaults",
        "_forms_bound",
    )

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        emitter: Optional[Emitter] = None,
        location: Optional[Location] = None,
        forms: Optional[Forms] = None,
        start_kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.name = name
        self.emitter = emitter if emitter is not None else EventEmitter()
        self.location = location if location is not None else MemoryLocation()
        self.forms = forms
        self.observing = False
        self._forms_bound = False
        self._routes: Dict[str, Route] = {}
        self._start_defaults: Dict[str, Any] = dict(start_kwargs or {})

    def _is_known_plugin(self, prefix: str) -> bool:
        try:
            from hashroute.core.router import Router  # type: ignore
        except Exception:  # pragma: no cover - import safety
            return False
        return prefix in Router.available_plugins()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register_route(
        self,
        pattern: Any,
        get_action: Optional[Callable] = None,
        *,
        name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **options: Any,
    ) -> Route:
        """Compile ``pattern`` and store it, replacing a route with the same key.

        Args:
            pattern: Pattern string, compiled regex, or a falsy value for the
                catch-all route.
            get_action: Optional action attached for the ``"get"`` method.
            name: Logical route name (plugin configuration target).
            metadata: Extra metadata stored on the route.
            options: ``<plugin>_<key>`` plugin options or extra metadata.

        Returns:
            The new route, so more actions can be attached.
        """
        if get_action is not None and not callable(get_action):
            raise TypeError(f"Route action must be callable, got {get_action!r}")
        plugin_options: Dict[str, Dict[str, Any]] = {}
        core_options: Dict[str, Any] = {}
        for key, value in options.items():
            if "_" in key:
                plugin_name, plug_key = key.split("_", 1)
                if plugin_name and plug_key and self._is_known_plugin(plugin_name):
                    plugin_options.setdefault(plugin_name, {})[plug_key] = value
                    continue
            core_options[key] = value

        route = Route(pattern, name=name, emitter=self.emitter, router=self)
        route.metadata.update(metadata or {})
        route.metadata.update(core_options)
        if plugin_options:
            route.metadata["plugin_config"] = plugin_options

        if route.key in self._routes:
            logger.debug("Replacing route %s", route.key)
        self._routes[route.key] = route
        self._after_route_registered(route)
        if get_action is not None:
            route.get(get_action)
        return route

    def route(self, pattern: Any, method: str = "get", **options: Any) -> Callable:
        """Decorator attaching the function as ``method`` action of ``pattern``."""

        def decorator(action: Callable) -> Callable:
            target = self._routes.get(compile_pattern(pattern).key)
            if target is None:
                target = self.register_route(pattern, **options)
            target.attach_action(method, action)
            return action

        return decorator

    def remove_route(self, route: Any) -> "BaseRouter":
        """Unregister a route (Route instance or pattern); unknown routes are ignored."""
        key = self._key_for(route)
        if self._routes.pop(key, None) is not None:
            logger.debug("Removed route %s", key)
        return self

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    def resolve(self, hash: Optional[str], method: Optional[str] = None) -> bool:
        """Dispatch every route matching ``hash``; return True if any matched."""
        if not hash:
            return False
        matched = False
        for route in list(self._routes.values()):
            params = route.match(hash)
            if params is None:
                continue
            dispatch = self._wrap_dispatch(route, partial(self._publish, route))
            dispatch(method, params)
            matched = True
        return matched

    def _publish(self, route: Route, method: Optional[str], params: Sequence[Any]) -> None:
        args = (method, *params)
        self.emitter.publish(route, event_name(WILDCARD), args)
        if method:
            self.emitter.publish(route, event_name(method), args)

    # ------------------------------------------------------------------
    # Location and forms
    # ------------------------------------------------------------------
    def get_hash(self) -> str:
        return strip_hash(self.location.hash)

    def navigate(self, hash: str) -> "BaseRouter":
        """Point the location at ``hash``, resolving it when no change event will."""
        hash = strip_hash(hash)
        changed = self.get_hash() != hash
        self.location.hash = hash
        if not self.observing or not changed:
            self.resolve(hash, "get")
        return self

    def resolve_hash(self, *_: Any) -> bool:
        return self.resolve(self.get_hash(), "get")

    def handle_form_submit(self, form: Any) -> bool:
        """Resolve a submitted form; return True when the submission should proceed."""
        method = str(_form_field(form, "method") or "get").lower()
        return not self.resolve(_form_field(form, "action"), method)

    def start(self, initial_hash: Optional[str] = None, **options: Any) -> "BaseRouter":
        """Bind to the location/forms and resolve the current hash once."""
        opts = SmartOptions(options, defaults=self._start_defaults)
        observe_hash = getattr(opts, "observe_hash", True)
        if initial_hash is None:
            initial_hash = getattr(opts, "initial_hash", None)

        if observe_hash and not self.observing:
            self.location.subscribe(self.resolve_hash)
            self.observing = True
        if self.forms is not None and not self._forms_bound:
            self.forms.subscribe(self.handle_form_submit)
            self._forms_bound = True

        current = self.get_hash()
        if current:
            self.resolve(current, "get")
        elif initial_hash:
            self.navigate(initial_hash)
        return self

    def stop(self) -> "BaseRouter":
        """Remove location and forms bindings; routes stay registered."""
        self.location.unsubscribe(self.resolve_hash)
        self.observing = False
        if self.forms is not None and self._forms_bound:
            self.forms.unsubscribe(self.handle_form_submit)
        self._forms_bound = False
        return self

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def routes(self) -> Tuple[Route, ...]:
        return tuple(self._routes.values())

    def get_route(self, pattern: Any) -> Optional[Route]:
        return self._routes.get(self._key_for(pattern))

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(self.routes())

    def __contains__(self, route: Any) -> bool:
        return self._key_for(route) in self._routes

    def members(self) -> Dict[str, Any]:
        """Return a description of the router, its routes and plugin state."""
        routes = {key: self._route_member_info(route) for key, route in self._routes.items()}
        result: Dict[str, Any] = {
            "name": self.name,
            "router": self,
            "observing": self.observing,
            "plugin_info": self._get_plugin_info(),
        }
        if routes:
            result["routes"] = routes
        return result

    def _route_member_info(self, route: Route) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "name": route.name,
            "pattern": route.pattern,
            "key": route.key,
            "params": list(route.param_names),
            "methods": {
                method: [_callable_name(action) for action in route.actions(method)]
                for method in route.methods()
            },
            "metadata": route.metadata,
        }
        extra = self._describe_route_extra(route, info)
        if extra:
            info.update(extra)
        return info

    def _get_plugin_info(self) -> Dict[str, Any]:
        info_source = getattr(self, "_plugin_info", {}) or {}
        return {
            pname: {
                key: {
                    "config": dict(slot.get("config", {})),
                    "locals": dict(slot.get("locals", {})),
                }
                for key, slot in pdata.items()
            }
            for pname, pdata in info_source.items()
        }

    def _key_for(self, route: Any) -> str:
        if safe_is_instance(route, "hashroute.core.route.Route"):
            return route.key
        return compile_pattern(route).key

    # ------------------------------------------------------------------
    # Plugin hooks (no-op for BaseRouter)
    # ------------------------------------------------------------------
    def _wrap_dispatch(self, route: Route, call_next: Callable) -> Callable:
        return call_next

    def _wrap_action(self, route: Route, method: str, action: Callable) -> Callable:
        return action

    def _after_route_registered(self, route: Route) -> None:
        """Hook invoked after a route is stored (subclasses may override)."""
        return None

    def _describe_route_extra(
        self, route: Route, base_description: Dict[str, Any]
    ) -> Dict[str, Any]:  # pragma: no cover - overridden when plugins present
        return {}


def _form_field(form: Any, field: str) -> Any:
    if isinstance(form, Mapping):
        return form.get(field)
    return getattr(form, field, None)


def _callable_name(action: Callable) -> str:
    return getattr(action, "__qualname__", None) or getattr(action, "__name__", None) or repr(action)
