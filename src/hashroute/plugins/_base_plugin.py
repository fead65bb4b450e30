"""Plugin contract definitions used by the Router runtime.

Source of truth
---------------
If this module were wiped except for this docstring, the implementation must be
reconstructed exactly as described below.

``BasePlugin``
    Base class that every plugin *must* subclass. Responsibilities:

    - offer config helpers that delegate to the owning router's
      ``_plugin_info`` store (no hidden per-plugin globals)
    - provide optional hooks used by the Router pipeline:
      ``on_register(router, route)``, ``wrap_dispatch(router, route,
      call_next)``, ``wrap_action(router, route, method, action)`` and
      ``entry_metadata(router, route)``

    Required class attributes:

    - ``plugin_code`` – unique identifier used for registration (e.g. "logging")
    - ``plugin_description`` – human-readable description of the plugin

    Constructor signature:

    ``BasePlugin(router, **config)``

    - ``router`` is required – the Router instance owning this plugin
    - ``**config`` is passed to ``configure()`` which is validated by Pydantic

    ``configure(**config)``
        Define accepted configuration parameters via method signature.
        The method is automatically wrapped by ``__init_subclass__`` to:
        - Extract and parse ``flags`` (e.g. "enabled,before:off") into booleans
        - Extract ``_target`` to determine where to write config:
          - ``"--base--"`` (default): router-level config
          - ``"route_name"``: per-route config
          - ``"r1,r2,r3"``: multiple routes (calls recursively)
        - Apply Pydantic's ``validate_call`` for parameter validation
        - Write validated config to the store

    ``configuration(route_name=None)``
        returns merged configuration dict from the router's store
        (router-level + optional per-route override). This is the read
        counterpart to ``configure()``.

    ``on_register`` (default no-op)
        called once when the Router registers a route, and for every existing
        route when the plugin is plugged in later.

    ``wrap_dispatch`` (default identity function)
        wraps the per-route dispatch step of ``resolve``. ``call_next`` has the
        signature ``(method, params)`` and publishes the route's events.

    ``wrap_action`` (default identity function)
        wraps a single action before it is subscribed on the route's emitter.
        The returned callable keeps the ``(method, *params)`` signature.

Design constraints
~~~~~~~~~~~~~~~~~~
* The Router only imports this module (not the concrete plugins) to avoid
  circular dependencies.
* Configuration storage stays internal to BasePlugin so all plugins behave
  consistently.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from pydantic import validate_call

__all__ = ["BasePlugin"]

BASE_TARGET = "--base--"


def _wrap_configure(original_configure: Callable) -> Callable:
    """Wrap a plugin's configure() method to handle flags, _target, validation, and storage."""
    validated = validate_call(original_configure)

    def wrapper(self: "BasePlugin", *, _target: str = BASE_TARGET, flags: Optional[str] = None, **kwargs: Any) -> None:
        if flags:
            kwargs.update(self._parse_flags(flags))

        if "," in _target:
            targets = [t.strip() for t in _target.split(",") if t.strip()]
            for t in targets:
                wrapper(self, _target=t, **kwargs)
            return

        validated(self, **kwargs)
        self._write_config(_target, kwargs)

    wrapper.__doc__ = original_configure.__doc__
    return wrapper


class BasePlugin:
    """Hook interface + configuration helpers for router plugins."""

    __slots__ = ("name", "_router")

    plugin_code: str = ""
    plugin_description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "configure" in cls.__dict__:
            cls.configure = _wrap_configure(cls.__dict__["configure"])

    def __init__(self, router: Any, **config: Any):
        self.name = self.plugin_code
        self._router = router
        self._init_store()
        self.configure(**config)

    def _init_store(self) -> None:
        store = self._get_store()
        store.setdefault(self.name, {}).setdefault(
            BASE_TARGET, {"config": {"enabled": True}, "locals": {}}
        )

    def configure(self, *, _target: str = BASE_TARGET, flags: Optional[str] = None) -> None:
        """Override in subclasses to define accepted configuration parameters.

        Base implementation accepts no additional parameters beyond _target and flags.

        Args:
            _target: Where to write config. "--base--" for router-level,
                     "route_name" for per-route, or "r1,r2" for multiple.
            flags: String like "enabled,before:off" parsed into booleans.
        """
        if flags:
            self._write_config(_target, self._parse_flags(flags))

    def _write_config(self, target: str, config: Dict[str, Any]) -> None:
        if not config:
            return
        store = self._get_store()
        plugin_bucket = store.setdefault(self.name, {})
        bucket = plugin_bucket.setdefault(target, {"config": {}, "locals": {}})
        bucket["config"].update(config)

    def configuration(self, route_name: Optional[str] = None) -> Dict[str, Any]:
        """Read merged configuration (base + optional per-route override)."""
        plugin_bucket = self._get_store().get(self.name)
        if not plugin_bucket:
            return {}
        merged = dict(plugin_bucket.get(BASE_TARGET, {}).get("config", {}))
        if route_name:
            merged.update(plugin_bucket.get(route_name, {}).get("config", {}))
        return merged

    def _parse_flags(self, flags: str) -> Dict[str, bool]:
        mapping: Dict[str, bool] = {}
        for chunk in flags.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            if ":" in chunk:
                name, value = chunk.split(":", 1)
                mapping[name.strip()] = value.strip().lower() != "off"
            else:
                mapping[chunk] = True
        return mapping

    def on_register(self, router: Any, route: Any) -> None:  # pragma: no cover - default no-op
        """Hook run when a route is registered."""

    def wrap_dispatch(self, router: Any, route: Any, call_next: Callable) -> Callable:
        """Wrap the per-route dispatch step; default passthrough."""
        return call_next

    def wrap_action(self, router: Any, route: Any, method: str, action: Callable) -> Callable:
        """Wrap a single route action; default passthrough."""
        return action

    def entry_metadata(self, router: Any, route: Any) -> Dict[str, Any]:
        """Extra data exposed by ``Router.members()`` for ``route``."""
        return {}

    def _get_store(self) -> Dict[str, Any]:
        return getattr(self._router, "_plugin_info")
