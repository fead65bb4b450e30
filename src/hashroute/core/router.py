"""Router with plugin pipeline (source of truth).

If this module disappeared, rebuild it exactly as described. ``Router`` extends
``BaseRouter`` with a global plugin registry, per-router plugin instances,
dispatch/action wrapping, and plugin state stored on the router instance.

Internal state
--------------
- ``_plugin_specs``: list of ``_PluginSpec`` (factory, kwargs copy).
- ``_plugins``: instantiated plugins in the order they were attached.
- ``_plugins_by_name``: name → plugin instance.
- ``_plugin_info``: per-plugin state store on the router.

Global registry
---------------
``Router.register_plugin(plugin_class, name=None)`` validates that
``plugin_class`` is a ``BasePlugin`` subclass with a ``plugin_code``.
Registering a different class under an existing code raises ``ValueError``
unless ``name`` is given explicitly (intentional replacement).
``available_plugins`` returns a shallow copy of the registry.

Attaching plugins
-----------------
``plug(plugin_name, **config)`` looks up the plugin class by name (raises
``ValueError`` listing available names if missing), instantiates it, runs
``plugin.on_register`` for every existing route, rewraps existing route
actions and returns ``self``. ``__getattr__`` exposes attached plugins by name
or raises ``AttributeError``.

Runtime flags and data
----------------------
Stored under ``_plugin_info[plugin_code]`` using a reserved ``"--base--"``
bucket for router-level defaults and one bucket per route name, each with
``config`` and ``locals``. ``set_plugin_enabled`` / ``is_plugin_enabled`` and
``set_runtime_data`` / ``get_runtime_data`` read/write these buckets.

Wrapping pipeline
-----------------
Both ``_wrap_dispatch`` and ``_wrap_action`` build layers from ``_plugins`` in
reverse order (first attached = outermost layer). Each layer is guarded so it
is skipped when ``is_plugin_enabled(route.name, plugin.name)`` is False.

Registration hook
-----------------
``_after_route_registered`` copies ``route.metadata["plugin_config"]`` into the
plugin store under the route name, then calls ``on_register`` for every
attached plugin and records its name in ``route.plugins``.

Invariants
----------
- Plugin order is deterministic (first attached = outermost layer).
- Global registry changes do not mutate existing router instances.
- Plugin access via attribute never fails silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Type

from hashroute.core.base_router import BaseRouter
from hashroute.core.route import Route
from hashroute.plugins._base_plugin import BASE_TARGET, BasePlugin

__all__ = ["Router"]

_PLUGIN_REGISTRY: Dict[str, Type[BasePlugin]] = {}


@dataclass
class _PluginSpec:
    factory: Type[BasePlugin]
    kwargs: Dict[str, Any]

    def instantiate(self, router: "Router") -> BasePlugin:
        return self.factory(router=router, **self.kwargs)


class Router(BaseRouter):
    """Hash router with plugin registry/pipeline support."""

    __slots__ = BaseRouter.__slots__ + (
        "_plugin_specs",
        "_plugins",
        "_plugins_by_name",
        "_plugin_info",
    )

    def __init__(self, *args, **kwargs):
        self._plugin_specs: List[_PluginSpec] = []
        self._plugins: List[BasePlugin] = []
        self._plugins_by_name: Dict[str, BasePlugin] = {}
        self._plugin_info: Dict[str, Dict[str, Any]] = {}
        super().__init__(*args, **kwargs)

    # ------------------------------------------------------------------
    # Plugin registration
    # ------------------------------------------------------------------
    @classmethod
    def register_plugin(cls, plugin_class: Type[BasePlugin], name: Optional[str] = None) -> None:
        """Register a plugin class globally.

        Args:
            plugin_class: A BasePlugin subclass with plugin_code defined
            name: Optional override name. If provided, overwrites any existing
                  registration. If not provided, uses plugin_code and raises
                  if already registered.
        """
        if not isinstance(plugin_class, type) or not issubclass(plugin_class, BasePlugin):
            raise TypeError("plugin_class must be a BasePlugin subclass")
        if not getattr(plugin_class, "plugin_code", None):
            raise ValueError(
                f"Plugin {plugin_class.__name__} not following standards: missing plugin_code"
            )
        code = name or plugin_class.plugin_code
        if name is None:
            existing = _PLUGIN_REGISTRY.get(code)
            if existing is not None and existing is not plugin_class:
                raise ValueError(f"Plugin '{code}' already registered")
        _PLUGIN_REGISTRY[code] = plugin_class

    @classmethod
    def available_plugins(cls) -> Dict[str, Type[BasePlugin]]:
        return dict(_PLUGIN_REGISTRY)

    def plug(self, plugin: str, **config: Any) -> "Router":
        """Attach a plugin by name (previously registered globally)."""
        if not isinstance(plugin, str):
            raise TypeError(
                f"Plugin must be referenced by name string, got {type(plugin).__name__}"
            )
        plugin_class = _PLUGIN_REGISTRY.get(plugin)
        if plugin_class is None:
            available = ", ".join(sorted(_PLUGIN_REGISTRY)) or "none"
            raise ValueError(
                f"Unknown plugin '{plugin}'. Register it first. Available plugins: {available}"
            )
        spec = _PluginSpec(plugin_class, dict(config))
        self._plugin_specs.append(spec)
        instance = spec.instantiate(self)
        self._plugins.append(instance)
        self._plugins_by_name[instance.name] = instance
        for route in self._routes.values():
            self._apply_plugin(instance, route)
            route.rewrap()
        return self

    def iter_plugins(self) -> List[BasePlugin]:
        """Return attached plugin instances in application order."""
        return list(self._plugins)

    def get_config(self, plugin_name: str, route_name: Optional[str] = None) -> Dict[str, Any]:
        """Return plugin config (global + per-route overrides) for an attached plugin."""
        plugin = self._plugins_by_name.get(plugin_name)
        if plugin is None:
            raise AttributeError(
                f"No plugin named '{plugin_name}' attached to router '{self.name}'"
            )
        return plugin.configuration(route_name)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        plugin = self._plugins_by_name.get(name)
        if plugin is None:
            raise AttributeError(f"No plugin named '{name}' attached to router '{self.name}'")
        return plugin

    def _get_plugin_bucket(self, plugin_name: str) -> Dict[str, Any]:
        bucket = self._plugin_info.get(plugin_name)
        if bucket is None:
            raise AttributeError(
                f"No plugin named '{plugin_name}' attached to router '{self.name}'"
            )
        bucket.setdefault(BASE_TARGET, {"config": {}, "locals": {}})
        return bucket

    # ------------------------------------------------------------------
    # Runtime helpers (state stored on plugin_info)
    # ------------------------------------------------------------------
    def set_plugin_enabled(self, route_name: str, plugin_name: str, enabled: bool = True) -> None:
        bucket = self._get_plugin_bucket(plugin_name)
        entry = bucket.setdefault(route_name, {"config": {}, "locals": {}})
        entry.setdefault("locals", {})["enabled"] = bool(enabled)

    def is_plugin_enabled(self, route_name: str, plugin_name: str) -> bool:
        bucket = self._get_plugin_bucket(plugin_name)
        entry_locals = bucket.get(route_name, {}).get("locals", {})
        if "enabled" in entry_locals:
            return bool(entry_locals["enabled"])
        base_locals = bucket[BASE_TARGET].get("locals", {})
        return bool(base_locals.get("enabled", True))

    def set_runtime_data(self, route_name: str, plugin_name: str, key: str, value: Any) -> None:
        bucket = self._get_plugin_bucket(plugin_name)
        entry = bucket.setdefault(route_name, {"config": {}, "locals": {}})
        entry.setdefault("locals", {})[key] = value

    def get_runtime_data(
        self, route_name: str, plugin_name: str, key: str, default: Any = None
    ) -> Any:
        bucket = self._get_plugin_bucket(plugin_name)
        entry_locals = bucket.get(route_name, {}).get("locals", {})
        return entry_locals.get(key, default)

    # ------------------------------------------------------------------
    # Overrides/hooks
    # ------------------------------------------------------------------
    def _wrap_dispatch(self, route: Route, call_next: Callable) -> Callable:  # type: ignore[override]
        wrapped = call_next
        for plugin in reversed(self._plugins):
            plugin_call = plugin.wrap_dispatch(self, route, wrapped)
            wrapped = self._create_wrapper(plugin, route, plugin_call, wrapped)
        return wrapped

    def _wrap_action(self, route: Route, method: str, action: Callable) -> Callable:  # type: ignore[override]
        wrapped = action
        for plugin in reversed(self._plugins):
            plugin_call = plugin.wrap_action(self, route, method, wrapped)
            if plugin_call is wrapped:
                continue
            wrapped = self._create_wrapper(plugin, route, plugin_call, wrapped)
        return wrapped

    def _create_wrapper(
        self,
        plugin: BasePlugin,
        route: Route,
        plugin_call: Callable,
        next_handler: Callable,
    ) -> Callable:
        @wraps(next_handler)
        def wrapper(*args, **kwargs):
            if not self.is_plugin_enabled(route.name, plugin.name):
                return next_handler(*args, **kwargs)
            return plugin_call(*args, **kwargs)

        return wrapper

    def _apply_plugin(self, plugin: BasePlugin, route: Route) -> None:
        if plugin.name not in route.plugins:
            route.plugins.append(plugin.name)
        plugin.on_register(self, route)

    def _after_route_registered(self, route: Route) -> None:  # type: ignore[override]
        plugin_options = route.metadata.get("plugin_config", {})
        for pname, cfg in plugin_options.items():
            bucket = self._plugin_info.setdefault(
                pname, {BASE_TARGET: {"config": {}, "locals": {}}}
            )
            route_bucket = bucket.setdefault(route.name, {"config": {}, "locals": {}})
            route_bucket["config"].update(cfg)
        for plugin in self._plugins:
            self._apply_plugin(plugin, route)

    def _describe_route_extra(  # type: ignore[override]
        self, route: Route, base_description: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Gather plugin config and metadata for a route."""
        plugins_info: Dict[str, Dict[str, Any]] = {}
        for plugin in self._plugins:
            plugin_data: Dict[str, Any] = {}
            config = plugin.configuration(route.name)
            if config:
                plugin_data["config"] = config
            meta = plugin.entry_metadata(self, route)
            if meta:
                plugin_data["metadata"] = meta
            if plugin_data:
                plugins_info[plugin.name] = plugin_data
        if plugins_info:
            return {"plugins": plugins_info}
        return {}
