"""Logging plugin (source of truth).

Rebuild behaviour exactly as described; no hidden defaults beyond this text.

Responsibilities
----------------
- Wrap the dispatch of every matching route and emit configurable messages:
  * ``before`` (default True): ``"{route.name} {method} start"``
  * ``after`` (default True): ``"{route.name} {method} end (<ms> ms)"`` with
    elapsed time in milliseconds and ``{elapsed:.2f}`` formatting.
  A dispatch without method logs ``*`` as the method.
- Sinks:
  * when ``print`` is true → always ``print(message)``;
  * else when ``log`` is true → ``logger.info(message)`` if the logger reports
    handlers via ``hasHandlers()``, otherwise ``print(message)`` to avoid drops;
  * else → no output.
- ``enabled`` gates the plugin entirely (default True).
- Use a provided ``logging.Logger`` (default ``logging.getLogger("hashroute")``).

Configuration
-------------
- Accepted keys (router-level or per-route): ``enabled``, ``before``,
  ``after``, ``log``, ``print``. They can be provided as individual kwargs
  on ``register_route`` (e.g. ``logging_after=False``) or in
  ``logging_flags`` (e.g. ``"enabled:off,before:on"``).
- Runtime: ``router.logging.configure(...)`` with the same options, plus
  per-route via ``configure(_target="route name", before=False)``.

Behaviour
---------
Exceptions raised by actions propagate; the end message is skipped when an
exception is raised.

Registration
------------
At module import, the plugin registers itself globally as ``"logging"`` via
``Router.register_plugin(LoggingPlugin)``.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from hashroute.core.router import Router
from hashroute.plugins._base_plugin import BasePlugin


class LoggingPlugin(BasePlugin):
    """Logs route dispatches with timing."""

    plugin_code = "logging"
    plugin_description = "Logs route dispatches with timing"

    __slots__ = ("_logger",)

    def __init__(self, router, *, logger: Optional[logging.Logger] = None, **cfg):
        self._logger = logger or logging.getLogger("hashroute")
        super().__init__(router, **cfg)

    def configure(
        self,
        enabled: bool = True,
        before: bool = True,
        after: bool = True,
        log: bool = True,
        print: bool = False,  # noqa: A002 - shadowing builtin intentionally
    ):
        """Configure logging plugin options.

        The wrapper added by __init_subclass__ handles writing to store.
        """
        pass

    def _emit(self, message: str, *, cfg: Optional[dict] = None):
        if cfg is None:
            return
        if cfg.get("print"):
            print(message)
            return
        if cfg.get("log"):
            logger = self._logger
            has_handlers = getattr(logger, "hasHandlers", None) or getattr(
                logger, "has_handlers", None
            )
            if callable(has_handlers) and has_handlers():
                logger.info(message)
            else:
                print(message)

    def wrap_dispatch(self, router, route, call_next: Callable):
        """Wrap the route dispatch with start/end logging and timing."""

        def logged(method, params):
            cfg = self._effective_config(route.name)
            if not cfg["enabled"]:
                return call_next(method, params)
            label = f"{route.name} {method or '*'}"
            if cfg["before"]:
                self._emit(f"{label} start", cfg=cfg)
            t0 = time.perf_counter()
            result = call_next(method, params)
            elapsed = (time.perf_counter() - t0) * 1000
            if cfg["after"]:
                self._emit(f"{label} end ({elapsed:.2f} ms)", cfg=cfg)
            return result

        return logged

    def _effective_config(self, route_name: str) -> dict:
        defaults = {"enabled": True, "before": True, "after": True, "log": True, "print": False}
        cfg = defaults | self.configuration(route_name)
        flags = cfg.pop("flags", None)
        if isinstance(flags, str):
            cfg.update(self._parse_flags(flags))

        def to_bool(key: str) -> bool:
            val = cfg.get(key)
            return defaults[key] if val is None else bool(val)

        return {key: to_bool(key) for key in defaults}


Router.register_plugin(LoggingPlugin)
