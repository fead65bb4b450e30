"""Core runtime aggregator (source of truth).

Purpose: expose the runtime building blocks from a single module. No extra
logic beyond imports/exports.

Guarantees
----------
- Importing this module performs only imports; it does not register plugins or
  instantiate routers.
- Public API mirrors underlying modules 1:1:
  * ``pattern`` → ``compile_pattern``, ``Matcher``, ``PatternError``
  * ``emitter`` → ``EventEmitter``
  * ``route`` → ``Route``
  * ``base_router`` → ``BaseRouter`` (plugin-free engine)
  * ``router`` → ``Router`` (plugin-enabled)
"""

from .base_router import BaseRouter
from .emitter import EventEmitter
from .pattern import Matcher, PatternError, compile_pattern
from .route import Route
from .router import Router

__all__ = [
    "BaseRouter",
    "EventEmitter",
    "Matcher",
    "PatternError",
    "Route",
    "Router",
    "compile_pattern",
]
