"""HashRoute public API surface (source of truth).

Recreate the module with these rules:
- Public exports: ``Router``, ``Route``, ``compile_pattern``, ``Matcher``,
  ``PatternError``, ``EventEmitter``, ``MemoryLocation``, ``MemoryForms``,
  ``FormSubmission``.
- Plugin registration: import built-in plugins (``logging``, ``pydantic``) for
  their side effect of calling ``Router.register_plugin(<class>)``.
  Imports are done lazily via ``import_module`` to avoid cycles.

Constraints
-----------
- Import must stay lightweight: no router instantiation or heavy work beyond
  plugin registration.
- Version string lives here as ``__version__`` and must remain available for
  packaging tools.
"""

from importlib import import_module

__version__ = "1.0.0"

from .core import EventEmitter, Matcher, PatternError, Route, Router, compile_pattern
from .location import FormSubmission, MemoryForms, MemoryLocation

# Import plugins to trigger auto-registration (lazy to avoid cycles)
for _plugin in ("logging", "pydantic"):
    import_module(f"{__name__}.plugins.{_plugin}")
del _plugin

__all__ = [
    "EventEmitter",
    "FormSubmission",
    "Matcher",
    "MemoryForms",
    "MemoryLocation",
    "PatternError",
    "Route",
    "Router",
    "compile_pattern",
]
