"""Pydantic plugin (source of truth).

Captured params always arrive as strings. This plugin lets an action declare
the types it wants through ordinary annotations and validates/coerces the
params with a Pydantic model before the action runs::

    router = Router().plug("pydantic")

    @router.route("/post/:id")
    def show(method, id: int):
        ...

Behaviour
---------
- ``wrap_action`` inspects the action's type hints. The first positional
  parameter receives the method and is never validated. Hints on ``*args`` or
  ``**kwargs`` are ignored. Without remaining hints the action is returned
  untouched.
- A hint naming a parameter that is not in the signature raises
  ``ValueError`` when the action is attached.
- The model is built once per action with ``pydantic.create_model`` and
  recorded under ``route.metadata["pydantic"][method][model name]``.
- At call time the arguments are bound to the signature, defaults applied,
  hinted values validated and replaced by their coerced values. Invalid input
  raises ``pydantic.ValidationError`` out of ``resolve``.
- ``disabled`` (router-level or per-route) bypasses validation at call time.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, Optional, Tuple, get_type_hints

from pydantic import create_model

from hashroute.core.router import Router
from hashroute.plugins._base_plugin import BasePlugin

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


class PydanticPlugin(BasePlugin):
    """Validate and coerce captured params using action type hints."""

    plugin_code = "pydantic"
    plugin_description = "Validates route params using Pydantic type hints"

    def configure(self, disabled: bool = False):
        """Configure pydantic plugin options.

        The wrapper added by __init_subclass__ handles writing to store.
        """
        pass

    def wrap_action(self, router: Any, route: Any, method: str, action: Callable) -> Callable:
        built = self._build_model(action)
        if built is None:
            return action
        model, sig, hints = built
        route.metadata.setdefault("pydantic", {}).setdefault(method, {})[model.__name__] = model

        def wrapper(*args, **kwargs):
            cfg = self.configuration(route.name)
            if cfg.get("disabled"):
                return action(*args, **kwargs)
            bound = sig.bind(*args, **kwargs)
            bound.apply_defaults()
            validated = model(**{k: v for k, v in bound.arguments.items() if k in hints})
            for key, value in validated:
                bound.arguments[key] = value
            return action(*bound.args, **bound.kwargs)

        return wrapper

    def _build_model(self, action: Callable) -> Optional[Tuple[Any, inspect.Signature, Dict[str, Any]]]:
        try:
            hints = get_type_hints(action)
            sig = inspect.signature(action)
        except Exception:
            # No hints resolvable, no model created
            return None

        hints.pop("return", None)
        parameters = list(sig.parameters.values())
        if parameters and parameters[0].kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            hints.pop(parameters[0].name, None)

        fields = {}
        for param_name, hint in list(hints.items()):
            param = sig.parameters.get(param_name)
            if param is None:
                raise ValueError(
                    f"Action '{_action_name(action)}' has type hint for '{param_name}' "
                    f"which is not in the function signature"
                )
            if param.kind in _SKIPPED_KINDS:
                hints.pop(param_name)
            elif param.default is inspect.Parameter.empty:
                fields[param_name] = (hint, ...)
            else:
                fields[param_name] = (hint, param.default)
        if not fields:
            return None

        model = create_model(f"{_action_name(action)}_Model", **fields)  # type: ignore
        return model, sig, hints

    def entry_metadata(self, router: Any, route: Any) -> Dict[str, Any]:
        """Return the models built for this route, keyed by method."""
        models = route.metadata.get("pydantic")
        if not models:
            return {}
        return {"models": {method: dict(found) for method, found in models.items()}}


def _action_name(action: Callable) -> str:
    return getattr(action, "__name__", type(action).__name__)


Router.register_plugin(PydanticPlugin)
