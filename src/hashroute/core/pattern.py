"""Route pattern compiler (source of truth).

If this module disappeared, rebuild it from this description. It turns a route
specification into a :class:`Matcher`, the immutable object every ``Route``
tests hashes against.

Inputs
------
``compile_pattern(pattern)`` accepts three shapes:

- a compiled ``re.Pattern`` (str patterns only): used as is, unanchored, with
  ``search`` semantics. Bytes patterns raise ``TypeError``.
- a falsy value (``""``, ``None``): the catch-all matcher ``^.+$`` which
  accepts any non-empty hash.
- anything else: converted with ``str()`` and compiled from the literal
  pattern syntax below.

Literal pattern syntax
----------------------
1. Every character in ``- [ ] { } ( ) + ? . , \\ ^ $ | #`` and every
   whitespace character is escaped so it matches literally.
2. ``:name`` (one or more ASCII word characters) becomes ``([^/]+)``.
3. ``*name`` with an optional name (a bare ``*`` is valid) becomes ``(.*?)``.
4. The expression is anchored as ``^...$``: the whole hash must be consumed.

Placeholders are collected in declaration order into ``param_names``
(``None`` for an anonymous splat). For user supplied regexes the names come
from named groups, ``None`` for positional groups.

Canonical key
-------------
``Matcher.key`` is the string form of the compiled expression,
``/<source>/<flags>`` where ``<flags>`` lists the non default flags as letters
(``i`` ignorecase, ``m`` multiline, ``s`` dotall, ``x`` verbose, ``a`` ascii,
``L`` locale). Two matchers with the same key are interchangeable.

Matching
--------
``Matcher.match(candidate)`` returns ``None`` when the candidate is rejected
and a tuple of the captured substrings (possibly empty) otherwise. Optional
groups that did not participate yield ``None`` in their slot.

Errors
------
Compilation failures raise :class:`PatternError` (a ``ValueError``) naming the
offending pattern; nothing is deferred to match time.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Tuple

__all__ = ["Matcher", "PatternError", "compile_pattern", "CATCH_ALL"]

CATCH_ALL = "^.+$"

_ESCAPE = re.compile(r"[-\[\]{}()+?.,\\^$|#\s]")
_PLACEHOLDER = re.compile(r":(\w+)|\*(\w*)", re.ASCII)
_NAMED_GROUP = "([^/]+)"
_SPLAT_GROUP = "(.*?)"
_DEFAULT_FLAGS = re.compile("").flags

_FLAG_LETTERS = (
    (re.ASCII, "a"),
    (re.IGNORECASE, "i"),
    (re.LOCALE, "L"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.VERBOSE, "x"),
)


class PatternError(ValueError):
    """Raised when a route pattern cannot be compiled."""


class Matcher:
    """Compiled, anchored matcher for a single route."""

    __slots__ = ("regex", "key", "param_names", "source", "anchored")

    def __init__(
        self,
        regex: re.Pattern,
        *,
        param_names: Tuple[Optional[str], ...] = (),
        source: Any = None,
        anchored: bool = False,
    ) -> None:
        self.regex = regex
        self.key = _canonical_key(regex)
        self.param_names = param_names
        self.source = source
        self.anchored = anchored

    def match(self, candidate: str) -> Optional[Tuple[Optional[str], ...]]:
        # ``$`` also matches before a trailing newline, so anchored
        # patterns must consume the whole hash through fullmatch.
        if self.anchored:
            found = self.regex.fullmatch(candidate)
        else:
            found = self.regex.search(candidate)
        if found is None:
            return None
        return found.groups()

    def __str__(self) -> str:
        return self.key

    def __repr__(self) -> str:
        return f"<Matcher {self.key}>"


def compile_pattern(pattern: Any) -> Matcher:
    """Build a :class:`Matcher` from a pattern string or compiled regex."""
    if isinstance(pattern, re.Pattern):
        if not isinstance(pattern.pattern, str):
            raise TypeError("Route regex must be compiled from a str pattern")
        names = {index: name for name, index in pattern.groupindex.items()}
        param_names = tuple(names.get(i) for i in range(1, pattern.groups + 1))
        return Matcher(pattern, param_names=param_names, source=pattern)

    if not pattern:
        return Matcher(re.compile(CATCH_ALL), source=pattern, anchored=True)

    text = str(pattern)
    param_names = []

    def substitute(token: re.Match) -> str:
        named, splat = token.group(1), token.group(2)
        if named is not None:
            param_names.append(named)
            return _NAMED_GROUP
        param_names.append(splat or None)
        return _SPLAT_GROUP

    escaped = _ESCAPE.sub(lambda found: "\\" + found.group(0), text)
    expression = "^" + _PLACEHOLDER.sub(substitute, escaped) + "$"
    try:
        regex = re.compile(expression)
    except re.error as exc:
        raise PatternError(f"Cannot compile route pattern {text!r}: {exc}") from exc
    return Matcher(regex, param_names=tuple(param_names), source=pattern, anchored=True)


def _canonical_key(regex: re.Pattern) -> str:
    extra = regex.flags & ~_DEFAULT_FLAGS
    letters = "".join(letter for flag, letter in _FLAG_LETTERS if extra & flag)
    return f"/{regex.pattern}/{letters}"
