"""
Variable scope of a render call.

A Scope maps names to plain values and may have a parent. Child scopes are
created for `for` iterations and for `include ... with {...}`; they shadow
the parent without mutating it.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from .types import UNDEFINED, is_list, is_mapping


class Scope:
    """
    Read-only chain of variable mappings.

    Lookups never raise: a missing name or path segment yields UNDEFINED.
    """

    __slots__ = ("_vars", "_parent")

    def __init__(self, variables: Optional[Mapping[str, Any]] = None, parent: Optional[Scope] = None):
        self._vars: Mapping[str, Any] = dict(variables or {})
        self._parent = parent

    @property
    def parent(self) -> Optional[Scope]:
        return self._parent

    def child(self, variables: Mapping[str, Any]) -> Scope:
        """Creates a scope whose own variables take precedence over this one."""
        return Scope(variables, parent=self)

    def get(self, name: str) -> Any:
        """Returns the value bound to a top-level name, or UNDEFINED."""
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope._vars:
                return scope._vars[name]
            scope = scope._parent
        return UNDEFINED

    def lookup(self, segments: Iterable[Any]) -> Any:
        """
        Resolves a property path (names and integer indexes).

        The first segment is a top-level variable name; subsequent segments
        index into mappings (by key) and lists (by non-negative position).
        """
        iterator = iter(segments)
        try:
            first = next(iterator)
        except StopIteration:
            return UNDEFINED

        value = self.get(str(first))
        for segment in iterator:
            value = _step(value, segment)
            if value is UNDEFINED:
                break
        return value

    def flatten(self) -> dict:
        """Returns all visible bindings, nearest scope winning."""
        chain = []
        scope: Optional[Scope] = self
        while scope is not None:
            chain.append(scope._vars)
            scope = scope._parent
        result: dict = {}
        for variables in reversed(chain):
            result.update(variables)
        return result

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not UNDEFINED

    def __repr__(self) -> str:
        return f"Scope({self.flatten()!r})"


def _step(value: Any, segment: Any) -> Any:
    if is_mapping(value):
        if segment in value:
            return value[segment]
        # items.0 on a mapping with string keys
        key = str(segment)
        if key in value:
            return value[key]
        return UNDEFINED

    if is_list(value):
        index = segment
        if isinstance(index, str):
            if not index.isdigit():
                return UNDEFINED
            index = int(index)
        if isinstance(index, bool) or not isinstance(index, int):
            return UNDEFINED
        if 0 <= index < len(value):
            return value[index]
        return UNDEFINED

    return UNDEFINED


__all__ = ["Scope"]
