"""Property sources and profiles for application contexts.

An `Environment` is an ordered stack of named property sources (highest
precedence first) plus the set of active profiles. Profile expressions are used
by configuration classes to register conditionally:

* ``name`` matches when the profile is active;
* ``!name`` matches when it is not;
* ``a & b`` and ``a | b`` combine terms (``&`` binds tighter, no parentheses).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from storefront_testkit.errors import ContextConfigurationError, MissingPropertyError

DEFAULT_PROFILE = "default"

_MISSING = object()


@dataclass(frozen=True)
class PropertySource:
    """A named, read-only mapping of dotted property keys to values."""

    name: str
    properties: Mapping[str, Any] = field(default_factory=dict)


def flatten_properties(mapping: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested tables into dotted keys.

    Example:
        ```py
        flatten_properties({"database": {"url": "sqlite://"}})
        # {"database.url": "sqlite://"}
        ```
    """
    flat: dict[str, Any] = {}
    for key, value in mapping.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_properties(value, dotted))
        else:
            flat[dotted] = value
    return flat


def validate_profile_name(name: str) -> str:
    """Return a stripped profile name, rejecting empty and negated names."""
    stripped = name.strip()
    if not stripped:
        raise ContextConfigurationError("Profile names must not be empty.")
    if stripped.startswith("!"):
        raise ContextConfigurationError(
            f"Invalid profile name '{name}': negation is only valid in expressions."
        )
    return stripped


class Environment:
    """Property sources and active profiles of one application context."""

    def __init__(
        self,
        property_sources: Iterable[PropertySource] = (),
        active_profiles: Iterable[str] = (),
        default_profiles: Iterable[str] = (DEFAULT_PROFILE,),
    ) -> None:
        self._sources: list[PropertySource] = list(property_sources)
        self._active: set[str] = {validate_profile_name(p) for p in active_profiles}
        self._defaults = frozenset(validate_profile_name(p) for p in default_profiles)

    def __repr__(self) -> str:
        return (
            f"Environment(sources={[s.name for s in self._sources]}, "
            f"profiles={sorted(self._active)})"
        )

    # --- property sources ---

    @property
    def property_sources(self) -> tuple[PropertySource, ...]:
        """Property sources, highest precedence first."""
        return tuple(self._sources)

    def add_first(self, source: PropertySource) -> None:
        """Add a source with the highest precedence."""
        self._sources.insert(0, source)

    def add_last(self, source: PropertySource) -> None:
        """Add a source with the lowest precedence."""
        self._sources.append(source)

    def contains_property(self, key: str) -> bool:
        return any(key in source.properties for source in self._sources)

    def get_property(self, key: str, default: Any = None) -> Any:
        """Return the value of `key` from the highest-precedence source defining it."""
        for source in self._sources:
            if (value := source.properties.get(key, _MISSING)) is not _MISSING:
                return value
        return default

    def require_property(self, key: str) -> Any:
        """Return the value of `key`.

        Raises:
            MissingPropertyError: If no source defines `key`.
        """
        if (value := self.get_property(key, _MISSING)) is _MISSING:
            raise MissingPropertyError(key)
        return value

    # --- profiles ---

    @property
    def active_profiles(self) -> frozenset[str]:
        return frozenset(self._active)

    @property
    def default_profiles(self) -> frozenset[str]:
        return self._defaults

    def activate_profiles(self, *names: str) -> None:
        self._active.update(validate_profile_name(n) for n in names)

    def _is_active(self, name: str) -> bool:
        # default profiles only apply while nothing was activated explicitly
        effective = self._active or self._defaults
        return validate_profile_name(name) in effective

    def _matches_term(self, term: str) -> bool:
        term = term.strip()
        if term.startswith("!"):
            return not self._is_active(term[1:])
        return self._is_active(term)

    def _matches(self, expression: str) -> bool:
        return any(
            all(self._matches_term(term) for term in alternative.split("&"))
            for alternative in expression.split("|")
        )

    def accepts_profiles(self, *expressions: str) -> bool:
        """Return True when any of the profile expressions matches."""
        if not expressions:
            raise ContextConfigurationError("At least one profile expression is required.")
        return any(self._matches(expression) for expression in expressions)

    def derive(self) -> Environment:
        """Return a copy for a child context: same sources, profiles and defaults."""
        return Environment(self._sources, self._active, self._defaults)
