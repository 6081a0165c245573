"""Immutable descriptions of test application contexts.

A `ContextDescriptor` describes one level of a context hierarchy: which
configuration classes populate it, which initializers run before it is
refreshed, which profiles are active and whether it is web scoped. The ordered
levels resolved for a test form a `ContextHierarchy`.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, TypeAlias

from storefront_testkit.errors import (
    ConflictingContextMarkersError,
    ContextConfigurationError,
)

from .environment import validate_profile_name
from .transformation import TransformationMode

if TYPE_CHECKING:
    from injector import Module

    from .initializers import ContextInitializer

DEFAULT_RESOURCE_BASE_PATH = "src/main/webapp"

LevelKey: TypeAlias = tuple[Any, ...]
CacheKey: TypeAlias = tuple[LevelKey, ...]


def _unique(items: Iterable[Any]) -> tuple[Any, ...]:
    return tuple(dict.fromkeys(items))


@dataclass(frozen=True)
class ContextDescriptor:
    """Configuration for one named level of a test context hierarchy.

    Attributes:
        name: The hierarchy node this descriptor configures (e.g. ``"siteRoot"``).
        classes: Configuration classes (``injector.Module`` subclasses) defining
            the components of the context, installed in order.
        initializers: `ContextInitializer` classes run before the context is
            refreshed.
        active_profiles: Profiles to activate in the context's environment.
        web_scoped: Whether the context provides web-request scope.
        resource_base_path: Root of web resources for web-scoped contexts.
        transformation_mode: Class transformation mode implied by bootstrapping
            this level, if any.
        inherit: When a subclass declares a level with the same name, whether its
            declaration extends (True) or replaces (False) the inherited one.
    """

    name: str
    classes: tuple[type[Module], ...] = ()
    initializers: tuple[type[ContextInitializer], ...] = ()
    active_profiles: frozenset[str] = field(default_factory=frozenset)
    web_scoped: bool = False
    resource_base_path: str = DEFAULT_RESOURCE_BASE_PATH
    transformation_mode: TransformationMode | None = None
    inherit: bool = True

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ContextConfigurationError("Context descriptors need a non-empty name.")
        # accept any iterable but store hashable, deduplicated values
        object.__setattr__(self, "classes", _unique(self.classes))
        object.__setattr__(self, "initializers", _unique(self.initializers))
        object.__setattr__(
            self,
            "active_profiles",
            frozenset(validate_profile_name(p) for p in self.active_profiles),
        )

    def merge(self, other: ContextDescriptor) -> ContextDescriptor:
        """Combine this descriptor with a same-named declaration from a subclass.

        Args:
            other: The subclass declaration; it wins on conflicts.

        Returns:
            The merged descriptor. When `other` does not inherit it replaces this
            descriptor, keeping only the inherited transformation mode.

        Raises:
            ContextConfigurationError: If the names differ.
            ConflictingContextMarkersError: If both carry different transformation modes.
        """
        if other.name != self.name:
            raise ContextConfigurationError(
                f"Cannot merge context '{other.name}' into '{self.name}'."
            )
        modes = {m for m in (self.transformation_mode, other.transformation_mode) if m}
        if len(modes) > 1:
            raise ConflictingContextMarkersError(f"Context '{self.name}'", modes)
        if not other.inherit:
            return replace(
                other, transformation_mode=other.transformation_mode or self.transformation_mode
            )
        return ContextDescriptor(
            name=self.name,
            classes=self.classes + other.classes,
            initializers=self.initializers + other.initializers,
            active_profiles=self.active_profiles | other.active_profiles,
            web_scoped=self.web_scoped or other.web_scoped,
            resource_base_path=(
                other.resource_base_path if other.web_scoped else self.resource_base_path
            ),
            transformation_mode=other.transformation_mode or self.transformation_mode,
            inherit=self.inherit,
        )

    @property
    def cache_key(self) -> LevelKey:
        """Key identifying interchangeable contexts for this level.

        The level name is not part of the key: two levels with identical
        configuration share a context.
        """
        return (
            self.classes,
            self.initializers,
            tuple(sorted(self.active_profiles)),
            self.web_scoped,
            self.resource_base_path if self.web_scoped else None,
            self.transformation_mode,
        )


@dataclass(frozen=True)
class ContextHierarchy:
    """Ordered context levels resolved for a test, root first."""

    levels: tuple[ContextDescriptor, ...]

    def __post_init__(self) -> None:
        if not self.levels:
            raise ContextConfigurationError("A context hierarchy needs at least one level.")

    def __len__(self) -> int:
        return len(self.levels)

    @property
    def root(self) -> ContextDescriptor:
        return self.levels[0]

    @property
    def leaf(self) -> ContextDescriptor:
        return self.levels[-1]

    @property
    def transformation_modes(self) -> frozenset[TransformationMode]:
        return frozenset(
            level.transformation_mode for level in self.levels if level.transformation_mode
        )

    def cache_key(self, index: int = -1) -> CacheKey:
        """Return the cache key of the level at `index`, including its ancestry."""
        if index < 0:
            index += len(self.levels)
        return tuple(level.cache_key for level in self.levels[: index + 1])
