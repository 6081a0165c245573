"""Attaching context descriptors to test types and resolving them.

Declarations are recorded on the test class (or test function) itself. When a
hierarchy is resolved, the class MRO is walked from the most basic class to the
test class, then any function owners; declarations sharing a name are merged
into a single level and levels keep the order in which their name first
appeared.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING, TypeVar

from storefront_testkit.errors import (
    ConflictingContextMarkersError,
    MissingContextConfigurationError,
)

from .descriptor import DEFAULT_RESOURCE_BASE_PATH, ContextDescriptor, ContextHierarchy

if TYPE_CHECKING:
    from injector import Module

    from .initializers import ContextInitializer

DECLARATIONS_ATTR = "__context_declarations__"

T = TypeVar("T")


def declare(target: T, descriptor: ContextDescriptor) -> T:
    """Record `descriptor` on a test class or function and return it unchanged."""
    if isinstance(target, type):
        # only this class's own declarations; bases are picked up through the MRO
        own = target.__dict__.get(DECLARATIONS_ATTR, ())
    else:
        own = getattr(target, DECLARATIONS_ATTR, ())
    setattr(target, DECLARATIONS_ATTR, (*own, descriptor))
    return target


def declarations_of(owner: object) -> Iterator[ContextDescriptor]:
    if isinstance(owner, type):
        for klass in reversed(owner.__mro__):
            yield from klass.__dict__.get(DECLARATIONS_ATTR, ())
    else:
        yield from getattr(owner, DECLARATIONS_ATTR, ())


def _owner_label(owners: Iterable[object]) -> str:
    return " / ".join(getattr(o, "__qualname__", repr(o)) for o in owners)


def has_context_configuration(*owners: object) -> bool:
    """Return True if any owner carries a context declaration."""
    return any(next(declarations_of(owner), None) is not None for owner in owners)


def resolve_hierarchy(*owners: object) -> ContextHierarchy:
    """Resolve the context hierarchy declared on `owners`.

    Args:
        *owners: Test class and/or test function, outermost first.

    Raises:
        MissingContextConfigurationError: If nothing is declared.
        ConflictingContextMarkersError: If the levels imply more than one
            transformation mode (e.g. site and admin markers on one test type).
    """
    label = _owner_label(owners)
    levels: dict[str, ContextDescriptor] = {}
    for owner in owners:
        for declaration in declarations_of(owner):
            if (current := levels.get(declaration.name)) is None:
                levels[declaration.name] = declaration
            else:
                levels[declaration.name] = current.merge(declaration)
    if not levels:
        raise MissingContextConfigurationError(label)

    hierarchy = ContextHierarchy(tuple(levels.values()))
    if len(modes := hierarchy.transformation_modes) > 1:
        raise ConflictingContextMarkersError(label, (str(m) for m in modes))
    return hierarchy


def context_configuration(  # pylint: disable=too-many-arguments
    *,
    name: str,
    classes: Iterable[type[Module]] = (),
    initializers: Iterable[type[ContextInitializer]] = (),
    profiles: Iterable[str] = (),
    web_scoped: bool = False,
    resource_base_path: str = DEFAULT_RESOURCE_BASE_PATH,
    inherit: bool = True,
) -> Callable[[T], T]:
    """Declare (or extend) the hierarchy level `name` on a test type.

    Extending the site context of a marked base class:

    ```py
    @context_configuration(name="siteRoot", classes=[FakePaymentConfiguration])
    class TestCheckout(BaseSiteTest): ...
    ```

    Using a name the base class does not declare adds a child level.
    """
    descriptor = ContextDescriptor(
        name=name,
        classes=tuple(classes),
        initializers=tuple(initializers),
        active_profiles=frozenset(profiles),
        web_scoped=web_scoped,
        resource_base_path=resource_base_path,
        inherit=inherit,
    )

    def decorator(target: T) -> T:
        return declare(target, descriptor)

    return decorator
