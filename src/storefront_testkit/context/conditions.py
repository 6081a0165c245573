"""Profile conditions and imports on configuration classes.

Configuration classes are ``injector.Module`` subclasses. Two decorators add
metadata the loader honours when it expands the classes named by a descriptor:

* `profile` registers the class only when the environment accepts one of the
  given profile expressions;
* `imports` pulls other configuration classes in ahead of the class itself, so
  the importing class can override their bindings.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TypeVar

from injector import Module

from storefront_testkit.errors import ContextConfigurationError

from .environment import Environment

logger = logging.getLogger(__name__)

PROFILES_ATTR = "__profiles__"
IMPORTS_ATTR = "__imports__"

M = TypeVar("M", bound=type[Module])


def profile(*expressions: str) -> Callable[[M], M]:
    """Register the decorated configuration class only for matching profiles.

    Example:
        ```py
        @profile("!mbeansdisabled")
        class ManagementConfiguration(Module): ...
        ```
    """
    if not expressions:
        raise ContextConfigurationError("profile() needs at least one expression.")

    def decorator(cls: M) -> M:
        setattr(cls, PROFILES_ATTR, tuple(expressions))
        return cls

    return decorator


def imports(*classes: type[Module]) -> Callable[[M], M]:
    """Install `classes` whenever the decorated configuration class is installed."""

    def decorator(cls: M) -> M:
        setattr(cls, IMPORTS_ATTR, tuple(classes))
        return cls

    return decorator


def _check_configuration_class(cls: object) -> type[Module]:
    if not (isinstance(cls, type) and issubclass(cls, Module)):
        raise ContextConfigurationError(
            f"{cls!r} is not a configuration class (an injector.Module subclass)."
        )
    return cls


def expand_configuration_classes(
    classes: Iterable[type[Module]], environment: Environment
) -> list[type[Module]]:
    """Return the configuration classes to install, in installation order.

    Imports come before the importing class, each class appears once (at its
    first position) and classes whose profile condition does not match the
    environment are skipped together with their imports.

    Raises:
        ContextConfigurationError: If an entry is not an ``injector.Module`` subclass.
    """
    expanded: list[type[Module]] = []
    seen: set[type[Module]] = set()

    def visit(cls: type[Module]) -> None:
        cls = _check_configuration_class(cls)
        if cls in seen:
            return
        seen.add(cls)
        # only the class's own condition applies, not one inherited from a base
        expressions = cls.__dict__.get(PROFILES_ATTR)
        if expressions and not environment.accepts_profiles(*expressions):
            logger.debug(
                "Skipping %s: profiles %s not accepted (active: %s)",
                cls.__qualname__,
                expressions,
                sorted(environment.active_profiles),
            )
            return
        for imported in cls.__dict__.get(IMPORTS_ATTR, ()):
            visit(imported)
        expanded.append(cls)

    for cls in classes:
        visit(cls)
    return expanded
