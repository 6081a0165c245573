"""Field injection into test instances.

Example:
    ```py
    @site_integration_test
    class TestCatalog:
        settings: StorefrontSettings = autowired()

        def test_locale(self):
            assert self.settings.default_locale == "en_US"
    ```
"""

from __future__ import annotations

import logging
import typing
from typing import Any

from storefront_testkit.errors import ComponentNotInjectedError, ContextConfigurationError

from .application_context import ApplicationContext

logger = logging.getLogger(__name__)


class InjectionPoint:
    """Class attribute marking a component to inject into each test instance.

    The component type is `interface` when given, otherwise the attribute's
    annotation. Injected values are stored on the instance, shadowing this
    (non-data) descriptor.
    """

    def __init__(self, interface: type | None = None) -> None:
        self.interface = interface
        self.name: str | None = None
        self.owner: type | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.owner = owner
        self.name = name

    def __get__(self, instance: object, owner: type | None = None) -> Any:
        if instance is None:
            return self
        raise ComponentNotInjectedError(str(self.name))

    def resolve_interface(self) -> type:
        """Return the component type to look up.

        Raises:
            ContextConfigurationError: If there is neither an explicit type nor an annotation.
        """
        if self.interface is not None:
            return self.interface
        if self.owner is None or self.name is None:
            raise ContextConfigurationError("autowired() must be assigned to a class attribute.")
        try:
            return typing.get_type_hints(self.owner)[self.name]
        except KeyError as e:
            raise ContextConfigurationError(
                f"{self.owner.__qualname__}.{self.name} needs an annotation or an explicit type."
            ) from e


def autowired(interface: type | None = None) -> Any:
    """Declare a test attribute to be injected from the test's application context."""
    return InjectionPoint(interface)


def injection_points(test_type: type) -> dict[str, InjectionPoint]:
    """Collect injection points declared on `test_type` and its bases."""
    points: dict[str, InjectionPoint] = {}
    for klass in reversed(test_type.__mro__):
        for name, value in vars(klass).items():
            if isinstance(value, InjectionPoint):
                points[name] = value
    return points


def inject_components(instance: object, context: ApplicationContext) -> None:
    """Set every injection point of `instance` to its component from `context`.

    Raises:
        NoSuchComponentError: If a component is not defined in the context.
    """
    for name, point in injection_points(type(instance)).items():
        setattr(instance, name, context.get(point.resolve_interface()))
        logger.debug("Injected %s into %s", name, type(instance).__qualname__)
