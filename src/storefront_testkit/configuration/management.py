"""Management components, registered unless ``mbeansdisabled`` is active.

Running several contexts in one test process would otherwise register the same
management names repeatedly, which is why the integration markers activate the
``mbeansdisabled`` profile.
"""

from __future__ import annotations

import logging

from injector import Module, provider, singleton

from storefront_testkit.context.application_context import ApplicationContext
from storefront_testkit.context.conditions import profile
from storefront_testkit.context.environment import Environment

logger = logging.getLogger(__name__)

MBEANS_DISABLED = "mbeansdisabled"
MANAGEMENT_DOMAIN_KEY = "management.domain"
DEFAULT_MANAGEMENT_DOMAIN = "storefront"


class DuplicateManagedResourceError(LookupError):
    """Raised when a management name is registered twice."""

    def __init__(self, object_name: str) -> None:
        super().__init__(f"Managed resource {object_name} is already registered")
        self.object_name = object_name


class ManagementExporter:
    """Registry exposing components under ``<domain>:name=<name>`` object names."""

    def __init__(self, domain: str = DEFAULT_MANAGEMENT_DOMAIN) -> None:
        self.domain = domain
        self._resources: dict[str, object] = {}

    def object_name(self, name: str) -> str:
        return f"{self.domain}:name={name}"

    def register(self, name: str, resource: object) -> str:
        """Register `resource` and return its object name.

        Raises:
            DuplicateManagedResourceError: If the name is already registered.
        """
        object_name = self.object_name(name)
        if object_name in self._resources:
            raise DuplicateManagedResourceError(object_name)
        self._resources[object_name] = resource
        logger.debug("Registered managed resource %s", object_name)
        return object_name

    @property
    def object_names(self) -> list[str]:
        return sorted(self._resources)

    def unregister_all(self) -> None:
        self._resources.clear()


@profile(f"!{MBEANS_DISABLED}")
class ManagementConfiguration(Module):
    """Provides the `ManagementExporter`."""

    @singleton
    @provider
    def exporter(self, environment: Environment, context: ApplicationContext) -> ManagementExporter:
        exporter = ManagementExporter(
            environment.get_property(MANAGEMENT_DOMAIN_KEY, DEFAULT_MANAGEMENT_DOMAIN)
        )
        context.on_close(exporter.unregister_all)
        return exporter
