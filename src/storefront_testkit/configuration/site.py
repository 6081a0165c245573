"""Configuration of the storefront ("site") test context."""

from __future__ import annotations

from dataclasses import dataclass

from injector import Module, provider, singleton

from storefront_testkit.context.conditions import imports
from storefront_testkit.context.environment import Environment

from .database import DatabaseConfiguration
from .management import ManagementConfiguration


@dataclass(frozen=True)
class StorefrontSettings:
    """Site-facing settings read from the ``site.*`` properties."""

    base_url: str
    default_locale: str
    default_currency: str


@imports(DatabaseConfiguration, ManagementConfiguration)
class SiteTestContextConfiguration(Module):
    """Components available to site integration tests."""

    @singleton
    @provider
    def storefront_settings(self, environment: Environment) -> StorefrontSettings:
        return StorefrontSettings(
            base_url=environment.require_property("site.base_url"),
            default_locale=environment.get_property("site.default_locale", "en_US"),
            default_currency=environment.get_property("site.default_currency", "USD"),
        )
