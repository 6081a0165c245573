"""Configuration of the admin test context."""

from __future__ import annotations

from dataclasses import dataclass

from injector import Module, provider, singleton

from storefront_testkit.context.conditions import imports
from storefront_testkit.context.environment import Environment

from .database import DatabaseConfiguration
from .management import ManagementConfiguration

DEFAULT_SESSION_TIMEOUT = 1800


@dataclass(frozen=True)
class AdminSettings:
    """Admin-facing settings read from the ``admin.*`` properties."""

    base_url: str
    session_timeout: int


@imports(DatabaseConfiguration, ManagementConfiguration)
class AdminTestContextConfiguration(Module):
    """Components available to admin integration tests."""

    @singleton
    @provider
    def admin_settings(self, environment: Environment) -> AdminSettings:
        return AdminSettings(
            base_url=environment.require_property("admin.base_url"),
            session_timeout=int(
                environment.get_property("admin.session_timeout", DEFAULT_SESSION_TIMEOUT)
            ),
        )
