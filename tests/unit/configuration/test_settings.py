"""Unit tests for the site and admin configuration classes."""

import pytest
from sqlalchemy.engine import Engine

from storefront_testkit.configuration import (
    AdminSettings,
    AdminTestContextConfiguration,
    ManagementExporter,
    SiteTestContextConfiguration,
    StorefrontSettings,
)
from storefront_testkit.context.application_context import ApplicationContext
from storefront_testkit.context.conditions import expand_configuration_classes
from storefront_testkit.context.environment import Environment, PropertySource
from storefront_testkit.errors import MissingPropertyError

# pylint: disable=magic-value-comparison

PROPERTIES = {
    "database.url": "sqlite://",
    "site.base_url": "http://shop.test",
    "admin.base_url": "http://shop.test/admin",
}


def load(configuration, properties=None, profiles=()) -> ApplicationContext:
    env = Environment(
        [PropertySource("test", PROPERTIES if properties is None else properties)],
        active_profiles=profiles,
    )
    context = ApplicationContext("root", env)
    context.refresh(expand_configuration_classes([configuration], env))
    return context


def test_storefront_settings_defaults():
    """Locale and currency fall back to en_US and USD."""
    context = load(SiteTestContextConfiguration)
    assert context.get(StorefrontSettings) == StorefrontSettings(
        base_url="http://shop.test", default_locale="en_US", default_currency="USD"
    )
    context.close()


def test_site_configuration_imports_database_and_management():
    """The site configuration brings the engine and the exporter along."""
    context = load(SiteTestContextConfiguration)
    assert context.contains(Engine)
    assert context.contains(ManagementExporter)
    context.close()


def test_site_configuration_with_mbeans_disabled():
    """With mbeansdisabled the exporter is not registered."""
    context = load(SiteTestContextConfiguration, profiles=["mbeansdisabled"])
    assert context.contains(Engine)
    assert not context.contains(ManagementExporter)
    context.close()


def test_site_base_url_required():
    """site.base_url has no default."""
    context = load(SiteTestContextConfiguration, properties={"database.url": "sqlite://"})
    with pytest.raises(MissingPropertyError, match="site.base_url"):
        context.get(StorefrontSettings)


def test_admin_settings():
    """The session timeout is read as an int, defaulting to 1800."""
    context = load(AdminTestContextConfiguration)
    assert context.get(AdminSettings) == AdminSettings("http://shop.test/admin", 1800)
    context.close()

    context = load(
        AdminTestContextConfiguration,
        properties={**PROPERTIES, "admin.session_timeout": "600"},
    )
    assert context.get(AdminSettings).session_timeout == 600
    context.close()
