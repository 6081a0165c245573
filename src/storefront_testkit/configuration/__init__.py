"""Configuration classes for the site and admin test contexts.

Configuration classes are ``injector.Module`` subclasses; the test-context
markers reference them by class. `SiteTestContextConfiguration` and
`AdminTestContextConfiguration` both import the shared database and management
configurations.
"""

from .admin import AdminSettings, AdminTestContextConfiguration
from .database import DatabaseConfiguration
from .management import MBEANS_DISABLED, ManagementConfiguration, ManagementExporter
from .site import SiteTestContextConfiguration, StorefrontSettings

__all__ = [
    "MBEANS_DISABLED",
    "AdminSettings",
    "AdminTestContextConfiguration",
    "DatabaseConfiguration",
    "ManagementConfiguration",
    "ManagementExporter",
    "SiteTestContextConfiguration",
    "StorefrontSettings",
]
