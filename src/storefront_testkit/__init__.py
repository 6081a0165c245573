"""storefront-testkit

Dependency-injection test harness for the storefront and admin application
contexts of an e-commerce platform. Mark a test type with
`site_integration_test` (or `admin_integration_test`) and the pytest plugin
builds, caches and injects the matching application context.
"""

from storefront_testkit.context.cache import HierarchyMode
from storefront_testkit.context.declarations import context_configuration
from storefront_testkit.context.injection import autowired
from storefront_testkit.markers import admin_integration_test, site_integration_test

__all__ = [
    "HierarchyMode",
    "__version__",
    "admin_integration_test",
    "autowired",
    "context_configuration",
    "site_integration_test",
]
__version__ = "0.1.0"
