"""Integration-test markers for the site and admin application contexts.

`site_integration_test` is a convenient marker for integration tests dealing
with the site (storefront) application context. It can be attached to any kind
of test type: a pytest class, a plain test function or a ``unittest.TestCase``.

Customization of the context it creates follows the same rules as
`context_configuration`; subclasses should target the ``"siteRoot"`` context
name to extend it.

Example usage:

pytest:

```py
@site_integration_test
class TestStorefrontSettings:
    settings: StorefrontSettings = autowired()

    def test_settings_injected(self):
        assert self.settings is not None
```

unittest:

```py
@site_integration_test
class StorefrontSettingsTest(unittest.TestCase):
    settings: StorefrontSettings = autowired()

    def test_settings_injected(self):
        self.assertIsNotNone(self.settings)
```

A test type cannot carry both `site_integration_test` and
`admin_integration_test`: the two contexts transform classes differently while
they bootstrap. For the same reason site and admin tests have to run in
separate processes, e.g. by keeping them in ``sitejvm/`` and ``adminjvm/``
directories, or by selecting them with ``-m site_integration`` and
``-m admin_integration`` in separate pytest invocations.
"""

from __future__ import annotations

from typing import TypeVar

import pytest

from storefront_testkit.configuration import (
    MBEANS_DISABLED,
    AdminTestContextConfiguration,
    SiteTestContextConfiguration,
)
from storefront_testkit.context.declarations import declare
from storefront_testkit.context.descriptor import ContextDescriptor
from storefront_testkit.context.initializers import EnvironmentConfigurer
from storefront_testkit.context.transformation import TransformationMode

T = TypeVar("T")

SITE_ROOT = "siteRoot"
ADMIN_ROOT = "adminRoot"

SITE_INTEGRATION_MARK = "site_integration"
ADMIN_INTEGRATION_MARK = "admin_integration"

# pylint: disable=too-few-public-methods


class IntegrationTestMarker:
    """A fixed, zero-argument marker attaching one context descriptor.

    Applying the marker records the descriptor on the test type and applies the
    pytest mark `mark_name`, so marked tests can be selected with ``-m``.
    """

    def __init__(self, mark_name: str, descriptor: ContextDescriptor) -> None:
        self.mark_name = mark_name
        self.descriptor = descriptor

    def __repr__(self) -> str:
        return f"<IntegrationTestMarker {self.mark_name} ({self.descriptor.name})>"

    def __call__(self, target: T) -> T:
        declare(target, self.descriptor)
        return getattr(pytest.mark, self.mark_name)(target)


SITE_CONTEXT = ContextDescriptor(
    name=SITE_ROOT,
    initializers=(EnvironmentConfigurer,),
    classes=(SiteTestContextConfiguration,),
    web_scoped=True,
    active_profiles=frozenset({MBEANS_DISABLED}),
    transformation_mode=TransformationMode.SITE,
)

ADMIN_CONTEXT = ContextDescriptor(
    name=ADMIN_ROOT,
    initializers=(EnvironmentConfigurer,),
    classes=(AdminTestContextConfiguration,),
    web_scoped=True,
    active_profiles=frozenset({MBEANS_DISABLED}),
    transformation_mode=TransformationMode.ADMIN,
)

site_integration_test = IntegrationTestMarker(SITE_INTEGRATION_MARK, SITE_CONTEXT)
admin_integration_test = IntegrationTestMarker(ADMIN_INTEGRATION_MARK, ADMIN_CONTEXT)
