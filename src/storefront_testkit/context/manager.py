"""Framework-agnostic driver of a test's context lifecycle."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager

from .application_context import ApplicationContext
from .cache import ContextCache, HierarchyMode
from .declarations import resolve_hierarchy
from .injection import inject_components

logger = logging.getLogger(__name__)


class TestContextManager:
    """Resolve, load and apply the context configured on a test type.

    The pytest plugin drives one manager per test; other runners can use it
    directly:

    ```py
    manager = TestContextManager(MyTest, cache=cache)
    with manager.test_execution(instance):
        instance.test_something()
    ```

    Args:
        *owners: The test class and/or test function carrying context declarations.
        cache: Cache to take contexts from.

    Raises:
        MissingContextConfigurationError: If no owner declares a context.
        ConflictingContextMarkersError: If the site and admin markers are combined.
    """

    __test__ = False  # not a test class, despite the name

    def __init__(self, *owners: object, cache: ContextCache) -> None:
        self.owners = owners
        self.cache = cache
        self.hierarchy = resolve_hierarchy(*owners)

    def get_context(self) -> ApplicationContext:
        """Return the (possibly cached) leaf context of the test's hierarchy."""
        return self.cache.get_or_load(self.hierarchy)

    def prepare_test_instance(self, instance: object) -> None:
        """Inject components into the `autowired` attributes of `instance`."""
        inject_components(instance, self.get_context())

    @contextmanager
    def test_execution(
        self,
        instance: object | None = None,
        context: ApplicationContext | None = None,
    ) -> Iterator[ApplicationContext]:
        """Run one test: load the context, start a fresh request, inject.

        Web-scoped contexts get a new request per test, so request-scoped
        components never carry state from one test to the next.

        Args:
            instance: Test instance to inject, if any.
            context: Context already obtained from `get_context`; looked up in
                the cache when omitted.
        """
        if context is None:
            context = self.get_context()
        with ExitStack() as stack:
            if context.web_scoped:
                stack.enter_context(context.request())
            if instance is not None:
                inject_components(instance, context)
            yield context

    def mark_dirty(self, hierarchy_mode: HierarchyMode = HierarchyMode.EXHAUSTIVE) -> None:
        """Evict this test's contexts so the next test gets fresh ones."""
        logger.debug("Marking context %s dirty (%s)", self.hierarchy.leaf.name, hierarchy_mode)
        self.cache.mark_dirty(self.hierarchy, HierarchyMode(hierarchy_mode))
