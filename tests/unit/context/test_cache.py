"""Unit tests for ContextCache."""

import pytest

from storefront_testkit.context.cache import ContextCache, HierarchyMode
from storefront_testkit.context.descriptor import ContextDescriptor, ContextHierarchy
from storefront_testkit.context.loader import ContextLoader
from storefront_testkit.errors import (
    ContextBootstrapError,
    ContextLoadThresholdExceededError,
)
from tests.fixtures.contexts import (
    EVENTS,
    CartConfiguration,
    FailingInitializer,
    Greeting,
    GreetingConfiguration,
    GreetingInitializer,
)

# pylint: disable=magic-value-comparison

ROOT = ContextDescriptor(
    name="siteRoot", classes=(GreetingConfiguration,), initializers=(GreetingInitializer,)
)
CHILD = ContextDescriptor(name="checkout", classes=(CartConfiguration,), web_scoped=True)
OTHER_CHILD = ContextDescriptor(name="account", web_scoped=True)


def single(descriptor: ContextDescriptor) -> ContextHierarchy:
    return ContextHierarchy((descriptor,))


def test_identical_configuration_is_loaded_once(cache: ContextCache):
    """Hierarchies with equal keys share one context."""
    first = cache.get_or_load(single(ROOT))
    renamed = ContextDescriptor(
        name="otherRoot", classes=ROOT.classes, initializers=ROOT.initializers
    )
    assert cache.get_or_load(single(renamed)) is first
    assert EVENTS.count("initializer:greeting") == 1
    assert cache.statistics.misses == 1
    assert cache.statistics.hits == 1


def test_different_configuration_gets_its_own_context(cache: ContextCache):
    """A different profile set means a different context."""
    first = cache.get_or_load(single(ROOT))
    profiled = ContextDescriptor(
        name="siteRoot",
        classes=ROOT.classes,
        initializers=ROOT.initializers,
        active_profiles=frozenset({"mbeansdisabled"}),
    )
    assert cache.get_or_load(single(profiled)) is not first
    assert len(cache) == 2


def test_children_share_the_cached_parent(cache: ContextCache):
    """Sibling hierarchies reuse their common root."""
    checkout = cache.get_or_load(ContextHierarchy((ROOT, CHILD)))
    account = cache.get_or_load(ContextHierarchy((ROOT, OTHER_CHILD)))
    assert checkout.parent is account.parent
    assert checkout.get(Greeting) is account.get(Greeting)
    assert len(cache) == 3


def test_lru_eviction_closes_the_oldest(loader: ContextLoader):
    """Beyond max_size the least recently used context is closed."""
    cache = ContextCache(loader, max_size=1)
    first = cache.get_or_load(single(ROOT))
    second = cache.get_or_load(single(CHILD))
    assert first.closed
    assert not second.closed
    assert len(cache) == 1
    assert cache.statistics.evictions == 1
    cache.clear()


def test_overflow_keeps_the_hierarchy_in_use(loader: ContextLoader):
    """A hierarchy deeper than max_size is returned open and stays cached."""
    cache = ContextCache(loader, max_size=1)
    hierarchy = ContextHierarchy((ROOT, CHILD))
    child = cache.get_or_load(hierarchy)
    assert not child.closed
    assert child.parent is not None and not child.parent.closed
    assert len(cache) == 2
    assert cache.get_or_load(hierarchy) is child

    other = cache.get_or_load(single(OTHER_CHILD))
    assert child.closed
    assert not other.closed
    assert len(cache) == 1
    cache.clear()


def test_overflow_evicts_siblings_but_not_the_shared_root(loader: ContextLoader):
    """Evicting for space never closes an ancestor of the hierarchy just loaded."""
    cache = ContextCache(loader, max_size=2)
    checkout = cache.get_or_load(ContextHierarchy((ROOT, CHILD)))
    account = cache.get_or_load(ContextHierarchy((ROOT, OTHER_CHILD)))
    assert checkout.closed
    assert not account.closed
    assert account.parent is not None and not account.parent.closed
    cache.clear()


def test_failing_close_does_not_stop_eviction(cache: ContextCache):
    """Every descendant is closed even when one close callback fails."""
    hierarchy = ContextHierarchy((ROOT, CHILD))
    child = cache.get_or_load(hierarchy)
    assert child.parent is not None
    child.on_close(_explode)
    with pytest.raises(RuntimeError, match="close exploded"):
        cache.evict(hierarchy.cache_key(0))
    assert child.closed
    assert child.parent.closed
    assert len(cache) == 0


def _explode():
    raise RuntimeError("close exploded")


def test_evicting_a_parent_closes_its_children(cache: ContextCache):
    """Eviction cascades to cached descendants."""
    hierarchy = ContextHierarchy((ROOT, CHILD))
    child = cache.get_or_load(hierarchy)
    cache.evict(hierarchy.cache_key(0))
    assert child.closed
    assert child.parent is not None and child.parent.closed
    assert len(cache) == 0


def test_dirty_exhaustive_evicts_the_whole_hierarchy(cache: ContextCache):
    """Exhaustive mode evicts from the root down."""
    hierarchy = ContextHierarchy((ROOT, CHILD))
    child = cache.get_or_load(hierarchy)
    sibling = cache.get_or_load(ContextHierarchy((ROOT, OTHER_CHILD)))
    cache.mark_dirty(hierarchy)
    assert child.closed
    assert sibling.closed
    assert len(cache) == 0


def test_dirty_current_level_keeps_ancestors(cache: ContextCache):
    """Current-level mode evicts only the leaf."""
    hierarchy = ContextHierarchy((ROOT, CHILD))
    child = cache.get_or_load(hierarchy)
    cache.mark_dirty(hierarchy, HierarchyMode.CURRENT_LEVEL)
    assert child.closed
    assert child.parent is not None and not child.parent.closed
    reloaded = cache.get_or_load(hierarchy)
    assert reloaded is not child
    assert reloaded.parent is child.parent


def test_failed_load_is_not_retried(cache: ContextCache):
    """Once a configuration failed, further attempts fail fast."""
    failing = single(ContextDescriptor(name="broken", initializers=(FailingInitializer,)))
    with pytest.raises(ContextBootstrapError, match="initializer exploded"):
        cache.get_or_load(failing)
    with pytest.raises(ContextLoadThresholdExceededError) as excinfo:
        cache.get_or_load(failing)
    assert excinfo.value.failures == 1
    assert len(cache) == 0


def test_failure_threshold_allows_retries(loader: ContextLoader):
    """A higher threshold tolerates that many failures."""
    cache = ContextCache(loader, max_size=2, failure_threshold=2)
    failing = single(ContextDescriptor(name="broken", initializers=(FailingInitializer,)))
    for _ in range(2):
        with pytest.raises(ContextBootstrapError):
            cache.get_or_load(failing)
    with pytest.raises(ContextLoadThresholdExceededError):
        cache.get_or_load(failing)


def test_clear_closes_everything_and_forgets_failures(cache: ContextCache):
    """clear() leaves an empty cache that retries failed configurations."""
    context = cache.get_or_load(ContextHierarchy((ROOT, CHILD)))
    failing = single(ContextDescriptor(name="broken", initializers=(FailingInitializer,)))
    with pytest.raises(ContextBootstrapError):
        cache.get_or_load(failing)
    cache.clear()
    assert context.closed
    assert len(cache) == 0
    with pytest.raises(ContextBootstrapError, match="initializer exploded"):
        cache.get_or_load(failing)


def test_max_size_from_environment(loader: ContextLoader, monkeypatch):
    """Without an explicit size STOREFRONT_CONTEXT_CACHE_SIZE applies."""
    monkeypatch.setenv("STOREFRONT_CONTEXT_CACHE_SIZE", "3")
    assert ContextCache(loader).max_size == 3


def test_max_size_must_be_positive(loader: ContextLoader):
    """A cache holds at least one context."""
    with pytest.raises(ValueError):
        ContextCache(loader, max_size=0)
