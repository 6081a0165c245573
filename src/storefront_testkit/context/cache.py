"""Process-wide cache of loaded application contexts.

Contexts are expensive to build, so tests whose hierarchies resolve to the same
cache keys share them. The cache is LRU-bounded; evicting a context also evicts
(and closes) every cached context below it in the hierarchy.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections import Counter, OrderedDict
from dataclasses import dataclass

from storefront_testkit import config
from storefront_testkit.errors import ContextLoadThresholdExceededError

from .application_context import ApplicationContext
from .descriptor import CacheKey, ContextDescriptor, ContextHierarchy
from .loader import ContextLoader

logger = logging.getLogger(__name__)


class HierarchyMode(enum.StrEnum):
    """How much of a hierarchy a dirty test evicts."""

    EXHAUSTIVE = "exhaustive"
    """Evict the root level, and with it every context sharing that root."""

    CURRENT_LEVEL = "current_level"
    """Evict only the test's own (leaf) level and its descendants."""


@dataclass
class CacheStatistics:
    """Counters describing cache effectiveness."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0


class ContextCache:
    """LRU cache of application contexts keyed by hierarchy cache keys.

    Args:
        loader: Loader used on cache misses.
        max_size: Maximum number of cached contexts (`STOREFRONT_CONTEXT_CACHE_SIZE`).
        failure_threshold: Load failures tolerated per key before further attempts
            fail fast (`STOREFRONT_CONTEXT_FAILURE_THRESHOLD`).
    """

    def __init__(
        self,
        loader: ContextLoader | None = None,
        max_size: int | None = None,
        failure_threshold: int | None = None,
    ) -> None:
        self.loader = loader if loader is not None else ContextLoader()
        self.max_size = max_size if max_size is not None else config.get_context_cache_size()
        self.failure_threshold = (
            failure_threshold if failure_threshold is not None else config.get_failure_threshold()
        )
        if self.max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.statistics = CacheStatistics()
        self._contexts: OrderedDict[CacheKey, ApplicationContext] = OrderedDict()
        self._failures: Counter[CacheKey] = Counter()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, key: object) -> bool:
        return key in self._contexts

    def get_or_load(self, hierarchy: ContextHierarchy) -> ApplicationContext:
        """Return the leaf context for `hierarchy`, loading missing levels.

        Raises:
            ContextLoadThresholdExceededError: If a level already failed to load
                `failure_threshold` times.
            ContextError: Whatever the loader raises for a failing level.
        """
        with self._lock:
            context: ApplicationContext | None = None
            for index, descriptor in enumerate(hierarchy.levels):
                context = self._get_or_load_level(
                    hierarchy.cache_key(index), descriptor, context
                )
            assert context is not None  # a hierarchy has at least one level
            self._evict_overflow(hierarchy.cache_key())
            return context

    def _get_or_load_level(
        self,
        key: CacheKey,
        descriptor: ContextDescriptor,
        parent: ApplicationContext | None,
    ) -> ApplicationContext:
        if (context := self._contexts.get(key)) is not None:
            self._contexts.move_to_end(key)
            self.statistics.hits += 1
            logger.debug("Context cache hit for %s", descriptor.name)
            return context

        if (failures := self._failures[key]) >= self.failure_threshold:
            raise ContextLoadThresholdExceededError(descriptor.name, failures)

        self.statistics.misses += 1
        logger.debug("Context cache miss for %s", descriptor.name)
        try:
            context = self.loader.load(descriptor, parent)
        except Exception:
            self._failures[key] += 1
            raise
        self._contexts[key] = context
        return context

    def _evict_overflow(self, in_use: CacheKey) -> None:
        # the chain of `in_use` stays, even if that leaves the cache above max_size
        for key in list(self._contexts):
            if len(self._contexts) <= self.max_size:
                return
            if key in self._contexts and in_use[: len(key)] != key:
                logger.debug("Context cache full (max_size=%s); evicting LRU", self.max_size)
                self.evict(key)

    def evict(self, key: CacheKey) -> None:
        """Close and remove the context at `key` and every cached descendant.

        Every context is closed even if one fails to; the first failure is
        re-raised afterwards.
        """
        with self._lock:
            # descendants share the key as a prefix; close the deepest first
            doomed = sorted(
                (k for k in self._contexts if k[: len(key)] == key),
                key=len,
                reverse=True,
            )
            errors: list[Exception] = []
            for k in doomed:
                context = self._contexts.pop(k)
                self.statistics.evictions += 1
                logger.debug("Evicting context %s", context.name)
                try:
                    context.close()
                except Exception as e:  # pylint: disable=broad-except
                    errors.append(e)
            if errors:
                raise errors[0]

    def mark_dirty(
        self,
        hierarchy: ContextHierarchy,
        hierarchy_mode: HierarchyMode = HierarchyMode.EXHAUSTIVE,
    ) -> None:
        """Evict the contexts of `hierarchy` after a test dirtied them."""
        index = 0 if hierarchy_mode is HierarchyMode.EXHAUSTIVE else len(hierarchy) - 1
        self.evict(hierarchy.cache_key(index))

    def clear(self) -> None:
        """Close and remove every cached context and forget recorded failures."""
        with self._lock:
            self._failures.clear()
            errors: list[Exception] = []
            for key in sorted(self._contexts, key=len):
                if key in self._contexts:
                    try:
                        self.evict(key)
                    except Exception as e:  # pylint: disable=broad-except
                        errors.append(e)
            if errors:
                raise errors[0]
