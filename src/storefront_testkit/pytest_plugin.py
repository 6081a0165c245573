"""pytest plugin applying test application contexts.

Enable it with ``-p storefront_testkit.pytest_plugin`` or from a conftest:

```py
pytest_plugins = ["storefront_testkit.pytest_plugin"]
```

Every test carrying a context declaration (`site_integration_test`,
`admin_integration_test`, `context_configuration`) runs inside its context:
the context is taken from the session-wide cache, web-scoped contexts get a
fresh request per test, and `autowired` attributes of test instances are
injected. Tests marked ``dirties_context`` evict their contexts afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from storefront_testkit import config as settings
from storefront_testkit.context.application_context import ApplicationContext
from storefront_testkit.context.cache import ContextCache, HierarchyMode
from storefront_testkit.context.declarations import has_context_configuration
from storefront_testkit.context.manager import TestContextManager
from storefront_testkit.context.scopes import WebRequest
from storefront_testkit.logging import PROJECT_PREFIX, config_console_handler
from storefront_testkit.markers import ADMIN_INTEGRATION_MARK, SITE_INTEGRATION_MARK

# pylint: disable=redefined-outer-name

logger = logging.getLogger(__name__)

DIRTIES_CONTEXT_MARK = "dirties_context"

cache_key = pytest.StashKey[ContextCache]()
handler_key = pytest.StashKey[logging.Handler]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("storefront", "storefront test contexts")
    group.addoption(
        "--context-cache-size",
        type=int,
        default=None,
        help=(
            "Maximum number of cached application contexts "
            f"(default: ini context_cache_size, then ${settings.CACHE_SIZE_VAR}, then 32)."
        ),
    )
    group.addoption(
        "--context-debug",
        action="store_true",
        default=False,
        help="Log context bootstrap at DEBUG level to stderr.",
    )
    parser.addini(
        "context_cache_size",
        "Maximum number of cached application contexts.",
        default=None,
    )


def _cache_size(config: pytest.Config) -> int:
    if (size := config.getoption("context_cache_size")) is not None:
        return settings.parse_positive_int("--context-cache-size", str(size))
    if ini := config.getini("context_cache_size"):
        return settings.parse_positive_int("context_cache_size", ini)
    return settings.get_context_cache_size()


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        f"{SITE_INTEGRATION_MARK}: test runs in the site (siteRoot) application context",
    )
    config.addinivalue_line(
        "markers",
        f"{ADMIN_INTEGRATION_MARK}: test runs in the admin (adminRoot) application context",
    )
    config.addinivalue_line(
        "markers",
        f"{DIRTIES_CONTEXT_MARK}(hierarchy_mode='exhaustive'): evict the test's "
        "application contexts after it ran",
    )
    try:
        config.stash[cache_key] = ContextCache(max_size=_cache_size(config))
    except settings.InvalidSettingError as e:
        raise pytest.UsageError(str(e)) from e

    if config.getoption("context_debug"):
        handler = config_console_handler(debug_mode=True)
        package_logger = logging.getLogger(PROJECT_PREFIX)
        package_logger.addHandler(handler)
        package_logger.setLevel(logging.DEBUG)
        config.stash[handler_key] = handler


def pytest_unconfigure(config: pytest.Config) -> None:
    try:
        if (cache := config.stash.get(cache_key, None)) is not None:
            del config.stash[cache_key]
            stats = cache.statistics
            logger.info(
                "Context cache: size=%s hits=%s misses=%s evictions=%s",
                len(cache),
                stats.hits,
                stats.misses,
                stats.evictions,
            )
            cache.clear()
    finally:
        if (handler := config.stash.get(handler_key, None)) is not None:
            logging.getLogger(PROJECT_PREFIX).removeHandler(handler)
            del config.stash[handler_key]


def _owners(request: pytest.FixtureRequest) -> tuple[object, ...]:
    owners: list[object] = []
    if request.cls is not None:
        owners.append(request.cls)
    owners.append(request.function)
    return tuple(owners)


@pytest.fixture
def test_context_manager(request: pytest.FixtureRequest) -> TestContextManager:
    """The `TestContextManager` of the current test.

    Fails the test when it carries no context declaration, and errors it when
    the declarations conflict.
    """
    owners = _owners(request)
    if not has_context_configuration(*owners):
        pytest.fail(
            f"{request.node.nodeid} is not configured with a test context; "
            "mark it with site_integration_test or admin_integration_test.",
            pytrace=False,
        )
    return TestContextManager(*owners, cache=request.config.stash[cache_key])


@pytest.fixture
def application_context(
    request: pytest.FixtureRequest, test_context_manager: TestContextManager
) -> Iterator[ApplicationContext]:
    """The (leaf) application context of the current test."""
    yield test_context_manager.get_context()
    if (marker := request.node.get_closest_marker(DIRTIES_CONTEXT_MARK)) is not None:
        mode = marker.kwargs.get("hierarchy_mode", HierarchyMode.EXHAUSTIVE)
        test_context_manager.mark_dirty(HierarchyMode(mode))


@pytest.fixture
def web_request(application_context: ApplicationContext) -> WebRequest:
    """The web request the current test runs in."""
    if (current := application_context.current_request) is None:
        pytest.fail(f"Context '{application_context.name}' is not web scoped.", pytrace=False)
    return current


@pytest.fixture(autouse=True)
def _context_test_execution(request: pytest.FixtureRequest) -> Iterator[None]:
    if not has_context_configuration(*_owners(request)):
        yield
        return
    manager: TestContextManager = request.getfixturevalue("test_context_manager")
    # resolved through the fixture so dirties_context runs after this teardown
    context = request.getfixturevalue("application_context")
    with manager.test_execution(request.instance, context=context):
        yield
