"""Global pytest fixtures and default marks for storefront-testkit."""

from __future__ import annotations

from pathlib import Path

import pytest

# pylint: disable=unused-argument

pytest_plugins = [
    "pytester",
    "storefront_testkit.pytest_plugin",
    "tests.fixtures.contexts",
    "tests.fixtures.environ",
]

TESTS_ROOT = Path(__file__).parent.resolve()

# Directory under tests/ -> mark added to every test collected from it
DIRECTORY_MARKS = {
    "unit": "unit",
    "integration": "integration",
    "functional": "functional",
}


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Add the default mark of the top-level test directory an item lives in."""
    for item in items:
        path = item.path.resolve()  # pytest>=8: pathlib.Path
        if TESTS_ROOT not in path.parents:
            continue
        top = path.relative_to(TESTS_ROOT).parts[0]
        if (mark_name := DIRECTORY_MARKS.get(top)) is None:
            continue
        if not any(marker.name == mark_name for marker in item.iter_markers()):
            item.add_marker(getattr(pytest.mark, mark_name))
