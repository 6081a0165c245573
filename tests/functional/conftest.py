"""Fixtures for running pytest in a subprocess against the plugin."""

import os
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[2] / "src"

PLUGIN = "storefront_testkit.pytest_plugin"


@pytest.fixture(autouse=True)
def _subprocess_pythonpath(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make the package importable in pytester subprocesses without installing it."""
    existing = os.environ.get("PYTHONPATH")
    paths = [str(SRC_DIR), existing] if existing else [str(SRC_DIR)]
    monkeypatch.setenv("PYTHONPATH", os.pathsep.join(paths))


@pytest.fixture
def run_plugin(pytester: pytest.Pytester):
    """Run pytest with the plugin in a fresh interpreter."""

    def run(*args: str) -> pytest.RunResult:
        return pytester.runpytest_subprocess("-p", PLUGIN, *args)

    return run
