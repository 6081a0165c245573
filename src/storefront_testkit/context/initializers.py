"""Initializers run against a context before it is refreshed."""

from __future__ import annotations

import abc
import logging
import tomllib
from collections.abc import Iterator
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import TYPE_CHECKING

from storefront_testkit import config

from .environment import PropertySource, flatten_properties

if TYPE_CHECKING:
    from .application_context import ApplicationContext

logger = logging.getLogger(__name__)

RUNTIME_ENVIRONMENT_KEY = "runtime.environment"

# pylint: disable=too-few-public-methods


class ContextInitializer(abc.ABC):
    """Prepares a context before any of its components exist.

    Initializers are referenced by class from context descriptors; the loader
    instantiates each with no arguments and calls `initialize`.
    """

    @abc.abstractmethod
    def initialize(self, context: ApplicationContext) -> None:
        """Adjust `context` (typically its environment) before refresh."""


class EnvironmentConfigurer(ContextInitializer):
    """Seed the context environment from the runtime property files.

    Property files are TOML, looked up by name in increasing precedence:

    1. ``common-shared.toml``
    2. ``<env>-shared.toml``
    3. ``common.toml``
    4. ``<env>.toml``

    where ``<env>`` is the runtime environment (`STOREFRONT_RUNTIME_ENV`). Each
    name is read from the packaged ``runtime_properties`` directory and then
    from the project directory in `STOREFRONT_PROPERTIES_DIR`, the latter
    winning. The file in `STOREFRONT_PROPERTY_OVERRIDE` beats all of them.
    Files that do not exist are skipped.
    """

    def initialize(self, context: ApplicationContext) -> None:
        environment = context.environment
        runtime_env = config.get_runtime_environment()
        # resolve the override first so a bad path fails before anything is added
        override = config.get_property_override_path()

        environment.add_last(
            PropertySource("runtime", {RUNTIME_ENVIRONMENT_KEY: runtime_env})
        )
        for name, properties in self._load_runtime_properties(runtime_env):
            environment.add_first(PropertySource(name, properties))
        if override is not None:
            environment.add_first(
                PropertySource(f"override:{override}", self._read(override))
            )
        logger.debug(
            "Environment of context %s configured for %s: %s",
            context.name,
            runtime_env,
            [source.name for source in environment.property_sources],
        )

    @staticmethod
    def property_file_names(runtime_env: str) -> list[str]:
        return [
            "common-shared.toml",
            f"{runtime_env}-shared.toml",
            "common.toml",
            f"{runtime_env}.toml",
        ]

    def _load_runtime_properties(
        self, runtime_env: str
    ) -> Iterator[tuple[str, dict[str, object]]]:
        directories: list[tuple[str, Traversable | Path]] = [
            ("package", config.get_packaged_properties_dir())
        ]
        if (extra := config.get_extra_properties_dir()) is not None:
            directories.append(("project", extra))
        for file_name in self.property_file_names(runtime_env):
            for label, directory in directories:
                candidate = directory / file_name
                if candidate.is_file():
                    yield f"{label}:{file_name}", self._read(candidate)

    @staticmethod
    def _read(path: Traversable | Path) -> dict[str, object]:
        with path.open("rb") as f:
            return flatten_properties(tomllib.load(f))
