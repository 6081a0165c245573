"""Configuration utilities for storefront-testkit.

This module centralizes the environment variables that tune test-context
bootstrap and caching, and the location of the packaged property files.
"""

import os
from importlib.resources import files
from importlib.resources.abc import Traversable
from pathlib import Path

RUNTIME_ENV_VAR = "STOREFRONT_RUNTIME_ENV"  # pragma: no mutate
PROPERTIES_DIR_VAR = "STOREFRONT_PROPERTIES_DIR"  # pragma: no mutate
PROPERTY_OVERRIDE_VAR = "STOREFRONT_PROPERTY_OVERRIDE"  # pragma: no mutate
CACHE_SIZE_VAR = "STOREFRONT_CONTEXT_CACHE_SIZE"  # pragma: no mutate
FAILURE_THRESHOLD_VAR = "STOREFRONT_CONTEXT_FAILURE_THRESHOLD"  # pragma: no mutate

DEFAULT_RUNTIME_ENV = "development"
DEFAULT_CACHE_SIZE = 32
DEFAULT_FAILURE_THRESHOLD = 1


class InvalidSettingError(ValueError):
    """Raised when a setting (environment variable or ini value) holds an unusable value."""

    def __init__(self, name: str, value: str, reason: str) -> None:
        super().__init__(f"{name}={value!r} is invalid: {reason}")
        self.name = name
        self.value = value


class PropertyOverrideNotFoundError(FileNotFoundError):
    """Raised when STOREFRONT_PROPERTY_OVERRIDE points at a missing file."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Property override file {path} does not exist")
        self.path = path


def get_runtime_environment() -> str:
    """Get the runtime environment name used to pick property files.

    Returns:
        The value of `STOREFRONT_RUNTIME_ENV`, or `development` when unset.
    """
    return os.environ.get(RUNTIME_ENV_VAR, "").strip() or DEFAULT_RUNTIME_ENV


def get_packaged_properties_dir() -> Traversable:
    """Return the directory holding the packaged runtime property files."""
    return files("storefront_testkit") / "resources" / "runtime_properties"


def get_extra_properties_dir() -> Path | None:
    """Return the project property directory from `STOREFRONT_PROPERTIES_DIR`, if set."""
    if not (value := os.environ.get(PROPERTIES_DIR_VAR)):
        return None
    return Path(value)


def get_property_override_path() -> Path | None:
    """Return the property override file from `STOREFRONT_PROPERTY_OVERRIDE`, if set.

    Raises:
        PropertyOverrideNotFoundError: If the variable is set but the file is missing.
    """
    if not (value := os.environ.get(PROPERTY_OVERRIDE_VAR)):
        return None
    path = Path(value)
    if not path.is_file():
        raise PropertyOverrideNotFoundError(path)
    return path


def parse_positive_int(name: str, raw: str) -> int:
    """Parse `raw`, the value of setting `name`, as an integer of at least 1.

    Raises:
        InvalidSettingError: If the value is not a positive integer.
    """
    try:
        value = int(raw)
    except ValueError as e:
        raise InvalidSettingError(name, raw, "expected an integer") from e
    if value < 1:
        raise InvalidSettingError(name, raw, "must be at least 1")
    return value


def _positive_int(name: str, default: int) -> int:
    if not (raw := os.environ.get(name)):
        return default
    return parse_positive_int(name, raw)


def get_context_cache_size() -> int:
    """Get the maximum number of cached application contexts.

    Returns:
        `STOREFRONT_CONTEXT_CACHE_SIZE` as an int, or 32 when unset.

    Raises:
        InvalidSettingError: If the value is not a positive integer.
    """
    return _positive_int(CACHE_SIZE_VAR, DEFAULT_CACHE_SIZE)


def get_failure_threshold() -> int:
    """Get how many load failures of one configuration are tolerated.

    Returns:
        `STOREFRONT_CONTEXT_FAILURE_THRESHOLD` as an int, or 1 when unset.

    Raises:
        InvalidSettingError: If the value is not a positive integer.
    """
    return _positive_int(FAILURE_THRESHOLD_VAR, DEFAULT_FAILURE_THRESHOLD)
