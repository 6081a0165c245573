"""Error definitions for test-context bootstrap and lookup."""

from __future__ import annotations

from collections.abc import Iterable

# ============================================================================
#                           General context errors
# ============================================================================


class ContextError(Exception):
    """Base class for test-context errors."""


class ContextStateError(ContextError):
    """Raised when a context is used in a state that does not allow it."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Context '{name}' {reason}.")
        self.name = name


# ============================================================================
#                   Declaration (marker) errors
# ============================================================================


class ContextConfigurationError(ContextError):
    """Raised when a test-context declaration is malformed."""


class MissingContextConfigurationError(ContextConfigurationError):
    """Raised when a test type carries no context declaration."""

    def __init__(self, owner: str) -> None:
        super().__init__(f"{owner} is not configured with a test context.")
        self.owner = owner


class ConflictingContextMarkersError(ContextConfigurationError):
    """Raised when one test type carries markers with incompatible bootstraps.

    The site and admin markers imply different class transformation modes and
    cannot be combined on a single test type.
    """

    def __init__(self, owner: str, modes: Iterable[str]) -> None:
        self.modes = tuple(sorted(modes))
        super().__init__(
            f"{owner} combines context markers with incompatible transformation "
            f"modes ({', '.join(self.modes)}); run them in separate processes."
        )
        self.owner = owner


# ============================================================================
#                   Bootstrap errors
# ============================================================================


class ContextBootstrapError(ContextError):
    """Raised when an application context fails to load."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Failed to load context '{name}': {reason}")
        self.name = name


class IncompatibleTransformationModeError(ContextBootstrapError):
    """Raised when a process tries to bootstrap contexts of two transformation modes."""

    def __init__(self, name: str, claimed: str, claimed_by: str, requested: str) -> None:
        super().__init__(
            name,
            f"transformation mode '{requested}' requested but this process is "
            f"already running in '{claimed}' mode (claimed by '{claimed_by}')",
        )
        self.claimed = claimed
        self.requested = requested


class ContextLoadThresholdExceededError(ContextBootstrapError):
    """Raised when a context that already failed to load is requested again."""

    def __init__(self, name: str, failures: int) -> None:
        super().__init__(
            name,
            f"skipping load after {failures} previous failure(s) for the same configuration",
        )
        self.failures = failures


# ============================================================================
#                   Lookup and scope errors
# ============================================================================


class NoSuchComponentError(ContextError, LookupError):
    """Raised when a component is not defined in a context or its ancestors."""

    def __init__(self, name: str, interface: object) -> None:
        label = getattr(interface, "__qualname__", repr(interface))
        super().__init__(f"No component of type {label} in context '{name}'.")
        self.interface = interface


class MissingPropertyError(ContextError, LookupError):
    """Raised when a required environment property is not set."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Required property '{key}' is not set.")
        self.key = key


class ScopeNotActiveError(ContextError):
    """Raised when a request-scoped component is resolved outside a request."""

    def __init__(self, key: object) -> None:
        label = getattr(key, "__qualname__", repr(key))
        super().__init__(f"No active web request to resolve {label}.")


class WebScopeUnavailableError(ContextError):
    """Raised when a web request is started on a context without web scope."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Context '{name}' is not web scoped.")
        self.name = name


class ComponentNotInjectedError(AttributeError):
    """Raised when an injection point is read before components were injected."""

    def __init__(self, attribute: str) -> None:
        super().__init__(
            f"'{attribute}' has not been injected; is the test configured with a context?"
        )
        self.attribute = attribute
