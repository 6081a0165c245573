"""Process-wide class transformation mode.

Site and admin contexts transform the platform's classes differently while they
bootstrap, so a single interpreter can only ever host one of the two. The first
context that claims a mode fixes it for the lifetime of the process; site and
admin suites have to be run as separate pytest invocations (for example
``pytest -m site_integration`` and ``pytest -m admin_integration``).
"""

from __future__ import annotations

import enum
import logging
import threading

from storefront_testkit.errors import IncompatibleTransformationModeError

logger = logging.getLogger(__name__)


class TransformationMode(enum.StrEnum):
    """Class transformation applied while a context bootstraps."""

    SITE = "site"
    ADMIN = "admin"


class TransformationRegistry:
    """Records the transformation mode claimed by the first context loaded."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._mode: TransformationMode | None = None
        self._owner: str | None = None

    @property
    def mode(self) -> TransformationMode | None:
        return self._mode

    def claim(self, mode: TransformationMode, owner: str) -> None:
        """Claim `mode` for this process on behalf of context `owner`.

        Claiming the mode already in force is a no-op.

        Raises:
            IncompatibleTransformationModeError: If a different mode was claimed earlier.
        """
        with self._lock:
            if self._mode is None:
                logger.debug("Transformation mode %s claimed by %s", mode, owner)
                self._mode = mode
                self._owner = owner
                return
            if self._mode is not mode:
                logger.error(
                    "Context %s requested %s mode; process already in %s mode",
                    owner,
                    mode,
                    self._mode,
                )
                raise IncompatibleTransformationModeError(
                    owner, str(self._mode), str(self._owner), str(mode)
                )

    def reset(self) -> None:
        """Forget the claimed mode."""
        with self._lock:
            self._mode = None
            self._owner = None


DEFAULT_REGISTRY = TransformationRegistry()
