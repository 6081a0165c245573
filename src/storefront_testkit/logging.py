"""Logging helpers used by the pytest plugin and the context loader.

This module provides the Rich console handler attached by ``--context-debug``,
a filter that annotates third-party log records with a short prefix, and the
startup summary logged whenever a context finishes loading.
"""

from __future__ import annotations

import logging
import platform
import sys
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING, Literal, TypeAlias

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from logging import Logger

    from injector import Module

    from storefront_testkit.context.application_context import ApplicationContext
    from storefront_testkit.context.initializers import ContextInitializer

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "storefront_testkit"


class ThirdPartyPrefixFilter(logging.Filter):
    """Annotate third-party log records with a short prefix.

    Records from loggers outside the project get `record.prefix` set to a
    bracketed token like "[injector]"; project records get an empty prefix.
    The filter never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not record.name.startswith(PROJECT_PREFIX):
            # e.g. "sqlalchemy.engine.Engine" -> "[sqlalchemy]"
            record.prefix = f"[{record.name.split('.')[0]}]"
        else:
            record.prefix = ""
        return True


def config_console_handler(
    level: int = logging.INFO, debug_mode: bool = False, color: bool = True
) -> RichHandler:
    """Configure and return a RichHandler writing to stderr.

    Args:
        level: Minimum level for console output (DEBUG when `debug_mode` is set).
        debug_mode: Show timestamps, logger names and source paths.
        color: Enable color output.

    Returns:
        RichHandler: Handler ready to attach to the package logger.
    """
    ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]
    color_system: ColorSystem | None = "auto" if color else None
    console = Console(color_system=color_system, stderr=True)

    handler = RichHandler(
        level=logging.DEBUG if debug_mode else level,
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )
    fmt = "%(asctime)s %(name)s: %(message)s" if debug_mode else "%(prefix)s %(message)s"
    handler.setFormatter(logging.Formatter(fmt=fmt))
    if not debug_mode:
        handler.addFilter(ThirdPartyPrefixFilter())
    return handler


def _distribution_version(name: str) -> str:
    try:
        return version(name)
    except PackageNotFoundError:
        return "<not installed>"


def log_context_startup(
    logger: Logger,
    *,
    context: ApplicationContext,
    configuration_classes: Sequence[type[Module]],
    initializers: Sequence[type[ContextInitializer]],
) -> None:
    """Log a one-line summary of a freshly loaded context and DEBUG diagnostics.

    Args:
        logger: Logger used to emit the messages.
        context: The context that finished loading.
        configuration_classes: Configuration classes actually installed.
        initializers: Initializers that ran before the refresh.
    """
    logger.info(
        "Loaded context %s (parent=%s, profiles=%s, web=%s)",
        context.name,
        context.parent.name if context.parent is not None else "<none>",
        ",".join(sorted(context.environment.active_profiles)) or "<default>",
        "ON" if context.web_scoped else "OFF",
    )

    logger.debug("Python: %s", sys.version.split()[0])
    logger.debug("Platform: %s %s", platform.system(), platform.release())
    logger.debug("injector: %s", _distribution_version("injector"))
    logger.debug("SQLAlchemy: %s", _distribution_version("sqlalchemy"))
    logger.debug(
        "Configuration classes: %s", [cls.__qualname__ for cls in configuration_classes]
    )
    logger.debug("Initializers: %s", [cls.__qualname__ for cls in initializers])
    if context.web_resources is not None:
        logger.debug("Web resources: %s", context.web_resources.base_path)
