"""Load application contexts from descriptors.

This is the composition root of the harness: it turns a `ContextDescriptor`
into a refreshed `ApplicationContext`. The steps, in order, are

1. claim the descriptor's class transformation mode for the process;
2. derive the environment (from the parent context, if any) and activate the
   descriptor's profiles;
3. run the initializers;
4. expand the configuration classes against the environment and refresh.

No component can be instantiated before step 4, so initializers always see a
context without components.
"""

from __future__ import annotations

import logging

from storefront_testkit.errors import ContextBootstrapError, ContextError
from storefront_testkit.logging import log_context_startup

from .application_context import ApplicationContext
from .conditions import expand_configuration_classes
from .descriptor import ContextDescriptor
from .environment import Environment
from .scopes import WebResources
from .transformation import DEFAULT_REGISTRY, TransformationRegistry

logger = logging.getLogger(__name__)


class ContextLoader:
    """Builds application contexts for descriptors.

    Args:
        registry: Transformation registry to claim modes in. Defaults to the
            process-wide registry.
    """

    def __init__(self, registry: TransformationRegistry | None = None) -> None:
        self.registry = registry if registry is not None else DEFAULT_REGISTRY

    def load(
        self, descriptor: ContextDescriptor, parent: ApplicationContext | None = None
    ) -> ApplicationContext:
        """Build and refresh the context described by `descriptor`.

        Args:
            descriptor: The level to build.
            parent: Already loaded context for the enclosing level, if any.

        Returns:
            The refreshed context.

        Raises:
            IncompatibleTransformationModeError: If the process runs in another mode.
            ContextConfigurationError: If a configuration class is invalid.
            ContextBootstrapError: If an initializer or the refresh fails.
        """
        if descriptor.transformation_mode is not None:
            self.registry.claim(descriptor.transformation_mode, descriptor.name)

        environment = parent.environment.derive() if parent is not None else Environment()
        environment.activate_profiles(*descriptor.active_profiles)
        context = ApplicationContext(
            descriptor.name,
            environment,
            parent=parent,
            web_resources=(
                WebResources(descriptor.resource_base_path) if descriptor.web_scoped else None
            ),
        )

        for initializer_cls in descriptor.initializers:
            logger.debug("Applying %s to context %s", initializer_cls.__name__, descriptor.name)
            try:
                initializer_cls().initialize(context)
            except Exception as e:
                logger.exception(
                    "Initializer %s failed for context %s",
                    initializer_cls.__name__,
                    descriptor.name,
                )
                raise ContextBootstrapError(
                    descriptor.name, f"initializer {initializer_cls.__name__} failed: {e}"
                ) from e

        classes = expand_configuration_classes(descriptor.classes, environment)
        try:
            context.refresh(classes)
        except ContextError:
            raise
        except Exception as e:
            logger.exception("Refresh of context %s failed", descriptor.name)
            raise ContextBootstrapError(descriptor.name, f"refresh failed: {e}") from e

        log_context_startup(
            logger,
            context=context,
            configuration_classes=classes,
            initializers=descriptor.initializers,
        )
        return context
