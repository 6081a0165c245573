"""Application contexts backed by `injector`.

An `ApplicationContext` wraps one `injector.Injector` built from a list of
configuration classes. Contexts form a hierarchy: a child's injector falls back
to its parent's bindings, and a web request started on a child is also active
on its web-scoped ancestors.

Lifecycle:
    created  ->  (initializers run)  ->  refresh()  ->  active  ->  close()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import ExitStack, contextmanager
from typing import TypeVar

from injector import Binder, CallableProvider, Injector, Module, UnsatisfiedRequirement

from storefront_testkit.errors import (
    ContextStateError,
    NoSuchComponentError,
    ScopeNotActiveError,
    WebScopeUnavailableError,
)

from .environment import Environment
from .scopes import RequestScope, WebRequest, WebResources

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ApplicationContext:
    """A named container of components for one level of a test context hierarchy.

    Args:
        name: Hierarchy node name, e.g. ``"siteRoot"``.
        environment: Property sources and active profiles of this context.
        parent: Parent context whose components are visible from this one.
        web_resources: Web resource root; when given the context is web scoped.
    """

    def __init__(
        self,
        name: str,
        environment: Environment,
        *,
        parent: ApplicationContext | None = None,
        web_resources: WebResources | None = None,
    ) -> None:
        self.name = name
        self.environment = environment
        self.parent = parent
        self.web_resources = web_resources
        self._injector: Injector | None = None
        self._close_callbacks: list[Callable[[], object]] = []
        self._closed = False

    def __repr__(self) -> str:
        state = "closed" if self._closed else "active" if self.active else "new"
        return f"<ApplicationContext {self.name!r} {state}>"

    @property
    def web_scoped(self) -> bool:
        return self.web_resources is not None

    @property
    def active(self) -> bool:
        return self._injector is not None and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def injector(self) -> Injector:
        """The underlying injector.

        Raises:
            ContextStateError: If the context was not refreshed or is closed.
        """
        if self._closed:
            raise ContextStateError(self.name, "is closed")
        if self._injector is None:
            raise ContextStateError(self.name, "has not been refreshed")
        return self._injector

    # --- lifecycle ---

    def refresh(self, configuration_classes: Sequence[type[Module]]) -> None:
        """Build the injector from `configuration_classes`, installed in order.

        Raises:
            ContextStateError: If the context was already refreshed or is closed.
        """
        if self._closed:
            raise ContextStateError(self.name, "is closed")
        if self._injector is not None:
            raise ContextStateError(self.name, "has already been refreshed")
        parent_injector = self.parent.injector if self.parent is not None else None
        modules = [self._configure_core, *(cls() for cls in configuration_classes)]
        self._injector = Injector(modules, auto_bind=False, parent=parent_injector)

    def _configure_core(self, binder: Binder) -> None:
        binder.bind(ApplicationContext, to=self)
        binder.bind(Environment, to=self.environment)
        if self.web_resources is not None:
            binder.bind(WebResources, to=self.web_resources)
            binder.bind(WebRequest, to=CallableProvider(self._require_request))

    def on_close(self, callback: Callable[[], object]) -> None:
        """Register `callback` to run when the context closes."""
        self._close_callbacks.append(callback)

    def close(self) -> None:
        """Close the context, running close callbacks newest first.

        Every callback runs even if an earlier one fails; the first failure is
        re-raised afterwards. Closing twice is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        logger.debug("Closing context %s", self.name)
        errors: list[Exception] = []
        while self._close_callbacks:
            callback = self._close_callbacks.pop()
            try:
                callback()
            except Exception as e:  # pylint: disable=broad-except
                logger.exception("Close callback %r of context %s failed", callback, self.name)
                errors.append(e)
        if errors:
            raise errors[0]

    # --- lookup ---

    def get(self, interface: type[T]) -> T:
        """Resolve the component bound to `interface` here or in an ancestor.

        Raises:
            NoSuchComponentError: If no context in the hierarchy binds `interface`.
            ScopeNotActiveError: If the component is request scoped and no request is active.
            ContextStateError: If the context is not active.
        """
        injector = self.injector
        try:
            return injector.get(interface)
        except UnsatisfiedRequirement as e:
            logger.debug("Context %s could not resolve %s: %s", self.name, interface, e)
            raise NoSuchComponentError(self.name, interface) from e

    def contains(self, interface: type) -> bool:
        """Return True if `interface` is bound here or in an ancestor."""
        try:
            self.injector.binder.get_binding(interface)
        except UnsatisfiedRequirement:
            return False
        return True

    # --- web requests ---

    def _request_scopes(self) -> list[RequestScope]:
        scopes = []
        context: ApplicationContext | None = self
        while context is not None:
            if context.web_scoped:
                scopes.append(context.injector.get(RequestScope))
            context = context.parent
        return scopes

    @property
    def current_request(self) -> WebRequest | None:
        """The active web request, or None outside a request."""
        if not self.web_scoped:
            return None
        return self.injector.get(RequestScope).current_request

    def _require_request(self) -> WebRequest:
        if (current := self.current_request) is None:
            raise ScopeNotActiveError(WebRequest)
        return current

    @contextmanager
    def request(self, web_request: WebRequest | None = None) -> Iterator[WebRequest]:
        """Run the enclosed block inside a (simulated) web request.

        Request-scoped components resolved inside the block are created once for
        this request and discarded when it ends.

        Raises:
            WebScopeUnavailableError: If the context is not web scoped.
        """
        if not self.web_scoped:
            raise WebScopeUnavailableError(self.name)
        web_request = web_request if web_request is not None else WebRequest()
        with ExitStack() as stack:
            for scope in self._request_scopes():
                scope.enter(web_request)
                stack.callback(scope.exit)
            logger.debug("Context %s entered request %s", self.name, web_request.request_id)
            yield web_request
