"""Web request scope for test application contexts."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, TypeVar

from injector import InstanceProvider, Provider, Scope, ScopeDecorator

from storefront_testkit.errors import ScopeNotActiveError

from .descriptor import DEFAULT_RESOURCE_BASE_PATH

T = TypeVar("T")

# pylint: disable=too-few-public-methods


@dataclass
class WebRequest:
    """A simulated web request. Request-scoped components live as long as it does."""

    method: str = "GET"
    path: str = "/"
    attributes: dict[str, Any] = field(default_factory=dict)
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass(frozen=True)
class WebResources:
    """Web resource root of a web-scoped context."""

    base_path: str = DEFAULT_RESOURCE_BASE_PATH


class RequestScope(Scope):
    """Caches one instance per binding for each active web request.

    Requests are tracked per thread as a stack, so a nested request shadows the
    enclosing one until it ends.
    """

    def configure(self) -> None:
        self._local = threading.local()

    def _stack(self) -> list[tuple[WebRequest, dict[Any, Provider]]]:
        if not hasattr(self._local, "stack"):
            self._local.stack = []
        return self._local.stack

    @property
    def active(self) -> bool:
        return bool(self._stack())

    @property
    def current_request(self) -> WebRequest | None:
        stack = self._stack()
        return stack[-1][0] if stack else None

    def enter(self, web_request: WebRequest) -> None:
        self._stack().append((web_request, {}))

    def exit(self) -> WebRequest:
        web_request, _ = self._stack().pop()
        return web_request

    def get(self, key: type[T], provider: Provider[T]) -> Provider[T]:
        stack = self._stack()
        if not stack:
            raise ScopeNotActiveError(key)
        _, instances = stack[-1]
        if (cached := instances.get(key)) is None:
            cached = InstanceProvider(provider.get(self.injector))
            instances[key] = cached
        return cached


request = ScopeDecorator(RequestScope)
