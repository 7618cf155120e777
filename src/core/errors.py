"""Exception types raised by the core.

Routing rejections are not errors and have no exception type; a route that
does not match simply is not triggered.
"""

from __future__ import annotations

from typing import Any


class CourierError(Exception):
    """Base class for all courier errors."""


class HookExecutionError(CourierError):
    """A registered route hook raised while validating a route."""

    def __init__(self, hook: Any, cause: BaseException) -> None:
        hook_name = getattr(hook, "__qualname__", None) or repr(hook)
        super().__init__(f"Route hook {hook_name} failed: {cause!r}")
        self.hook = hook
        self.cause = cause


class ActionError(CourierError):
    """A route action raised while being invoked."""

    def __init__(self, handler_name: str, route: Any, cause: BaseException) -> None:
        super().__init__(f"Route {route.name} in handler {handler_name} failed: {cause!r}")
        self.handler_name = handler_name
        self.route = route
        self.cause = cause


class UnknownAdapterError(CourierError):
    """Configuration names an adapter that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown adapter: {name}")
        self.name = name


class AuthorizationError(CourierError):
    """A user without admin rights attempted to change group membership."""
