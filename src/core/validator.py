"""Decides whether an incoming message should trigger a route."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from typing import TYPE_CHECKING, Any, Optional

from core.context import RoutingContext
from core.errors import HookExecutionError
from core.hooks import VALIDATE_ROUTE
from core.models import Message

if TYPE_CHECKING:
    from core.robot import Robot
    from core.routes import Route


class Gate(str, Enum):
    """The checks applied to a route, in evaluation order."""

    COMMAND = "command"
    SELF = "self"
    PATTERN = "pattern"
    AUTHORIZATION = "authorization"
    HOOKS = "hooks"


@dataclass(frozen=True)
class RouteCheck:
    """Outcome of validating one route against one message.

    ``match`` is set once the pattern gate has passed, even if a later gate
    rejects the route.
    """

    rejected_by: Optional[Gate]
    match: Optional[re.Match] = None

    @property
    def passed(self) -> bool:
        return self.rejected_by is None


class RouteValidator:
    """Stateless route gate chain.

    Checks run in this order and stop at the first failure:
    - Command: a command route needs a command message.
    - Self: messages from the robot itself never trigger routes.
    - Pattern: the route pattern must match the message body.
    - Authorization: a restricted route needs a user in any required group.
    - Hooks: every ``validate_route`` hook must return a truthy value.
    """

    def __init__(self, context: RoutingContext) -> None:
        self._context = context

    def decide(self, handler: Any, route: "Route", message: Message, robot: "Robot") -> bool:
        return self.check(handler, route, message, robot).passed

    def explain(self, handler: Any, route: "Route", message: Message, robot: "Robot") -> Optional[Gate]:
        """Return the gate that rejected the route, or None if it should fire."""

        return self.check(handler, route, message, robot).rejected_by

    def check(self, handler: Any, route: "Route", message: Message, robot: "Robot") -> RouteCheck:
        """Run the gate chain; the pattern is searched at most once.

        Raises HookExecutionError when a hook callback itself fails.
        """

        if route.requires_command and not message.is_command:
            return RouteCheck(Gate.COMMAND)
        if self._from_self(message, robot):
            return RouteCheck(Gate.SELF)
        match = route.pattern.search(message.body)
        if match is None:
            return RouteCheck(Gate.PATTERN)
        if not self._authorized(message, route):
            return RouteCheck(Gate.AUTHORIZATION, match)
        if not self._passes_hooks(handler, route, message, robot):
            return RouteCheck(Gate.HOOKS, match)
        return RouteCheck(None, match)

    @staticmethod
    def _from_self(message: Message, robot: "Robot") -> bool:
        user = message.user
        if user.name == robot.name:
            return True
        return robot.user_id is not None and user.id == robot.user_id

    def _authorized(self, message: Message, route: "Route") -> bool:
        if not route.required_groups:
            return True
        authorization = self._context.authorization
        return any(authorization.user_in_group(message.user, group) for group in route.required_groups)

    def _passes_hooks(self, handler: Any, route: "Route", message: Message, robot: "Robot") -> bool:
        for hook in self._context.hooks.get(VALIDATE_ROUTE):
            try:
                allowed = hook(handler=handler, route=route, message=message, robot=robot)
            except Exception as exc:
                raise HookExecutionError(hook, exc) from exc
            if not allowed:
                return False
        return True
