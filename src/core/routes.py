"""Route registration and per-handler dispatch."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import inspect
import logging
import re
from typing import TYPE_CHECKING, Any, Callable, FrozenSet, Iterable, List, Optional, Pattern, Tuple, Union

from core.errors import ActionError, CourierError, HookExecutionError
from core.models import Message, Response

if TYPE_CHECKING:
    from core.robot import Robot

LOGGER = logging.getLogger(__name__)

Action = Callable[["Robot", Response], Any]


@dataclass(frozen=True, eq=False)
class Route:
    """A compiled chat route. Identity comparison only."""

    name: str
    pattern: Pattern[str]
    action: Action
    requires_command: bool = False
    required_groups: Optional[FrozenSet[str]] = None
    help: Optional[str] = None


@dataclass
class DispatchResult:
    """Routes triggered for one message and the failures met on the way."""

    triggered: List[Route] = field(default_factory=list)
    failures: List[CourierError] = field(default_factory=list)

    def extend(self, other: "DispatchResult") -> None:
        self.triggered.extend(other.triggered)
        self.failures.extend(other.failures)


def _compile(pattern: Union[str, Pattern[str]]) -> Pattern[str]:
    if isinstance(pattern, str):
        return re.compile(pattern)
    return pattern


def _groups(restrict_to: Union[None, str, Iterable[str]]) -> Optional[FrozenSet[str]]:
    if restrict_to is None:
        return None
    if isinstance(restrict_to, str):
        restrict_to = [restrict_to]
    groups = frozenset(str(group).strip().lower() for group in restrict_to if str(group).strip())
    return groups or None


class Handler:
    """A named, ordered table of routes.

    Plugins create an instance, register routes on it and expose it so the
    robot can be told about it::

        handler = Handler("deploy")

        @handler.route(r"deploy (\\w+)", command=True, restrict_to="ops")
        async def deploy(robot, response):
            await response.reply(f"Deploying {response.match_data[0]}")
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._routes: List[Route] = []

    @property
    def routes(self) -> Tuple[Route, ...]:
        return tuple(self._routes)

    def route(
        self,
        pattern: Union[str, Pattern[str]],
        action: Optional[Action] = None,
        *,
        command: bool = False,
        restrict_to: Union[None, str, Iterable[str]] = None,
        help: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Any:
        """Register a route; returns it, or a decorator when ``action`` is omitted."""

        if action is None:

            def decorator(func: Action) -> Action:
                self.route(pattern, func, command=command, restrict_to=restrict_to, help=help, name=name)
                return func

            return decorator

        compiled = _compile(pattern)
        route = Route(
            name=name or getattr(action, "__name__", None) or compiled.pattern,
            pattern=compiled,
            action=action,
            requires_command=command,
            required_groups=_groups(restrict_to),
            help=help,
        )
        self._routes.append(route)
        return route

    async def dispatch(self, robot: "Robot", message: Message) -> DispatchResult:
        """Evaluate every route in order and invoke the ones that pass.

        Coroutine actions are awaited on the loop; plain callables run in a
        worker thread so a blocking action cannot stall other messages.
        """

        result = DispatchResult()
        for route in self._routes:
            try:
                check = robot.validator.check(self, route, message, robot)
            except HookExecutionError as exc:
                LOGGER.exception("Route hook failed for %s.%s; route rejected", self.name, route.name)
                result.failures.append(exc)
                continue

            if not check.passed:
                LOGGER.debug("Route %s.%s rejected by %s gate", self.name, route.name, check.rejected_by.value)
                continue

            result.triggered.append(route)
            response = Response(message=message, match=check.match, robot=robot)
            try:
                if inspect.iscoroutinefunction(route.action):
                    await route.action(robot, response)
                else:
                    outcome = await asyncio.to_thread(route.action, robot, response)
                    if inspect.isawaitable(outcome):
                        await outcome
            except Exception as exc:
                LOGGER.exception("Route %s.%s raised while handling a message", self.name, route.name)
                result.failures.append(ActionError(self.name, route, exc))
        return result
