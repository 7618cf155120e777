"""Helpers for testing handlers against a robot with an in-memory adapter.

The helpers are synchronous and drive the robot with ``asyncio.run``, so they
are meant for plain test functions, not for code already inside a loop::

    harness = RobotHarness()
    harness.robot.register_handler(handler)
    harness.routes_command("deploy staging").to("deploy")
    harness.send_command("deploy staging")
    assert harness.replies == ["Deploying staging"]
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

from adapters.memory import MemoryAdapter, MessageReceipt
from core.config import RobotConfig
from core.context import RoutingContext
from core.models import Message, Source, User
from core.robot import Robot
from core.routes import DispatchResult, Route
from core.validator import RouteValidator

TEST_ROOM = "test-room"


class _Unrestricted:
    """Authorization stand-in that puts every user in every group."""

    def user_in_group(self, user: User, group: str) -> bool:
        return True


class RouteExpectation:
    """Completes a ``routes``/``does_not_route`` check with ``to(route_name)``."""

    def __init__(self, harness: "RobotHarness", body: str, invert: bool = False) -> None:
        self._harness = harness
        self._body = body
        self._invert = invert

    def to(self, route_name: str) -> None:
        names = [route.name for route in self._harness.matching_routes(self._body)]
        if self._invert and route_name in names:
            raise AssertionError(f"Expected {self._body!r} not to route to {route_name}")
        if not self._invert and route_name not in names:
            raise AssertionError(f"Expected {self._body!r} to route to {route_name}; matched {names}")


class RobotHarness:
    """A robot wired to a MemoryAdapter plus a default sending user."""

    def __init__(
        self,
        robot: Optional[Robot] = None,
        user: Optional[User] = None,
        room: Optional[str] = TEST_ROOM,
    ) -> None:
        self.robot = robot or Robot(RobotConfig(name="Courier"))
        if self.robot.adapter is None:
            self.robot.attach_adapter(MemoryAdapter(self.robot))
        self.adapter: MemoryAdapter = self.robot.adapter
        self.user = user or self.robot.users.create("1", "Test User")
        self.room = room

    @property
    def replies(self) -> List[str]:
        return self.adapter.replies

    @property
    def message_receipts(self) -> List[MessageReceipt]:
        return self.adapter.receipts

    def message(self, body: str, as_user: Optional[User] = None) -> Message:
        source = Source(user=as_user or self.user, room=self.room)
        return self.robot.build_message(body, source)

    def send_message(self, body: str, as_user: Optional[User] = None) -> DispatchResult:
        return asyncio.run(self.robot.receive(self.message(body, as_user)))

    def send_command(self, body: str, as_user: Optional[User] = None) -> DispatchResult:
        return self.send_message(f"{self.robot.mention_name}: {body}", as_user)

    def matching_routes(self, body: str, as_user: Optional[User] = None) -> List[Route]:
        """Routes that would fire for ``body`` with group checks waived.

        Nothing is invoked; hooks registered on the robot still apply.
        """

        validator = RouteValidator(RoutingContext(hooks=self.robot.context.hooks, authorization=_Unrestricted()))
        message = self.message(body, as_user)
        return [
            route
            for handler in self.robot.handlers
            for route in handler.routes
            if validator.explain(handler, route, message, self.robot) is None
        ]

    def routes(self, body: str) -> RouteExpectation:
        return RouteExpectation(self, body)

    def does_not_route(self, body: str) -> RouteExpectation:
        return RouteExpectation(self, body, invert=True)

    def routes_command(self, body: str) -> RouteExpectation:
        return RouteExpectation(self, f"{self.robot.mention_name}: {body}")

    def does_not_route_command(self, body: str) -> RouteExpectation:
        return RouteExpectation(self, f"{self.robot.mention_name}: {body}", invert=True)
