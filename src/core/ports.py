"""Ports (interfaces) used by the core.

Ports define the minimal contracts for chat adapters and handlers so that the
core can be reused with different chat networks and plugin sets.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Protocol, Sequence

from core.models import Message, Source
from core.routes import DispatchResult, Route

if TYPE_CHECKING:
    from core.robot import Robot


class AdapterPort(Protocol):
    """Chat network operations required by the robot."""

    async def run(self) -> None:
        ...

    async def shut_down(self) -> None:
        ...

    async def send_messages(self, target: Source, strings: List[str]) -> None:
        ...

    async def set_topic(self, target: Source, topic: str) -> None:
        ...


class HandlerPort(Protocol):
    """Anything that can evaluate its routes against a message."""

    name: str

    @property
    def routes(self) -> Sequence[Route]:
        ...

    async def dispatch(self, robot: "Robot", message: Message) -> DispatchResult:
        ...
