"""The running robot: receives messages and fans them out to handlers.

Each inbound message is dispatched as its own asyncio task, so a slow route
action only delays the message that triggered it. Within one message,
handlers and their routes are evaluated sequentially in registration order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, List, Optional, Set, Tuple, Union

from core.config import RobotConfig
from core.context import RoutingContext
from core.models import Message, Source
from core.ports import AdapterPort, HandlerPort
from core.routes import DispatchResult
from core.users import UserDirectory
from core.validator import RouteValidator

LOGGER = logging.getLogger(__name__)


def _flatten(strings: Iterable[Any]) -> List[str]:
    flat: List[str] = []
    for item in strings:
        if isinstance(item, (list, tuple)):
            flat.extend(_flatten(item))
        else:
            flat.append(str(item))
    return flat


class Robot:
    """High level API over the adapter, and the message dispatcher."""

    def __init__(
        self,
        config: RobotConfig,
        context: Optional[RoutingContext] = None,
        users: Optional[UserDirectory] = None,
        adapter: Optional[AdapterPort] = None,
    ) -> None:
        self.config = config
        self.name = config.name
        # May change at runtime; messages already built keep their command flag.
        self.mention_name = config.mention_name or config.name
        self.alias = config.alias
        self.user_id = config.user_id
        self.context = context or RoutingContext()
        self.users = users or UserDirectory()
        self.validator = RouteValidator(self.context)
        self.adapter = adapter
        self._handlers: List[HandlerPort] = []
        self._tasks: Set[asyncio.Task] = set()

    @property
    def handlers(self) -> Tuple[HandlerPort, ...]:
        return tuple(self._handlers)

    def register_handler(self, handler: HandlerPort) -> None:
        if any(existing.name == handler.name for existing in self._handlers):
            raise ValueError(f"Handler {handler.name!r} is already registered")
        self._handlers.append(handler)
        LOGGER.debug("Registered handler %s with %s routes", handler.name, len(handler.routes))

    def attach_adapter(self, adapter: AdapterPort) -> None:
        self.adapter = adapter

    def build_message(self, body: Union[str, bytes], source: Source) -> Message:
        return Message.build(body, source, self.mention_name, self.alias)

    async def receive(self, message: Message) -> DispatchResult:
        """Dispatch one incoming message to every registered handler."""

        result = DispatchResult()
        for handler in self.handlers:
            try:
                result.extend(await handler.dispatch(self, message))
            except Exception:
                # Handlers are third-party; one broken handler must not starve the rest.
                LOGGER.exception("Handler %s failed while dispatching a message", handler.name)
        if result.failures:
            LOGGER.warning(
                "Message from %s triggered %s routes with %s failures",
                message.user.id,
                len(result.triggered),
                len(result.failures),
            )
        return result

    def dispatch(self, message: Message) -> "asyncio.Task[DispatchResult]":
        """Schedule ``receive`` as an independent task for this message."""

        task = asyncio.get_running_loop().create_task(self.receive(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every message dispatch still in flight."""

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def send_messages(self, target: Source, *strings: Any) -> None:
        """Send one or more messages to the room of ``target``, else its user."""

        await self._require_adapter().send_messages(target, _flatten(strings))

    send_message = send_messages

    async def set_topic(self, target: Source, topic: str) -> None:
        await self._require_adapter().set_topic(target, topic)

    async def run(self) -> None:
        """Hand control to the adapter until it disconnects."""

        adapter = self._require_adapter()
        try:
            await adapter.run()
        finally:
            await self.shut_down()

    async def shut_down(self) -> None:
        await self.drain()
        if self.adapter is not None:
            await self.adapter.shut_down()

    def _require_adapter(self) -> AdapterPort:
        if self.adapter is None:
            raise RuntimeError("No adapter attached to the robot")
        return self.adapter
