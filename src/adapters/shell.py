"""Interactive console adapter.

Every line typed is a private message from a fixed local user, so all input
is treated as a command. Replies are rendered with rich.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, List, Optional

from rich.console import Console

from core.models import Source

if TYPE_CHECKING:
    from core.robot import Robot

LOGGER = logging.getLogger(__name__)

SHELL_USER_ID = "1"
SHELL_USER_NAME = "Shell User"
EXIT_WORDS = {"exit", "quit"}


class ShellAdapter:
    """Reads chat lines from stdin and prints replies to the console."""

    def __init__(
        self,
        robot: "Robot",
        console: Optional[Console] = None,
        read_line: Optional[Callable[[], str]] = None,
    ) -> None:
        self._robot = robot
        self._console = console or Console()
        self._read_line = read_line or self._prompt
        self._running = False

    def _prompt(self) -> str:
        return self._console.input(f"[bold]{self._robot.name} >[/bold] ")

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        user = self._robot.users.create(SHELL_USER_ID, SHELL_USER_NAME)
        source = Source(user=user)
        self._running = True
        LOGGER.info("Shell adapter started; type 'exit' to quit")
        while self._running:
            try:
                line = await loop.run_in_executor(None, self._read_line)
            except EOFError:
                break
            line = line.strip()
            if not line:
                continue
            if line.lower() in EXIT_WORDS:
                break
            # Awaited so replies print before the next prompt.
            await self._robot.dispatch(self._robot.build_message(line, source))
        self._running = False

    async def shut_down(self) -> None:
        self._running = False

    async def send_messages(self, target: Source, strings: List[str]) -> None:
        for body in strings:
            self._console.print(body, style="green", markup=False, highlight=False)

    async def set_topic(self, target: Source, topic: str) -> None:
        self._console.print(f"Topic set: {topic}", style="yellow", markup=False)
