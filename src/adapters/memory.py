"""In-process adapter that records outbound traffic instead of sending it."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from core.models import Source

if TYPE_CHECKING:
    from core.robot import Robot


@dataclass(frozen=True)
class MessageReceipt:
    """One outbound message as the adapter would have delivered it."""

    target: Source
    body: str


class MemoryAdapter:
    """Adapter for tests and embedding: replies are kept in memory."""

    def __init__(self, robot: Optional["Robot"] = None) -> None:
        self._robot = robot
        self.receipts: List[MessageReceipt] = []
        self.topics: List[tuple[Source, str]] = []
        self._stopped: Optional[asyncio.Event] = None

    @property
    def replies(self) -> List[str]:
        return [receipt.body for receipt in self.receipts]

    async def run(self) -> None:
        self._stopped = asyncio.Event()
        await self._stopped.wait()

    async def shut_down(self) -> None:
        if self._stopped is not None:
            self._stopped.set()

    async def send_messages(self, target: Source, strings: List[str]) -> None:
        self.receipts.extend(MessageReceipt(target=target, body=body) for body in strings)

    async def set_topic(self, target: Source, topic: str) -> None:
        self.topics.append((target, topic))
