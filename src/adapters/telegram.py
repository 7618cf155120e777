"""Telegram adapter built on Telethon, logging in as a bot account."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from telethon import events
from telethon.tl.functions.channels import EditTitleRequest
from telethon.tl.functions.messages import EditChatTitleRequest

from adapters.telegram_mapper import build_source, message_text, peer_for
from client import bot_token, build_client
from core.models import Source

if TYPE_CHECKING:
    from core.robot import Robot

LOGGER = logging.getLogger(__name__)

# Supergroups and channels use -100<channel_id> peer ids.
CHANNEL_PREFIX = "-100"


class TelegramAdapter:
    """Maps Telethon NewMessage events onto robot dispatches."""

    def __init__(self, robot: "Robot", client=None) -> None:
        self._robot = robot
        self._client = client or build_client()

    async def run(self) -> None:
        await self._client.start(bot_token=bot_token())
        me = await self._client.get_me()
        if me is not None and self._robot.user_id is None:
            self._robot.user_id = str(me.id)
        self._client.add_event_handler(self._on_message, events.NewMessage(incoming=True))
        LOGGER.info("Client connected. Listening for incoming messages...")
        await self._client.run_until_disconnected()

    async def _on_message(self, event) -> None:
        try:
            sender = await event.get_sender()
            if sender is None:
                return
            source = build_source(event.message, sender, self._robot.users)
            message = self._robot.build_message(message_text(event.message), source)
        except Exception:
            LOGGER.exception("Error while mapping incoming Telegram message")
            return
        self._robot.dispatch(message)

    async def shut_down(self) -> None:
        if self._client.is_connected():
            await self._client.disconnect()

    async def send_messages(self, target: Source, strings: List[str]) -> None:
        peer = peer_for(target)
        for body in strings:
            await self._client.send_message(peer, body)

    async def set_topic(self, target: Source, topic: str) -> None:
        if target.room is None:
            LOGGER.warning("Cannot set a topic on a private chat with %s", target.user.id)
            return
        if target.room.startswith(CHANNEL_PREFIX):
            channel = await self._client.get_input_entity(int(target.room))
            await self._client(EditTitleRequest(channel=channel, title=topic))
        else:
            await self._client(EditChatTitleRequest(chat_id=abs(int(target.room)), title=topic))
