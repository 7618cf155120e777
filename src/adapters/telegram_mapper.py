"""Telegram-to-core message mapping.

This keeps Telethon-specific details out of the core.
"""

from __future__ import annotations

from typing import Any, Optional

from core.models import Source, User
from core.users import UserDirectory


def display_name(sender: Any) -> str:
    """Best human-readable name for a Telethon user or chat entity."""

    first = getattr(sender, "first_name", None)
    last = getattr(sender, "last_name", None)
    if first or last:
        return " ".join(part for part in [first, last] if part)
    title = getattr(sender, "title", None)
    if title:
        return str(title)
    username = getattr(sender, "username", None)
    if username:
        return str(username)
    return str(getattr(sender, "id", "unknown"))


def user_from_sender(sender: Any, users: UserDirectory) -> User:
    metadata = {}
    username = getattr(sender, "username", None)
    if isinstance(username, str) and username:
        metadata["mention_name"] = username
    if getattr(sender, "bot", False):
        metadata["bot"] = True
    return users.create(getattr(sender, "id"), display_name(sender), **metadata)


def room_from_message(message: Any) -> Optional[str]:
    """Group and channel messages carry a room; private chats do not."""

    if getattr(message, "is_private", False):
        return None
    chat_id = getattr(message, "chat_id", None)
    if chat_id is None:
        return None
    return str(chat_id)


def build_source(message: Any, sender: Any, users: UserDirectory) -> Source:
    """Build a core Source from a Telethon Message and its sender."""

    user = user_from_sender(sender, users)
    room = room_from_message(message)
    return Source(user=user, room=room, private_message=room is None)


def message_text(message: Any) -> str:
    return getattr(message, "raw_text", None) or ""


def peer_for(target: Source) -> int:
    """Telethon peer id for a reply: the room, else the user directly."""

    if target.room is not None:
        return int(target.room)
    return int(target.user.id)
