"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any chat-network specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re
import unicodedata
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Pattern, Union

if TYPE_CHECKING:
    from core.robot import Robot


def normalize_text(value: Union[str, bytes]) -> str:
    """Force text into a single form before any pattern comparison.

    Bytes are decoded as UTF-8 with invalid sequences replaced, and every
    string is brought to Unicode NFC so composed and decomposed forms of the
    same characters compare equal.
    """

    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    else:
        # Lone surrogates cannot be matched reliably; replace them.
        value = value.encode("utf-8", errors="replace").decode("utf-8")
    return unicodedata.normalize("NFC", value)


@dataclass(frozen=True)
class User:
    """A chat user as seen by the robot."""

    id: str
    name: str
    metadata: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def mention_name(self) -> str:
        return str(self.metadata.get("mention_name") or self.name)


@dataclass(frozen=True)
class Source:
    """Where a message came from, and therefore where replies go.

    A source with a room targets the room; without one it targets the user
    directly and always counts as a private message.
    """

    user: User
    room: Optional[str] = None
    private_message: bool = False

    def __post_init__(self) -> None:
        if self.room is None and not self.private_message:
            object.__setattr__(self, "private_message", True)

    @property
    def target(self) -> Union[str, User]:
        return self.room if self.room is not None else self.user

    def private(self) -> "Source":
        """Return a source addressing the same user without the room."""

        return Source(user=self.user, room=None, private_message=True)


def _command_prefix(mention_name: str, alias: Optional[str]) -> Pattern[str]:
    alternatives = [rf"\s*@?{re.escape(mention_name)}[:,]?\s+"]
    if alias:
        alternatives.append(rf"\s*{re.escape(alias)}(?=\S)")
    return re.compile("^(?:" + "|".join(alternatives) + ")", re.IGNORECASE)


@dataclass(frozen=True)
class Message:
    """An incoming chat message.

    ``body`` is the normalized text used for pattern matching, with any
    command prefix removed. ``raw_body`` is kept exactly as received.
    """

    raw_body: str
    body: str
    source: Source
    is_command: bool

    @classmethod
    def build(
        cls,
        body: Union[str, bytes],
        source: Source,
        mention_name: str,
        alias: Optional[str] = None,
    ) -> "Message":
        raw_body = body if isinstance(body, str) else normalize_text(body)
        text = normalize_text(raw_body)
        is_command = source.private_message
        stripped, count = _command_prefix(normalize_text(mention_name), alias).subn("", text, count=1)
        if count:
            text = stripped
            is_command = True
        return cls(raw_body=raw_body, body=text, source=source, is_command=is_command)

    @property
    def user(self) -> User:
        return self.source.user

    @property
    def room(self) -> Optional[str]:
        return self.source.room

    @property
    def args(self) -> List[str]:
        """Whitespace separated words following the first one."""

        parts = self.body.split()
        return parts[1:]


@dataclass(frozen=True)
class Response:
    """What a route action receives: the message plus the route's match.

    ``match`` is the result the validator already produced for this route, so
    the pattern is not searched again.
    """

    message: Message
    match: re.Match
    robot: "Robot" = field(repr=False, compare=False)

    @property
    def user(self) -> User:
        return self.message.user

    @property
    def room(self) -> Optional[str]:
        return self.message.room

    @property
    def args(self) -> List[str]:
        return self.message.args

    @property
    def match_data(self) -> tuple:
        return self.match.groups()

    async def reply(self, *strings: Any) -> None:
        await self.robot.send_messages(self.message.source, *strings)

    async def reply_privately(self, *strings: Any) -> None:
        await self.robot.send_messages(self.message.source.private(), *strings)
