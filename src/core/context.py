"""Routing context shared by the robot and its route validator."""

from __future__ import annotations

from dataclasses import dataclass, field

from core.authorization import Authorization
from core.hooks import HookRegistry


@dataclass
class RoutingContext:
    """Process wide routing state, wired once at startup and passed in."""

    hooks: HookRegistry = field(default_factory=HookRegistry)
    authorization: Authorization = field(default_factory=Authorization)
