"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class RobotConfig:
    """Identity and wiring settings for a robot."""

    name: str
    mention_name: Optional[str] = None
    alias: Optional[str] = None
    adapter: str = "shell"
    admins: FrozenSet[str] = frozenset()
    # Chat network id of the robot's own account, when the adapter knows it.
    user_id: Optional[str] = None
