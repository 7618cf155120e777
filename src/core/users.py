"""In-memory user directory.

Users are created the first time an adapter sees them and are kept for the
whole process lifetime. A later sighting may refresh metadata, which replaces
the cached frozen ``User`` with a new one.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from core.models import User


class UserDirectory:
    """Cache of known users, safe to share between concurrent dispatches."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: Dict[str, User] = {}

    def create(self, user_id: Any, name: Optional[str] = None, **metadata: Any) -> User:
        """Return the user for ``user_id``, creating or refreshing it."""

        key = str(user_id)
        with self._lock:
            existing = self._by_id.get(key)
            if existing is None:
                user = User(id=key, name=name or key, metadata=dict(metadata))
            else:
                merged = {**existing.metadata, **metadata}
                if name is None and merged == dict(existing.metadata):
                    return existing
                user = User(id=key, name=name or existing.name, metadata=merged)
            self._by_id[key] = user
            return user

    def find_by_id(self, user_id: Any) -> Optional[User]:
        return self._by_id.get(str(user_id))

    def find_by_name(self, name: str) -> Optional[User]:
        for user in list(self._by_id.values()):
            if user.name == name:
                return user
        return None

    def find_by_mention_name(self, mention_name: str) -> Optional[User]:
        wanted = mention_name.lstrip("@").lower()
        for user in list(self._by_id.values()):
            if user.mention_name.lower() == wanted:
                return user
        return None

    def fuzzy_find(self, identifier: str) -> Optional[User]:
        """Look a user up by id, then mention name, then display name."""

        return (
            self.find_by_id(identifier)
            or self.find_by_mention_name(identifier)
            or self.find_by_name(identifier)
        )

    def __len__(self) -> int:
        return len(self._by_id)
