"""Group based authorization.

Membership sets are stored as frozensets and replaced wholesale on every
change, so readers never take a lock and never see a half-applied update.
Writers serialize on a single lock.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, FrozenSet, Iterable, List, Optional

from core.errors import AuthorizationError
from core.models import User

LOGGER = logging.getLogger(__name__)

ADMIN_GROUP = "admins"


def normalize_group(group: str) -> str:
    return str(group).strip().lower()


class Authorization:
    """Maps group names to the ids of the users in them."""

    def __init__(
        self,
        admins: Iterable[str] = (),
        groups: Optional[Dict[str, Iterable[str]]] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._admins: FrozenSet[str] = frozenset(str(admin) for admin in admins)
        self._groups: Dict[str, FrozenSet[str]] = {}
        for group, user_ids in (groups or {}).items():
            self._groups[normalize_group(group)] = frozenset(str(user_id) for user_id in user_ids)

    def user_is_admin(self, user: User) -> bool:
        return user.id in self._admins

    def user_in_group(self, user: User, group: str) -> bool:
        """Return True when ``user`` belongs to ``group``.

        Admins are members of the implicit ``admins`` group, which cannot be
        edited at runtime.
        """

        group = normalize_group(group)
        if group == ADMIN_GROUP:
            return self.user_is_admin(user)
        return user.id in self._groups.get(group, frozenset())

    def add_user_to_group(self, user: User, group: str, requester: Optional[User] = None) -> bool:
        """Add ``user`` to ``group``; returns False when already a member.

        When ``requester`` is given it must be an admin.
        """

        group = self._writable_group(group, requester)
        with self._lock:
            members = self._groups.get(group, frozenset())
            if user.id in members:
                return False
            self._groups[group] = members | {user.id}
        LOGGER.info("Added user %s to group %s", user.id, group)
        return True

    def remove_user_from_group(self, user: User, group: str, requester: Optional[User] = None) -> bool:
        """Remove ``user`` from ``group``; returns False when not a member."""

        group = self._writable_group(group, requester)
        with self._lock:
            members = self._groups.get(group, frozenset())
            if user.id not in members:
                return False
            remaining = members - {user.id}
            if remaining:
                self._groups[group] = remaining
            else:
                del self._groups[group]
        LOGGER.info("Removed user %s from group %s", user.id, group)
        return True

    def groups(self) -> List[str]:
        return sorted(self._groups)

    def groups_with_users(self) -> Dict[str, FrozenSet[str]]:
        """Snapshot of the whole membership table."""

        return dict(self._groups)

    def _writable_group(self, group: str, requester: Optional[User]) -> str:
        if requester is not None and not self.user_is_admin(requester):
            raise AuthorizationError("Only administrators can change group membership.")
        group = normalize_group(group)
        if not group:
            raise ValueError("Group name must not be empty")
        if group == ADMIN_GROUP:
            raise AuthorizationError("The admins group is managed through configuration.")
        return group
