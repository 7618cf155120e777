from __future__ import annotations

import pytest

from core.authorization import Authorization
from core.errors import AuthorizationError
from core.models import User

ADMIN = User(id="1", name="Admin")
ALICE = User(id="2", name="Alice")


def test_initial_groups_are_loaded_case_insensitively() -> None:
    authorization = Authorization(groups={"Ops": ["2"]})
    assert authorization.user_in_group(ALICE, "ops")
    assert authorization.user_in_group(ALICE, "OPS")
    assert not authorization.user_in_group(ADMIN, "ops")


def test_admins_group_is_implicit() -> None:
    authorization = Authorization(admins=["1"])
    assert authorization.user_in_group(ADMIN, "admins")
    assert not authorization.user_in_group(ALICE, "admins")


def test_add_and_remove_membership() -> None:
    authorization = Authorization(admins=["1"])
    assert authorization.add_user_to_group(ALICE, "ops", requester=ADMIN)
    assert not authorization.add_user_to_group(ALICE, "ops", requester=ADMIN)
    assert authorization.groups() == ["ops"]

    assert authorization.remove_user_from_group(ALICE, "ops", requester=ADMIN)
    assert not authorization.remove_user_from_group(ALICE, "ops", requester=ADMIN)
    assert authorization.groups() == []


def test_non_admin_cannot_mutate_groups() -> None:
    authorization = Authorization(admins=["1"])
    with pytest.raises(AuthorizationError):
        authorization.add_user_to_group(ADMIN, "ops", requester=ALICE)
    assert not authorization.user_in_group(ADMIN, "ops")


def test_admins_group_is_not_editable() -> None:
    authorization = Authorization(admins=["1"])
    with pytest.raises(AuthorizationError):
        authorization.add_user_to_group(ALICE, "admins", requester=ADMIN)


def test_snapshot_is_not_affected_by_later_changes() -> None:
    authorization = Authorization(groups={"ops": ["2"]})
    snapshot = authorization.groups_with_users()
    authorization.add_user_to_group(ADMIN, "ops")
    assert snapshot["ops"] == frozenset({"2"})
    assert authorization.groups_with_users()["ops"] == frozenset({"1", "2"})
