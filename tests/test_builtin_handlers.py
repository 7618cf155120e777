from __future__ import annotations

from adapters.testing import RobotHarness
from app import build_robot
from core.config import RobotConfig


def _harness() -> RobotHarness:
    robot = build_robot(RobotConfig(name="Bot", mention_name="bot", admins=frozenset({"1"})))
    harness = RobotHarness(robot, user=robot.users.create("1", "Admin"))
    robot.users.create("2", "Alice", mention_name="alice")
    return harness


def _alice(harness: RobotHarness):
    return harness.robot.users.find_by_id("2")


def _command(harness: RobotHarness, body: str, as_user=None) -> list[str]:
    before = len(harness.replies)
    harness.send_command(body, as_user=as_user)
    return harness.replies[before:]


def test_auth_routes() -> None:
    harness = _harness()
    harness.routes_command("auth add alice ops").to("add")
    harness.routes_command("auth remove alice ops").to("remove")
    harness.routes_command("auth list").to("list_groups")
    harness.routes_command("auth list ops").to("list_groups")
    harness.does_not_route("auth add alice ops").to("add")
    harness.does_not_route_command("auth add alice").to("add")


def test_admin_can_add_and_remove_users() -> None:
    harness = _harness()
    alice = _alice(harness)
    authorization = harness.robot.context.authorization

    assert _command(harness, "auth add alice Ops") == ["Alice was added to ops."]
    assert authorization.user_in_group(alice, "ops")
    assert _command(harness, "auth add 2 ops") == ["Alice was already in ops."]

    assert _command(harness, "auth remove Alice ops") == ["Alice was removed from ops."]
    assert not authorization.user_in_group(alice, "ops")
    assert _command(harness, "auth remove alice ops") == ["Alice was not in ops."]


def test_non_admin_cannot_add_users() -> None:
    harness = _harness()
    replies = _command(harness, "auth add alice ops", as_user=_alice(harness))
    assert replies == ["Only administrators can change group membership."]
    assert harness.robot.context.authorization.groups() == []


def test_admins_group_cannot_be_edited_from_chat() -> None:
    harness = _harness()
    assert _command(harness, "auth add alice admins") == ["The admins group is managed through configuration."]
    assert _command(harness, "auth remove 1 admins") == ["The admins group is managed through configuration."]


def test_unknown_user_is_reported() -> None:
    harness = _harness()
    assert _command(harness, "auth add nobody ops") == ["No user found with id or name nobody."]


def test_auth_requires_command() -> None:
    harness = _harness()
    result = harness.send_message("auth add alice ops")
    assert result.triggered == []
    assert harness.replies == []


def test_auth_list() -> None:
    harness = _harness()
    assert _command(harness, "auth list") == ["There are no authorization groups yet."]
    _command(harness, "auth add alice ops")
    _command(harness, "auth add 1 dev")
    assert _command(harness, "auth list") == ["dev: Admin\nops: Alice"]
    assert _command(harness, "auth list ops") == ["ops: Alice"]
    assert _command(harness, "auth list qa") == ["There is no authorization group named qa."]


def test_help_lists_command_routes_privately() -> None:
    harness = _harness()
    harness.send_command("help auth add")

    receipt = harness.message_receipts[-1]
    assert receipt.target.room is None
    assert receipt.body == "bot: auth add USER GROUP - Add USER to GROUP. Admins only."


def test_help_without_matches() -> None:
    harness = _harness()
    assert _command(harness, "help zzz") == ["No help found matching zzz."]
