"""Chat commands for managing authorization groups.

Only admins may change membership; anyone may list it.
"""

from __future__ import annotations

from core.errors import AuthorizationError
from core.routes import Handler

handler = Handler("authorization")


def _resolve(response, identifier: str):
    return response.robot.users.fuzzy_find(identifier)


@handler.route(
    r"^auth\s+add\s+(\S+)\s+(\S+)\s*$",
    command=True,
    help="auth add USER GROUP - Add USER to GROUP. Admins only.",
)
async def add(robot, response) -> None:
    identifier, group = response.match_data
    user = _resolve(response, identifier)
    if user is None:
        await response.reply(f"No user found with id or name {identifier}.")
        return
    try:
        added = robot.context.authorization.add_user_to_group(user, group, requester=response.user)
    except AuthorizationError as exc:
        await response.reply(str(exc))
        return
    if added:
        await response.reply(f"{user.name} was added to {group.lower()}.")
    else:
        await response.reply(f"{user.name} was already in {group.lower()}.")


@handler.route(
    r"^auth\s+remove\s+(\S+)\s+(\S+)\s*$",
    command=True,
    help="auth remove USER GROUP - Remove USER from GROUP. Admins only.",
)
async def remove(robot, response) -> None:
    identifier, group = response.match_data
    user = _resolve(response, identifier)
    if user is None:
        await response.reply(f"No user found with id or name {identifier}.")
        return
    try:
        removed = robot.context.authorization.remove_user_from_group(user, group, requester=response.user)
    except AuthorizationError as exc:
        await response.reply(str(exc))
        return
    if removed:
        await response.reply(f"{user.name} was removed from {group.lower()}.")
    else:
        await response.reply(f"{user.name} was not in {group.lower()}.")


@handler.route(
    r"^auth\s+list(?:\s+(\S+))?\s*$",
    command=True,
    help="auth list [GROUP] - List authorization groups and the users in them.",
)
async def list_groups(robot, response) -> None:
    (wanted,) = response.match_data
    table = robot.context.authorization.groups_with_users()
    if wanted:
        wanted = wanted.lower()
        table = {group: members for group, members in table.items() if group == wanted}
        if not table:
            await response.reply(f"There is no authorization group named {wanted}.")
            return
    if not table:
        await response.reply("There are no authorization groups yet.")
        return

    lines = []
    for group in sorted(table):
        names = []
        for user_id in sorted(table[group]):
            user = robot.users.find_by_id(user_id)
            names.append(user.name if user else user_id)
        lines.append(f"{group}: {', '.join(names)}")
    await response.reply("\n".join(lines))
