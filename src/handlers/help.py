"""Lists the help text of every registered route."""

from __future__ import annotations

from core.routes import Handler

handler = Handler("help")


@handler.route(
    r"^help(?:\s+(.+?))?\s*$",
    command=True,
    help="help [FILTER] - Show help for commands, optionally only those containing FILTER.",
)
async def show_help(robot, response) -> None:
    (text_filter,) = response.match_data
    entries = []
    for registered in robot.handlers:
        for route in registered.routes:
            if not route.help:
                continue
            entry = f"{robot.mention_name}: {route.help}" if route.requires_command else route.help
            if text_filter and text_filter.lower() not in entry.lower():
                continue
            entries.append(entry)

    if not entries:
        await response.reply_privately(f"No help found matching {text_filter}.")
        return
    await response.reply_privately("\n".join(entries))
