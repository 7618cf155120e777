"""Static configuration for courier.

Robot identity, adapter choice, initial groups, plugins and logging live in a
single JSON file for quick edits without touching Python. Secrets come from
the environment (or a .env file).
"""

import json
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

# The config file can be swapped per deployment without moving files around.
CONFIG_PATH = os.getenv("COURIER_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Robot identity. The mention name defaults to the display name.
_robot = _CONFIG.get("robot", {})
ROBOT_NAME = _robot.get("name", "Courier")
MENTION_NAME = _robot.get("mention_name") or ROBOT_NAME
ALIAS = _robot.get("alias")
ADAPTER = _robot.get("adapter", "shell")
ADMINS = frozenset(str(admin) for admin in _robot.get("admins", []))

# Initial group membership: group name -> list of user ids.
GROUPS = {group: [str(user_id) for user_id in members] for group, members in _CONFIG.get("groups", {}).items()}

# Plugin modules, each exposing a module-level ``handler``.
HANDLERS = list(_CONFIG.get("handlers", []))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
