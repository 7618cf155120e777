"""Application entry point for the courier chat robot."""

from __future__ import annotations

import argparse
import asyncio
import importlib
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Iterable, List, Mapping, Optional

from art import tprint
from dotenv import load_dotenv

from adapters import build_adapter
from core.authorization import Authorization
from core.config import RobotConfig
from core.context import RoutingContext
from core.errors import UnknownAdapterError
from core.ports import HandlerPort
from core.robot import Robot
from handlers import BUILTIN_HANDLERS

NAME = "COURIER"
FONT = "tarty-1"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(config: dict, project_root: str) -> None:
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/courier.log")
        if not os.path.isabs(path):
            path = os.path.join(project_root, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def load_handlers(module_paths: Iterable[str]) -> List[HandlerPort]:
    """Import plugin modules and collect their module-level ``handler``."""

    loaded: List[HandlerPort] = []
    for path in module_paths:
        module = importlib.import_module(path)
        plugin_handler = getattr(module, "handler", None)
        if plugin_handler is None:
            raise RuntimeError(f"Plugin module {path} does not define a 'handler'")
        loaded.append(plugin_handler)
    return loaded


def build_robot(
    config: RobotConfig,
    groups: Optional[Mapping[str, Iterable[str]]] = None,
    plugins: Iterable[str] = (),
) -> Robot:
    """Wire the single routing context and register built-in and plugin handlers."""

    context = RoutingContext(authorization=Authorization(admins=config.admins, groups=dict(groups or {})))
    robot = Robot(config, context=context)
    for registered in [*BUILTIN_HANDLERS, *load_handlers(plugins)]:
        robot.register_handler(registered)
    return robot


def _robot_from_settings() -> Robot:
    import settings

    config = RobotConfig(
        name=settings.ROBOT_NAME,
        mention_name=settings.MENTION_NAME,
        alias=settings.ALIAS,
        adapter=settings.ADAPTER,
        admins=settings.ADMINS,
    )
    return build_robot(config, groups=settings.GROUPS, plugins=settings.HANDLERS)


def _run() -> None:
    import settings

    _print_banner()
    _configure_logging(settings.LOGGING or {}, settings.PROJECT_ROOT)
    LOGGER.info("Starting courier")

    robot = _robot_from_settings()
    LOGGER.info("%s handlers are loaded", len(robot.handlers))

    try:
        robot.attach_adapter(build_adapter(robot.config.adapter, robot))
    except UnknownAdapterError as exc:
        LOGGER.critical("%s", exc)
        sys.exit(1)
    LOGGER.info("Selected adapter - %s", robot.config.adapter)

    try:
        asyncio.run(robot.run())
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")


def _routes() -> None:
    robot = _robot_from_settings()
    for registered in robot.handlers:
        print(registered.name)
        for route in registered.routes:
            flags = []
            if route.requires_command:
                flags.append("command")
            if route.required_groups:
                flags.append("groups=" + ",".join(sorted(route.required_groups)))
            suffix = f" [{'; '.join(flags)}]" if flags else ""
            print(f"  {route.name}: /{route.pattern.pattern}/{suffix}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="courier")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the robot")
    subparsers.add_parser("routes", help="List loaded handlers and their chat routes")

    args = parser.parse_args(argv)
    if args.command == "routes":
        _routes()
        return
    _run()


if __name__ == "__main__":
    main()
