from __future__ import annotations

import asyncio
import re
import threading

from adapters.memory import MemoryAdapter
from core.authorization import Authorization
from core.config import RobotConfig
from core.context import RoutingContext
from core.errors import ActionError, HookExecutionError
from core.hooks import VALIDATE_ROUTE
from core.models import Source, User
from core.robot import Robot
from core.routes import Handler

ALICE = User(id="2", name="Alice")
OPS_USER = User(id="3", name="Olga")


def _robot(context: "RoutingContext | None" = None) -> Robot:
    robot = Robot(RobotConfig(name="Bot", mention_name="bot"), context=context)
    robot.attach_adapter(MemoryAdapter(robot))
    return robot


def _message(robot: Robot, body: str, user: User = ALICE):
    return robot.build_message(body, Source(user=user, room="lobby"))


def test_fan_out_across_handlers_in_registration_order() -> None:
    robot = _robot()
    calls: list[str] = []
    first = Handler("first")
    second = Handler("second")
    first.route(r"ping", lambda robot, response: calls.append("first"))
    second.route(r"ping", lambda robot, response: calls.append("second"))
    robot.register_handler(first)
    robot.register_handler(second)

    result = asyncio.run(robot.receive(_message(robot, "ping")))

    assert calls == ["first", "second"]
    assert [route.name for route in result.triggered] == ["<lambda>", "<lambda>"]
    assert result.failures == []


def test_multiple_routes_in_one_handler_all_fire() -> None:
    robot = _robot()
    calls: list[str] = []
    handler = Handler("many")
    handler.route(r"ping", lambda robot, response: calls.append("a"), name="a")
    handler.route(r"pi", lambda robot, response: calls.append("b"), name="b")
    handler.route(r"pong", lambda robot, response: calls.append("c"), name="c")
    robot.register_handler(handler)

    asyncio.run(robot.receive(_message(robot, "ping")))

    assert calls == ["a", "b"]


def test_duplicate_handler_names_are_rejected() -> None:
    robot = _robot()
    robot.register_handler(Handler("dup"))
    try:
        robot.register_handler(Handler("dup"))
    except ValueError:
        pass
    else:
        raise AssertionError("expected ValueError")


def test_end_to_end_deploy_route() -> None:
    context = RoutingContext(authorization=Authorization(groups={"ops": ["3"]}))
    robot = _robot(context)
    handler = Handler("deploy")
    captured: list[str] = []

    @handler.route(r"deploy (\w+)", command=True, restrict_to={"ops"})
    async def deploy(robot, response) -> None:
        captured.append(response.match_data[0])
        await response.reply(f"Deploying {response.match_data[0]}")

    robot.register_handler(handler)

    asyncio.run(robot.receive(_message(robot, "bot: deploy staging", user=OPS_USER)))
    asyncio.run(robot.receive(_message(robot, "bot: deploy staging", user=ALICE)))

    assert captured == ["staging"]
    assert robot.adapter.replies == ["Deploying staging"]
    assert robot.adapter.receipts[0].target.room == "lobby"


def test_self_message_never_routes() -> None:
    robot = _robot()
    handler = Handler("echo")
    calls: list[str] = []
    handler.route(r"ping", lambda robot, response: calls.append("ping"))
    robot.register_handler(handler)

    result = asyncio.run(robot.receive(_message(robot, "ping", user=User(id="9", name="Bot"))))

    assert calls == []
    assert result.triggered == []


def test_failing_action_does_not_stop_siblings() -> None:
    robot = _robot()
    calls: list[str] = []
    broken = Handler("broken")
    healthy = Handler("healthy")

    def explode(robot, response) -> None:
        raise RuntimeError("boom")

    broken.route(r"ping", explode)
    broken.route(r"ping", lambda robot, response: calls.append("same-handler"), name="after")
    healthy.route(r"ping", lambda robot, response: calls.append("other-handler"), name="other")
    robot.register_handler(broken)
    robot.register_handler(healthy)

    result = asyncio.run(robot.receive(_message(robot, "ping")))

    assert calls == ["same-handler", "other-handler"]
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert isinstance(failure, ActionError)
    assert failure.route.name == "explode"
    assert isinstance(failure.cause, RuntimeError)


def test_failing_hook_rejects_route_and_is_reported() -> None:
    context = RoutingContext()
    robot = _robot(context)
    calls: list[str] = []
    handler = Handler("guarded")
    handler.route(r"ping", lambda robot, response: calls.append("ping"))
    robot.register_handler(handler)

    def broken(**payload) -> bool:
        raise RuntimeError("hook down")

    context.hooks.register(VALIDATE_ROUTE, broken)

    result = asyncio.run(robot.receive(_message(robot, "ping")))

    assert calls == []
    assert result.triggered == []
    assert len(result.failures) == 1
    assert isinstance(result.failures[0], HookExecutionError)


def test_hook_veto_then_removal() -> None:
    context = RoutingContext()
    robot = _robot(context)
    calls: list[str] = []
    handler = Handler("guarded")
    handler.route(r"ping", lambda robot, response: calls.append("ping"))
    robot.register_handler(handler)

    def allow(**payload) -> bool:
        return True

    def deny(**payload) -> bool:
        return False

    context.hooks.register(VALIDATE_ROUTE, allow)
    context.hooks.register(VALIDATE_ROUTE, deny)
    asyncio.run(robot.receive(_message(robot, "ping")))
    assert calls == []

    context.hooks.unregister(VALIDATE_ROUTE, deny)
    asyncio.run(robot.receive(_message(robot, "ping")))
    assert calls == ["ping"]


def test_broken_handler_does_not_block_others() -> None:
    robot = _robot()
    calls: list[str] = []

    class BrokenHandler:
        name = "broken"
        routes = ()

        async def dispatch(self, robot, message):
            raise RuntimeError("broken plugin")

    healthy = Handler("healthy")
    healthy.route(r"ping", lambda robot, response: calls.append("ping"))
    robot.register_handler(BrokenHandler())
    robot.register_handler(healthy)

    asyncio.run(robot.receive(_message(robot, "ping")))

    assert calls == ["ping"]


def test_hanging_action_does_not_stall_other_messages() -> None:
    robot = _robot()
    handler = Handler("slow")
    release = None
    fast_done: list[str] = []

    @handler.route(r"slow")
    async def slow(robot, response) -> None:
        await release.wait()

    @handler.route(r"fast")
    async def fast(robot, response) -> None:
        fast_done.append(response.message.body)

    robot.register_handler(handler)

    async def scenario() -> None:
        nonlocal release
        release = asyncio.Event()
        slow_task = robot.dispatch(_message(robot, "slow"))
        fast_task = robot.dispatch(_message(robot, "fast"))
        await asyncio.wait_for(fast_task, timeout=1)
        assert fast_done == ["fast"]
        assert not slow_task.done()
        release.set()
        await robot.drain()
        assert slow_task.done()

    asyncio.run(scenario())


def test_send_messages_flattens_and_targets_source() -> None:
    robot = _robot()
    source = Source(user=ALICE, room="lobby")

    asyncio.run(robot.send_messages(source, "one", ["two", ("three",)]))
    asyncio.run(robot.set_topic(source, "release day"))

    assert robot.adapter.replies == ["one", "two", "three"]
    assert robot.adapter.topics == [(source, "release day")]


def test_reply_privately_drops_room() -> None:
    robot = _robot()
    handler = Handler("whisper")

    @handler.route(r"secret")
    async def whisper(robot, response) -> None:
        await response.reply_privately("psst")

    robot.register_handler(handler)
    asyncio.run(robot.receive(_message(robot, "secret")))

    receipt = robot.adapter.receipts[0]
    assert receipt.target.room is None
    assert receipt.target.user == ALICE


def test_command_flag_survives_mention_name_change() -> None:
    robot = _robot()
    message = _message(robot, "bot: ping")
    robot.mention_name = "other"
    assert message.is_command
    assert robot.build_message("bot: ping", message.source).is_command is False


def test_blocking_plain_action_does_not_stall_other_messages() -> None:
    robot = _robot()
    handler = Handler("blocking")
    release = threading.Event()
    fast_done: list[str] = []

    def block(robot, response) -> None:
        release.wait(timeout=5)

    @handler.route(r"fast")
    async def fast(robot, response) -> None:
        fast_done.append(response.message.body)

    handler.route(r"block", block)
    robot.register_handler(handler)

    async def scenario() -> None:
        blocked_task = robot.dispatch(_message(robot, "block"))
        await asyncio.sleep(0)
        fast_task = robot.dispatch(_message(robot, "fast"))
        await asyncio.wait_for(fast_task, timeout=1)
        assert fast_done == ["fast"]
        assert not blocked_task.done()
        release.set()
        await robot.drain()
        assert blocked_task.done()

    try:
        asyncio.run(scenario())
    finally:
        release.set()


class CountingPattern:
    def __init__(self, pattern: str) -> None:
        self._compiled = re.compile(pattern)
        self.pattern = pattern
        self.searches = 0

    def search(self, text: str):
        self.searches += 1
        return self._compiled.search(text)


def test_pattern_is_searched_once_per_route_and_message() -> None:
    context = RoutingContext(authorization=Authorization(groups={"ops": ["3"]}))
    robot = _robot(context)
    handler = Handler("deploy")
    pattern = CountingPattern(r"deploy (\w+)")
    captured: list[tuple] = []

    async def deploy(robot, response) -> None:
        captured.append(response.match_data)
        captured.append(response.match_data)

    handler.route(pattern, deploy, command=True, restrict_to="ops")
    robot.register_handler(handler)

    asyncio.run(robot.receive(_message(robot, "bot: deploy staging", user=OPS_USER)))

    assert captured == [("staging",), ("staging",)]
    assert pattern.searches == 1
