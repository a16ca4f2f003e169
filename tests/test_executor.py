"""Tests for sequential and bounded-concurrent tool execution."""

from __future__ import annotations

import asyncio
from typing import List

import pytest

from ollama_tool_bridge.cancellation import CancellationToken
from ollama_tool_bridge.exceptions import OperationCancelledError
from ollama_tool_bridge.tools.executor import execute_all, execute_one, stringify_result
from ollama_tool_bridge.tools.models import RawToolCall, ToolExecutionResult
from ollama_tool_bridge.tools.tool_factory import ToolFactory

pytestmark = pytest.mark.asyncio


def _call(name: str, **parameters) -> RawToolCall:
    return RawToolCall(name=name, parameters=parameters)


async def test_calls_run_in_order_and_outcomes_align() -> None:
    order: List[str] = []

    async def slow(tag: str) -> str:
        await asyncio.sleep(0.02)
        order.append(tag)
        return f"slow:{tag}"

    def fast(tag: str) -> str:
        order.append(tag)
        return f"fast:{tag}"

    factory = ToolFactory()
    factory.register_tool(slow, name="slow", description="slow")
    factory.register_tool(fast, name="fast", description="fast")

    outcomes = await execute_all(
        [_call("slow", tag="1"), _call("fast", tag="2"), _call("slow", tag="3")],
        factory,
    )

    assert order == ["1", "2", "3"]
    assert [o.result for o in outcomes] == ["slow:1", "fast:2", "slow:3"]
    assert all(o.succeeded for o in outcomes)


async def test_unknown_tool_becomes_error_outcome_and_batch_continues() -> None:
    factory = ToolFactory()
    factory.register_tool(lambda: "here", name="known", description="k")

    outcomes = await execute_all([_call("missing"), _call("known")], factory)

    assert outcomes[0].error == "Tool 'missing' not found"
    assert outcomes[0].name == "missing"
    assert outcomes[1].result == "here"
    assert factory.get_tool_usage_counts() == {"known": 1}


async def test_tool_exception_is_captured() -> None:
    def boom() -> str:
        raise RuntimeError("disk on fire")

    factory = ToolFactory()
    factory.register_tool(boom, name="boom", description="b")
    factory.register_tool(lambda: "after", name="after", description="a")

    outcomes = await execute_all([_call("boom"), _call("after")], factory)

    assert outcomes[0].error == "disk on fire"
    assert not outcomes[0].succeeded
    assert outcomes[1].result == "after"


async def test_bad_arguments_are_captured() -> None:
    def needs_path(path: str) -> str:
        return path

    factory = ToolFactory()
    factory.register_tool(needs_path, name="p", description="p")

    outcome = await execute_one(_call("p", wrong=1), factory)
    assert outcome.error is not None
    assert "wrong" in outcome.error


async def test_tool_execution_result_error_is_reported() -> None:
    factory = ToolFactory()
    factory.register_tool(
        lambda: ToolExecutionResult(content="partial", error="quota exceeded"),
        name="q",
        description="q",
    )

    outcome = await execute_one(_call("q"), factory)
    assert outcome.error == "quota exceeded"
    assert outcome.result == "partial"


async def test_independent_calls_run_concurrently_within_bound() -> None:
    active = 0
    peak = 0

    async def probe() -> str:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.02)
        active -= 1
        return "ok"

    factory = ToolFactory()
    factory.register_tool(probe, name="probe", description="p", independent=True)

    outcomes = await execute_all(
        [_call("probe") for _ in range(5)], factory, max_concurrency=2
    )

    assert len(outcomes) == 5
    assert peak == 2


async def test_dependent_call_waits_for_preceding_batch() -> None:
    order: List[str] = []

    async def read(tag: str) -> str:
        await asyncio.sleep(0.02)
        order.append(tag)
        return tag

    def write(tag: str) -> str:
        order.append(tag)
        return tag

    factory = ToolFactory()
    factory.register_tool(read, name="read", description="r", independent=True)
    factory.register_tool(write, name="write", description="w")

    outcomes = await execute_all(
        [_call("read", tag="r1"), _call("read", tag="r2"), _call("write", tag="w")],
        factory,
        max_concurrency=4,
    )

    assert order[-1] == "w"
    assert [o.result for o in outcomes] == ["r1", "r2", "w"]


async def test_default_concurrency_is_sequential_even_for_independent_tools() -> None:
    active = 0
    peak = 0

    async def probe() -> str:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return "ok"

    factory = ToolFactory()
    factory.register_tool(probe, name="probe", description="p", independent=True)

    await execute_all([_call("probe") for _ in range(3)], factory)
    assert peak == 1


async def test_cancellation_aborts_the_batch() -> None:
    started = asyncio.Event()

    async def hang() -> str:
        started.set()
        await asyncio.sleep(10)
        return "never"

    factory = ToolFactory()
    factory.register_tool(hang, name="hang", description="h")
    factory.register_tool(lambda: "later", name="later", description="l")
    token = CancellationToken()

    async def _cancel_when_started() -> None:
        await started.wait()
        token.cancel("user pressed stop")

    canceller = asyncio.create_task(_cancel_when_started())
    with pytest.raises(OperationCancelledError, match="user pressed stop"):
        await execute_all([_call("hang"), _call("later")], factory, cancel_token=token)
    await canceller
    assert factory.get_tool_usage_counts()["later"] == 0


async def test_stringify_result() -> None:
    assert stringify_result("text") == "text"
    assert stringify_result(ToolExecutionResult(content="c", payload=[1])) == "c"
    assert stringify_result({"a": 1}) == '{"a": 1}'
    assert stringify_result(None) == "null"
    assert stringify_result({1, 2}).startswith("{")


async def test_exception_without_message_is_still_an_error() -> None:
    def bad() -> str:
        raise TypeError()

    def worse() -> str:
        raise RuntimeError()

    factory = ToolFactory()
    factory.register_tool(bad, name="bad", description="b")
    factory.register_tool(worse, name="worse", description="w")

    outcomes = await execute_all([_call("bad"), _call("worse")], factory)

    assert [o.error for o in outcomes] == ["TypeError", "RuntimeError"]
    assert not any(o.succeeded for o in outcomes)


async def test_empty_error_on_tool_execution_result_counts_as_failure() -> None:
    factory = ToolFactory()
    factory.register_tool(
        lambda: ToolExecutionResult(content="half done", error=""),
        name="q",
        description="q",
    )

    outcome = await execute_one(_call("q"), factory)
    assert outcome.error == ""
    assert outcome.result == "half done"
    assert not outcome.succeeded
