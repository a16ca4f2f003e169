"""Executes parsed tool calls against a :class:`ToolFactory`."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, List, Optional, Sequence

from ..cancellation import CancellationToken, run_with_token
from ..exceptions import OperationCancelledError
from .models import RawToolCall, ToolExecutionResult, ToolOutcome
from .tool_factory import ToolFactory

logger = logging.getLogger(__name__)


def stringify_result(result: Any) -> str:
    """Coerce a tool's return value into the text shown to the model."""
    if isinstance(result, str):
        return result
    if isinstance(result, ToolExecutionResult):
        return result.content
    try:
        return json.dumps(result)
    except (TypeError, ValueError):
        return str(result)


async def execute_one(
    call: RawToolCall,
    factory: ToolFactory,
    *,
    cancel_token: Optional[CancellationToken] = None,
) -> ToolOutcome:
    """Run a single call. Every failure except cancellation becomes an outcome."""
    registration = factory.get_registration(call.name)
    if registration is None:
        logger.error("Tool '%s' requested by the model is not registered.", call.name)
        return ToolOutcome(name=call.name, error=f"Tool '{call.name}' not found")

    try:
        result = await run_with_token(
            factory.invoke(call.name, call.parameters), cancel_token
        )
    except OperationCancelledError:
        raise
    except TypeError as e:
        # Usually the model passed arguments that do not match the signature
        logger.error("Argument error for tool '%s': %s", call.name, e)
        return ToolOutcome(name=call.name, error=str(e) or type(e).__name__)
    except Exception as e:
        logger.error("Tool '%s' failed: %s", call.name, e, exc_info=True)
        return ToolOutcome(name=call.name, error=str(e) or type(e).__name__)

    if isinstance(result, ToolExecutionResult) and result.error is not None:
        return ToolOutcome(name=call.name, result=result.content, error=result.error)
    return ToolOutcome(name=call.name, result=stringify_result(result))


async def execute_all(
    calls: Sequence[RawToolCall],
    factory: ToolFactory,
    *,
    cancel_token: Optional[CancellationToken] = None,
    max_concurrency: int = 1,
) -> List[ToolOutcome]:
    """Execute *calls* and return outcomes index-aligned with them.

    Calls run one after another in the given order. When
    ``max_concurrency`` is greater than one, each maximal run of
    consecutive calls whose tools are registered as ``independent`` is
    executed concurrently, bounded by a semaphore; every other call still
    waits for everything before it.

    A cancelled token aborts the whole batch with
    :class:`OperationCancelledError`.
    """
    outcomes: List[ToolOutcome] = []
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def _bounded(call: RawToolCall) -> ToolOutcome:
        async with semaphore:
            return await execute_one(call, factory, cancel_token=cancel_token)

    index = 0
    while index < len(calls):
        run_end = index
        if max_concurrency > 1:
            while run_end < len(calls) and _is_independent(calls[run_end], factory):
                run_end += 1

        if run_end - index > 1:
            batch = calls[index:run_end]
            logger.debug("Running %d independent tool calls concurrently.", len(batch))
            outcomes.extend(await asyncio.gather(*[_bounded(c) for c in batch]))
            index = run_end
        else:
            outcomes.append(
                await execute_one(calls[index], factory, cancel_token=cancel_token)
            )
            index += 1

    return outcomes


def _is_independent(call: RawToolCall, factory: ToolFactory) -> bool:
    registration = factory.get_registration(call.name)
    return registration is not None and registration.independent
