"""Extraction of textual tool-call directives from free-form model output.

A directive is a JSON object wrapped in ``<tool_code>`` / ``</tool_code>``::

    Sure, let me look.
    <tool_code>{"tool_name": "ls", "parameters": {"path": "."}}</tool_code>

Blocks are located with an explicit scanner rather than a single regular
expression: after each opening delimiter the JSON object is walked with
brace and string tracking, so braces or delimiter text inside JSON strings
do not end the block early. Every block is handled on its own; a block
that fails to parse is recorded as a :class:`ParseDiagnostic` and left in
the text, and scanning continues with the next one.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple

from .prompts import TOOL_CALL_CLOSE, TOOL_CALL_OPEN
from .tools.models import FunctionCall, ParseDiagnostic, ParsedModelReply, RawToolCall

logger = logging.getLogger(__name__)

_EXCESS_NEWLINES = re.compile(r"\n{3,}")


@dataclass(frozen=True)
class _Block:
    start: int  # Offset of the opening delimiter
    end: int  # Offset just past the closing delimiter
    body: str
    terminated: bool = True


def _skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index].isspace():
        index += 1
    return index


def _find_balanced_close(text: str, body_start: int) -> Optional[int]:
    """Return the offset of the closing delimiter that follows a balanced
    JSON object starting at *body_start*, or None when there is none."""
    index = _skip_whitespace(text, body_start)
    if index >= len(text) or text[index] != "{":
        return None

    depth = 0
    in_string = False
    escaped = False
    while index < len(text):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                close = _skip_whitespace(text, index + 1)
                if text.startswith(TOOL_CALL_CLOSE, close):
                    return close
                return None
        index += 1
    return None


def _scan_blocks(text: str) -> Iterator[_Block]:
    """Yield delimited blocks left to right, without overlap."""
    position = 0
    while True:
        start = text.find(TOOL_CALL_OPEN, position)
        if start == -1:
            return
        body_start = start + len(TOOL_CALL_OPEN)

        close = _find_balanced_close(text, body_start)
        if close is None:
            close = text.find(TOOL_CALL_CLOSE, body_start)
        if close == -1:
            yield _Block(
                start=start, end=len(text), body=text[body_start:], terminated=False
            )
            return

        end = close + len(TOOL_CALL_CLOSE)
        yield _Block(start=start, end=end, body=text[body_start:close])
        position = end


def _interpret(
    block: _Block, source: str
) -> Tuple[Optional[RawToolCall], Optional[ParseDiagnostic]]:
    """Turn one block into a call, or explain why it was skipped."""
    literal = source[block.start : block.end]

    def _skip(kind: str, message: str) -> Tuple[None, ParseDiagnostic]:
        return None, ParseDiagnostic(
            kind=kind, message=message, block=literal, position=block.start
        )

    if not block.terminated:
        return _skip("unterminated_block", f"Missing closing {TOOL_CALL_CLOSE}")

    content = block.body.strip()
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        return _skip("malformed_json", f"JSONDecodeError: {e}")

    if not isinstance(payload, dict):
        return _skip(
            "missing_tool_name",
            f"Tool call must be a JSON object, got {type(payload).__name__}",
        )

    name = payload.get("tool_name")
    if not isinstance(name, str) or not name:
        return _skip("missing_tool_name", "Missing or invalid 'tool_name'")

    parameters = payload.get("parameters")
    if parameters is None:
        parameters = {}
    elif not isinstance(parameters, dict):
        return _skip(
            "invalid_parameters",
            f"'parameters' must be an object, got {type(parameters).__name__}",
        )

    return RawToolCall(name=name, parameters=parameters), None


def normalize_text(text: str) -> Optional[str]:
    """Collapse runs of 3+ newlines to two and trim. Empty becomes None."""
    cleaned = _EXCESS_NEWLINES.sub("\n\n", text).strip()
    return cleaned or None


def parse_model_reply(model_text: str) -> ParsedModelReply:
    """Split raw model output into cleaned text and structured tool calls.

    Accepted blocks are removed from the text; skipped blocks stay in the
    text verbatim and are reported in ``diagnostics``.
    """
    raw_calls: List[RawToolCall] = []
    function_calls: List[FunctionCall] = []
    diagnostics: List[ParseDiagnostic] = []
    kept_segments: List[str] = []
    cursor = 0

    for block in _scan_blocks(model_text):
        call, diagnostic = _interpret(block, model_text)
        if diagnostic is not None:
            logger.warning(
                "Skipping tool call block at offset %d (%s): %s",
                diagnostic.position,
                diagnostic.kind,
                diagnostic.message,
            )
            diagnostics.append(diagnostic)
            continue

        assert call is not None
        raw_calls.append(call)
        function_calls.append(FunctionCall(name=call.name, args=dict(call.parameters)))
        kept_segments.append(model_text[cursor : block.start])
        cursor = block.end

    kept_segments.append(model_text[cursor:])

    if raw_calls:
        logger.debug("Extracted %d tool call(s) from model reply.", len(raw_calls))

    return ParsedModelReply(
        text=normalize_text("".join(kept_segments)),
        function_calls=function_calls,
        raw_calls=raw_calls,
        diagnostics=diagnostics,
    )


def validate_tool_call(candidate: Any) -> bool:
    """Return True if *candidate* has the shape of a tool-call payload."""
    return (
        isinstance(candidate, dict)
        and isinstance(candidate.get("tool_name"), str)
        and len(candidate["tool_name"]) > 0
        and (
            candidate.get("parameters") is None
            or isinstance(candidate.get("parameters"), dict)
        )
    )


def extract_tool_calls(model_text: str) -> List[RawToolCall]:
    """Return only the well-formed calls in *model_text*, without logging."""
    calls: List[RawToolCall] = []
    for block in _scan_blocks(model_text):
        call, _ = _interpret(block, model_text)
        if call is not None:
            calls.append(call)
    return calls


def has_tool_calls(model_text: str) -> bool:
    """Return True if *model_text* contains at least one closed block."""
    start = model_text.find(TOOL_CALL_OPEN)
    return start != -1 and model_text.find(
        TOOL_CALL_CLOSE, start + len(TOOL_CALL_OPEN)
    ) != -1
