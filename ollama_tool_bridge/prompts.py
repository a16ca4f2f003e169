"""Prompt construction for models without native tool calling.

The first prompt teaches the model the textual tool-call convention, lists
the available tools and ends with the user's request. The follow-up prompt
reports tool outcomes and asks for a final answer.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from .tools.models import RawToolCall, ToolDescriptor, ToolOutcome

TOOL_CALL_OPEN = "<tool_code>"
TOOL_CALL_CLOSE = "</tool_code>"

NO_TOOLS_NOTICE = "No tools are currently available."


def _wrap(payload: Dict[str, Any]) -> str:
    return f"{TOOL_CALL_OPEN}{json.dumps(payload)}{TOOL_CALL_CLOSE}"


_EXAMPLES: List[tuple[str, Dict[str, Any]]] = [
    ("To list files", {"tool_name": "ls", "parameters": {"path": "/path/to/directory"}}),
    (
        "To read a file",
        {"tool_name": "read_file", "parameters": {"file_path": "/path/to/file.txt"}},
    ),
    (
        "To search for text",
        {
            "tool_name": "grep",
            "parameters": {"pattern": "search_term", "path": "/search/path"},
        },
    ),
]


def describe_parameters(schema: Dict[str, Any]) -> List[str]:
    """Render each property of a JSON schema object as one prompt line."""
    properties = schema.get("properties") or {}
    if not properties:
        return ["  No parameters"]

    required = set(schema.get("required") or [])
    lines: List[str] = []
    for name, prop in properties.items():
        prop = prop if isinstance(prop, dict) else {}
        ptype = prop.get("type", "unknown")
        if isinstance(ptype, list):
            ptype = " | ".join(str(t) for t in ptype)
        flag = "required" if name in required else "optional"
        description = prop.get("description", "")
        lines.append(f"  - {name} ({ptype}) ({flag}): {description}")
    return lines


def describe_tools(tools: Sequence[ToolDescriptor]) -> str:
    """Natural-language catalog of *tools*, one block per tool."""
    if not tools:
        return NO_TOOLS_NOTICE

    blocks = []
    for tool in tools:
        lines = [
            f'**{tool.display_name}** (tool_name: "{tool.name}")',
            f"Description: {tool.description}",
            "Parameters:",
            *describe_parameters(tool.parameters),
        ]
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def build_prompt(user_prompt: str, tools: Sequence[ToolDescriptor]) -> str:
    """Build the instruction-augmented prompt for the first model call.

    Pure and deterministic: the same request and catalog always produce
    the same string. The user's request is always the final section.
    """
    format_example = json.dumps(
        {
            "tool_name": "tool_name_here",
            "parameters": {"param1": "value1", "param2": "value2"},
        }
    )
    lines = [
        "You are a highly capable AI assistant with access to tools that help "
        "users with their tasks.",
        "",
        "IMPORTANT INSTRUCTIONS:",
        "1. Use the exact tool calling format described below whenever you need a tool.",
        f"2. Put every tool call inside its own {TOOL_CALL_OPEN} block.",
        "3. You may call several tools in sequence; each call gets its own block.",
        "4. Explain what you are doing around the tool calls.",
        "",
        "AVAILABLE TOOLS:",
        describe_tools(tools),
        "",
        "TOOL CALLING FORMAT:",
        "To use a tool, include a block in your response with exactly this shape:",
        "",
        TOOL_CALL_OPEN,
        format_example,
        TOOL_CALL_CLOSE,
        "",
        '"parameters" may be omitted or left empty for tools without parameters.',
        "",
        "Examples:",
        *[f"- {label}: {_wrap(payload)}" for label, payload in _EXAMPLES],
        "",
        "You can write normal text before and after tool calls. The tool results "
        "will be provided to you and you should use them in your final response.",
        "",
        "Now, please help with the following request:",
        "",
        user_prompt,
    ]
    return "\n".join(lines)


def build_follow_up_prompt(
    original_request: str,
    calls: Sequence[RawToolCall],
    outcomes: Sequence[ToolOutcome],
) -> str:
    """Build the prompt that reports tool outcomes back to the model.

    Raises:
        ValueError: If ``calls`` and ``outcomes`` differ in length.
    """
    if len(calls) != len(outcomes):
        raise ValueError(
            f"Expected one outcome per tool call, got {len(outcomes)} outcomes "
            f"for {len(calls)} calls."
        )

    sections = []
    for index, (call, outcome) in enumerate(zip(calls, outcomes), start=1):
        status = "SUCCESS" if outcome.error is None else "ERROR"
        output = outcome.error or outcome.result or "No output"
        sections.append(
            "\n".join(
                [
                    f"Tool Call {index}: {call.name}",
                    f"Parameters: {json.dumps(call.parameters, indent=2)}",
                    f"Status: {status}",
                    f"Output: {output}",
                ]
            )
        )

    lines = [
        "Based on the tool execution results below, please provide a "
        "comprehensive response to the user's original request.",
        "",
        f"Original Request: {original_request}",
        "",
        "Tool Execution Results:",
        "\n\n".join(sections),
        "",
        "Please analyze these results and provide a helpful response. If any "
        "tools failed, you may suggest alternatives or ask for clarification.",
    ]
    return "\n".join(lines)
