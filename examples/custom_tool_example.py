# ollama_tool_bridge/examples/custom_tool_example.py
"""Class-based tools served to a local Ollama model.

Run with a reachable Ollama server configured in ``~/.gemini/ollama_config.json``
or through ``OLLAMA_HOST`` / ``OLLAMA_PORT`` / ``OLLAMA_MODEL``::

    python examples/custom_tool_example.py
"""
import asyncio
import json
import logging
import os
from typing import Any, Dict

from ollama_tool_bridge import BridgeClient
from ollama_tool_bridge.tools.base_tool import BaseTool
from ollama_tool_bridge.tools.models import ToolExecutionResult

module_logger = logging.getLogger(__name__)


class ListDirectoryTool(BaseTool):
    """Lists the entries of a local directory."""

    NAME: str = "ls"
    DISPLAY_NAME: str = "List Directory"
    DESCRIPTION: str = "Lists the files and folders inside a directory."
    PARAMETERS: Dict[str, Any] = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Directory to list (e.g., '.').",
            }
        },
        "required": ["path"],
    }
    INDEPENDENT: bool = True  # Read-only
    BLOCKING: bool = True  # Touches the filesystem

    def __init__(self, show_hidden: bool = False):
        self._show_hidden = show_hidden

    def execute(self, path: str) -> ToolExecutionResult:
        module_logger.info(f"[ListDirectoryTool] execute() called with path: '{path}'")
        try:
            entries = sorted(os.listdir(path))
        except OSError as e:
            return ToolExecutionResult(content="", error=f"Cannot list {path}: {e}")

        if not self._show_hidden:
            entries = [e for e in entries if not e.startswith(".")]
        return ToolExecutionResult(
            content=json.dumps({"path": path, "entries": entries}),
            payload=entries,
        )


async def main() -> None:
    logging.basicConfig(level=logging.INFO)

    client = BridgeClient.from_config(max_concurrent_tools=4)
    client.tool_factory.register_tool_class(
        ListDirectoryTool, config={"show_hidden": False}
    )

    reply = await client.generate(
        [{"role": "user", "content": "Which files are in the current directory?"}]
    )
    print(f"[{reply.finish_reason.value}] {reply.text}")
    for call in reply.function_calls:
        print(f"  called {call.name}({call.args})")


if __name__ == "__main__":
    asyncio.run(main())
