# ollama_tool_bridge/ollama_tool_bridge/tools/tool_factory.py
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import ToolError
from .models import ToolDescriptor

module_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolRegistration:
    """A registered callable together with the descriptor shown to the model."""

    function: Callable[..., Any]
    descriptor: ToolDescriptor
    blocking: bool = False

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def independent(self) -> bool:
        return self.descriptor.independent


class ToolFactory:
    """
    Catalog of tools available to the model.
    Provides the descriptors used to build prompts, resolves tool names by
    exact match and invokes the registered callables.
    """

    def __init__(self):
        self.registrations: Dict[str, ToolRegistration] = {}
        self.tool_usage_counts: Dict[str, int] = defaultdict(int)
        module_logger.info("ToolFactory initialized.")

    def register_tool(
        self,
        function: Callable[..., Any],
        name: str,
        description: str,
        parameters: Dict[str, Any] | None = None,
        display_name: Optional[str] = None,
        independent: bool = False,
        blocking: bool = False,
    ):
        """
        Registers a tool function and its descriptor.

        Args:
            function: The callable to execute. May be sync or async.
            name: The name the model uses in ``tool_name``. Should be unique.
            description: Free-text description shown to the model.
            parameters: JSON Schema object for the function's keyword arguments.
            display_name: Label shown in the prompt. Defaults to ``name``.
            independent: True when the tool has no side effects and may run
                concurrently with other independent calls.
            blocking: True for synchronous tools doing blocking I/O; they are
                run in a worker thread.
        """
        if not name:
            raise ToolError("Tool name must be a non-empty string.")
        if name in self.registrations:
            module_logger.warning("Tool '%s' is already registered. Overwriting.", name)

        if parameters and (
            not isinstance(parameters, dict) or parameters.get("type") != "object"
        ):
            module_logger.warning(
                "Tool '%s' parameters does not seem to be a valid JSON "
                "Schema object. Parameter listing may be incomplete.",
                name,
            )

        descriptor = ToolDescriptor(
            name=name,
            display_name=display_name or name,
            description=description,
            parameters=parameters or {},
            independent=independent,
        )
        self.registrations[name] = ToolRegistration(
            function=function, descriptor=descriptor, blocking=blocking
        )
        self.tool_usage_counts[name] = 0
        module_logger.info("Registered tool: %s", name)

    def register_tool_class(
        self,
        tool_class: type,
        config: Optional[Dict[str, Any]] = None,
        name_override: Optional[str] = None,
        description_override: Optional[str] = None,
        parameters_override: Optional[Dict[str, Any]] = None,
    ):
        """Registers a tool class that inherits from BaseTool."""
        from .base_tool import BaseTool

        if not issubclass(tool_class, BaseTool):
            raise ToolError(f"{tool_class.__name__} must inherit from BaseTool.")

        name = name_override or getattr(tool_class, "NAME", None)
        description = description_override or getattr(tool_class, "DESCRIPTION", None)
        parameters = parameters_override or getattr(tool_class, "PARAMETERS", None)

        if not name or not description:
            raise ToolError(
                f"Tool class {tool_class.__name__} missing required NAME or DESCRIPTION."
            )

        def tool_wrapper(**kwargs: Any) -> Any:
            attr = tool_class.__dict__.get("execute")
            if isinstance(attr, classmethod):
                return tool_class.execute(**kwargs)
            instance = tool_class.from_config(**(config or {}))
            return instance.execute(**kwargs)

        self.register_tool(
            function=tool_wrapper,
            name=name,
            description=description,
            parameters=parameters,
            display_name=getattr(tool_class, "DISPLAY_NAME", None),
            independent=bool(getattr(tool_class, "INDEPENDENT", False)),
            blocking=bool(getattr(tool_class, "BLOCKING", False)),
        )
        module_logger.info(
            "Registered tool class: %s as '%s'", tool_class.__name__, name
        )

    def get_registration(self, name: str) -> Optional[ToolRegistration]:
        """Exact-match lookup. Returns None for unknown names."""
        return self.registrations.get(name)

    def get_descriptors(
        self, filter_tool_names: Optional[List[str]] = None
    ) -> List[ToolDescriptor]:
        """
        Returns tool descriptors in registration order, optionally filtered.

        Args:
            filter_tool_names (Optional[List[str]]): Names to include. None
                returns every registered tool; an empty list returns none.
        """
        if filter_tool_names is None:
            return [reg.descriptor for reg in self.registrations.values()]

        allowed = set(filter_tool_names)
        found = [
            reg.descriptor
            for reg in self.registrations.values()
            if reg.name in allowed
        ]
        missing = allowed - {d.name for d in found}
        if missing:
            module_logger.warning(
                "Requested tools not found in factory: %s. They will be excluded.",
                sorted(missing),
            )
        return found

    async def invoke(self, name: str, parameters: Dict[str, Any]) -> Any:
        """
        Runs the tool registered under ``name`` with ``parameters`` as keyword
        arguments and returns whatever it returns.

        Coroutine functions are awaited; blocking tools run in a worker
        thread. Exceptions raised by the tool propagate to the caller.

        Raises:
            ToolError: If no tool is registered under ``name``.
        """
        registration = self.registrations.get(name)
        if registration is None:
            raise ToolError(f"Tool '{name}' not found")

        self.increment_tool_usage(name)
        function = registration.function
        module_logger.debug("Executing tool '%s' with args: %s", name, parameters)

        if asyncio.iscoroutinefunction(function):
            return await function(**parameters)
        if registration.blocking:
            result = await asyncio.to_thread(function, **parameters)
        else:
            result = function(**parameters)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    def increment_tool_usage(self, tool_name: str):
        """Increments the usage count for the given tool name."""
        if tool_name in self.registrations:
            self.tool_usage_counts[tool_name] += 1
        else:
            module_logger.warning(
                "Attempted to increment usage for unregistered tool: '%s'.",
                tool_name,
            )

    def get_tool_usage_counts(self) -> Dict[str, int]:
        """Returns a copy of the tool usage counts."""
        return dict(self.tool_usage_counts)

    def reset_tool_usage_counts(self):
        """Resets all tool usage counts to zero."""
        for tool_name in self.tool_usage_counts:
            self.tool_usage_counts[tool_name] = 0
        module_logger.info("All tool usage counts have been reset.")

    @property
    def available_tool_names(self) -> List[str]:
        """Returns a list of all registered tool names."""
        return list(self.registrations)
