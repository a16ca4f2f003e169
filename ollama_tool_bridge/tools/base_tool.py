from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .models import ToolExecutionResult


class BaseTool(ABC):
    """Base class for class-based tools."""

    NAME: str  # Invocation name the model emits in ``tool_name``
    DESCRIPTION: str  # Description shown to the model
    DISPLAY_NAME: Optional[str] = None  # Defaults to NAME
    PARAMETERS: Optional[Dict[str, Any]] = None  # JSON schema for arguments
    INDEPENDENT: bool = False  # No side effects; may run alongside other calls
    BLOCKING: bool = False  # Synchronous I/O; run off the event loop

    @abstractmethod
    def execute(self, **kwargs: Any) -> ToolExecutionResult | str | Any:
        """Execute the tool logic."""
        raise NotImplementedError

    @classmethod
    def from_config(cls, **config: Any) -> "BaseTool":
        """Instantiate the tool with optional config."""
        return cls(**config)
