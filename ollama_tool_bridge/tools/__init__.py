from .base_tool import BaseTool
from .executor import execute_all, execute_one
from .models import (
    FunctionCall,
    ParseDiagnostic,
    ParsedModelReply,
    RawToolCall,
    ToolDescriptor,
    ToolExecutionResult,
    ToolOutcome,
)
from .tool_factory import ToolFactory, ToolRegistration

__all__ = [
    "ToolFactory",
    "ToolRegistration",
    "BaseTool",
    "ToolDescriptor",
    "RawToolCall",
    "FunctionCall",
    "ToolOutcome",
    "ParseDiagnostic",
    "ParsedModelReply",
    "ToolExecutionResult",
    "execute_all",
    "execute_one",
]
