# ollama_tool_bridge/ollama_tool_bridge/tools/models.py
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ToolDescriptor(BaseModel):
    """Read-only view of a registered tool, as shown to the model."""

    name: str  # Unique invocation name
    display_name: str  # Human-friendly label used in the prompt
    description: str
    parameters: Dict[str, Any] = Field(
        default_factory=dict,
        description="JSON schema object describing the named parameters",
    )
    independent: bool = False  # Safe to run concurrently with other independent calls


class RawToolCall(BaseModel):
    """An unvalidated tool call exactly as extracted from model text."""

    name: str
    parameters: Dict[str, Any] = Field(default_factory=dict)


class FunctionCall(BaseModel):
    """Structured call in the generation contract's own representation."""

    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class ToolOutcome(BaseModel):
    """Result of executing one tool call. ``error`` is set on failure."""

    name: str
    result: str = ""
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


DiagnosticKind = Literal[
    "malformed_json",
    "missing_tool_name",
    "invalid_parameters",
    "unterminated_block",
]


class ParseDiagnostic(BaseModel):
    """A delimited block that was skipped while parsing a model reply."""

    kind: DiagnosticKind
    message: str
    block: str  # Literal block text, delimiters included
    position: int  # Offset of the opening delimiter in the source text


class ParsedModelReply(BaseModel):
    """Output of the response parser.

    ``function_calls`` and ``raw_calls`` always have the same length and
    order; skipped blocks appear only in ``diagnostics``.
    """

    text: Optional[str] = None  # Cleaned text, None when nothing remains
    function_calls: List[FunctionCall] = Field(default_factory=list)
    raw_calls: List[RawToolCall] = Field(default_factory=list)
    diagnostics: List[ParseDiagnostic] = Field(default_factory=list)

    @property
    def has_calls(self) -> bool:
        return bool(self.function_calls)


class ToolExecutionResult(BaseModel):
    """Optional rich return type for tool functions."""

    content: str  # Text handed back to the model
    payload: Any = None  # Data for the caller, never shown to the model
    metadata: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
