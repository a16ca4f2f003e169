# ollama_tool_bridge/ollama_tool_bridge/exceptions.py
from typing import Optional


class BridgeError(Exception):
    """Base exception class for the ollama_tool_bridge library."""

    pass


class ConfigurationError(BridgeError):
    """Exception raised for configuration errors (e.g., missing or disabled config)."""

    pass


class ProviderError(BridgeError):
    """Exception raised for errors originating from the inference backend."""

    pass


class TransportError(ProviderError):
    """Exception raised when the inference endpoint cannot produce a reply.

    Covers unreachable hosts, timeouts, non-success HTTP statuses and
    response bodies that do not have the expected shape.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NoUserPromptError(BridgeError):
    """Exception raised when a request carries no user-authored text."""

    pass


class ToolError(BridgeError):
    """Exception raised for errors during tool registration or execution."""

    pass


class UnsupportedFeatureError(BridgeError):
    """Exception raised when a provider does not support a requested feature."""

    pass


class OperationCancelledError(BridgeError):
    """Exception raised when a caller cancels a turn or its deadline passes."""

    pass
