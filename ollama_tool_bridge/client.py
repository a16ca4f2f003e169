# ollama_tool_bridge/ollama_tool_bridge/client.py
import logging
import os
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Union

from .cancellation import CancellationToken
from .config import OllamaConfig, load_ollama_config
from .exceptions import ConfigurationError
from .models import (
    CountTokensResponse,
    EmbedContentRequest,
    GenerationReply,
    GenerationRequest,
)
from .providers import ContentGenerator, create_provider_instance
from .tools.tool_factory import ToolFactory

module_logger = logging.getLogger(__name__)

RequestLike = Union[GenerationRequest, List[Dict[str, Any]]]


class BridgeClient:
    """
    High-level client for text-completion backends with emulated tool calling.
    Manages provider instantiation, tool registration and generation calls.
    """

    def __init__(
        self,
        config: OllamaConfig,
        provider_type: str = "ollama",
        tool_factory: Optional[ToolFactory] = None,
        # Provider-specific args, e.g. timeout=60, max_tool_rounds=2
        **provider_kwargs: Any,
    ) -> None:
        """
        Initializes the BridgeClient.

        Args:
            config (OllamaConfig): Resolved server settings.
            provider_type (str): Registered provider identifier.
            tool_factory (ToolFactory, optional): An existing ToolFactory. If None,
                                                  a new one is created internally.
            **provider_kwargs: Additional keyword arguments for the provider's
                               constructor (e.g., timeout, max_tool_rounds).
        """
        module_logger.info("Initializing BridgeClient for provider: %s", provider_type)

        self.config = config
        self.provider_type = provider_type
        self.tool_factory = tool_factory or ToolFactory()

        try:
            self.provider: ContentGenerator = create_provider_instance(
                provider_type,
                config=config,
                tool_factory=self.tool_factory,
                **provider_kwargs,
            )
        except ConfigurationError as e:
            module_logger.error("Failed to initialize BridgeClient: %s", e)
            raise

    @classmethod
    def from_config(
        cls,
        path: Optional[Union[str, os.PathLike]] = None,
        *,
        tool_factory: Optional[ToolFactory] = None,
        **provider_kwargs: Any,
    ) -> "BridgeClient":
        """
        Builds a client from the on-disk configuration (plus ``OLLAMA_*``
        environment overrides).

        Raises:
            ConfigurationError: No usable configuration was found, or it is disabled.
        """
        config = load_ollama_config(path)
        if config is None:
            raise ConfigurationError(
                "No Ollama configuration found. Create ~/.gemini/ollama_config.json "
                "or set OLLAMA_HOST, OLLAMA_PORT and OLLAMA_MODEL."
            )
        if not config.enabled:
            raise ConfigurationError("Ollama configuration is present but disabled.")
        return cls(config, tool_factory=tool_factory, **provider_kwargs)

    def register_tool(
        self,
        function: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
        **options: Any,
    ) -> None:
        """
        Registers a Python function as a tool with the internal ToolFactory.

        Args:
            function (Callable): The Python function to register.
            name (str, optional): The name for the tool. Defaults to the function's __name__.
            description (str, optional): Description of the tool. Defaults to the function's docstring.
            parameters (Dict[str, Any], optional): JSON schema of the function's parameters.
            **options: ``display_name``, ``independent`` or ``blocking``.
        """
        if name is None:
            name = function.__name__
        if description is None:
            docstring = function.__doc__ or ""
            description = docstring.strip() or f"Executes the {name} function."
            if not function.__doc__:
                module_logger.warning(
                    "Tool function '%s' has no docstring. Using generic description.",
                    name,
                )

        self.tool_factory.register_tool(
            function=function,
            name=name,
            description=description,
            parameters=parameters,
            **options,
        )

    @staticmethod
    def _as_request(request: RequestLike) -> GenerationRequest:
        if isinstance(request, GenerationRequest):
            return request
        return GenerationRequest.from_messages(request)

    async def generate(
        self,
        request: RequestLike,
        *,
        cancel_token: Optional[CancellationToken] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> GenerationReply:
        """
        Generates the final reply for a conversation.

        Args:
            request: A GenerationRequest, or Chat Completions-style message dicts.
            cancel_token: Optional token to cancel the turn or bound it with a deadline.
            temperature: Sampling temperature.
            max_output_tokens: Max tokens to generate.

        Returns:
            GenerationReply: ``finish_reason`` is STOP on success and OTHER when
            the turn failed; in the latter case ``text`` explains the failure.
        """
        return await self.provider.generate(
            self._as_request(request),
            cancel_token=cancel_token,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )

    async def generate_stream(
        self,
        request: RequestLike,
        *,
        cancel_token: Optional[CancellationToken] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> AsyncGenerator[GenerationReply, None]:
        """Yields the replies of one turn as the provider produces them."""
        async for reply in self.provider.generate_stream(
            self._as_request(request),
            cancel_token=cancel_token,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        ):
            yield reply

    async def count_tokens(self, request: RequestLike) -> CountTokensResponse:
        return await self.provider.count_tokens(self._as_request(request))

    async def embed_content(self, request: EmbedContentRequest) -> Any:
        """Raises UnsupportedFeatureError for providers without embeddings."""
        return await self.provider.embed_content(request)
