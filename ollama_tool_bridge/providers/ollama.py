"""Ollama adapter: tool calling emulated through prompt text."""

from __future__ import annotations

import logging
import math
from typing import Any, AsyncGenerator, Dict, List, Optional

import httpx

from ..cancellation import CancellationToken
from ..config import OllamaConfig
from ..exceptions import (
    ConfigurationError,
    NoUserPromptError,
    OperationCancelledError,
    ProviderError,
    UnsupportedFeatureError,
)
from ..models import (
    CountTokensResponse,
    EmbedContentRequest,
    FinishReason,
    GenerationReply,
    GenerationRequest,
)
from ..parsing import parse_model_reply
from ..prompts import build_follow_up_prompt, build_prompt
from ..tools.executor import execute_all
from ..tools.models import (
    FunctionCall,
    ParsedModelReply,
    RawToolCall,
    ToolDescriptor,
    ToolOutcome,
)
from ..tools.tool_factory import ToolFactory
from . import register_provider
from ._transport import OllamaTransport
from .base import ContentGenerator

logger = logging.getLogger(__name__)

# Rough characters-per-token ratio used by count_tokens
_CHARS_PER_TOKEN = 4

# Request config keys → Ollama "options" keys
_OPTION_KEYS: Dict[str, str] = {
    "temperature": "temperature",
    "max_output_tokens": "num_predict",
    "top_p": "top_p",
    "top_k": "top_k",
    "seed": "seed",
}


def extract_user_prompt(request: GenerationRequest) -> str:
    """Return the text of the most recent user entry that has text.

    Text parts of that entry are joined with newlines in their original
    order. The request itself is never modified.

    Raises:
        NoUserPromptError: No user-authored text exists in the history.
    """
    for content in reversed(request.content_list()):
        if content.role != "user":
            continue
        texts = content.text_parts()
        if texts:
            return "\n".join(texts)
    raise NoUserPromptError("No user prompt found in request")


@register_provider("ollama")
class OllamaAdapter(ContentGenerator):
    """Content generator for text-completion models served by Ollama.

    The model is taught a ``<tool_code>`` text convention; its directives
    are parsed, executed through the :class:`ToolFactory`, and the results
    are sent back for a final answer. A turn runs at most
    ``max_tool_rounds`` rounds of tool execution; directives in the reply
    that follows the last round are not executed.

    Parameters
    ----------
    config:
        Resolved connection settings. ``host``, ``port`` and ``model`` may
        be passed individually instead.
    tool_factory:
        Tool catalog. Without one, directives are returned to the caller as
        function calls but never executed.
    timeout:
        HTTP timeout in seconds for each model call.
    max_tool_rounds:
        Upper bound on tool-execution rounds per turn.
    max_concurrent_tools:
        Concurrency bound for consecutive calls to tools registered as
        ``independent``. ``1`` keeps every call sequential.
    http_client:
        Optional shared ``httpx.AsyncClient`` for the transport.
    """

    def __init__(
        self,
        *,
        config: Optional[OllamaConfig] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        model: Optional[str] = None,
        tool_factory: Optional[ToolFactory] = None,
        timeout: float = 180.0,
        max_tool_rounds: int = 1,
        max_concurrent_tools: int = 1,
        http_client: Optional[httpx.AsyncClient] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(tool_factory=tool_factory, **kwargs)

        if config is None:
            if host is None or port is None or model is None:
                raise ConfigurationError(
                    "OllamaAdapter needs either a config or host, port and model."
                )
            config = OllamaConfig(host=host, port=port, model=model)
        if max_tool_rounds < 0:
            raise ConfigurationError("max_tool_rounds must be zero or greater.")
        if max_concurrent_tools < 1:
            raise ConfigurationError("max_concurrent_tools must be at least 1.")

        self.config = config
        self.model = config.model
        self.max_tool_rounds = max_tool_rounds
        self.max_concurrent_tools = max_concurrent_tools
        self.transport = OllamaTransport(
            config.host, config.port, timeout=timeout, client=http_client
        )

        logger.info(
            "OllamaAdapter initialised. Endpoint: %s. Model: %s. Tools: %s.",
            self.transport.url,
            self.model,
            self.tool_factory.available_tool_names if self.tool_factory else None,
        )

    # ------------------------------------------------------------------
    # Contract operations
    # ------------------------------------------------------------------

    async def generate_stream(
        self,
        request: GenerationRequest,
        *,
        cancel_token: Optional[CancellationToken] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> AsyncGenerator[GenerationReply, None]:
        """Run one turn and yield its single terminal reply.

        Turn-level faults (no user prompt, transport failure, cancellation)
        yield one reply with ``FinishReason.OTHER`` and an explanatory text.
        """
        try:
            reply = await self._run_turn(
                request,
                cancel_token=cancel_token,
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            )
        except (NoUserPromptError, ProviderError, OperationCancelledError) as e:
            logger.error("Ollama turn failed: %s", e)
            reply = GenerationReply.build(f"Error: {e}", FinishReason.OTHER)
        yield reply

    async def count_tokens(self, request: GenerationRequest) -> CountTokensResponse:
        """Approximate the token count from the serialized request length.

        Ollama has no tokenizer endpoint here, so this is an estimate of
        about four characters per token, not an exact count.
        """
        serialized = request.model_dump_json(exclude_none=True)
        return CountTokensResponse(
            total_tokens=math.ceil(len(serialized) / _CHARS_PER_TOKEN)
        )

    async def embed_content(self, request: EmbedContentRequest) -> Any:
        raise UnsupportedFeatureError("Embedding is not implemented for Ollama.")

    # ------------------------------------------------------------------
    # Turn pipeline
    # ------------------------------------------------------------------

    async def _run_turn(
        self,
        request: GenerationRequest,
        *,
        cancel_token: Optional[CancellationToken],
        temperature: Optional[float],
        max_output_tokens: Optional[int],
    ) -> GenerationReply:
        user_prompt = extract_user_prompt(request)
        model = request.model or self.model
        options = self._sampling_options(request, temperature, max_output_tokens)

        async def _ask(prompt: str) -> tuple[str, ParsedModelReply]:
            text = await self.transport.send(
                prompt, model=model, options=options, cancel_token=cancel_token
            )
            return text, parse_model_reply(text)

        raw_text, parsed = await _ask(build_prompt(user_prompt, self._descriptors()))

        executed_raw: List[RawToolCall] = []
        executed_calls: List[FunctionCall] = []
        outcomes: List[ToolOutcome] = []
        rounds = 0

        while parsed.has_calls and rounds < self.max_tool_rounds:
            if self.tool_factory is None:
                logger.warning(
                    "Model requested %d tool call(s) but no ToolFactory is configured.",
                    len(parsed.raw_calls),
                )
                break

            rounds += 1
            logger.info(
                "Tool round %d/%d: executing %d call(s).",
                rounds,
                self.max_tool_rounds,
                len(parsed.raw_calls),
            )
            round_outcomes = await execute_all(
                parsed.raw_calls,
                self.tool_factory,
                cancel_token=cancel_token,
                max_concurrency=self.max_concurrent_tools,
            )
            executed_raw.extend(parsed.raw_calls)
            executed_calls.extend(parsed.function_calls)
            outcomes.extend(round_outcomes)

            follow_up = build_follow_up_prompt(user_prompt, executed_raw, outcomes)
            raw_text, parsed = await _ask(follow_up)

        if rounds and parsed.has_calls:
            logger.info(
                "Tool round limit (%d) reached; %d call(s) in the final reply "
                "were not executed.",
                self.max_tool_rounds,
                len(parsed.raw_calls),
            )

        function_calls = executed_calls if rounds else parsed.function_calls
        return GenerationReply.build(
            parsed.text or raw_text, FinishReason.STOP, function_calls=function_calls
        )

    def _descriptors(self) -> List[ToolDescriptor]:
        if self.tool_factory is None:
            return []
        return self.tool_factory.get_descriptors()

    @staticmethod
    def _sampling_options(
        request: GenerationRequest,
        temperature: Optional[float],
        max_output_tokens: Optional[int],
    ) -> Dict[str, Any]:
        settings = dict(request.config)
        if temperature is not None:
            settings["temperature"] = temperature
        if max_output_tokens is not None:
            settings["max_output_tokens"] = max_output_tokens
        return {
            _OPTION_KEYS[key]: value
            for key, value in settings.items()
            if key in _OPTION_KEYS and value is not None
        }
