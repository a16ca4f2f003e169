# ollama_tool_bridge/ollama_tool_bridge/providers/base.py
import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncGenerator, Optional

from ..cancellation import CancellationToken
from ..models import (
    CountTokensResponse,
    EmbedContentRequest,
    GenerationReply,
    GenerationRequest,
)
from ..tools.tool_factory import ToolFactory

logger = logging.getLogger(__name__)


class ContentGenerator(ABC):
    """
    Abstract base class for content generators.
    Every backend, whether it has native tool calling or emulates it,
    exposes the same four operations so callers stay backend-agnostic.
    """

    def __init__(
        self, *, tool_factory: Optional[ToolFactory] = None, **kwargs: Any
    ) -> None:
        """
        Args:
            tool_factory (ToolFactory, optional): Catalog of tools the model
                may call. Without one, tool calls are never executed.
        """
        self.tool_factory = tool_factory

    async def generate(
        self,
        request: GenerationRequest,
        *,
        cancel_token: Optional[CancellationToken] = None,
        **kwargs: Any,
    ) -> GenerationReply:
        """
        Generates a complete reply for ``request``.

        The default drains :meth:`generate_stream` and returns the last reply,
        which carries the complete content.
        """
        last: Optional[GenerationReply] = None
        async for reply in self.generate_stream(
            request, cancel_token=cancel_token, **kwargs
        ):
            last = reply
        return last if last is not None else GenerationReply()

    @abstractmethod
    def generate_stream(
        self,
        request: GenerationRequest,
        *,
        cancel_token: Optional[CancellationToken] = None,
        **kwargs: Any,
    ) -> AsyncGenerator[GenerationReply, None]:
        """
        Produces the sequence of replies for one turn. The final reply is
        terminal and carries the finish reason.
        """
        pass

    @abstractmethod
    async def count_tokens(self, request: GenerationRequest) -> CountTokensResponse:
        """Returns the (possibly approximate) token count for ``request``."""
        pass

    @abstractmethod
    async def embed_content(self, request: EmbedContentRequest) -> Any:
        """Returns embeddings for ``request`` or raises UnsupportedFeatureError."""
        pass
