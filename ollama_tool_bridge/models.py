"""Caller-facing generation contract shared by every content generator.

These shapes are backend-agnostic: a caller builds a
:class:`GenerationRequest`, hands it to any :class:`ContentGenerator`
implementation, and reads :class:`GenerationReply` objects back without
knowing whether tool calls were native or emulated.

Usage::

    request = GenerationRequest.from_messages(
        [{"role": "user", "content": "List the files in the repo"}]
    )
    reply = await generator.generate(request)
    print(reply.text, reply.finish_reason)
"""

from __future__ import annotations

import enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .tools.models import FunctionCall

# Chat Completions roles mapped onto contract roles
_ROLE_MAP: dict[str, str] = {
    "user": "user",
    "assistant": "model",
    "model": "model",
    "system": "system",
}


class FinishReason(str, enum.Enum):
    """Terminal status tag carried by every reply."""

    STOP = "STOP"
    OTHER = "OTHER"


class Part(BaseModel):
    """One segment of a content entry. Only ``text`` parts carry prompt text."""

    text: Optional[str] = None
    function_call: Optional[FunctionCall] = None


class Content(BaseModel):
    """A single conversation entry."""

    role: str = "user"
    parts: List[Part] = Field(default_factory=list)

    def text_parts(self) -> List[str]:
        return [p.text for p in self.parts if p.text is not None]


class GenerationRequest(BaseModel):
    """Conversation history plus optional generation settings."""

    contents: Union[List[Content], Content] = Field(default_factory=list)
    model: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)

    def content_list(self) -> List[Content]:
        """Return ``contents`` normalised to a list."""
        if isinstance(self.contents, Content):
            return [self.contents]
        return list(self.contents)

    @classmethod
    def from_messages(
        cls, messages: List[Dict[str, Any]], **kwargs: Any
    ) -> "GenerationRequest":
        """Build a request from Chat Completions-style message dicts.

        String content becomes a single text part; list content keeps each
        ``{"type": "text", "text": ...}`` item as its own part. Messages with
        unknown roles (e.g. ``tool``) are kept under their own role name.
        """
        contents: List[Content] = []
        for message in messages:
            role = _ROLE_MAP.get(message.get("role", ""), message.get("role", ""))
            raw = message.get("content")
            parts: List[Part] = []
            if isinstance(raw, str):
                parts.append(Part(text=raw))
            elif isinstance(raw, list):
                for item in raw:
                    if isinstance(item, dict) and isinstance(item.get("text"), str):
                        parts.append(Part(text=item["text"]))
            contents.append(Content(role=role, parts=parts))
        return cls(contents=contents, **kwargs)


class Candidate(BaseModel):
    content: Content
    finish_reason: FinishReason


class GenerationReply(BaseModel):
    """A reply produced by a content generator."""

    text: Optional[str] = None
    function_calls: List[FunctionCall] = Field(default_factory=list)
    finish_reason: FinishReason = FinishReason.STOP
    candidates: List[Candidate] = Field(default_factory=list)

    @classmethod
    def build(
        cls,
        text: str,
        finish_reason: FinishReason,
        function_calls: Optional[List[FunctionCall]] = None,
    ) -> "GenerationReply":
        """Create a single-candidate reply authored by the model."""
        content = Content(role="model", parts=[Part(text=text)])
        return cls(
            text=text,
            function_calls=list(function_calls or []),
            finish_reason=finish_reason,
            candidates=[Candidate(content=content, finish_reason=finish_reason)],
        )

    @property
    def is_error(self) -> bool:
        return self.finish_reason is not FinishReason.STOP


class CountTokensResponse(BaseModel):
    total_tokens: int


class EmbedContentRequest(BaseModel):
    contents: Union[List[Content], Content] = Field(default_factory=list)
    model: Optional[str] = None
