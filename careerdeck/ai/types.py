from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol, Sequence, Union

ToolName = Literal["web_search"]


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineDataPart:
    mime_type: str
    data: str  # base64, no data-URL prefix


ContentPart = Union[TextPart, InlineDataPart]


@dataclass(frozen=True)
class GenerationRequest:
    model: str
    parts: Sequence[ContentPart]
    system_instruction: str | None = None
    tools: tuple[ToolName, ...] = ()
    json_output: bool = False

    def __post_init__(self) -> None:
        if self.tools and self.json_output:
            raise ValueError("json_output cannot be combined with tools.")


@dataclass(frozen=True)
class GroundingChunk:
    uri: str | None = None
    title: str | None = None


@dataclass(frozen=True)
class GenerationResponse:
    text: str
    grounding_chunks: list[GroundingChunk] = field(default_factory=list)


class GenerativeClient(Protocol):
    async def generate(self, request: GenerationRequest) -> GenerationResponse: ...
