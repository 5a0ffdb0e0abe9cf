# src/core/models.py
"""Shared Pydantic domain models for inbound client requests.

Completion (sampling) and elicitation requests arrive from the peer as wire
dicts; broker.converter turns them into these types and back. No module
redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, model_validator

ApprovalMode = Literal["ask", "auto", "deny"]
StopReason = Literal["endTurn", "stopSequence", "maxTokens", "toolUse"]
ElicitationAction = Literal["accept", "decline", "cancel"]
ElicitValue = Union[str, int, float, bool, list[str]]


class RequestKind(str, Enum):
    """The two kinds of peer-initiated requests the broker handles."""

    COMPLETION = "completion"
    ELICITATION = "elicitation"


# === CONTENT BLOCKS ===


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    type: Literal["image"] = "image"
    data: str
    mime_type: str


class ToolUseContent(BaseModel):
    """Tool invocation emitted by the assistant."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultContent(BaseModel):
    """Result of a tool invocation, sent back in a user message."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: list[TextContent] = Field(default_factory=list)
    is_error: bool | None = None


ContentBlock = Annotated[
    Union[TextContent, ImageContent, ToolUseContent, ToolResultContent],
    Field(discriminator="type"),
]
ResponseContent = Annotated[
    Union[TextContent, ImageContent],
    Field(discriminator="type"),
]


# === COMPLETION (SAMPLING) ===


class Message(BaseModel):
    """Single message in a completion request."""

    role: Literal["user", "assistant"]
    content: ContentBlock | list[ContentBlock]


class ModelPreferences(BaseModel):
    """Peer hints about which model should answer.

    Priorities are in 0..1 as sent by the peer; they are passed through as-is.
    """

    hints: list[str] = Field(default_factory=list)
    cost_priority: float | None = None
    speed_priority: float | None = None
    intelligence_priority: float | None = None


class ToolDefinition(BaseModel):
    name: str
    description: str | None = None
    input_schema: dict[str, Any] | None = None


class ModeToolChoice(BaseModel):
    type: Literal["auto", "none", "required"]


class NamedToolChoice(BaseModel):
    type: Literal["tool"] = "tool"
    name: str


ToolChoice = Annotated[
    Union[ModeToolChoice, NamedToolChoice],
    Field(discriminator="type"),
]


class CompletionRequest(BaseModel):
    """Peer request asking the client to produce an LLM-style response."""

    messages: list[Message]
    model_preferences: ModelPreferences | None = None
    max_tokens: int = Field(gt=0)
    stop_sequences: list[str] | None = None
    temperature: float | None = None
    include_context: Literal["none", "thisServer", "allServers"] | None = None
    tools: list[ToolDefinition] | None = None
    tool_choice: ToolChoice | None = None

    @property
    def model_hints(self) -> list[str]:
        """Model hint names, empty when the peer sent no preferences."""
        if self.model_preferences is None:
            return []
        return list(self.model_preferences.hints)


class ToolCall(BaseModel):
    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class CompletionResponse(BaseModel):
    """Client answer to a completion request."""

    content: ResponseContent
    model: str
    stop_reason: StopReason = "endTurn"
    tool_calls: list[ToolCall] | None = None


# === ELICITATION ===


class FormField(BaseModel):
    """One property of a form elicitation schema."""

    name: str
    type: Literal["string", "number", "boolean"] = "string"
    description: str | None = None
    enum: list[str] | None = None
    default: str | int | float | bool | None = None


class FormSchema(BaseModel):
    properties: dict[str, FormField] = Field(default_factory=dict)
    required: list[str] | None = None


class FormElicitationRequest(BaseModel):
    """Peer asks the user to fill a structured form."""

    mode: Literal["form"] = "form"
    message: str
    requested_schema: FormSchema
    server_name: str


class UrlElicitationRequest(BaseModel):
    """Peer asks the user to visit a URL out of band."""

    mode: Literal["url"] = "url"
    message: str
    url: str
    elicitation_id: str
    server_name: str


ElicitationRequest = Annotated[
    Union[FormElicitationRequest, UrlElicitationRequest],
    Field(discriminator="mode"),
]


class ElicitationResult(BaseModel):
    """Outcome of an elicitation. Content is only carried on accept."""

    action: ElicitationAction
    content: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _content_only_on_accept(self) -> ElicitationResult:
        if self.action != "accept" and self.content is not None:
            raise ValueError(f"content is only allowed with action 'accept', got {self.action!r}")
        return self
