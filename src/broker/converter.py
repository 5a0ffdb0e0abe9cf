# src/broker/converter.py
"""Conversions between wire payloads and core.models domain types.

Wire payloads are the JSON-like dicts the transport hands over (camelCase
keys). Reading them never fails on malformed-but-parseable input: unknown
content blocks become a placeholder text block, unknown tool choices are
dropped, missing property types default to ``string`` and fields of the
wrong type are left unset.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from inspectorbroker.core.models import (
    CompletionRequest,
    CompletionResponse,
    ElicitationAction,
    ElicitationRequest,
    ElicitValue,
    FormElicitationRequest,
    FormField,
    FormSchema,
    ImageContent,
    Message,
    ModelPreferences,
    ModeToolChoice,
    NamedToolChoice,
    TextContent,
    ToolCall,
    ToolDefinition,
    ToolResultContent,
    ToolUseContent,
    UrlElicitationRequest,
)

logger = logging.getLogger(__name__)

UNSUPPORTED_CONTENT_TEXT = "[Unsupported content type]"
DEFAULT_SERVER_NAME = "MCP Server"
DEFAULT_MAX_TOKENS = 1024

_FIELD_TYPES = {"string": "string", "number": "number", "integer": "number", "boolean": "boolean"}


# === COMPLETION REQUEST ===


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _string(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _string_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [v for v in value if isinstance(v, str)]


def _max_tokens(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    logger.warning("Invalid maxTokens %r, using %d", value, DEFAULT_MAX_TOKENS)
    return DEFAULT_MAX_TOKENS


def convert_content_item(
    item: Any,
) -> TextContent | ImageContent | ToolUseContent | ToolResultContent:
    """Convert a single wire content block, degrading to placeholder text."""
    if not isinstance(item, Mapping):
        logger.debug("Unsupported content item of type %s", type(item).__name__)
        return TextContent(text=UNSUPPORTED_CONTENT_TEXT)

    block_type = item.get("type")

    if block_type == "text" and isinstance(item.get("text"), str):
        return TextContent(text=item["text"])

    if (
        block_type == "image"
        and isinstance(item.get("data"), str)
        and isinstance(item.get("mimeType"), str)
    ):
        return ImageContent(data=item["data"], mime_type=item["mimeType"])

    if block_type == "tool_use" and item.get("id") and item.get("name"):
        tool_input = item.get("input")
        return ToolUseContent(
            id=str(item["id"]),
            name=str(item["name"]),
            input=dict(tool_input) if isinstance(tool_input, Mapping) else {},
        )

    if block_type == "tool_result" and item.get("toolUseId"):
        raw = item.get("content")
        texts = [
            TextContent(text=c["text"])
            for c in (raw if isinstance(raw, list) else [])
            if isinstance(c, Mapping) and c.get("type") == "text" and isinstance(c.get("text"), str)
        ]
        is_error = item.get("isError")
        return ToolResultContent(
            tool_use_id=str(item["toolUseId"]),
            content=texts,
            is_error=is_error if isinstance(is_error, bool) else None,
        )

    logger.debug("Unsupported content block type: %r", block_type)
    return TextContent(text=UNSUPPORTED_CONTENT_TEXT)


def convert_message_content(content: Any):
    """Convert message content that may be one block or a list of blocks."""
    if isinstance(content, list):
        return [convert_content_item(item) for item in content]
    return convert_content_item(content)


def _convert_message(raw: Any) -> Message:
    raw = raw if isinstance(raw, Mapping) else {}
    role = raw.get("role")
    if role not in ("user", "assistant"):
        logger.warning("Unknown message role %r, treating as 'user'", role)
        role = "user"
    return Message(role=role, content=convert_message_content(raw.get("content")))


def _convert_model_preferences(raw: Any) -> ModelPreferences | None:
    if not isinstance(raw, Mapping):
        return None
    raw_hints = raw.get("hints")
    hints = [
        h["name"]
        for h in (raw_hints if isinstance(raw_hints, list) else [])
        if isinstance(h, Mapping) and isinstance(h.get("name"), str)
    ]
    return ModelPreferences(
        hints=hints,
        cost_priority=_number(raw.get("costPriority")),
        speed_priority=_number(raw.get("speedPriority")),
        intelligence_priority=_number(raw.get("intelligencePriority")),
    )


def _convert_tool_definition(raw: Any) -> ToolDefinition:
    raw = raw if isinstance(raw, Mapping) else {}
    schema = raw.get("inputSchema")
    return ToolDefinition(
        name=_string(raw.get("name")) or "unknown",
        description=_string(raw.get("description")),
        input_schema=dict(schema) if isinstance(schema, Mapping) else None,
    )


def _convert_tool_choice(raw: Any) -> ModeToolChoice | NamedToolChoice | None:
    if not isinstance(raw, Mapping):
        return None
    choice_type = raw.get("type")
    if choice_type in ("auto", "none", "required"):
        return ModeToolChoice(type=choice_type)
    if choice_type == "tool" and _string(raw.get("name")):
        return NamedToolChoice(name=raw["name"])
    return None


def to_completion_request(wire: Mapping[str, Any]) -> CompletionRequest:
    """Convert wire ``sampling/createMessage`` params to a CompletionRequest."""
    tools = wire.get("tools")
    include_context = wire.get("includeContext")
    return CompletionRequest(
        messages=[_convert_message(m) for m in _list(wire.get("messages"))],
        model_preferences=_convert_model_preferences(wire.get("modelPreferences")),
        max_tokens=_max_tokens(wire.get("maxTokens")),
        stop_sequences=_string_list(wire.get("stopSequences")),
        temperature=_number(wire.get("temperature")),
        include_context=(
            include_context if include_context in ("none", "thisServer", "allServers") else None
        ),
        tools=[_convert_tool_definition(t) for t in tools] if isinstance(tools, list) else None,
        tool_choice=_convert_tool_choice(wire.get("toolChoice")),
    )


# === COMPLETION RESULT ===


def _primary_block(response: CompletionResponse) -> dict[str, Any]:
    content = response.content
    if isinstance(content, ImageContent):
        return {"type": "image", "data": content.data, "mimeType": content.mime_type}
    return {"type": "text", "text": content.text}


def to_wire_completion_result(response: CompletionResponse) -> dict[str, Any]:
    """Convert a CompletionResponse to a wire ``CreateMessageResult``.

    With tool calls, content is a list: the primary block first, then one
    ``tool_use`` block per call in order. Otherwise it is the single block.
    """
    primary = _primary_block(response)
    if response.tool_calls:
        content: Any = [primary] + [
            {"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments}
            for call in response.tool_calls
        ]
    else:
        content = primary
    return {
        "role": "assistant",
        "content": content,
        "model": response.model,
        "stopReason": response.stop_reason,
    }


def to_completion_response(wire: Mapping[str, Any]) -> CompletionResponse:
    """Read a wire ``CreateMessageResult`` back into a CompletionResponse.

    The first text or image block is the primary content; ``tool_use`` blocks
    become tool calls in order. Anything else is ignored.
    """
    raw = wire.get("content")
    blocks = [convert_content_item(b) for b in (raw if isinstance(raw, list) else [raw])]
    primary = next(
        (b for b in blocks if isinstance(b, (TextContent, ImageContent))),
        TextContent(text=""),
    )
    calls = [
        ToolCall(id=b.id, name=b.name, arguments=b.input)
        for b in blocks
        if isinstance(b, ToolUseContent)
    ]
    return CompletionResponse(
        content=primary,
        model=wire.get("model") or "",
        stop_reason=wire.get("stopReason") or "endTurn",
        tool_calls=calls or None,
    )


# === ELICITATION ===


def _convert_form_field(name: str, raw: Any) -> FormField:
    raw = raw if isinstance(raw, Mapping) else {}
    field_type = _FIELD_TYPES.get(_string(raw.get("type")) or "string", "string")
    enum = raw.get("enum")
    default = raw.get("default")
    return FormField(
        name=name,
        type=field_type,
        description=_string(raw.get("description")),
        enum=[str(v) for v in enum] if isinstance(enum, list) else None,
        default=default if isinstance(default, (str, int, float, bool)) else None,
    )


def to_elicitation_request(
    wire: Mapping[str, Any], server_name: str = DEFAULT_SERVER_NAME
) -> ElicitationRequest:
    """Convert wire ``elicitation/create`` params to a form or URL request.

    A ``requestedSchema`` key selects the form variant; otherwise the payload
    is read as a URL elicitation.
    """
    message = str(wire.get("message") or "")
    if "requestedSchema" in wire:
        schema = wire.get("requestedSchema")
        schema = schema if isinstance(schema, Mapping) else {}
        properties = schema.get("properties")
        properties = properties if isinstance(properties, Mapping) else {}
        return FormElicitationRequest(
            message=message,
            requested_schema=FormSchema(
                properties={k: _convert_form_field(k, v) for k, v in properties.items()},
                required=_string_list(schema.get("required")),
            ),
            server_name=server_name,
        )
    return UrlElicitationRequest(
        message=message,
        url=str(wire.get("url") or ""),
        elicitation_id=str(wire.get("elicitationId") or ""),
        server_name=server_name,
    )


def coerce_elicit_value(value: Any) -> ElicitValue:
    """Coerce a user-supplied value to a type the wire result accepts."""
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    return str(value)


def to_wire_elicit_result(
    data: Mapping[str, Any] | None, action: ElicitationAction = "accept"
) -> dict[str, Any]:
    """Build a wire ``ElicitResult``. Content is only emitted on accept."""
    if action != "accept":
        return {"action": action}
    return {
        "action": action,
        "content": {key: coerce_elicit_value(value) for key, value in (data or {}).items()},
    }
