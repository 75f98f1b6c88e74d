import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .errors import EmptyConversationError, InvalidMessageError
from .types import ROLES, CanonicalMessage, ToolCall, ToolSchema

MessageLike = Union[CanonicalMessage, Mapping[str, Any]]
ToolLike = Union[ToolSchema, Mapping[str, Any]]

# =============================================================================
# Message Helpers
# =============================================================================

def create_message(role: str, content: Optional[str]) -> CanonicalMessage:
    """
    Create a plain text message.

    Args:
        role (str): The role of the message sender ('system', 'user', 'assistant').
        content (str): The text of the message.

    Returns:
        CanonicalMessage: The new message.
    """
    return CanonicalMessage(role=role, content=content)


def create_tool_result(tool_call_id: str, content: str, name: Optional[str] = None) -> CanonicalMessage:
    """
    Create a tool result message to send back to the LLM.

    This message marks the completion of a tool execution and provides
    the output to the model.

    Args:
        tool_call_id (str): The ID of the tool call this result corresponds to.
        content (str): The stringified result of the tool execution.
        name (str, optional): The function name. Google needs it and falls back
                              to the matching assistant tool call when absent.

    Returns:
        CanonicalMessage: A message with role='tool'.
    """
    return CanonicalMessage(role="tool", content=content, tool_call_id=tool_call_id, name=name)


def create_assistant_message_with_tool_calls(
    content: Optional[str],
    tool_calls: Sequence[ToolCall],
) -> CanonicalMessage:
    """
    Create an assistant message that includes tool calls.

    Args:
        content (str, optional): Text accompanying the tool calls (can be empty).
        tool_calls (Sequence[ToolCall]): Tool call objects, in invocation order.

    Returns:
        CanonicalMessage: A message with role='assistant'.
    """
    return CanonicalMessage(role="assistant", content=content, tool_calls=tuple(tool_calls))


def _coerce_tool_call(raw: Union[ToolCall, Mapping[str, Any]]) -> ToolCall:
    if isinstance(raw, ToolCall):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidMessageError(f"Tool call must be a mapping, got {type(raw).__name__}")

    # Accept both canonical keys and the OpenAI-style nested shape
    func = raw.get("function") or {}
    name = raw.get("function_name") or raw.get("functionName") or raw.get("name") or func.get("name")
    if not name:
        raise InvalidMessageError(f"Tool call without a function name: {dict(raw)!r}")

    arguments = raw.get("arguments_json", raw.get("argumentsJSON"))
    if arguments is None:
        arguments = raw.get("arguments", func.get("arguments", ""))
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)

    return ToolCall(id=str(raw.get("id") or ""), function_name=name, arguments_json=arguments)


def coerce_message(raw: MessageLike) -> CanonicalMessage:
    """
    Normalize a message given either as a CanonicalMessage or a plain dict.

    Dict keys follow the canonical field names; camelCase spellings
    (`toolCalls`, `toolCallId`) are accepted too.

    Raises:
        InvalidMessageError: If the value is neither a message nor a mapping.
    """
    if isinstance(raw, CanonicalMessage):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidMessageError(f"Message must be a mapping, got {type(raw).__name__}")

    tool_calls = raw.get("tool_calls", raw.get("toolCalls")) or ()
    return CanonicalMessage(
        role=raw.get("role"),
        content=raw.get("content"),
        tool_calls=tuple(_coerce_tool_call(tc) for tc in tool_calls),
        tool_call_id=raw.get("tool_call_id", raw.get("toolCallId")),
        name=raw.get("name"),
        metadata=dict(raw.get("metadata") or {}),
    )


def validate_messages(messages: Iterable[MessageLike]) -> List[CanonicalMessage]:
    """
    Coerce and check a conversation before adaptation.

    Returns:
        List[CanonicalMessage]: The messages, in their original order.

    Raises:
        EmptyConversationError: If there is no message at all.
        InvalidMessageError: If a message carries an unknown role, or a tool
            message answers a call id no earlier assistant message made.
    """
    if messages is None:
        raise EmptyConversationError("Messages list cannot be empty")

    coerced = [coerce_message(m) for m in messages]
    if not coerced:
        raise EmptyConversationError("Messages list cannot be empty")

    call_ids = set()
    for position, msg in enumerate(coerced):
        if msg.role not in ROLES:
            raise InvalidMessageError(f"Invalid message role {msg.role!r} at position {position}")
        if msg.tool_calls and msg.role != "assistant":
            raise InvalidMessageError(
                f"Only assistant messages may carry tool calls (role {msg.role!r} at position {position})"
            )
        call_ids.update(tc.id for tc in msg.tool_calls if tc.id)

        # A missing id is left to the adapter; Google can still match by name
        tool_call_id = (msg.tool_call_id or "").strip() if msg.role == "tool" else ""
        if tool_call_id and tool_call_id not in call_ids:
            raise InvalidMessageError(
                f"Tool message at position {position} answers unknown tool call {tool_call_id!r}"
            )
    return coerced


def extract_system_prompt(
    messages: Sequence[CanonicalMessage],
    fallback: Optional[str] = None,
) -> Optional[str]:
    """
    Resolve the effective system instruction.

    System messages in the conversation win and are joined by a blank line.
    Without any, the explicitly supplied fallback is used.
    """
    system_parts = [m.content or "" for m in messages if m.role == "system"]
    if system_parts:
        return "\n\n".join(system_parts)
    return fallback


def parse_arguments(tool_call: ToolCall) -> Dict[str, Any]:
    """
    Decode the JSON arguments of a tool call into an object.

    Empty arguments decode to an empty object.

    Raises:
        InvalidMessageError: If the arguments are not a JSON object.
    """
    raw = tool_call.arguments_json
    if raw is None or not raw.strip():
        return {}
    try:
        args = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidMessageError(
            f"Tool call {tool_call.id or tool_call.function_name!r} has invalid JSON arguments: {e}"
        ) from e
    if not isinstance(args, dict):
        raise InvalidMessageError(
            f"Tool call {tool_call.id or tool_call.function_name!r} arguments must be a JSON object"
        )
    return args


# =============================================================================
# Tool Calling Helpers
# =============================================================================

def create_tool(
    name: str,
    description: str,
    parameters: Dict[str, Any],
    required: Optional[List[str]] = None,
) -> ToolSchema:
    """
    Create a tool schema for function calling.

    Args:
        name (str): The name of the function/tool to be called.
        description (str): A clear description of what the tool does.
        parameters (Dict): JSON Schema of each argument, keyed by argument name.
        required (List[str], optional): A list of parameter names that are required.

    Returns:
        ToolSchema: The tool definition, ready for any adapter.
    """
    return ToolSchema(
        name=name,
        description=description,
        parameters={
            "type": "object",
            "properties": parameters,
            "required": required or [],
        },
    )


def coerce_tool(raw: ToolLike) -> ToolSchema:
    """
    Normalize a tool given as a ToolSchema, a flat dict, or an OpenAI-style
    `{"type": "function", "function": {...}}` dict.
    """
    if isinstance(raw, ToolSchema):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidMessageError(f"Tool must be a mapping, got {type(raw).__name__}")
    func = raw.get("function") if raw.get("type") == "function" else raw
    if not func or not func.get("name"):
        raise InvalidMessageError(f"Tool without a name: {dict(raw)!r}")
    return ToolSchema(
        name=func["name"],
        description=func.get("description") or "",
        parameters=func.get("parameters") or {},
    )
