from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Union

# =============================================================================
# Type Definitions
# =============================================================================

# Roles a canonical message may carry
Role = Literal["user", "assistant", "system", "tool"]
ROLES: Tuple[str, ...] = ("user", "assistant", "system", "tool")

# Supported vendor families
Provider = Literal["openai", "anthropic", "google", "deepseek"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ToolCall:
    """
    A single tool invocation requested by the model.

    `arguments_json` is the JSON-encoded argument object. While streaming it may
    hold only a fragment of that object.
    """
    id: str
    function_name: str
    arguments_json: str = ""


@dataclass(frozen=True)
class TokenUsage:
    """
    Token usage as reported by a vendor.

    Fields the vendor did not report stay None. They are never defaulted to zero.
    """
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    def __post_init__(self):
        if (
            self.total_tokens is None
            and self.prompt_tokens is not None
            and self.completion_tokens is not None
        ):
            object.__setattr__(self, "total_tokens", self.prompt_tokens + self.completion_tokens)

    def merge(self, other: Optional["TokenUsage"]) -> "TokenUsage":
        """
        Combine two partial usage reports, preferring values from `other`.

        Streaming vendors report prompt and completion counts in separate
        events, so the accumulator merges them as they arrive.
        """
        if other is None:
            return self
        prompt = other.prompt_tokens if other.prompt_tokens is not None else self.prompt_tokens
        completion = (
            other.completion_tokens if other.completion_tokens is not None else self.completion_tokens
        )
        total = other.total_tokens
        if total is None and (prompt is None or completion is None):
            total = self.total_tokens
        return TokenUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


@dataclass(frozen=True)
class CanonicalMessage:
    """
    Provider-neutral chat message.

    Roles:
    - "system": System prompt / instructions
    - "user": User message
    - "assistant": Model response, optionally invoking tools
    - "tool": Tool execution result answering an assistant tool call

    Messages are immutable and hashable. The timestamp is stamped when the message is
    built and takes no part in equality. Metadata is compared but not hashed.
    """
    role: str
    content: Optional[str] = None
    tool_calls: Tuple[ToolCall, ...] = ()
    tool_call_id: Optional[str] = None
    name: Optional[str] = None
    usage: Optional[TokenUsage] = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)
    timestamp: datetime = field(default_factory=_utcnow, compare=False)

    def __post_init__(self):
        # Accept any iterable of tool calls but store a tuple
        if not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls or ()))

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @property
    def is_stream_chunk(self) -> bool:
        return bool(self.metadata.get("is_stream_chunk", False))

    @property
    def is_complete(self) -> bool:
        """True when this message marks the end of a stream."""
        return bool(self.metadata.get("is_complete", False))


@dataclass(frozen=True)
class ToolSchema:
    """
    Description of a callable function, shared by every vendor.

    `parameters` is a JSON-Schema-like object describing the arguments.
    """
    name: str
    description: str = ""
    parameters: Mapping[str, Any] = field(default_factory=dict)


# =============================================================================
# Assistant Turn Variants
# =============================================================================

@dataclass(frozen=True)
class TextOnly:
    content: str


@dataclass(frozen=True)
class ToolInvocation:
    calls: Tuple[ToolCall, ...]
    content: Optional[str] = None


AssistantTurn = Union[TextOnly, ToolInvocation]


def assistant_turn(message: CanonicalMessage) -> AssistantTurn:
    """
    Classify an assistant message for rendering.

    Each adapter decides how (and whether) to keep text content next to tool
    calls, so that policy stays out of the canonical model.
    """
    if message.tool_calls:
        return ToolInvocation(calls=message.tool_calls, content=message.content)
    return TextOnly(content=message.content or "")


# =============================================================================
# Vendor Payload
# =============================================================================

@dataclass(frozen=True)
class VendorPayload:
    """
    Result of adapting a canonical conversation for one vendor.

    Attributes:
        provider: Vendor family the payload was built for.
        messages: Vendor-native conversation array.
        system: Resolved system instruction, or None.
        tools: Vendor-native tool declarations, or None.
    """
    provider: str
    messages: List[Dict[str, Any]]
    system: Optional[str] = None
    tools: Optional[List[Dict[str, Any]]] = None
