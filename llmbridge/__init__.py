from .client import UnifiedChatClient
from .config import Settings, load_settings
from .errors import (
    ConfigurationError,
    EmptyConversationError,
    InvalidMessageError,
    LLMBridgeError,
    ParseError,
    StreamStateError,
    VendorAPIError,
)
from .log import configure_logging
from .rich_llm_printer import RichPrinter, RichStreamPrinter
from .streaming import StreamAccumulator, StreamState, collect_stream
from .types import (
    CanonicalMessage,
    TextOnly,
    TokenUsage,
    ToolCall,
    ToolInvocation,
    ToolSchema,
    VendorPayload,
    assistant_turn,
)
from .utils import (
    create_assistant_message_with_tool_calls,
    create_message,
    create_tool,
    create_tool_result,
)

__all__ = [
    "UnifiedChatClient",
    "Settings",
    "load_settings",
    "configure_logging",
    "CanonicalMessage",
    "ToolCall",
    "ToolSchema",
    "TokenUsage",
    "TextOnly",
    "ToolInvocation",
    "VendorPayload",
    "assistant_turn",
    "StreamAccumulator",
    "StreamState",
    "collect_stream",
    "create_message",
    "create_tool",
    "create_tool_result",
    "create_assistant_message_with_tool_calls",
    "LLMBridgeError",
    "ConfigurationError",
    "InvalidMessageError",
    "EmptyConversationError",
    "VendorAPIError",
    "ParseError",
    "StreamStateError",
    "RichPrinter",
    "RichStreamPrinter",
]
