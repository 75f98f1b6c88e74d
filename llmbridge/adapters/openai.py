from typing import Any, Dict, List, Optional

from .base import BaseAdapter
from ..schema import to_json_schema
from ..types import CanonicalMessage, TextOnly, ToolSchema, assistant_turn


class OpenAIAdapter(BaseAdapter):
    """
    Adapter for OpenAI-compatible chat completions (OpenAI, DeepSeek, ...).

    OpenAI keeps the system instruction in-band, so the resolved instruction
    becomes a single system message at the head of the conversation.
    """

    provider_name = "openai"

    def __init__(self, provider_name: str = "openai"):
        self.provider_name = provider_name

    def convert_messages(
        self,
        messages: List[CanonicalMessage],
        system: Optional[str],
    ) -> List[Dict[str, Any]]:
        converted = super().convert_messages(messages, system)
        if system:
            converted.insert(0, {"role": "system", "content": system})
        return converted

    def convert_user(self, message: CanonicalMessage) -> Dict[str, Any]:
        return {"role": "user", "content": message.content or ""}

    def convert_assistant(self, message: CanonicalMessage) -> Dict[str, Any]:
        turn = assistant_turn(message)
        if isinstance(turn, TextOnly):
            return {"role": "assistant", "content": turn.content}

        # OpenAI rejects "" next to tool_calls; content must then be null
        return {
            "role": "assistant",
            "content": turn.content or None,
            "tool_calls": [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {
                        "name": tc.function_name,
                        "arguments": tc.arguments_json or "{}",
                    },
                }
                for tc in turn.calls
            ],
        }

    def convert_tool_result(
        self,
        message: CanonicalMessage,
        conversation: List[CanonicalMessage],
    ) -> Dict[str, Any]:
        return {
            "role": "tool",
            "tool_call_id": self.require_tool_call_id(message),
            "content": message.content or "",
        }

    def convert_tools(self, tools: List[ToolSchema]) -> List[Dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": to_json_schema(tool.parameters),
                },
            }
            for tool in tools
        ]
