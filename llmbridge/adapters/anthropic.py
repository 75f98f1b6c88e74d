from typing import Any, Dict, List

from .base import BaseAdapter
from ..schema import to_json_schema
from ..types import CanonicalMessage, TextOnly, ToolSchema, assistant_turn
from ..utils import parse_arguments


def _is_tool_result_turn(item: Dict[str, Any]) -> bool:
    content = item.get("content")
    return (
        item.get("role") == "user"
        and isinstance(content, list)
        and bool(content)
        and all(block.get("type") == "tool_result" for block in content)
    )


class AnthropicAdapter(BaseAdapter):
    """
    Adapter for the Anthropic Messages API.

    Anthropic's API differs from OpenAI's in that the system instruction is a
    separate top-level parameter, tool calls are `tool_use` content blocks and
    tool results travel back inside a user turn as `tool_result` blocks.
    """

    provider_name = "anthropic"

    def _append(self, converted: List[Dict[str, Any]], item: Dict[str, Any]) -> None:
        # All results answering one assistant turn must share a single user turn
        if converted and _is_tool_result_turn(item) and _is_tool_result_turn(converted[-1]):
            converted[-1]["content"].extend(item["content"])
            return
        converted.append(item)

    def convert_user(self, message: CanonicalMessage) -> Dict[str, Any]:
        return {"role": "user", "content": message.content or ""}

    def convert_assistant(self, message: CanonicalMessage) -> Dict[str, Any]:
        turn = assistant_turn(message)
        if isinstance(turn, TextOnly):
            return {"role": "assistant", "content": turn.content}

        blocks: List[Dict[str, Any]] = []
        # Empty text blocks are rejected by the API
        if turn.content:
            blocks.append({"type": "text", "text": turn.content})
        for tc in turn.calls:
            blocks.append({
                "type": "tool_use",
                "id": tc.id,
                "name": tc.function_name,
                "input": parse_arguments(tc),
            })
        return {"role": "assistant", "content": blocks}

    def convert_tool_result(
        self,
        message: CanonicalMessage,
        conversation: List[CanonicalMessage],
    ) -> Dict[str, Any]:
        return {
            "role": "user",
            "content": [
                {
                    "type": "tool_result",
                    "tool_use_id": self.require_tool_call_id(message),
                    "content": message.content or "",
                }
            ],
        }

    def convert_tools(self, tools: List[ToolSchema]) -> List[Dict[str, Any]]:
        """
        Claude uses 'input_schema' instead of 'parameters'.
        """
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": to_json_schema(tool.parameters),
            }
            for tool in tools
        ]
