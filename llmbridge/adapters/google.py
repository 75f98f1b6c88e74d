import json
from typing import Any, Dict, List, Optional

from .base import BaseAdapter
from ..errors import InvalidMessageError
from ..schema import gemini_function_declarations, to_gemini_schema
from ..types import CanonicalMessage, TextOnly, ToolSchema, assistant_turn
from ..utils import parse_arguments


def _is_function_response_turn(item: Dict[str, Any]) -> bool:
    parts = item.get("parts") or []
    return item.get("role") == "user" and bool(parts) and all("function_response" in p for p in parts)


def _response_object(content: Optional[str]) -> Dict[str, Any]:
    """
    Gemini wants a JSON object as the function response. Results that already
    are one are sent as-is, anything else is wrapped under "result".
    """
    if content:
        try:
            decoded = json.loads(content)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, dict):
            return decoded
    return {"result": content or ""}


class GoogleAdapter(BaseAdapter):
    """
    Adapter for the Google Generative AI (Gemini) API, shaped for the
    google-genai SDK.

    - "assistant" maps to the "model" role
    - the system instruction is hoisted out of the contents
    - tool calls are `function_call` parts; results are `function_response`
      parts addressed by function name
    """

    provider_name = "google"

    def _append(self, converted: List[Dict[str, Any]], item: Dict[str, Any]) -> None:
        if converted and _is_function_response_turn(item) and _is_function_response_turn(converted[-1]):
            converted[-1]["parts"].extend(item["parts"])
            return
        converted.append(item)

    def convert_user(self, message: CanonicalMessage) -> Dict[str, Any]:
        return {"role": "user", "parts": [{"text": message.content or ""}]}

    def convert_assistant(self, message: CanonicalMessage) -> Dict[str, Any]:
        turn = assistant_turn(message)
        if isinstance(turn, TextOnly):
            return {"role": "model", "parts": [{"text": turn.content}]}

        parts: List[Dict[str, Any]] = []
        if turn.content:
            parts.append({"text": turn.content})
        for tc in turn.calls:
            parts.append({
                "function_call": {
                    "name": tc.function_name,
                    "args": parse_arguments(tc),
                }
            })
        return {"role": "model", "parts": parts}

    def convert_tool_result(
        self,
        message: CanonicalMessage,
        conversation: List[CanonicalMessage],
    ) -> Dict[str, Any]:
        name = message.name or self._lookup_function_name(message, conversation)
        if not name:
            raise InvalidMessageError(
                f"Tool message {message.tool_call_id!r} has no name and answers no known tool call"
            )
        return {
            "role": "user",
            "parts": [
                {
                    "function_response": {
                        "name": name,
                        "response": _response_object(message.content),
                    }
                }
            ],
        }

    @staticmethod
    def _lookup_function_name(
        message: CanonicalMessage,
        conversation: List[CanonicalMessage],
    ) -> Optional[str]:
        if not message.tool_call_id:
            return None
        name = None
        for previous in conversation:
            if previous is message:
                break
            for tc in previous.tool_calls:
                if tc.id == message.tool_call_id:
                    name = tc.function_name
        return name

    def convert_tools(self, tools: List[ToolSchema]) -> List[Dict[str, Any]]:
        declarations = [
            {
                "name": tool.name,
                "description": tool.description,
                "parameters": to_gemini_schema(tool.parameters),
            }
            for tool in tools
        ]
        return gemini_function_declarations(declarations)
