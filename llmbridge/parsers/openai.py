import logging
from typing import Any, List, Optional

from .base import BaseResponseParser, field_of
from ..errors import ParseError
from ..types import CanonicalMessage, TokenUsage, ToolCall

logger = logging.getLogger(__name__)


def _text_of(content: Any) -> str:
    # Some compatible servers send content as a list of parts
    if content is None:
        return ""
    if isinstance(content, list):
        return "".join(
            field_of(part, "text", default="") for part in content
            if field_of(part, "type") in (None, "text")
        )
    return str(content)


class OpenAIResponseParser(BaseResponseParser):
    """
    Parser for OpenAI-compatible chat completion responses and chunks.
    """

    def __init__(self, provider_name: str = "openai"):
        self.provider_name = provider_name

    def _usage(self, raw: Any) -> Optional[TokenUsage]:
        usage = field_of(raw, "usage")
        if usage is None:
            return None
        return self.normalize_usage(
            prompt_tokens=field_of(usage, "prompt_tokens"),
            completion_tokens=field_of(usage, "completion_tokens"),
            total_tokens=field_of(usage, "total_tokens"),
        )

    def _parse_response(self, response: Any) -> CanonicalMessage:
        choices = field_of(response, "choices")
        if not choices:
            logger.error("OpenAI response has no choices")
            raise ParseError(f"{self.provider_name} response has no choices")

        choice = choices[0]
        message = field_of(choice, "message")
        if message is None:
            raise ParseError(f"{self.provider_name} choice has no message")

        tool_calls: List[ToolCall] = []
        for tc in field_of(message, "tool_calls", default=[]):
            function = field_of(tc, "function")
            name = field_of(function, "name")
            if not name:
                raise ParseError(f"{self.provider_name} tool call without a function name")
            tool_calls.append(ToolCall(
                id=field_of(tc, "id", default=""),
                function_name=name,
                arguments_json=field_of(function, "arguments", default=""),
            ))

        return self.assistant_message(
            self.reply_text(_text_of(field_of(message, "content")), tool_calls),
            tool_calls,
            usage=self._usage(response),
            metadata={
                "model": field_of(response, "model"),
                "finish_reason": field_of(choice, "finish_reason"),
            },
        )

    def _parse_stream_event(self, event: Any) -> Optional[CanonicalMessage]:
        usage = self._usage(event)
        choices = field_of(event, "choices")
        if not choices:
            # Usage-only chunk sent after the last choice delta
            if usage is not None:
                return self.stream_chunk(usage=usage, model=field_of(event, "model"))
            return None

        choice = choices[0]
        delta = field_of(choice, "delta")
        finish_reason = field_of(choice, "finish_reason")
        is_complete = finish_reason is not None

        tool_calls: List[ToolCall] = []
        indices: List[int] = []
        for position, tc in enumerate(field_of(delta, "tool_calls", default=[])):
            function = field_of(tc, "function")
            tool_calls.append(ToolCall(
                id=field_of(tc, "id", default=""),
                function_name=field_of(function, "name", default=""),
                arguments_json=field_of(function, "arguments", default=""),
            ))
            indices.append(field_of(tc, "index", default=position))

        text = _text_of(field_of(delta, "content"))
        if not text and not tool_calls and not is_complete and usage is None:
            # Role-only opening delta
            return None

        return self.stream_chunk(
            content=text,
            tool_calls=tool_calls,
            tool_call_indices=indices if tool_calls else None,
            usage=usage,
            is_complete=is_complete,
            finish_reason=finish_reason,
        )
