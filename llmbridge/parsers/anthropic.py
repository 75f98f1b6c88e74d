import json
import logging
from typing import Any, List, Optional

from .base import BaseResponseParser, field_of
from ..errors import ParseError
from ..types import CanonicalMessage, TokenUsage, ToolCall

logger = logging.getLogger(__name__)


class AnthropicResponseParser(BaseResponseParser):
    """
    Parser for Anthropic Messages API responses and raw stream events.

    Stream event types handled:
    - message_start: input token usage
    - content_block_start: a new text block (bookkeeping) or tool_use block
    - content_block_delta: text_delta or input_json_delta fragments
    - message_delta: stop reason and output token usage
    - message_stop: end of stream
    """

    provider_name = "anthropic"

    def _usage(self, usage: Any) -> Optional[TokenUsage]:
        if usage is None:
            return None
        return self.normalize_usage(
            prompt_tokens=field_of(usage, "input_tokens"),
            completion_tokens=field_of(usage, "output_tokens"),
        )

    def _parse_response(self, response: Any) -> CanonicalMessage:
        blocks = field_of(response, "content")
        if blocks is None:
            logger.error("Anthropic response has no content")
            raise ParseError("anthropic response has no content")

        text_parts: List[str] = []
        tool_calls: List[ToolCall] = []
        for block in blocks:
            block_type = field_of(block, "type")
            if block_type == "text":
                text_parts.append(field_of(block, "text", default=""))
            elif block_type == "tool_use":
                block_id = field_of(block, "id")
                name = field_of(block, "name")
                if not block_id or not name:
                    raise ParseError("anthropic tool_use block without id or name")
                tool_calls.append(ToolCall(
                    id=block_id,
                    function_name=name,
                    arguments_json=json.dumps(field_of(block, "input", default={})),
                ))

        return self.assistant_message(
            self.reply_text("".join(text_parts), tool_calls),
            tool_calls,
            usage=self._usage(field_of(response, "usage")),
            metadata={
                "model": field_of(response, "model"),
                "finish_reason": field_of(response, "stop_reason"),
            },
        )

    def _parse_stream_event(self, event: Any) -> Optional[CanonicalMessage]:
        event_type = field_of(event, "type")

        if event_type == "message_start":
            message = field_of(event, "message")
            usage = self._usage(field_of(message, "usage"))
            if usage is None:
                return None
            return self.stream_chunk(usage=usage, model=field_of(message, "model"))

        if event_type == "content_block_start":
            block = field_of(event, "content_block")
            if field_of(block, "type") != "tool_use":
                return None
            block_id = field_of(block, "id")
            name = field_of(block, "name")
            if not block_id or not name:
                raise ParseError("tool_use block start without id or name")
            # Arguments arrive afterwards as input_json_delta fragments
            return self.stream_chunk(
                content="",
                tool_calls=[ToolCall(id=block_id, function_name=name, arguments_json="")],
                tool_call_indices=[field_of(event, "index", default=0)],
            )

        if event_type == "content_block_delta":
            delta = field_of(event, "delta")
            delta_type = field_of(delta, "type")
            if delta_type == "text_delta":
                text = field_of(delta, "text")
                if text is None:
                    raise ParseError("text_delta without text")
                return self.stream_chunk(content=text)
            if delta_type == "input_json_delta":
                fragment = field_of(delta, "partial_json", default="")
                if not fragment:
                    return None
                return self.stream_chunk(
                    content="",
                    tool_calls=[ToolCall(id="", function_name="", arguments_json=fragment)],
                    tool_call_indices=[field_of(event, "index", default=0)],
                )
            return None

        if event_type == "message_delta":
            usage = self._usage(field_of(event, "usage"))
            stop_reason = field_of(field_of(event, "delta"), "stop_reason")
            if usage is None and stop_reason is None:
                return None
            return self.stream_chunk(usage=usage, finish_reason=stop_reason)

        if event_type == "message_stop":
            return self.stream_chunk(content="", is_complete=True)

        # content_block_stop, ping and unknown events carry no payload
        return None
