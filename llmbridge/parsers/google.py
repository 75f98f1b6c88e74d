import json
import logging
import uuid
from typing import Any, List, Optional, Tuple

from .base import BaseResponseParser, field_of
from ..errors import ParseError
from ..types import CanonicalMessage, TokenUsage, ToolCall

logger = logging.getLogger(__name__)


class _CallIds:
    """
    Synthetic tool call ids for one parse call.

    Gemini doesn't always provide call IDs. Ids are unique within the parse
    call that made them; they are best-effort labels, not global keys.
    """

    def __init__(self):
        self._prefix = uuid.uuid4().hex[:8]
        self._count = 0

    def next(self) -> str:
        call_id = f"call_{self._prefix}_{self._count}"
        self._count += 1
        return call_id


def _enum_value(value: Any) -> Any:
    # google-genai returns enums for finish reasons
    return getattr(value, "value", value)


class GoogleResponseParser(BaseResponseParser):
    """
    Parser for Gemini `GenerateContentResponse` objects (google-genai SDK) or
    their REST JSON form.
    """

    provider_name = "google"

    def _usage(self, raw: Any) -> Optional[TokenUsage]:
        usage = field_of(raw, "usage_metadata", "usageMetadata")
        if usage is None:
            return None
        return self.normalize_usage(
            prompt_tokens=field_of(usage, "prompt_token_count", "promptTokenCount"),
            completion_tokens=field_of(usage, "candidates_token_count", "candidatesTokenCount"),
            total_tokens=field_of(usage, "total_token_count", "totalTokenCount"),
        )

    def _parts(self, candidate: Any, ids: _CallIds) -> Tuple[str, List[ToolCall]]:
        content = field_of(candidate, "content")
        text_parts: List[str] = []
        tool_calls: List[ToolCall] = []
        for part in field_of(content, "parts", default=[]):
            if field_of(part, "thought"):
                continue
            function_call = field_of(part, "function_call", "functionCall")
            if function_call is not None:
                name = field_of(function_call, "name")
                if not name:
                    raise ParseError("google function_call without a name")
                tool_calls.append(ToolCall(
                    id=field_of(function_call, "id") or ids.next(),
                    function_name=name,
                    arguments_json=json.dumps(dict(field_of(function_call, "args", default={}))),
                ))
                continue
            text = field_of(part, "text")
            if text:
                text_parts.append(text)
        return "".join(text_parts), tool_calls

    def _parse_response(self, response: Any) -> CanonicalMessage:
        candidates = field_of(response, "candidates")
        if not candidates:
            feedback = field_of(response, "prompt_feedback", "promptFeedback")
            logger.error("Google response has no candidates (prompt feedback: %s)", feedback)
            raise ParseError("google response has no candidates")

        candidate = candidates[0]
        text, tool_calls = self._parts(candidate, _CallIds())

        return self.assistant_message(
            self.reply_text(text, tool_calls),
            tool_calls,
            usage=self._usage(response),
            metadata={
                "model": field_of(response, "model_version", "modelVersion"),
                "finish_reason": _enum_value(field_of(candidate, "finish_reason", "finishReason")),
            },
        )

    def _parse_stream_event(self, event: Any) -> Optional[CanonicalMessage]:
        usage = self._usage(event)
        candidates = field_of(event, "candidates")
        if not candidates:
            if usage is not None:
                return self.stream_chunk(usage=usage)
            return None

        candidate = candidates[0]
        text, tool_calls = self._parts(candidate, _CallIds())
        finish_reason = _enum_value(field_of(candidate, "finish_reason", "finishReason"))
        is_complete = finish_reason is not None

        if not text and not tool_calls and not is_complete and usage is None:
            return None

        return self.stream_chunk(
            content=text,
            tool_calls=tool_calls,
            usage=usage,
            is_complete=is_complete,
            finish_reason=finish_reason,
            model=field_of(event, "model_version", "modelVersion"),
        )
