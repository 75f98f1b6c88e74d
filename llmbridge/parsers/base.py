import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Sequence

from ..errors import ParseError
from ..types import CanonicalMessage, TokenUsage, ToolCall

logger = logging.getLogger(__name__)


def field_of(obj: Any, *names: str, default: Any = None) -> Any:
    """
    Read a field from an SDK model object or a plain dict.

    Several names may be given (e.g. snake_case and camelCase spellings);
    the first one present wins.
    """
    if obj is None:
        return default
    for name in names:
        if isinstance(obj, Mapping):
            if name in obj and obj[name] is not None:
                return obj[name]
        else:
            value = getattr(obj, name, None)
            if value is not None:
                return value
    return default


class BaseResponseParser(ABC):
    """
    Abstract base class for vendor-to-canonical parsers.

    Parsers keep no state between calls; every parse stands alone.
    """

    provider_name: str = ""

    def parse_response(self, response: Any) -> CanonicalMessage:
        """
        Normalize a complete vendor response into an assistant message.

        Raises:
            ParseError: If the response does not have the expected shape.
        """
        try:
            return self._parse_response(response)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("Unexpected %s response shape: %s", self.provider_name, e)
            raise ParseError(f"{self.provider_name} response has an unexpected shape: {e}") from e

    @abstractmethod
    def _parse_response(self, response: Any) -> CanonicalMessage:
        pass

    @abstractmethod
    def _parse_stream_event(self, event: Any) -> Optional[CanonicalMessage]:
        pass

    def parse_stream_event(self, event: Any) -> Optional[CanonicalMessage]:
        """
        Normalize one streaming event.

        Returns None for events that carry nothing worth surfacing. Malformed
        events are logged and skipped so one bad chunk does not end the stream.
        """
        try:
            return self._parse_stream_event(event)
        except (ParseError, AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(
                "Skipping malformed %s stream event: %s", self.provider_name, e,
            )
            return None

    # ------------------------------------------------------------------
    # Message builders
    # ------------------------------------------------------------------

    @staticmethod
    def assistant_message(
        content: Optional[str],
        tool_calls: Sequence[ToolCall] = (),
        usage: Optional[TokenUsage] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> CanonicalMessage:
        return CanonicalMessage(
            role="assistant",
            content=content,
            tool_calls=tuple(tool_calls),
            usage=usage,
            metadata=metadata or {},
        )

    @staticmethod
    def reply_text(text: Optional[str], tool_calls: Sequence[ToolCall]) -> Optional[str]:
        """
        Content of a complete reply: None for a tool-only turn, else the text.
        """
        if not text and tool_calls:
            return None
        return text or ""

    @classmethod
    def stream_chunk(
        cls,
        content: Optional[str] = None,
        tool_calls: Sequence[ToolCall] = (),
        tool_call_indices: Optional[Sequence[int]] = None,
        usage: Optional[TokenUsage] = None,
        is_complete: bool = False,
        **extra: Any,
    ) -> CanonicalMessage:
        metadata: Dict[str, Any] = {"is_stream_chunk": True, "is_complete": is_complete}
        if tool_call_indices is not None:
            metadata["tool_call_indices"] = list(tool_call_indices)
        metadata.update({k: v for k, v in extra.items() if v is not None})
        return cls.assistant_message(content, tool_calls, usage, metadata)

    @staticmethod
    def normalize_usage(
        *,
        prompt_tokens: Optional[int],
        completion_tokens: Optional[int],
        total_tokens: Optional[int] = None,
    ) -> Optional[TokenUsage]:
        """
        Build a TokenUsage, or None when the vendor reported nothing at all.
        """
        if prompt_tokens is None and completion_tokens is None and total_tokens is None:
            return None
        return TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
        )
