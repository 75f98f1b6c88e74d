"""
Assembly of canonical stream chunks into a final assistant message.

A stream moves through NotStarted -> Streaming -> Completed and never goes
back; a new stream needs a new accumulator.
"""
import enum
import logging
from typing import Any, AsyncIterable, Dict, List, Optional

from .errors import StreamStateError
from .types import CanonicalMessage, TokenUsage, ToolCall

logger = logging.getLogger(__name__)


class StreamState(enum.Enum):
    NOT_STARTED = "not_started"
    STREAMING = "streaming"
    COMPLETED = "completed"


class _PendingCall:
    def __init__(self, call: ToolCall):
        self.id = call.id
        self.function_name = call.function_name
        self.fragments: List[str] = [call.arguments_json] if call.arguments_json else []

    def extend(self, call: ToolCall) -> None:
        # Only the opening fragment carries the id and name
        if call.id and not self.id:
            self.id = call.id
        if call.function_name and not self.function_name:
            self.function_name = call.function_name
        if call.arguments_json:
            self.fragments.append(call.arguments_json)

    def build(self) -> ToolCall:
        return ToolCall(
            id=self.id,
            function_name=self.function_name,
            arguments_json="".join(self.fragments) or "{}",
        )


class StreamAccumulator:
    """
    Accumulates the chunks of one streaming call.

    Text deltas are concatenated in arrival order. Tool call fragments are
    merged per vendor block index (`metadata["tool_call_indices"]`); calls
    without an index are complete on arrival. Partial usage reports are merged.
    """

    def __init__(self):
        self.state = StreamState.NOT_STARTED
        self._text: List[str] = []
        self._calls: Dict[Any, _PendingCall] = {}
        self._usage: Optional[TokenUsage] = None
        self._metadata: Dict[str, Any] = {}
        self._unindexed = 0

    @property
    def text(self) -> str:
        return "".join(self._text)

    @property
    def is_complete(self) -> bool:
        return self.state is StreamState.COMPLETED

    def feed(self, chunk: Optional[CanonicalMessage]) -> None:
        """
        Add one parsed chunk. None results are skipped.

        Raises:
            StreamStateError: If the stream already completed.
        """
        if chunk is None:
            return
        if self.state is StreamState.COMPLETED:
            raise StreamStateError("Stream already completed")
        self.state = StreamState.STREAMING

        if chunk.content:
            self._text.append(chunk.content)

        indices = chunk.metadata.get("tool_call_indices")
        for position, call in enumerate(chunk.tool_calls):
            if indices is not None and position < len(indices):
                key: Any = ("index", indices[position])
            else:
                key = ("call", self._unindexed)
                self._unindexed += 1
            pending = self._calls.get(key)
            if pending is None:
                self._calls[key] = _PendingCall(call)
            else:
                pending.extend(call)

        if chunk.usage is not None:
            self._usage = chunk.usage if self._usage is None else self._usage.merge(chunk.usage)

        for key in ("model", "finish_reason"):
            if chunk.metadata.get(key) is not None:
                self._metadata[key] = chunk.metadata[key]

        if chunk.is_complete:
            self.state = StreamState.COMPLETED
            logger.debug("Stream completed with %d characters, %d tool calls", len(self.text), len(self._calls))

    def result(self) -> CanonicalMessage:
        """
        Build the accumulated assistant message.

        May be called before completion; `is_complete` on the result tells
        whether the vendor signalled the end of the stream.
        """
        metadata = dict(self._metadata)
        metadata["is_complete"] = self.is_complete
        return CanonicalMessage(
            role="assistant",
            content=self.text or (None if self._calls else ""),
            tool_calls=tuple(call.build() for call in self._calls.values()),
            usage=self._usage,
            metadata=metadata,
        )


async def collect_stream(stream: AsyncIterable[Optional[CanonicalMessage]]) -> CanonicalMessage:
    """
    Drain a canonical stream and return the assembled assistant message.

    Args:
        stream: Output of a provider's `stream()` or `chat_stream()`.

    Returns:
        CanonicalMessage: Text, tool calls and usage gathered from the stream.
    """
    accumulator = StreamAccumulator()
    async for chunk in stream:
        accumulator.feed(chunk)
        if accumulator.is_complete:
            break
    return accumulator.result()
