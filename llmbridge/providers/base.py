import dataclasses
import inspect
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, AsyncIterable, AsyncIterator, Dict, Iterable, Optional, Sequence, Tuple, Type

from ..adapters.base import BaseAdapter
from ..config import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE, Settings
from ..errors import ConfigurationError, VendorAPIError
from ..parsers.base import BaseResponseParser
from ..payload_logger import FilePayloadLogger
from ..types import CanonicalMessage, VendorPayload
from ..utils import MessageLike, ToolLike

logger = logging.getLogger(__name__)


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    A provider pairs a vendor SDK client with that vendor's adapter and parser.
    It keeps no state between requests, so one instance can serve concurrent
    calls.
    """

    name: str = ""
    # Exceptions raised by the vendor SDK, wrapped into VendorAPIError
    vendor_errors: Tuple[Type[BaseException], ...] = ()

    def __init__(
        self,
        client: Any,
        adapter: BaseAdapter,
        parser: BaseResponseParser,
        settings: Optional[Settings] = None,
        payload_logger: Optional[FilePayloadLogger] = None,
    ):
        self.client = client
        self.adapter = adapter
        self.parser = parser
        self.settings = settings
        self.payload_logger = payload_logger

    # ==========================================================================
    # Adaptation
    # ==========================================================================

    def adapt(
        self,
        messages: Iterable[MessageLike],
        system_prompt: Optional[str] = None,
        tools: Optional[Sequence[ToolLike]] = None,
    ) -> VendorPayload:
        """
        Convert canonical messages into this provider's payload.

        See `BaseAdapter.adapt`.
        """
        return self.adapter.adapt(messages, system_prompt=system_prompt, tools=tools)

    # ==========================================================================
    # Vendor calls
    # ==========================================================================

    async def complete(self, model: str, payload: VendorPayload, **options) -> CanonicalMessage:
        """
        Send a single-shot request and parse the reply.

        Args:
            model (str): The model identifier.
            payload (VendorPayload): Output of `adapt()`.
            **options: Generation options (temperature, max_tokens, top_p,
                       stop, tool_choice).

        Returns:
            CanonicalMessage: The assistant reply, with usage when reported.

        Raises:
            ConfigurationError: If no SDK client is configured.
            VendorAPIError: If the vendor SDK call fails.
            ParseError: If the response cannot be parsed.
        """
        self._require_client()
        options = self._resolve_options(options)
        await self._log_payload("chat", model, payload, options)

        start = time.perf_counter()
        try:
            response = await self._create(model, payload, options)
        except self.vendor_errors as e:
            logger.error("%s chat request failed: %s", self.name, e)
            raise VendorAPIError(self.name, str(e), e) from e
        latency_ms = (time.perf_counter() - start) * 1000.0

        message = self.parser.parse_response(response)
        return dataclasses.replace(
            message,
            metadata={**message.metadata, "provider": self.name, "latency_ms": latency_ms},
        )

    async def stream(
        self,
        model: str,
        payload: VendorPayload,
        **options,
    ) -> AsyncIterator[Optional[CanonicalMessage]]:
        """
        Stream a reply, yielding one parsed result per vendor event.

        Results may be None for bookkeeping events; callers skip those. The
        iterator ends after the message flagged `is_complete` or when the
        vendor closes the stream. Stop iterating to cancel.

        Yields:
            Optional[CanonicalMessage]: Incremental assistant chunks.

        Raises:
            ConfigurationError: If no SDK client is configured.
            VendorAPIError: If opening or reading the stream fails.
        """
        self._require_client()
        options = self._resolve_options(options)
        await self._log_payload("stream", model, payload, options)

        events = None
        try:
            events = await self._open_stream(model, payload, options)
            async for event in events:
                message = self.parser.parse_stream_event(event)
                yield message
                if message is not None and message.is_complete:
                    break
        except self.vendor_errors as e:
            logger.error("%s stream failed: %s", self.name, e)
            raise VendorAPIError(self.name, str(e), e) from e
        finally:
            if events is not None:
                await self._close_stream(events)

    async def chat(
        self,
        model: str,
        messages: Iterable[MessageLike],
        system_prompt: Optional[str] = None,
        tools: Optional[Sequence[ToolLike]] = None,
        **options,
    ) -> CanonicalMessage:
        """
        Adapt the conversation, then `complete()` it.
        """
        payload = self.adapt(messages, system_prompt=system_prompt, tools=tools)
        return await self.complete(model, payload, **options)

    async def chat_stream(
        self,
        model: str,
        messages: Iterable[MessageLike],
        system_prompt: Optional[str] = None,
        tools: Optional[Sequence[ToolLike]] = None,
        **options,
    ) -> AsyncIterator[Optional[CanonicalMessage]]:
        """
        Adapt the conversation, then `stream()` it.
        """
        payload = self.adapt(messages, system_prompt=system_prompt, tools=tools)
        async for chunk in self.stream(model, payload, **options):
            yield chunk

    @abstractmethod
    async def _create(self, model: str, payload: VendorPayload, options: Dict[str, Any]) -> Any:
        """Issue the non-streaming SDK call and return the raw response."""
        pass

    @abstractmethod
    async def _open_stream(
        self,
        model: str,
        payload: VendorPayload,
        options: Dict[str, Any],
    ) -> AsyncIterable[Any]:
        """Issue the streaming SDK call and return the raw event iterator."""
        pass

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _require_client(self) -> None:
        if self.client is None:
            raise ConfigurationError(f"{self.name} client not configured")

    def _resolve_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        resolved = dict(options)
        resolved.setdefault(
            "temperature", self.settings.temperature if self.settings else DEFAULT_TEMPERATURE
        )
        resolved.setdefault(
            "max_tokens", self.settings.max_tokens if self.settings else DEFAULT_MAX_TOKENS
        )
        return resolved

    async def _log_payload(
        self,
        kind: str,
        model: str,
        payload: VendorPayload,
        options: Dict[str, Any],
    ) -> None:
        logger.debug(
            "%s %s request: model=%s messages=%d tools=%d",
            self.name, kind, model, len(payload.messages), len(payload.tools or []),
        )
        if self.payload_logger is not None and self.payload_logger.is_enabled():
            await self.payload_logger.log_payload(self.name, kind, model, payload, options)

    @staticmethod
    async def _close_stream(events: Any) -> None:
        close = getattr(events, "aclose", None) or getattr(events, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result

    @staticmethod
    def _stop_sequences(stop: Any) -> Optional[list]:
        if stop is None:
            return None
        if isinstance(stop, str):
            return [stop]
        return list(stop)
