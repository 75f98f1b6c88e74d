from typing import Any, AsyncIterable, Dict, Optional

import anthropic
from anthropic import AsyncAnthropic

from .base import BaseLLMProvider
from ..adapters.anthropic import AnthropicAdapter
from ..config import Settings
from ..parsers.anthropic import AnthropicResponseParser
from ..payload_logger import FilePayloadLogger
from ..types import VendorPayload


class AnthropicProvider(BaseLLMProvider):
    """
    Provider for Anthropic (Claude) API.

    Streams are read as raw Messages API events (`messages.create(stream=True)`)
    and normalized by `AnthropicResponseParser`.
    """

    name = "anthropic"
    vendor_errors = (anthropic.AnthropicError,)

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[AsyncAnthropic] = None,
        settings: Optional[Settings] = None,
        payload_logger: Optional[FilePayloadLogger] = None,
    ):
        if client is None and api_key:
            client = AsyncAnthropic(api_key=api_key)
        super().__init__(
            client,
            AnthropicAdapter(),
            AnthropicResponseParser(),
            settings=settings,
            payload_logger=payload_logger,
        )

    @staticmethod
    def _tool_choice(tool_choice: Optional[str]) -> Optional[Dict[str, Any]]:
        if tool_choice is None:
            return None
        if tool_choice == "auto":
            return {"type": "auto"}
        if tool_choice == "none":
            return {"type": "none"}
        if tool_choice == "required":
            return {"type": "any"}
        return {"type": "tool", "name": tool_choice}

    def _request_kwargs(self, model: str, payload: VendorPayload, options: Dict[str, Any]) -> Dict[str, Any]:
        # max_tokens is mandatory for the Messages API
        request_kwargs = {
            "model": model,
            "messages": payload.messages,
            "max_tokens": options["max_tokens"],
        }

        optional_params = {
            "system": payload.system,
            "temperature": options.get("temperature"),
            "top_p": options.get("top_p"),
            "stop_sequences": self._stop_sequences(options.get("stop")),
            "tools": payload.tools,
            "tool_choice": self._tool_choice(options.get("tool_choice")) if payload.tools else None,
        }
        request_kwargs.update({k: v for k, v in optional_params.items() if v is not None})
        return request_kwargs

    async def _create(self, model: str, payload: VendorPayload, options: Dict[str, Any]) -> Any:
        return await self.client.messages.create(**self._request_kwargs(model, payload, options))

    async def _open_stream(
        self,
        model: str,
        payload: VendorPayload,
        options: Dict[str, Any],
    ) -> AsyncIterable[Any]:
        return await self.client.messages.create(
            **self._request_kwargs(model, payload, options),
            stream=True,
        )
