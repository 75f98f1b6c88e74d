from typing import Any, AsyncIterable, Dict, Optional, Union

import openai
from openai import AsyncOpenAI

from .base import BaseLLMProvider
from ..adapters.openai import OpenAIAdapter
from ..config import Settings
from ..parsers.openai import OpenAIResponseParser
from ..payload_logger import FilePayloadLogger
from ..types import VendorPayload


class OpenAIProvider(BaseLLMProvider):
    """
    Provider for OpenAI-compatible APIs (OpenAI, DeepSeek, etc.).
    """

    name = "openai"
    vendor_errors = (openai.OpenAIError,)

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        provider_name: str = "openai",
        client: Optional[AsyncOpenAI] = None,
        settings: Optional[Settings] = None,
        payload_logger: Optional[FilePayloadLogger] = None,
    ):
        if client is None and api_key:
            client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        super().__init__(
            client,
            OpenAIAdapter(provider_name),
            OpenAIResponseParser(provider_name),
            settings=settings,
            payload_logger=payload_logger,
        )
        self.name = provider_name

    @staticmethod
    def _tool_choice(tool_choice: Optional[str]) -> Optional[Union[str, Dict[str, Any]]]:
        if tool_choice is None or tool_choice in ("auto", "none", "required"):
            return tool_choice
        return {"type": "function", "function": {"name": tool_choice}}

    def _request_kwargs(self, model: str, payload: VendorPayload, options: Dict[str, Any]) -> Dict[str, Any]:
        request_kwargs = {
            "model": model,
            "messages": payload.messages,
        }

        # Map options
        optional_params = {
            "temperature": options.get("temperature"),
            "max_tokens": options.get("max_tokens"),
            "top_p": options.get("top_p"),
            "stop": options.get("stop"),
            "tools": payload.tools,
            "tool_choice": self._tool_choice(options.get("tool_choice")) if payload.tools else None,
        }
        request_kwargs.update({k: v for k, v in optional_params.items() if v is not None})
        return request_kwargs

    async def _create(self, model: str, payload: VendorPayload, options: Dict[str, Any]) -> Any:
        return await self.client.chat.completions.create(**self._request_kwargs(model, payload, options))

    async def _open_stream(
        self,
        model: str,
        payload: VendorPayload,
        options: Dict[str, Any],
    ) -> AsyncIterable[Any]:
        return await self.client.chat.completions.create(
            **self._request_kwargs(model, payload, options),
            stream=True,
        )
