from typing import Any, AsyncIterable, Dict, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .base import BaseLLMProvider
from ..adapters.google import GoogleAdapter
from ..config import Settings
from ..parsers.google import GoogleResponseParser
from ..payload_logger import FilePayloadLogger
from ..types import VendorPayload


class GoogleProvider(BaseLLMProvider):
    """
    Provider for Google Gemini API (using google-genai SDK).

    Calls go through the async surface, `client.aio.models`.
    """

    name = "google"
    # google-genai surfaces transport failures as raw httpx errors
    vendor_errors = (genai_errors.APIError, httpx.HTTPError)

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[genai.Client] = None,
        settings: Optional[Settings] = None,
        payload_logger: Optional[FilePayloadLogger] = None,
    ):
        if client is None and api_key:
            client = genai.Client(api_key=api_key)
        super().__init__(
            client,
            GoogleAdapter(),
            GoogleResponseParser(),
            settings=settings,
            payload_logger=payload_logger,
        )

    @staticmethod
    def _tool_config(tool_choice: Optional[str]) -> Optional[Dict[str, Any]]:
        if tool_choice is None:
            return None
        if tool_choice == "auto":
            return {"function_calling_config": {"mode": "AUTO"}}
        if tool_choice == "none":
            return {"function_calling_config": {"mode": "NONE"}}
        if tool_choice == "required":
            return {"function_calling_config": {"mode": "ANY"}}
        return {
            "function_calling_config": {
                "mode": "ANY",
                "allowed_function_names": [tool_choice],
            }
        }

    def _config(self, payload: VendorPayload, options: Dict[str, Any]) -> types.GenerateContentConfig:
        config_kwargs = {
            "temperature": options.get("temperature"),
            "max_output_tokens": options.get("max_tokens"),
            "system_instruction": payload.system,
            "top_p": options.get("top_p"),
            "stop_sequences": self._stop_sequences(options.get("stop")),
            "tools": payload.tools,
            "tool_config": self._tool_config(options.get("tool_choice")) if payload.tools else None,
        }
        return types.GenerateContentConfig(**{k: v for k, v in config_kwargs.items() if v is not None})

    async def _create(self, model: str, payload: VendorPayload, options: Dict[str, Any]) -> Any:
        return await self.client.aio.models.generate_content(
            model=model,
            contents=payload.messages,
            config=self._config(payload, options),
        )

    async def _open_stream(
        self,
        model: str,
        payload: VendorPayload,
        options: Dict[str, Any],
    ) -> AsyncIterable[Any]:
        return await self.client.aio.models.generate_content_stream(
            model=model,
            contents=payload.messages,
            config=self._config(payload, options),
        )
