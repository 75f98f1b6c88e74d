from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence

from .config import Settings, load_settings
from .payload_logger import FilePayloadLogger
from .providers.base import BaseLLMProvider
from .providers.openai import OpenAIProvider
from .providers.anthropic import AnthropicProvider
from .providers.google import GoogleProvider
from .types import CanonicalMessage, VendorPayload
from .utils import MessageLike, ToolLike

# Alternate names accepted for each provider
PROVIDER_ALIASES = {
    "claude": "anthropic",
    "gemini": "google",
}


class UnifiedChatClient:
    """
    Unified client for interacting with multiple LLM providers.

    This class provides a single interface for OpenAI, Anthropic (Claude),
    Google (Gemini) and DeepSeek. Every call takes canonical messages in and
    returns canonical messages out, whichever vendor serves it.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        providers: Optional[Dict[str, BaseLLMProvider]] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Configuration; loaded from the environment / `.env` when
                      omitted and no providers are given.
            providers: Pre-built providers. When given, nothing is built from
                       settings and the environment is not read.
        """
        self.providers: Dict[str, BaseLLMProvider] = {}

        if providers is not None:
            self.settings = settings or Settings()
            for name, provider in providers.items():
                self.register_provider(name, provider)
            return

        self.settings = settings or load_settings()

        payload_logger = (
            FilePayloadLogger(self.settings.payload_log_dir)
            if self.settings.payload_log_dir else None
        )
        common = {"settings": self.settings, "payload_logger": payload_logger}

        # Each key is checked independently so the client can work with a subset of providers
        if self.settings.openai_api_key:
            self.providers["openai"] = OpenAIProvider(api_key=self.settings.openai_api_key, **common)

        if self.settings.anthropic_api_key:
            self.providers["anthropic"] = AnthropicProvider(api_key=self.settings.anthropic_api_key, **common)

        if self.settings.google_api_key:
            self.providers["google"] = GoogleProvider(api_key=self.settings.google_api_key, **common)

        if self.settings.deepseek_api_key:
            # DeepSeek is OpenAI-compatible, so we reuse the OpenAIProvider
            # with a custom base_url
            self.providers["deepseek"] = OpenAIProvider(
                api_key=self.settings.deepseek_api_key,
                base_url=self.settings.deepseek_base_url,
                provider_name="deepseek",
                **common,
            )

    # ==========================================================================
    # Provider Registry
    # ==========================================================================

    @staticmethod
    def normalize_provider(provider: str) -> str:
        provider = provider.lower()
        return PROVIDER_ALIASES.get(provider, provider)

    def register_provider(self, name: str, provider: BaseLLMProvider) -> None:
        """
        Add or replace a provider under the given name.
        """
        self.providers[self.normalize_provider(name)] = provider

    def available_providers(self) -> List[str]:
        return sorted(self.providers)

    def get_provider(self, provider: str) -> BaseLLMProvider:
        """
        Look up a configured provider.

        Raises:
            ValueError: If the provider is not configured or not supported.
        """
        name = self.normalize_provider(provider)
        if name not in self.providers:
            raise ValueError(f"Provider '{provider}' not configured or not supported.")
        return self.providers[name]

    # ==========================================================================
    # Unified Chat Methods
    # ==========================================================================

    def adapt(
        self,
        provider: str,
        messages: Iterable[MessageLike],
        system_prompt: Optional[str] = None,
        tools: Optional[Sequence[ToolLike]] = None,
    ) -> VendorPayload:
        """
        Convert canonical messages into the named provider's payload.
        """
        return self.get_provider(provider).adapt(messages, system_prompt=system_prompt, tools=tools)

    async def complete(
        self,
        provider: str,
        model: str,
        payload: VendorPayload,
        **opts,
    ) -> CanonicalMessage:
        """
        Send an already adapted payload and return the parsed reply.
        """
        return await self.get_provider(provider).complete(model, payload, **opts)

    async def stream(
        self,
        provider: str,
        model: str,
        payload: VendorPayload,
        **opts,
    ) -> AsyncIterator[Optional[CanonicalMessage]]:
        """
        Stream an already adapted payload. Yields None for bookkeeping events.
        """
        target = self.get_provider(provider)
        async for chunk in target.stream(model, payload, **opts):
            yield chunk

    async def chat(
        self,
        provider: str,
        model: str,
        messages: Iterable[MessageLike],
        system_prompt: Optional[str] = None,
        tools: Optional[Sequence[ToolLike]] = None,
        **opts,
    ) -> CanonicalMessage:
        """
        Send a non-streaming chat request to the specified provider.

        Args:
            provider (str): The provider name ('openai', 'anthropic', 'google',
                            'deepseek', or an alias such as 'claude' / 'gemini').
            model (str): The specific model identifier to use.
            messages: Conversation turns, CanonicalMessage objects or dicts.
            system_prompt (str, optional): Used when no system message is present.
            tools (optional): Tool schemas the model may call.
            **opts: Generation options:
                   - temperature (float): Controls randomness.
                   - max_tokens (int): Maximum number of tokens to generate.
                   - top_p (float): Nucleus sampling parameter.
                   - stop (str | list): Stop sequences.
                   - tool_choice (str): 'auto', 'none', 'required' or a tool name.

        Returns:
            CanonicalMessage: The assistant reply. `metadata` holds the model,
            finish reason, provider and latency; `usage` holds token counts
            when the vendor reported them.

        Raises:
            ValueError: If the provider is not configured or supported.
            InvalidMessageError: If the conversation cannot be adapted.
            VendorAPIError: If the vendor call fails.
        """
        target = self.get_provider(provider)
        return await target.chat(model, messages, system_prompt=system_prompt, tools=tools, **opts)

    async def chat_stream(
        self,
        provider: str,
        model: str,
        messages: Iterable[MessageLike],
        system_prompt: Optional[str] = None,
        tools: Optional[Sequence[ToolLike]] = None,
        **opts,
    ) -> AsyncIterator[Optional[CanonicalMessage]]:
        """
        Stream a reply from the specified provider in real-time.

        Yields:
            Optional[CanonicalMessage]: Text deltas, tool call fragments, usage
            updates, None for bookkeeping events, and finally a message with
            `is_complete` set. Use `collect_stream` to assemble them.
        """
        target = self.get_provider(provider)
        async for chunk in target.chat_stream(
            model, messages, system_prompt=system_prompt, tools=tools, **opts
        ):
            yield chunk
