from .base import BaseLLMProvider
from .openai import OpenAIProvider
from .anthropic import AnthropicProvider
from .google import GoogleProvider

__all__ = ["BaseLLMProvider", "OpenAIProvider", "AnthropicProvider", "GoogleProvider"]
