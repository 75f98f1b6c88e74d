from .base import BaseAdapter
from .openai import OpenAIAdapter
from .anthropic import AnthropicAdapter
from .google import GoogleAdapter

__all__ = ["BaseAdapter", "OpenAIAdapter", "AnthropicAdapter", "GoogleAdapter"]
