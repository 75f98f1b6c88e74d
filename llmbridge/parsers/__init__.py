from .base import BaseResponseParser, field_of
from .openai import OpenAIResponseParser
from .anthropic import AnthropicResponseParser
from .google import GoogleResponseParser

__all__ = [
    "BaseResponseParser",
    "OpenAIResponseParser",
    "AnthropicResponseParser",
    "GoogleResponseParser",
    "field_of",
]
