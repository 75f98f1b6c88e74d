import os
from dataclasses import dataclass
from typing import Optional, Union
from pathlib import Path

import dotenv

from .errors import ConfigurationError

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1024
DEFAULT_DEEPSEEK_BASE_URL = "https://api.deepseek.com"


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration for llmbridge.

    Attributes:
        openai_api_key: API key for OpenAI (OPENAI_API_KEY).
        anthropic_api_key: API key for Anthropic (ANTHROPIC_API_KEY).
        google_api_key: API key for Google Gemini (GOOGLE_API_KEY).
        deepseek_api_key: API key for DeepSeek (DEEPSEEK_API_KEY).
        deepseek_base_url: OpenAI-compatible DeepSeek endpoint (DEEPSEEK_BASE_URL).
        temperature: Default sampling temperature (LLMBRIDGE_TEMPERATURE).
        max_tokens: Default generation limit (LLMBRIDGE_MAX_TOKENS).
        log_level: Level for `configure_logging` (LLMBRIDGE_LOG_LEVEL).
        payload_log_dir: Directory for request payload logs, disabled when
            unset (LLMBRIDGE_PAYLOAD_LOG_DIR).
    """
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    google_api_key: Optional[str] = None
    deepseek_api_key: Optional[str] = None
    deepseek_base_url: str = DEFAULT_DEEPSEEK_BASE_URL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    log_level: str = "WARNING"
    payload_log_dir: Optional[str] = None


def _number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a {cast.__name__}, got {raw!r}") from e


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from the environment, after reading a `.env` file.

    Variables already present in the environment take precedence over the file.

    Args:
        env_file: Path of the dotenv file. Defaults to searching for `.env`.

    Returns:
        Settings: The resolved configuration.

    Raises:
        ConfigurationError: If a numeric setting cannot be parsed.
    """
    dotenv.load_dotenv(dotenv_path=env_file, override=False)

    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
        google_api_key=os.getenv("GOOGLE_API_KEY") or None,
        deepseek_api_key=os.getenv("DEEPSEEK_API_KEY") or None,
        deepseek_base_url=os.getenv("DEEPSEEK_BASE_URL") or DEFAULT_DEEPSEEK_BASE_URL,
        temperature=_number("LLMBRIDGE_TEMPERATURE", DEFAULT_TEMPERATURE, float),
        max_tokens=_number("LLMBRIDGE_MAX_TOKENS", DEFAULT_MAX_TOKENS, int),
        log_level=(os.getenv("LLMBRIDGE_LOG_LEVEL") or "WARNING").upper(),
        payload_log_dir=os.getenv("LLMBRIDGE_PAYLOAD_LOG_DIR") or None,
    )
