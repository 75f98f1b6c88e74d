import pytest
from unittest.mock import AsyncMock, MagicMock

from llmbridge.types import CanonicalMessage, ToolCall, ToolSchema


async def aiter_events(events):
    """Async generator standing in for a vendor SDK stream."""
    for event in events:
        yield event


@pytest.fixture
def event_stream():
    """Factory for fake SDK streams."""
    return aiter_events


@pytest.fixture
def mock_env(monkeypatch):
    """Mock environment variables for API keys."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-openai")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test-anthropic")
    monkeypatch.setenv("GOOGLE_API_KEY", "AIza-test-google")
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test-deepseek")


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable llmbridge reads."""
    for name in (
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "GOOGLE_API_KEY",
        "DEEPSEEK_API_KEY",
        "DEEPSEEK_BASE_URL",
        "LLMBRIDGE_TEMPERATURE",
        "LLMBRIDGE_MAX_TOKENS",
        "LLMBRIDGE_LOG_LEVEL",
        "LLMBRIDGE_PAYLOAD_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def weather_tool():
    return ToolSchema(
        name="get_weather",
        description="Get the current weather",
        parameters={
            "type": "object",
            "properties": {
                "location": {"type": "string"},
                "days": {"type": "integer"},
            },
            "required": ["location"],
        },
    )


@pytest.fixture
def tool_conversation():
    """A user turn, an assistant turn calling two tools, and both results."""
    return [
        CanonicalMessage(role="system", content="You are a weather bot."),
        CanonicalMessage(role="user", content="Weather in Seoul and Paris?"),
        CanonicalMessage(
            role="assistant",
            content="Let me check.",
            tool_calls=(
                ToolCall(id="call_1", function_name="get_weather", arguments_json='{"location": "Seoul"}'),
                ToolCall(id="call_2", function_name="get_weather", arguments_json='{"location": "Paris"}'),
            ),
        ),
        CanonicalMessage(role="tool", content='{"temp": 21}', tool_call_id="call_1"),
        CanonicalMessage(role="tool", content="sunny", tool_call_id="call_2"),
    ]


@pytest.fixture
def openai_sdk():
    """Mocked AsyncOpenAI client."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def anthropic_sdk():
    """Mocked AsyncAnthropic client."""
    client = MagicMock()
    client.messages.create = AsyncMock()
    return client


@pytest.fixture
def google_sdk():
    """Mocked genai.Client."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    client.aio.models.generate_content_stream = AsyncMock()
    return client
