import pytest
from rich.console import Console

from llmbridge.rich_llm_printer import RichPrinter, RichStreamPrinter
from llmbridge.types import CanonicalMessage, TokenUsage, ToolCall


def recording_console():
    return Console(record=True, width=100, force_terminal=False)


class TestRichPrinter:

    def test_prints_text_and_metadata(self):
        output = recording_console()
        message = CanonicalMessage(
            role="assistant",
            content="Hello **world**",
            usage=TokenUsage(prompt_tokens=2, completion_tokens=3),
            metadata={"provider": "openai", "model": "gpt-4o"},
        )

        returned = RichPrinter(output=output).print_message(message)

        text = output.export_text()
        assert returned is message
        assert "Hello" in text
        assert "(openai)" in text
        assert "total_tokens" in text

    def test_prints_tool_calls(self):
        output = recording_console()
        message = CanonicalMessage(
            role="assistant",
            tool_calls=(ToolCall(id="call_1", function_name="get_weather", arguments_json='{"q": 1}'),),
        )

        RichPrinter(output=output, show_metadata=False).print_message(message)

        text = output.export_text()
        assert "get_weather" in text
        assert "call_1" in text

    def test_empty_response(self):
        output = recording_console()
        RichPrinter(output=output).print_message(CanonicalMessage(role="assistant", content=""))
        assert "(empty response)" in output.export_text()


class TestRichStreamPrinter:

    @pytest.mark.asyncio
    async def test_print_stream(self, event_stream):
        output = recording_console()
        chunks = [
            None,
            CanonicalMessage(role="assistant", content="Hel", metadata={"is_stream_chunk": True}),
            CanonicalMessage(role="assistant", content="lo", metadata={"is_stream_chunk": True, "is_complete": True}),
            CanonicalMessage(role="assistant", content=" ignored", metadata={"is_stream_chunk": True}),
        ]
        printer = RichStreamPrinter(output=output, refresh_rate=4)

        result = await printer.print_stream(event_stream(chunks))

        assert result.content == "Hello"
        assert result.is_complete
        assert printer.get_full_text() == "Hello"

    @pytest.mark.asyncio
    async def test_stream_without_completion(self, event_stream):
        output = recording_console()
        chunks = [CanonicalMessage(role="assistant", content="partial", metadata={"is_stream_chunk": True})]

        result = await RichStreamPrinter(output=output).print_stream(event_stream(chunks))

        assert result.content == "partial"
        assert not result.is_complete
