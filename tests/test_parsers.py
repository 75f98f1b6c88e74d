import json
import logging
import re
from types import SimpleNamespace

import pytest

from llmbridge.adapters import AnthropicAdapter, GoogleAdapter, OpenAIAdapter
from llmbridge.errors import ParseError
from llmbridge.parsers import (
    AnthropicResponseParser,
    GoogleResponseParser,
    OpenAIResponseParser,
    field_of,
)
from llmbridge.streaming import StreamAccumulator
from llmbridge.types import CanonicalMessage, TokenUsage, ToolCall


def _calls(n):
    return tuple(
        ToolCall(id=f"call_{i}", function_name=f"tool_{i}", arguments_json=json.dumps({"i": i}))
        for i in range(n)
    )


def _accumulate(parser, events):
    acc = StreamAccumulator()
    for event in events:
        acc.feed(parser.parse_stream_event(event))
    return acc.result()


class TestFieldOf:

    def test_dict_and_object(self):
        assert field_of({"a": 1}, "a") == 1
        assert field_of(SimpleNamespace(a=1), "a") == 1

    def test_alternative_names(self):
        assert field_of({"usageMetadata": 3}, "usage_metadata", "usageMetadata") == 3

    def test_default(self):
        assert field_of(None, "a", default="x") == "x"
        assert field_of({"a": None}, "a", default="x") == "x"


class TestOpenAIResponseParser:

    def test_text_response(self):
        message = OpenAIResponseParser().parse_response({
            "model": "gpt-4o",
            "choices": [{"message": {"role": "assistant", "content": "Hello"}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 5, "completion_tokens": 1, "total_tokens": 6},
        })
        assert message.role == "assistant"
        assert message.content == "Hello"
        assert message.usage == TokenUsage(prompt_tokens=5, completion_tokens=1, total_tokens=6)
        assert message.metadata["model"] == "gpt-4o"
        assert message.metadata["finish_reason"] == "stop"

    def test_sdk_object_response(self):
        response = SimpleNamespace(
            model="gpt-4o",
            choices=[SimpleNamespace(
                message=SimpleNamespace(
                    content=None,
                    tool_calls=[SimpleNamespace(
                        id="call_abc",
                        function=SimpleNamespace(name="get_weather", arguments='{"location": "Seoul"}'),
                    )],
                ),
                finish_reason="tool_calls",
            )],
            usage=None,
        )
        message = OpenAIResponseParser().parse_response(response)
        assert message.content is None
        assert message.tool_calls == (
            ToolCall(id="call_abc", function_name="get_weather", arguments_json='{"location": "Seoul"}'),
        )
        assert message.usage is None

    def test_no_choices(self):
        with pytest.raises(ParseError):
            OpenAIResponseParser().parse_response({"choices": []})

    def test_tool_calls_not_a_list(self):
        with pytest.raises(ParseError, match="unexpected shape") as exc_info:
            OpenAIResponseParser().parse_response({
                "choices": [{"message": {"content": None, "tool_calls": 3}}],
            })
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_text_with_tool_calls_keeps_text(self):
        message = OpenAIResponseParser().parse_response({
            "choices": [{"message": {
                "content": "Checking.",
                "tool_calls": [{"id": "c1", "function": {"name": "f", "arguments": "{}"}}],
            }}],
        })
        assert message.content == "Checking."

    def test_empty_reply_without_tool_calls(self):
        message = OpenAIResponseParser().parse_response({"choices": [{"message": {"content": None}}]})
        assert message.content == ""

    @pytest.mark.parametrize("n", [1, 3])
    def test_round_trip_preserves_calls(self, n):
        calls = _calls(n)
        payload = OpenAIAdapter().adapt([
            CanonicalMessage(role="user", content="go"),
            CanonicalMessage(role="assistant", tool_calls=calls),
        ])
        message = OpenAIResponseParser().parse_response({
            "choices": [{"message": payload.messages[-1], "finish_reason": "tool_calls"}],
        })
        assert message.tool_calls == calls

    def test_stream_text(self):
        parser = OpenAIResponseParser()
        events = [
            {"choices": [{"delta": {"role": "assistant"}, "finish_reason": None}]},
            {"choices": [{"delta": {"content": "Hel"}, "finish_reason": None}]},
            {"choices": [{"delta": {"content": "lo"}, "finish_reason": None}]},
            {"choices": [{"delta": {}, "finish_reason": "stop"}]},
        ]
        chunks = [parser.parse_stream_event(e) for e in events]
        assert chunks[0] is None
        assert chunks[1].content == "Hel"
        assert chunks[1].is_stream_chunk
        assert not chunks[1].is_complete
        assert chunks[3].is_complete

        result = _accumulate(parser, events)
        assert result.content == "Hello"
        assert result.is_complete

    def test_stream_tool_call_fragments(self):
        parser = OpenAIResponseParser()
        events = [
            {"choices": [{"delta": {"tool_calls": [
                {"index": 0, "id": "call_1", "function": {"name": "get_weather", "arguments": ""}},
            ]}, "finish_reason": None}]},
            {"choices": [{"delta": {"tool_calls": [
                {"index": 0, "function": {"arguments": '{"location": '}},
            ]}, "finish_reason": None}]},
            {"choices": [{"delta": {"tool_calls": [
                {"index": 0, "function": {"arguments": '"Seoul"}'}},
            ]}, "finish_reason": None}]},
            {"choices": [{"delta": {}, "finish_reason": "tool_calls"}]},
        ]
        result = _accumulate(parser, events)
        assert result.tool_calls == (
            ToolCall(id="call_1", function_name="get_weather", arguments_json='{"location": "Seoul"}'),
        )

    def test_stream_usage_only_chunk(self):
        chunk = OpenAIResponseParser().parse_stream_event({
            "choices": [],
            "usage": {"prompt_tokens": 3, "completion_tokens": 2},
        })
        assert chunk.usage == TokenUsage(prompt_tokens=3, completion_tokens=2, total_tokens=5)

    def test_stream_matches_complete_response(self):
        parser = OpenAIResponseParser()
        complete = parser.parse_response({
            "choices": [{"message": {"content": "Hello world"}, "finish_reason": "stop"}],
        })
        streamed = _accumulate(parser, [
            {"choices": [{"delta": {"content": "Hello"}, "finish_reason": None}]},
            {"choices": [{"delta": {"content": " world"}, "finish_reason": "stop"}]},
        ])
        assert streamed.content == complete.content
        assert streamed.tool_calls == complete.tool_calls


class TestAnthropicResponseParser:

    def test_text_and_tool_use(self):
        message = AnthropicResponseParser().parse_response({
            "model": "claude-3-5-sonnet",
            "stop_reason": "tool_use",
            "content": [
                {"type": "text", "text": "Let me check."},
                {"type": "tool_use", "id": "toolu_1", "name": "get_weather", "input": {"location": "Seoul"}},
            ],
            "usage": {"input_tokens": 10, "output_tokens": 4},
        })
        assert message.content == "Let me check."
        assert message.tool_calls[0].id == "toolu_1"
        assert json.loads(message.tool_calls[0].arguments_json) == {"location": "Seoul"}
        assert message.usage == TokenUsage(prompt_tokens=10, completion_tokens=4, total_tokens=14)
        assert message.metadata["finish_reason"] == "tool_use"

    def test_missing_content(self):
        with pytest.raises(ParseError):
            AnthropicResponseParser().parse_response({"model": "claude"})

    def test_tool_use_without_id(self):
        with pytest.raises(ParseError):
            AnthropicResponseParser().parse_response({
                "content": [{"type": "tool_use", "name": "f", "input": {}}],
            })

    def test_content_not_a_list(self):
        with pytest.raises(ParseError, match="unexpected shape"):
            AnthropicResponseParser().parse_response({"content": 5})

    def test_tool_only_reply_has_no_content(self):
        message = AnthropicResponseParser().parse_response({
            "stop_reason": "tool_use",
            "content": [{"type": "tool_use", "id": "toolu_1", "name": "get_weather", "input": {"location": "Seoul"}}],
        })
        assert message.content is None
        assert message.tool_calls[0].function_name == "get_weather"

    def test_streamed_tool_only_reply_has_no_content(self):
        result = _accumulate(AnthropicResponseParser(), [
            {"type": "content_block_start", "index": 0, "content_block": {"type": "tool_use", "id": "toolu_1", "name": "f", "input": {}}},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "input_json_delta", "partial_json": "{}"}},
            {"type": "message_stop"},
        ])
        assert result.content is None
        assert len(result.tool_calls) == 1

    @pytest.mark.parametrize("n", [1, 3])
    def test_round_trip_preserves_calls(self, n):
        calls = _calls(n)
        payload = AnthropicAdapter().adapt([
            CanonicalMessage(role="user", content="go"),
            CanonicalMessage(role="assistant", tool_calls=calls),
        ])
        message = AnthropicResponseParser().parse_response({"content": payload.messages[-1]["content"]})
        assert [tc.id for tc in message.tool_calls] == [tc.id for tc in calls]
        assert [tc.function_name for tc in message.tool_calls] == [tc.function_name for tc in calls]
        assert [json.loads(tc.arguments_json) for tc in message.tool_calls] == [
            json.loads(tc.arguments_json) for tc in calls
        ]

    def test_stream_hello(self):
        parser = AnthropicResponseParser()
        events = [
            {"type": "message_start", "message": {"model": "claude", "usage": {"input_tokens": 5, "output_tokens": 1}}},
            {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Hel"}},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "lo"}},
            {"type": "content_block_stop", "index": 0},
            {"type": "message_delta", "delta": {"stop_reason": "end_turn"}, "usage": {"output_tokens": 2}},
            {"type": "message_stop"},
        ]
        chunks = [parser.parse_stream_event(e) for e in events]
        assert chunks[1] is None
        assert chunks[4] is None
        assert chunks[-1].is_complete

        result = _accumulate(parser, events)
        assert result.content == "Hello"
        assert result.usage == TokenUsage(prompt_tokens=5, completion_tokens=2, total_tokens=7)
        assert result.metadata["finish_reason"] == "end_turn"
        assert result.is_complete

    def test_stream_tool_use(self):
        parser = AnthropicResponseParser()
        events = [
            {"type": "content_block_start", "index": 1, "content_block": {"type": "tool_use", "id": "toolu_1", "name": "get_weather", "input": {}}},
            {"type": "content_block_delta", "index": 1, "delta": {"type": "input_json_delta", "partial_json": '{"loc'}},
            {"type": "content_block_delta", "index": 1, "delta": {"type": "input_json_delta", "partial_json": 'ation": "Seoul"}'}},
            {"type": "message_stop"},
        ]
        result = _accumulate(parser, events)
        assert result.tool_calls == (
            ToolCall(id="toolu_1", function_name="get_weather", arguments_json='{"location": "Seoul"}'),
        )

    def test_malformed_event_skipped(self, caplog):
        parser = AnthropicResponseParser()
        with caplog.at_level(logging.WARNING, logger="llmbridge"):
            chunk = parser.parse_stream_event({"type": "content_block_delta", "delta": {"type": "text_delta"}})
        assert chunk is None
        assert "Skipping malformed anthropic stream event" in caplog.text

    def test_stream_continues_after_malformed_event(self):
        parser = AnthropicResponseParser()
        result = _accumulate(parser, [
            {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "Hel"}},
            {"type": "content_block_delta", "delta": {"type": "text_delta"}},
            {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "lo"}},
            {"type": "message_stop"},
        ])
        assert result.content == "Hello"


class TestGoogleResponseParser:

    def test_text_response(self):
        message = GoogleResponseParser().parse_response({
            "model_version": "gemini-2.0-flash",
            "candidates": [{"content": {"role": "model", "parts": [{"text": "Hi "}, {"text": "there"}]}, "finish_reason": "STOP"}],
            "usage_metadata": {"prompt_token_count": 4, "candidates_token_count": 2, "total_token_count": 6},
        })
        assert message.content == "Hi there"
        assert message.usage == TokenUsage(prompt_tokens=4, completion_tokens=2, total_tokens=6)
        assert message.metadata["model"] == "gemini-2.0-flash"

    def test_camel_case_rest_json(self):
        message = GoogleResponseParser().parse_response({
            "candidates": [{"content": {"parts": [{"functionCall": {"name": "f", "args": {"a": 1}}}]}, "finishReason": "STOP"}],
            "usageMetadata": {"promptTokenCount": 1, "candidatesTokenCount": 1},
        })
        assert message.tool_calls[0].function_name == "f"
        assert message.usage.total_tokens == 2

    def test_enum_finish_reason(self):
        message = GoogleResponseParser().parse_response(SimpleNamespace(
            candidates=[SimpleNamespace(
                content=SimpleNamespace(parts=[SimpleNamespace(text="ok", function_call=None, thought=None)]),
                finish_reason=SimpleNamespace(value="STOP"),
            )],
            usage_metadata=None,
            model_version=None,
        ))
        assert message.metadata["finish_reason"] == "STOP"

    def test_synthetic_ids_unique(self):
        message = GoogleResponseParser().parse_response({
            "candidates": [{"content": {"parts": [
                {"function_call": {"name": "a", "args": {}}},
                {"function_call": {"name": "b", "args": {}}},
            ]}}],
        })
        ids = [tc.id for tc in message.tool_calls]
        assert len(set(ids)) == 2
        assert all(re.fullmatch(r"call_[0-9a-f]{8}_\d+", i) for i in ids)

    def test_vendor_id_kept(self):
        message = GoogleResponseParser().parse_response({
            "candidates": [{"content": {"parts": [{"function_call": {"id": "fc_1", "name": "a", "args": {}}}]}}],
        })
        assert message.tool_calls[0].id == "fc_1"

    def test_thought_parts_skipped(self):
        message = GoogleResponseParser().parse_response({
            "candidates": [{"content": {"parts": [{"text": "thinking", "thought": True}, {"text": "answer"}]}}],
        })
        assert message.content == "answer"

    def test_no_candidates(self):
        with pytest.raises(ParseError):
            GoogleResponseParser().parse_response({"candidates": [], "prompt_feedback": {"block_reason": "SAFETY"}})

    def test_candidates_not_a_list(self, caplog):
        with caplog.at_level(logging.ERROR, logger="llmbridge"):
            with pytest.raises(ParseError, match="unexpected shape"):
                GoogleResponseParser().parse_response({"candidates": {"a": 1}})
        assert "Unexpected google response shape" in caplog.text

    def test_function_call_only_reply_has_no_content(self):
        message = GoogleResponseParser().parse_response({
            "candidates": [{"content": {"parts": [{"function_call": {"name": "f", "args": {}}}]}}],
        })
        assert message.content is None

    def test_usage_absent(self):
        message = GoogleResponseParser().parse_response({"candidates": [{"content": {"parts": [{"text": "x"}]}}]})
        assert message.usage is None

    @pytest.mark.parametrize("n", [1, 3])
    def test_round_trip_preserves_calls(self, n):
        calls = _calls(n)
        payload = GoogleAdapter().adapt([
            CanonicalMessage(role="user", content="go"),
            CanonicalMessage(role="assistant", tool_calls=calls),
        ])
        message = GoogleResponseParser().parse_response({"candidates": [{"content": payload.messages[-1]}]})
        assert [tc.function_name for tc in message.tool_calls] == [tc.function_name for tc in calls]
        assert [json.loads(tc.arguments_json) for tc in message.tool_calls] == [
            json.loads(tc.arguments_json) for tc in calls
        ]

    def test_stream(self):
        parser = GoogleResponseParser()
        events = [
            {"candidates": [{"content": {"parts": [{"text": "Hel"}]}}]},
            {"candidates": [{"content": {"parts": [{"text": "lo"}]}, "finish_reason": "STOP"}],
             "usage_metadata": {"prompt_token_count": 3, "candidates_token_count": 2}},
        ]
        first = parser.parse_stream_event(events[0])
        assert first.content == "Hel"
        assert not first.is_complete

        result = _accumulate(parser, events)
        assert result.content == "Hello"
        assert result.usage.total_tokens == 5
        assert result.is_complete

    def test_stream_empty_chunk(self):
        assert GoogleResponseParser().parse_stream_event({"candidates": [{"content": {"parts": []}}]}) is None
