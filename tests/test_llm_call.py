"""Tests for the completion client."""

from unittest.mock import AsyncMock, Mock

import pytest

from promptbinder.exceptions import CompletionError
from promptbinder.llm_call import CompletionClient, parse_tool_arguments


def _make_tool_call(call_id: str, name: str, arguments: str) -> Mock:
    call = Mock()
    call.id = call_id
    call.function = Mock()
    call.function.name = name
    call.function.arguments = arguments
    return call


def _make_mock_response(content, tool_calls=None, usage=None) -> Mock:
    """Create a mock chat completion response."""
    msg = Mock()
    msg.content = content
    msg.tool_calls = tool_calls
    response = Mock()
    response.choices = [Mock(message=msg)]
    response.usage = usage
    return response


def _client_returning(response) -> tuple[CompletionClient, Mock]:
    openai_client = Mock()
    openai_client.chat.completions.create = AsyncMock(return_value=response)
    openai_client.close = AsyncMock()
    return CompletionClient(model="test-model", client=openai_client), openai_client


class TestParseToolArguments:
    """Tests for parse_tool_arguments."""

    def test_valid_json(self):
        assert parse_tool_arguments('{"city": "Oslo"}') == {"city": "Oslo"}

    def test_empty(self):
        assert parse_tool_arguments("") == {}
        assert parse_tool_arguments(None) == {}

    def test_repairs_malformed_json(self):
        """Trailing commas and truncation are repaired."""
        assert parse_tool_arguments('{"city": "Oslo",}') == {"city": "Oslo"}

    def test_non_object_becomes_empty(self):
        assert parse_tool_arguments("[1, 2]") == {}


class TestComplete:
    """Tests for CompletionClient.complete."""

    @pytest.mark.asyncio
    async def test_text_response(self):
        client, openai_client = _client_returning(_make_mock_response("Hello"))

        completion = await client.complete([{"role": "user", "content": "hi"}])

        assert completion.text == "Hello"
        assert completion.tool_calls == []
        assert completion.has_tool_calls is False

    @pytest.mark.asyncio
    async def test_tools_sent_with_auto_choice(self):
        client, openai_client = _client_returning(_make_mock_response("ok"))
        tools = [{"type": "function", "function": {"name": "x"}}]

        await client.complete([{"role": "user", "content": "hi"}], tools=tools)

        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["tools"] == tools
        assert kwargs["tool_choice"] == "auto"
        assert kwargs["model"] == "test-model"

    @pytest.mark.asyncio
    async def test_no_tools_omits_tool_params(self):
        client, openai_client = _client_returning(_make_mock_response("ok"))

        await client.complete([{"role": "user", "content": "hi"}], tools=[])

        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert "tools" not in kwargs
        assert "tool_choice" not in kwargs

    @pytest.mark.asyncio
    async def test_tool_calls_parsed_in_order(self):
        response = _make_mock_response(
            None,
            tool_calls=[
                _make_tool_call("call_b", "get_alerts", "{}"),
                _make_tool_call("call_a", "get_forecast", '{"city": "Oslo"}'),
            ],
        )
        client, _ = _client_returning(response)

        completion = await client.complete([])

        assert completion.text is None
        assert [c.id for c in completion.tool_calls] == ["call_b", "call_a"]
        assert completion.tool_calls[1].tool_name == "get_forecast"
        assert completion.tool_calls[1].arguments == {"city": "Oslo"}

    @pytest.mark.asyncio
    async def test_usage_recorded(self):
        usage = Mock(prompt_tokens=10, completion_tokens=5, total_tokens=15)
        client, _ = _client_returning(_make_mock_response("ok", usage=usage))

        completion = await client.complete([])

        assert completion.usage == {
            "prompt_tokens": 10,
            "completion_tokens": 5,
            "total_tokens": 15,
        }

    @pytest.mark.asyncio
    async def test_api_failure_raises_completion_error(self):
        openai_client = Mock()
        openai_client.chat.completions.create = AsyncMock(side_effect=RuntimeError("503"))
        client = CompletionClient(model="m", client=openai_client)

        with pytest.raises(CompletionError) as excinfo:
            await client.complete([])
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_empty_choices_raise_completion_error(self):
        response = Mock()
        response.choices = []
        client, _ = _client_returning(response)

        with pytest.raises(CompletionError):
            await client.complete([])

    @pytest.mark.asyncio
    async def test_close(self):
        client, openai_client = _client_returning(_make_mock_response("ok"))
        await client.close()
        openai_client.close.assert_awaited_once()
