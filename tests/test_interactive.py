"""Tests for the interactive CLI helpers."""

import json
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from fakes import FakeToolServer, make_prompt, scripted_llm, text_completion, tool_completion
from promptbinder.client import PromptBinderClient
from promptbinder.exceptions import ServerConnectionError
from promptbinder.interactive import (
    build_parser,
    print_history,
    print_prompt_bindings,
    print_tools,
    print_trace,
    run_cli,
)


@pytest_asyncio.fixture
async def client(weather_tools):
    server = FakeToolServer(
        tools=weather_tools,
        prompts={"tool:get_forecast": make_prompt(("user", "Use Celsius."))},
        tool_results={"get_forecast": "12C"},
    )
    llm = scripted_llm(
        tool_completion(("c1", "get_forecast", {"city": "Oslo"})),
        text_completion("12C in Oslo."),
    )
    client = PromptBinderClient(completion_client=llm, system_prompt="")
    await client.attach(server)
    return client


class TestBuildParser:
    """Tests for command-line parsing."""

    def test_defaults(self):
        args = build_parser().parse_args(["servers/weather.py"])
        assert args.server == "servers/weather.py"
        assert args.query is None
        assert args.max_rounds is None
        assert args.keep_history is False

    def test_single_query_options(self):
        args = build_parser().parse_args(
            ["weather", "-q", "Oslo?", "--max-rounds", "2", "--json", "--model", "m"]
        )
        assert args.query == "Oslo?"
        assert args.max_rounds == 2
        assert args.json is True
        assert args.model == "m"


class TestPrinters:
    """Tests for the /tools, /prompts, /history and /trace output."""

    @pytest.mark.asyncio
    async def test_print_tools_and_bindings(self, client, capsys):
        print_tools(client)
        print_prompt_bindings(client)
        out = capsys.readouterr().out
        assert "get_forecast" in out
        assert "tool:get_alerts" in out

    @pytest.mark.asyncio
    async def test_history_and_trace_before_query(self, client, capsys):
        print_history(client)
        print_trace(client)
        out = capsys.readouterr().out
        assert "No conversation yet" in out
        assert "No tool calls" in out

    @pytest.mark.asyncio
    async def test_history_and_trace_after_query(self, client, capsys):
        await client.process_query("Oslo weather?")

        print_history(client)
        print_trace(client)
        out = capsys.readouterr().out
        assert "Use Celsius." in out
        assert "tool[c1]: 12C" in out
        assert "Prompt: tool:get_forecast [PromptFound, 1 message(s)]" in out


class TestRunCli:
    """Tests for single-query mode."""

    @pytest.mark.asyncio
    async def test_connection_failure_exit_code(self, capsys):
        args = build_parser().parse_args(["missing.py", "-q", "hi"])
        with patch(
            "promptbinder.client.PromptBinderClient.connect",
            AsyncMock(side_effect=ServerConnectionError("refused")),
        ):
            assert await run_cli(args) == 1
        assert "refused" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_json_output(self, weather_tools, capsys):
        server = FakeToolServer(tools=weather_tools)
        args = build_parser().parse_args(["weather", "-q", "hi", "--json"])

        async def fake_connect(self, address):
            await self.attach(server)

        with patch("promptbinder.interactive.CompletionClient", return_value=scripted_llm(
            text_completion("hello")
        )), patch.object(PromptBinderClient, "connect", fake_connect):
            assert await run_cli(args) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["answer"] == "hello"
        assert output["trace"] == []
