#!/usr/bin/env python3
"""
PromptBinder Interactive CLI

Connects to one tool/prompt server and chats with an LLM that can call
the server's tools, injecting each tool's bound prompt before it runs.
"""

import argparse
import asyncio
import json
import logging
import sys
import traceback

from .client import PromptBinderClient
from .config import config
from .exceptions import PromptBinderError
from .llm_call import CompletionClient
from .models import Role
from .tracing import init_tracing_from_config, shutdown_tracing

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_banner() -> None:
    """Print the welcome banner."""
    banner = """
╔════════════════════════════════════════════════════════════════╗
║                    PromptBinder Interactive                    ║
║                                                                ║
║   LLM tool calling with per-tool prompt injection              ║
╚════════════════════════════════════════════════════════════════╝

Available commands:
  /help     - Show this help message
  /tools    - List the server's tools
  /prompts  - Show which tools have a bound prompt
  /history  - Show the conversation log of the last query
  /trace    - Show the tool-call trace of the last query
  /verbose  - Toggle verbose mode
  /quit     - Exit the CLI

Type your questions or tasks below.
"""
    print(banner)


def print_tools(client: PromptBinderClient) -> None:
    """Print the discovered tools."""
    print("\nAvailable Tools:")
    print("─" * 64)
    summary = client.catalog.get_tools_summary() if client.catalog else ""
    print(summary or "(none)")
    print()


def print_prompt_bindings(client: PromptBinderClient) -> None:
    """Print each tool with the prompt key bound to it."""
    print("\nPrompt Bindings:")
    print("─" * 64)
    for name in client.catalog.names:
        key = client.key_mapper.prompt_key_for(name)
        print(f"{name.ljust(24)} -> {key or '(none)'}")
    print()


def print_history(client: PromptBinderClient) -> None:
    """Print the conversation log."""
    turns = client.conversation.snapshot()
    if not turns:
        print("\nNo conversation yet. Run a query first.\n")
        return

    print("\n" + "═" * 70)
    print("CONVERSATION")
    print("═" * 70)
    for index, turn in enumerate(turns, start=1):
        if turn.role is Role.TOOL:
            body = "\n".join(block.as_text() for block in turn.content)
            label = f"tool[{turn.tool_call_id}]"
        else:
            body = turn.text or ""
            label = turn.role.value
            if turn.tool_calls:
                calls = ", ".join(
                    f"{c.tool_name}({json.dumps(c.arguments)})" for c in turn.tool_calls
                )
                body = f"{body}\n  calls: {calls}".strip()
        if len(body) > 300:
            body = body[:300] + "..."
        print(f"{index:>3}. {label}: {body}")
    print()


def print_trace(client: PromptBinderClient) -> None:
    """Print the tool-call trace of the last query."""
    trace = client.last_loop.get_trace() if client.last_loop else []
    if not trace:
        print("\nNo tool calls in the last query.\n")
        return

    print("\n" + "═" * 70)
    print("TOOL CALL TRACE")
    print("═" * 70)
    for round_ in trace:
        print(f"\n┌─ Round {round_['round']}")
        for call in round_["calls"]:
            print("│")
            print(f"│  Tool: {call['tool']}  (id {call['id']})")
            print(f"│  Input: {json.dumps(call['arguments'])}")
            print(
                f"│  Prompt: {call['prompt'] or '-'} [{call['prompt_status']}, "
                f"{call['injected_messages']} message(s)]"
            )
            result = call["result"]
            if len(result) > 200:
                result = result[:200] + "..."
            print(f"│  Result{' (error)' if call['is_error'] else ''}: {result}")
        print("└" + "─" * 68)
    print()


class InteractiveCLI:
    """Interactive chat loop over a connected PromptBinderClient."""

    def __init__(self, client: PromptBinderClient, verbose: bool = False):
        self.client = client
        self.verbose = verbose

    def toggle_verbose(self) -> None:
        """Toggle verbose mode."""
        self.verbose = not self.verbose
        logging.getLogger().setLevel(logging.DEBUG if self.verbose else logging.INFO)
        print(f"\nVerbose mode: {'ON' if self.verbose else 'OFF'}\n")

    async def process_query(self, query: str) -> None:
        print("\n" + "─" * 70)
        print("Processing query...")
        print("─" * 70 + "\n")

        try:
            result = await self.client.run_query(query)
        except PromptBinderError as e:
            print(f"\nError: {e}\n")
            if self.verbose:
                traceback.print_exc()
            return

        print("\n" + "═" * 70)
        print("ANSWER")
        print("═" * 70)
        print(result.answer)
        print("═" * 70 + "\n")
        rounds = len(result.rounds)
        print(f"(Completed in {rounds} tool round{'s' if rounds != 1 else ''})")
        print("Use /trace to see the tool calls.\n")

    async def run(self) -> None:
        """Run the interactive loop until /quit or EOF."""
        print_banner()

        while True:
            try:
                user_input = (await asyncio.to_thread(input, ">>> ")).strip()
            except EOFError:
                print("\nGoodbye!\n")
                break

            if not user_input:
                continue

            if user_input.startswith("/"):
                command = user_input.lower()
                if command in ("/quit", "/exit", "/q"):
                    print("\nGoodbye!\n")
                    break
                elif command in ("/help", "/h", "/?"):
                    print_banner()
                elif command == "/tools":
                    print_tools(self.client)
                elif command == "/prompts":
                    print_prompt_bindings(self.client)
                elif command == "/history":
                    print_history(self.client)
                elif command == "/trace":
                    print_trace(self.client)
                elif command == "/verbose":
                    self.toggle_verbose()
                else:
                    print(f"\nUnknown command: {user_input}")
                    print("Type /help for available commands.\n")
            else:
                await self.process_query(user_input)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promptbinder",
        description="PromptBinder Interactive CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s servers/weather.py              # Launch a Python server over stdio
  %(prog)s http://localhost:8000/mcp       # Connect over streamable HTTP
  %(prog)s weather -q "Forecast for Oslo"  # Registered server, single query
""",
    )
    parser.add_argument(
        "server",
        help="Server name from servers.yaml, http(s) URL, or .py/.js script path",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-q", "--query", type=str, help="Run a single query and exit")
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help=f"Completion model (default: from LLM_MODEL env or {config.llm.model})",
    )
    parser.add_argument(
        "--max-rounds",
        type=int,
        default=None,
        help=f"Maximum tool-call rounds per query (default: {config.orchestration.max_tool_rounds})",
    )
    parser.add_argument(
        "--keep-history",
        action="store_true",
        help="Carry the conversation across queries",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output single-query results as JSON (for scripting)",
    )
    return parser


async def run_cli(args: argparse.Namespace) -> int:
    client = PromptBinderClient(
        completion_client=CompletionClient(model=args.model),
        max_rounds=args.max_rounds,
        keep_history=args.keep_history,
    )
    async with client:
        try:
            await client.connect(args.server)
        except PromptBinderError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        if args.query:
            try:
                result = await client.run_query(args.query)
            except PromptBinderError as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
            if args.json:
                output = {
                    "query": args.query,
                    "answer": result.answer,
                    "trace": client.last_loop.get_trace(),
                }
                print(json.dumps(output, indent=2))
            else:
                print(result.answer)
            return 0

        await InteractiveCLI(client, verbose=args.verbose).run()
    return 0


def main() -> None:
    """Main entry point."""
    args = build_parser().parse_args()
    setup_logging(args.verbose)
    init_tracing_from_config(config.langfuse)
    try:
        exit_code = asyncio.run(run_cli(args))
    except KeyboardInterrupt:
        print("\n\nInterrupted, shutting down.\n")
        exit_code = 130
    finally:
        shutdown_tracing()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
