"""
RuneAgent CLI entry point.

Provides a command-line front end for the assistant and utility commands.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from runeagent import __version__
from runeagent.components import AgentComponents
from runeagent.config.logging import get_logger, setup_logging
from runeagent.config.settings import Settings, load_settings
from runeagent.llm.session import SessionRunner
from runeagent.tools.catalog import TOOL_CATALOG

CLEAR_COMMAND = "/clear"
QUIT_COMMANDS = ("/quit", "/exit")


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a whole number, got {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="runeagent",
        description="LLM-powered assistant for RuneLite and the OSRS Wiki",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"RuneAgent {__version__}",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: .env in current directory)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("config", help="Show current configuration")

    subparsers.add_parser("tools", help="List the tools available to the assistant")

    ask_parser = subparsers.add_parser(
        "ask",
        help="Ask a single question and print the streamed answer",
    )
    ask_parser.add_argument(
        "question",
        help='Question to ask, e.g. "What is the GE price of dragon bones?"',
    )

    chat_parser = subparsers.add_parser(
        "chat",
        help=f"Interactive conversation ({CLEAR_COMMAND} starts over, /quit exits)",
    )
    chat_parser.add_argument(
        "--max-iterations",
        type=positive_int,
        default=None,
        help="Override the per-message tool round trip cap (default: AGENT__MAX_TOOL_ITERATIONS)",
    )

    return parser


def cmd_config(settings: Settings) -> int:
    """Show current configuration."""
    logger = get_logger(__name__)

    logger.info("\n=== RuneAgent Configuration ===\n")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"Log File: {settings.log_file or 'None (console only)'}")
    logger.info(f"\nLLM Model: {settings.llm.model}")
    logger.info(f"LLM Max Tokens: {settings.llm.max_tokens}")
    logger.info(f"LLM API Key: {'Set' if settings.llm.api_key else 'Not set'}")
    logger.info(f"\nAgent Max Tool Iterations: {settings.agent.max_tool_iterations}")
    logger.info(f"\nWiki API: {settings.wiki.api_url}")
    logger.info(f"Prices API: {settings.wiki.prices_url}")
    logger.info(f"\nHost State File: {settings.host.state_file or 'None (in-memory)'}")

    return 0


def cmd_tools() -> int:
    """Print the tool catalog."""
    print(f"\n=== Tools ({len(TOOL_CATALOG)}) ===\n")
    for tool in TOOL_CATALOG:
        required = ", ".join(tool.input_schema.required) or "none"
        print(f"{tool.name}  (required: {required})")
        print(f"    {tool.description}")
    return 0


async def _send_and_wait(session: SessionRunner, text: str) -> bool:
    """Send one message, stream chunks to stdout, return True on success."""
    outcome: dict[str, bool] = {}

    def on_chunk(chunk: str) -> None:
        print(chunk, end="", flush=True)

    def on_complete(_full_text: str) -> None:
        outcome["ok"] = True
        print()

    def on_error(message: str) -> None:
        outcome["ok"] = False
        print(f"\n{message}", file=sys.stderr)

    session.send(text, on_chunk, on_complete, on_error)
    await session.join()
    return outcome.get("ok", False)


async def cmd_ask(args, settings: Settings) -> int:
    """Answer a single question."""
    logger = get_logger(__name__)
    factory = AgentComponents(settings)

    try:
        async with factory.create_wiki_client() as wiki:
            dispatcher = factory.create_dispatcher(factory.create_host_controller(), wiki)
            async with factory.create_session(dispatcher) as session:
                logger.info(f"Sending to {settings.llm.model}...")
                ok = await _send_and_wait(session, args.question)
    except Exception as e:
        logger.error(f"Ask failed: {e}", exc_info=True)
        return 1

    if not ok:
        print("Tip: Set LLM__API_KEY in your .env file.", file=sys.stderr)
    return 0 if ok else 1


async def cmd_chat(args, settings: Settings) -> int:
    """
    Interactive chat.

    Each line is one send() on a single session, so the model sees the whole
    conversation. /clear starts a new conversation; /quit or EOF exits.
    """
    logger = get_logger(__name__)

    factory = AgentComponents(settings)

    try:
        async with factory.create_wiki_client() as wiki:
            dispatcher = factory.create_dispatcher(factory.create_host_controller(), wiki)
            async with factory.create_session(dispatcher, args.max_iterations) as session:
                print(f"RuneAgent {__version__} ({settings.llm.model}). "
                      f"{CLEAR_COMMAND} starts over, /quit exits.")
                while True:
                    try:
                        line = await asyncio.to_thread(input, "\n> ")
                    except EOFError:
                        break

                    text = line.strip()
                    if not text:
                        continue
                    if text in QUIT_COMMANDS:
                        break
                    if text == CLEAR_COMMAND:
                        session.clear()
                        print("Conversation cleared.")
                        continue

                    await _send_and_wait(session, text)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.error(f"Chat failed: {e}", exc_info=True)
        return 1

    return 0


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    # Load settings
    try:
        settings = load_settings(env_file=args.env_file)
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    # Override log level if specified
    if args.log_level:
        settings.log_level = args.log_level

    setup_logging(settings)

    if args.command == "config":
        return cmd_config(settings)
    elif args.command == "tools":
        return cmd_tools()
    elif args.command == "ask":
        return asyncio.run(cmd_ask(args, settings))
    elif args.command == "chat":
        return asyncio.run(cmd_chat(args, settings))
    else:
        # Default: show help
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
