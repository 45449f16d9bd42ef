"""CLI interface for nano-jarvis with streaming answers."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path

import click
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from rich.console import Console
from rich.markup import escape

from nano_jarvis.config import ChatSettings, load_settings
from nano_jarvis.conversation import Conversation, reply
from nano_jarvis.errors import ChatError, ConfigurationError
from nano_jarvis.llm.client import AsyncChatClient

console = Console()

_logger = logging.getLogger(__name__)


def _create_client(settings: ChatSettings) -> AsyncChatClient:
    return AsyncChatClient(settings)


def _print_fragment(fragment: str) -> None:
    console.print(fragment, end="", markup=False, highlight=False, soft_wrap=True)


async def _answer(
    client: AsyncChatClient, conversation: Conversation, inquiry: str,
) -> None:
    _logger.info("Human: %s", inquiry)
    exchange = await reply(client, conversation, inquiry, _print_fragment)
    _logger.info("Assistant: %s", exchange.answer)
    console.print(f"\n[dim]({exchange.duration_ms / 1000:.1f}s)[/dim]")


async def _ask_once(settings: ChatSettings, inquiry: str) -> None:
    async with _create_client(settings) as client:
        await _answer(client, Conversation(), inquiry)


async def _interactive(settings: ChatSettings) -> None:
    history_path = Path(os.path.expanduser("~/.nano_jarvis/history"))
    history_path.parent.mkdir(parents=True, exist_ok=True)
    session: PromptSession[str] = PromptSession(history=FileHistory(str(history_path)))
    conversation = Conversation()

    async with _create_client(settings) as client:
        while True:
            try:
                user_input = (await session.prompt_async("You> ")).strip()
            except (EOFError, KeyboardInterrupt):
                console.print("\n[dim]Goodbye![/dim]")
                break

            if not user_input:
                continue
            if user_input in ("/quit", "/exit", "/q"):
                console.print("[dim]Goodbye![/dim]")
                break
            if user_input == "/clear":
                conversation.clear()
                console.print("[dim]Conversation cleared.[/dim]")
                continue

            try:
                await _answer(client, conversation, user_input)
            except ChatError as e:
                console.print(f"\n[red]Error: {escape(str(e))}[/red]")


@click.command()
@click.argument("question", required=False)
@click.option("--config", "-c", "config_path", default=None,
              help="Path to nano_jarvis.yaml (auto-detected from CWD or ~/.config/nano-jarvis/)")
@click.option("--no-stream", is_flag=True, help="Wait for the full answer instead of streaming")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def main(question: str | None, config_path: str | None, no_stream: bool, verbose: bool):
    """nano-jarvis - ask an OpenAI-compatible LLM, with streamed answers.

    Answers QUESTION and exits, or starts an interactive session when no
    question is given.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        settings = load_settings(config_path).validate()
    except ConfigurationError as e:
        console.print(f"[red]Fatal error: {escape(str(e))}[/red]")
        sys.exit(1)
    if no_stream:
        settings.streaming = False

    console.print(
        f"[dim]Using LLM at {escape(settings.base_url)} "
        f"(model: {escape(settings.model or 'default')}).[/dim]"
    )

    if question:
        try:
            asyncio.run(_ask_once(settings, question))
        except ChatError as e:
            console.print(f"\n[red]Error: {escape(str(e))}[/red]")
            sys.exit(1)
        return

    asyncio.run(_interactive(settings))


if __name__ == "__main__":
    main()
