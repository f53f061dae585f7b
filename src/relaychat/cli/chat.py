"""Interactive chat REPL command."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.prompt import Confirm, Prompt
from rich.text import Text

from relaychat.chat.models import ChatMessage, MessageSource
from relaychat.chat.orchestrator import ChatOrchestrator, create_orchestrator
from relaychat.config.loader import load_config
from relaychat.llm.engine import InitProgress

if TYPE_CHECKING:
    from relaychat.config.schema import RelayConfig

console = Console()
logger = logging.getLogger(__name__)

_SOURCE_STYLES = {
    MessageSource.ANALYZING: ("Analyzing...", "dim"),
    MessageSource.LOCAL: ("Local", "bold green"),
    MessageSource.REMOTE: ("Remote", "bold blue"),
    MessageSource.ERROR: ("Error", "bold red"),
}


def chat_command(config_path: str | None = None) -> None:
    """Start interactive chat session.

    Args:
        config_path: Optional path to config file
    """
    path = Path(config_path) if config_path else None
    try:
        config = load_config(path)
    except Exception as e:
        console.print(f"[red]Failed to load config: {e}[/red]")
        console.print("Run [bold]relaychat init[/bold] to create a config file.")
        return

    console.print(
        f"[bold blue]relaychat[/bold blue]  local: {config.local.model}  "
        f"remote: {config.remote.model}\n"
        f"Prefix with {config.routing.remote_tag} or {config.routing.local_tag} to pick a model. "
        "Type /help for commands, /exit to quit"
    )

    asyncio.run(_async_chat(config))


def render_reply(message: ChatMessage | None) -> Group:
    """Render the reply placeholder with its source label."""
    if message is None:
        return Group(Text(""))
    label, style = _SOURCE_STYLES.get(message.source, (message.source.value, "bold"))
    if message.source == MessageSource.ERROR:
        return Group(Text(label, style=style), Text(message.text, style="red"))
    return Group(Text(label, style=style), Markdown(message.text))


async def _initialize_local(orchestrator: ChatOrchestrator) -> bool:
    loading = "[bold green]Loading local model...[/bold green]"
    with console.status(loading, spinner="dots") as status:

        def on_progress(report: InitProgress) -> None:
            status.update(f"[bold green]{report.text}[/bold green] ({report.progress:.0%})")

        ready = await orchestrator.local.initialize(on_progress)  # type: ignore[attr-defined]

    if not ready:
        console.print(
            "[yellow]Local model unavailable. Only turns routed to the remote model "
            "will succeed, and names will not be redacted.[/yellow]"
        )
    return ready


async def run_turn(orchestrator: ChatOrchestrator, text: str) -> ChatMessage | None:
    """Send one message and stream the reply to the console.

    Returns:
        The finished reply message, or None for blank input
    """
    reply: ChatMessage | None = None

    with Live(render_reply(None), console=console, refresh_per_second=12) as live:

        def on_change(messages: list[ChatMessage]) -> None:
            nonlocal reply
            if messages and not messages[-1].is_user:
                reply = messages[-1]
                live.update(render_reply(reply))

        unsubscribe = orchestrator.subscribe(on_change)
        try:
            await orchestrator.send_message(text)
        finally:
            unsubscribe()

    return reply


async def _async_chat(config: RelayConfig) -> None:
    """Async chat loop.

    Args:
        config: relaychat configuration
    """
    orchestrator = create_orchestrator(config)
    await _initialize_local(orchestrator)

    try:
        while True:
            try:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")

                if not user_input.strip():
                    continue

                if user_input.startswith("/"):
                    if _handle_slash_command(user_input, config, orchestrator):
                        break
                    continue

                console.print()
                await run_turn(orchestrator, user_input)

            except KeyboardInterrupt:
                console.print("\n[yellow]Interrupted[/yellow]")
                if Confirm.ask("Exit chat?", default=False):
                    break
            except EOFError:
                break
    finally:
        await orchestrator.local.close()  # type: ignore[attr-defined]
        await orchestrator.remote.close()  # type: ignore[attr-defined]

    console.print("\n[cyan]Goodbye![/cyan]")


def _handle_slash_command(
    command: str, config: RelayConfig, orchestrator: ChatOrchestrator | None = None
) -> bool:
    """Handle slash commands.

    Args:
        command: Command string starting with /
        config: Current configuration
        orchestrator: Active orchestrator

    Returns:
        True if should exit chat loop
    """
    cmd = command.lower().strip()

    if cmd in ("/exit", "/quit", "/q"):
        return True

    elif cmd == "/help":
        console.print("\n[bold]Available commands:[/bold]")
        console.print("  /help      - Show this help")
        console.print("  /exit      - Exit chat")
        console.print("  /clear     - Clear the conversation and redaction session")
        console.print("  /session   - Show pseudonyms assigned in this session")
        console.print("  /config    - Show configuration")

    elif cmd == "/clear":
        console.clear()
        if orchestrator is not None:
            orchestrator.clear()

    elif cmd == "/session":
        redactor = orchestrator.redactor if orchestrator is not None else None
        if redactor is None:
            console.print("\n[yellow]Redaction is disabled[/yellow]")
            return False
        macro_map = redactor.get_session_macro_map()
        if not macro_map:
            console.print("\n[dim]No names redacted yet[/dim]")
        for macro, name in macro_map.items():
            console.print(f"  {macro} -> {name}")

    elif cmd == "/config":
        console.print("\n[bold]Configuration:[/bold]")
        console.print(f"  Local model: {config.local.model} ({config.local.base_url})")
        console.print(f"  Remote model: {config.remote.model} ({config.remote.api_url})")
        console.print(f"  Word-count threshold: {config.routing.word_count_threshold}")
        console.print(
            f"  Score threshold: {config.routing.score_threshold} "
            f"(range {config.routing.score_min}-{config.routing.score_max})"
        )
        console.print(f"  Redact remote: {config.privacy.redact_remote}")

    else:
        console.print(f"[red]Unknown command: {command}[/red]")
        console.print("Type /help for available commands")

    return False
