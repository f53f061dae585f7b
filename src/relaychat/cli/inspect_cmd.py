"""One-shot routing and redaction commands."""

import asyncio
from pathlib import Path

from rich.console import Console
from rich.table import Table

from relaychat.config.loader import load_config
from relaychat.config.schema import RelayConfig
from relaychat.llm.local import LocalBackend
from relaychat.privacy.redactor import PrivacyRedactionService
from relaychat.routing.classifier import ComplexityClassifier
from relaychat.routing.models import ExplicitRoute
from relaychat.routing.router import ModelRouter

console = Console()


def _load(config_path: str | None) -> RelayConfig:
    return load_config(Path(config_path) if config_path else None)


def route_command(text: str, config_path: str | None = None) -> None:
    """Print the routing decision for ``text``."""
    config = _load(config_path)
    asyncio.run(_route(text, config))


async def _route(text: str, config: RelayConfig) -> None:
    local = LocalBackend(config.local, system_prompt=config.chat.system_prompt)
    router = ModelRouter(ComplexityClassifier(local, config.routing), config.routing)

    try:
        await local.initialize()
        decision, outgoing = await router.route(text)
    finally:
        await local.close()

    kind = "explicit" if isinstance(decision, ExplicitRoute) else "classified"
    console.print(f"[bold]Backend:[/bold] {decision.backend.value} ({kind})")
    console.print(f"[bold]Reason:[/bold] {decision.reason}")
    if getattr(decision, "score", None) is not None:
        console.print(f"[bold]Score:[/bold] {decision.score:g}")
    if outgoing != text:
        console.print(f"[bold]Sent text:[/bold] {outgoing}")


def redact_command(text: str, config_path: str | None = None) -> None:
    """Print the redacted form of ``text`` with its pseudonyms."""
    config = _load(config_path)
    asyncio.run(_redact(text, config))


async def _redact(text: str, config: RelayConfig) -> None:
    local = LocalBackend(config.local, system_prompt=config.chat.system_prompt)
    service = PrivacyRedactionService(local, config=config.privacy)

    try:
        if not await local.initialize():
            console.print("[red]Local model unavailable; nothing was redacted[/red]")
            return
        result = await service.redact_text(text)
    finally:
        await local.close()

    console.print(f"[bold]Redacted:[/bold] {result.redacted_text}")
    if not result.macro_map:
        console.print("[dim]No names detected[/dim]")
        return

    table = Table("Pseudonym", "Name", "Type")
    types = {entity.name: entity.type.value for entity in result.entities}
    for macro, name in result.macro_map.items():
        table.add_row(macro, name, types.get(name, ""))
    console.print(table)
