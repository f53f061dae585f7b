"""Config file initialization command."""

from pathlib import Path

from rich.console import Console

from relaychat.config.loader import DEFAULT_CONFIG_PATH, save_config
from relaychat.config.schema import RelayConfig

console = Console()


def init_command(config_path: str | None = None, force: bool = False) -> None:
    """Write the default configuration.

    Args:
        config_path: Destination (default location if None)
        force: Overwrite an existing file
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if path.exists() and not force:
        console.print(f"[yellow]Config already exists at {path}[/yellow]")
        console.print("Use [bold]--force[/bold] to overwrite it.")
        return

    written = save_config(RelayConfig(), path)
    console.print(f"[green]Wrote default configuration to {written}[/green]")
    console.print(
        "Set the API key for the remote model in the environment variable named by "
        "[bold]remote.api_key_env[/bold]."
    )
