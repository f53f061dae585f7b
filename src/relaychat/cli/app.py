"""Main CLI application using Typer."""

import logging
import sys

import typer
from rich.console import Console
from rich.logging import RichHandler

from relaychat import __version__

app = typer.Typer(
    name="relaychat",
    help="relaychat - Route chat turns between a local and a remote model with name redaction",
    no_args_is_help=True,
)

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """relaychat command line."""
    _configure_logging(verbose)


@app.command()
def version():
    """Show relaychat version."""
    console.print(f"relaychat version {__version__}")


@app.command()
def init(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Where to write the config (default: ~/.relaychat/relaychat.yaml)",
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing config"),
):
    """Write a default configuration file."""
    from relaychat.cli.init_cmd import init_command

    init_command(config_path=config_path, force=force)


@app.command()
def chat(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: ~/.relaychat/relaychat.yaml)",
    ),
):
    """Start interactive chat session."""
    from relaychat.cli.chat import chat_command

    chat_command(config_path=config_path)


@app.command()
def route(
    text: str = typer.Argument(..., help="Prompt to route"),
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Show which model a prompt would be sent to."""
    from relaychat.cli.inspect_cmd import route_command

    route_command(text=text, config_path=config_path)


@app.command()
def redact(
    text: str = typer.Argument(..., help="Text to redact"),
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Show the redacted form of a text and its pseudonyms."""
    from relaychat.cli.inspect_cmd import redact_command

    redact_command(text=text, config_path=config_path)


def main():
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
