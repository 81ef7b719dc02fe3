"""Command line entry points."""

from __future__ import annotations

import asyncio

import typer

from convotree import __version__
from convotree.app import serve
from convotree.config import load_settings
from convotree.errors import ConfigurationError
from convotree.logging_utils import configure_logging

app = typer.Typer(name="convotree", help="Chat-driven record management bot", add_completion=False)


@app.command()
def run(
    token: str | None = typer.Option(None, "--token", help="Telegram bot token, overrides CONVOTREE_TELEGRAM_TOKEN"),
    language: str | None = typer.Option(None, "--language", "-l", help="Default language for new chats"),
    seed: bool = typer.Option(False, "--seed", help="Start with a few demo student records"),
    log_level: str | None = typer.Option(None, "--log-level", help="Log level"),
) -> None:
    """Start the Telegram bot."""
    settings = load_settings(telegram_token=token, default_language=language, log_level=log_level)
    configure_logging(profile=settings.log_profile, level=settings.log_level)
    try:
        asyncio.run(serve(settings, seed=seed))
    except ConfigurationError as error:
        typer.echo(f"error: {error}", err=True)
        raise typer.Exit(1) from error
    except KeyboardInterrupt:
        typer.echo("stopped")


@app.command()
def version() -> None:
    """Show the installed version."""
    typer.echo(__version__)
