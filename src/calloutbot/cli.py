from __future__ import annotations

from functools import partial
from pathlib import Path

import anyio
import typer

from . import __version__
from .bot import run_bot
from .config import ConfigError, load_settings
from .logging import get_logger, setup_logging
from .webhook import sign

logger = get_logger(__name__)

_CONFIG_PATH_OPTION = typer.Option(
    None,
    "--config",
    help="Path to calloutbot.toml (defaults to ./.calloutbot or ~/.calloutbot).",
)


def _print_version_and_exit() -> None:
    typer.echo(__version__)
    raise typer.Exit()


def _version_callback(value: bool) -> None:
    if value:
        _print_version_and_exit()


def run(
    config: Path | None = _CONFIG_PATH_OPTION,
    debug: bool = typer.Option(
        False,
        "--debug/--no-debug",
        help="Log Telegram requests, content API calls and rendered messages.",
    ),
) -> None:
    """Start the bot and poll Telegram for updates."""
    setup_logging(debug=debug)
    try:
        settings = load_settings(config)
    except ConfigError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1) from e
    try:
        anyio.run(partial(run_bot, settings))
    except KeyboardInterrupt:
        logger.info("shutdown.interrupted")
        raise typer.Exit(code=130) from None


def token(
    config: Path | None = _CONFIG_PATH_OPTION,
) -> None:
    """Print a signed token for the internal webhook."""
    try:
        settings = load_settings(config)
    except ConfigError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1) from e
    if not settings.service_secret:
        typer.echo("error: service_secret is not configured", err=True)
        raise typer.Exit(code=1)
    typer.echo(sign({}, settings.service_secret))


def app_main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Telegram bot for answering callouts."""


def create_app() -> typer.Typer:
    app = typer.Typer(add_completion=False, no_args_is_help=True)
    app.callback()(app_main)
    app.command(name="run")(run)
    app.command(name="token")(token)
    return app


def main() -> None:
    app = create_app()
    app()


if __name__ == "__main__":
    main()
