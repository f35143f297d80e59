"""Tiger CLI entry point."""

from typing import Optional

import typer

from .. import __version__
from ..config import settings
from ..core.constants import ExitCode
from ..ux import print_error, setup_logging
from .commands import db_app, service_app
from .common import build_cli_context

# Root typer for `tiger` CLI commands
app = typer.Typer(
    help="Tiger CLI for managed database services",
    no_args_is_help=True,
    invoke_without_command=True,
)

app.add_typer(db_app, name="db", help="Database operations")
app.add_typer(service_app, name="service", help="Manage database services")


@app.callback()
def callback(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", help="Show version and exit", is_flag=True
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Log debug output to stderr as well as the log file."
    ),
    password_storage: Optional[str] = typer.Option(
        None,
        "--password-storage",
        help="Where to store database passwords: keyring, pgpass, none or auto. "
        "Defaults to TIGER_PASSWORD_STORAGE, then keyring.",
    ),
) -> None:
    """Tiger CLI."""
    if version:
        typer.echo(f"Tiger CLI version: {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    debug = debug or settings.DEBUG
    setup_logging(debug=debug)
    try:
        ctx.obj = build_cli_context(password_storage=password_storage, debug=debug)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(int(ExitCode.INVALID_PARAMETERS)) from e


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
