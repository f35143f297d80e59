"""`tiger db` commands: connection strings, connectivity and stored passwords."""

import os
import shutil
import subprocess
from typing import List, Optional

import httpx
import typer
from rich.prompt import Prompt

from ...connection.details import ConnectionDetails, ConnectionOptions, get_connection_details
from ...connection.tester import (
    CONNECTION_ERRORS,
    ConnectionFailure,
    check_connection,
    classify_connection_error,
)
from ...core.constants import DEFAULT_ROLE, ENV_NEW_PASSWORD, ExitCode
from ...core.errors import PasswordStorageError, TigerCLIError, sanitize_error_message
from ...core.utils import run_async
from ...logging.redact import register_secret
from ...recovery.flow import PasswordRecoveryFlow, RecoveryOverride
from ...recovery.prompts import ConsolePrompter, stdin_is_interactive
from ...secrets.factory import describe_missing_password
from ...secrets.interface import ServiceIdentity, save_password_with_result
from ...services.api_client import ServiceAPIClient
from ...ux import console, print_info, print_success, print_warning
from ..common import exit_for, fail, fetch_service, get_cli_context, make_client, resolve_ids

app = typer.Typer(help="Database operations", no_args_is_help=True)

SERVICE_ID_ARGUMENT = typer.Argument(
    None, help="Service ID. Defaults to the TIGER_SERVICE_ID environment variable."
)
ROLE_OPTION = typer.Option(DEFAULT_ROLE, "--role", help="Database role/username")
POOLED_OPTION = typer.Option(False, "--pooled", help="Use connection pooling")


def _resolve_details(ctx: typer.Context, service_id: Optional[str], options: ConnectionOptions):
    cli = get_cli_context(ctx)
    project_id, service_id = resolve_ids(cli, service_id)
    client = make_client(cli)
    service = fetch_service(client, project_id, service_id)
    try:
        details = get_connection_details(service, options, cli.storage)
    except ValueError as e:
        raise fail(f"failed to build connection string: {e}", ExitCode.INVALID_PARAMETERS) from e
    except PasswordStorageError as e:
        raise exit_for(e) from e
    if details.warning:
        print_warning(details.warning, log=False)
    return cli, client, service, details


@app.command("connection-string")
def connection_string(
    ctx: typer.Context,
    service_id: Optional[str] = SERVICE_ID_ARGUMENT,
    pooled: bool = POOLED_OPTION,
    role: str = ROLE_OPTION,
    with_password: bool = typer.Option(
        False,
        "--with-password",
        help="Include the password in the connection string (less secure).",
    ),
) -> None:
    """Print a PostgreSQL connection string for a service.

    Passwords are left out by default; psql then finds them in ~/.pgpass or
    PGPASSWORD.
    """
    cli, _, _, details = _resolve_details(
        ctx, service_id, ConnectionOptions(pooled=pooled, role=role, with_password=with_password)
    )
    if with_password and not details.password:
        raise fail(
            "password not available to include in connection string: "
            + describe_missing_password(cli.storage)
        )
    register_secret(details.password)
    typer.echo(details.to_uri())


@app.command("test-connection")
def db_test_connection(
    ctx: typer.Context,
    service_id: Optional[str] = SERVICE_ID_ARGUMENT,
    timeout: float = typer.Option(
        3.0, "--timeout", "-t", help="Timeout in seconds. Use 0 for no timeout."
    ),
    pooled: bool = POOLED_OPTION,
    role: str = ROLE_OPTION,
) -> None:
    """Test database connectivity.

    Exit codes follow pg_isready: 0 accepting connections, 1 rejecting
    connections, 2 no response, 3 invalid parameters.
    """
    if timeout < 0:
        raise fail(f"timeout must be positive or zero, got {timeout}", ExitCode.INVALID_PARAMETERS)
    _, _, _, details = _resolve_details(
        ctx, service_id, ConnectionOptions(pooled=pooled, role=role, with_password=True)
    )
    if pooled and not details.is_pooler:
        raise fail("connection pooler not available for this service", ExitCode.INVALID_PARAMETERS)

    register_secret(details.password)
    try:
        run_async(check_connection(details, details.password, timeout=timeout))
    except CONNECTION_ERRORS as e:
        message = sanitize_error_message(e, details.password)
        failure = classify_connection_error(e)
        if failure is ConnectionFailure.TIMEOUT:
            raise fail(f"Connection timeout after {timeout:g}s", ExitCode.TIMEOUT) from e
        if failure is ConnectionFailure.REJECTING_CONNECTIONS:
            raise fail(f"Connection rejected: {message}", 1) from e
        raise fail(f"Connection failed: {message}", 2) from e
    print_success("Connection successful")


def _rotator(client: ServiceAPIClient):
    async def rotate(identity: ServiceIdentity, password: str) -> None:
        await client.update_password(identity.project_id, identity.service_id, password)

    return rotate


def _launch_psql(psql_path: str, details: ConnectionDetails, password: Optional[str], extra: List[str]) -> int:
    env = dict(os.environ)
    if password:
        # Never on the command line
        env["PGPASSWORD"] = password
    return subprocess.call([psql_path, details.with_password(None).to_uri(), *extra], env=env)


@app.command(
    "connect",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def connect(
    ctx: typer.Context,
    service_id: Optional[str] = SERVICE_ID_ARGUMENT,
    pooled: bool = POOLED_OPTION,
    role: str = ROLE_OPTION,
    password: Optional[str] = typer.Option(
        None, "--password", help="Password to use for authentication (skips interactive prompt)."
    ),
    reset_password: bool = typer.Option(
        False, "--reset-password", help="Reset password before connecting (skips interactive prompt)."
    ),
) -> None:
    """Connect to a database with psql.

    The stored password is tested first. If the database rejects it you can
    enter a password, reset it, or exit. Arguments after `--` go to psql.
    """
    if password and reset_password:
        raise fail("--password and --reset-password cannot be used together", ExitCode.INVALID_PARAMETERS)

    psql_path = shutil.which("psql")
    if psql_path is None:
        raise fail("psql client not found. Please install PostgreSQL client tools")

    cli, client, service, details = _resolve_details(
        ctx, service_id, ConnectionOptions(pooled=pooled, role=role)
    )
    if pooled and not details.is_pooler:
        raise fail("connection pooler not available for this service", ExitCode.INVALID_PARAMETERS)

    flow = PasswordRecoveryFlow(
        storage=cli.storage,
        tester=check_connection,
        prompter=ConsolePrompter(),
        is_interactive=stdin_is_interactive,
        rotator=_rotator(client),
    )
    override = RecoveryOverride(password=password, reset_password=reset_password)
    try:
        result = run_async(flow.run(details, ServiceIdentity.from_service(service, role), override))
    except TigerCLIError as e:
        raise exit_for(e) from e
    except CONNECTION_ERRORS + (httpx.HTTPError,) as e:
        raise fail(f"connection failed: {sanitize_error_message(e, password)}") from e

    if result.declined:
        print_info("Exiting without connecting.")
        return
    raise typer.Exit(_launch_psql(psql_path, details, result.password, list(ctx.args)))


@app.command("save-password")
def save_password(
    ctx: typer.Context,
    service_id: Optional[str] = SERVICE_ID_ARGUMENT,
    password: Optional[str] = typer.Option(
        None, "--password", help="Password to save. Falls back to TIGER_NEW_PASSWORD, then a prompt."
    ),
    role: str = ROLE_OPTION,
) -> None:
    """Save a password for a database service to password storage."""
    cli = get_cli_context(ctx)
    project_id, service_id = resolve_ids(cli, service_id)
    service = fetch_service(make_client(cli), project_id, service_id)

    password = password or os.environ.get(ENV_NEW_PASSWORD)
    if not password:
        if not stdin_is_interactive():
            raise fail(
                f"no password provided. Use --password or set {ENV_NEW_PASSWORD}.",
                ExitCode.INVALID_PARAMETERS,
            )
        password = Prompt.ask("Enter password", password=True, console=console)
    if not password:
        raise fail("password cannot be empty", ExitCode.INVALID_PARAMETERS)
    register_secret(password)

    try:
        identity = ServiceIdentity.from_service(service, role)
        result = save_password_with_result(cli.storage, identity, password)
    except ValueError as e:
        raise fail(str(e), ExitCode.INVALID_PARAMETERS) from e
    except PasswordStorageError as e:
        raise fail(cli.storage.storage_result(e, password).message, e.exit_code) from e

    if result.success:
        print_success(result.message)
    else:
        print_warning(result.message)


@app.command("remove-password")
def remove_password(
    ctx: typer.Context,
    service_id: Optional[str] = SERVICE_ID_ARGUMENT,
    role: str = ROLE_OPTION,
) -> None:
    """Remove a stored password for a database service."""
    cli = get_cli_context(ctx)
    project_id, service_id = resolve_ids(cli, service_id)
    service = fetch_service(make_client(cli), project_id, service_id)
    try:
        cli.storage.remove(ServiceIdentity.from_service(service, role))
    except ValueError as e:
        raise fail(str(e), ExitCode.INVALID_PARAMETERS) from e
    except PasswordStorageError as e:
        raise exit_for(e) from e
    print_success(f"Removed stored password for role '{role}' on service '{service_id}'.")
