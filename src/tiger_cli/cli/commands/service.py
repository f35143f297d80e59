"""`tiger service` commands: waiting on, deleting and re-keying services."""

import os
from typing import Optional

import httpx
import typer

from ...core.constants import (
    DEFAULT_DELETE_TIMEOUT_SECONDS,
    DEFAULT_READY_TIMEOUT_SECONDS,
    DEFAULT_ROLE,
    ENV_NEW_PASSWORD,
    READY_STATUS,
    ExitCode,
)
from ...core.errors import PasswordStorageError, TigerCLIError, sanitize_error_message
from ...core.utils import generate_secure_password, run_async
from ...logging.redact import register_secret
from ...secrets.interface import ServiceIdentity, save_password_with_result
from ...services.api_client import ServiceAPIClient
from ...ux import print_info, print_success, print_warning, status_spinner
from ...wait.engine import WaitResult, wait_for_service
from ...wait.handlers import DeletionWaitHandler, StatusWaitHandler, WaitHandler
from ..common import exit_for, fail, fetch_service, get_cli_context, make_client, resolve_ids

app = typer.Typer(help="Manage database services", no_args_is_help=True)

SERVICE_ID_ARGUMENT = typer.Argument(
    None, help="Service ID. Defaults to the TIGER_SERVICE_ID environment variable."
)


def _timeout_seconds(minutes: Optional[float], default_seconds: int) -> float:
    if minutes is None:
        return float(default_seconds)
    if minutes <= 0:
        raise fail(f"timeout must be positive, got {minutes:g}", ExitCode.INVALID_PARAMETERS)
    return minutes * 60


def _wait(
    client: ServiceAPIClient,
    project_id: str,
    service_id: str,
    handler: WaitHandler,
    timeout: float,
    timeout_message: str,
) -> WaitResult:
    """Run the poll loop behind a spinner; exits the process unless it succeeds."""

    async def fetch():
        return await client.get_service_status(project_id, service_id)

    try:
        with status_spinner(handler.message()) as update:
            result = run_async(
                wait_for_service(
                    fetch, handler, timeout, timeout_message=timeout_message, on_update=update
                )
            )
    except KeyboardInterrupt as e:
        raise fail(f"canceled waiting - {timeout_message}") from e

    try:
        result.raise_for_state()
    except TigerCLIError as e:
        raise exit_for(e) from e
    return result


@app.command("wait")
def wait(
    ctx: typer.Context,
    service_id: Optional[str] = SERVICE_ID_ARGUMENT,
    status: str = typer.Option(READY_STATUS, "--status", help="Status to wait for."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Timeout in minutes. Defaults to 30."
    ),
) -> None:
    """Wait for a service to reach a status."""
    cli = get_cli_context(ctx)
    project_id, service_id = resolve_ids(cli, service_id)
    seconds = _timeout_seconds(timeout, DEFAULT_READY_TIMEOUT_SECONDS)
    client = make_client(cli)

    handler = StatusWaitHandler(target_status=status.upper())
    _wait(
        client,
        project_id,
        service_id,
        handler,
        seconds,
        "service may still be provisioning",
    )
    print_success(f"Service '{service_id}' is {handler.service.status}")


@app.command("delete")
def delete(
    ctx: typer.Context,
    service_id: Optional[str] = SERVICE_ID_ARGUMENT,
    wait_for_deletion: bool = typer.Option(
        True, "--wait/--no-wait", help="Wait until the service is gone."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Timeout in minutes when waiting. Defaults to 10."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Delete without confirmation."
    ),
) -> None:
    """Delete a service. This cannot be undone."""
    cli = get_cli_context(ctx)
    project_id, service_id = resolve_ids(cli, service_id)
    seconds = _timeout_seconds(timeout, DEFAULT_DELETE_TIMEOUT_SECONDS)
    client = make_client(cli)

    if not force:
        confirmation = typer.confirm(
            f"Are you sure you want to delete the service with ID '{service_id}'? "
            "This action cannot be undone.",
            default=False,
        )
        if not confirmation:
            print_info("Deletion cancelled.")
            raise typer.Exit(0)

    try:
        run_async(client.delete_service(project_id, service_id))
    except TigerCLIError as e:
        raise exit_for(e) from e
    except httpx.HTTPError as e:
        raise fail(f"failed to reach the Tiger Cloud API: {e}") from e
    print_info(f"Deletion of service '{service_id}' started.")

    if not wait_for_deletion:
        return
    _wait(
        client,
        project_id,
        service_id,
        DeletionWaitHandler(service_id),
        seconds,
        "service may still be deleting",
    )
    print_success(f"Service '{service_id}' has been deleted.")


@app.command("update-password")
def update_password(
    ctx: typer.Context,
    service_id: Optional[str] = SERVICE_ID_ARGUMENT,
    new_password: Optional[str] = typer.Option(
        None,
        "--new-password",
        help="New password. Falls back to TIGER_NEW_PASSWORD; a random one is generated if neither is set.",
    ),
) -> None:
    """Set a new password for the service's tsdbadmin role and store it."""
    cli = get_cli_context(ctx)
    project_id, service_id = resolve_ids(cli, service_id)
    client = make_client(cli)
    service = fetch_service(client, project_id, service_id)

    password = new_password or os.environ.get(ENV_NEW_PASSWORD)
    if not password:
        password = generate_secure_password()
        print_info("Successfully generated a new password.")
    register_secret(password)

    try:
        run_async(client.update_password(project_id, service_id, password))
    except TigerCLIError as e:
        raise fail(sanitize_error_message(e, password), e.exit_code) from e
    except httpx.HTTPError as e:
        raise fail(f"failed to reach the Tiger Cloud API: {sanitize_error_message(e, password)}") from e
    print_success(f"Master password for '{DEFAULT_ROLE}' user updated successfully")

    try:
        result = save_password_with_result(
            cli.storage, ServiceIdentity.from_service(service, DEFAULT_ROLE), password
        )
    except ValueError as e:
        print_warning(f"Password not saved: {e}")
        return
    except PasswordStorageError as e:
        print_warning(cli.storage.storage_result(e, password).message)
        return
    if result.success:
        print_success(result.message)
    else:
        print_warning(result.message)
