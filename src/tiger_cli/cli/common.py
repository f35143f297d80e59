"""Helpers shared by the CLI commands."""

from dataclasses import dataclass
from typing import Optional, Tuple

import httpx
import typer

from ..config.settings import Settings, settings
from ..core.constants import ExitCode
from ..core.errors import TigerCLIError
from ..core.utils import run_async
from ..secrets.factory import get_password_storage
from ..secrets.interface import PasswordStorage
from ..services.api_client import ServiceAPIClient
from ..services.models import Service
from ..ux import print_error


@dataclass
class CLIContext:
    """Process-wide choices made once at startup and passed to every command."""

    settings: Settings
    storage: PasswordStorage
    debug: bool = False


def build_cli_context(
    password_storage: Optional[str] = None,
    debug: bool = False,
    app_settings: Optional[Settings] = None,
) -> CLIContext:
    app_settings = app_settings or settings
    storage = get_password_storage(
        password_storage or app_settings.PASSWORD_STORAGE,
        keyring_service=app_settings.KEYRING_SERVICE_NAME,
        pgpass_file=app_settings.PGPASS_FILE,
    )
    return CLIContext(settings=app_settings, storage=storage, debug=debug)


def get_cli_context(ctx: typer.Context) -> CLIContext:
    root = ctx.find_root()
    if not isinstance(root.obj, CLIContext):
        root.obj = build_cli_context()
    return root.obj


def fail(message: str, code: int = ExitCode.GENERAL_ERROR) -> typer.Exit:
    """Print ``message`` and return the ``typer.Exit`` to raise."""
    print_error(message)
    return typer.Exit(int(code))


def exit_for(error: TigerCLIError) -> typer.Exit:
    return fail(str(error), error.exit_code)


def resolve_ids(cli: CLIContext, service_id: Optional[str]) -> Tuple[str, str]:
    """Return ``(project_id, service_id)`` from arguments or configuration."""
    project_id = cli.settings.PROJECT_ID
    service_id = service_id or cli.settings.SERVICE_ID
    if not project_id:
        raise fail(
            "project ID is required. Set TIGER_PROJECT_ID.",
            ExitCode.INVALID_PARAMETERS,
        )
    if not service_id:
        raise fail(
            "service ID is required. Pass it as an argument or set TIGER_SERVICE_ID.",
            ExitCode.INVALID_PARAMETERS,
        )
    return project_id, service_id


def make_client(cli: CLIContext) -> ServiceAPIClient:
    if not cli.settings.API_KEY:
        raise fail(
            "Must be authenticated. Set the TIGER_API_KEY environment variable.",
            ExitCode.AUTHENTICATION_ERROR,
        )
    return ServiceAPIClient(api_url=cli.settings.API_BASE_URL, api_key=cli.settings.API_KEY)


def fetch_service(client: ServiceAPIClient, project_id: str, service_id: str) -> Service:
    try:
        service = run_async(client.get_service(project_id, service_id))
    except TigerCLIError as e:
        raise exit_for(e) from e
    except httpx.HTTPError as e:
        raise fail(f"failed to reach the Tiger Cloud API: {e}") from e
    # The API does not always echo identifiers back
    if not service.project_id:
        service.project_id = project_id
    if not service.service_id:
        service.service_id = service_id
    return service
