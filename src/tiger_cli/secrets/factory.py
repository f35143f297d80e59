"""Factory functions for creating password storage backends."""

from pathlib import Path
from typing import Union

from ..core.constants import DEFAULT_KEYRING_SERVICE
from .auto_storage import AutoFallbackStorage
from .constants import PasswordStorageMode
from .interface import PasswordStorage
from .keyring_storage import KeyringStorage
from .no_storage import NoStorage
from .pgpass_storage import PgpassStorage


def get_password_storage(
    mode: Union[PasswordStorageMode, str],
    keyring_service: str = DEFAULT_KEYRING_SERVICE,
    pgpass_file: Union[str, Path, None] = None,
) -> PasswordStorage:
    """Create the password storage backend for ``mode``.

    The backend is built once per process, at the CLI boundary, and handed to
    every component that needs it.

    Raises:
        ValueError: If ``mode`` is not a known storage mode
    """
    try:
        mode = PasswordStorageMode(mode)
    except ValueError:
        raise ValueError(
            f"Unknown password storage mode: {mode} (must be keyring, pgpass, none or auto)"
        ) from None

    if mode == PasswordStorageMode.KEYRING:
        return KeyringStorage(service_name=keyring_service)
    if mode == PasswordStorageMode.PGPASS:
        return PgpassStorage(path=pgpass_file)
    if mode == PasswordStorageMode.NONE:
        return NoStorage()
    return AutoFallbackStorage(
        KeyringStorage(service_name=keyring_service),
        PgpassStorage(path=pgpass_file),
    )


def describe_missing_password(storage: PasswordStorage) -> str:
    """Explain why ``storage`` had no password, for error messages."""
    if isinstance(storage, NoStorage):
        return "password storage is disabled (--password-storage=none)"
    if isinstance(storage, KeyringStorage):
        return "no password found in keyring for this service"
    if isinstance(storage, PgpassStorage):
        return "no password found in ~/.pgpass for this service"
    return "no password available for service"
