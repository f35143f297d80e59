"""Error taxonomy for the Tiger CLI.

Every error raised below the CLI layer derives from :class:`TigerCLIError` and
carries the exit code the command should terminate with. A missing secret is
not an error: storage backends return ``None`` for it.
"""

from __future__ import annotations

from typing import Optional

from .constants import ExitCode


class TigerCLIError(Exception):
    """Base class for errors the CLI reports to the user."""

    exit_code: ExitCode = ExitCode.GENERAL_ERROR

    def __init__(self, message: str, exit_code: Optional[ExitCode] = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


# Secret store


class PasswordStorageError(TigerCLIError):
    """A password storage backend failed to read or write."""


class BackendUnavailableError(PasswordStorageError):
    """The system keyring cannot be reached (no session, locked vault...)."""


class MalformedPasswordFileError(PasswordStorageError):
    """The password file exists but cannot be decoded."""


# Waiting


class WaitError(TigerCLIError):
    """Base class for terminal wait outcomes other than success."""


class WaitTimeoutError(WaitError):
    exit_code = ExitCode.TIMEOUT


class WaitCanceledError(WaitError):
    pass


class ServiceFailedError(WaitError):
    """The service reached a failure status or disappeared while waiting."""


# Authentication and recovery


class AuthenticationRejectedError(TigerCLIError):
    """The database rejected the supplied credentials."""

    exit_code = ExitCode.AUTHENTICATION_ERROR


class RecoveryUnavailableError(AuthenticationRejectedError):
    """Authentication failed and no interactive terminal is available."""


# API


class UnauthenticatedError(TigerCLIError):
    """Raised when the API rejects the configured API key."""

    exit_code = ExitCode.AUTHENTICATION_ERROR


class APIError(TigerCLIError):
    """Non-success response from the Tiger Cloud API."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message, exit_code_from_status(status_code))
        self.status_code = status_code


def exit_code_from_status(status_code: Optional[int]) -> ExitCode:
    """Map an HTTP status code to the CLI exit code."""
    if status_code == 400:
        return ExitCode.INVALID_PARAMETERS
    if status_code == 401:
        return ExitCode.AUTHENTICATION_ERROR
    if status_code == 403:
        return ExitCode.PERMISSION_DENIED
    if status_code == 404:
        return ExitCode.SERVICE_NOT_FOUND
    if status_code in (408, 504):
        return ExitCode.TIMEOUT
    return ExitCode.GENERAL_ERROR


def sanitize_error_message(error: Optional[BaseException], secret: Optional[str]) -> str:
    """Render ``error`` with every occurrence of ``secret`` masked."""
    if error is None:
        return ""
    message = str(error)
    if secret and secret in message:
        message = message.replace(secret, "***")
    return message
