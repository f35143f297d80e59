"""Recover from a stored database password that no longer works.

The flow first tests the stored (or explicitly supplied) password. When the
database rejects it, the operator may type a password, have a new one set
through the API, or give up. A password set through the API is saved as soon
as the API accepts it. Any other password is saved once it passes a test.
There is no retry limit: the loop runs until the operator exits or interrupts
it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

import httpx

from ..connection.details import ConnectionDetails
from ..connection.tester import is_authentication_error
from ..core.constants import DEFAULT_ROLE
from ..core.errors import (
    AuthenticationRejectedError,
    PasswordStorageError,
    RecoveryUnavailableError,
    TigerCLIError,
    sanitize_error_message,
)
from ..core.utils import generate_secure_password
from ..logging.redact import register_secret
from ..secrets.interface import (
    PasswordStorage,
    PasswordStorageResult,
    ServiceIdentity,
    save_password_with_result,
)
from ..ux import print_error, print_info, print_success, print_warning
from .prompts import RecoveryAction, RecoveryPrompter

logger = logging.getLogger(__name__)

ConnectionTester = Callable[[ConnectionDetails, Optional[str]], Awaitable[None]]
PasswordRotator = Callable[[ServiceIdentity, str], Awaitable[None]]

NO_TTY_MESSAGE = (
    "authentication failed and no TTY available for interactive password entry. "
    "Pass --password or --reset-password, or run 'tiger db save-password' first."
)


@dataclass(frozen=True)
class RecoveryOverride:
    """Headless directives that skip the interactive menu."""

    password: Optional[str] = field(default=None, repr=False)
    reset_password: bool = False

    def __post_init__(self) -> None:
        if self.password and self.reset_password:
            raise ValueError("password and reset_password are mutually exclusive")


class RecoveryStatus(Enum):
    CONNECTED = "connected"
    DECLINED = "declined"


@dataclass(frozen=True)
class RecoveryResult:
    status: RecoveryStatus
    password: Optional[str] = field(default=None, repr=False)
    storage_result: Optional[PasswordStorageResult] = None

    @property
    def declined(self) -> bool:
        return self.status is RecoveryStatus.DECLINED


@dataclass
class RecoverySession:
    """State of one pass through the menu."""

    action: Optional[RecoveryAction] = None
    candidate: Optional[str] = field(default=None, repr=False)
    saved: Optional[RecoveryResult] = None


class PasswordRecoveryFlow:
    def __init__(
        self,
        storage: PasswordStorage,
        tester: ConnectionTester,
        prompter: RecoveryPrompter,
        is_interactive: Callable[[], bool],
        rotator: Optional[PasswordRotator] = None,
    ):
        self.storage = storage
        self.tester = tester
        self.prompter = prompter
        self.is_interactive = is_interactive
        self.rotator = rotator

    async def run(
        self,
        details: ConnectionDetails,
        identity: ServiceIdentity,
        override: Optional[RecoveryOverride] = None,
    ) -> RecoveryResult:
        """Produce a working password for ``details``.

        Raises:
            AuthenticationRejectedError: If an explicitly supplied password is
                rejected, or (as ``RecoveryUnavailableError``) if recovery
                would need a prompt and there is no terminal
            Exception: Any connection failure other than a rejected password
                is re-raised unchanged
        """
        override = override or RecoveryOverride()

        if override.reset_password:
            password = await self._rotate(identity, None)
            return self._connected(identity, password)

        stored = None if override.password else self._stored_password(identity)
        candidate = override.password or stored
        register_secret(candidate)
        try:
            await self.tester(details, candidate)
        except Exception as e:
            if not is_authentication_error(e):
                raise
            message = sanitize_error_message(e, candidate)
            if override.password:
                raise AuthenticationRejectedError(
                    f"authentication failed with the supplied password: {message}"
                ) from e
            print_warning(f"{message}\nStored password is likely invalid or expired.")
            if not self.is_interactive():
                raise RecoveryUnavailableError(NO_TTY_MESSAGE) from e
            return await self._interactive(details, identity)

        if candidate and candidate != stored:
            return self._connected(identity, candidate)
        return RecoveryResult(RecoveryStatus.CONNECTED, password=candidate)

    async def _interactive(
        self, details: ConnectionDetails, identity: ServiceIdentity
    ) -> RecoveryResult:
        can_reset = self.rotator is not None and identity.role == DEFAULT_ROLE
        while True:
            session = RecoverySession(action=self.prompter.choose_action(can_reset))
            logger.debug("Recovery action chosen: %s", session.action.value)

            try:
                if session.action is RecoveryAction.EXIT:
                    return RecoveryResult(RecoveryStatus.DECLINED)
                if session.action is RecoveryAction.ENTER_PASSWORD:
                    session.candidate = self._read_password("Enter password")
                elif session.action is RecoveryAction.RESET_PASSWORD and can_reset:
                    new_password = self.prompter.read_password(
                        "Enter new password (leave empty to generate)"
                    )
                    try:
                        session.candidate = await self._rotate(identity, new_password)
                    except (TigerCLIError, httpx.HTTPError) as e:
                        print_error(
                            f"Error resetting password: {sanitize_error_message(e, new_password)}"
                        )
                        continue
                    # The server already holds the new password; keep it before testing
                    session.saved = self._connected(identity, session.candidate)
                else:
                    continue
            except EOFError:
                # Input closed; treat like choosing to exit
                return RecoveryResult(RecoveryStatus.DECLINED)

            try:
                await self.tester(details, session.candidate)
            except Exception as e:
                if is_authentication_error(e):
                    print_warning("Password incorrect. Please try again.")
                    continue
                raise
            return session.saved or self._connected(identity, session.candidate)

    def _read_password(self, prompt: str) -> str:
        while True:
            password = self.prompter.read_password(prompt)
            if password:
                register_secret(password)
                return password
            print_warning("No password provided.")

    async def _rotate(self, identity: ServiceIdentity, new_password: Optional[str]) -> str:
        if self.rotator is None:
            raise TigerCLIError("password reset is not available for this service")
        if not new_password:
            new_password = generate_secure_password()
            print_info("Successfully generated a new password.")
        register_secret(new_password)
        await self.rotator(identity, new_password)
        print_success(f"Master password for '{identity.role}' user updated successfully")
        return new_password

    def _stored_password(self, identity: ServiceIdentity) -> Optional[str]:
        try:
            return self.storage.get(identity)
        except PasswordStorageError as e:
            print_warning(f"could not retrieve stored password: {e}")
            return None

    def _connected(self, identity: ServiceIdentity, password: str) -> RecoveryResult:
        try:
            result = save_password_with_result(self.storage, identity, password)
        except PasswordStorageError as e:
            result = self.storage.storage_result(e, password)
            print_warning(result.message)
        else:
            if result.success:
                print_info(result.message)
        return RecoveryResult(RecoveryStatus.CONNECTED, password=password, storage_result=result)
