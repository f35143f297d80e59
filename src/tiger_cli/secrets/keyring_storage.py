"""Password storage backed by the operating system keyring."""

import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from ..core.constants import DEFAULT_KEYRING_SERVICE
from ..core.errors import BackendUnavailableError
from .constants import KEYRING_LOCATION, PasswordStorageMode
from .interface import PasswordStorage, ServiceIdentity

logger = logging.getLogger(__name__)


class KeyringStorage(PasswordStorage):
    """Stores passwords in the native credential vault via ``keyring``.

    Entries live under the configured service name, one per
    ``password-<project>-<service>-<role>`` username.
    """

    method = PasswordStorageMode.KEYRING.value
    location = KEYRING_LOCATION

    def __init__(self, service_name: str = DEFAULT_KEYRING_SERVICE):
        self.service_name = service_name

    def get(self, identity: ServiceIdentity) -> Optional[str]:
        try:
            password = keyring.get_password(self.service_name, identity.keyring_username)
        except KeyringError as e:
            raise BackendUnavailableError(f"system keyring unavailable: {e}") from e
        if not password:
            return None
        return password

    def save(self, identity: ServiceIdentity, password: str) -> None:
        try:
            keyring.set_password(self.service_name, identity.keyring_username, password)
        except KeyringError as e:
            raise BackendUnavailableError(f"system keyring unavailable: {e}") from e
        logger.debug("Saved password for %s to keyring", identity.keyring_username)

    def remove(self, identity: ServiceIdentity) -> None:
        try:
            keyring.delete_password(self.service_name, identity.keyring_username)
        except PasswordDeleteError:
            # Nothing stored; removal is already satisfied
            return
        except KeyringError as e:
            raise BackendUnavailableError(f"system keyring unavailable: {e}") from e
        logger.debug("Removed password for %s from keyring", identity.keyring_username)
