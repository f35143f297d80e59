"""Password storage that prefers the keyring and falls back to the password file."""

import logging
from typing import Optional

from ..core.errors import PasswordStorageError
from .constants import PasswordStorageMode
from .interface import PasswordStorage, PasswordStorageResult, ServiceIdentity
from .keyring_storage import KeyringStorage
from .pgpass_storage import PgpassStorage

logger = logging.getLogger(__name__)


class AutoFallbackStorage(PasswordStorage):
    """Tries the keyring first and uses ``~/.pgpass`` when the keyring fails."""

    method = PasswordStorageMode.AUTO.value
    location = "password storage"

    def __init__(self, keyring_storage: KeyringStorage, pgpass_storage: PgpassStorage):
        self.keyring = keyring_storage
        self.pgpass = pgpass_storage
        self.last_used: Optional[PasswordStorage] = None

    def get(self, identity: ServiceIdentity) -> Optional[str]:
        try:
            password = self.keyring.get(identity)
        except PasswordStorageError as e:
            logger.debug("Keyring lookup failed, trying password file: %s", e)
            password = None
        if password is not None:
            return password
        return self.pgpass.get(identity)

    def save(self, identity: ServiceIdentity, password: str) -> None:
        try:
            self.keyring.save(identity, password)
            self.last_used = self.keyring
            return
        except PasswordStorageError as e:
            logger.debug("Keyring save failed, falling back to password file: %s", e)
        self.last_used = None
        self.pgpass.save(identity, password)
        self.last_used = self.pgpass

    def remove(self, identity: ServiceIdentity) -> None:
        errors = []
        for backend in (self.keyring, self.pgpass):
            try:
                backend.remove(identity)
            except PasswordStorageError as e:
                errors.append(f"{backend.method}: {e}")
        # Removed from at least one location
        if len(errors) == 2:
            raise PasswordStorageError(", ".join(errors))

    def storage_result(
        self, error: Optional[BaseException], password: str
    ) -> PasswordStorageResult:
        if error is None and self.last_used is not None:
            return self.last_used.storage_result(None, password)
        return super().storage_result(error, password)
