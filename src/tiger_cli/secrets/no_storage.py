"""Password storage that stores nothing."""

from typing import Optional

from .constants import PasswordStorageMode
from .interface import PasswordStorage, PasswordStorageResult, ServiceIdentity


class NoStorage(PasswordStorage):
    """Used when the operator opts out of persisting passwords."""

    method = PasswordStorageMode.NONE.value
    location = "nowhere"

    def get(self, identity: ServiceIdentity) -> Optional[str]:
        return None

    def save(self, identity: ServiceIdentity, password: str) -> None:
        pass

    def remove(self, identity: ServiceIdentity) -> None:
        pass

    def storage_result(
        self, error: Optional[BaseException], password: str
    ) -> PasswordStorageResult:
        # Not really a failure, but the password was not kept anywhere
        return PasswordStorageResult(
            success=False,
            method=self.method,
            message="Password not saved (--password-storage=none). Make sure to store it securely.",
        )
