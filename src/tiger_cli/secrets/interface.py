"""Interface definitions for database password storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_DATABASE, DEFAULT_PORT
from ..core.errors import PasswordStorageError, sanitize_error_message
from ..services.models import Endpoint, Service
from .constants import KEYRING_USERNAME_PREFIX


@dataclass(frozen=True)
class ServiceIdentity:
    """The key a database password is stored under.

    ``endpoint`` is the direct endpoint of the service. Backends that key on
    network location (the password file) need it; the keyring does not.
    """

    project_id: str
    service_id: str
    role: str
    endpoint: Optional[Endpoint] = None
    database: str = DEFAULT_DATABASE

    def __post_init__(self) -> None:
        if not self.project_id:
            raise ValueError("project ID is required")
        if not self.service_id:
            raise ValueError("service ID is required")
        if not self.role:
            raise ValueError("role is required")

    @classmethod
    def from_service(cls, service: Service, role: str) -> "ServiceIdentity":
        return cls(
            project_id=service.project_id or "",
            service_id=service.service_id or "",
            role=role,
            endpoint=service.endpoint,
        )

    @property
    def keyring_username(self) -> str:
        return f"{KEYRING_USERNAME_PREFIX}-{self.project_id}-{self.service_id}-{self.role}"

    @property
    def host(self) -> str:
        if self.endpoint is None or not self.endpoint.host:
            raise PasswordStorageError("service endpoint not available")
        return self.endpoint.host

    @property
    def port(self) -> int:
        if self.endpoint is None or self.endpoint.port is None:
            return DEFAULT_PORT
        return self.endpoint.port


@dataclass(frozen=True)
class PasswordStorageResult:
    """Outcome of saving a password, phrased for the user."""

    success: bool
    method: str
    message: str


class PasswordStorage(ABC):
    """Interface for persisting database passwords.

    ``get`` returns ``None`` when nothing is stored. ``save`` overwrites any
    existing value and ``remove`` of an absent entry succeeds. Failures are
    raised as :class:`~tiger_cli.core.errors.PasswordStorageError`.
    """

    method: str = ""
    location: str = ""

    @abstractmethod
    def get(self, identity: ServiceIdentity) -> Optional[str]:
        """Return the stored password for ``identity`` or ``None``."""

    @abstractmethod
    def save(self, identity: ServiceIdentity, password: str) -> None:
        """Store ``password`` for ``identity``, replacing any previous value."""

    @abstractmethod
    def remove(self, identity: ServiceIdentity) -> None:
        """Delete the stored password for ``identity`` if there is one."""

    def storage_result(
        self, error: Optional[BaseException], password: str
    ) -> PasswordStorageResult:
        """Describe the outcome of a ``save`` call without leaking ``password``."""
        if error is not None:
            return PasswordStorageResult(
                success=False,
                method=self.method,
                message=f"Failed to save password to {self.location}: "
                f"{sanitize_error_message(error, password)}",
            )
        return PasswordStorageResult(
            success=True,
            method=self.method,
            message=f"Password saved to {self.location} for automatic authentication",
        )


def save_password_with_result(
    storage: PasswordStorage, identity: ServiceIdentity, password: str
) -> PasswordStorageResult:
    """Save ``password`` and return a user-facing result.

    Storage errors propagate; pass them to
    :meth:`PasswordStorage.storage_result` to get the matching message.
    """
    if not password:
        return PasswordStorageResult(
            success=False, method="none", message="No password provided"
        )
    storage.save(identity, password)
    return storage.storage_result(None, password)
