"""Resolve how to reach a database service.

:func:`get_connection_details` picks the direct or pooled endpoint, fills in
conventional defaults and, only when asked to, embeds the stored password.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote

from ..core.constants import DEFAULT_DATABASE, DEFAULT_PORT, DEFAULT_ROLE, DEFAULT_SSLMODE
from ..secrets.interface import PasswordStorage, ServiceIdentity
from ..services.models import Endpoint, Service

logger = logging.getLogger(__name__)

POOLER_UNAVAILABLE_WARNING = (
    "Connection pooler not available for this service, using direct connection"
)


@dataclass(frozen=True)
class ConnectionOptions:
    """Caller choices for :func:`get_connection_details`."""

    pooled: bool = False
    role: str = DEFAULT_ROLE
    # Embed the password in the result; off by default so it never ends up
    # in process arguments
    with_password: bool = False
    # Used instead of the password store, e.g. right after service creation
    initial_password: Optional[str] = None


@dataclass(frozen=True)
class ConnectionDetails:
    role: str
    host: str
    port: int = DEFAULT_PORT
    database: str = DEFAULT_DATABASE
    sslmode: str = DEFAULT_SSLMODE
    password: Optional[str] = field(default=None, repr=False)
    is_pooler: bool = False
    pooler_unavailable: bool = False

    @property
    def warning(self) -> Optional[str]:
        if self.pooler_unavailable:
            return POOLER_UNAVAILABLE_WARNING
        return None

    def to_uri(self) -> str:
        """Render a ``postgresql://`` URI.

        The password is percent-encoded and only present when it was
        explicitly requested at resolution time.
        """
        user = quote(self.role, safe="")
        if self.password:
            user = f"{user}:{quote(self.password, safe='')}"
        return (
            f"postgresql://{user}@{self.host}:{self.port}/{self.database}"
            f"?sslmode={self.sslmode}"
        )

    def __str__(self) -> str:
        return self.to_uri()

    def with_password(self, password: Optional[str]) -> "ConnectionDetails":
        """Copy of these details authenticating with ``password``."""
        return ConnectionDetails(
            role=self.role,
            host=self.host,
            port=self.port,
            database=self.database,
            sslmode=self.sslmode,
            password=password or None,
            is_pooler=self.is_pooler,
            pooler_unavailable=self.pooler_unavailable,
        )

    def to_dict(self) -> dict:
        """Public fields, for structured output. Never includes the password."""
        return {
            "role": self.role,
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "sslmode": self.sslmode,
            "pooled": self.is_pooler,
        }


def _select_endpoint(service: Service, pooled: bool) -> tuple[Endpoint, bool, bool]:
    if service.endpoint is None:
        raise ValueError("service endpoint not available")

    pooler = service.pooler_endpoint
    if pooled and pooler is not None:
        return pooler, True, False
    return service.endpoint, False, pooled


def get_connection_details(
    service: Service,
    options: ConnectionOptions,
    storage: Optional[PasswordStorage] = None,
) -> ConnectionDetails:
    """Build connection details for ``service``.

    A missing pooler never fails the call: the direct endpoint is used and
    ``pooler_unavailable`` is set so callers can decide whether that matters.
    A password that cannot be found is not an error either; authentication is
    then left to ``PGPASSWORD``, ``~/.pgpass`` or an interactive prompt.

    Raises:
        ValueError: If the service has no usable endpoint
    """
    endpoint, is_pooler, pooler_unavailable = _select_endpoint(service, options.pooled)
    if not endpoint.host:
        raise ValueError("endpoint host not available")
    if pooler_unavailable:
        logger.warning(POOLER_UNAVAILABLE_WARNING)

    password = None
    if options.with_password:
        if options.initial_password:
            password = options.initial_password
        elif storage is not None:
            password = _lookup_password(service, options.role, storage)

    return ConnectionDetails(
        role=options.role,
        host=endpoint.host,
        port=endpoint.port if endpoint.port is not None else DEFAULT_PORT,
        database=DEFAULT_DATABASE,
        password=password,
        is_pooler=is_pooler,
        pooler_unavailable=pooler_unavailable,
    )


def _lookup_password(
    service: Service, role: str, storage: PasswordStorage
) -> Optional[str]:
    try:
        identity = ServiceIdentity.from_service(service, role)
    except ValueError as e:
        logger.debug("Cannot look up password for service %s: %s", service.service_id, e)
        return None
    # Storage failures (as opposed to a missing password) propagate
    return storage.get(identity)
