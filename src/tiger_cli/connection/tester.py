"""Test database connectivity and classify connection failures."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Optional

import asyncpg

from ..core.constants import DEFAULT_CONNECT_TIMEOUT_SECONDS
from .details import ConnectionDetails

logger = logging.getLogger(__name__)

# invalid_password, invalid_authorization_specification
AUTHENTICATION_SQLSTATES = frozenset({"28P01", "28000"})
# cannot_connect_now: server is up but not accepting connections yet
CANNOT_CONNECT_NOW_SQLSTATE = "57P03"

# Errors a connection attempt is expected to raise
CONNECTION_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
    TimeoutError,
)


class ConnectionFailure(Enum):
    AUTHENTICATION_REJECTED = "authentication_rejected"
    REJECTING_CONNECTIONS = "rejecting_connections"
    TIMEOUT = "timeout"
    OTHER = "other"


def _sqlstate(error: BaseException) -> Optional[str]:
    return getattr(error, "sqlstate", None)


def classify_connection_error(error: BaseException) -> ConnectionFailure:
    """Sort a connection error into the classes the CLI reacts to."""
    sqlstate = _sqlstate(error)
    if sqlstate in AUTHENTICATION_SQLSTATES:
        return ConnectionFailure.AUTHENTICATION_REJECTED
    if sqlstate == CANNOT_CONNECT_NOW_SQLSTATE:
        return ConnectionFailure.REJECTING_CONNECTIONS
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return ConnectionFailure.TIMEOUT
    return ConnectionFailure.OTHER


def is_authentication_error(error: Optional[BaseException]) -> bool:
    if error is None:
        return False
    return classify_connection_error(error) is ConnectionFailure.AUTHENTICATION_REJECTED


async def check_connection(
    details: ConnectionDetails,
    password: Optional[str] = None,
    timeout: Optional[float] = DEFAULT_CONNECT_TIMEOUT_SECONDS,
) -> None:
    """Open and close one connection using ``password``.

    Returns normally on success and raises the driver's error otherwise.
    ``timeout`` of ``None`` or ``0`` waits indefinitely.
    """
    dsn = details.with_password(password).to_uri()
    connect = asyncpg.connect(dsn=dsn)
    if timeout:
        conn = await asyncio.wait_for(connect, timeout=timeout)
    else:
        conn = await connect
    try:
        await conn.execute("SELECT 1")
    finally:
        await conn.close()
    logger.debug("Connection test to %s:%s succeeded", details.host, details.port)
