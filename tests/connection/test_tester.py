"""Tests for connection testing and failure classification."""

import asyncio
from unittest.mock import AsyncMock, patch

import asyncpg
import pytest

from tiger_cli.connection.details import ConnectionDetails
from tiger_cli.connection.tester import (
    ConnectionFailure,
    check_connection,
    classify_connection_error,
    is_authentication_error,
)


class FakePostgresError(Exception):
    def __init__(self, sqlstate):
        super().__init__(f"server error {sqlstate}")
        self.sqlstate = sqlstate


@pytest.mark.parametrize(
    "error,expected",
    [
        (FakePostgresError("28P01"), ConnectionFailure.AUTHENTICATION_REJECTED),
        (FakePostgresError("28000"), ConnectionFailure.AUTHENTICATION_REJECTED),
        (FakePostgresError("57P03"), ConnectionFailure.REJECTING_CONNECTIONS),
        (FakePostgresError("3D000"), ConnectionFailure.OTHER),
        (asyncio.TimeoutError(), ConnectionFailure.TIMEOUT),
        (ConnectionRefusedError("refused"), ConnectionFailure.OTHER),
    ],
)
def test_classify_connection_error(error, expected):
    assert classify_connection_error(error) is expected


def test_real_driver_error_is_classified():
    error = asyncpg.exceptions.InvalidPasswordError("password authentication failed")
    assert is_authentication_error(error)


def test_is_authentication_error_none():
    assert not is_authentication_error(None)


@pytest.mark.asyncio
async def test_check_connection_runs_query_and_closes():
    conn = AsyncMock()
    details = ConnectionDetails(role="tsdbadmin", host="h")

    with patch("tiger_cli.connection.tester.asyncpg.connect", AsyncMock(return_value=conn)) as connect:
        await check_connection(details, "pw", timeout=5)

    connect.assert_called_once_with(
        dsn="postgresql://tsdbadmin:pw@h:5432/tsdb?sslmode=require"
    )
    conn.execute.assert_awaited_once_with("SELECT 1")
    conn.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_connection_closes_on_query_failure():
    conn = AsyncMock()
    conn.execute.side_effect = FakePostgresError("57P03")

    with patch("tiger_cli.connection.tester.asyncpg.connect", AsyncMock(return_value=conn)):
        with pytest.raises(FakePostgresError):
            await check_connection(ConnectionDetails(role="r", host="h"), None, timeout=None)

    conn.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_connection_times_out():
    async def hang(**kwargs):
        await asyncio.sleep(10)

    with patch("tiger_cli.connection.tester.asyncpg.connect", hang):
        with pytest.raises(asyncio.TimeoutError):
            await check_connection(ConnectionDetails(role="r", host="h"), None, timeout=0.01)
