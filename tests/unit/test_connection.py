"""Unit tests for the connection pool wrapper (antar/db/connection.py)"""
import psycopg
import pytest
from unittest.mock import AsyncMock, MagicMock

from antar.db.connection import Database
from antar.exceptions import ConnectionError, QueryError


def _async_cm(value=None) -> MagicMock:
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=value)
    cm.__aexit__ = AsyncMock(return_value=False)
    return cm


@pytest.fixture
def pooled_conn():
    conn = MagicMock()
    conn.transaction = MagicMock(return_value=_async_cm())
    return conn


@pytest.fixture
def db(pooled_conn):
    database = Database("postgresql://test")
    database._pool = MagicMock()
    database._pool.connection = MagicMock(return_value=_async_cm(pooled_conn))
    return database


@pytest.mark.asyncio
async def test_connection_without_pool():
    with pytest.raises(ConnectionError):
        async with Database("postgresql://test").connection():
            pass


@pytest.mark.asyncio
async def test_connection_reuses_given_connection(db):
    """Queries inside a transaction run on the caller's connection, not a new one"""
    outer = MagicMock()

    async with db.connection(outer) as conn:
        assert conn is outer

    db._pool.connection.assert_not_called()


@pytest.mark.asyncio
async def test_transaction_wraps_one_pooled_connection(db, pooled_conn):
    async with db.transaction() as conn:
        assert conn is pooled_conn

    db._pool.connection.assert_called_once()
    pooled_conn.transaction.assert_called_once()
    pooled_conn.transaction.return_value.__aexit__.assert_awaited_once()
    assert pooled_conn.transaction.return_value.__aexit__.call_args.args[0] is None


@pytest.mark.asyncio
async def test_transaction_sees_errors_from_the_block(db, pooled_conn):
    """An exception inside the block reaches the transaction, which rolls back"""
    with pytest.raises(RuntimeError):
        async with db.transaction():
            raise RuntimeError("streak update failed")

    assert pooled_conn.transaction.return_value.__aexit__.call_args.args[0] is RuntimeError


@pytest.mark.asyncio
async def test_operational_error_becomes_connection_error(db):
    with pytest.raises(ConnectionError) as exc_info:
        async with db.connection():
            raise psycopg.OperationalError("server closed the connection")

    assert isinstance(exc_info.value.cause, psycopg.OperationalError)


@pytest.mark.asyncio
async def test_query_error_wrapped(db):
    with pytest.raises(QueryError):
        async with db.connection():
            raise psycopg.errors.UndefinedTable("no such table")
