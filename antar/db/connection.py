"""Database connection management"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from antar.config import DATABASE_URL, DB_POOL_MIN_SIZE, DB_POOL_MAX_SIZE
from antar.exceptions import ConnectionError, wrap_database_error

logger = logging.getLogger(__name__)


class Database:
    """
    Database connection pool manager

    One instance is created by the application lifespan and handed to the
    services that need it; nothing imports a shared instance.

    Query functions take an optional conn. Without one they borrow a pooled
    connection for a single statement; inside transaction() the service
    passes the transaction's connection so every write commits together.
    """

    def __init__(
        self,
        connection_string: str = DATABASE_URL,
        min_size: int = DB_POOL_MIN_SIZE,
        max_size: int = DB_POOL_MAX_SIZE
    ):
        self.connection_string = connection_string
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[AsyncConnectionPool] = None

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    async def init_pool(self) -> None:
        """Initialize connection pool"""
        logger.info("Initializing database connection pool")
        self._pool = AsyncConnectionPool(
            self.connection_string,
            min_size=self.min_size,
            max_size=self.max_size,
            open=False
        )
        await self._pool.open()

    async def close_pool(self) -> None:
        """Close connection pool"""
        if self._pool:
            logger.info("Closing database connection pool")
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(
        self,
        conn: Optional[psycopg.AsyncConnection] = None
    ) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Get database connection from pool

        A connection passed in is yielded as is and left open for its owner.
        psycopg errors surface as ConnectionError or QueryError.
        """
        if conn is not None:
            yield conn
            return

        if not self._pool:
            raise ConnectionError("Database pool not initialized", operation="db.connection")

        try:
            async with self._pool.connection() as pooled:
                pooled.row_factory = dict_row
                yield pooled
        except psycopg.Error as e:
            raise wrap_database_error(e, operation="db.connection") from e

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Run a block of queries as one transaction

        Commits when the block exits cleanly, rolls back when it raises.

        Example:
            async with db.transaction() as conn:
                await insert_completion(db, completion, conn=conn)
                await add_xp_transaction(db, ..., conn=conn)
        """
        async with self.connection() as conn:
            async with conn.transaction():
                yield conn

    async def ping(self) -> bool:
        """Run a trivial query to confirm the database is reachable"""
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1")
                return await cur.fetchone() is not None
