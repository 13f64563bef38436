from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from asyncpg import Connection, Pool, create_pool
from orjson import dumps, loads

from app.core.config import Settings
from app.core.logger import db_logger

# ============================================================================
# SCHEMA
# ============================================================================

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS profiles (
        telegram_id BIGINT PRIMARY KEY,
        display_name TEXT,
        age INTEGER,
        location TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS payment_events (
        provider TEXT NOT NULL,
        event_id TEXT NOT NULL,
        event_type TEXT NOT NULL,
        payload JSONB NOT NULL,
        received_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        PRIMARY KEY (provider, event_id)
    )
    """,
)


# ============================================================================
# MAIN DATABASE CLASS
# ============================================================================

class Database:
    """asyncpg pool manager used by the Postgres stores"""

    def __init__(
            self,
            user: str = None,
            password: str = None,
            host: str = None,
            database: str = None,
            port: int = None,
            min_size: int = 2,
            max_size: int = 10,
            command_timeout: float = 10.0,
            max_inactive_connection_lifetime: float = 300.0,
    ):
        """
        Initialize database manager

        Args:
            user: Database user
            password: Database password
            host: Database host
            database: Database name
            port: Database port
            min_size: Minimum pool size
            max_size: Maximum pool size
            command_timeout: Query timeout in seconds
            max_inactive_connection_lifetime: Max inactive time in seconds
        """
        self.user = user
        self.password = password
        self.host = host
        self.database = database
        self.port = port

        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self.max_inactive_connection_lifetime = max_inactive_connection_lifetime

        self.pool: Optional[Pool] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> Database:
        return cls(
            user=settings.DB_USER,
            password=settings.DB_PASSWORD.get_secret_value(),
            host=settings.DB_HOST,
            database=settings.DB_NAME,
            port=settings.DB_PORT,
        )

    # ========================================================================
    # CONNECTION MANAGEMENT
    # ========================================================================

    @staticmethod
    async def _init_connection(conn: Connection):
        """Initialize connection with custom type codecs"""
        try:
            await conn.set_type_codec(
                typename='jsonb',
                encoder=lambda x: dumps(x).decode(),
                decoder=loads,
                schema='pg_catalog'
            )

            await conn.execute("SET timezone = 'UTC'")

        except Exception as e:
            db_logger.error(f"Failed to initialize connection: {e}")
            raise

    async def create_session_pool(self):
        """Create connection pool"""
        try:
            self.pool = await create_pool(  # type: ignore[misc]
                user=self.user,
                password=self.password,
                host=self.host,
                database=self.database,
                port=self.port,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
                max_inactive_connection_lifetime=self.max_inactive_connection_lifetime,
                init=self._init_connection,
                server_settings={
                    'jit': 'off',
                    'application_name': 'miniapp_backend',
                    'statement_timeout': str(int(self.command_timeout * 1000)),
                }
            )

            db_logger.info(
                f"Database pool created: "
                f"min={self.min_size}, max={self.max_size}, "
                f"timeout={self.command_timeout}s"
            )

        except Exception as e:
            db_logger.error(f"Failed to create database pool: {e}")
            raise

    async def close(self) -> None:
        """Close database pool gracefully"""
        if self.pool:
            try:
                await self.pool.close()
                db_logger.info("Database pool closed successfully")
            except Exception as e:
                db_logger.error(f"Error closing database pool: {e}")
            finally:
                self.pool = None

    @asynccontextmanager
    async def acquire(self):
        """
        Acquire connection from pool with automatic release

        Usage:
            async with db.acquire() as conn:
                await conn.execute(query)
        """
        if not self.pool:
            raise RuntimeError(
                "Database pool not initialized. Call create_session_pool() first."
            )

        conn = await self.pool.acquire()  # type: ignore[misc]
        try:
            yield conn
        finally:
            await self.pool.release(conn)

    @asynccontextmanager
    async def transaction(self):
        """
        Transaction context manager

        Usage:
            async with db.transaction() as conn:
                await conn.execute(query1)
                await conn.execute(query2)
        """
        async with self.acquire() as conn:
            async with conn.transaction():
                yield conn

    async def health_check(self) -> bool:
        """Check database connection health"""
        if not self.pool:
            return False

        try:
            result = await self.pool.fetchval("SELECT 1")
            return result == 1
        except Exception as e:
            db_logger.error(f"Health check failed: {e}")
            return False

    async def create_tables(self) -> None:
        async with self.transaction() as conn:
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)

        db_logger.info("Database schema ensured")
