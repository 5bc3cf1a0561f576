"""
Database connection manager for PostgreSQL using asyncpg.
Provides connection pooling, query utilities and migrations for FastAPI.
"""

import asyncpg
from pathlib import Path
from typing import Optional, List, Dict, Any
import logging

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


class DatabaseManager:
    """Manages a PostgreSQL connection pool and provides query utilities."""

    def __init__(
        self,
        dsn: str,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: float = 60,
    ):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self._pool: Optional[asyncpg.Pool] = None

    async def initialize(self):
        """Initialize the database connection pool."""
        if self._pool is not None:
            logger.warning("Database pool already initialized")
            return

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
            )
            logger.info("Database connection pool initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise

    async def close(self):
        """Close the database connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection pool closed")

    async def get_pool(self) -> asyncpg.Pool:
        """Get the connection pool, initializing if necessary."""
        if self._pool is None:
            await self.initialize()
        return self._pool

    async def fetch_all(self, query: str, *args) -> List[Dict[str, Any]]:
        """
        Execute a SELECT query and return all rows as dictionaries.

        Args:
            query: SQL query string
            *args: Query parameters

        Returns:
            List of dictionaries representing rows
        """
        pool = await self.get_pool()
        async with pool.acquire() as connection:
            rows = await connection.fetch(query, *args)
            return [dict(row) for row in rows]

    async def fetch_one(self, query: str, *args) -> Optional[Dict[str, Any]]:
        """
        Execute a query and return a single row as a dictionary.

        Args:
            query: SQL query string
            *args: Query parameters

        Returns:
            Dictionary representing the row, or None if not found
        """
        pool = await self.get_pool()
        async with pool.acquire() as connection:
            row = await connection.fetchrow(query, *args)
            return dict(row) if row else None

    async def fetch_val(self, query: str, *args) -> Any:
        """Execute a query and return a single value."""
        pool = await self.get_pool()
        async with pool.acquire() as connection:
            return await connection.fetchval(query, *args)

    async def execute(self, query: str, *args) -> str:
        """
        Execute an INSERT, UPDATE, or DELETE query.

        Returns:
            Status message from the database, e.g. "DELETE 1"
        """
        pool = await self.get_pool()
        async with pool.acquire() as connection:
            return await connection.execute(query, *args)

    async def apply_migrations(self, directory: Path = MIGRATIONS_DIR) -> List[str]:
        """
        Run every .sql file in the directory, in file name order.
        Migration files must be idempotent, they run on every startup.

        Returns:
            Names of the files that were executed
        """
        applied = []
        pool = await self.get_pool()
        async with pool.acquire() as connection:
            for path in sorted(Path(directory).glob("*.sql")):
                sql_content = path.read_text(encoding="utf-8")
                async with connection.transaction():
                    await connection.execute(sql_content)
                applied.append(path.name)
                logger.info(f"Applied migration {path.name}")
        return applied
