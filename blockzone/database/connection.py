import asyncpg
import asyncio
import json
from typing import Any, Optional

from ..config import storage
from ..errors import StorageUnavailable
from ..logger import get_logger
from .store import KeyValueStore, Versioned

logger = get_logger(__name__)


class PostgresStore(KeyValueStore):
    """Key-value table in PostgreSQL with a version column per row"""
    name = 'postgres'

    def __init__(self, max_retries: int = None, retry_delay: float = None):
        super().__init__(max_retries, retry_delay)
        self.pool = None
        self._connection_semaphore = None
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def initialize(self):
        """Initialize the connection pool and create the table"""
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:  # Double check after acquiring lock
                return

            try:
                self.pool = await asyncpg.create_pool(
                    host=storage.postgres_host,
                    port=storage.postgres_port,
                    database=storage.postgres_db,
                    user=storage.postgres_user,
                    password=storage.postgres_password,
                    min_size=5,
                    max_size=50,
                    command_timeout=10,
                    max_inactive_connection_lifetime=300.0,
                    setup=self._setup_connection
                )

                self._connection_semaphore = asyncio.Semaphore(50)

                async with self.pool.acquire() as conn:
                    await conn.execute('''
                        CREATE TABLE IF NOT EXISTS kv_store (
                            key TEXT PRIMARY KEY,
                            value TEXT NOT NULL,
                            version BIGINT NOT NULL
                        )
                    ''')

                self._initialized = True
                logger.info("Postgres store initialized successfully")
            except (OSError, asyncpg.PostgresError) as e:
                logger.error(f"Failed to initialize database connection: {e}")
                await self.close()
                raise StorageUnavailable('Database unavailable') from e

    async def _setup_connection(self, connection):
        """Setup connection with proper settings"""
        await connection.execute('SET statement_timeout = 30000')
        await connection.execute('SET idle_in_transaction_session_timeout = 30000')
        await connection.execute('SET lock_timeout = 10000')

    async def close(self):
        """Close database connections"""
        if self.pool:
            await self.pool.close()
        self._initialized = False

    async def _run(self, method: str, query: str, *args):
        async with self._connection_semaphore:
            try:
                async with self.pool.acquire() as conn:
                    return await getattr(conn, method)(query, *args)
            except (OSError, asyncpg.PostgresError) as e:
                logger.error(f"Database error: {e}")
                raise StorageUnavailable() from e

    async def get(self, key: str) -> Optional[Versioned]:
        row = await self._run('fetchrow', '''
            SELECT value, version FROM kv_store WHERE key = $1
        ''', key)
        if row is None:
            return None
        return Versioned(json.loads(row['value']), row['version'])

    async def put(self, key: str, value: Any) -> int:
        return await self._run('fetchval', '''
            INSERT INTO kv_store (key, value, version)
            VALUES ($1, $2, 1)
            ON CONFLICT (key)
            DO UPDATE SET value = EXCLUDED.value, version = kv_store.version + 1
            RETURNING version
        ''', key, json.dumps(value))

    async def conditional_put(self, key: str, value: Any, expected_version: Optional[int]) -> bool:
        if expected_version is None:
            status = await self._run('execute', '''
                INSERT INTO kv_store (key, value, version)
                VALUES ($1, $2, 1)
                ON CONFLICT (key) DO NOTHING
            ''', key, json.dumps(value))
        else:
            status = await self._run('execute', '''
                UPDATE kv_store SET value = $2, version = version + 1
                WHERE key = $1 AND version = $3
            ''', key, json.dumps(value), expected_version)
        # status tag is "INSERT 0 <n>" or "UPDATE <n>"
        return status.split()[-1] == '1'
