"""
PostgreSQL-backed record store.

Collections keep their field list in a JSONB column; records keep their
values in a JSONB ``data`` column. Every lookup binds its arguments as
query parameters, field names included.
"""
import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Tuple

import asyncpg
from asyncpg import Pool

from recordgate.core.records import Collection, Record, RecordNotFoundError

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS _collections (
    id VARCHAR(32) PRIMARY KEY,
    name VARCHAR(255) NOT NULL UNIQUE,
    type VARCHAR(16) NOT NULL DEFAULT 'base',
    fields JSONB NOT NULL DEFAULT '[]'::jsonb,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS _records (
    id VARCHAR(32) PRIMARY KEY,
    collection_id VARCHAR(32) NOT NULL REFERENCES _collections(id) ON DELETE CASCADE,
    data JSONB NOT NULL DEFAULT '{}'::jsonb,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_records_collection ON _records(collection_id);
"""


def _decode_json(value: Any, default: Any) -> Any:
    """asyncpg returns JSONB as text unless a codec is registered."""
    if value is None:
        return default
    if isinstance(value, str):
        return json.loads(value)
    return value


def _row_to_collection(row) -> Collection:
    return Collection(
        id=row["id"],
        name=row["name"],
        type=row["type"],
        fields=list(_decode_json(row["fields"], [])),
    )


class PostgresRecordStore:
    """
    Async record store over an asyncpg pool.

    Collection lookups are cached for ``cache_ttl`` seconds since every
    auth request resolves its collection first.
    """

    def __init__(
        self,
        database_url: str,
        min_size: int = 2,
        max_size: int = 10,
        cache_ttl: float = 30.0,
    ):
        self._database_url = database_url
        self._min_size = min_size
        self._max_size = max_size
        self._cache_ttl = cache_ttl
        self._pool: Optional[Pool] = None
        self._lock = asyncio.Lock()
        self._collection_cache: Dict[str, Tuple[Collection, float]] = {}  # {name_or_id: (collection, timestamp)}

    @property
    def is_connected(self) -> bool:
        """Check if database connection is established."""
        return self._pool is not None

    async def connect(self, max_retries: int = 5, retry_delay: float = 2.0) -> bool:
        """
        Initialize the connection pool with retry logic.
        Returns True if connection successful, False otherwise.

        Args:
            max_retries: Maximum number of connection attempts (default 5).
            retry_delay: Initial delay between retries in seconds, doubles each attempt.
        """
        async with self._lock:
            if self._pool is not None:
                return True

            delay = retry_delay
            for attempt in range(1, max_retries + 1):
                try:
                    logger.debug("Connecting to PostgreSQL (attempt %d/%d)...", attempt, max_retries)
                    self._pool = await asyncpg.create_pool(
                        dsn=self._database_url,
                        min_size=self._min_size,
                        max_size=self._max_size,
                        command_timeout=30,
                    )
                    await self._init_schema()
                    logger.info("Database connection established")
                    return True

                except (OSError, asyncpg.PostgresError) as e:
                    if self._pool is not None:
                        await self._pool.close()
                    self._pool = None
                    if attempt < max_retries:
                        logger.warning(
                            "Database connection attempt %d/%d failed: %s. Retrying in %.0fs...",
                            attempt, max_retries, e, delay,
                        )
                        await asyncio.sleep(delay)
                        delay = min(delay * 2, 30)
                    else:
                        logger.error("Failed to connect to database after %d attempts: %s", max_retries, e)
                        return False

        return False

    async def disconnect(self) -> None:
        """Close database connection pool."""
        async with self._lock:
            if self._pool is not None:
                await self._pool.close()
                self._pool = None
                self._collection_cache.clear()
                logger.info("Database disconnected")

    async def _init_schema(self) -> None:
        """Create tables if they do not exist."""
        async with self._pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL)
            logger.debug("Database schema initialized")

    @asynccontextmanager
    async def acquire(self):
        """Acquire a connection from the pool."""
        if self._pool is None:
            raise RuntimeError("Database not connected")

        async with self._pool.acquire() as conn:
            yield conn

    # ==================== Collections ====================

    async def find_collection_by_name_or_id(self, name_or_id: str) -> Collection:
        cached = self._collection_cache.get(name_or_id)
        if cached and time.monotonic() - cached[1] < self._cache_ttl:
            return cached[0]

        async with self.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id, name, type, fields FROM _collections "
                "WHERE id = $1 OR name = $1 "
                "ORDER BY (id = $1) DESC LIMIT 1",
                name_or_id,
            )
        if not row:
            self._collection_cache.pop(name_or_id, None)
            raise RecordNotFoundError(f"Collection not found: {name_or_id}")

        collection = _row_to_collection(row)
        self._collection_cache[name_or_id] = (collection, time.monotonic())
        return collection

    async def upsert_collection(self, collection: Collection) -> None:
        async with self.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO _collections (id, name, type, fields)
                VALUES ($1, $2, $3, $4::jsonb)
                ON CONFLICT (id) DO UPDATE SET
                    name = EXCLUDED.name,
                    type = EXCLUDED.type,
                    fields = EXCLUDED.fields,
                    updated_at = NOW()
                """,
                collection.id, collection.name, collection.type, json.dumps(collection.fields),
            )
        self._collection_cache.clear()

    # ==================== Records ====================

    async def find_first_record_by_data(self, collection: Collection, field_name: str, value: Any) -> Record:
        async with self.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id, collection_id, data FROM _records "
                "WHERE collection_id = $1 AND data -> $2 = $3::jsonb "
                "LIMIT 1",
                collection.id, field_name, json.dumps(value),
            )
        if not row:
            raise RecordNotFoundError(f"No {collection.name} record with {field_name}={value!r}")

        return Record(
            id=row["id"],
            collection_id=row["collection_id"],
            collection_name=collection.name,
            data=dict(_decode_json(row["data"], {})),
        )

    async def upsert_record(self, record: Record) -> None:
        async with self.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO _records (id, collection_id, data)
                VALUES ($1, $2, $3::jsonb)
                ON CONFLICT (id) DO UPDATE SET
                    data = EXCLUDED.data,
                    updated_at = NOW()
                """,
                record.id, record.collection_id, json.dumps(record.data),
            )
