"""Access to the upstream record store.

The relational store owns canonical records. The orchestrator only reads
from it: ``fetch_records_by_ids`` enriches semantic hits, and
``list_all_indexable_records`` feeds bulk (re)indexing jobs.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpg
import structlog

from libs.common.errors import redact

logger = structlog.get_logger("search_service.records")

RECORD_COLUMNS = (
    "id, record_type, name, description, url, framework, frameworks, "
    "category, tags, author, resource_type, meta"
)

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")


class RecordStore(ABC):
    """Read-only interface to canonical records."""

    @abstractmethod
    async def fetch_records_by_ids(self, ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """Return records keyed by id. Unknown ids are absent from the result."""
        pass

    @abstractmethod
    def list_all_indexable_records(self) -> AsyncIterator[Dict[str, Any]]:
        """Stream every record that should be indexed."""
        pass

    async def initialize(self) -> None:
        return None

    async def close(self) -> None:
        return None


def row_to_record(row: Any) -> Dict[str, Any]:
    record = dict(row)
    meta = record.pop("meta", None) or {}
    if isinstance(meta, str):
        meta = json.loads(meta)
    record["tags"] = list(record.get("tags") or [])
    record["frameworks"] = list(record.get("frameworks") or [])
    return {**meta, **record}


class PostgresRecordStore(RecordStore):
    """Record store over a PostgreSQL table or view.

    Expected columns: ``id``, ``record_type``, ``name``, ``description``,
    ``url``, ``framework``, ``frameworks``, ``category``, ``tags``,
    ``author``, ``resource_type``, ``meta`` (jsonb), ``is_published``.
    """

    def __init__(self, dsn: str, table: str = "search_records", pool_size: int = 10):
        if not _TABLE_NAME.match(table):
            raise ValueError(f"Invalid record table name: {table}")
        self.dsn = dsn
        self.table = table
        self.pool_size = pool_size
        self.db_pool: Optional[asyncpg.Pool] = None

    async def initialize(self) -> None:
        """Create the connection pool."""
        try:
            self.db_pool = await asyncpg.create_pool(self.dsn, min_size=1, max_size=self.pool_size)
            logger.info("Record store initialized", table=self.table)
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("Failed to initialize record store", error=redact(str(e)))
            raise

    def _pool(self) -> asyncpg.Pool:
        if self.db_pool is None:
            raise RuntimeError("Record store pool not initialized")
        return self.db_pool

    async def fetch_records_by_ids(self, ids: List[str]) -> Dict[str, Dict[str, Any]]:
        if not ids:
            return {}

        sql = f"SELECT {RECORD_COLUMNS} FROM {self.table} WHERE id = ANY($1::text[])"
        async with self._pool().acquire() as conn:
            rows = await conn.fetch(sql, list(ids))

        return {str(row["id"]): row_to_record(row) for row in rows}

    async def list_all_indexable_records(self) -> AsyncIterator[Dict[str, Any]]:
        sql = f"SELECT {RECORD_COLUMNS} FROM {self.table} WHERE is_published ORDER BY id"
        async with self._pool().acquire() as conn:
            async with conn.transaction():
                async for row in conn.cursor(sql):
                    yield row_to_record(row)

    async def close(self) -> None:
        if self.db_pool:
            await self.db_pool.close()
            logger.info("Record store closed")
