"""AsyncPG connection pool shared by the queue client and record store."""

from __future__ import annotations

import json
import logging

import asyncpg

from embedq.settings import Settings

log = logging.getLogger(__name__)


async def _init_connection(conn: asyncpg.Connection):
    """Set up JSON/JSONB codec so pgmq payloads come back as dicts, not strings."""
    await conn.set_type_codec(
        "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
    )
    await conn.set_type_codec(
        "json", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
    )


class Database:
    """Pool lifecycle and low-level fetch/execute methods."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.pool: asyncpg.Pool | None = None

    async def connect(self):
        try:
            self.pool = await asyncpg.create_pool(
                self.settings.database_url,
                min_size=self.settings.db_pool_min,
                max_size=self.settings.db_pool_max,
                statement_cache_size=self.settings.db_statement_cache_size,
                command_timeout=self.settings.db_command_timeout,
                init=_init_connection,
            )
        except (asyncpg.PostgresError, OSError) as e:
            log.error("Could not connect to database: %s", e)
            raise
        log.info(
            "Database pool ready (min=%d, max=%d)",
            self.settings.db_pool_min, self.settings.db_pool_max,
        )

    async def close(self):
        if self.pool:
            await self.pool.close()
            self.pool = None
            log.info("Database pool closed")

    async def fetch(self, query: str, *args):
        assert self.pool is not None, "Database not connected"
        return await self.pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args):
        assert self.pool is not None, "Database not connected"
        return await self.pool.fetchrow(query, *args)

    async def fetchval(self, query: str, *args):
        assert self.pool is not None, "Database not connected"
        return await self.pool.fetchval(query, *args)

    async def execute(self, query: str, *args):
        assert self.pool is not None, "Database not connected"
        return await self.pool.execute(query, *args)
