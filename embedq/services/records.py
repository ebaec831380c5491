"""Record store — attach embedding vectors to existing rows (pgvector column)."""

from __future__ import annotations

import re

import asyncpg

from embedq.services.database import Database
from embedq.services.errors import StoreError

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?")


def _check_identifier(name: str) -> str:
    """Table/column names are interpolated into SQL, so only plain identifiers pass."""
    if not _IDENTIFIER.fullmatch(name):
        raise ValueError(f"'{name}' is not a valid SQL identifier")
    return name


class RecordStore:
    """Writes vectors into ``<table>.<field>`` keyed by ``<key>``."""

    def __init__(self, db: Database, table: str, key: str = "id"):
        self.db = db
        self.table = _check_identifier(table)
        self.key = _check_identifier(key)

    async def update(self, record_id: str, field: str, vector: list[float]) -> None:
        """Store ``vector`` on the record. Raises StoreError if nothing was written.

        The key is compared as text: ids arrive as JSON strings or numbers and
        the key column may be uuid, integer or text.
        """
        column = _check_identifier(field)
        try:
            status = await self.db.execute(
                f"UPDATE {self.table} SET {column} = $1::vector WHERE {self.key}::text = $2",
                str(vector),
                record_id,
            )
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise StoreError(f"Failed to update {self.table} {record_id}: {e}") from e
        # asyncpg returns the command tag, e.g. "UPDATE 1"
        if status == "UPDATE 0":
            raise StoreError(f"No {self.table} row with {self.key}={record_id}")
