"""Unit tests for RecordStore — pgvector updates."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from embedq.services.errors import StoreError
from embedq.services.records import RecordStore


def _make_store(status: str = "UPDATE 1"):
    db = MagicMock()
    db.execute = AsyncMock(return_value=status)
    return RecordStore(db, "responses"), db


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_writes_vector_literal(self):
        store, db = _make_store()

        await store.update("rec-1", "embedding", [0.25, -0.5])

        sql, vector, record_id = db.execute.call_args[0]
        assert sql == "UPDATE responses SET embedding = $1::vector WHERE id::text = $2"
        assert vector == "[0.25, -0.5]"
        assert record_id == "rec-1"

    @pytest.mark.asyncio
    async def test_custom_key_column(self):
        db = MagicMock()
        db.execute = AsyncMock(return_value="UPDATE 1")
        store = RecordStore(db, "public.form_responses", key="response_id")

        await store.update("r", "vec", [1.0])

        sql = db.execute.call_args[0][0]
        assert sql == "UPDATE public.form_responses SET vec = $1::vector WHERE response_id::text = $2"

    @pytest.mark.asyncio
    async def test_no_matching_row_is_a_store_error(self):
        store, _ = _make_store("UPDATE 0")

        with pytest.raises(StoreError, match="rec-404"):
            await store.update("rec-404", "embedding", [0.1])

    @pytest.mark.asyncio
    async def test_connection_error_becomes_store_error(self):
        store, db = _make_store()
        db.execute = AsyncMock(side_effect=ConnectionResetError("reset"))

        with pytest.raises(StoreError):
            await store.update("rec-1", "embedding", [0.1])


class TestIdentifiers:
    @pytest.mark.parametrize("table", ["responses; DROP TABLE x", "1abc", "a.b.c", "", "responses\n"])
    def test_invalid_table_rejected(self, table):
        with pytest.raises(ValueError):
            RecordStore(MagicMock(), table)

    @pytest.mark.asyncio
    async def test_invalid_field_rejected_before_query(self):
        store, db = _make_store()

        with pytest.raises(ValueError):
            await store.update("rec-1", "embedding = NULL --", [0.1])
        db.execute.assert_not_called()
