"""Shared service bootstrap — Settings, DB, HTTP client, queue, record store, provider, reconciler.

Used by both the API lifespan (api/main.py) and CLI commands (api/cli/).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from embedq.services.database import Database
from embedq.services.embeddings import EmbeddingProvider, create_provider
from embedq.services.queue import QueueClient
from embedq.services.reconciler import BatchReconciler
from embedq.services.records import RecordStore
from embedq.settings import Settings


@dataclass
class Services:
    settings: Settings
    db: Database
    queue: QueueClient
    records: RecordStore
    provider: EmbeddingProvider
    reconciler: BatchReconciler


def build_services(
    settings: Settings, db: Database, http_client: httpx.AsyncClient | None = None
) -> Services:
    """Wire clients and the reconciler around an (unconnected or connected) database."""
    queue = QueueClient(db, settings.queue_name)
    records = RecordStore(db, settings.record_table, key=settings.record_key)
    provider = create_provider(settings, client=http_client)
    reconciler = BatchReconciler(
        queue,
        provider,
        records,
        field=settings.record_field,
        visibility_timeout=settings.visibility_timeout,
        dimensions=settings.embedding_dimensions,
    )
    return Services(settings, db, queue, records, provider, reconciler)


@asynccontextmanager
async def bootstrap_services(settings: Settings | None = None):
    """Shared service init for API lifespan and CLI commands. Yields Services.

    One httpx client is shared by every embedding request of every cycle;
    it is closed together with the pool.
    """
    settings = settings or Settings()
    db = Database(settings)
    await db.connect()
    http_client = httpx.AsyncClient(timeout=settings.embedding_timeout)
    try:
        yield build_services(settings, db, http_client)
    finally:
        await http_client.aclose()
        await db.close()
