"""Shared helpers for unit tests — fake clients, message builders."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from embedq.services.queue import QueueMessage
from embedq.services.reconciler import BatchReconciler

DIMS = 8


def vec(value: float = 0.5, dims: int = DIMS) -> list[float]:
    return [value] * dims


def make_message(message_id: int, record_id: str | None = None, text: str = "hello") -> QueueMessage:
    return QueueMessage(
        message_id=message_id,
        message={"record_id": record_id or f"rec-{message_id}", "text": text},
    )


def mock_queue(messages: list[QueueMessage] | None = None) -> MagicMock:
    queue = MagicMock()
    queue.queue_name = "response_embeddings"
    queue.read = AsyncMock(return_value=list(messages or []))
    queue.delete = AsyncMock(return_value=None)
    queue.send = AsyncMock(return_value=1)
    return queue


def mock_provider(vector: list[float] | None = None) -> MagicMock:
    provider = MagicMock()
    provider.provider_name = "fake"
    provider.dimensions = DIMS
    provider.embed = AsyncMock(return_value=vector if vector is not None else vec())
    return provider


def mock_records() -> MagicMock:
    records = MagicMock()
    records.update = AsyncMock(return_value=None)
    return records


def make_reconciler(
    messages: list[QueueMessage] | None = None,
    *,
    queue: MagicMock | None = None,
    provider: MagicMock | None = None,
    records: MagicMock | None = None,
    dimensions: int | None = DIMS,
):
    """Build a BatchReconciler over mocks. Returns (reconciler, queue, provider, records)."""
    queue = queue or mock_queue(messages)
    provider = provider or mock_provider()
    records = records or mock_records()
    reconciler = BatchReconciler(
        queue, provider, records, field="embedding", visibility_timeout=120, dimensions=dimensions
    )
    return reconciler, queue, provider, records


def deleted_ids(queue: MagicMock) -> set[int]:
    return {c.args[0] for c in queue.delete.call_args_list}


class MockAsyncServices:
    """Async context manager that yields mock services, like bootstrap_services()."""

    def __init__(self, messages: list[QueueMessage] | None = None):
        reconciler, queue, provider, records = make_reconciler(messages)
        self.services = MagicMock()
        self.services.settings.embedding_batch_size = 20
        self.services.queue = queue
        self.services.provider = provider
        self.services.records = records
        self.services.reconciler = reconciler

    async def __aenter__(self):
        return self.services

    async def __aexit__(self, *args):
        pass
