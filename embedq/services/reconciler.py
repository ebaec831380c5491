"""Batch reconciler — one read → embed → store → acknowledge cycle.

A message is deleted from the queue only after its vector has been written
to the record store. Everything else stays in the queue and reappears once
its visibility timeout lapses, so a cycle can lose no work; the worst case
is re-embedding a message whose delete failed (at-least-once).

Called by:
  - POST /api/generate-embeddings
  - ``embedq process`` (CLI)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Union

from pydantic import BaseModel, Field

from embedq.services.embeddings import EmbeddingProvider
from embedq.services.errors import MalformedMessageError, ProviderError
from embedq.services.queue import QueueClient, QueueMessage, parse_payload
from embedq.services.records import RecordStore

log = logging.getLogger(__name__)

CAUSE_MALFORMED = "malformed message"
CAUSE_PROVIDER = "provider error"
CAUSE_STORE = "store error"


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Success:
    message_id: int
    record_id: str


@dataclass(frozen=True)
class Failure:
    message_id: int
    cause: str
    detail: str = ""
    record_id: str | None = None


ProcessingOutcome = Union[Success, Failure]


class FailedMessage(BaseModel):
    message_id: int
    record_id: str | None = None
    cause: str
    detail: str = ""


class CycleResult(BaseModel):
    """Summary of one cycle, returned to the HTTP caller as-is."""

    success: bool = True
    processed: int = 0
    skipped: int = 0
    failed: list[FailedMessage] = Field(default_factory=list)
    # Stored but not deleted; these will be delivered (and embedded) again.
    unacknowledged: list[int] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------------


class BatchReconciler:
    """Processes one batch and acknowledges exactly the durably stored messages."""

    def __init__(
        self,
        queue: QueueClient,
        provider: EmbeddingProvider,
        records: RecordStore,
        *,
        field: str = "embedding",
        visibility_timeout: int = 120,
        dimensions: int | None = None,
    ):
        self.queue = queue
        self.provider = provider
        self.records = records
        self.field = field
        self.visibility_timeout = visibility_timeout
        self.dimensions = dimensions

    async def run_cycle(self, max_batch_size: int) -> CycleResult:
        """Read one batch and reconcile it.

        Raises QueueReadError when the read fails; nothing is processed then.
        """
        batch = await self.queue.read(max_batch_size, self.visibility_timeout)
        log.info("Read %d messages from queue %s", len(batch), self.queue.queue_name)
        return await self.reconcile(batch)

    async def reconcile(self, batch: list[QueueMessage]) -> CycleResult:
        if not batch:
            return CycleResult()

        # gather keeps input order, so each unit fills its own slot
        outcomes: list[ProcessingOutcome] = await asyncio.gather(
            *(self._process_message(msg) for msg in batch)
        )

        ack_set = list(dict.fromkeys(o.message_id for o in outcomes if isinstance(o, Success)))
        unacknowledged = await self._acknowledge(ack_set)

        failures = [o for o in outcomes if isinstance(o, Failure)]
        skipped = sum(1 for f in failures if f.cause == CAUSE_MALFORMED)
        failed = [
            FailedMessage(
                message_id=f.message_id, record_id=f.record_id, cause=f.cause, detail=f.detail
            )
            for f in failures
            if f.cause != CAUSE_MALFORMED
        ]

        result = CycleResult(
            processed=len(ack_set),
            skipped=skipped,
            failed=failed,
            unacknowledged=unacknowledged,
        )
        log.info(
            "Cycle done: processed=%d skipped=%d failed=%d unacknowledged=%d",
            result.processed, result.skipped, len(result.failed), len(result.unacknowledged),
        )
        return result

    # --- per-message unit of work ---

    async def _process_message(self, msg: QueueMessage) -> ProcessingOutcome:
        """Embed and store one message. Never raises."""
        try:
            payload = parse_payload(msg)
        except MalformedMessageError as e:
            log.warning("Skipping message %d: %s", msg.message_id, e)
            return Failure(msg.message_id, CAUSE_MALFORMED, str(e))

        record_id = payload.record_id
        log.info(
            "Processing embedding for record %s (message %d, delivery %d)",
            record_id, msg.message_id, msg.read_count,
        )

        try:
            vector = await self.provider.embed(payload.text)
            self._check_vector(vector)
        except Exception as e:
            log.warning("Embedding failed for record %s (message %d): %s", record_id, msg.message_id, e)
            return Failure(msg.message_id, CAUSE_PROVIDER, str(e), record_id)

        try:
            await self.records.update(record_id, self.field, vector)
        except Exception as e:
            log.warning("Failed to update record %s (message %d): %s", record_id, msg.message_id, e)
            return Failure(msg.message_id, CAUSE_STORE, str(e), record_id)

        return Success(msg.message_id, record_id)

    def _check_vector(self, vector: list[float] | None) -> None:
        if not vector:
            raise ProviderError(f"{self.provider.provider_name} returned an empty embedding")
        if self.dimensions is not None and len(vector) != self.dimensions:
            raise ProviderError(
                f"{self.provider.provider_name} returned {len(vector)} dimensions, "
                f"expected {self.dimensions}"
            )

    # --- acknowledgment phase ---

    async def _acknowledge(self, message_ids: list[int]) -> list[int]:
        """Delete every acked message. Returns the ids whose delete failed."""
        if not message_ids:
            return []
        log.info("Deleting %d processed messages from the queue", len(message_ids))
        deleted = await asyncio.gather(*(self._delete(mid) for mid in message_ids))
        return [mid for mid, ok in zip(message_ids, deleted) if not ok]

    async def _delete(self, message_id: int) -> bool:
        try:
            await self.queue.delete(message_id)
        except Exception as e:
            log.warning("Failed to delete message %d (will be reprocessed): %s", message_id, e)
            return False
        return True
