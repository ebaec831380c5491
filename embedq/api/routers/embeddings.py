"""Embedding endpoints — queue-driven batch processing.

POST /api/generate-embeddings — Drain one batch from the embedding queue.
                                Called by a scheduler (pg_cron/pg_net, cloud cron).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from embedq.services.errors import QueueReadError
from embedq.services.reconciler import CycleResult

log = logging.getLogger(__name__)

router = APIRouter()


class GenerateEmbeddingsRequest(BaseModel):
    max_batch_size: int | None = Field(default=None, gt=0)


@router.post("/generate-embeddings", response_model=CycleResult)
async def generate_embeddings(request: Request, body: GenerateEmbeddingsRequest | None = None):
    """Read up to ``max_batch_size`` messages, embed and store each, acknowledge the stored ones.

    Safe to call concurrently — messages read by one call stay invisible to
    others for the visibility timeout.
    """
    settings = request.app.state.settings
    reconciler = request.app.state.reconciler

    batch_size = (body.max_batch_size if body else None) or settings.embedding_batch_size
    if batch_size > settings.max_batch_size_limit:
        raise HTTPException(
            422, f"max_batch_size must be at most {settings.max_batch_size_limit}"
        )

    log.info("Processing embeddings (max_batch_size=%d)", batch_size)
    try:
        return await reconciler.run_cycle(batch_size)
    except QueueReadError as e:
        log.error("Failed to read from queue: %s", e)
        raise HTTPException(502, str(e))
