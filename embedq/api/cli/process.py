"""embedq process — run one reconciliation cycle without the HTTP server."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

import embedq.services.bootstrap as _svc
from embedq.services.errors import QueueReadError

process_app = typer.Typer(no_args_is_help=False, invoke_without_command=True)


async def _run_cycle(batch_size: Optional[int]) -> str:
    async with _svc.bootstrap_services() as services:
        size = batch_size or services.settings.embedding_batch_size
        result = await services.reconciler.run_cycle(size)
        return result.model_dump_json(indent=2)


@process_app.callback()
def process_command(
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-n", min=1, help="Messages to read (default: EMBEDQ_EMBEDDING_BATCH_SIZE)"
    ),
):
    """Read one batch, embed and store each message, acknowledge the stored ones."""
    try:
        output = asyncio.run(_run_cycle(batch_size))
    except QueueReadError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(output)
