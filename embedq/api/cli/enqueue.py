"""embedq enqueue — push a record onto the embedding queue."""

from __future__ import annotations

import asyncio

import typer

import embedq.services.bootstrap as _svc

enqueue_app = typer.Typer(no_args_is_help=True, invoke_without_command=True)


async def _send(record_id: str, text: str) -> int:
    async with _svc.bootstrap_services() as services:
        return await services.queue.send({"record_id": record_id, "text": text})


@enqueue_app.callback()
def enqueue_command(
    record_id: str = typer.Argument(..., help="Id of the record that receives the embedding"),
    text: str = typer.Argument(..., help="Text to embed"),
):
    """Send one {record_id, text} message to the queue."""
    if not text.strip():
        typer.echo("Error: text must not be empty", err=True)
        raise typer.Exit(1)
    msg_id = asyncio.run(_send(record_id, text))
    typer.echo(f"Enqueued message {msg_id} for record {record_id}")
