"""embedq serve — start the API server."""

from __future__ import annotations

from typing import Optional

import typer

from embedq.settings import get_settings

serve_app = typer.Typer(no_args_is_help=False, invoke_without_command=True)


@serve_app.callback()
def serve_command(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Bind address [default: EMBEDQ_HOST]"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port [default: EMBEDQ_PORT]"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload (dev only)"),
    workers: int = typer.Option(1, "--workers", "-w", help="Number of worker processes"),
):
    """Start the embedq API server (uvicorn)."""
    import uvicorn

    settings = get_settings()
    if reload and workers > 1:
        typer.echo("--reload runs a single process; ignoring --workers", err=True)
        workers = 1

    uvicorn.run(
        "embedq.api.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        workers=workers,
        log_level=settings.log_level.lower(),
    )
