"""CLI entry point — Typer app with async service bootstrap.

Service lifecycle delegated to services.bootstrap.bootstrap_services().
"""

from __future__ import annotations

import logging
from typing import Optional

import typer

from embedq.settings import get_settings

app = typer.Typer(name="embedq", no_args_is_help=True)

_QUIET_LOGGERS = ("httpx", "httpcore", "asyncpg", "asyncio")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Override EMBEDQ_LOG_LEVEL"),
):
    """Queue-driven embedding worker."""
    level = (log_level or get_settings().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# Register subcommands
from embedq.api.cli.enqueue import enqueue_app  # noqa: E402
from embedq.api.cli.process import process_app  # noqa: E402
from embedq.api.cli.serve import serve_app  # noqa: E402

app.add_typer(serve_app, name="serve")
app.add_typer(process_app, name="process")
app.add_typer(enqueue_app, name="enqueue")
