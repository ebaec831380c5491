"""FastAPI application — lifespan, routers, health check."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from embedq.services.bootstrap import bootstrap_services


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with bootstrap_services() as services:
        app.state.settings = services.settings
        app.state.db = services.db
        app.state.queue = services.queue
        app.state.provider = services.provider
        app.state.reconciler = services.reconciler
        yield


def create_app() -> FastAPI:
    app = FastAPI(title="embedq", version="0.1.0", lifespan=lifespan)

    from embedq.api.routers import embeddings

    app.include_router(embeddings.router, prefix="/api", tags=["embeddings"])

    @app.get("/health")
    async def health(request: Request):
        settings = request.app.state.settings
        provider = request.app.state.provider
        return {
            "status": "ok",
            "queue": settings.queue_name,
            "provider": provider.provider_name,
            "dimensions": provider.dimensions,
        }

    return app


app = create_app()
