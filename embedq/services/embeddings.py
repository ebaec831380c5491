"""Embedding providers — one text in, one vector out.

Providers:
  - local:  Deterministic hash-based embeddings (no API key, no deps). Use for testing.
  - openai: OpenAI text-embedding REST API via httpx (no SDK dependency). Use in production.
"""

from __future__ import annotations

import hashlib
import logging
import math
from abc import ABC, abstractmethod

import httpx

from embedq.services.errors import ProviderError
from embedq.settings import Settings

log = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """Turns a text into a vector of exactly ``dimensions`` floats."""

    provider_name: str = ""

    def __init__(self, dimensions: int):
        self.dimensions = dimensions

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed a single text. Raises ProviderError on failure."""
        ...


class LocalEmbeddingProvider(EmbeddingProvider):
    """Hash-based deterministic embeddings for development and testing.

    Same text, same vector. Not a semantic embedding.
    """

    provider_name = "local"

    def __init__(self, dimensions: int = 1536):
        super().__init__(dimensions)

    async def embed(self, text: str) -> list[float]:
        return self._hash_embed(text)

    def _hash_embed(self, text: str) -> list[float]:
        """Stretch salted blake2b digests into floats in [-1, 1], then L2-normalize."""
        data = text.encode("utf-8")
        out: list[float] = []
        block = 0
        while len(out) < self.dimensions:
            digest = hashlib.blake2b(data, digest_size=64, salt=block.to_bytes(16, "little")).digest()
            out.extend(b / 127.5 - 1.0 for b in digest)
            block += 1
        vec = out[: self.dimensions]
        norm = math.sqrt(sum(v * v for v in vec))
        return [v / norm for v in vec] if norm else vec


class OpenAIRestProvider(EmbeddingProvider):
    """OpenAI text-embedding via REST API. Uses httpx, no openai SDK needed.

    Pass ``client`` to reuse a connection pool (or a mock transport in tests);
    otherwise a short-lived client is opened per request.
    """

    provider_name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        dimensions: int = 1536,
        *,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(dimensions)
        self._api_key = api_key
        self._model = model
        self._url = f"{base_url.rstrip('/')}/embeddings"
        self._timeout = timeout
        self._client = client

    async def embed(self, text: str) -> list[float]:
        try:
            if self._client is not None:
                data = await self._post(self._client, text)
            else:
                async with httpx.AsyncClient() as client:
                    data = await self._post(client, text)
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"OpenAI returned {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI request failed: {e}") from e

        try:
            embedding = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("OpenAI response did not contain an embedding") from e
        if not embedding:
            raise ProviderError("Failed to generate embedding from OpenAI")
        return embedding

    async def _post(self, client: httpx.AsyncClient, text: str) -> dict:
        body: dict = {"model": self._model, "input": text, "encoding_format": "float"}
        # Only the text-embedding-3 family accepts a dimensions override
        if self._model.startswith("text-embedding-3"):
            body["dimensions"] = self.dimensions
        resp = await client.post(
            self._url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            json=body,
            timeout=self._timeout,
        )
        resp.raise_for_status()
        return resp.json()


def parse_embedding_model(embedding_model: str) -> tuple[str, str | None]:
    """Split "provider:model" into (provider, model); model is None when absent."""
    provider, _, model_name = embedding_model.partition(":")
    return provider, model_name or None


def create_provider(
    settings: Settings, client: httpx.AsyncClient | None = None
) -> EmbeddingProvider:
    """Create the configured embedding provider from settings.embedding_model.

    ``client`` is the shared HTTP connection pool for REST providers.
    """
    provider, model_name = parse_embedding_model(settings.embedding_model)

    if provider == "openai":
        if not settings.openai_api_key:
            log.warning(
                "EMBEDQ_OPENAI_API_KEY (or OPENAI_API_KEY) is not set; OpenAI requests will be rejected"
            )
        return OpenAIRestProvider(
            api_key=settings.openai_api_key,
            model=model_name or "text-embedding-3-small",
            dimensions=settings.embedding_dimensions,
            base_url=settings.openai_api_base_url,
            timeout=settings.embedding_timeout,
            client=client,
        )
    if provider == "local":
        return LocalEmbeddingProvider(dimensions=settings.embedding_dimensions)
    raise ValueError(
        f"Unknown embedding provider '{provider}'. Valid: openai, local"
    )
