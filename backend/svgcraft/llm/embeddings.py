"""Embedding providers. Vectors are cached by exact input text."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from svgcraft.errors import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


class EmbeddingProvider(ABC):
    """Abstract text → vector provider."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier, e.g. ``openai:text-embedding-3-small``."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts, order preserved."""

    async def embed_query(self, text: str) -> list[float]:
        vectors = await self.embed([text])
        return vectors[0]


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI-compatible ``/embeddings`` endpoint over httpx."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str = "https://api.openai.com/v1",
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise EmbeddingError("Embedding API key required. Set OPENAI_API_KEY in .env")
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._batch_size = batch_size
        self._timeout = timeout
        self._transport = transport
        self._cache: dict[str, list[float]] = {}

    @property
    def name(self) -> str:
        return f"openai:{self._model}"

    async def embed(self, texts: list[str]) -> list[list[float]]:
        missing = list(dict.fromkeys(t for t in texts if t not in self._cache))
        if missing:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"Authorization": f"Bearer {self._api_key}"},
            ) as client:
                for i in range(0, len(missing), self._batch_size):
                    batch = missing[i : i + self._batch_size]
                    for text, vector in zip(batch, await self._request(client, batch)):
                        self._cache[text] = vector
            logger.debug("Embedded %d new texts (%d cached)", len(missing), len(texts) - len(missing))
        return [self._cache[t] for t in texts]

    async def _request(self, client: httpx.AsyncClient, batch: list[str]) -> list[list[float]]:
        try:
            response = await client.post("/embeddings", json={"model": self._model, "input": batch})
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        data = sorted(response.json().get("data", []), key=lambda item: item.get("index", 0))
        if len(data) != len(batch):
            raise EmbeddingError(f"Expected {len(batch)} embeddings, got {len(data)}")
        return [list(map(float, item["embedding"])) for item in data]
