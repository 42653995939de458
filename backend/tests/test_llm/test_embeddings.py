"""Tests for the httpx-backed embedding provider using a mock transport."""

from __future__ import annotations

import json

import httpx
import pytest

from svgcraft.errors import EmbeddingError
from svgcraft.llm.embeddings import OpenAIEmbeddingProvider
from tests.conftest import run


def _transport(requests: list[dict], status: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        requests.append(payload)
        if status != 200:
            return httpx.Response(status, json={"error": "boom"})
        data = [
            {"index": i, "embedding": [float(len(text)), float(i)]}
            for i, text in reversed(list(enumerate(payload["input"])))
        ]
        return httpx.Response(200, json={"data": data})

    return httpx.MockTransport(handler)


def test_requires_api_key():
    with pytest.raises(EmbeddingError):
        OpenAIEmbeddingProvider(api_key="")


def test_embed_orders_and_caches():
    requests: list[dict] = []
    provider = OpenAIEmbeddingProvider(api_key="k", model="m", transport=_transport(requests))
    vectors = run(provider.embed(["ab", "abcd", "ab"]))
    assert vectors == [[2.0, 0.0], [4.0, 1.0], [2.0, 0.0]]
    assert requests == [{"model": "m", "input": ["ab", "abcd"]}]

    assert run(provider.embed_query("abcd")) == [4.0, 1.0]
    assert len(requests) == 1
    assert provider.name == "openai:m"


def test_batches_requests():
    requests: list[dict] = []
    provider = OpenAIEmbeddingProvider(api_key="k", batch_size=2, transport=_transport(requests))
    run(provider.embed(["a", "b", "c", "d", "e"]))
    assert [len(r["input"]) for r in requests] == [2, 2, 1]


def test_http_error_wrapped():
    provider = OpenAIEmbeddingProvider(api_key="k", transport=_transport([], status=500))
    with pytest.raises(EmbeddingError, match="Embedding request failed"):
        run(provider.embed(["x"]))
