"""
Pytest configuration for the chat backend tests.

Sets up test environment and global fixtures. The upstream LLM is never
called: completion clients run on ``httpx.MockTransport`` with scripted
answers, and backoff waits are recorded instead of slept.
"""
import json
import os
import random

import httpx
import pytest

# Disable config validation during tests
# This allows tests to run without requiring real environment variables
os.environ["VALIDATE_CONFIG"] = "false"

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LLM_PROVIDER", "gemini")
os.environ.setdefault("UPSTREAM_API_KEY", "test-upstream-api-key")

from chat_backend.agents.recommendation.providers import get_provider  # noqa: E402
from chat_backend.catalog import Catalog  # noqa: E402
from chat_backend.services.completion_client import CompletionClient  # noqa: E402
from chat_backend.services.recommendation_service import RecommendationPipeline  # noqa: E402


class SleepRecorder:
    """Stands in for asyncio.sleep and remembers every requested delay."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def small_catalog():
    """Two numeric-id products, the catalog of the end-to-end example."""
    return Catalog([
        {
            "id": 1,
            "name": "A",
            "price": "10,000",
            "image": "https://example.com/a.png",
            "link": "https://example.com/a",
        },
        {
            "id": 2,
            "name": "B",
            "price": "20,000",
            "image": "https://example.com/b.png",
            "link": "https://example.com/b",
        },
    ])


@pytest.fixture
def string_id_catalog():
    """Catalog with string identifiers."""
    return Catalog([
        {
            "id": "sku-1",
            "name": "Leash",
            "price": "15,000",
            "image": "https://example.com/leash.png",
            "link": "https://example.com/leash",
            "description": "nylon",
        },
        {
            "id": "sku-2",
            "name": "Collar",
            "price": "12,000",
            "image": "https://example.com/collar.png",
            "link": "https://example.com/collar",
        },
    ])


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def gemini_envelope():
    """Factory: wrap model text (or a dict, JSON-encoded) in a Gemini response."""
    def _envelope(payload):
        text = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
        return {
            "candidates": [
                {
                    "content": {"role": "model", "parts": [{"text": text}]},
                    "finishReason": "STOP",
                }
            ]
        }
    return _envelope


@pytest.fixture
def make_client(sleep_recorder):
    """
    Factory: CompletionClient whose upstream answers from a script.

    Each script entry is an ``httpx.Response`` or an exception to raise for
    that attempt. The last entry repeats if the client asks for more.
    Returns ``(client, requests)`` where ``requests`` collects every request sent.
    """
    def _make(script, provider="gemini", max_attempts=3, **kwargs):
        requests = []

        def handler(request):
            requests.append(request)
            outcome = script[min(len(requests), len(script)) - 1]
            if isinstance(outcome, Exception):
                raise outcome
            # fresh copy so a repeated entry is never a consumed response
            return httpx.Response(
                outcome.status_code,
                headers=outcome.headers,
                content=outcome.content,
            )

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = CompletionClient(
            provider=get_provider(provider),
            api_key="test-upstream-api-key",
            max_attempts=max_attempts,
            sleep=sleep_recorder,
            http_client=http_client,
            **kwargs,
        )
        return client, requests

    return _make


@pytest.fixture
def make_pipeline(make_client):
    """Factory: pipeline over a catalog with a scripted upstream."""
    def _make(catalog, script, fallback_policy="random", seed=0, **client_kwargs):
        client, requests = make_client(script, **client_kwargs)
        pipeline = RecommendationPipeline(
            catalog=catalog,
            completion_client=client,
            fallback_policy=fallback_policy,
            rng=random.Random(seed),
        )
        return pipeline, requests

    return _make
