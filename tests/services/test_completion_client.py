"""
Tests for the Completion Client.

The upstream is an httpx.MockTransport answering from a script; backoff
waits are recorded by the sleep_recorder fixture instead of slept.

Covers:
- one POST per attempt, at most 3 attempts
- waits of 2 s then 4 s between attempts
- non-2xx, network errors and non-JSON bodies retried alike
- exhaustion reported as UpstreamUnavailable with the last error message
- optional tightening: 4xx not retried
"""

import asyncio

import httpx
import pytest

from chat_backend.agents.recommendation.prompts import build_model_instruction
from chat_backend.agents.recommendation.providers import get_provider
from chat_backend.agents.recommendation.types import Err, Ok, RecommendationRequest
from chat_backend.errors import UpstreamUnavailable
from chat_backend.services.completion_client import CompletionClient
from chat_backend.utils.retry import is_transient_http_error


@pytest.fixture
def instruction(small_catalog):
    return build_model_instruction(RecommendationRequest(user_message="hello"), small_catalog)


@pytest.fixture
def ok_body(gemini_envelope):
    return gemini_envelope({"reply": "ok", "productId": 1})


class TestCompletionClientSuccess:

    @pytest.mark.asyncio
    async def test_single_attempt(self, make_client, instruction, ok_body, sleep_recorder):
        client, requests = make_client([httpx.Response(200, json=ok_body)])

        result = await client.complete(instruction)

        assert isinstance(result, Ok)
        assert result.value == ok_body
        assert len(requests) == 1
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_posts_provider_payload(self, make_client, instruction, ok_body):
        client, requests = make_client([httpx.Response(200, json=ok_body)])

        await client.complete(instruction)

        request = requests[0]
        assert request.method == "POST"
        assert request.headers["x-goog-api-key"] == "test-upstream-api-key"
        assert "generateContent" in str(request.url)
        assert b"generationConfig" in request.content

    @pytest.mark.asyncio
    async def test_fails_twice_then_succeeds(self, make_client, instruction, ok_body, sleep_recorder):
        """Third attempt succeeds after waits of 2000 ms and 4000 ms."""
        client, requests = make_client([
            httpx.Response(503, text="unavailable"),
            httpx.ConnectError("connection refused"),
            httpx.Response(200, json=ok_body),
        ])

        result = await client.complete(instruction)

        assert isinstance(result, Ok)
        assert len(requests) == 3
        assert len(sleep_recorder.delays) == 2
        assert sleep_recorder.delays[0] >= 2.0
        assert sleep_recorder.delays[1] >= 4.0

    @pytest.mark.asyncio
    async def test_non_json_body_is_retried(self, make_client, instruction, ok_body):
        client, requests = make_client([
            httpx.Response(200, text="<html>gateway</html>"),
            httpx.Response(200, json=ok_body),
        ])

        result = await client.complete(instruction)

        assert isinstance(result, Ok)
        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_custom_base_delay(self, make_client, instruction, ok_body, sleep_recorder):
        client, _ = make_client(
            [httpx.Response(500), httpx.Response(200, json=ok_body)],
            base_delay=0.25,
        )

        await client.complete(instruction)

        assert sleep_recorder.delays == [0.5]


class TestCompletionClientExhaustion:

    @pytest.mark.asyncio
    async def test_all_attempts_fail(self, make_client, instruction, sleep_recorder):
        client, requests = make_client([httpx.Response(500, text="internal")])

        result = await client.complete(instruction)

        assert isinstance(result, Err)
        assert isinstance(result.error, UpstreamUnavailable)
        assert result.error.attempts == 3
        assert "500" in result.error.message
        assert len(requests) == 3
        assert sleep_recorder.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_last_error_message_is_kept(self, make_client, instruction):
        client, _ = make_client([
            httpx.Response(500),
            httpx.Response(502),
            httpx.Response(504),
        ])

        result = await client.complete(instruction)

        assert isinstance(result, Err)
        assert "504" in result.error.message

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self, make_client, instruction):
        client, requests = make_client([httpx.ReadTimeout("timed out")])

        result = await client.complete(instruction)

        assert isinstance(result, Err)
        assert len(requests) == 3

    @pytest.mark.asyncio
    async def test_client_error_retried_by_default(self, make_client, instruction):
        """A 400 is retried exactly like a 503 unless the policy is tightened."""
        client, requests = make_client([httpx.Response(400, text="bad request")])

        result = await client.complete(instruction)

        assert isinstance(result, Err)
        assert len(requests) == 3

    @pytest.mark.asyncio
    async def test_client_error_not_retried_when_tightened(self, make_client, instruction, sleep_recorder):
        client, requests = make_client(
            [httpx.Response(401, text="invalid key")],
            is_retryable=is_transient_http_error,
        )

        result = await client.complete(instruction)

        assert isinstance(result, Err)
        assert result.error.attempts == 1
        assert len(requests) == 1
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_cancellation_during_backoff_propagates(self, instruction):
        """A cancelled request stops retrying instead of reporting UpstreamUnavailable."""
        requests = []
        waiting = asyncio.Event()

        def handler(request):
            requests.append(request)
            return httpx.Response(503)

        async def never_wakes(delay):
            waiting.set()
            await asyncio.Event().wait()

        client = CompletionClient(
            provider=get_provider("gemini"),
            api_key="test-upstream-api-key",
            sleep=never_wakes,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

        task = asyncio.create_task(client.complete(instruction))
        await asyncio.wait_for(waiting.wait(), timeout=5)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_api_key_not_in_error(self, make_client, instruction):
        client, _ = make_client([httpx.Response(403, text="forbidden")])

        result = await client.complete(instruction)

        assert "test-upstream-api-key" not in result.error.message
