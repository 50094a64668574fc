"""
Completion Client - one upstream generation per recommendation

Issues the rendered instruction to the configured provider endpoint with
bounded retry and exponential backoff.

Behaviour:
- One POST per attempt, at most ``max_attempts`` (3) attempts
- Any exception is a transient-failure candidate: network error, timeout,
  non-2xx status, or a top-level body that is not JSON
- Waits ``base_delay * 2**attempt`` between attempts (2 s, then 4 s)
- Every attempt carries its own timeout
- Exhaustion returns ``Err(UpstreamUnavailable)`` with the last error message

The wait is a non-blocking ``asyncio.sleep``, so other requests keep being
served while one request backs off.
"""

import asyncio
from typing import Optional

import httpx

from chat_backend.agents.recommendation.providers import LLMProvider
from chat_backend.agents.recommendation.types import (
    Err,
    ModelInstruction,
    Ok,
    RawCompletion,
    Result,
)
from chat_backend.errors import UpstreamHTTPError, UpstreamUnavailable
from chat_backend.utils.logging import get_logger
from chat_backend.utils.retry import RetryPredicate, SleepFn, retry_all, retry_async

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_BASE_SECONDS = 1.0


class CompletionClient:
    """
    Sends ModelInstructions to one upstream provider.

    Args:
        provider: Adapter that renders the request for the upstream API
        api_key: Upstream credential (never logged)
        model: Model name, or None for the provider default
        url: Endpoint override, or None for the provider default
        timeout: Per-attempt timeout in seconds
        max_attempts: Total attempts per completion
        base_delay: Backoff base in seconds
        is_retryable: Predicate deciding whether a failed attempt is retried
        sleep: Awaitable used for the backoff wait
        http_client: Shared ``httpx.AsyncClient``; a short-lived one is
            created per completion when omitted
    """

    def __init__(
        self,
        provider: LLMProvider,
        api_key: str,
        model: Optional[str] = None,
        url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BACKOFF_BASE_SECONDS,
        is_retryable: RetryPredicate = retry_all,
        sleep: SleepFn = asyncio.sleep,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.provider = provider
        self._api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.is_retryable = is_retryable
        self._sleep = sleep
        self._http_client = http_client

    async def _post_once(self, client: httpx.AsyncClient, instruction: ModelInstruction) -> RawCompletion:
        request = self.provider.build_request(
            instruction, api_key=self._api_key, model=self.model, url=self.url
        )
        response = await client.post(
            request.url,
            json=request.json,
            headers=request.headers,
            timeout=self.timeout,
        )
        if not response.is_success:
            raise UpstreamHTTPError(response.status_code, response.text[:200])
        # ValueError on a non-JSON body; retried like any other failure
        return response.json()

    async def complete(self, instruction: ModelInstruction) -> Result[RawCompletion, UpstreamUnavailable]:
        """
        Run one completion with retries.

        Returns:
            Ok(raw decoded response body) or Err(UpstreamUnavailable)
        """
        attempts = 0

        async def run(client: httpx.AsyncClient) -> RawCompletion:
            async def attempt() -> RawCompletion:
                nonlocal attempts
                attempts += 1
                logger.debug(f"Calling {self.provider.name} upstream (attempt {attempts}/{self.max_attempts})")
                return await self._post_once(client, instruction)

            return await retry_async(
                attempt,
                max_attempts=self.max_attempts,
                base_delay=self.base_delay,
                is_retryable=self.is_retryable,
                sleep=self._sleep,
            )

        try:
            if self._http_client is not None:
                raw = await run(self._http_client)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    raw = await run(client)
        except Exception as e:
            logger.error(
                f"{self.provider.name} upstream unavailable after {attempts} attempt(s): {e}"
            )
            return Err(UpstreamUnavailable(str(e) or e.__class__.__name__, attempts=attempts))

        logger.info(f"{self.provider.name} upstream answered after {attempts} attempt(s)")
        return Ok(raw)
