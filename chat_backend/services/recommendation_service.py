"""
Recommendation Service - single-shot LLM product recommendation

This service turns one free-text user message into a reply plus one product
from the catalog.

Architecture:
- Pattern: Structured-output LLM (one generation per request, retried on
  transient failure)
- Providers: Gemini (default), OpenAI, Hugging Face via provider adapters
- Output: {"reply": string, "productId": catalog id}, validated strictly

Pipeline states:
    Idle → Building → Requesting → Validating → Resolving → Done
                          │             │
                          └─> Failed <──┘

- Building: blank message fails with EmptyMessage (400)
- Requesting → Failed: UpstreamUnavailable, apology reply, no product (502)
- Validating → Failed: MalformedUpstreamResponse, a different apology (500)
- Resolving never fails (fallback policy)

All failures are converted here into a user-safe reply. Raw upstream text and
stack traces stay in the server log.
"""

import random
from typing import Optional, Union

from chat_backend.agents.recommendation.prompts import DEFAULT_SHOP_NAME, build_model_instruction
from chat_backend.agents.recommendation.providers import get_provider
from chat_backend.agents.recommendation.types import (
    Err,
    Ok,
    PipelineFailure,
    PipelineState,
    RecommendationRequest,
    RecommendationResult,
)
from chat_backend.catalog import Catalog
from chat_backend.config import Settings
from chat_backend.errors import EmptyMessage, MalformedUpstreamResponse, UpstreamUnavailable
from chat_backend.services.completion_client import CompletionClient
from chat_backend.services.resolver import FallbackPolicy, resolve_recommendation
from chat_backend.services.response_validator import validate_completion
from chat_backend.utils.logging import get_logger, preview
from chat_backend.utils.retry import is_transient_http_error, retry_all

logger = get_logger(__name__)

# User-facing replies. Never include diagnostics here.
EMPTY_MESSAGE_ERROR = "Message is required."
UPSTREAM_FAILURE_REPLY = "AI 서버와 통신 중 문제가 발생했습니다. 잠시 후 다시 시도해 주세요."
MALFORMED_RESPONSE_REPLY = "AI가 추천 결과를 생성하지 못했습니다. 질문을 구체적으로 해 주세요."

PipelineOutcome = Union[Ok[RecommendationResult], Err[PipelineFailure]]


class RecommendationPipeline:
    """
    Sequences prompt building, completion, validation and resolution.

    The pipeline holds no per-request state. One instance is shared by all
    concurrent requests; the catalog it carries is read-only.
    """

    def __init__(
        self,
        catalog: Catalog,
        completion_client: CompletionClient,
        fallback_policy: FallbackPolicy = "random",
        shop_name: str = DEFAULT_SHOP_NAME,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.catalog = catalog
        self.completion_client = completion_client
        self.fallback_policy = fallback_policy
        self.shop_name = shop_name
        self._rng = rng

    @staticmethod
    def _transition(current: PipelineState, nxt: PipelineState) -> PipelineState:
        logger.debug(f"Pipeline {current.value} → {nxt.value}")
        return nxt

    def _fail(self, state: PipelineState, code: str, reply: str, error: str, status_code: int) -> Err[PipelineFailure]:
        self._transition(state, PipelineState.FAILED)
        return Err(PipelineFailure(code=code, reply=reply, error=error, status_code=status_code))

    async def recommend(self, user_message: Optional[str]) -> PipelineOutcome:
        """
        Run one recommendation cycle.

        Args:
            user_message: Free-text message from the chat widget

        Returns:
            Ok(RecommendationResult) on success, Err(PipelineFailure) otherwise
        """
        state = PipelineState.IDLE

        if user_message is None or not user_message.strip():
            error = EmptyMessage(EMPTY_MESSAGE_ERROR)
            logger.info("Rejected recommendation request with empty message")
            return self._fail(state, error.code, EMPTY_MESSAGE_ERROR, error.message, error.status_code)

        logger.info(f"recommend called, message='{preview(user_message)}'")

        state = self._transition(state, PipelineState.BUILDING)
        instruction = build_model_instruction(
            RecommendationRequest(user_message=user_message),
            self.catalog,
            shop_name=self.shop_name,
        )

        state = self._transition(state, PipelineState.REQUESTING)
        completion = await self.completion_client.complete(instruction)
        if isinstance(completion, Err):
            upstream_error: UpstreamUnavailable = completion.error
            logger.error(
                f"Upstream unavailable after {upstream_error.attempts} attempt(s): {upstream_error.message}"
            )
            return self._fail(
                state,
                upstream_error.code,
                UPSTREAM_FAILURE_REPLY,
                upstream_error.message,
                upstream_error.status_code,
            )

        state = self._transition(state, PipelineState.VALIDATING)
        validated = validate_completion(
            completion.value,
            self.completion_client.provider,
            self.catalog.id_type,
        )
        if isinstance(validated, Err):
            malformed: MalformedUpstreamResponse = validated.error
            logger.error(f"Malformed upstream response ({malformed.__class__.__name__}): {malformed.message}")
            return self._fail(
                state,
                malformed.code,
                MALFORMED_RESPONSE_REPLY,
                malformed.message,
                malformed.status_code,
            )

        state = self._transition(state, PipelineState.RESOLVING)
        result = resolve_recommendation(
            validated.value,
            self.catalog,
            fallback_policy=self.fallback_policy,
            rng=self._rng,
        )

        self._transition(state, PipelineState.DONE)
        logger.info(
            f"Returning recommendation product_id="
            f"{result.product.id if result.product else None!r}"
        )
        return Ok(result)


def build_pipeline(settings: Settings, catalog: Catalog) -> RecommendationPipeline:
    """
    Wire a pipeline from application settings.

    Settings are read here, once; the components only see plain values.
    """
    provider = get_provider(settings.LLM_PROVIDER)
    client = CompletionClient(
        provider=provider,
        api_key=settings.upstream_api_key,
        model=settings.llm_model,
        url=settings.upstream_url,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
        max_attempts=settings.UPSTREAM_MAX_ATTEMPTS,
        base_delay=settings.UPSTREAM_BACKOFF_BASE_MS / 1000.0,
        is_retryable=retry_all if settings.UPSTREAM_RETRY_CLIENT_ERRORS else is_transient_http_error,
    )
    logger.info(
        f"Recommendation pipeline ready: provider={provider.name}, "
        f"model={settings.llm_model or provider.default_model}, catalog={catalog!r}, "
        f"fallback={settings.FALLBACK_POLICY}"
    )
    return RecommendationPipeline(
        catalog=catalog,
        completion_client=client,
        fallback_policy=settings.FALLBACK_POLICY,  # type: ignore[arg-type]
        shop_name=settings.SHOP_NAME,
    )
