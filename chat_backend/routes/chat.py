"""
FastAPI route for the chat widget.

Endpoint:
- POST /chat: one user message in, one reply plus one recommended product out

Endpoint flow:
- Step 1: Parse/Validate → ChatRequest; blank message → 400
- Step 2: Call pipeline → RecommendationPipeline.recommend
- Step 3: Map outcome → ChatResponse (200) or ChatFailureResponse (500/502)
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from chat_backend.agents.recommendation.types import Err
from chat_backend.schemas.chat import (
    ChatBadRequestResponse,
    ChatFailureResponse,
    ChatRequest,
    ChatResponse,
)
from chat_backend.services.recommendation_service import (
    EMPTY_MESSAGE_ERROR,
    RecommendationPipeline,
)
from chat_backend.utils.logging import get_logger, preview

logger = get_logger(__name__)

router = APIRouter(tags=["chat"])


def get_pipeline(request: Request) -> RecommendationPipeline:
    """Pipeline built at startup (see main.lifespan)."""
    return request.app.state.pipeline


def empty_message_response() -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": EMPTY_MESSAGE_ERROR})


@router.post(
    "/chat",
    response_model=ChatResponse,
    status_code=200,
    summary="Chat with the product recommendation assistant",
    responses={
        400: {"model": ChatBadRequestResponse, "description": "Message is missing or blank"},
        500: {"model": ChatFailureResponse, "description": "Model answered outside the output contract"},
        502: {"model": ChatFailureResponse, "description": "Upstream LLM unavailable after retries"},
    },
    description="""
    Sends one user message to the LLM together with the product catalog and
    returns the model's reply plus exactly one recommended product.

    **Frontend Flow:**
    1. User types a message in the chat widget
    2. POST /chat with {"message": "..."}
    3. Render `reply` as a chat bubble and `product` as a product card

    **Failure responses** carry a user-safe `reply` to display and a
    diagnostic `error` that must not be shown in the UI.
    """
)
async def chat_endpoint(
    request: ChatRequest,
    pipeline: RecommendationPipeline = Depends(get_pipeline),
):
    if not request.message or not request.message.strip():
        logger.info("POST /chat called without a message")
        return empty_message_response()

    logger.info(f"POST /chat called, message='{preview(request.message)}'")

    outcome = await pipeline.recommend(request.message)

    if isinstance(outcome, Err):
        failure = outcome.error
        if failure.status_code == 400:
            return empty_message_response()
        logger.info(f"Returning failure code={failure.code} status={failure.status_code}")
        body = ChatFailureResponse(
            reply=failure.reply,
            product=None,
            error=failure.error,
            code=failure.code,
        )
        return JSONResponse(status_code=failure.status_code, content=body.model_dump(mode="json"))

    result = outcome.value
    return ChatResponse(reply=result.reply, product=result.product)
