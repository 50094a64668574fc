"""
Pydantic schemas for the /chat endpoint.

These models define the request/response contracts between the chat widget
and the recommendation pipeline.
"""

from typing import Optional

from pydantic import BaseModel, Field

from chat_backend.schemas.products import Product

# ============================================================================
# REQUEST MODELS
# ============================================================================

class ChatRequest(BaseModel):
    """
    Message sent by the chat widget.

    Blank messages are rejected by the route with 400 rather than by
    validation, so the error body matches what the widget expects.
    """
    message: Optional[str] = Field(
        None,
        description="Free-text user message",
        examples=["내 강아지는 작아요", "밤에 산책할 때 쓸 하네스 추천해 주세요"]
    )


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class ChatResponse(BaseModel):
    """
    Successful recommendation.

    ``product`` is always a catalog entry when present.
    """
    reply: str = Field(..., description="Reply to show in the chat bubble")
    product: Optional[Product] = Field(
        None,
        description="Recommended product card, or null"
    )

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "example": {
                "reply": "작은 강아지에게는 가볍고 통풍이 잘 되는 하네스가 좋아요!",
                "product": {
                    "id": 3,
                    "name": "초경량 소프트 에어 하네스",
                    "price": "32,000",
                    "image": "https://placehold.co/100x100/87CEEB/ffffff?text=AirMesh",
                    "link": "https://poopky-mall.com/product/3",
                    "description": "가볍고 통풍 잘됨"
                }
            }
        }


class ChatFailureResponse(BaseModel):
    """
    Pipeline failure. ``reply`` is safe to show; ``error`` is diagnostic only.
    """
    reply: str = Field(..., description="User-safe apology")
    product: Optional[Product] = Field(None, description="Always null on failure")
    error: str = Field(..., description="Diagnostic message (not shown in the UI)")
    code: str = Field(
        ...,
        description="Failure class",
        examples=["UPSTREAM_UNAVAILABLE", "MALFORMED_UPSTREAM_RESPONSE"]
    )


class ChatBadRequestResponse(BaseModel):
    """Missing or blank message."""
    error: str = Field("Message is required.", description="Validation error")
