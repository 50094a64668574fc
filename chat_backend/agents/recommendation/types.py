"""
Recommendation Pipeline Type Definitions

Strictly typed values passed between the pipeline components.
Every component returns either ``Ok(value)`` or ``Err(error)`` instead of
raising across the async boundary; callers branch on ``isinstance``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from chat_backend.errors import RecommendationError
from chat_backend.schemas.products import Product, ProductId

T = TypeVar("T")
E = TypeVar("E", bound=RecommendationError)

# Decoded top-level JSON from the upstream provider. Shape is provider
# specific and untrusted.
RawCompletion = Any


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful component output."""
    value: T


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed component output."""
    error: E


Result = Union[Ok[T], Err[E]]


@dataclass(frozen=True)
class RecommendationRequest:
    """One inbound call. Discarded after the pipeline returns."""
    user_message: str


@dataclass(frozen=True)
class ModelInstruction:
    """Rendered prompt plus the declared output schema."""
    system_text: str
    user_text: str
    output_schema: Dict[str, Any] = field(hash=False)


@dataclass(frozen=True)
class ParsedRecommendation:
    """Validated model output."""
    reply_text: str
    product_id: Optional[ProductId]


@dataclass(frozen=True)
class RecommendationResult:
    """The only value crossing the boundary back to the caller on success."""
    reply: str
    product: Optional[Product]


@dataclass(frozen=True)
class PipelineFailure:
    """Terminal failure mapped to a user-safe reply."""
    code: str
    reply: str
    error: str
    status_code: int


class PipelineState(str, Enum):
    IDLE = "Idle"
    BUILDING = "Building"
    REQUESTING = "Requesting"
    VALIDATING = "Validating"
    RESOLVING = "Resolving"
    DONE = "Done"
    FAILED = "Failed"
