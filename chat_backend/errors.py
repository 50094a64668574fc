"""
Error taxonomy for the recommendation chat backend.

Every failure the pipeline can produce is one of these classes. Components
return them wrapped in ``Err`` values (see agents/recommendation/types.py);
only catalog construction raises them directly, at startup.

CRITICAL SECURITY RULES:
- ``message`` is a diagnostic string for operators and API clients
- NEVER put raw upstream payloads or the upstream credential in ``message``
- ``InvalidJson.raw_text`` is for server logs only, never for responses
"""

from typing import Optional


class RecommendationError(Exception):
    """Base class for all recommendation pipeline errors."""

    code: str = "RECOMMENDATION_ERROR"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ============================================================================
# CALLER INPUT
# ============================================================================

class EmptyMessage(RecommendationError):
    """The user message was missing or blank. Never retried."""

    code = "EMPTY_MESSAGE"
    status_code = 400

    def __init__(self, message: str = "Message is required.") -> None:
        super().__init__(message)


# ============================================================================
# UPSTREAM TRANSPORT
# ============================================================================

class UpstreamUnavailable(RecommendationError):
    """Network or HTTP failure that survived every retry attempt."""

    code = "UPSTREAM_UNAVAILABLE"
    status_code = 502

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class UpstreamHTTPError(Exception):
    """
    Non-2xx answer from the upstream endpoint.

    Raised inside a single attempt so the retry loop can decide what to do
    with it; it never leaves the Completion Client.
    """

    def __init__(self, status_code: int, body_preview: str = "") -> None:
        super().__init__(f"Upstream HTTP error! status: {status_code}")
        self.status_code = status_code
        self.body_preview = body_preview


# ============================================================================
# UPSTREAM CONTENT
# ============================================================================

class MalformedUpstreamResponse(RecommendationError):
    """Upstream answered 2xx but the content violates the output contract."""

    code = "MALFORMED_UPSTREAM_RESPONSE"
    status_code = 500


class NoTextContent(MalformedUpstreamResponse):
    """The provider envelope has no generated text where the model's output belongs."""

    def __init__(self, message: str = "Invalid response structure from upstream (No text content).") -> None:
        super().__init__(message)


class InvalidJson(MalformedUpstreamResponse):
    """The generated text is not a JSON object."""

    def __init__(self, raw_text: str, message: str = "Failed to parse AI response as JSON.") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class MissingProductId(MalformedUpstreamResponse):
    """The generated object has no productId."""

    def __init__(self, message: str = "No product ID in model response.") -> None:
        super().__init__(message)


class ProductIdTypeMismatch(MalformedUpstreamResponse):
    """productId is present but not of the catalog's identifier type."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"Product ID type mismatch: expected {expected}, got {actual}."
        )
        self.expected = expected
        self.actual = actual


class ReplyTypeMismatch(MalformedUpstreamResponse):
    """reply is present but not a string."""

    def __init__(self, actual: str) -> None:
        super().__init__(f"Reply must be a string, got {actual}.")
        self.actual = actual


# ============================================================================
# CATALOG CONSTRUCTION
# ============================================================================

class CatalogError(ValueError):
    """The catalog violates a construction invariant. Raised at startup."""


class DuplicateProductId(CatalogError):
    def __init__(self, product_id: object) -> None:
        super().__init__(f"Duplicate product id in catalog: {product_id!r}")
        self.product_id = product_id


class MixedProductIdTypes(CatalogError):
    def __init__(self, product_id: object, expected: Optional[str] = None) -> None:
        detail = f" (expected {expected})" if expected else ""
        super().__init__(
            f"Catalog ids must all be numbers or all be strings; got {product_id!r}{detail}"
        )
        self.product_id = product_id


class EmptyCatalog(CatalogError):
    def __init__(self) -> None:
        super().__init__("Catalog must contain at least one product.")
