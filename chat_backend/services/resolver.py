"""
Recommendation Resolver - map a validated id to a catalog product

Exact identifier lookup only. When the id is null or not in the catalog the
fallback policy decides:

- "random" (default): a product chosen uniformly at random from the catalog,
  because the chat widget always renders a product card
- "none": ``product`` stays None

Never fails. Any non-null product returned here comes from the catalog.
"""

import random
from typing import Literal, Optional

from chat_backend.agents.recommendation.types import ParsedRecommendation, RecommendationResult
from chat_backend.catalog import Catalog
from chat_backend.utils.logging import get_logger

logger = get_logger(__name__)

FallbackPolicy = Literal["random", "none"]
FALLBACK_POLICIES = ("random", "none")


def resolve_recommendation(
    parsed: ParsedRecommendation,
    catalog: Catalog,
    fallback_policy: FallbackPolicy = "random",
    rng: Optional[random.Random] = None,
) -> RecommendationResult:
    """
    Resolve ``parsed.product_id`` against the catalog.

    Args:
        parsed: Validated model output
        catalog: Catalog to resolve against
        fallback_policy: "random" or "none"
        rng: Random source for the fallback pick (module RNG when omitted)

    Returns:
        RecommendationResult with the reply passed through unchanged
    """
    if fallback_policy not in FALLBACK_POLICIES:
        raise ValueError(f"Unknown fallback policy: {fallback_policy!r}")

    product = catalog.get(parsed.product_id)

    if product is None:
        if fallback_policy == "random":
            product = catalog.choice(rng)
            logger.warning(
                f"Recommended product_id={parsed.product_id!r} not in catalog; "
                f"fallback picked product_id={product.id!r}"
            )
        else:
            logger.warning(
                f"Recommended product_id={parsed.product_id!r} not in catalog; returning no product"
            )

    return RecommendationResult(reply=parsed.reply_text, product=product)
