"""
Response Validator - enforce the structured-output contract

Turns an untrusted upstream body into a ParsedRecommendation, or fails with
a MalformedUpstreamResponse subclass:

- NoTextContent: the provider envelope has no generated text
- InvalidJson: the text is not a JSON object (raw text kept for logs)
- MissingProductId: the object has no productId
- ProductIdTypeMismatch: productId is not of the catalog id type
- ReplyTypeMismatch: reply is not a string

Strict-type policy: "1" is never accepted for a numeric catalog and 1 is never
accepted for a string catalog. Nothing is coerced.
"""

import json
import re
from typing import Any

from chat_backend.agents.recommendation.prompts import PRODUCT_ID_FIELD, REPLY_FIELD
from chat_backend.agents.recommendation.providers import LLMProvider
from chat_backend.agents.recommendation.types import (
    Err,
    Ok,
    ParsedRecommendation,
    RawCompletion,
    Result,
)
from chat_backend.errors import (
    InvalidJson,
    MalformedUpstreamResponse,
    MissingProductId,
    NoTextContent,
    ProductIdTypeMismatch,
    ReplyTypeMismatch,
)
from chat_backend.schemas.products import IdType
from chat_backend.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_REPLY = "죄송합니다. 답변을 준비하지 못했어요. 대신 이 상품을 한번 살펴보세요!"

_CODE_FENCE = re.compile(r"^```(?:json)?\s*([\s\S]*?)\s*```$", re.IGNORECASE)


def _json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def matches_id_type(value: Any, id_type: IdType) -> bool:
    """True when ``value`` is a JSON value of the catalog identifier type."""
    if id_type == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, str)


def strip_code_fence(text: str) -> str:
    """Remove one surrounding ```json ... ``` fence, if the model added one."""
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    return match.group(1) if match else stripped


def parse_generated_json(text: str) -> dict:
    """
    Parse model text as a JSON object.

    Raises:
        InvalidJson: If the text is not valid JSON or not an object.
    """
    try:
        data = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise InvalidJson(text, f"Failed to parse AI response as JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise InvalidJson(text, f"AI response must be a JSON object, got {_json_type_name(data)}.")
    return data


def validate_completion(
    raw: RawCompletion,
    provider: LLMProvider,
    id_type: IdType,
) -> Result[ParsedRecommendation, MalformedUpstreamResponse]:
    """
    Validate one upstream body against the output contract.

    Args:
        raw: Decoded upstream response body (untrusted)
        provider: Adapter that knows where the generated text lives
        id_type: Identifier type of the catalog ("number" or "string")

    Returns:
        Ok(ParsedRecommendation) or Err(MalformedUpstreamResponse)
    """
    try:
        text = provider.extract_generated_text(raw)
    except NoTextContent as e:
        logger.error(f"{provider.name} returned data but no parsable text content")
        logger.debug(f"Envelope preview: {str(raw)[:500]}")
        return Err(e)

    try:
        data = parse_generated_json(text)
    except InvalidJson as e:
        logger.error(f"JSON parsing failed. Raw string: {e.raw_text[:500]}")
        return Err(e)

    if PRODUCT_ID_FIELD not in data or data[PRODUCT_ID_FIELD] is None:
        logger.error(f"AI response is missing mandatory {PRODUCT_ID_FIELD}. Keys: {sorted(data)}")
        return Err(MissingProductId())

    product_id = data[PRODUCT_ID_FIELD]
    if not matches_id_type(product_id, id_type):
        actual = _json_type_name(product_id)
        logger.error(f"AI returned {PRODUCT_ID_FIELD} of type {actual}; catalog ids are {id_type}")
        return Err(ProductIdTypeMismatch(expected=id_type, actual=actual))

    reply = data.get(REPLY_FIELD)
    if reply is not None and not isinstance(reply, str):
        logger.error(f"AI returned {REPLY_FIELD} of type {_json_type_name(reply)}")
        return Err(ReplyTypeMismatch(actual=_json_type_name(reply)))

    if not reply or not reply.strip():
        logger.warning("AI returned an empty reply; using the default reply")
        reply = DEFAULT_REPLY

    logger.debug(f"Parsed recommendation: {PRODUCT_ID_FIELD}={product_id!r}")
    return Ok(ParsedRecommendation(reply_text=reply, product_id=product_id))
