"""
Recommendation Prompt Templates

Contains the system prompt template and the builders that turn a user
message plus the catalog into a ModelInstruction.

Architecture:
- Pattern: Single-shot structured output (one generation call per request)
- Output: JSON object {"reply": string, "productId": catalog id}
- Schema: declared alongside the prompt and passed to the provider's
  structured-output feature when it has one

Prompt Engineering Pattern:
- System prompt carries the role, the catalog manifest and the output contract
- User turn carries only the user's message
- The contract makes productId mandatory even for off-topic messages;
  non-compliance is handled by the response validator, not assumed away
"""

from typing import Any, Dict

from chat_backend.agents.recommendation.types import ModelInstruction, RecommendationRequest
from chat_backend.catalog import Catalog
from chat_backend.schemas.products import IdType, Product

REPLY_FIELD = "reply"
PRODUCT_ID_FIELD = "productId"

DEFAULT_SHOP_NAME = "POOPKY"

# =============================================================================
# SYSTEM PROMPT
# =============================================================================

RECOMMENDATION_SYSTEM_PROMPT = """당신은 {shop_name} 쇼핑몰의 전문 상품 추천 AI 챗봇입니다.
당신의 유일한 목표는 사용자의 질문을 분석하여 제공된 상품 목록 중 가장 적합한 상품 1개를 고르고, 그 결과를 **반드시** 지정된 JSON Schema에 맞춰 출력하는 것입니다.

<output_format>
- 정확히 두 개의 필드 "{reply_field}"와 "{product_id_field}"만 가진 JSON 객체 하나만 출력하세요.
- **절대로** JSON 외의 다른 텍스트(설명, 마크다운 코드 블록 마커 등)를 추가하지 마세요.
- **"{reply_field}" 필드**에는 사용자에게 보여줄 친절하고 상세한 답변을 작성하세요.
- **"{product_id_field}" 필드**에는 추천할 상품의 ID({id_type_label})를 **반드시** 포함해야 합니다.
</output_format>

<products>
{product_manifest}
</products>

<rules>
- 만약 질문이 상품 추천과 관련 없더라도, "{product_id_field}"는 목록에서 아무 상품 ID(예: {example_id})를 선택하고 "{reply_field}"에 "{topic_hint}"와 같이 추천을 유도하는 문구를 추가하세요.
- 절대 상품 목록이나 ID, 상품 설명 원문을 사용자에게 직접 노출하지 마세요.
</rules>"""

DEFAULT_TOPIC_HINT = "궁금한 점이 있다면 언제든 물어봐 주세요!"

USER_PROMPT_TEMPLATE = "사용자 질문: {message}"


def _id_type_label(id_type: IdType) -> str:
    return "숫자" if id_type == "number" else "문자열"


def format_product_line(product: Product) -> str:
    """One manifest line: id, name, price, short features, link."""
    features = product.description or "일반적인 소재"
    return (
        f"ID: {product.id}, 이름: {product.name}, 가격: {product.price}, "
        f"특징: [{features}], Link: {product.link}"
    )


def build_product_manifest(catalog: Catalog) -> str:
    """Render every catalog entry, in catalog order, one per line."""
    return "\n".join(format_product_line(product) for product in catalog)


def build_output_schema(id_type: IdType) -> Dict[str, Any]:
    """
    Declare the output shape for the upstream structured-output feature.

    productId takes the catalog's identifier type so a compliant model cannot
    answer "1" for a numeric catalog.
    """
    return {
        "type": "object",
        "properties": {
            REPLY_FIELD: {
                "type": "string",
                "description": "The friendly and detailed response to the user.",
            },
            PRODUCT_ID_FIELD: {
                "type": id_type,
                "description": "The ID of the most relevant product from the list.",
            },
        },
        "required": [REPLY_FIELD, PRODUCT_ID_FIELD],
    }


def build_system_prompt(catalog: Catalog, shop_name: str = DEFAULT_SHOP_NAME) -> str:
    example_id = catalog.products[0].id
    return RECOMMENDATION_SYSTEM_PROMPT.format(
        shop_name=shop_name,
        reply_field=REPLY_FIELD,
        product_id_field=PRODUCT_ID_FIELD,
        id_type_label=_id_type_label(catalog.id_type),
        product_manifest=build_product_manifest(catalog),
        example_id=example_id if catalog.id_type == "number" else f'"{example_id}"',
        topic_hint=DEFAULT_TOPIC_HINT,
    )


def build_user_prompt(message: str) -> str:
    return USER_PROMPT_TEMPLATE.format(message=message)


def build_model_instruction(
    request: RecommendationRequest,
    catalog: Catalog,
    shop_name: str = DEFAULT_SHOP_NAME,
) -> ModelInstruction:
    """
    Build the complete instruction for one recommendation.

    Pure and total: the same request and catalog always give an equal
    instruction, and nothing here can fail for a valid catalog.

    Args:
        request: The inbound recommendation request
        catalog: Catalog to embed as the manifest
        shop_name: Shop name used in the role description

    Returns:
        ModelInstruction with system text, user text and output schema
    """
    return ModelInstruction(
        system_text=build_system_prompt(catalog, shop_name),
        user_text=build_user_prompt(request.user_message),
        output_schema=build_output_schema(catalog.id_type),
    )
