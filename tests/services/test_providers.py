"""
Tests for the upstream provider adapters.

Each adapter must render the instruction into its API's request shape and
extract the generated text from its own response envelope, failing with
NoTextContent when the designated field is absent.
"""

import pytest

from chat_backend.agents.recommendation.prompts import build_model_instruction
from chat_backend.agents.recommendation.providers import (
    GeminiProvider,
    HuggingFaceProvider,
    LLMProvider,
    OpenAIProvider,
    get_provider,
    to_gemini_schema,
)
from chat_backend.agents.recommendation.types import RecommendationRequest
from chat_backend.errors import NoTextContent


@pytest.fixture
def instruction(small_catalog):
    return build_model_instruction(RecommendationRequest(user_message="내 강아지는 작아요"), small_catalog)


# =============================================================================
# REGISTRY
# =============================================================================

class TestProviderRegistry:

    @pytest.mark.parametrize("name,cls", [
        ("gemini", GeminiProvider),
        ("openai", OpenAIProvider),
        ("huggingface", HuggingFaceProvider),
        ("  Gemini ", GeminiProvider),
    ])
    def test_lookup(self, name, cls):
        assert isinstance(get_provider(name), cls)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unsupported LLM provider"):
            get_provider("claude-via-carrier-pigeon")

    def test_adapter_must_define_endpoint(self):
        class NoEndpoint(LLMProvider):
            name = "partial"

            def build_request(self, instruction, api_key, model=None, url=None):
                return None

            def extract_generated_text(self, raw):
                return ""

        with pytest.raises(TypeError):
            NoEndpoint()


# =============================================================================
# GEMINI
# =============================================================================

class TestGeminiProvider:

    def test_request_shape(self, instruction):
        request = GeminiProvider().build_request(instruction, api_key="secret")

        assert request.url.endswith("/models/gemini-2.5-flash:generateContent")
        assert request.headers == {"x-goog-api-key": "secret"}
        assert "secret" not in request.url

        body = request.json
        assert body["contents"][0]["role"] == "user"
        assert body["contents"][0]["parts"][0]["text"] == instruction.user_text
        assert body["systemInstruction"]["parts"][0]["text"] == instruction.system_text

        config = body["generationConfig"]
        assert config["responseMimeType"] == "application/json"
        schema = config["responseSchema"]
        assert schema["type"] == "OBJECT"
        assert schema["properties"]["reply"]["type"] == "STRING"
        assert schema["properties"]["productId"]["type"] == "NUMBER"
        assert sorted(schema["required"]) == ["productId", "reply"]

    def test_model_and_url_overrides(self, instruction):
        provider = GeminiProvider()
        assert "gemini-1.5-pro" in provider.build_request(instruction, "k", model="gemini-1.5-pro").url
        assert provider.build_request(instruction, "k", url="http://upstream.test/gen").url == "http://upstream.test/gen"

    def test_string_id_schema(self, string_id_catalog):
        instruction = build_model_instruction(RecommendationRequest(user_message="hi"), string_id_catalog)
        schema = to_gemini_schema(instruction.output_schema)
        assert schema.properties["productId"].type.value == "STRING"

    def test_extract_text(self, gemini_envelope):
        raw = gemini_envelope('{"reply": "hi", "productId": 1}')
        assert GeminiProvider().extract_generated_text(raw) == '{"reply": "hi", "productId": 1}'

    def test_extract_skips_thought_parts(self):
        raw = {"candidates": [{"content": {"parts": [
            {"text": "thinking...", "thought": True},
            {"text": '{"reply": "a", "productId": 2}'},
        ]}}]}
        assert GeminiProvider().extract_generated_text(raw) == '{"reply": "a", "productId": 2}'

    @pytest.mark.parametrize("raw", [
        {},
        {"candidates": []},
        {"candidates": [{}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"text": ""}]}}]},
        {"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]},
        {"promptFeedback": {"blockReason": "SAFETY"}},
        [],
        "text",
        None,
    ])
    def test_missing_text(self, raw):
        with pytest.raises(NoTextContent):
            GeminiProvider().extract_generated_text(raw)


# =============================================================================
# OPENAI
# =============================================================================

class TestOpenAIProvider:

    def test_request_shape(self, instruction):
        request = OpenAIProvider().build_request(instruction, api_key="secret")

        assert request.url == "https://api.openai.com/v1/chat/completions"
        assert request.headers == {"Authorization": "Bearer secret"}

        body = request.json
        assert body["model"] == "gpt-4o-mini"
        assert body["messages"] == [
            {"role": "system", "content": instruction.system_text},
            {"role": "user", "content": instruction.user_text},
        ]
        response_format = body["response_format"]
        assert response_format["type"] == "json_schema"
        assert response_format["json_schema"]["strict"] is True
        schema = response_format["json_schema"]["schema"]
        assert schema["additionalProperties"] is False
        assert schema["properties"]["productId"]["type"] == "number"

    def test_does_not_mutate_instruction_schema(self, instruction):
        OpenAIProvider().build_request(instruction, api_key="secret")
        assert "additionalProperties" not in instruction.output_schema

    def test_extract_text(self):
        raw = {"choices": [{"message": {"role": "assistant", "content": '{"reply":"x","productId":1}'}}]}
        assert OpenAIProvider().extract_generated_text(raw) == '{"reply":"x","productId":1}'

    @pytest.mark.parametrize("raw", [
        {"choices": []},
        {"choices": [{"message": {"content": None, "refusal": "no"}}]},
        {"error": {"message": "bad"}},
    ])
    def test_missing_text(self, raw):
        with pytest.raises(NoTextContent):
            OpenAIProvider().extract_generated_text(raw)


# =============================================================================
# HUGGING FACE
# =============================================================================

class TestHuggingFaceProvider:

    def test_request_shape(self, instruction):
        request = HuggingFaceProvider().build_request(instruction, api_key="secret")

        assert request.url.startswith("https://api-inference.huggingface.co/models/")
        assert request.headers == {"Authorization": "Bearer secret"}
        assert instruction.system_text in request.json["inputs"]
        assert instruction.user_text in request.json["inputs"]
        assert request.json["parameters"]["return_full_text"] is False

    def test_extract_from_list(self):
        raw = [{"generated_text": '{"reply":"x","productId":1}'}]
        assert HuggingFaceProvider().extract_generated_text(raw) == '{"reply":"x","productId":1}'

    def test_extract_from_object(self):
        raw = {"generated_text": "text"}
        assert HuggingFaceProvider().extract_generated_text(raw) == "text"

    @pytest.mark.parametrize("raw", [[], [{}], {"error": "Model is loading"}])
    def test_missing_text(self, raw):
        with pytest.raises(NoTextContent):
            HuggingFaceProvider().extract_generated_text(raw)
