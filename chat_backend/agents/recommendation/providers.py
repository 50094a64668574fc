"""
Upstream LLM provider adapters.

Each provider knows two things about its API:
- how to render a ModelInstruction into one HTTP request (body + auth)
- where the generated text lives in the response envelope

Everything else in the pipeline is provider-agnostic.

Supported providers:
- gemini: Google Generative Language REST API (generateContent), with
  responseMimeType/responseSchema structured output. Request parts are built
  with ``google.genai.types`` and serialised to the REST wire shape.
- openai: Chat Completions with ``response_format: json_schema``.
- huggingface: Inference API text generation. No structured output; the
  schema is carried in the instruction text only.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from google.genai import types

from chat_backend.agents.recommendation.types import ModelInstruction, RawCompletion
from chat_backend.errors import NoTextContent

# Low temperature: the task is picking one id from a short list
DEFAULT_TEMPERATURE = 0.2


@dataclass(frozen=True)
class ProviderRequest:
    """Everything needed for one POST to the upstream endpoint."""
    url: str
    json: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)


def _dig(obj: Any, *path: Any) -> Any:
    """Walk dict keys / list indexes, returning None as soon as a step is missing."""
    for step in path:
        if isinstance(step, int):
            if not isinstance(obj, list) or len(obj) <= step:
                return None
        elif not isinstance(obj, dict):
            return None
        obj = obj[step] if isinstance(step, int) else obj.get(step)
    return obj


class LLMProvider(ABC):
    """Interface for pluggable upstream providers."""

    name: str = ""
    default_model: str = ""
    supports_structured_output: bool = False

    @abstractmethod
    def endpoint(self, model: str) -> str:
        """Default endpoint URL for ``model``."""

    @abstractmethod
    def build_request(
        self,
        instruction: ModelInstruction,
        api_key: str,
        model: Optional[str] = None,
        url: Optional[str] = None,
    ) -> ProviderRequest:
        """Render the instruction into the provider's request shape."""

    @abstractmethod
    def extract_generated_text(self, raw: RawCompletion) -> str:
        """
        Return the model's output text from the response envelope.

        Raises:
            NoTextContent: If the designated text field is absent or empty.
        """


# =============================================================================
# GEMINI
# =============================================================================

_GEMINI_TYPES = {
    "string": types.Type.STRING,
    "number": types.Type.NUMBER,
    "integer": types.Type.INTEGER,
    "boolean": types.Type.BOOLEAN,
    "object": types.Type.OBJECT,
    "array": types.Type.ARRAY,
}


def to_gemini_schema(schema: Dict[str, Any]) -> types.Schema:
    """Convert a JSON-schema style dict into a Gemini ``types.Schema``."""
    properties = schema.get("properties") or {}
    return types.Schema(
        type=_GEMINI_TYPES[schema["type"]],
        description=schema.get("description"),
        properties={key: to_gemini_schema(value) for key, value in properties.items()} or None,
        required=schema.get("required") or None,
    )


def _to_wire(model: Any) -> Dict[str, Any]:
    """Serialise an SDK model to the camelCase REST shape."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


class GeminiProvider(LLMProvider):
    name = "gemini"
    default_model = "gemini-2.5-flash"
    supports_structured_output = True

    def endpoint(self, model: str) -> str:
        return f"https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    def build_request(self, instruction, api_key, model=None, url=None):
        contents = types.Content(role="user", parts=[types.Part(text=instruction.user_text)])
        system_instruction = types.Content(parts=[types.Part(text=instruction.system_text)])
        generation_config = types.GenerationConfig(
            temperature=DEFAULT_TEMPERATURE,
            response_mime_type="application/json",
            response_schema=to_gemini_schema(instruction.output_schema),
        )
        payload = {
            "contents": [_to_wire(contents)],
            "systemInstruction": _to_wire(system_instruction),
            "generationConfig": _to_wire(generation_config),
        }
        # Header instead of ?key= so the credential never shows up in URL logs
        return ProviderRequest(
            url=url or self.endpoint(model or self.default_model),
            json=payload,
            headers={"x-goog-api-key": api_key},
        )

    def extract_generated_text(self, raw):
        parts = _dig(raw, "candidates", 0, "content", "parts")
        if isinstance(parts, list):
            for part in parts:
                # Skip thinking parts; the answer is the first real text part
                if not isinstance(part, dict) or part.get("thought"):
                    continue
                text = part.get("text")
                if isinstance(text, str) and text.strip():
                    return text
        raise NoTextContent("Invalid response structure from Gemini API (No text content).")


# =============================================================================
# OPENAI
# =============================================================================

class OpenAIProvider(LLMProvider):
    name = "openai"
    default_model = "gpt-4o-mini"
    supports_structured_output = True

    def endpoint(self, model: str) -> str:
        return "https://api.openai.com/v1/chat/completions"

    def build_request(self, instruction, api_key, model=None, url=None):
        # Strict json_schema mode requires additionalProperties: false
        schema = dict(instruction.output_schema)
        schema["additionalProperties"] = False
        payload = {
            "model": model or self.default_model,
            "temperature": DEFAULT_TEMPERATURE,
            "messages": [
                {"role": "system", "content": instruction.system_text},
                {"role": "user", "content": instruction.user_text},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "product_recommendation",
                    "strict": True,
                    "schema": schema,
                },
            },
        }
        return ProviderRequest(
            url=url or self.endpoint(model or self.default_model),
            json=payload,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def extract_generated_text(self, raw):
        text = _dig(raw, "choices", 0, "message", "content")
        if isinstance(text, str) and text.strip():
            return text
        raise NoTextContent("Invalid response structure from OpenAI API (No text content).")


# =============================================================================
# HUGGING FACE
# =============================================================================

class HuggingFaceProvider(LLMProvider):
    name = "huggingface"
    default_model = "mistralai/Mistral-7B-Instruct-v0.3"

    def endpoint(self, model: str) -> str:
        return f"https://api-inference.huggingface.co/models/{model}"

    def build_request(self, instruction, api_key, model=None, url=None):
        payload = {
            "inputs": f"{instruction.system_text}\n\n{instruction.user_text}",
            "parameters": {
                "max_new_tokens": 512,
                "temperature": DEFAULT_TEMPERATURE,
                "return_full_text": False,
            },
        }
        return ProviderRequest(
            url=url or self.endpoint(model or self.default_model),
            json=payload,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def extract_generated_text(self, raw):
        # Inference API answers with a list of {"generated_text": ...}
        text = _dig(raw, 0, "generated_text") if isinstance(raw, list) else _dig(raw, "generated_text")
        if isinstance(text, str) and text.strip():
            return text
        raise NoTextContent("Invalid response structure from Hugging Face API (No text content).")


PROVIDERS: Dict[str, LLMProvider] = {
    provider.name: provider
    for provider in (GeminiProvider(), OpenAIProvider(), HuggingFaceProvider())
}


def get_provider(name: str) -> LLMProvider:
    """
    Look up a provider adapter by name.

    Raises:
        ValueError: If the provider is not supported.
    """
    try:
        return PROVIDERS[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported LLM provider '{name}'. Choose one of: {', '.join(PROVIDERS)}"
        ) from None
