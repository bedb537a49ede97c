"""GeminiBackend over the google-generativeai SDK, with a stub SDK module injected."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from google.api_core import exceptions as api_exceptions

from app.domain.exceptions import ExternalServiceError
from app.services.ai.llm_backends import ChatTurn, ContentPart, GeminiBackend, create_backend


class BlockedPrompt(Exception):
    pass


class StoppedCandidate(Exception):
    pass


class StubModel:
    def __init__(self, sdk: "StubGenAI", model_name: str, **kwargs: Any) -> None:
        self._sdk = sdk
        sdk.models.append({"model_name": model_name, **kwargs})

    def generate_content(self, contents, **kwargs):
        self._sdk.calls.append({"contents": contents, **kwargs})
        outcome = self._sdk.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class StubGenAI:
    """Stands in for the ``google.generativeai`` module."""

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []
        self.models: list[dict[str, Any]] = []
        self.configured: dict[str, Any] = {}
        self.types = SimpleNamespace(BlockedPromptException=BlockedPrompt, StopCandidateException=StoppedCandidate)

    def configure(self, **kwargs: Any) -> None:
        self.configured = kwargs

    def GenerativeModel(self, model_name: str, **kwargs: Any) -> StubModel:
        return StubModel(self, model_name, **kwargs)


def _response(text: str, **extra: Any) -> SimpleNamespace:
    part = SimpleNamespace(text=text)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))], **extra)


def _backend(sdk: StubGenAI, **kwargs: Any) -> GeminiBackend:
    backend = GeminiBackend(api_key="key-123", model="gemini-test", genai_module=sdk, **kwargs)
    assert backend.initialize() is True
    return backend


def test_initialize_without_key():
    backend = GeminiBackend(api_key="", genai_module=StubGenAI())
    assert backend.initialize() is False
    assert backend.is_available is False


def test_initialize_configures_sdk():
    sdk = StubGenAI()
    _backend(sdk, api_endpoint="europe-gemini.example.com")

    assert sdk.configured["api_key"] == "key-123"
    assert sdk.configured["client_options"] == {"api_endpoint": "europe-gemini.example.com"}


def test_generate_builds_structured_request():
    usage = SimpleNamespace(prompt_token_count=10, candidates_token_count=5, total_token_count=15)
    sdk = StubGenAI(_response('{"plantName": "Tomato"}', usage_metadata=usage))
    backend = _backend(sdk, timeout=42)

    response = backend.generate(
        [ContentPart.from_data_uri("data:image/png;base64,iVBORw0KGgo="), ContentPart.from_text("Identify")],
        response_schema={"type": "OBJECT"},
        system_instruction="You are Flora",
        tools=[{"google_search_retrieval": {}}],
    )

    model = sdk.models[0]
    assert model["model_name"] == "gemini-test"
    assert model["system_instruction"] == "You are Flora"
    assert model["tools"] == [{"google_search_retrieval": {}}]
    assert model["generation_config"]["response_mime_type"] == "application/json"
    assert model["generation_config"]["response_schema"] == {"type": "OBJECT"}

    call = sdk.calls[0]
    assert call["contents"][0] == {"mime_type": "image/png", "data": b"\x89PNG\r\n\x1a\n"}
    assert call["contents"][1] == "Identify"
    assert call["request_options"] == {"timeout": 42}
    assert response.text == '{"plantName": "Tomato"}'
    assert response.usage["total_tokens"] == 15


def test_model_override():
    sdk = StubGenAI(_response("ok"))
    _backend(sdk).generate([ContentPart.from_text("hi")], model="gemini-pro-test")
    assert sdk.models[0]["model_name"] == "gemini-pro-test"


@pytest.mark.parametrize(
    "outcome",
    [
        api_exceptions.DeadlineExceeded("slow"),
        api_exceptions.ResourceExhausted("Quota exceeded"),
        BlockedPrompt("blocked"),
        SimpleNamespace(candidates=[], prompt_feedback=SimpleNamespace(block_reason="SAFETY")),
    ],
)
def test_transport_failures(outcome):
    with pytest.raises(ExternalServiceError):
        _backend(StubGenAI(outcome)).generate([ContentPart.from_text("hi")])


def test_generate_before_initialize():
    with pytest.raises(ExternalServiceError):
        GeminiBackend(api_key="k", genai_module=StubGenAI()).generate([ContentPart.from_text("hi")])


def test_stream_yields_chunks():
    chunks = [_response("Water "), SimpleNamespace(candidates=[]), _response("deeply.")]
    sdk = StubGenAI(iter(chunks))

    received = list(
        _backend(sdk).stream(
            [ChatTurn("user", "How?"), ChatTurn("model", "..."), ChatTurn("user", "Tomatoes")],
            system_instruction="You are Flora",
        )
    )

    assert received == ["Water ", "deeply."]
    call = sdk.calls[0]
    assert call["stream"] is True
    assert call["contents"][1] == {"role": "model", "parts": ["..."]}
    assert sdk.models[0]["system_instruction"] == "You are Flora"


def test_stream_failure_mid_way():
    def broken_stream():
        yield _response("Partial")
        raise api_exceptions.ServiceUnavailable("connection reset")

    sdk = StubGenAI(broken_stream())
    received: list[str] = []

    with pytest.raises(ExternalServiceError):
        for chunk in _backend(sdk).stream([ChatTurn("user", "hi")]):
            received.append(chunk)
    assert received == ["Partial"]


def test_stream_rejected_request():
    sdk = StubGenAI(api_exceptions.InternalServerError("boom"))

    with pytest.raises(ExternalServiceError, match="boom"):
        list(_backend(sdk).stream([ChatTurn("user", "hi")]))


def test_create_backend_factory():
    assert create_backend("none") is None
    assert create_backend("openai", api_key="k") is None
    assert create_backend("gemini", api_key="") is None
    backend = create_backend("Gemini", api_key="k", model="gemini-x")
    assert backend.is_available and backend.model == "gemini-x"
