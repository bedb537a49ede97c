"""
LLM Backend Abstraction Layer
==============================
Pluggable backends for generative-model inference inside Flora.

Supported backends
------------------
* **GeminiBackend**: Gemini 2.5 Flash / Pro through the ``google-generativeai``
  SDK (imported lazily on ``initialize``).

A request is a list of content parts (text, or inline bytes with a MIME
type) plus an optional response schema for structured JSON output. Streamed
chat takes the full conversation and yields text chunks as they arrive.

Transport problems (timeouts, API errors, unreadable responses, blocked
prompts) surface as :class:`~app.domain.exceptions.ExternalServiceError`.

Quick-start
-----------
::

    from app.services.ai.llm_backends import ContentPart, GeminiBackend

    backend = GeminiBackend(api_key="...", model="gemini-2.5-flash")
    if backend.initialize():
        reply = backend.generate([ContentPart.from_text("My tomato leaves are yellowing.")])
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterator

from app.domain.exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?);base64,(?P<data>.*)$", re.S)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContentPart:
    """One part of a request: either text or inline base64 data with a MIME type."""

    text: str | None = None
    mime_type: str | None = None
    data: str | None = None

    @classmethod
    def from_text(cls, text: str) -> "ContentPart":
        return cls(text=text)

    @classmethod
    def from_bytes(cls, payload: bytes, mime_type: str) -> "ContentPart":
        return cls(mime_type=mime_type, data=base64.b64encode(payload).decode("ascii"))

    @classmethod
    def from_data_uri(cls, uri: str) -> "ContentPart":
        """Parse ``data:<mime>;base64,<payload>``.

        Raises:
            ValidationError: not a base64 data URI
        """
        match = _DATA_URI_RE.match((uri or "").strip())
        if not match or not match.group("data"):
            raise ValidationError("Expected a base64 data URI (data:<mime>;base64,...)")
        payload = match.group("data").strip()
        try:
            base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError("Data URI payload is not valid base64") from exc
        return cls(mime_type=match.group("mime") or "application/octet-stream", data=payload)

    @property
    def is_inline(self) -> bool:
        return self.data is not None

    def to_sdk(self) -> Any:
        """Text as a plain string, media as an SDK blob mapping with raw bytes."""
        if self.is_inline:
            return {"mime_type": self.mime_type, "data": base64.b64decode(self.data)}
        return self.text or ""


@dataclass(frozen=True)
class ChatTurn:
    """One message of a streamed conversation (``role`` is ``user`` or ``model``)."""

    role: str
    text: str

    def to_sdk(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [self.text]}


@dataclass
class LLMResponse:
    """Standardised wrapper around every backend response."""

    text: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)  # prompt_tokens, completion_tokens, total_tokens
    latency_ms: float = 0.0
    raw: Any = None  # backend-specific raw response object


# ---------------------------------------------------------------------------
# Abstract backend
# ---------------------------------------------------------------------------


class LLMBackend(ABC):
    """
    Abstract base for every LLM backend.

    Subclasses must implement :meth:`initialize`, :meth:`generate`,
    :meth:`stream`, :attr:`name` and :attr:`is_available`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier for this backend (e.g. ``"gemini"``)."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """``True`` when the backend has been initialised and is ready."""

    @abstractmethod
    def initialize(self) -> bool:
        """
        Perform one-time setup (validate API key, configure the SDK client).

        Returns ``True`` on success.
        """

    @abstractmethod
    def generate(
        self,
        parts: list[ContentPart],
        *,
        response_schema: dict[str, Any] | None = None,
        system_instruction: str | None = None,
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """
        Generate one response.

        Parameters
        ----------
        parts:
            Ordered request parts (text and inline media).
        response_schema:
            When given, the backend must answer with JSON matching it.
        system_instruction:
            Persona / role instruction.
        model:
            Override of the backend's default model.
        tools:
            Backend tool declarations (e.g. web search grounding).
        """

    @abstractmethod
    def stream(
        self,
        turns: list[ChatTurn],
        *,
        system_instruction: str | None = None,
        model: str | None = None,
    ) -> Iterator[str]:
        """Yield the reply to the last turn of ``turns`` chunk by chunk."""

    # -- helpers available to all backends ----------------------------------

    def _timed(self, fn, *args, **kwargs):
        """Call *fn* and return ``(result, elapsed_ms)``."""
        t0 = time.perf_counter()
        result = fn(*args, **kwargs)
        return result, (time.perf_counter() - t0) * 1000


# ---------------------------------------------------------------------------
# Gemini backend
# ---------------------------------------------------------------------------


class GeminiBackend(LLMBackend):
    """
    Backend for Google Gemini through the ``google-generativeai`` SDK.

    Requires the ``google-generativeai`` package (``pip install google-generativeai``).

    Parameters
    ----------
    api_key:
        Google AI Studio API key.
    model:
        Default model identifier (``gemini-2.5-flash``).
    api_endpoint:
        Optional API host override (e.g. a regional endpoint or proxy).
    timeout:
        Request timeout in seconds.
    temperature:
        Sampling temperature.
    genai_module:
        Pre-imported SDK module; ``google.generativeai`` is imported on
        :meth:`initialize` when omitted.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        api_endpoint: str | None = None,
        timeout: int = 60,
        temperature: float = 0.4,
        genai_module: Any = None,
    ):
        self._api_key = api_key
        self._model = model
        self._api_endpoint = api_endpoint or None
        self._timeout = timeout
        self._temperature = temperature
        self._genai: Any = genai_module
        self._sdk_errors: tuple[type[BaseException], ...] = ()
        self._ready = False

    # -- ABC ----------------------------------------------------------------

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def model(self) -> str:
        return self._model

    @property
    def is_available(self) -> bool:
        return self._ready

    def initialize(self) -> bool:
        if not self._api_key:
            logger.warning("Gemini backend: no API key provided")
            return False
        try:
            if self._genai is None:
                import google.generativeai as genai

                self._genai = genai
            from google.api_core import exceptions as api_exceptions
        except ImportError:
            logger.error(
                "Gemini backend: 'google-generativeai' package not installed.  Run: pip install google-generativeai"
            )
            return False

        options: dict[str, Any] = {"api_key": self._api_key, "transport": "rest"}
        if self._api_endpoint:
            options["client_options"] = {"api_endpoint": self._api_endpoint}
        try:
            self._genai.configure(**options)
        except (TypeError, ValueError, api_exceptions.GoogleAPIError) as exc:
            logger.error("Gemini backend init failed: %s", exc)
            return False

        # Everything the SDK raises for a failed call: API/transport errors,
        # blocked prompts and responses, and unreadable payloads.
        self._sdk_errors = (
            api_exceptions.GoogleAPIError,
            self._genai.types.BlockedPromptException,
            self._genai.types.StopCandidateException,
            ValueError,
        )
        self._ready = True
        logger.info("Gemini backend initialised (model=%s)", self._model)
        return True

    def generate(
        self,
        parts: list[ContentPart],
        *,
        response_schema: dict[str, Any] | None = None,
        system_instruction: str | None = None,
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        client = self._client(model, system_instruction, response_schema=response_schema, tools=tools)
        contents = [part.to_sdk() for part in parts]
        try:
            response, latency = self._timed(
                client.generate_content, contents, request_options={"timeout": self._timeout}
            )
        except self._sdk_errors as exc:
            logger.error("Gemini request failed: %s", exc, exc_info=True)
            raise ExternalServiceError(f"Gemini request failed: {exc}") from exc

        if not getattr(response, "candidates", None):
            feedback = getattr(response, "prompt_feedback", None)
            reason = getattr(feedback, "block_reason", None)
            raise ExternalServiceError(f"Gemini returned no candidates{f' (blocked: {reason})' if reason else ''}")

        usage_meta = getattr(response, "usage_metadata", None)
        usage = {}
        if usage_meta is not None:
            usage = {
                "prompt_tokens": int(getattr(usage_meta, "prompt_token_count", 0) or 0),
                "completion_tokens": int(getattr(usage_meta, "candidates_token_count", 0) or 0),
                "total_tokens": int(getattr(usage_meta, "total_token_count", 0) or 0),
            }
        return LLMResponse(
            text=_response_text(response),
            model=model or self._model,
            usage=usage,
            latency_ms=latency,
            raw=response,
        )

    def stream(
        self,
        turns: list[ChatTurn],
        *,
        system_instruction: str | None = None,
        model: str | None = None,
    ) -> Iterator[str]:
        client = self._client(model, system_instruction)
        contents = [turn.to_sdk() for turn in turns]
        try:
            response = client.generate_content(contents, stream=True, request_options={"timeout": self._timeout})
            for chunk in response:
                text = _response_text(chunk)
                if text:
                    yield text
        except self._sdk_errors as exc:
            logger.error("Gemini stream failed: %s", exc, exc_info=True)
            raise ExternalServiceError(f"Gemini stream failed: {exc}") from exc

    # -- internals ----------------------------------------------------------

    def _client(
        self,
        model: str | None,
        system_instruction: str | None,
        *,
        response_schema: dict[str, Any] | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> Any:
        if not self.is_available:
            raise ExternalServiceError("Gemini backend not initialised")
        generation_config: dict[str, Any] = {"temperature": self._temperature}
        if response_schema is not None:
            generation_config["response_mime_type"] = "application/json"
            generation_config["response_schema"] = response_schema
        return self._genai.GenerativeModel(
            model or self._model,
            system_instruction=system_instruction or None,
            tools=tools or None,
            generation_config=generation_config,
        )


def _response_text(response: Any) -> str:
    """Text of the first candidate; empty when a (stream) chunk carries none."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    return "".join(getattr(part, "text", "") or "" for part in parts)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_backend(
    provider: str,
    *,
    api_key: str = "",
    model: str = "",
    api_endpoint: str | None = None,
    timeout: int = 60,
    temperature: float = 0.4,
) -> LLMBackend | None:
    """
    Factory: create and initialise the right backend from a provider name.

    Parameters
    ----------
    provider:
        ``"gemini"`` or ``"none"``.

    Returns
    -------
    An initialised :class:`LLMBackend`, or ``None`` if the provider is
    ``"none"`` or initialisation fails.
    """
    provider = provider.strip().lower()

    if provider in ("none", ""):
        logger.info("LLM provider set to 'none'; assistant features disabled")
        return None

    if provider != "gemini":
        logger.error("Unknown LLM provider '%s'", provider)
        return None

    backend = GeminiBackend(
        api_key=api_key,
        model=model or "gemini-2.5-flash",
        api_endpoint=api_endpoint,
        timeout=timeout,
        temperature=temperature,
    )
    if backend.initialize():
        return backend

    logger.warning("LLM backend '%s' failed to initialise; assistant features disabled", provider)
    return None
