"""
AI Services
===========
Generative assistant services for plant and field analysis.

Modules:
- llm_backends: transport to the generative model (Gemini REST)
- response_schema: pydantic result model -> Gemini response schema
- agronomy_advisor: typed identification, diagnosis, video, weather,
  crop-calendar, follow-up and chat calls

All public symbols are importable via ``from app.services.ai import X``.
Imports are **lazy**: each submodule is loaded only when one of its symbols
is first accessed.
"""

from __future__ import annotations

import importlib
from typing import Any

# ── Symbol → submodule mapping ──────────────────────────────────────
_LAZY_IMPORTS: dict[str, str] = {
    # agronomy_advisor
    "AgronomyAdvisor": "app.services.ai.agronomy_advisor",
    "strip_code_fences": "app.services.ai.agronomy_advisor",
    # llm_backends
    "ChatTurn": "app.services.ai.llm_backends",
    "ContentPart": "app.services.ai.llm_backends",
    "GeminiBackend": "app.services.ai.llm_backends",
    "LLMBackend": "app.services.ai.llm_backends",
    "LLMResponse": "app.services.ai.llm_backends",
    "create_backend": "app.services.ai.llm_backends",
    # response_schema
    "gemini_schema": "app.services.ai.response_schema",
}

__all__ = list(_LAZY_IMPORTS.keys())


def __getattr__(name: str) -> Any:
    """Lazy-load symbols on first access."""
    module_path = _LAZY_IMPORTS.get(name)
    if module_path is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = importlib.import_module(module_path)
    value = getattr(module, name)
    globals()[name] = value
    return value
