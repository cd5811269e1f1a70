from __future__ import annotations

from typing import Optional

from duelroom.core.config import get_provider_name

from .base import GeneratorProvider
from .gemini_provider import GeminiProvider
from .mock_provider import MockProvider

PROVIDER_NAMES = ("mock", "gemini")


def get_provider(name: Optional[str] = None) -> GeneratorProvider:
    """
    Registry entry point (also the FastAPI dependency).
    GENERATOR_PROVIDER=mock|gemini; default mock.
    """
    chosen = (name or get_provider_name()).strip().lower()
    if chosen == "gemini":
        return GeminiProvider()
    if chosen == "mock":
        return MockProvider()
    raise ValueError(f"Unknown GENERATOR_PROVIDER={chosen!r}; expected one of {PROVIDER_NAMES}")


def provider_health() -> dict:
    try:
        p = get_provider()
    except ValueError as e:
        return {"status": "error", "name": get_provider_name(), "error": str(e)}
    if isinstance(p, GeminiProvider) and not p.api_key:
        return {"status": "error", "name": p.name, "error": "GEMINI_API_KEY is not set"}
    return {"status": "ok", "name": p.name}
