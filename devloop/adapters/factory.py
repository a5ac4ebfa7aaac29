from __future__ import annotations

from devloop.config import SessionConfig

from .gemini_adapter import GeminiAdapter
from .llm_base import LLMAdapter
from .mock_adapter import MockAdapter
from .openai_adapter import OpenAIAdapter


def build_adapter(mode: str, config: SessionConfig) -> LLMAdapter:
    if mode == "mock":
        return MockAdapter()
    if config.provider == "gemini":
        return GeminiAdapter(config)
    if config.provider == "openai":
        return OpenAIAdapter(config)
    raise ValueError(f"Unsupported provider: {config.provider}")
