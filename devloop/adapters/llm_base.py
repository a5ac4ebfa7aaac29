from __future__ import annotations

from typing import Optional, Protocol


class LLMAdapter(Protocol):
    def generate(self, prompt: str, system_message: Optional[str] = None) -> Optional[str]:
        """Return the oracle's free-text answer, or ``None`` when it produced no content."""
        raise NotImplementedError


def is_transient(err: Exception) -> bool:
    msg = str(err).lower()
    return any(
        s in msg for s in ["503", "unavailable", "429", "too many", "timeout", "timed out", "temporarily"]
    )
