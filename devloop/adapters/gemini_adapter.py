from __future__ import annotations

import os
import random
import time
from typing import List, Optional

from google import genai
from google.genai import types

from devloop.config import SessionConfig
from devloop.utils import log

from .llm_base import LLMAdapter, is_transient


class GeminiAdapter(LLMAdapter):
    def __init__(self, config: Optional[SessionConfig] = None) -> None:
        self.config = config or SessionConfig()
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_AI_API_KEY")
        if not api_key:
            raise RuntimeError("GEMINI_API_KEY is not set.")

        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(
                timeout=int(self.config.oracle_timeout_seconds * 1000)
            ),
        )

        primary = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        self.model_candidates: List[str] = [primary]
        for fallback in ("gemini-flash-latest", "gemini-1.5-pro"):
            if fallback not in self.model_candidates:
                self.model_candidates.append(fallback)

        self.max_attempts = int(os.getenv("GEMINI_MAX_ATTEMPTS", "5"))
        self.base_delay = float(os.getenv("GEMINI_BASE_DELAY_SECONDS", "1.0"))

    def generate(self, prompt: str, system_message: Optional[str] = None) -> Optional[str]:
        last_err: Exception | None = None
        generation_config = types.GenerateContentConfig(
            system_instruction=system_message,
            temperature=self.config.temperature,
            top_k=50,
            top_p=0.9,
            max_output_tokens=self.config.max_output_tokens,
        )

        for model in self.model_candidates:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    log.debug("gemini", f"model={model} attempt={attempt}/{self.max_attempts}")
                    response = self.client.models.generate_content(
                        model=model,
                        contents=prompt,
                        config=generation_config,
                    )
                    text = getattr(response, "text", None)
                    if not text:
                        log.warning("gemini", f"model={model} returned empty content")
                        return None
                    return text

                except Exception as e:
                    last_err = e
                    if not is_transient(e):
                        break

                    delay = self.base_delay * (2 ** (attempt - 1)) + random.random() * 0.5
                    log.warning("gemini", f"transient error: {e} -> sleeping {delay:.2f}s")
                    time.sleep(delay)

            log.warning("gemini", f"switching model after failures: {model}")

        raise RuntimeError(
            "Gemini generate_content failed for all candidate models. "
            f"Last error: {last_err}"
        ) from last_err
