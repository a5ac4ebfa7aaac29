from __future__ import annotations

import os
import time
from typing import Dict, List, Optional

from openai import OpenAI
from openai import APIConnectionError, APITimeoutError, RateLimitError, InternalServerError

from devloop.config import SessionConfig
from devloop.utils import log

from .llm_base import LLMAdapter


class OpenAIAdapter(LLMAdapter):
    def __init__(self, config: Optional[SessionConfig] = None) -> None:
        self.config = config or SessionConfig()
        self.api_key = os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise RuntimeError("OPENAI_API_KEY is not set.")
        self.model = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self.client = OpenAI(api_key=self.api_key, timeout=self.config.oracle_timeout_seconds)

    def generate(self, prompt: str, system_message: Optional[str] = None) -> Optional[str]:
        messages: List[Dict[str, str]] = []
        if system_message:
            messages.append({"role": "system", "content": system_message})
        messages.append({"role": "user", "content": prompt})

        attempt = 0
        backoff = 1.0
        while True:
            attempt += 1
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    max_tokens=self.config.max_output_tokens,
                    temperature=self.config.temperature,
                )
                usage = getattr(response, "usage", None)
                if usage:
                    log.debug(
                        "openai",
                        f"model={self.model} "
                        f"prompt_tokens={getattr(usage, 'prompt_tokens', None)} "
                        f"completion_tokens={getattr(usage, 'completion_tokens', None)} "
                        f"total_tokens={getattr(usage, 'total_tokens', None)}",
                    )
                content = response.choices[0].message.content
                if not content:
                    log.warning("openai", f"model={self.model} returned empty content")
                    return None
                return content
            except RateLimitError as exc:
                error = getattr(exc, "error", None)
                code = getattr(error, "code", None)
                if code == "insufficient_quota":
                    raise RuntimeError(
                        "OpenAI API quota exceeded. Please enable billing in your OpenAI account."
                    ) from exc
                if attempt >= 4:
                    raise
            except (APITimeoutError, APIConnectionError, InternalServerError):
                if attempt >= 4:
                    raise
            log.warning("openai", f"retrying after transient error (attempt {attempt}), sleeping {backoff:.1f}s")
            time.sleep(backoff)
            backoff *= 2
