from __future__ import annotations

import re
from typing import Optional

from devloop import prompts
from devloop.adapters.llm_base import LLMAdapter
from devloop.adapters.user_prompt import UserPrompt
from devloop.errors import OracleResponseError
from devloop.models import Requirements
from devloop.utils import log

QUESTION_MARKER = "question:"
_QUESTION_RE = re.compile(r"Question:(.*)", re.IGNORECASE)


class RequirementsClarifier:
    """Ask the oracle for clarifying questions and record the user's answers."""

    def __init__(self, oracle: LLMAdapter, user_prompt: UserPrompt, max_rounds: int = 10) -> None:
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.oracle = oracle
        self.user_prompt = user_prompt
        self.max_rounds = max_rounds

    def collect(
        self,
        description: str,
        repository_path: Optional[str] = None,
        skip_questions: bool = False,
        requirements: Optional[Requirements] = None,
    ) -> Requirements:
        if requirements is None:
            requirements = Requirements(description=description, repository_path=repository_path)
        else:
            requirements.description = description
            requirements.repository_path = repository_path

        if skip_questions:
            log.info("requirements", "skipping clarifying questions")
            return requirements

        for round_number in range(1, self.max_rounds + 1):
            prompt = prompts.clarification_prompt(requirements)
            log.debug("requirements", f"clarification prompt (round {round_number}):\n{prompt}")

            details = self.oracle.generate(prompt)
            log.debug("requirements", f"oracle response: {details}")
            if not details:
                raise OracleResponseError("Failed to get additional details from the oracle.")

            if QUESTION_MARKER not in details.lower():
                log.info(
                    "requirements",
                    f"collected {len(requirements.additional_details)} clarification(s)",
                )
                return requirements

            question = self._extract_question(details)
            if question is None:
                log.warning("requirements", f"could not process details, oracle responded: {details}")
                continue

            answer = self.user_prompt.ask(question)
            log.debug("requirements", f"question: {question} answer: {answer}")
            requirements.additional_details[question] = answer

        log.warning(
            "requirements",
            f"still receiving questions after {self.max_rounds} round(s); "
            "continuing with the answers collected so far",
        )
        return requirements

    def _extract_question(self, details: str) -> Optional[str]:
        match = _QUESTION_RE.search(details)
        if not match:
            return None
        question = match.group(1).strip()
        return question or None
