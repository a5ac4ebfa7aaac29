from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .llm_base import LLMAdapter


@dataclass
class MockAdapter(LLMAdapter):
    """Offline oracle with canned replies, chosen by what the prompt asks for."""

    scenario: str = "default"
    prompts: List[str] = field(default_factory=list)

    def generate(self, prompt: str, system_message: Optional[str] = None) -> Optional[str]:
        self.prompts.append(prompt)
        if "which files do you need" in prompt:
            return "No more files"
        if "What specific questions should I ask" in prompt:
            return "The requirement is clear, nothing further to clarify."
        if "Create a delivery plan" in prompt:
            return "```json\n" + json.dumps(self._plan_payload(), indent=2) + "\n```"
        if "Implement all the code" in prompt:
            return json.dumps(self._change_payload())
        if "description of the work done" in prompt:
            return "Mock iteration: no files were changed."
        return None

    def _plan_payload(self) -> Dict:
        return {
            "title": "Mock delivery plan",
            "shortDescription": "Deterministic plan produced without an oracle.",
            "longDescription": "Used to exercise the pipeline end to end in mock mode.",
            "acceptanceCriteria": ["The pipeline completes without API keys"],
            "plan": ["Inspect the repository", "Run the test command"],
            "estimatedHours": 1,
            "dependencies": [],
            "risks": ["None"],
            "notes": f"scenario={self.scenario}",
        }

    def _change_payload(self) -> Dict[str, str]:
        return {}
