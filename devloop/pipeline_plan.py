from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional, Sequence

from jsonschema import Draft7Validator

from devloop import prompts
from devloop.adapters.llm_base import LLMAdapter
from devloop.discovery import ContextDiscovery
from devloop.errors import MissingRepositoryError, PlanningError
from devloop.gates.parsers import try_extract_json
from devloop.models import ContextSnapshot, DeliveryPlan, Requirements
from devloop.utils import log
from devloop.utils.io import read_text


class PlanSynthesizer:
    def __init__(self, oracle: LLMAdapter, discovery: ContextDiscovery) -> None:
        self.oracle = oracle
        self.discovery = discovery
        self.schemas_dir = Path(__file__).resolve().parent / "schemas"

    def synthesize(
        self,
        requirements: Requirements,
        catalog: Sequence[str],
        snapshot: Optional[ContextSnapshot] = None,
    ) -> DeliveryPlan:
        if not requirements.repository_path:
            raise MissingRepositoryError(
                "Requirements (including repository path) must be provided to create the delivery plan."
            )

        discovered = self.discovery.run(
            catalog, snapshot, framing=prompts.planning_framing(requirements)
        )
        prompt = prompts.delivery_plan_prompt(requirements, discovered.snapshot.contents)
        log.debug("plan", f"delivery plan prompt:\n{prompt}")

        story_text = self.oracle.generate(prompt, prompts.planner_system_message())
        log.debug("plan", f"oracle response for delivery plan: {story_text}")
        if not story_text:
            raise PlanningError("Failed to create a delivery plan: the oracle returned no text.")

        extraction = try_extract_json(story_text)
        if not extraction.ok:
            log.error("plan", f"error parsing delivery plan JSON: {story_text}")
            raise PlanningError(f"Failed to parse delivery plan: {extraction.error}")
        if not extraction.is_object:
            raise PlanningError(
                f"Failed to parse delivery plan: expected a JSON object, got {extraction.shape}."
            )

        self._report_schema_gaps(extraction.data)
        plan = DeliveryPlan.from_dict(extraction.data)
        log.info("plan", f"delivery plan ready: {plan.title or '(untitled)'} ({len(plan.plan)} step(s))")
        return plan

    def _report_schema_gaps(self, payload: Dict) -> None:
        validator = Draft7Validator(self._load_schema("delivery_plan.schema.json"))
        for error in validator.iter_errors(payload):
            log.warning("plan", f"delivery plan does not match the expected shape: {error.message}")

    def _load_schema(self, name: str) -> Dict:
        return json.loads(read_text(self.schemas_dir / name))
