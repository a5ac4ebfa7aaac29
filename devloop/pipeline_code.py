from __future__ import annotations

import json
from functools import partial
from pathlib import Path
from typing import Callable, Dict, List, Optional

from jsonschema import ValidationError, validate

from devloop import prompts
from devloop.adapters.llm_base import LLMAdapter
from devloop.config import SessionConfig
from devloop.discovery import ContextDiscovery
from devloop.errors import MissingRepositoryError, OracleResponseError
from devloop.gates.parsers import try_extract_json
from devloop.gates.runner import run_test_command
from devloop.models import (
    ApplyReport,
    ChangeSet,
    ContextSnapshot,
    DeliveryPlan,
    DevelopmentResult,
    DevelopmentStatus,
    IterationRecord,
    Requirements,
    TestOutcome,
)
from devloop.repository.files import (
    apply_change_set,
    list_project_files,
    normalize_change_set,
    read_file_contents,
)
from devloop.utils import log
from devloop.utils.io import read_text

TEST_ERRORS_KEY = "Test errors"
NO_DESCRIPTION = "No description provided"


class ChangeIterationController:
    """Discover context, request a ChangeSet, apply it, test; repeat until green or capped."""

    def __init__(
        self,
        oracle: LLMAdapter,
        discovery: ContextDiscovery,
        list_files: Callable[[], List[str]],
        apply_changes: Callable[[ChangeSet], ApplyReport],
        run_tests: Callable[[int], TestOutcome],
        max_iterations: int = 3,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.oracle = oracle
        self.discovery = discovery
        self.list_files = list_files
        self.apply_changes = apply_changes
        self.run_tests = run_tests
        self.max_iterations = max_iterations
        self.schemas_dir = Path(__file__).resolve().parent / "schemas"

    @classmethod
    def for_repository(
        cls,
        oracle: LLMAdapter,
        root: str | Path,
        config: SessionConfig,
        log_dir: Optional[Path] = None,
    ) -> "ChangeIterationController":
        def run_tests(iteration: int) -> TestOutcome:
            log_path = log_dir / f"iteration_{iteration}.log" if log_dir else None
            return run_test_command(
                root,
                config.test_command,
                timeout=config.test_timeout_seconds,
                log_path=log_path,
            )

        discovery = ContextDiscovery(
            oracle,
            partial(read_file_contents, root),
            max_rounds=config.max_discovery_rounds,
            label="develop",
        )
        return cls(
            oracle,
            discovery,
            list_files=partial(list_project_files, root),
            apply_changes=partial(apply_change_set, root),
            run_tests=run_tests,
            max_iterations=config.max_iterations,
        )

    def develop(
        self,
        plan: DeliveryPlan,
        requirements: Requirements,
        snapshot: Optional[ContextSnapshot] = None,
    ) -> DevelopmentResult:
        if not requirements.repository_path:
            raise MissingRepositoryError("Requirements (including repository path) not provided.")

        snapshot = snapshot if snapshot is not None else ContextSnapshot()
        records: List[IterationRecord] = []
        previous_description: Optional[str] = None

        for iteration in range(1, self.max_iterations + 1):
            log.info("develop", f"starting development iteration #{iteration}...")

            catalog = self.list_files()
            log.debug("develop", f"project files: {json.dumps(catalog)}")
            self.discovery.run(catalog, snapshot, framing=prompts.development_framing(plan))

            code_prompt = prompts.change_request_prompt(
                plan, snapshot.contents, requirements, previous_description, iteration
            )
            log.debug("develop", f"code generation prompt:\n{code_prompt}")
            code_response = self.oracle.generate(code_prompt)
            log.debug("develop", f"oracle response for code generation: {code_response}")
            if not code_response:
                raise OracleResponseError("Failed to generate code: the oracle returned no text.")

            change_set = self._parse_change_set(code_response)
            if change_set is None:
                records.append(IterationRecord(ordinal=iteration, skipped=True))
                continue

            report = self.apply_changes(change_set)
            if report.failed:
                log.warning(
                    "develop",
                    f"{len(report.written)} of {len(report.results)} file(s) written; "
                    f"failed: {', '.join(result.path for result in report.failed)}",
                )
            for path in report.written:
                snapshot.record(path, change_set[path])

            previous_description = self._describe(change_set)
            outcome = self.run_tests(iteration)
            records.append(
                IterationRecord(
                    ordinal=iteration,
                    change_set=change_set,
                    description=previous_description,
                    apply_report=report,
                    test_outcome=outcome,
                )
            )

            if outcome.passed:
                requirements.additional_details.pop(TEST_ERRORS_KEY, None)
                log.info("develop", f"tests passed on iteration #{iteration}")
                return DevelopmentResult(DevelopmentStatus.PASSED, records, snapshot)

            requirements.additional_details[TEST_ERRORS_KEY] = (
                outcome.details or "Tests failed without details."
            )
            log.error("develop", f"tests failed on iteration #{iteration}. Details: {outcome.details}")

        log.warning(
            "develop",
            "maximum number of iterations reached. There might be unresolved issues.",
        )
        return DevelopmentResult(DevelopmentStatus.MAX_REACHED, records, snapshot)

    def _parse_change_set(self, code_response: str) -> Optional[ChangeSet]:
        extraction = try_extract_json(code_response)
        if not extraction.is_object:
            log.error("develop", f"oracle did not return a valid JSON object: {code_response}")
            log.error("develop", f"extraction error: {extraction.error or f'got {extraction.shape}'}")
            return None
        try:
            validate(instance=extraction.data, schema=self._load_schema("change_set.schema.json"))
        except ValidationError as exc:
            log.error("develop", f"change set rejected: {exc.message}")
            return None
        return normalize_change_set(extraction.data)

    def _describe(self, change_set: ChangeSet) -> str:
        description = self.oracle.generate(prompts.iteration_description_prompt(change_set))
        return description or NO_DESCRIPTION

    def _load_schema(self, name: str) -> Dict:
        return json.loads(read_text(self.schemas_dir / name))
