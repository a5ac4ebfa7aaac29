from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import Optional

from devloop import prompts
from devloop.adapters.llm_base import LLMAdapter
from devloop.adapters.user_prompt import UserPrompt
from devloop.artifacts.iteration_writer import write_iteration_summary
from devloop.artifacts.plan_writer import write_delivery_plan
from devloop.artifacts.writers import write_requirements
from devloop.config import SessionConfig
from devloop.discovery import ContextDiscovery
from devloop.errors import MissingRepositoryError, OrchestratorError
from devloop.models import (
    CommitDecision,
    ContextSnapshot,
    DeliveryPlan,
    DevelopmentResult,
    Requirements,
    ReviewOutcome,
)
from devloop.pipeline_code import ChangeIterationController
from devloop.pipeline_plan import PlanSynthesizer
from devloop.pipeline_requirements import RequirementsClarifier
from devloop.pipeline_review import apply_commit_decision
from devloop.repository.files import list_project_files, read_file_contents
from devloop.repository.vcs import GitRepository


class DevelopmentSession:
    """Owns the Requirements for one run and drives clarify → plan → develop → review."""

    def __init__(
        self,
        oracle: LLMAdapter,
        user_prompt: UserPrompt,
        config: Optional[SessionConfig] = None,
        vcs: Optional[GitRepository] = None,
        run_dir: Optional[Path] = None,
    ) -> None:
        self.oracle = oracle
        self.user_prompt = user_prompt
        self.config = config or SessionConfig()
        self.vcs = vcs or GitRepository()
        self.run_dir = run_dir
        self.requirements: Optional[Requirements] = None
        self.plan: Optional[DeliveryPlan] = None
        self.snapshot = ContextSnapshot()
        self.result: Optional[DevelopmentResult] = None

    def collect_requirements(
        self,
        description: str,
        repository_path: Optional[str] = None,
        skip_questions: bool = True,
    ) -> Requirements:
        clarifier = RequirementsClarifier(
            self.oracle, self.user_prompt, max_rounds=self.config.max_clarify_rounds
        )
        self.requirements = clarifier.collect(
            description, repository_path, skip_questions, requirements=self.requirements
        )
        return self.requirements

    def set_project_title(self, title: str) -> None:
        if self.requirements is not None:
            self.requirements.project_title = title

    def set_project_description(self, description: str) -> None:
        if self.requirements is not None:
            self.requirements.project_description = description

    def create_plan(self) -> DeliveryPlan:
        root = self._repository_path()
        discovery = ContextDiscovery(
            self.oracle,
            partial(read_file_contents, root),
            max_rounds=self.config.max_discovery_rounds,
            label="plan",
            task=prompts.PLANNING_TASK,
        )
        synthesizer = PlanSynthesizer(self.oracle, discovery)
        self.plan = synthesizer.synthesize(self.requirements, list_project_files(root))
        if self.run_dir is not None:
            artifacts_dir = self.run_dir / "artifacts"
            write_requirements(artifacts_dir / "requirements.md", self.requirements)
            write_delivery_plan(
                artifacts_dir / "delivery_plan.json",
                artifacts_dir / "delivery_plan.md",
                self.plan,
            )
        return self.plan

    def develop(self) -> DevelopmentResult:
        root = self._repository_path()
        if self.plan is None:
            raise OrchestratorError("A delivery plan must be created before development starts.")
        if not self.vcs.is_repo(root):
            self.vcs.init(root)

        log_dir = self.run_dir / "test_runs" if self.run_dir is not None else None
        controller = ChangeIterationController.for_repository(
            self.oracle, root, self.config, log_dir=log_dir
        )
        self.result = controller.develop(self.plan, self.requirements, self.snapshot)
        if self.run_dir is not None:
            write_iteration_summary(
                self.run_dir / "artifacts" / "iterations.csv", self.result.iterations
            )
        return self.result

    def review(self, decision: CommitDecision) -> ReviewOutcome:
        return apply_commit_decision(self.vcs, self._repository_path(), decision)

    def _repository_path(self) -> str:
        if self.requirements is None or not self.requirements.repository_path:
            raise MissingRepositoryError(
                "Requirements (including repository path) must be collected first."
            )
        return self.requirements.repository_path
