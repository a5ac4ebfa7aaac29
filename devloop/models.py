from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

ChangeSet = Dict[str, str]


@dataclass
class Requirements:
    description: str
    repository_path: Optional[str] = None
    project_title: Optional[str] = None
    project_description: Optional[str] = None
    additional_details: Dict[str, str] = field(default_factory=dict)


@dataclass
class ContextSnapshot:
    """Fetched resource contents plus every identifier asked for so far.

    ``requested`` is a superset of ``contents`` keys: a failed fetch still
    counts as requested. ``rejected`` holds identifiers the oracle named that
    were not in the catalog.
    """

    contents: Dict[str, str] = field(default_factory=dict)
    requested: List[str] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)

    def is_requested(self, identifier: str) -> bool:
        return identifier in self.contents or identifier in self.requested

    def record(self, identifier: str, content: str) -> None:
        self.contents[identifier] = content
        self.mark_requested(identifier)

    def mark_requested(self, identifier: str) -> None:
        if identifier not in self.requested:
            self.requested.append(identifier)

    def reject(self, identifier: str) -> None:
        if identifier not in self.rejected:
            self.rejected.append(identifier)


@dataclass(frozen=True)
class DeliveryPlan:
    title: str
    short_description: str
    long_description: str
    acceptance_criteria: List[str]
    plan: List[str]
    estimated_hours: Optional[float] = None
    dependencies: List[str] = field(default_factory=list)
    risks: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "DeliveryPlan":
        def pick(*keys: str) -> Any:
            for key in keys:
                if key in payload and payload[key] is not None:
                    return payload[key]
            return None

        def as_list(value: Any) -> List[str]:
            if value is None:
                return []
            if isinstance(value, list):
                return [item if isinstance(item, str) else str(item) for item in value]
            return [str(value)]

        estimate = pick("estimatedHours", "estimated_hours")
        if isinstance(estimate, bool) or not isinstance(estimate, (int, float)):
            estimate = None
        notes = pick("notes")
        return cls(
            title=str(pick("title") or ""),
            short_description=str(pick("shortDescription", "short_description") or ""),
            long_description=str(pick("longDescription", "long_description") or ""),
            acceptance_criteria=as_list(pick("acceptanceCriteria", "acceptance_criteria")),
            plan=as_list(pick("plan", "steps")),
            estimated_hours=estimate,
            dependencies=as_list(pick("dependencies")),
            risks=as_list(pick("risks")),
            notes=str(notes) if notes is not None else None,
            raw=dict(payload),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "title": self.title,
            "shortDescription": self.short_description,
            "longDescription": self.long_description,
            "acceptanceCriteria": list(self.acceptance_criteria),
            "plan": list(self.plan),
        }
        if self.estimated_hours is not None:
            payload["estimatedHours"] = self.estimated_hours
        if self.dependencies:
            payload["dependencies"] = list(self.dependencies)
        if self.risks:
            payload["risks"] = list(self.risks)
        if self.notes is not None:
            payload["notes"] = self.notes
        return payload


@dataclass
class FileWriteResult:
    path: str
    ok: bool
    error: Optional[str] = None


@dataclass
class ApplyReport:
    results: List[FileWriteResult] = field(default_factory=list)

    @property
    def written(self) -> List[str]:
        return [result.path for result in self.results if result.ok]

    @property
    def failed(self) -> List[FileWriteResult]:
        return [result for result in self.results if not result.ok]

    @property
    def all_written(self) -> bool:
        return not self.failed


@dataclass
class TestOutcome:
    __test__ = False

    passed: bool
    details: str = ""
    command: str = ""
    return_code: Optional[int] = None


@dataclass
class IterationRecord:
    ordinal: int
    change_set: ChangeSet = field(default_factory=dict)
    description: Optional[str] = None
    apply_report: Optional[ApplyReport] = None
    test_outcome: Optional[TestOutcome] = None
    skipped: bool = False


class DevelopmentStatus(str, Enum):
    PASSED = "passed"
    MAX_REACHED = "max_reached"


@dataclass
class DevelopmentResult:
    status: DevelopmentStatus
    iterations: List[IterationRecord]
    snapshot: ContextSnapshot

    @property
    def applied_iterations(self) -> List[IterationRecord]:
        return [record for record in self.iterations if not record.skipped]


@dataclass
class DiscoveryResult:
    snapshot: ContextSnapshot
    rounds: int
    converged: bool
    fetched: List[str] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CommitDecision:
    accepted: bool
    keep_changes: bool = False


class ReviewOutcome(str, Enum):
    COMMITTED = "committed"
    DISCARDED = "discarded"
    KEPT = "kept_uncommitted"
