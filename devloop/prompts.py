from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, Optional, Sequence

from devloop.models import ChangeSet, ContextSnapshot, DeliveryPlan, Requirements
from devloop.utils.io import read_text

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

_PLACEHOLDER_RE = re.compile(r"\{\{([A-Z_]+)\}\}")

PLANNING_TASK = (
    "Based on the user requirements and the project's file structure, which files do you "
    "need to examine to create a detailed delivery plan? Focus on files that contain "
    "functional logic and existing code rather than configuration files."
)
DEVELOPMENT_TASK = (
    "Based on the delivery plan and the project's file structure, which files do you need "
    "to examine to implement the next step?"
)


def render_prompt(name: str, values: Dict[str, str]) -> str:
    # Single pass, so placeholders inside substituted file contents stay untouched.
    template = read_text(TEMPLATES_DIR / f"{name}.md")
    return _PLACEHOLDER_RE.sub(lambda match: values.get(match.group(1), match.group(0)), template)


def format_file_contents(contents: Dict[str, str]) -> str:
    if not contents:
        return ""
    lines = ["", "Current Relevant File Contents:"]
    for path, content in contents.items():
        lines.extend(["", f"--- {path} ---", content])
    return "\n".join(lines) + "\n"


def format_answers(details: Dict[str, str]) -> str:
    return "".join(
        f"Question: {question}\nAnswer: {answer}\n" for question, answer in details.items()
    )


def format_plan(plan: DeliveryPlan, full: bool = True) -> str:
    lines = ["Delivery Plan:", f"Title: {plan.title}"]
    if full:
        lines.extend(
            [
                f"Short Description: {plan.short_description}",
                f"Long Description: {plan.long_description}",
                "Acceptance Criteria:",
                *plan.acceptance_criteria,
                "",
            ]
        )
    lines.extend(["Plan:", *plan.plan])
    return "\n".join(lines) + "\n"


def clarification_prompt(requirements: Requirements) -> str:
    answered = ""
    if requirements.additional_details:
        answered = "We have already collected the following details:\n" + format_answers(
            requirements.additional_details
        )
    return render_prompt(
        "clarify_requirements",
        {"REQUIREMENTS": requirements.description, "ANSWERED_QUESTIONS": answered},
    )


def planning_framing(requirements: Requirements) -> str:
    framing = f"User Requirements:\n{requirements.description}\n"
    if requirements.additional_details:
        framing += "\nAdditional Details:\n" + format_answers(requirements.additional_details)
    return framing


def development_framing(plan: DeliveryPlan) -> str:
    return format_plan(plan, full=False)


def file_request_prompt(
    catalog: Sequence[str],
    snapshot: ContextSnapshot,
    framing: str,
    task: str = DEVELOPMENT_TASK,
) -> str:
    already = ""
    if snapshot.requested:
        already = f"\nFiles already requested: {', '.join(snapshot.requested)}\n"
    rejected = ""
    if snapshot.rejected:
        rejected = f"\nNot project files, do not request again: {', '.join(snapshot.rejected)}\n"
    return render_prompt(
        "file_request",
        {
            "TASK": task,
            "CATALOG": "\n".join(catalog),
            "ALREADY_REQUESTED": already,
            "REJECTED": rejected,
            "FILE_CONTENTS": format_file_contents(snapshot.contents),
            "FRAMING": framing,
        },
    )


def planner_system_message() -> str:
    return read_text(TEMPLATES_DIR / "delivery_plan_system.md")


def delivery_plan_prompt(requirements: Requirements, contents: Dict[str, str]) -> str:
    return render_prompt(
        "delivery_plan",
        {
            "PROJECT_TITLE": requirements.project_title or "Unnamed Project",
            "PROJECT_DESCRIPTION": requirements.project_description
            or "No project description provided.",
            "REQUIREMENTS": requirements.description,
            "ADDITIONAL_DETAILS": format_answers(requirements.additional_details),
            "FILE_CONTENTS": format_file_contents(contents),
        },
    )


def change_request_prompt(
    plan: DeliveryPlan,
    contents: Dict[str, str],
    requirements: Requirements,
    previous_description: Optional[str],
    iteration: int,
) -> str:
    details = ""
    if requirements.additional_details:
        details = "\nAdditional Details:\n" + format_answers(requirements.additional_details)
    previous = ""
    if previous_description:
        previous = f"\nPrevious Iteration Description:\n{previous_description}\n"
    return render_prompt(
        "change_request",
        {
            "ITERATION": str(iteration),
            "PLAN": format_plan(plan),
            "ADDITIONAL_DETAILS": details,
            "FILE_CONTENTS": format_file_contents(contents),
            "PREVIOUS_ITERATION": previous,
        },
    )


def iteration_description_prompt(change_set: ChangeSet) -> str:
    return render_prompt(
        "iteration_description",
        {"CHANGES": json.dumps(change_set, indent=2, ensure_ascii=False)},
    )
