from __future__ import annotations

from pathlib import Path
from typing import List

from devloop.models import DeliveryPlan
from devloop.utils.io import write_json, write_text


def write_delivery_plan(json_path: Path, markdown_path: Path, plan: DeliveryPlan) -> None:
    write_json(json_path, plan.to_dict())

    lines: List[str] = [
        f"# {plan.title or 'Delivery plan'}",
        "",
        plan.short_description,
        "",
        "## Description",
        plan.long_description,
        "",
        "## Acceptance Criteria",
    ]
    lines.extend([f"- {item}" for item in plan.acceptance_criteria])
    lines.extend(["", "## Plan"])
    lines.extend([f"{index}. {step}" for index, step in enumerate(plan.plan, start=1)])
    if plan.estimated_hours is not None:
        lines.extend(["", f"Estimated hours: {plan.estimated_hours:g}"])
    if plan.dependencies:
        lines.extend(["", "## Dependencies"])
        lines.extend([f"- {item}" for item in plan.dependencies])
    if plan.risks:
        lines.extend(["", "## Risks"])
        lines.extend([f"- {item}" for item in plan.risks])
    if plan.notes:
        lines.extend(["", "## Notes", plan.notes])
    write_text(markdown_path, "\n".join(lines) + "\n")
