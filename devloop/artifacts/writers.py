from __future__ import annotations

from pathlib import Path
from typing import List

from devloop.models import Requirements
from devloop.utils.io import write_text


def write_requirements(path: Path, requirements: Requirements) -> None:
    lines: List[str] = ["# Requirements", ""]
    if requirements.project_title:
        lines.extend([f"Project: {requirements.project_title}", ""])
    if requirements.project_description:
        lines.extend([requirements.project_description, ""])
    lines.append(requirements.description)
    if requirements.additional_details:
        lines.extend(["", "## Clarifications"])
        for question, answer in requirements.additional_details.items():
            lines.append(f"- **{question}** {answer}")
    write_text(path, "\n".join(lines) + "\n")
