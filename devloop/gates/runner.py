from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from devloop.errors import CommandTimeoutError
from devloop.models import TestOutcome
from devloop.utils import log
from devloop.utils.io import write_text


def run_test_command(
    root: str | Path,
    command: str,
    timeout: Optional[float] = None,
    log_path: Optional[Path] = None,
) -> TestOutcome:
    """Run ``command`` in ``root``; a non-zero exit is a failed outcome, not an error."""
    log.info("tests", f"running `{command}` in {root}")
    try:
        completed = subprocess.run(
            command,
            shell=True,
            cwd=str(root),
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise CommandTimeoutError(command, timeout or 0) from exc

    output = completed.stdout or ""
    if log_path is not None:
        write_text(log_path, output)

    passed = completed.returncode == 0
    if passed:
        details = output
    else:
        details = f"Command failed with exit code {completed.returncode}: {command}\n{output}"
    return TestOutcome(
        passed=passed,
        details=details,
        command=command,
        return_code=completed.returncode,
    )
